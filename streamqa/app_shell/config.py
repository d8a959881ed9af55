import logging
import os

from streamqa.rules.models import Rules

logger = logging.getLogger(__name__)


def validate_ops_rules(rules: Rules) -> None:
    """
    Validate operational requirements before startup.

    Raises:
        RuntimeError: a required environment variable is missing.
    """
    missing = [name for name in rules.ops.required_env if name not in os.environ]
    if missing:
        raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")

    logger.info("Configuration validated (rules %s)", rules.project.rules_version)


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=(level or os.environ.get("STREAMQA_LOG_LEVEL", "INFO")).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
