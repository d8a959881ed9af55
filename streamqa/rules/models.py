from pydantic import BaseModel, Field


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class CreditRules(BaseModel):
    default_asset_code: str = "USD"
    default_asset_scale: int = Field(default=2, ge=0, le=18)
    poll_timeout_seconds: float = Field(default=5.0, gt=0)
    stats_timeout_seconds: float = Field(default=5.0, gt=0)
    incoming_payment_path: str = "/incoming-payments/"


class VerifierRules(BaseModel):
    request_timeout_seconds: float = Field(default=3.0, gt=0)


class OpsRules(BaseModel):
    required_env: list[str] = Field(default_factory=list)


class Rules(BaseModel):
    project: ProjectRules
    credits: CreditRules = Field(default_factory=CreditRules)
    verifier: VerifierRules = Field(default_factory=VerifierRules)
    ops: OpsRules = Field(default_factory=OpsRules)
