"""
Session routes.

Minimal session store surface: enough to create a priced session and read it
back. Wallet currency discovery is not performed; the caller's assetCode and
assetScale (or the rules defaults) are stored as given.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from streamqa.adapters.kv.repos import KVSessionStore
from streamqa.api.deps import get_rules, get_session_store
from streamqa.api.schemas import SessionCreateRequest
from streamqa.domain.entities import Session
from streamqa.rules.models import Rules

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=Session, status_code=status.HTTP_201_CREATED)
def create_session(
    req: SessionCreateRequest,
    store: KVSessionStore = Depends(get_session_store),
    rules: Rules = Depends(get_rules),
) -> Session:
    """Create a new session."""
    session = Session(
        title=req.title.strip(),
        description=req.description,
        host_wallet_address=req.host_wallet_address.strip(),
        question_price=req.question_price,
        asset_code=req.asset_code or rules.credits.default_asset_code,
        asset_scale=(
            req.asset_scale if req.asset_scale is not None else rules.credits.default_asset_scale
        ),
    )
    created = store.save_session(session)
    logger.info(
        "[SESSION CREATE] Session created id=%s price=%d %s/%d",
        created.id,
        created.question_price,
        created.asset_code,
        created.asset_scale,
    )
    return created


@router.get("/{session_id}", response_model=Session)
def get_session(
    session_id: str,
    store: KVSessionStore = Depends(get_session_store),
) -> Session:
    """Get a single session."""
    session = store.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session
