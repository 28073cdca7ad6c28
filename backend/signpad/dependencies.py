from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from signpad.config import Settings, get_settings
from signpad.database import get_db
from signpad.services.submission_store import SubmissionStore
from signpad.utils.security import verify_admin_token


def get_store(db: Session = Depends(get_db)) -> SubmissionStore:
    return SubmissionStore(db)


async def require_admin_token(
    authorization: str | None = Header(None),
    cfg: Settings = Depends(get_settings),
):
    if not cfg.admin_token_hash:
        raise HTTPException(status_code=403, detail="Admin API is disabled")
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing bearer token")
    token = authorization[7:]
    if not verify_admin_token(cfg.admin_token_hash, token):
        raise HTTPException(status_code=401, detail="Invalid admin token")
    return token
