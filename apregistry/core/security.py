import logging

from fastapi import HTTPException, Header
from apregistry.core.settings import settings

log = logging.getLogger(__name__)

def require_admin(authorization: str = Header(None)):
    if settings.auth_token is None:
        # no token configured: registry writes are open
        return True

    if not authorization:
        log.info("auth: missing Authorization header")
        raise HTTPException(status_code=401, detail="Missing Authorization header")

    if not authorization.startswith("Bearer "):
        log.info("auth: bad scheme: %s", authorization.split()[0] if authorization.split() else None)
        raise HTTPException(status_code=401, detail="Use Bearer token")

    token = authorization.split(None, 1)[1] if len(authorization.split(None, 1)) > 1 else ""
    if token != settings.auth_token:
        log.info("auth: invalid token")
        raise HTTPException(status_code=403, detail="Invalid token")

    return True
