import hmac

from fastapi import Header, HTTPException

from .config import settings


def require_admin(x_api_key: str | None = Header(default=None, alias="X-API-Key")):
    """Guard admin routes with the X-API-Key header.

    With no ADMIN_API_KEY configured the admin routes stay open (local development).
    """
    expected = settings.api_key
    if not expected:
        return
    if not x_api_key:
        raise HTTPException(status_code=401, detail="Unauthorized. Please provide an API key")
    if not hmac.compare_digest(x_api_key.encode("utf-8"), expected.encode("utf-8")):
        raise HTTPException(status_code=403, detail="Forbidden. Invalid API key")
