from fastapi import Header, HTTPException

async def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Caller identity, set by the auth proxy in front of the API."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id
