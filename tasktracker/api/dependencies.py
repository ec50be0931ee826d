"""Request dependencies shared by the routers."""

from typing import Optional

from fastapi import Header, HTTPException

from ..container import get_container


async def current_username(x_username: Optional[str] = Header(default=None)) -> str:
    """Username forwarded by the authenticating proxy in ``X-Username``."""
    if not x_username:
        raise HTTPException(401, "Missing X-Username header")

    account = await get_container().account_repository.get(x_username)
    if account is None:
        raise HTTPException(401, f"Unknown user: {x_username}")
    return x_username
