"""Telegram handshake and summary routes."""

from fastapi import APIRouter, Depends

from ...container import get_container
from ..dependencies import current_username

router = APIRouter(prefix="/telegram", tags=["telegram"])


@router.get("/key")
async def get_telegram_key(username: str = Depends(current_username)) -> dict[str, str]:
    """Issue a handshake token to paste into the bot chat.

    Returns an empty key once the account is already connected.
    """
    container = get_container()
    if await container.binding_store.get(username) is not None:
        return {"key": ""}
    return {"key": container.token_service.issue(username)}


@router.post("/summary")
async def send_board_summary(username: str = Depends(current_username)) -> dict[str, str]:
    """Build the caller's board summary and send it to their chat."""
    service = get_container().summary_service
    summary = await service.send_summary(username)
    return {"summary": summary}
