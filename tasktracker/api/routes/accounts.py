"""Account routes."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from ...container import get_container
from ...domain.errors import AccountNotFoundError
from ...services.account_service import AccountService

router = APIRouter(tags=["accounts"])


class AccountCreateRequest(BaseModel):
    username: str = Field(min_length=1, max_length=64, pattern=r"^[A-Za-z0-9_.-]+$")
    display_name: Optional[str] = None


class AccountResponse(BaseModel):
    username: str
    display_name: Optional[str] = None
    created_at: datetime
    telegram_connected: bool = False


class UsernameListResponse(BaseModel):
    usernames: list[str]


def get_account_service() -> AccountService:
    """Get AccountService from container."""
    return get_container().account_service


@router.get("/usernames", response_model=UsernameListResponse)
async def list_usernames() -> UsernameListResponse:
    """List all usernames, for picking assignees."""
    service = get_account_service()
    return UsernameListResponse(usernames=await service.list_usernames())


@router.post("/accounts", response_model=AccountResponse, status_code=201)
async def register_account(request: AccountCreateRequest) -> AccountResponse:
    """Register a new account."""
    service = get_account_service()
    try:
        account = await service.register(request.username, request.display_name)
    except ValueError as e:
        raise HTTPException(409, str(e))

    return AccountResponse(
        username=account.username,
        display_name=account.display_name,
        created_at=account.created_at,
    )


@router.get("/accounts/{username}", response_model=AccountResponse)
async def get_account(username: str) -> AccountResponse:
    """Get an account and whether it has a bound chat."""
    service = get_account_service()
    try:
        account = await service.get(username)
    except AccountNotFoundError as e:
        raise HTTPException(404, str(e))

    binding = await service.get_binding(username)
    return AccountResponse(
        username=account.username,
        display_name=account.display_name,
        created_at=account.created_at,
        telegram_connected=binding is not None,
    )
