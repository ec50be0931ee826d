"""Account registration and lookup."""

from datetime import datetime, timezone
from typing import Optional

from tasktracker.domain.errors import AccountNotFoundError
from tasktracker.domain.models import Account, Binding
from tasktracker.domain.protocols import AccountRepository, BindingStore


class AccountService:
    """Service for accounts and their chat bindings."""

    def __init__(
        self,
        account_repository: AccountRepository,
        binding_store: BindingStore,
    ) -> None:
        self._accounts = account_repository
        self._bindings = binding_store

    async def register(self, username: str, display_name: Optional[str] = None) -> Account:
        """Create an account. Raises ValueError if the name is taken."""
        account = Account(
            username=username,
            display_name=display_name,
            created_at=datetime.now(timezone.utc),
        )
        return await self._accounts.create(account)

    async def get(self, username: str) -> Account:
        account = await self._accounts.get(username)
        if account is None:
            raise AccountNotFoundError(f"Account {username} not found")
        return account

    async def get_binding(self, username: str) -> Optional[Binding]:
        return await self._bindings.get(username)

    async def list_usernames(self) -> list[str]:
        """Usernames of all accounts, sorted; used to pick assignees."""
        return [account.username for account in await self._accounts.list_all()]
