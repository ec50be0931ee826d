"""Maps change events to the chat addresses that should hear about them."""

from typing import Iterable, Optional

from ..domain.models import ChangeEvent, ChangeType
from ..domain.protocols import BindingStore


class RecipientResolver:
    """Resolves recipients for change events.

    ``addresses_for`` runs on the mutation path and reads the binding store.
    ``resolve`` only looks at the addresses embedded in the event snapshots,
    so it is safe to call any number of times for a redelivered event.
    """

    def __init__(self, binding_store: BindingStore) -> None:
        self._bindings = binding_store

    async def addresses_for(
        self, owner: str, assignees: Iterable[str]
    ) -> frozenset[Optional[str]]:
        """Look up chat addresses for a task's participants.

        Unbound identities contribute ``None``.
        """
        addresses: set[Optional[str]] = set()
        for username in {owner, *assignees}:
            binding = await self._bindings.get(username)
            addresses.add(binding.chat_id if binding else None)
        return frozenset(addresses)

    def resolve(self, event: ChangeEvent) -> frozenset[str]:
        """Return the distinct addresses to notify for an event.

        Updated events notify both the old and the new participants, so
        someone removed from a task is still told.
        """
        if event.type is ChangeType.CREATED:
            snapshots = (event.new,)
        elif event.type is ChangeType.DELETED:
            snapshots = (event.old,)
        else:
            snapshots = (event.old, event.new)

        return frozenset(
            address
            for snapshot in snapshots
            for address in snapshot.addresses
            if address
        )
