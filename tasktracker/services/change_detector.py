"""Field-level diffing of task snapshots."""

from html import escape
from typing import Any, Callable

from ..domain.models import ChangeEvent, ChangeType, Classification, TaskSnapshot


# Comparison order also defines the order fields appear in summaries.
COMPARED_FIELDS: tuple[tuple[str, Callable[[TaskSnapshot], Any]], ...] = (
    ("title", lambda s: s.title),
    ("status", lambda s: s.status),
    ("description", lambda s: s.description),
    ("due_date", lambda s: s.due_date),
    ("assignees", lambda s: s.assignees),
    ("owner", lambda s: s.owner),
)

# Changed but not worth interrupting anyone for on their own.
UNIMPORTANT_FIELDS = frozenset({"owner"})

FIELD_SEPARATOR = ", "


class ChangeDetector:
    """Decides what changed in an event and whether it deserves a message.

    Pure and deterministic: classifying the same event twice yields equal
    results, which the bus relies on when an event is redelivered.
    """

    def __init__(self, unimportant_fields: frozenset[str] = UNIMPORTANT_FIELDS) -> None:
        self._unimportant = frozenset(unimportant_fields)

    def diff(self, old: TaskSnapshot, new: TaskSnapshot) -> tuple[str, ...]:
        """Names of fields whose values differ, in comparison order."""
        return tuple(
            name for name, getter in COMPARED_FIELDS if getter(old) != getter(new)
        )

    def classify(self, event: ChangeEvent) -> Classification:
        """Return the summary text and importance verdict for an event."""
        if event.type is ChangeType.CREATED:
            return Classification(
                summary=f"New task created: {escape(event.new.title)}",
                important=True,
            )

        if event.type is ChangeType.DELETED:
            return Classification(
                summary=f"Task deleted: {escape(event.old.title)}",
                important=True,
            )

        changed = self.diff(event.old, event.new)
        title = escape(event.new.title)
        if not changed:
            return Classification(
                summary=f"Task '{title}' updated with no field changes",
                important=False,
            )

        return Classification(
            summary=f"Task '{title}' updated: {FIELD_SEPARATOR.join(changed)} changed",
            important=any(name not in self._unimportant for name in changed),
            changed_fields=changed,
        )

    def is_important(self, event: ChangeEvent) -> bool:
        return self.classify(event).important
