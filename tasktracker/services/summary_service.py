"""Board summary sent to a user's chat on request."""

from datetime import datetime, timezone
from html import escape
from typing import Optional, Sequence

from ..domain.models import Task, TaskStatus
from ..domain.protocols import BindingStore, NotificationSender, TaskRepository

URGENT_WITHIN_DAYS = 3

_STATUS_SECTIONS = (
    (TaskStatus.TODO, "📌 To Do:", "Due"),
    (TaskStatus.IN_PROGRESS, "🔄 In Progress:", "Due"),
    (TaskStatus.DONE, "✅ Done:", "Completed before"),
)


class BoardSummaryService:
    """Builds a per-user overview of the board and sends it to their chat."""

    def __init__(
        self,
        task_repository: TaskRepository,
        binding_store: BindingStore,
        sender: Optional[NotificationSender] = None,
    ):
        """Initialize summary service.

        Args:
            task_repository: Source of the user's tasks
            binding_store: Used to find the user's chat
            sender: Delivers the summary; without one nothing is sent
        """
        self._tasks = task_repository
        self._bindings = binding_store
        self._sender = sender

    async def build_summary(self, username: str, now: Optional[datetime] = None) -> str:
        """Build the summary text for a user.

        Args:
            username: User the summary is for
            now: Reference time for urgency, defaults to the current time

        Returns:
            Summary text with light HTML markup
        """
        now = now or datetime.now(timezone.utc)
        tasks = await self._tasks.list_for_user(username)
        return self._render(username, tasks, now)

    async def send_summary(self, username: str, now: Optional[datetime] = None) -> str:
        """Build the summary and send it if the user has a bound chat."""
        summary = await self.build_summary(username, now)

        binding = await self._bindings.get(username)
        if binding is not None and self._sender is not None:
            await self._sender.send(binding.chat_id, summary)

        return summary

    def _render(self, username: str, tasks: Sequence[Task], now: datetime) -> str:
        counts = {status: 0 for status in TaskStatus}
        for task in tasks:
            counts[task.status] += 1

        assigned = sum(1 for t in tasks if username in t.assignees)
        owned = sum(1 for t in tasks if t.owner == username)

        lines = [
            "📋 Board Summary",
            "",
            "📊 Overall Status:",
            f"• Todo: {counts[TaskStatus.TODO]}",
            f"• In Progress: {counts[TaskStatus.IN_PROGRESS]}",
            f"• Done: {counts[TaskStatus.DONE]}",
            "",
            "👤 Your Tasks:",
            f"• Assigned to you: {assigned}",
            f"• Created by you: {owned}",
            "",
            "Your Task Details:",
        ]

        for status, heading, due_label in _STATUS_SECTIONS:
            lines.append(heading)
            section = [t for t in tasks if t.status == status]
            if not section:
                lines.append("-")
            for task in section:
                line = f"• {escape(task.title)}"
                if task.due_date:
                    line += f" ({due_label}: {_format_date(task.due_date)})"
                lines.append(line)
            lines.append("")

        lines.append(f"⚠️ Urgent Tasks (Due within {URGENT_WITHIN_DAYS} days):")
        urgent = 0
        for task in tasks:
            days = task.days_until_due(now)
            if days is None or not 0 <= days <= URGENT_WITHIN_DAYS:
                continue
            urgent += 1
            lines.append(
                f"• {escape(task.title)} (Due: {_format_date(task.due_date)}) - {_days_left(days)}"
            )
        if urgent == 0:
            lines.append("-")

        return "\n".join(lines) + "\n"


def _format_date(value: datetime) -> str:
    return value.strftime("%b %d, %Y")


def _days_left(days: int) -> str:
    if days == 0:
        return "Due today!"
    if days == 1:
        return "1 day left"
    return f"{days} days left"
