"""Telegram delivery: outbound messages and the handshake poll loop."""

import asyncio
import contextlib
import logging
from html import escape
from typing import Optional

from ..domain.errors import DeliveryError, PollError
from ..domain.models import Binding, UpdateCursor
from ..domain.protocols import (
    AccountRepository,
    BindingStore,
    CursorStore,
    TokenVerifier,
)
from .telegram_api import TelegramBotApi, Update

logger = logging.getLogger(__name__)


class TelegramGateway:
    """Sends notifications to chats and binds chats to users.

    The gateway owns the update cursor. ``run_polling`` repeatedly fetches
    new updates, treats the last word of each text message as a handshake
    token and, when the token is valid, binds the sender's chat to the user
    the token was issued for.
    """

    def __init__(
        self,
        api: TelegramBotApi,
        binding_store: BindingStore,
        token_verifier: TokenVerifier,
        *,
        accounts: Optional[AccountRepository] = None,
        cursor: Optional[UpdateCursor] = None,
        cursor_store: Optional[CursorStore] = None,
        poll_interval: float = 1.0,
        long_poll_timeout: int = 60,
        bot_name: str = "Task Tracker",
    ):
        """Initialize the gateway.

        Args:
            api: Bot API client shared by both duties
            binding_store: Where handshakes are recorded
            token_verifier: Turns handshake tokens into usernames
            accounts: If given, handshakes for unknown users are ignored
            cursor: Starting cursor, defaults to the beginning of the stream
            cursor_store: Optional persistence for the cursor
            poll_interval: Pause between polls and after a failed poll
            long_poll_timeout: Server-side wait passed to getUpdates
            bot_name: Name used in the welcome message
        """
        self._api = api
        self._bindings = binding_store
        self._verifier = token_verifier
        self._accounts = accounts
        self._cursor = cursor or UpdateCursor()
        self._cursor_store = cursor_store
        self._poll_interval = poll_interval
        self._long_poll_timeout = long_poll_timeout
        self._bot_name = bot_name
        self._stopping = asyncio.Event()

    @property
    def cursor(self) -> UpdateCursor:
        return self._cursor

    @property
    def channel_name(self) -> str:
        return "telegram"

    async def send(self, address: str, text: str) -> bool:
        """Send a message to one chat.

        Failures are logged and reported as False, never raised.
        """
        try:
            await self._api.send_message(address, text)
        except DeliveryError as e:
            logger.error(f"Error sending message to {address}: {e}")
            return False
        return True

    def welcome_message(self, username: str) -> str:
        return (
            f"🎉 Welcome to {escape(self._bot_name)}!\n\n"
            f"Your account (<code>@{escape(username)}</code>) has been successfully "
            "connected. You'll now receive task updates here."
        )

    async def handle_update(self, update: Update) -> Optional[Binding]:
        """Complete a handshake if the update carries a valid token.

        Returns:
            The new binding, or None if the update was skipped
        """
        chat_id = update.chat_id
        text = update.text
        if chat_id is None or not text:
            return None

        words = text.split()
        if not words:
            return None

        username = self._verifier.verify(words[-1])
        if username is None:
            logger.debug(f"Ignoring update {update.update_id}: no valid handshake token")
            return None

        if self._accounts is not None and await self._accounts.get(username) is None:
            logger.debug(f"Ignoring handshake for unknown account {username}")
            return None

        binding = await self._bindings.bind(username, chat_id)
        logger.info(f"Bound Telegram chat {chat_id} to {username}")
        await self.send(chat_id, self.welcome_message(username))
        return binding

    async def poll_once(self) -> int:
        """Fetch and process one batch of updates.

        Returns:
            Number of updates received

        Raises:
            PollError: If the updates could not be fetched
        """
        updates = await self._api.get_updates(
            offset=self._cursor.next_offset,
            timeout=self._long_poll_timeout,
        )
        for update in updates:
            self._cursor.advance(update.update_id)
            await self.handle_update(update)

        if updates and self._cursor_store is not None:
            await self._cursor_store.store_cursor(self._cursor.value)
        return len(updates)

    async def run_polling(self) -> None:
        """Poll until ``stop`` is called. Failures never end the loop."""
        self._stopping.clear()
        if self._cursor_store is not None:
            stored = await self._cursor_store.load_cursor()
            if stored is not None:
                self._cursor.advance(stored)

        logger.info(f"Telegram polling started at offset {self._cursor.next_offset}")
        while not self._stopping.is_set():
            try:
                await self.poll_once()
            except PollError as e:
                logger.error(f"Error polling Telegram updates: {e}")
            except Exception:
                logger.exception("Unexpected error while handling Telegram updates")
            await self._pause()
        logger.info("Telegram polling stopped")

    async def _pause(self) -> None:
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(self._stopping.wait(), timeout=self._poll_interval)

    def stop(self) -> None:
        """Ask ``run_polling`` to exit after the current poll."""
        self._stopping.set()

    async def aclose(self) -> None:
        await self._api.aclose()
