"""Thin async client for the Telegram Bot API."""

import logging
from typing import Any, Optional

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from ..domain.errors import DeliveryError, PollError

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://api.telegram.org"


class TelegramModel(BaseModel):
    """Base for Bot API objects; unknown fields are ignored."""

    model_config = ConfigDict(extra="ignore")


class Chat(TelegramModel):
    id: Optional[int] = None
    type: Optional[str] = None
    username: Optional[str] = None


class Message(TelegramModel):
    message_id: Optional[int] = None
    chat: Optional[Chat] = None
    text: Optional[str] = None


class Update(TelegramModel):
    update_id: int
    message: Optional[Message] = None

    @property
    def chat_id(self) -> Optional[str]:
        """Chat id of a message update as a string."""
        if self.message is None or self.message.chat is None:
            return None
        if self.message.chat.id is None:
            return None
        return str(self.message.chat.id)

    @property
    def text(self) -> Optional[str]:
        return self.message.text if self.message else None


class GetUpdatesResponse(TelegramModel):
    ok: bool
    result: list[dict[str, Any]] = []
    description: Optional[str] = None


def _decode_update(raw: dict[str, Any]) -> Optional[Update]:
    """Decode one update.

    An update that does not fit the schema but carries an integer
    ``update_id`` is kept without its message, so the cursor still moves
    past it. One without a usable ``update_id`` is dropped.
    """
    try:
        return Update.model_validate(raw)
    except ValidationError as e:
        update_id = raw.get("update_id")
        if not isinstance(update_id, int) or isinstance(update_id, bool):
            logger.debug(f"Dropping update without a usable update_id: {e}")
            return None
        logger.debug(f"Skipping malformed update {update_id}: {e}")
        return Update(update_id=update_id)


class SendMessageResponse(TelegramModel):
    ok: bool
    description: Optional[str] = None
    error_code: Optional[int] = None


class TelegramBotApi:
    """Calls ``sendMessage`` and ``getUpdates`` for one bot token.

    Failures are reported as ``DeliveryError`` and ``PollError``.
    """

    def __init__(
        self,
        token: str,
        *,
        base_url: str = DEFAULT_API_BASE_URL,
        request_timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the client.

        Args:
            token: Bot token issued by BotFather
            base_url: Bot API root URL
            request_timeout: Timeout for a single call, added on top of
                the long-poll wait for getUpdates
            http_client: Optional HTTP client for testing
        """
        self._token = token
        self._base_url = base_url.rstrip("/")
        self._request_timeout = request_timeout
        self._http_client = http_client
        self._owns_client = http_client is None

    def _url(self, method: str) -> str:
        return f"{self._base_url}/bot{self._token}/{method}"

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient()
        return self._http_client

    async def send_message(
        self,
        chat_id: str,
        text: str,
        *,
        parse_mode: str = "HTML",
        disable_web_page_preview: bool = True,
    ) -> SendMessageResponse:
        """Send a text message to a chat.

        Raises:
            DeliveryError: On transport failure or a non-ok API response
        """
        payload = {
            "chat_id": chat_id,
            "text": text,
            "parse_mode": parse_mode,
            "disable_web_page_preview": disable_web_page_preview,
        }
        try:
            response = await self._client().post(
                self._url("sendMessage"),
                json=payload,
                timeout=self._request_timeout,
            )
        except httpx.HTTPError as e:
            raise DeliveryError(f"{type(e).__name__}: {e}", address=chat_id) from e

        try:
            result = SendMessageResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise DeliveryError(
                f"Unreadable sendMessage response (HTTP {response.status_code})",
                address=chat_id,
            ) from e

        if not result.ok:
            raise DeliveryError(
                f"sendMessage rejected (HTTP {response.status_code}): {result.description}",
                address=chat_id,
            )
        return result

    async def get_updates(self, offset: int, timeout: int = 60) -> list[Update]:
        """Fetch updates with ``update_id >= offset``, long-polling up to ``timeout`` seconds.

        Raises:
            PollError: On transport failure or a non-ok API response
        """
        params = {"offset": offset, "timeout": timeout}
        try:
            response = await self._client().get(
                self._url("getUpdates"),
                params=params,
                timeout=timeout + self._request_timeout,
            )
        except httpx.HTTPError as e:
            raise PollError(f"{type(e).__name__}: {e}") from e

        try:
            result = GetUpdatesResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise PollError(
                f"Unreadable getUpdates response (HTTP {response.status_code})"
            ) from e

        if not result.ok:
            raise PollError(
                f"getUpdates rejected (HTTP {response.status_code}): {result.description}"
            )
        return [u for u in map(_decode_update, result.result) if u is not None]

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
