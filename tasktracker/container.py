"""Dependency injection container."""

from dataclasses import dataclass
from typing import TypeVar, Generic, Callable, Optional, Any

from tasktracker.domain.protocols import (
    AccountRepository,
    BindingStore,
    NotificationSender,
    TaskRepository,
)


T = TypeVar("T")


class Provider(Generic[T]):
    """Lazy provider that creates instance on first access."""

    def __init__(self, factory: Callable[[], T]) -> None:
        self._factory = factory
        self._instance: Optional[T] = None

    def get(self) -> T:
        """Get the instance, creating it if necessary."""
        if self._instance is None:
            self._instance = self._factory()
        return self._instance

    def reset(self) -> None:
        """Reset the instance (for testing)."""
        self._instance = None

    def override(self, instance: T) -> None:
        """Override with a specific instance (for testing)."""
        self._instance = instance


@dataclass
class Container:
    """Dependency injection container."""

    # Repositories
    _task_repository: Optional[Provider[TaskRepository]] = None
    _account_repository: Optional[Provider[AccountRepository]] = None
    _binding_store: Optional[Provider[BindingStore]] = None

    # Notification pipeline
    _gateway: Optional[Provider[Any]] = None
    _sender: Optional[Provider[NotificationSender]] = None
    _notification_bus: Optional[Provider[Any]] = None
    _token_service: Optional[Provider[Any]] = None

    # Settings cache
    _settings: Optional[Any] = None

    @property
    def task_repository(self) -> TaskRepository:
        """Get the task repository."""
        if self._task_repository is None:
            raise RuntimeError("Task repository not configured")
        return self._task_repository.get()

    @property
    def account_repository(self) -> AccountRepository:
        """Get the account repository."""
        if self._account_repository is None:
            raise RuntimeError("Account repository not configured")
        return self._account_repository.get()

    @property
    def binding_store(self) -> BindingStore:
        """Get the binding store."""
        if self._binding_store is None:
            raise RuntimeError("Binding store not configured")
        return self._binding_store.get()

    @property
    def is_configured(self) -> bool:
        return self._task_repository is not None

    @property
    def gateway(self) -> Any:
        """Get the Telegram gateway, or None when the bot is not configured."""
        if self._gateway is None:
            return None
        return self._gateway.get()

    @property
    def sender(self) -> Optional[NotificationSender]:
        """Get the outbound sender: an explicit one, else the gateway."""
        if self._sender is not None:
            return self._sender.get()
        return self.gateway

    @property
    def token_service(self) -> Any:
        """Get the handshake token service."""
        if self._token_service is None:
            from tasktracker.services.token_service import HandshakeTokenService

            auth = self.settings.auth
            self._token_service = Provider(
                lambda: HandshakeTokenService(
                    auth.secret.get_secret_value(),
                    ttl_seconds=auth.handshake_ttl_seconds,
                )
            )
        return self._token_service.get()

    @property
    def recipient_resolver(self) -> Any:
        """Get RecipientResolver instance."""
        from tasktracker.services.recipient_resolver import RecipientResolver

        return RecipientResolver(self.binding_store)

    @property
    def notification_bus(self) -> Any:
        """Get the notification bus, or None when nothing can deliver."""
        if self._notification_bus is None:
            sender = self.sender
            if sender is None or not self.settings.notifications.enabled:
                return None

            from tasktracker.services.change_detector import ChangeDetector
            from tasktracker.services.notification_bus import NotificationBus

            options = self.settings.notifications
            resolver = self.recipient_resolver
            self._notification_bus = Provider(
                lambda: NotificationBus(
                    ChangeDetector(),
                    resolver,
                    sender,
                    maxsize=options.queue_maxsize,
                    workers=options.workers,
                    max_redeliveries=options.max_redeliveries,
                )
            )
        return self._notification_bus.get()

    @property
    def task_service(self) -> Any:
        """Get TaskService instance."""
        from tasktracker.services.task_service import TaskService

        return TaskService(
            task_repository=self.task_repository,
            account_repository=self.account_repository,
            resolver=self.recipient_resolver,
            publisher=self.notification_bus,
        )

    @property
    def account_service(self) -> Any:
        """Get AccountService instance."""
        from tasktracker.services.account_service import AccountService

        return AccountService(
            account_repository=self.account_repository,
            binding_store=self.binding_store,
        )

    @property
    def summary_service(self) -> Any:
        """Get BoardSummaryService instance."""
        from tasktracker.services.summary_service import BoardSummaryService

        return BoardSummaryService(
            task_repository=self.task_repository,
            binding_store=self.binding_store,
            sender=self.sender,
        )

    @property
    def settings(self) -> Any:
        """Get application settings."""
        if self._settings is None:
            from tasktracker.config.settings import get_settings

            self._settings = get_settings()
        return self._settings

    def configure_task_repository(
        self, factory: Callable[[], TaskRepository]
    ) -> "Container":
        """Configure the task repository."""
        self._task_repository = Provider(factory)
        return self

    def configure_account_repository(
        self, factory: Callable[[], AccountRepository]
    ) -> "Container":
        """Configure the account repository."""
        self._account_repository = Provider(factory)
        return self

    def configure_binding_store(
        self, factory: Callable[[], BindingStore]
    ) -> "Container":
        """Configure the binding store."""
        self._binding_store = Provider(factory)
        return self

    def configure_gateway(self, factory: Callable[[], Any]) -> "Container":
        """Configure the Telegram gateway (sender and poll loop)."""
        self._gateway = Provider(factory)
        return self

    def configure_sender(
        self, factory: Callable[[], NotificationSender]
    ) -> "Container":
        """Configure an outbound sender without a poll loop."""
        self._sender = Provider(factory)
        return self

    def configure_token_service(self, factory: Callable[[], Any]) -> "Container":
        """Configure the handshake token service."""
        self._token_service = Provider(factory)
        return self

    def reset(self) -> None:
        """Reset all providers (for testing)."""
        for provider in (
            self._task_repository,
            self._account_repository,
            self._binding_store,
            self._gateway,
            self._sender,
            self._notification_bus,
            self._token_service,
        ):
            if provider:
                provider.reset()
        self._notification_bus = None
        self._settings = None


def configure_from_settings(container: "Container", settings: Optional[Any] = None) -> "Container":
    """Wire the default implementations chosen by configuration."""
    from tasktracker.notifications.telegram_api import TelegramBotApi
    from tasktracker.notifications.telegram_gateway import TelegramGateway
    from tasktracker.repositories.memory import (
        InMemoryAccountRepository,
        InMemoryBindingStore,
        InMemoryTaskRepository,
    )
    from tasktracker.repositories.sqlite import SqliteBindingStore

    settings = settings or container.settings
    container._settings = settings

    container.configure_task_repository(InMemoryTaskRepository)
    container.configure_account_repository(InMemoryAccountRepository)

    bindings = settings.bindings
    if bindings.backend == "sqlite":
        container.configure_binding_store(lambda: SqliteBindingStore(bindings.sqlite_path))
    else:
        container.configure_binding_store(InMemoryBindingStore)

    telegram = settings.telegram
    if telegram.enabled:
        def make_gateway() -> TelegramGateway:
            store = container.binding_store
            return TelegramGateway(
                TelegramBotApi(
                    telegram.bot_token.get_secret_value(),
                    base_url=telegram.api_base_url,
                    request_timeout=telegram.request_timeout,
                ),
                store,
                container.token_service,
                accounts=container.account_repository,
                cursor_store=store if isinstance(store, SqliteBindingStore) else None,
                poll_interval=telegram.poll_interval_seconds,
                long_poll_timeout=telegram.long_poll_timeout,
                bot_name=telegram.bot_name,
            )

        container.configure_gateway(make_gateway)

    return container


# Global container instance
container = Container()


def get_container() -> Container:
    """Get the global container instance."""
    return container


def reset_container() -> None:
    """Reset the global container (for testing)."""
    global container
    container.reset()
    container = Container()
