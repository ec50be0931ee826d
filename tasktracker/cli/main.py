"""CLI commands for the task tracker."""

import asyncio
import json

import click

from ..container import configure_from_settings, get_container
from ..logging_setup import setup_logging


def setup_container():
    """Set up container with default configuration."""
    container = get_container()

    # Check if already configured
    if container.is_configured:
        return

    configure_from_settings(container)


def run_async(coro):
    """Run async coroutine in sync context."""
    return asyncio.run(coro)


def require_gateway():
    """Return the Telegram gateway or exit when no bot token is set."""
    gateway = get_container().gateway
    if gateway is None:
        raise click.ClickException("TELEGRAM_BOT_TOKEN is not configured")
    return gateway


@click.group()
@click.version_option(version="1.0.0")
@click.option("--log-level", default=None, help="Logging level (default from LOG_LEVEL)")
def cli(log_level):
    """Task tracker with Telegram notifications."""
    setup_container()
    setup_logging(log_level or get_container().settings.log_level)


@cli.command("serve")
@click.option("--host", "-h", default=None, help="Host to bind to")
@click.option("--port", "-p", default=None, type=int, help="Port to bind to")
@click.option("--reload", is_flag=True, help="Enable auto-reload")
def serve(host, port, reload: bool):
    """Start the API server with the notification bus and poll loop."""
    import uvicorn

    settings = get_container().settings
    host = host or settings.host
    port = port or settings.port

    click.echo(f"Starting server at http://{host}:{port}")
    click.echo("Press Ctrl+C to stop")

    uvicorn.run(
        "tasktracker.api.app:app",
        host=host,
        port=port,
        reload=reload,
        log_config=None,
    )


@cli.command("poll")
@click.option("--once", is_flag=True, help="Fetch a single batch of updates and exit")
def poll(once: bool):
    """Run the Telegram handshake poll loop without the API server."""
    gateway = require_gateway()

    async def run():
        try:
            if once:
                count = await gateway.poll_once()
                click.echo(f"Processed {count} update(s), cursor at {gateway.cursor.value}")
            else:
                await gateway.run_polling()
        finally:
            await gateway.aclose()

    try:
        run_async(run())
    except KeyboardInterrupt:
        click.echo("Polling stopped")


@cli.command("issue-key")
@click.argument("username")
def issue_key(username: str):
    """Print a handshake token for USERNAME."""
    token = get_container().token_service.issue(username)
    click.echo(token)


@cli.command("bindings")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def list_bindings(output_json: bool):
    """List users bound to Telegram chats."""
    store = get_container().binding_store
    bindings = run_async(store.list_bindings())

    if output_json:
        output = [
            {
                "username": b.username,
                "chat_id": b.chat_id,
                "bound_at": b.bound_at.isoformat(),
            }
            for b in bindings
        ]
        click.echo(json.dumps(output, indent=2, ensure_ascii=False))
        return

    if not bindings:
        click.echo("No bindings found.")
        return

    for b in bindings:
        click.echo(f"{b.username}\t{b.chat_id}\t{b.bound_at:%Y-%m-%d %H:%M}")


@cli.command("send")
@click.argument("chat_id")
@click.argument("text")
def send(chat_id: str, text: str):
    """Send TEXT to CHAT_ID through the bot."""
    gateway = require_gateway()

    async def run():
        try:
            return await gateway.send(chat_id, text)
        finally:
            await gateway.aclose()

    if run_async(run()):
        click.echo("✅ Sent")
    else:
        raise click.ClickException(f"Could not send message to {chat_id}")


def main():
    """Entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
