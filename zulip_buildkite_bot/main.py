"""zulip-buildkite-bot entry point: the webhook server and the test emitter."""

from __future__ import annotations

import asyncio
import signal
import sys

import click

from zulip_buildkite_bot import __version__
from zulip_buildkite_bot.config import ConfigurationError, Settings, load_settings
from zulip_buildkite_bot.delivery import ZulipClient
from zulip_buildkite_bot.emitter import EVENT_TYPES, build_events, send_events
from zulip_buildkite_bot.utils.logging import get_logger, setup_logging
from zulip_buildkite_bot.webhooks import WebhookServer

log = get_logger(__name__)


async def run(settings: Settings) -> None:
    server = WebhookServer(settings, ZulipClient(settings))

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        log.info("shutdown_signal")
        stop_event.set()

    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _signal_handler)

    log.info("bot_starting", version=__version__)
    await server.start()

    try:
        if sys.platform == "win32":
            while not stop_event.is_set():
                await asyncio.sleep(1)
        else:
            await stop_event.wait()
    except KeyboardInterrupt:
        pass
    finally:
        await server.stop()


@click.group()
@click.version_option(__version__, prog_name="zulip-buildkite-bot")
def cli() -> None:
    """A bot that forwards Buildkite events to Zulip."""


@cli.command()
@click.option("--config", "config_path", default=None, help="Path to config YAML file")
@click.option("-p", "--port", type=int, default=None, help="Port to listen on (default 3000)")
@click.option("--bind", default=None, help="Address to bind (default 127.0.0.1)")
@click.option("--zulip-bot-email", default=None, help="Zulip bot email [env ZULIP_BOT_EMAIL]")
@click.option("--zulip-bot-api-key", default=None, help="Zulip bot API key [env ZULIP_BOT_API_KEY]")
@click.option("--zulip-server-url", default=None, help="Zulip server URL [env ZULIP_SERVER_URL]")
@click.option("--zulip-stream", default=None, help="Default Zulip stream [env ZULIP_STREAM]")
@click.option("--skip-passed-jobs", is_flag=True, help="Don't forward jobs that passed")
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
@click.option("--log-json", is_flag=True, help="Emit JSON log lines")
def server(
    config_path: str | None,
    port: int | None,
    bind: str | None,
    zulip_bot_email: str | None,
    zulip_bot_api_key: str | None,
    zulip_server_url: str | None,
    zulip_stream: str | None,
    skip_passed_jobs: bool,
    log_level: str | None,
    log_json: bool,
) -> None:
    """Start the webhook server."""
    try:
        settings = load_settings(
            config_path,
            port=port,
            bind=bind,
            zulip_bot_email=zulip_bot_email,
            zulip_bot_api_key=zulip_bot_api_key,
            zulip_server_url=zulip_server_url,
            zulip_stream=zulip_stream,
            skip_passed_jobs=skip_passed_jobs or None,
            log_level=log_level,
            log_json=log_json or None,
        )
    except ConfigurationError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    setup_logging(level=settings.log_level, json_output=settings.log_json)
    asyncio.run(run(settings))


@cli.command("test")
@click.option("--server-url", default="http://localhost:3000", show_default=True,
              help="Server URL to send test webhooks to")
@click.option("--event-type", type=click.Choice(EVENT_TYPES), default="all", show_default=True,
              help="Type of test event to send")
@click.option("--delay", type=float, default=2.0, show_default=True,
              help="Delay between events in seconds")
@click.option("--build-number", default="123", show_default=True,
              help="Build number to use for test events")
@click.option("--log-level", default="INFO", help="Log level (DEBUG, INFO, WARNING, ERROR)")
def send_test_events(
    server_url: str, event_type: str, delay: float, build_number: str, log_level: str
) -> None:
    """Send test webhook events to a running server."""
    setup_logging(level=log_level)
    events = build_events(event_type, build_number)
    log.info("test_events_starting", server=server_url, event_type=event_type, count=len(events))
    accepted = asyncio.run(send_events(server_url, events, delay=delay))
    if accepted < len(events):
        sys.exit(1)


if __name__ == "__main__":
    cli()
