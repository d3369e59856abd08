"""Webhook HTTP server using aiohttp."""

from __future__ import annotations

import json
from typing import Any

from aiohttp import web

from zulip_buildkite_bot.config import Settings
from zulip_buildkite_bot.delivery.base import DeliveryClient, DeliveryError
from zulip_buildkite_bot.events import MalformedPayload, decode_event
from zulip_buildkite_bot.utils.logging import get_logger
from zulip_buildkite_bot.webhooks.handlers import compose, is_filtered

log = get_logger(__name__)


def _reply(status: int, message: str) -> web.Response:
    return web.json_response({"message": message}, status=status)


class WebhookServer:
    """Receives Buildkite webhooks and relays them to the delivery client.

    Requests are handled independently; the only shared state is the
    read-only settings and the delivery client's connection pool.
    """

    def __init__(self, settings: Settings, client: DeliveryClient) -> None:
        self._settings = settings
        self._client = client
        self._runner: web.AppRunner | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        await self._client.start()
        try:
            self._runner = web.AppRunner(self.build_app())
            await self._runner.setup()
            site = web.TCPSite(self._runner, self._settings.bind, self._settings.port)
            await site.start()
        except BaseException:
            await self.stop()
            raise
        log.info(
            "webhook_server_started",
            bind=self._settings.bind,
            port=self._settings.port,
            path=self._settings.webhook_path,
            default_stream=self._settings.zulip_stream,
        )

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        await self._client.stop()
        log.info("webhook_server_stopped")

    # ------------------------------------------------------------------
    # App construction
    # ------------------------------------------------------------------

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post(self._settings.webhook_path, self._handle_webhook)
        return app

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------

    async def _handle_webhook(self, request: web.Request) -> web.Response:
        try:
            payload: Any = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            log.warning("webhook_invalid_json", remote=request.remote)
            return _reply(400, "Invalid JSON")

        if not isinstance(payload, dict):
            log.warning("webhook_invalid_json", remote=request.remote)
            return _reply(400, "Invalid JSON")

        kind = payload.get("event")

        try:
            event = decode_event(payload)
        except MalformedPayload as exc:
            log.warning("webhook_malformed", kind=kind, reason=str(exc))
            return _reply(400, str(exc))

        if event is None:
            log.info("webhook_ignored", kind=kind)
            return _reply(200, "Ignored")

        if is_filtered(event, skip_passed_jobs=self._settings.skip_passed_jobs):
            log.info("webhook_filtered", kind=kind, pipeline=event.pipeline)
            return _reply(200, "Filtered")

        message = compose(event, self._settings.zulip_stream)
        log.info(
            "webhook_received",
            kind=kind,
            pipeline=event.pipeline,
            build=event.number,
            stream=message.channel,
        )

        try:
            await self._client.send_message(message.channel, message.topic, message.content)
        except DeliveryError as exc:
            log.error(
                "delivery_failed",
                platform=self._client.platform_name,
                stream=message.channel,
                topic=message.topic,
                error=str(exc),
            )
            return _reply(502, "Delivery failed")

        log.info("message_delivered", stream=message.channel, topic=message.topic)
        return _reply(200, "OK")
