"""Zulip delivery client using the REST API over httpx."""

from __future__ import annotations

import asyncio

import httpx

from zulip_buildkite_bot.config import Settings
from zulip_buildkite_bot.delivery.base import DeliveryClient, DeliveryError
from zulip_buildkite_bot.utils.logging import get_logger

log = get_logger(__name__)

MESSAGES_ENDPOINT = "/api/v1/messages"


class ZulipClient(DeliveryClient):
    """Posts stream messages as the configured bot.

    One pooled ``httpx.AsyncClient`` is shared by all concurrent requests.
    """

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    @property
    def platform_name(self) -> str:
        return "zulip"

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        if self._http_client is not None:
            return
        self._http_client = httpx.AsyncClient(
            base_url=self._settings.zulip_server_url,
            auth=(self._settings.zulip_bot_email, self._settings.zulip_bot_api_key),
            timeout=self._settings.delivery_timeout,
            transport=self._transport,
        )
        log.info("zulip_client_started", server=self._settings.zulip_server_url)

    async def stop(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
        log.info("zulip_client_stopped")

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    async def send_message(self, channel: str, topic: str, content: str) -> None:
        if self._http_client is None:
            raise DeliveryError("Zulip client is not started")

        form = {
            "type": "stream",
            "to": channel,
            "topic": topic,
            "content": content,
        }

        # httpx limits each phase separately; bound the whole request too
        try:
            async with asyncio.timeout(self._settings.delivery_timeout):
                resp = await self._http_client.post(MESSAGES_ENDPOINT, data=form)
        except (TimeoutError, httpx.TimeoutException) as exc:
            raise DeliveryError(
                f"Timed out after {self._settings.delivery_timeout}s sending to Zulip"
            ) from exc
        except httpx.HTTPError as exc:
            raise DeliveryError(f"Failed to reach Zulip: {exc}") from exc

        if not resp.is_success:
            raise DeliveryError(
                f"Zulip rejected message: {resp.status_code} - {resp.text[:200]}",
                status=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError:
            data = None
        result = data.get("result") if isinstance(data, dict) else None
        if result != "success":
            raise DeliveryError(
                f"Zulip returned an unexpected response: {resp.text[:200]}",
                status=resp.status_code,
            )

        log.debug("zulip_message_sent", stream=channel, topic=topic)
