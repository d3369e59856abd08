"""Inbound Buildkite webhook handling."""

from zulip_buildkite_bot.webhooks.handlers import OutboundMessage, compose, is_filtered
from zulip_buildkite_bot.webhooks.server import WebhookServer

__all__ = [
    "OutboundMessage",
    "WebhookServer",
    "compose",
    "is_filtered",
]
