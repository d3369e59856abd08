"""Outbound chat delivery."""

from zulip_buildkite_bot.delivery.base import DeliveryClient, DeliveryError
from zulip_buildkite_bot.delivery.zulip import ZulipClient

__all__ = [
    "DeliveryClient",
    "DeliveryError",
    "ZulipClient",
]
