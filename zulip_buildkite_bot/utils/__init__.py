"""Utility modules for zulip-buildkite-bot."""

from zulip_buildkite_bot.utils.logging import get_logger, setup_logging

__all__ = [
    "get_logger",
    "setup_logging",
]
