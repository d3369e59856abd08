"""Buildkite event model."""

from zulip_buildkite_bot.events.models import (
    BuildFinished,
    BuildStarted,
    BuildState,
    Event,
    JobFinished,
    MalformedPayload,
)
from zulip_buildkite_bot.events.payloads import BuildkitePayload, decode_event

__all__ = [
    "BuildFinished",
    "BuildStarted",
    "BuildState",
    "BuildkitePayload",
    "Event",
    "JobFinished",
    "MalformedPayload",
    "decode_event",
]
