"""Turning decoded events into outbound Zulip messages."""

from __future__ import annotations

from dataclasses import dataclass

from zulip_buildkite_bot.events.models import BuildState, Event, JobFinished
from zulip_buildkite_bot.formatting import format_event
from zulip_buildkite_bot.routing import route


@dataclass(frozen=True)
class OutboundMessage:
    channel: str
    topic: str
    content: str


def compose(event: Event, default_channel: str) -> OutboundMessage:
    """Route and render one event."""
    topic, content = format_event(event)
    return OutboundMessage(
        channel=route(event.pipeline, default_channel),
        topic=topic,
        content=content,
    )


def is_filtered(event: Event, *, skip_passed_jobs: bool) -> bool:
    """Whether a well-formed event is deliberately not forwarded."""
    return (
        skip_passed_jobs
        and isinstance(event, JobFinished)
        and event.state is BuildState.PASSED
    )
