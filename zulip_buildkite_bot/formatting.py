"""Zulip message rendering for Buildkite events."""

from __future__ import annotations

from zulip_buildkite_bot.events.models import (
    BuildFinished,
    BuildStarted,
    BuildState,
    Event,
    JobFinished,
)

STARTED_EMOJI = "🔄"

STATUS_MARKERS: dict[BuildState, tuple[str, str]] = {
    BuildState.PASSED: ("✅", "passed"),
    BuildState.FAILED: ("❌", "failed"),
    BuildState.CANCELED: ("🚫", "canceled"),
    BuildState.UNKNOWN: ("❓", "finished"),
}

SHORT_SHA_LENGTH = 7


def link(text: str, url: str | None) -> str:
    """Zulip markdown link, or the bare text when there is nowhere to point."""
    if not url:
        return text
    return f"[{text}]({url})"


def thread_key(pipeline: str, number: str) -> str:
    """Topic shared by every message about one build."""
    return f"{pipeline} - Build #{number}"


def _first_line(message: str | None) -> str:
    if not message:
        return ""
    return message.split("\n", 1)[0].rstrip()


def _commit_link(event: BuildStarted) -> str:
    if not event.commit or not event.repository_url:
        return ""
    short_sha = event.commit[:SHORT_SHA_LENGTH]
    return f" ({link(short_sha, f'{event.repository_url}/commit/{event.commit}')})"


def _format_build_started(event: BuildStarted) -> str:
    body = f"{STARTED_EMOJI} Build {link(f'#{event.number}', event.build_url)} started"
    summary = _first_line(event.commit_message)
    if summary:
        body += f"\n> {summary}{_commit_link(event)}"
    return body


def _format_build_finished(event: BuildFinished) -> str:
    emoji, verb = STATUS_MARKERS[event.state]
    return f"{emoji} Build {link(f'#{event.number}', event.build_url)} {verb}"


def _format_job_finished(event: JobFinished) -> str:
    emoji, verb = STATUS_MARKERS[event.state]
    name = f"'{event.job_name}'"
    return f"{emoji} Job {link(name, event.job_url)} {verb}"


def format_event(event: Event) -> tuple[str, str]:
    """Render an event as ``(topic, content)``.

    Pure and deterministic: equal events always produce identical output.
    """
    topic = thread_key(event.pipeline, event.number)

    if isinstance(event, BuildStarted):
        return topic, _format_build_started(event)
    if isinstance(event, BuildFinished):
        return topic, _format_build_finished(event)
    if isinstance(event, JobFinished):
        return topic, _format_job_finished(event)

    raise TypeError(f"Unsupported event type: {type(event).__name__}")
