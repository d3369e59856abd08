"""Synthetic Buildkite webhooks for exercising a running server end to end."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx

from zulip_buildkite_bot.utils.logging import get_logger

log = get_logger(__name__)

EVENT_TYPES = (
    "build-started",
    "build-passed",
    "build-failed",
    "build-canceled",
    "job-passed",
    "job-failed",
    "all",
    "scenario",
    "lang-routing",
    "keyboard-routing",
)

DEFAULT_PIPELINE = "My Awesome Pipeline"
DEFAULT_SLUG = "my-awesome-pipeline"

_FINISHED_DETAILS = {
    "passed": ("b2c3d4e5f6789012345678901234567890abcdef", "Fix critical security vulnerability", "Bob Tester"),
    "failed": ("c3d4e5f6789012345678901234567890abcdef12", "Update dependencies to latest versions", "Charlie Developer"),
    "canceled": ("d4e5f6789012345678901234567890abcdef1234", "Refactor database connection handling", "Dana Engineer"),
}

_JOB_DETAILS = {
    "passed": ("job-tests-123", "Unit Tests", "npm test", 0),
    "failed": ("job-lint-456", "Linting", "npm run lint", 1),
}


# ---------------------------------------------------------------------------
# Payload builders
# ---------------------------------------------------------------------------

def _pipeline(name: str = DEFAULT_PIPELINE, slug: str = DEFAULT_SLUG) -> dict[str, Any]:
    return {
        "id": f"{slug}-id",
        "name": name,
        "slug": slug,
        "url": f"https://api.buildkite.com/v2/organizations/my-org/pipelines/{slug}",
        "web_url": f"https://buildkite.com/my-org/{slug}",
        "repository": "git@github.com:my-org/my-repo.git",
        "provider": {
            "id": "github",
            "settings": {"repository": "my-org/my-repo"},
            "repository_url": "https://github.com/my-org/my-repo",
        },
    }


def _build(
    build_number: str,
    *,
    slug: str,
    state: str,
    message: str,
    commit: str,
    author: str,
    branch: str = "main",
) -> dict[str, Any]:
    return {
        "id": f"{slug}-build-{build_number}",
        "number": build_number,
        "state": state,
        "message": message,
        "commit": commit,
        "branch": branch,
        "url": f"https://api.buildkite.com/v2/organizations/my-org/pipelines/{slug}/builds/{build_number}",
        "web_url": f"https://buildkite.com/my-org/{slug}/builds/{build_number}",
        "author": {
            "name": author,
            "email": f"{author.lower().replace(' ', '.')}@example.com",
        },
    }


def build_started(
    build_number: str,
    *,
    pipeline: str = DEFAULT_PIPELINE,
    slug: str = DEFAULT_SLUG,
    message: str = "Add new feature for user authentication",
) -> dict[str, Any]:
    return {
        "event": "build.started",
        "build": _build(
            build_number,
            slug=slug,
            state="running",
            message=message,
            commit="a1b2c3d4e5f6789012345678901234567890abcd",
            author="Alice Developer",
            branch="feature/auth-improvements",
        ),
        "pipeline": _pipeline(pipeline, slug),
    }


def build_finished(state: str, build_number: str) -> dict[str, Any]:
    commit, message, author = _FINISHED_DETAILS.get(
        state, ("e5f6789012345678901234567890abcdef123456", "Unknown build message", "Unknown Author")
    )
    return {
        "event": "build.finished",
        "build": _build(
            build_number,
            slug=DEFAULT_SLUG,
            state=state,
            message=message,
            commit=commit,
            author=author,
        ),
        "pipeline": _pipeline(),
    }


def job_finished(state: str, build_number: str) -> dict[str, Any]:
    job_id, name, command, exit_status = _JOB_DETAILS[state]
    build = _build(
        build_number,
        slug=DEFAULT_SLUG,
        state="running",
        message="Add new feature for user authentication",
        commit="a1b2c3d4e5f6789012345678901234567890abcd",
        author="Alice Developer",
    )
    return {
        "event": "job.finished",
        "job": {
            "id": job_id,
            "name": name,
            "command": command,
            "state": state,
            "exit_status": exit_status,
            "web_url": f"{build['web_url']}#{job_id}",
        },
        "build": build,
        "pipeline": _pipeline(),
    }


def build_events(event_type: str, build_number: str) -> list[dict[str, Any]]:
    """Payloads for one ``--event-type`` selection, in sending order."""
    if event_type == "build-started":
        return [build_started(build_number)]
    if event_type in ("build-passed", "build-failed", "build-canceled"):
        return [build_finished(event_type.removeprefix("build-"), build_number)]
    if event_type in ("job-passed", "job-failed"):
        return [job_finished(event_type.removeprefix("job-"), build_number)]
    if event_type in ("all", "scenario"):
        outcome = "passed" if event_type == "all" else "failed"
        return [
            build_started(build_number),
            job_finished("passed", build_number),
            job_finished("failed", build_number),
            build_finished(outcome, build_number),
        ]
    if event_type == "lang-routing":
        return [build_started(
            build_number,
            pipeline="lang-sami-x-private",
            slug="lang-sami-x-private",
            message="Update language pack translations",
        )]
    if event_type == "keyboard-routing":
        return [build_started(
            build_number,
            pipeline="keyboard-finnish-public",
            slug="keyboard-finnish-public",
            message="Update keyboard layout definitions",
        )]

    raise ValueError(
        f"Unknown event type: {event_type}. Valid types: {', '.join(EVENT_TYPES)}"
    )


# ---------------------------------------------------------------------------
# Sending
# ---------------------------------------------------------------------------

async def send_events(
    server_url: str,
    events: list[dict[str, Any]],
    *,
    delay: float = 2.0,
    webhook_path: str = "/webhook",
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    """POST each payload in order and return how many were accepted."""
    url = f"{server_url.rstrip('/')}{webhook_path}"
    accepted = 0

    async with httpx.AsyncClient(timeout=30, transport=transport) as client:
        for i, event in enumerate(events):
            log.info("test_event_sending", index=i + 1, total=len(events), kind=event["event"])
            try:
                resp = await client.post(url, json=event)
            except httpx.HTTPError as exc:
                log.error("test_event_failed", kind=event["event"], error=str(exc))
            else:
                if resp.is_success:
                    accepted += 1
                    log.info("test_event_sent", kind=event["event"], status=resp.status_code)
                else:
                    log.error(
                        "test_event_failed",
                        kind=event["event"],
                        status=resp.status_code,
                        body=resp.text[:200],
                    )

            if i < len(events) - 1 and delay > 0:
                log.info("test_event_waiting", seconds=delay)
                await asyncio.sleep(delay)

    log.info("test_events_done", accepted=accepted, total=len(events))
    return accepted
