"""Buildkite webhook wire format and decoding into typed events.

The provider sends one JSON shape for every event kind, with the ``event``
string as discriminator and optional ``build``, ``job`` and ``pipeline``
objects.  The models below validate that shape; ``decode_event`` then checks
the per-kind required fields and produces one of the frozen event variants.
"""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from zulip_buildkite_bot.events.models import (
    BuildFinished,
    BuildStarted,
    BuildState,
    Event,
    JobFinished,
    MalformedPayload,
)

BUILD_STARTED = "build.started"
BUILD_FINISHED_KINDS = frozenset({"build.finished", "build.passed", "build.failed"})
JOB_FINISHED = "job.finished"

RECOGNIZED_KINDS = frozenset({BUILD_STARTED, JOB_FINISHED}) | BUILD_FINISHED_KINDS

MAX_COMMAND_NAME = 40


# ---------------------------------------------------------------------------
# Wire models
# ---------------------------------------------------------------------------

class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class ProviderSettingsPayload(_WireModel):
    repository: str | None = None


class ProviderPayload(_WireModel):
    id: str | None = None
    settings: ProviderSettingsPayload | None = None
    repository_url: str | None = None


class PipelinePayload(_WireModel):
    id: str | None = None
    name: str | None = None
    slug: str | None = None
    web_url: str | None = None
    repository: str | None = None
    provider: ProviderPayload | None = None


class AuthorPayload(_WireModel):
    name: str | None = None
    email: str | None = None


class BuildPayload(_WireModel):
    id: str | None = None
    number: str | None = None
    state: str | None = None
    message: str | None = None
    commit: str | None = None
    branch: str | None = None
    web_url: str | None = None
    author: AuthorPayload | None = None

    @field_validator("number", mode="before")
    @classmethod
    def _number_as_token(cls, value: Any) -> Any:
        # Build numbers are opaque tokens; integers arrive from the real API.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class JobPayload(_WireModel):
    id: str | None = None
    name: str | None = None
    command: str | None = None
    state: str | None = None
    exit_status: int | None = None
    web_url: str | None = None


class BuildkitePayload(_WireModel):
    event: str
    build: BuildPayload | None = None
    job: JobPayload | None = None
    pipeline: PipelinePayload | None = None


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------

def github_repository_url(pipeline: PipelinePayload | None) -> str | None:
    """Best-effort GitHub web URL for a pipeline's repository."""
    if pipeline is None:
        return None

    provider = pipeline.provider
    if provider is not None:
        if provider.repository_url:
            return provider.repository_url.removesuffix(".git")
        if provider.settings is not None and provider.settings.repository:
            return f"https://github.com/{provider.settings.repository}"

    repository = pipeline.repository
    if repository:
        if repository.startswith("git@github.com:"):
            repo = repository.removeprefix("git@github.com:").removesuffix(".git")
            return f"https://github.com/{repo}"
        if repository.startswith("https://github.com/"):
            return repository.removesuffix(".git")

    return None


def job_display_name(job: JobPayload) -> str:
    """Job name, else the first line of its command, else a placeholder."""
    if job.name and job.name.strip():
        return job.name

    if job.command:
        # Only "\n" ends a line; other Unicode breaks stay in the name
        first_line = job.command.split("\n", 1)[0].removesuffix("\r")
        if first_line.strip():
            if len(first_line) > MAX_COMMAND_NAME:
                return f"{first_line[:MAX_COMMAND_NAME - 3]}..."
            return first_line

    return "unnamed job"


def job_state(job: JobPayload) -> BuildState:
    state = BuildState.normalize(job.state)
    if state is BuildState.UNKNOWN and job.exit_status is not None:
        return BuildState.PASSED if job.exit_status == 0 else BuildState.FAILED
    return state


def _build_url(build: BuildPayload, pipeline: PipelinePayload, number: str) -> str | None:
    if build.web_url:
        return build.web_url
    if pipeline.web_url:
        return f"{pipeline.web_url.rstrip('/')}/builds/{number}"
    return None


def _describe(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    )


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

def decode_event(payload: Mapping[str, Any]) -> Event | None:
    """Decode a webhook body into a typed event.

    Returns None for event kinds this bot does not forward.  Raises
    MalformedPayload when the discriminator is missing, or when a recognized
    kind lacks its required fields.
    """
    kind = payload.get("event") if isinstance(payload, Mapping) else None
    if not isinstance(kind, str) or not kind.strip():
        raise MalformedPayload("missing 'event' field")

    if kind not in RECOGNIZED_KINDS:
        return None

    try:
        wire = BuildkitePayload.model_validate(payload)
    except ValidationError as exc:
        raise MalformedPayload(f"invalid {kind} payload: {_describe(exc)}") from exc

    pipeline = wire.pipeline
    if pipeline is None or not (pipeline.name and pipeline.name.strip()):
        raise MalformedPayload(f"{kind} payload is missing pipeline.name")

    build = wire.build
    if build is None or not (build.number and build.number.strip()):
        raise MalformedPayload(f"{kind} payload is missing build.number")

    number = build.number.strip()

    if kind == BUILD_STARTED:
        return BuildStarted(
            pipeline=pipeline.name,
            number=number,
            commit_message=build.message,
            build_url=_build_url(build, pipeline, number),
            commit=build.commit,
            repository_url=github_repository_url(pipeline),
        )

    if kind in BUILD_FINISHED_KINDS:
        state = BuildState.normalize(build.state)
        if state is BuildState.UNKNOWN and kind != "build.finished":
            # build.passed / build.failed carry their outcome in the kind
            state = BuildState.normalize(kind.removeprefix("build."))
        return BuildFinished(
            pipeline=pipeline.name,
            number=number,
            state=state,
            build_url=_build_url(build, pipeline, number),
        )

    job = wire.job
    if job is None:
        raise MalformedPayload(f"{kind} payload is missing job")

    return JobFinished(
        pipeline=pipeline.name,
        number=number,
        job_name=job_display_name(job),
        state=job_state(job),
        job_url=job.web_url,
    )
