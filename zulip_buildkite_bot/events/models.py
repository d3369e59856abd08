"""Typed Buildkite events consumed by the router and formatter."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class MalformedPayload(ValueError):
    """A recognized event kind is missing required fields or has the wrong shape."""


class BuildState(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    CANCELED = "canceled"
    UNKNOWN = "unknown"

    @classmethod
    def normalize(cls, value: str | None) -> "BuildState":
        """Map a provider state string onto the closed set; never raises."""
        if not value:
            return cls.UNKNOWN
        value = value.strip().lower()
        if value == "cancelled":
            return cls.CANCELED
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class BuildStarted:
    pipeline: str
    number: str
    commit_message: str | None = None
    build_url: str | None = None
    commit: str | None = None
    repository_url: str | None = None  # GitHub web URL, when derivable


@dataclass(frozen=True)
class BuildFinished:
    pipeline: str
    number: str
    state: BuildState = BuildState.UNKNOWN
    build_url: str | None = None


@dataclass(frozen=True)
class JobFinished:
    pipeline: str
    number: str
    job_name: str
    state: BuildState = BuildState.UNKNOWN
    job_url: str | None = None


Event = Union[BuildStarted, BuildFinished, JobFinished]
