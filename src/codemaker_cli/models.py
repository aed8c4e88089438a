"""Domain models for processing jobs."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class JobMode(str, Enum):
    """Kind of source transformation requested from the service."""

    CODE = "CODE"
    DOCUMENT = "DOCUMENT"
    UNIT_TEST = "UNIT_TEST"
    MIGRATE_SYNTAX = "MIGRATE_SYNTAX"
    REFACTOR_NAMING = "REFACTOR_NAMING"


class ModifyPolicy(str, Enum):
    """Whether existing code or docs in the source may be replaced."""

    NONE = "NONE"
    REPLACE = "REPLACE"


class JobStatus(str, Enum):
    """Service-side job lifecycle states."""

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED_OUT"


@dataclass(frozen=True, slots=True)
class JobRequest:
    """One unit of work for a single source file."""

    mode: JobMode
    language: str
    source: str
    modify: ModifyPolicy = ModifyPolicy.NONE
    codepath: str | None = None
    language_version: str | None = None


@dataclass(frozen=True, slots=True)
class JobHandle:
    """Identifier returned by the service on submission."""

    job_id: str


@dataclass(frozen=True, slots=True)
class JobOutput:
    """Source text produced by a completed job."""

    source: str
