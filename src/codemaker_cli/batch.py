"""Expand file arguments and apply an operation to each file."""

from __future__ import annotations

import glob
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from codemaker_cli.errors import CodemakerError, JobCancelledError

_GLOB_MAGIC = ("*", "?", "[")


class BatchPolicy(str, Enum):
    """How a failure on one file affects the rest of the batch."""

    STRICT = "strict"
    LENIENT = "lenient"


@dataclass(slots=True)
class BatchSummary:
    """Per-batch counters for CLI reporting."""

    processed: int = 0
    succeeded: int = 0
    failures: list[tuple[Path, Exception]] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)


def expand_inputs(inputs: Iterable[str], *, logger: logging.Logger | None = None) -> list[Path]:
    """Resolve paths and glob patterns into an ordered list of unique paths."""

    log = logger or logging.getLogger(__name__)
    paths: list[Path] = []
    seen: set[Path] = set()
    for value in inputs:
        if any(marker in value for marker in _GLOB_MAGIC):
            matches = sorted(glob.glob(value, recursive=True))
            if not matches:
                log.warning("No files match %s", value)
            candidates = [Path(match) for match in matches]
        else:
            candidates = [Path(value)]
        for path in candidates:
            if path in seen:
                continue
            seen.add(path)
            paths.append(path)
    return paths


class FileBatchWalker:
    """Visits each input file once, in order, under an explicit failure policy."""

    def __init__(self, *, policy: BatchPolicy, logger: logging.Logger | None = None) -> None:
        self.policy = policy
        self.logger = logger or logging.getLogger(__name__)

    def for_each(
        self,
        inputs: Iterable[str],
        operation: Callable[[Path], None],
    ) -> BatchSummary:
        summary = BatchSummary()
        for path in expand_inputs(inputs, logger=self.logger):
            summary.processed += 1
            try:
                operation(path)
            except JobCancelledError:
                self.logger.warning("Cancelled while processing %s", path)
                raise
            except (CodemakerError, OSError, UnicodeError) as error:
                summary.failures.append((path, error))
                if self.policy is BatchPolicy.STRICT:
                    # The caller reports the error it receives.
                    self.logger.debug("Aborting batch at %s: %s", path, error)
                    raise
                self.logger.error("Failed to process %s: %s", path, error)
                continue
            summary.succeeded += 1
        return summary
