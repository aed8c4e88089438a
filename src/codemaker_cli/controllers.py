"""Controllers for codemaker CLI commands."""

from __future__ import annotations

import logging
import signal
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from codemaker_cli import __version__
from codemaker_cli.batch import BatchPolicy, BatchSummary, FileBatchWalker
from codemaker_cli.client import CodemakerHttpClient, JobClient
from codemaker_cli.config import Settings, resolve_api_key, write_api_key
from codemaker_cli.language import normalize_language, resolve_language, unit_test_suffix
from codemaker_cli.lifecycle import JobLifecycleEngine
from codemaker_cli.models import JobMode, JobRequest, ModifyPolicy

ClientFactory = Callable[[Settings, str], JobClient]


@dataclass(slots=True)
class GenerateSourceCommand:
    """CLI input for code and documentation generation."""

    files: tuple[str, ...]
    language: str | None = None
    replace: bool = False
    codepath: str | None = None


@dataclass(slots=True)
class GenerateUnitTestsCommand:
    """CLI input for unit test generation."""

    files: tuple[str, ...]
    language: str | None = None
    output_dir: Path | None = None


@dataclass(slots=True)
class MigrateSyntaxCommand:
    """CLI input for syntax migration."""

    files: tuple[str, ...]
    language: str | None = None
    language_version: str | None = None


@dataclass(slots=True)
class RefactorNamingCommand:
    """CLI input for local variable renaming."""

    files: tuple[str, ...]
    language: str | None = None


@dataclass(slots=True)
class ConfigureCommand:
    """CLI input for storing the API key."""

    api_key: str


def create_http_client(settings: Settings, api_key: str) -> JobClient:
    return CodemakerHttpClient(
        api_key=api_key,
        endpoint=settings.client.endpoint,
        timeout_seconds=settings.client.request_timeout_seconds,
        max_retries=settings.client.transport_retries,
    )


class CodemakerCliController:
    """Builds job requests per file and drives them through the lifecycle engine."""

    def __init__(
        self,
        *,
        client_factory: ClientFactory = create_http_client,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        logger: logging.Logger | None = None,
    ) -> None:
        self.client_factory = client_factory
        self.logger = logger or logging.getLogger(__name__)
        self._clock = clock
        self._sleep = sleep
        self._stop_requested = False

    def generate_code(self, command: GenerateSourceCommand) -> list[str]:
        return self._rewrite_files(
            files=command.files,
            policy=BatchPolicy.STRICT,
            label="Code generation",
            action="Generating code in",
            mode=JobMode.CODE,
            language=command.language,
            modify=ModifyPolicy.REPLACE if command.replace else ModifyPolicy.NONE,
            codepath=command.codepath or None,
        )

    def generate_docs(self, command: GenerateSourceCommand) -> list[str]:
        return self._rewrite_files(
            files=command.files,
            policy=BatchPolicy.STRICT,
            label="Documentation generation",
            action="Generating documentation in",
            mode=JobMode.DOCUMENT,
            language=command.language,
            modify=ModifyPolicy.REPLACE if command.replace else ModifyPolicy.NONE,
            codepath=command.codepath or None,
        )

    def migrate_syntax(self, command: MigrateSyntaxCommand) -> list[str]:
        return self._rewrite_files(
            files=command.files,
            policy=BatchPolicy.LENIENT,
            label="Syntax migration",
            action="Migrating syntax in",
            mode=JobMode.MIGRATE_SYNTAX,
            language=command.language,
            language_version=command.language_version or None,
        )

    def refactor_naming(self, command: RefactorNamingCommand) -> list[str]:
        return self._rewrite_files(
            files=command.files,
            policy=BatchPolicy.LENIENT,
            label="Naming refactor",
            action="Renaming local variables in",
            mode=JobMode.REFACTOR_NAMING,
            language=command.language,
        )

    def generate_unit_tests(self, command: GenerateUnitTestsCommand) -> list[str]:
        explicit_language = _explicit_language(command.language)

        def _visit(engine: JobLifecycleEngine, path: Path) -> None:
            language = explicit_language or resolve_language(path.suffix)
            suffix = unit_test_suffix(language)
            self.logger.info("Generating tests for file %s", path)
            source = path.read_text("utf-8")
            output = engine.run(
                JobRequest(mode=JobMode.UNIT_TEST, language=language, source=source),
            )
            target = unit_test_path(path, suffix=suffix, output_dir=command.output_dir)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(output.source, "utf-8")
            self.logger.info("Wrote tests to %s", target)

        summary = self._run_batch(files=command.files, policy=BatchPolicy.STRICT, visit=_visit)
        return [_summary_line("Unit test generation", summary)]

    def configure(self, command: ConfigureCommand) -> list[str]:
        settings = Settings.from_env()
        write_api_key(settings.config_path, command.api_key)
        return [f"API key saved to {settings.config_path}"]

    def version(self) -> list[str]:
        return [f"CodeMaker CLI version {__version__}"]

    def _rewrite_files(  # noqa: PLR0913
        self,
        *,
        files: tuple[str, ...],
        policy: BatchPolicy,
        label: str,
        action: str,
        mode: JobMode,
        language: str | None,
        modify: ModifyPolicy = ModifyPolicy.NONE,
        codepath: str | None = None,
        language_version: str | None = None,
    ) -> list[str]:
        explicit_language = _explicit_language(language)

        def _visit(engine: JobLifecycleEngine, path: Path) -> None:
            resolved = explicit_language or resolve_language(path.suffix)
            self.logger.info("%s file %s", action, path)
            source = path.read_text("utf-8")
            output = engine.run(
                JobRequest(
                    mode=mode,
                    language=resolved,
                    source=source,
                    modify=modify,
                    codepath=codepath,
                    language_version=language_version,
                ),
            )
            path.write_text(output.source, "utf-8")

        summary = self._run_batch(files=files, policy=policy, visit=_visit)
        return [_summary_line(label, summary)]

    def _run_batch(
        self,
        *,
        files: tuple[str, ...],
        policy: BatchPolicy,
        visit: Callable[[JobLifecycleEngine, Path], None],
    ) -> BatchSummary:
        settings = Settings.from_env()
        settings.validate()
        api_key = resolve_api_key(settings.config_path)
        walker = FileBatchWalker(policy=policy, logger=self.logger)

        with _client(self.client_factory, settings, api_key) as client, self._signal_handlers():
            engine = JobLifecycleEngine(
                client=client,
                backoff=settings.backoff,
                timeout_seconds=settings.process_timeout_seconds,
                logger=self.logger,
                clock=self._clock,
                sleep=self._sleep,
                stop_requested=lambda: self._stop_requested,
            )
            return walker.for_each(files, lambda path: visit(engine, path))

    @contextmanager
    def _signal_handlers(self) -> Iterator[None]:
        self._stop_requested = False
        if not hasattr(signal, "SIGINT"):
            yield
            return

        original_sigint = signal.getsignal(signal.SIGINT)
        original_sigterm = signal.getsignal(signal.SIGTERM)

        def _handler(signum: int, _: object | None) -> None:
            try:
                name = signal.Signals(signum).name
            except ValueError:
                name = str(signum)
            self.logger.warning("Received %s, no further jobs will be submitted", name)
            self._stop_requested = True

        installed = False
        try:
            signal.signal(signal.SIGINT, _handler)
            signal.signal(signal.SIGTERM, _handler)
            installed = True
        except ValueError:
            # Signal handlers can only be installed in main thread.
            pass
        try:
            yield
        finally:
            if installed:
                signal.signal(signal.SIGINT, original_sigint)
                signal.signal(signal.SIGTERM, original_sigterm)


def unit_test_path(source_path: Path, *, suffix: str, output_dir: Path | None = None) -> Path:
    """Return where tests generated for ``source_path`` are written."""

    directory = output_dir if output_dir is not None else source_path.parent
    return directory / f"{source_path.stem}{suffix}"


def _explicit_language(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return normalize_language(value)


def _summary_line(label: str, summary: BatchSummary) -> str:
    return (
        f"{label} summary: processed={summary.processed} "
        f"succeeded={summary.succeeded} failed={summary.failed}"
    )


@contextmanager
def _client(factory: ClientFactory, settings: Settings, api_key: str) -> Iterator[JobClient]:
    client = factory(settings, api_key)
    try:
        yield client
    finally:
        client.close()
