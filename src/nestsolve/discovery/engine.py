"""Concurrent, recursive candidate discovery.

Discovery Algorithm:
    1. Every source locator becomes a task at depth 0 on a bounded pool.
    2. A task normalizes its locator, opens it as a root and reads the
       first manifest found (primary name, then fallbacks).
    3. Each declared candidate is validated and inserted into the shared
       per-identity ``CandidateSet``.
    4. For each newly added candidate, nested archive references are
       resolved against its root, materialized once per source, and
       scheduled as child tasks at depth + 1.

Tasks form a fork-join tree: a task only finishes once its own work and
all of its children have finished. Workers never block waiting for
children; completion is counted instead. The whole phase is bounded by a
single wall-clock timeout and is all-or-nothing: any error, or running out
of time, fails discovery with every captured error attached.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path

from nestsolve.config import ResolverConfig
from nestsolve.core.candidates import (
    CandidateRecord,
    CandidateSet,
    Locator,
    is_valid_identity,
)
from nestsolve.discovery.filesystem import CandidateFilesystem, LocalFilesystem
from nestsolve.exceptions import DiscoveryError, ManifestNotFoundError, NestsolveError
from nestsolve.parsers import LATEST_SCHEMA_VERSION, ManifestParser, YamlManifestParser

logger = logging.getLogger(__name__)


class _Task:
    """One locator to process, plus the children it spawned."""

    def __init__(self, locator: Locator, depth: int, parent: _Task | None) -> None:
        self.locator = locator
        self.depth = depth
        self.parent = parent
        self.done = threading.Event()
        self._pending = 1
        self._lock = threading.Lock()

    def fork(self) -> None:
        with self._lock:
            self._pending += 1

    def join_one(self) -> None:
        """Mark own work or one child as finished."""
        with self._lock:
            self._pending -= 1
            finished = self._pending == 0
        if finished:
            self.done.set()
            if self.parent is not None:
                self.parent.join_one()


class _DiscoveryRun:
    """Shared state of one ``discover()`` call."""

    def __init__(self, executor: ThreadPoolExecutor) -> None:
        self.executor = executor
        self.candidates: dict[str, CandidateSet] = {}
        self.errors: list[BaseException] = []
        self._closed = False
        self._memo: dict[Locator, Future] = {}
        self._lock = threading.Lock()

    def candidate_set(self, identity: str) -> CandidateSet:
        with self._lock:
            cset = self.candidates.get(identity)
            if cset is None:
                cset = self.candidates[identity] = CandidateSet(identity)
            return cset

    def record_error(self, exc: BaseException) -> None:
        with self._lock:
            if not any(err is exc for err in self.errors):
                self.errors.append(exc)

    def submit(self, fn: Callable[[], None]) -> bool:
        with self._lock:
            if self._closed:
                return False
            self.executor.submit(fn)
            return True

    def close(self) -> None:
        with self._lock:
            self._closed = True

    def materialize_once(
        self, source: Locator, materialize: Callable[[Locator], Locator]
    ) -> Locator:
        """Materialize *source* once; concurrent callers share the result."""
        with self._lock:
            future = self._memo.get(source)
            owner = future is None
            if owner:
                future = self._memo[source] = Future()
        if owner:
            try:
                future.set_result(materialize(source))
            except BaseException as exc:
                future.set_exception(exc)
                raise
        return future.result()


class DiscoveryEngine:
    """Find candidates in sources and in the archives nested inside them.

    Args:
        parser: Manifest parser. Defaults to ``YamlManifestParser``.
        filesystem: Locator and storage operations. Defaults to
            ``LocalFilesystem``.
        config: Timeout, pool size, manifest names and archive suffixes.

    Usage::

        engine = DiscoveryEngine()
        candidates = engine.discover([Path("candidates/alpha.zip")])
        for identity, cset in candidates.items():
            print(identity, [str(r) for r in cset.to_selectable()])
    """

    def __init__(
        self,
        parser: ManifestParser | None = None,
        filesystem: CandidateFilesystem | None = None,
        config: ResolverConfig | None = None,
    ) -> None:
        self.config = config or ResolverConfig()
        self.parser = parser or YamlManifestParser(
            allow_unknown_version=self.config.allow_unknown_version
        )
        self.filesystem = filesystem or LocalFilesystem()

    def discover(self, sources: Iterable[Locator | Path | str]) -> dict[str, CandidateSet]:
        """Discover every candidate reachable from *sources*.

        Args:
            sources: Explicitly provided locations (depth 0).

        Returns:
            Candidate sets keyed by identity.

        Raises:
            DiscoveryError: If any task failed or the timeout expired. The
                ``errors`` attribute holds every captured exception.
        """
        executor = ThreadPoolExecutor(
            max_workers=self.config.worker_count,
            thread_name_prefix="nestsolve-discovery",
        )
        run = _DiscoveryRun(executor)
        deadline = time.monotonic() + self.config.discovery_timeout

        roots = [self._spawn(run, _as_locator(source), 0, None) for source in sources]

        timed_out = False
        for task in roots:
            if not task.done.wait(max(0.0, deadline - time.monotonic())):
                timed_out = True
                break

        run.close()
        # After a timeout, queued tasks are dropped and running ones finish alone.
        executor.shutdown(wait=not timed_out, cancel_futures=timed_out)

        if timed_out:
            raise DiscoveryError(
                f"Candidate discovery took too long (>{self.config.discovery_timeout}s)!",
                run.errors,
            )
        if run.errors:
            raise DiscoveryError("Candidate discovery failed!", run.errors)
        return dict(run.candidates)

    # -- Tasks ----------------------------------------------------------------

    def _spawn(
        self, run: _DiscoveryRun, locator: Locator, depth: int, parent: _Task | None
    ) -> _Task:
        task = _Task(locator, depth, parent)
        if parent is not None:
            parent.fork()
        if not run.submit(lambda: self._run_task(run, task)):
            task.join_one()
        return task

    def _run_task(self, run: _DiscoveryRun, task: _Task) -> None:
        try:
            self._process(run, task)
        except NestsolveError as exc:
            run.record_error(exc)
        except Exception as exc:
            error = DiscoveryError(f"Failed to process candidate at {task.locator}: {exc!r}")
            error.__cause__ = exc
            run.record_error(error)
        finally:
            task.join_one()

    def _process(self, run: _DiscoveryRun, task: _Task) -> None:
        fs = self.filesystem
        locator = fs.normalize(task.locator)
        logger.debug("Testing %s", locator)

        with fs.open_root(locator) as root:
            records = self._read_manifest(root, locator)

        for info in records:
            record = self._validate(info, locator).located(locator, task.depth)
            added = run.candidate_set(record.identity).add(record)
            if not added:
                logger.debug("%s already present as %s", locator, record)
                continue

            logger.debug("Adding %s as %s", locator, record)
            for nested in self._nested_archives(run, record):
                self._spawn(run, nested, task.depth + 1, task)

    def _read_manifest(self, root: object, locator: Locator) -> list[CandidateRecord]:
        for name in self.config.manifest_names:
            try:
                return self.parser.read(root, name)
            except ManifestNotFoundError:
                continue
        logger.debug("No manifest found at %s", locator)
        return []

    @staticmethod
    def _validate(record: CandidateRecord, locator: Locator) -> CandidateRecord:
        if not record.identity:
            raise DiscoveryError(f"Candidate at `{locator}` has no id")
        if not is_valid_identity(record.identity):
            raise DiscoveryError(
                f"Candidate id `{record.identity}` at `{locator}` does not match the requirements"
            )
        if record.schema_version < LATEST_SCHEMA_VERSION:
            logger.warning(
                "Candidate %s uses outdated schema version: %d < %d",
                record.identity, record.schema_version, LATEST_SCHEMA_VERSION,
            )
        return record

    def _nested_archives(self, run: _DiscoveryRun, record: CandidateRecord) -> list[Locator]:
        fs = self.filesystem
        suffixes = tuple(s.lower() for s in self.config.archive_suffixes)
        found: list[Locator] = []
        for ref in record.nested:
            source = fs.resolve_nested(record.origin, ref.path)
            if not ref.path.lower().endswith(suffixes):
                logger.debug("Skipping nested entry %s: not an archive", source)
                continue
            if not fs.exists(source) or fs.is_dir(source):
                logger.debug("Skipping nested entry %s: missing or a directory", source)
                continue
            logger.debug("Found nested archive %s in %s", source, record)
            found.append(run.materialize_once(source, fs.materialize))
        return found


def _as_locator(source: Locator | Path | str) -> Locator:
    if isinstance(source, Locator):
        return source
    return Locator(Path(source))
