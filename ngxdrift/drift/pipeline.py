"""Pipeline orchestrator: list pods, fetch and normalize concurrently, compare.

State machine (per run, never resumed)::

    IDLE -> LISTING -> FETCHING -> NORMALIZING -> COMPARING
         -> NO_DRIFT | DRIFT_DETECTED | FAILED

One task per pod, no concurrency cap.  The orchestrator joins every task
before deciding anything: a failing pod never cancels its siblings, and the
comparator only ever sees a fully populated ConfigurationMap.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Callable
from pathlib import Path

import structlog

from ngxdrift.drift.comparator import compare
from ngxdrift.drift.fetcher import ConfigFetcher
from ngxdrift.drift.normalizer import normalize
from ngxdrift.errors import ConfigurationError, DriftCheckError
from ngxdrift.kube.listers import PodLister
from ngxdrift.models.drift import ConfigurationMap, DriftVerdict, PipelineState
from ngxdrift.models.pods import ContainerSelector, PodIdentity
from ngxdrift.observability.logging import get_logger

_log = get_logger("drift.pipeline")

ProgressFn = Callable[[str], None]


def _no_progress(_: str) -> None:
    return None


class DriftPipeline:
    """Runs one drift check over the pods of a workload.

    Args:
        lister:   Source of the pods to check.
        fetcher:  Reads the configuration file out of one pod.
        selector: Container to read from in every pod.
        progress: Receives human-readable progress lines.
        dump_dir: When set, each pod's raw configuration is written to
                  ``<dump_dir>/<pod>.conf`` before comparison.
    """

    def __init__(
        self,
        lister: PodLister,
        fetcher: ConfigFetcher,
        selector: ContainerSelector | None = None,
        progress: ProgressFn | None = None,
        dump_dir: str | Path | None = None,
    ) -> None:
        self._lister = lister
        self._fetcher = fetcher
        self._selector = selector or ContainerSelector()
        self._progress = progress or _no_progress
        self._dump_dir = Path(dump_dir) if dump_dir else None
        self._fetches_pending = 0
        self._failures: list[DriftCheckError] = []
        self.state = PipelineState.IDLE

    async def run(self) -> DriftVerdict:
        """Execute the run and return the verdict.

        Raises:
            DriftCheckError: the first failure observed while listing or
                fetching.  Comparison is skipped in that case.
        """
        with structlog.contextvars.bound_contextvars(pipeline_run_id=uuid.uuid4().hex[:12]):
            try:
                return await self._run()
            except BaseException:
                self._transition(PipelineState.FAILED)
                raise

    async def _run(self) -> DriftVerdict:
        self._transition(PipelineState.LISTING)
        pods = await self._lister.list()

        configs = await self._collect(pods)

        self._transition(PipelineState.COMPARING)
        self._progress("checking configuration drift...")
        verdict = compare(configs)

        self._transition(PipelineState.DRIFT_DETECTED if verdict.drifted else PipelineState.NO_DRIFT)
        _log.info("pipeline_finished", pods_checked=verdict.pods_checked, drifted=verdict.drifted)
        return verdict

    async def _collect(self, pods: list[PodIdentity]) -> ConfigurationMap:
        """Fan out one fetch+normalize task per pod and join them all."""
        self._transition(PipelineState.FETCHING)
        self._progress("downloading configuration...")

        slots: list[str | None] = [None] * len(pods)
        self._failures = []
        self._fetches_pending = len(pods)
        if not pods:
            self._enter_normalizing()

        outcomes = await asyncio.gather(
            *(self._fetch_and_normalize(index, pod, slots) for index, pod in enumerate(pods)),
            return_exceptions=True,
        )

        if self._failures:
            first = self._failures[0]
            _log.error("pipeline_failed", error=str(first), failed_pods=len(self._failures), pods=len(pods))
            raise first
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome

        return {pod.name: config for pod, config in zip(pods, slots, strict=True) if config is not None}

    async def _fetch_and_normalize(self, index: int, pod: PodIdentity, slots: list[str | None]) -> None:
        result = await self._fetcher.fetch(pod, self._selector)

        failure = result.failure()
        if failure is not None:
            self._failures.append(failure)
        self._fetches_pending -= 1
        if self._fetches_pending == 0:
            self._enter_normalizing()
        if failure is not None:
            return

        if self._dump_dir is not None:
            try:
                _dump(self._dump_dir, pod, result.content)
            except ConfigurationError as exc:
                self._failures.append(exc)
                return
        slots[index] = normalize(result.content)

    def _enter_normalizing(self) -> None:
        self._transition(PipelineState.NORMALIZING)
        if not self._failures:
            self._progress("formatting nginx configuration files to avoid false positives...")

    def _transition(self, state: PipelineState) -> None:
        _log.debug("pipeline_state", previous=self.state.value, state=state.value)
        self.state = state


def _dump(dump_dir: Path, pod: PodIdentity, content: str) -> None:
    """Write one pod's raw configuration to ``<dump_dir>/<pod>.conf``."""
    target = dump_dir / f"{pod.name}.conf"
    try:
        dump_dir.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"cannot write {target}: {exc}") from exc
    _log.debug("configuration_dumped", pod=pod.name, path=str(target))
