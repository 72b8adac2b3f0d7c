"""Shared fixtures for ngxdrift integration tests.

Provides a fake pod lister and a fake exec transport so the full drift
pipeline (list -> fetch -> normalize -> compare) runs without a cluster.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import pytest

from ngxdrift.drift.fetcher import ConfigFetcher
from ngxdrift.drift.pipeline import DriftPipeline
from ngxdrift.errors import RemoteCommandError
from ngxdrift.kube.executor import ExecResult
from ngxdrift.kube.listers import PodLister
from ngxdrift.models.pods import ContainerSelector, PodIdentity

# ---------------------------------------------------------------------------
# Canned nginx.conf bodies
# ---------------------------------------------------------------------------

NGINX_CONF = """\
# Configuration checksum: 1234567890
# setup custom paths that do not require root access
pid /tmp/nginx/nginx.pid;

daemon off;
worker_processes 4;

events {
\tmulti_accept on;
\tworker_connections 16384;
}

http {
\t# generated at Tue
\tsendfile on;
\tkeepalive_timeout 75s;
}
"""


def conf_with_timestamp(stamp: str) -> str:
    """NGINX_CONF with a different render time in its comment."""
    return NGINX_CONF.replace("# generated at Tue", f"# generated at {stamp}")


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeLister(PodLister):
    def __init__(self, pods: list[PodIdentity]) -> None:
        self.pods = pods
        self.calls = 0

    async def list(self) -> list[PodIdentity]:
        self.calls += 1
        return list(self.pods)


class FakeExecutor:
    """Serves per-pod outputs; a pod mapped to an exception raises it.

    ``delays`` lets a test control completion order, and ``completed``
    records the pods whose command finished.
    """

    def __init__(
        self,
        outputs: dict[str, str | ExecResult | Exception],
        delays: dict[str, float] | None = None,
    ) -> None:
        self.outputs = outputs
        self.delays = delays or {}
        self.calls: list[tuple[str, str, list[str]]] = []
        self.completed: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def run(self, pod: PodIdentity, container: str, command: list[str]) -> ExecResult:
        self.calls.append((pod.name, container, command))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(pod.name, 0))
        finally:
            self.in_flight -= 1
        self.completed.append(pod.name)
        output = self.outputs[pod.name]
        if isinstance(output, Exception):
            raise output
        if isinstance(output, ExecResult):
            return output
        return ExecResult(stdout=output, stderr="")


def make_pod(name: str, containers: tuple[str, ...] = ("controller",), namespace: str = "ingress") -> PodIdentity:
    return PodIdentity(name=name, namespace=namespace, containers=containers)


def terminated(pod: str) -> RemoteCommandError:
    return RemoteCommandError(pod, "controller", "exec stream failed: pod terminated")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def progress_lines() -> list[str]:
    return []


@pytest.fixture()
def make_pipeline(progress_lines: list[str]) -> Callable[..., tuple[DriftPipeline, FakeLister, FakeExecutor]]:
    """Build a pipeline over fake pods: ``make_pipeline({"pod": conf, ...})``."""

    def _factory(
        outputs: dict[str, str | ExecResult | Exception],
        pods: list[PodIdentity] | None = None,
        delays: dict[str, float] | None = None,
        container: str | None = None,
        dump_dir: str | None = None,
        timeout: float = 0,
    ) -> tuple[DriftPipeline, FakeLister, FakeExecutor]:
        lister = FakeLister(pods if pods is not None else [make_pod(name) for name in outputs])
        executor = FakeExecutor(outputs, delays)
        pipeline = DriftPipeline(
            lister,
            ConfigFetcher(executor, timeout=timeout),
            ContainerSelector(container),
            progress=progress_lines.append,
            dump_dir=dump_dir,
        )
        return pipeline, lister, executor

    return _factory
