"""Remote retrieval of a configuration file from one pod."""

from __future__ import annotations

import asyncio
import contextlib
from typing import Protocol

from ngxdrift.errors import ContainerNotFoundError, RemoteCommandError
from ngxdrift.kube.executor import ExecResult
from ngxdrift.models.config import DEFAULT_CONFIG_PATH
from ngxdrift.models.drift import FetchResult
from ngxdrift.models.pods import ContainerSelector, PodIdentity
from ngxdrift.observability.logging import get_logger

_log = get_logger("drift.fetcher")


class CommandExecutor(Protocol):
    async def run(self, pod: PodIdentity, container: str, command: list[str]) -> ExecResult: ...


def resolve_container(pod: PodIdentity, selector: ContainerSelector) -> str:
    """Pick the container to read from.

    An explicit name must be present in the pod; otherwise the first
    container in spec order is used.

    Raises:
        ContainerNotFoundError: no matching container, or no containers at all.
    """
    container = selector.resolve(pod)
    if container is None:
        raise ContainerNotFoundError(pod.name, selector.name)
    return container


class ConfigFetcher:
    """Reads a file out of a container with ``cat``.

    Args:
        executor: Remote command transport (PodExecutor in production).
        path:     Absolute path of the file inside the container.
        timeout:  Per-fetch deadline in seconds; 0 disables it.

    No retries: a single failed attempt is reported as-is.
    """

    def __init__(self, executor: CommandExecutor, path: str = DEFAULT_CONFIG_PATH, timeout: float = 0) -> None:
        self._executor = executor
        self._path = path
        self._timeout = timeout

    async def fetch(self, pod: PodIdentity, selector: ContainerSelector) -> FetchResult:
        """Fetch the file; failures are returned inside the FetchResult, not raised."""
        try:
            container = resolve_container(pod, selector)
        except ContainerNotFoundError as exc:
            _log.warning("container_not_found", pod=pod.name, container=str(selector))
            return FetchResult(pod=pod.name, container=selector.name, error=exc)

        deadline = asyncio.timeout(self._timeout) if self._timeout else contextlib.nullcontext()
        try:
            async with deadline:
                output = await self._executor.run(pod, container, ["cat", self._path])
        except RemoteCommandError as exc:
            _log.warning("fetch_failed", pod=pod.name, container=container, error=exc.detail)
            return FetchResult(pod=pod.name, container=container, error=exc)
        except TimeoutError:
            _log.warning("fetch_timed_out", pod=pod.name, container=container, timeout=self._timeout)
            exc = RemoteCommandError(pod.name, container, f"reading {self._path} timed out after {self._timeout}s")
            return FetchResult(pod=pod.name, container=container, error=exc)

        if output.stderr:
            _log.warning("fetch_stderr", pod=pod.name, container=container, stderr=output.stderr[:300])
        else:
            _log.debug("fetch_done", pod=pod.name, container=container, length=len(output.stdout))
        return FetchResult(pod=pod.name, container=container, content=output.stdout, stderr=output.stderr)
