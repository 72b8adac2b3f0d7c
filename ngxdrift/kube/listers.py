"""Resource listers: map a workload to the pods that belong to it.

Every supported workload kind implements the single-operation PodLister
contract.  New kinds (StatefulSet, ReplicaSet) plug in by subclassing
WorkloadPodLister and registering their aliases in ``_LISTER_KINDS``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar

import aiohttp
from kubernetes_asyncio import client as k8s_client
from kubernetes_asyncio.client.exceptions import ApiException

from ngxdrift.errors import ClusterAccessError, ConfigurationError, WorkloadNotFoundError
from ngxdrift.models.pods import PodIdentity
from ngxdrift.observability.logging import get_logger

_log = get_logger("kube.listers")


class PodLister(ABC):
    """Returns the current pods of one workload."""

    @abstractmethod
    async def list(self) -> list[PodIdentity]:
        """List the pods matching the workload's pod-template labels.

        Raises:
            WorkloadNotFoundError: the workload does not exist.
            ClusterAccessError:    any other retrieval failure.
        """


class WorkloadPodLister(PodLister):
    """Shared implementation for apps/v1 workloads with a pod template."""

    kind: ClassVar[str] = ""

    def __init__(self, api_client: Any, name: str, namespace: str) -> None:
        self._apps = k8s_client.AppsV1Api(api_client)
        self._core = k8s_client.CoreV1Api(api_client)
        self.name = name
        self.namespace = namespace
        self.workload: Any = None

    @abstractmethod
    async def _read_workload(self) -> Any:
        """Fetch the workload object from the API server."""

    async def resolve(self) -> Any:
        """Fetch and cache the workload; raise WorkloadNotFoundError if absent."""
        if self.workload is None:
            try:
                self.workload = await self._read_workload()
            except ApiException as exc:
                if exc.status == 404:
                    raise WorkloadNotFoundError(self.kind, self.name, self.namespace) from exc
                raise ClusterAccessError(f"reading {self.kind} {self.name}: {exc.reason}") from exc
            except aiohttp.ClientError as exc:
                raise ClusterAccessError(f"reading {self.kind} {self.name}: {exc}") from exc
            _log.debug("workload_resolved", kind=self.kind, name=self.name, namespace=self.namespace)
        return self.workload

    def label_selector(self) -> str:
        labels = (self.workload.spec.template.metadata.labels or {}) if self.workload else {}
        return selector_from_labels(labels)

    async def list(self) -> list[PodIdentity]:
        await self.resolve()
        selector = self.label_selector()
        try:
            pod_list = await self._core.list_namespaced_pod(self.namespace, label_selector=selector)
        except ApiException as exc:
            raise ClusterAccessError(f"listing pods for {self.kind} {self.name}: {exc.reason}") from exc
        except aiohttp.ClientError as exc:
            raise ClusterAccessError(f"listing pods for {self.kind} {self.name}: {exc}") from exc

        pods = [PodIdentity.from_v1_pod(item) for item in pod_list.items]
        _log.info("pods_listed", kind=self.kind, name=self.name, selector=selector, count=len(pods))
        return pods


class DeploymentPodLister(WorkloadPodLister):
    kind = "deployment"

    async def _read_workload(self) -> Any:
        return await self._apps.read_namespaced_deployment(self.name, self.namespace)


class DaemonSetPodLister(WorkloadPodLister):
    kind = "daemonset"

    async def _read_workload(self) -> Any:
        return await self._apps.read_namespaced_daemon_set(self.name, self.namespace)


_LISTER_KINDS: dict[str, type[WorkloadPodLister]] = {
    "deployment": DeploymentPodLister,
    "deploy": DeploymentPodLister,
    "daemonset": DaemonSetPodLister,
    "ds": DaemonSetPodLister,
}


def supported_kinds() -> list[str]:
    return sorted(_LISTER_KINDS)


def lister_class(kind: str) -> type[WorkloadPodLister]:
    """Map a kind or alias (case-insensitive) to its lister class."""
    lister_cls = _LISTER_KINDS.get(kind.lower())
    if lister_cls is None:
        raise ConfigurationError(f"unsupported resource: {kind} (expected one of {', '.join(supported_kinds())})")
    return lister_cls


def build_lister(kind: str, name: str, namespace: str, api_client: Any) -> WorkloadPodLister:
    return lister_class(kind)(api_client, name, namespace)


def selector_from_labels(labels: dict[str, str]) -> str:
    """Render an equality-based label selector, keys sorted for stable output."""
    return ",".join(f"{key}={labels[key]}" for key in sorted(labels))
