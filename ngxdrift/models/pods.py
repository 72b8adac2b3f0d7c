"""Pod identity and container selection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PodIdentity:
    """A running pod as returned by a lister.

    Immutable: the pod list of a run is created once and never mutated.
    ``containers`` keeps the order of ``spec.containers``.
    """

    name: str
    namespace: str
    containers: tuple[str, ...] = ()

    @classmethod
    def from_v1_pod(cls, pod: Any) -> PodIdentity:
        """Build from a kubernetes-asyncio ``V1Pod``."""
        spec_containers = (pod.spec.containers if pod.spec else None) or []
        return cls(
            name=pod.metadata.name,
            namespace=pod.metadata.namespace,
            containers=tuple(c.name for c in spec_containers),
        )


@dataclass(frozen=True)
class ContainerSelector:
    """An explicit container name, or ``None`` for the pod's first container."""

    name: str | None = None

    @property
    def explicit(self) -> bool:
        return bool(self.name)

    def resolve(self, pod: PodIdentity) -> str | None:
        """Return the container name to exec into, or None if there is no match."""
        if self.explicit:
            return self.name if self.name in pod.containers else None
        return pod.containers[0] if pod.containers else None

    def __str__(self) -> str:
        return self.name or "<first>"
