"""Error taxonomy for ngxdrift.

Every failure a run can end with is a DriftCheckError subclass.  The CLI
maps ``exit_code`` straight onto the process exit status; a clean run with
no drift is the only path that exits 0.
"""

from __future__ import annotations


class DriftCheckError(Exception):
    """Base class for all ngxdrift failures."""

    exit_code = 1


class ConfigurationError(DriftCheckError):
    """Bad command-line arguments or configuration values."""

    exit_code = 2


class ClusterAccessError(DriftCheckError):
    """Kubeconfig, context, credential or listing failure."""

    exit_code = 3


class WorkloadNotFoundError(ClusterAccessError):
    """The named Deployment or DaemonSet does not exist."""

    def __init__(self, kind: str, name: str, namespace: str) -> None:
        super().__init__(f'{kind} "{name}" not found in namespace "{namespace}"')
        self.kind = kind
        self.name = name
        self.namespace = namespace


class ContainerNotFoundError(DriftCheckError):
    """The requested container is absent, or the pod has no containers."""

    exit_code = 4

    def __init__(self, pod: str, container: str | None) -> None:
        if container:
            message = f'container "{container}" not found in pod {pod}'
        else:
            message = f"pod {pod} has no containers"
        super().__init__(message)
        self.pod = pod
        self.container = container


class RemoteCommandError(DriftCheckError):
    """The remote read wrote to stderr, or the exec stream itself failed."""

    exit_code = 5

    def __init__(self, pod: str, container: str, detail: str) -> None:
        super().__init__(f"{pod}/{container}: {detail}")
        self.pod = pod
        self.container = container
        self.detail = detail


class DriftDetectedError(DriftCheckError):
    """Two pods of the same workload carry different configuration."""

    exit_code = 1

    def __init__(self, pod_a: str, pod_b: str) -> None:
        super().__init__(f"{pod_a} has a different configuration than {pod_b}")
        self.pod_a = pod_a
        self.pod_b = pod_b
