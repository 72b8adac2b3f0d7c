"""Fetch results, drift verdicts and pipeline states."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from ngxdrift.errors import DriftCheckError, DriftDetectedError, RemoteCommandError

# pod name -> normalized configuration text
ConfigurationMap = dict[str, str]


class PipelineState(StrEnum):
    """States a drift-check run moves through.  All are transient per run."""

    IDLE = "idle"
    LISTING = "listing"
    FETCHING = "fetching"
    NORMALIZING = "normalizing"
    COMPARING = "comparing"
    DRIFT_DETECTED = "drift_detected"
    NO_DRIFT = "no_drift"
    FAILED = "failed"


@dataclass
class FetchResult:
    """Outcome of reading the configuration file from one pod.

    A transport error and a non-empty stderr are both failures; ``content``
    is only meaningful when ``ok`` is True.
    """

    pod: str
    container: str | None
    content: str = ""
    error: DriftCheckError | None = None
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None and not self.stderr

    def failure(self) -> DriftCheckError | None:
        """Return the error this result represents, or None on success."""
        if self.error is not None:
            return self.error
        if self.stderr:
            return RemoteCommandError(self.pod, self.container or "", self.stderr.strip())
        return None

    def raise_for_failure(self) -> None:
        failure = self.failure()
        if failure is not None:
            raise failure


@dataclass(frozen=True)
class DriftVerdict:
    """Result of comparing every pod's normalized configuration.

    ``pair`` names the first differing pair found; it is not an exhaustive diff.
    """

    pods_checked: int
    pair: tuple[str, str] | None = None

    @property
    def drifted(self) -> bool:
        return self.pair is not None

    def raise_for_drift(self) -> None:
        if self.pair is not None:
            raise DriftDetectedError(*self.pair)

    def describe(self) -> str:
        if self.pair is None:
            return "no configuration drift detected."
        return str(DriftDetectedError(*self.pair))
