"""Core data structures for ngxdrift."""

from ngxdrift.models.config import DriftCheckConfig, LogConfig
from ngxdrift.models.drift import (
    ConfigurationMap,
    DriftVerdict,
    FetchResult,
    PipelineState,
)
from ngxdrift.models.pods import ContainerSelector, PodIdentity

__all__ = [
    "ConfigurationMap",
    "ContainerSelector",
    "DriftCheckConfig",
    "DriftVerdict",
    "FetchResult",
    "LogConfig",
    "PipelineState",
    "PodIdentity",
]
