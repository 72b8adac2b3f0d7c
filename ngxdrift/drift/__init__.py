"""Drift-detection pipeline.

Submodules
----------
fetcher    -- ConfigFetcher: resolve the container and read the file remotely.
normalizer -- normalize(): strip full-line comments.
comparator -- compare(): textual equality across every pod.
pipeline   -- DriftPipeline: list -> fan-out fetch+normalize -> compare.
"""

from ngxdrift.drift.comparator import compare
from ngxdrift.drift.fetcher import ConfigFetcher, resolve_container
from ngxdrift.drift.normalizer import normalize
from ngxdrift.drift.pipeline import DriftPipeline

__all__ = ["ConfigFetcher", "DriftPipeline", "compare", "normalize", "resolve_container"]
