from .cache import CacheKeyDeriver, CacheStore
from .dispatch import JobDispatcher, run_pipeline
from .errors import NoTestsDetected, PipelineError, RevisionUnavailable, ToolFailure, UnknownJob, UnsupportedPlatform
from .model import JobKind, PipelineContext, ProjectSet
from .runner import ToolRunner

__all__ = [
    "CacheKeyDeriver",
    "CacheStore",
    "JobDispatcher",
    "run_pipeline",
    "NoTestsDetected",
    "PipelineError",
    "RevisionUnavailable",
    "ToolFailure",
    "UnknownJob",
    "UnsupportedPlatform",
    "JobKind",
    "PipelineContext",
    "ProjectSet",
    "ToolRunner",
]
