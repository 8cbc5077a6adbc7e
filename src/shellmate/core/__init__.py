"""Core classification, execution and recovery engine."""

from .classifier import classify
from .executor import ProcessExecutor, RunResult
from .path_commands import PathCommandSet, build_path_command_set

__all__ = [
    "PathCommandSet",
    "ProcessExecutor",
    "RunResult",
    "build_path_command_set",
    "classify",
]
