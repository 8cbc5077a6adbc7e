"""shellmate: a POSIX shell front end with an AI assistant on the side."""

from shellmate.core.classifier import classify
from shellmate.core.executor import ProcessExecutor, RunResult

__all__ = [
    "ProcessExecutor",
    "RunResult",
    "classify",
]

__version__ = "0.1.0"
