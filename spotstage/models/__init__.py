"""
Data Models Layer.

This package contains the Pydantic and dataclass models that define the core
data structures used throughout the application, such as configuration, the
download job, and listed file trees.
"""

from .config import AppConfig
from .job import DownloadJob, DownloadRequest, JobKind, JobState
from .stats import QueueStats, RelocationReport
from .tree import FileTreeNode, NodeKind

__all__ = [
    "AppConfig",
    "DownloadJob",
    "DownloadRequest",
    "FileTreeNode",
    "JobKind",
    "JobState",
    "NodeKind",
    "QueueStats",
    "RelocationReport",
]
