"""
Storage package for git-toolbox.

Provides the git repository wrapper used by the synchronization pipeline.
"""

from .repository import ToolboxRepository, blob_hash

__all__ = [
    "ToolboxRepository",
    "blob_hash",
]
