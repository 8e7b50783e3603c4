"""
Library Layer.

This package holds the filesystem engine behind the staging area and the
music library: listing, deleting, and relocating items, plus the single-use
credential files handed to download jobs.
"""

from .credentials import credential_scope, stage_credential_file
from .eraser import erase
from .listing import list_tree
from .relocator import Relocator

__all__ = [
    "Relocator",
    "credential_scope",
    "erase",
    "list_tree",
    "stage_credential_file",
]
