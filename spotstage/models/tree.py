"""
Data model for one entry of a listed directory tree.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class NodeKind(str, Enum):
    DIRECTORY = "directory"
    FILE = "file"


@dataclass
class FileTreeNode:
    """
    One filesystem entry under a root.

    A directory's size is the recursive sum of the file sizes below it, and a
    directory node is never built without children.
    """

    kind: NodeKind
    path: str
    relative_path: str
    name: str
    size: int
    modified: float
    children: list["FileTreeNode"] = field(default_factory=list)

    @property
    def is_directory(self) -> bool:
        return self.kind is NodeKind.DIRECTORY

    def sort_key(self) -> tuple[int, str]:
        """Directories first, then by name."""
        return (0 if self.is_directory else 1, self.name)

    def iter_files(self):
        """Yields every file node at or below this node."""
        if not self.is_directory:
            yield self
            return
        for child in self.children:
            yield from child.iter_files()

    def to_dict(self) -> dict[str, Any]:
        """Serializes the node into the listing response shape."""
        data: dict[str, Any] = {
            "type": self.kind.value,
            "path": self.path,
            "relativePath": self.relative_path,
            "name": self.name,
            "size": self.size,
            "modified": datetime.fromtimestamp(self.modified, tz=timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
        }
        if self.is_directory:
            data["children"] = [child.to_dict() for child in self.children]
        return data
