"""Immutable project file tree with copy-on-write path updates."""

from dataclasses import dataclass, replace
from typing import Dict, Iterator, Optional, Tuple


@dataclass(frozen=True)
class FileNode:
    name: str
    path: str
    is_directory: bool = False
    content: Optional[str] = None
    children: Tuple["FileNode", ...] = ()

    def child(self, name: str) -> Optional["FileNode"]:
        for node in self.children:
            if node.name == name:
                return node
        return None


def _split(path: str) -> Tuple[str, ...]:
    parts = tuple(p for p in path.strip().strip("/").split("/") if p and p != ".")
    if not parts or ".." in parts:
        raise ValueError(f"Invalid file path: {path!r}")
    return parts


def _with_file(node: FileNode, parts: Tuple[str, ...], content: str) -> FileNode:
    name, rest = parts[0], parts[1:]
    child_path = f"{node.path}/{name}" if node.path else name
    existing = node.child(name)

    if rest:
        base = existing if existing is not None and existing.is_directory else FileNode(
            name=name, path=child_path, is_directory=True
        )
        updated = _with_file(base, rest, content)
    else:
        updated = FileNode(name=name, path=child_path, content=content)

    children = tuple(c for c in node.children if c.name != name) + (updated,)
    return replace(node, children=tuple(sorted(children, key=lambda c: (not c.is_directory, c.name))))


def _without(node: FileNode, parts: Tuple[str, ...]) -> FileNode:
    name, rest = parts[0], parts[1:]
    existing = node.child(name)
    if existing is None:
        return node
    if rest:
        if not existing.is_directory:
            return node
        updated = _without(existing, rest)
        children = tuple(updated if c.name == name else c for c in node.children)
    else:
        children = tuple(c for c in node.children if c.name != name)
    return replace(node, children=children)


class FileTree:
    """A snapshot of the project files. Every update returns a new tree."""

    def __init__(self, root: Optional[FileNode] = None):
        self._root = root or FileNode(name="", path="", is_directory=True)

    @classmethod
    def from_files(cls, files: Dict[str, str]) -> "FileTree":
        tree = cls()
        for path, content in files.items():
            tree = tree.with_file(path, content)
        return tree

    @property
    def root(self) -> FileNode:
        return self._root

    def with_file(self, path: str, content: str) -> "FileTree":
        return FileTree(_with_file(self._root, _split(path), content))

    def with_files(self, files: Dict[str, str]) -> "FileTree":
        tree = self
        for path, content in files.items():
            tree = tree.with_file(path, content)
        return tree

    def without(self, path: str) -> "FileTree":
        return FileTree(_without(self._root, _split(path)))

    def get(self, path: str) -> Optional[FileNode]:
        node = self._root
        for part in _split(path):
            node = node.child(part) if node.is_directory else None
            if node is None:
                return None
        return node

    def read(self, path: str) -> Optional[str]:
        node = self.get(path)
        return node.content if node is not None and not node.is_directory else None

    def _walk(self, node: FileNode) -> Iterator[FileNode]:
        for child in node.children:
            if child.is_directory:
                yield from self._walk(child)
            else:
                yield child

    def files(self) -> Dict[str, str]:
        return {node.path: node.content or "" for node in self._walk(self._root)}

    def paths(self) -> list:
        return [node.path for node in self._walk(self._root)]

    def __contains__(self, path: str) -> bool:
        return self.read(path) is not None

    def __len__(self) -> int:
        return sum(1 for _ in self._walk(self._root))
