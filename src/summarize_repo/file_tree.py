from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, computed_field, model_validator

from summarize_repo.comments import strip_comments_for_path
from summarize_repo.config import EXCLUDED_DIRECTORIES
from summarize_repo.file_manipulation import canonical_key, is_hidden, read_text
from summarize_repo.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


class FileNode(BaseModel):
    """One entry of the browsed directory tree.

    Identity is the path alone: two nodes with the same path are equal and
    hash alike whatever their selection or children.
    """

    name: str
    path: Path
    is_directory: bool = False
    is_selected: bool = False
    include_comments: bool = Field(default=True, description="Keep comments when previewing/exporting this file.")
    children: list[FileNode] | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_excluded(self) -> bool:
        return is_hidden(self.name) or self.name in EXCLUDED_DIRECTORIES

    @model_validator(mode="after")
    def _children_only_on_directories(self) -> FileNode:
        if self.is_directory and self.children is None:
            self.children = []
        if not self.is_directory and self.children is not None:
            msg = f"file node {self.path} cannot have children"
            raise ValueError(msg)
        return self

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FileNode):
            return NotImplemented
        return self.path == other.path

    def __hash__(self) -> int:
        return hash(self.path)

    @property
    def key(self) -> str:
        return canonical_key(self.path)

    def walk(self) -> Iterator[FileNode]:
        """Yield this node then every descendant, depth first."""
        yield self
        for child in self.children or []:
            yield from child.walk()

    def iter_files(self) -> Iterator[FileNode]:
        return (n for n in self.walk() if not n.is_directory)


FileNode.model_rebuild()


def _sort_key(entry: os.DirEntry[str]) -> str:
    return entry.name.casefold()


def list_directory(
    path: Path,
    *,
    show_hidden: bool = False,
    _ancestors: frozenset[tuple[int, int]] = frozenset(),
) -> list[FileNode]:
    """Recursively list ``path`` as file nodes sorted by case-folded name.

    Excluded directories are listed but not descended into. Symlinked
    directories are followed unless they point back to one of their
    ancestors, which would loop forever.

    Args:
        path (Path): the directory to list
        show_hidden (bool): whether dot entries are listed

    Returns:
        list[FileNode]: the children of ``path``
    """
    try:
        st = path.stat()
        with os.scandir(path) as it:
            entries = sorted(it, key=_sort_key)
    except OSError as e:
        logger.warning("Cannot list directory %s: %s", path, e)
        return []
    ancestors = _ancestors | {(st.st_dev, st.st_ino)}

    nodes: list[FileNode] = []
    for entry in entries:
        if not show_hidden and is_hidden(entry.name):
            continue
        entry_path = Path(entry.path)
        try:
            is_dir = entry.is_dir()
        except OSError:
            continue
        if not is_dir:
            nodes.append(FileNode(name=entry.name, path=entry_path))
            continue
        children: list[FileNode] = []
        if entry.name not in EXCLUDED_DIRECTORIES:
            try:
                target = entry_path.stat()
            except OSError:
                target = None
            if target is not None and (target.st_dev, target.st_ino) in ancestors:
                logger.info("Not following symlink cycle at %s", entry_path)
            else:
                children = list_directory(entry_path, show_hidden=show_hidden, _ancestors=ancestors)
        nodes.append(FileNode(name=entry.name, path=entry_path, is_directory=True, children=children))
    return nodes


class ProjectTree:
    """The directory tree of an open project and its selection state."""

    def __init__(self, root: Path | None = None, *, show_hidden: bool = False) -> None:
        self.root: Path | None = None
        self.show_hidden = show_hidden
        self.nodes: list[FileNode] = []
        if root is not None:
            self.load(root)

    def load(self, root: Path) -> list[FileNode]:
        """Open ``root`` and list it from scratch, dropping any previous selection."""
        self.root = root.expanduser().resolve()
        self.nodes = list_directory(self.root, show_hidden=self.show_hidden)
        logger.info("Loaded directory %s (%d nodes)", self.root, sum(1 for _ in self.walk()))
        return self.nodes

    def reload(self) -> list[FileNode]:
        """Rebuild the tree from disk, keeping selection and comment overrides by path."""
        if self.root is None:
            return self.nodes
        selected = {n.path for n in self.walk() if n.is_selected}
        without_comments = {n.path for n in self.walk() if not n.include_comments}
        self.nodes = list_directory(self.root, show_hidden=self.show_hidden)
        for node in self.walk():
            node.is_selected = node.path in selected
            node.include_comments = node.path not in without_comments
        logger.info("Reloaded directory %s (%d selected)", self.root, len(selected))
        return self.nodes

    def set_show_hidden(self, show_hidden: bool) -> list[FileNode]:  # noqa: FBT001
        self.show_hidden = show_hidden
        return self.reload()

    def walk(self) -> Iterator[FileNode]:
        for node in self.nodes:
            yield from node.walk()

    def find(self, path: Path | str) -> FileNode | None:
        p = Path(path)
        if not p.is_absolute() and self.root is not None:
            p = self.root / p
        wanted = canonical_key(p)
        return next((n for n in self.walk() if n.key == wanted), None)

    def _require(self, path: Path | str) -> FileNode:
        node = self.find(path)
        if node is None:
            msg = f"{path} is not part of the loaded tree"
            raise KeyError(msg)
        return node

    def toggle(self, path: Path | str) -> FileNode:
        """Flip the selection of the node at ``path``.

        Raises:
            KeyError: if no node has this path
        """
        node = self._require(path)
        node.is_selected = not node.is_selected
        return node

    def select(self, paths: Iterable[Path | str]) -> list[FileNode]:
        nodes = [self._require(p) for p in paths]
        for node in nodes:
            node.is_selected = True
        return nodes

    def clear_selection(self) -> None:
        for node in self.walk():
            node.is_selected = False

    def set_include_comments(self, path: Path | str, include: bool) -> FileNode:  # noqa: FBT001
        node = self._require(path)
        node.include_comments = include
        return node

    def selected(self) -> list[FileNode]:
        """Selected nodes sorted by name."""
        return sorted((n for n in self.walk() if n.is_selected), key=lambda n: (n.name, str(n.path)))

    def preview(self, path: Path | str) -> str:
        """Content of a file as shown to the user, without comments when the node says so.

        Raises:
            KeyError: if no node has this path
            FileReadError: if the file cannot be read
        """
        node = self._require(path)
        if node.is_directory:
            return ""
        content = read_text(node.path, keep_newlines=True)
        return content if node.include_comments else strip_comments_for_path(node.path, content)
