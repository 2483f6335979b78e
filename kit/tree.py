"""Snapshot a directory into tree and blob objects, children first"""
import logging
import os
import stat
from pathlib import Path
from typing import Iterable, List, Optional

from .digest import Digest
from .errors import FilesystemFailure
from .objects import (MODE_EXECUTABLE, MODE_FILE, MODE_SYMLINK, MODE_TREE, Blob,
                      Tree, TreeEntry)
from .store import ObjectStore

logger = logging.getLogger(__name__)


class TreeBuilder:
    """Write every file under a directory and return the root tree.

    Each subtree is encoded and stored before its parent, whose entry embeds
    the subtree's digest. Identical subtrees therefore get identical digests
    and are stored once. Directories with no files anywhere below them are
    left out, like git does. Only the exact paths in ``exclude`` are skipped,
    normally the repository's own metadata directory.
    """

    def __init__(self, store: ObjectStore, exclude: Iterable[Path] = ()):
        self.store = store
        self.exclude = frozenset(Path(p).resolve() for p in exclude)

    def build(self, directory: Path) -> Tree:
        tree = self._build(Path(directory).resolve())
        self.store.put(tree)
        return tree

    def write(self, directory: Path) -> Digest:
        tree = self._build(Path(directory).resolve())
        return self.store.put(tree)

    def _build(self, directory: Path) -> Tree:
        try:
            with os.scandir(directory) as it:
                children = [e for e in it if Path(e.path) not in self.exclude]
        except OSError as exc:
            raise FilesystemFailure(f'cannot list {directory}: {exc}') from exc
        children.sort(key=lambda e: os.fsencode(e.name))

        entries: List[TreeEntry] = []
        for child in children:
            entry = self._entry_for(child)
            if entry is not None:
                entries.append(entry)
        tree = Tree(tuple(entries))
        logger.debug('built tree for %s with %d entries', directory, len(tree))
        return tree

    def _entry_for(self, child: os.DirEntry) -> Optional[TreeEntry]:
        try:
            if child.is_symlink():
                target = os.readlink(child.path)
                digest = self.store.put(Blob(os.fsencode(target)))
                return TreeEntry(MODE_SYMLINK, child.name, digest)
            if child.is_dir(follow_symlinks=False):
                subtree = self._build(Path(child.path))
                if not subtree.entries:
                    return None
                return TreeEntry(MODE_TREE, child.name, self.store.put(subtree))
            if child.is_file(follow_symlinks=False):
                with open(child.path, 'rb') as f:
                    data = f.read()
                mode = child.stat(follow_symlinks=False).st_mode
                executable = mode & stat.S_IXUSR
                digest = self.store.put(Blob(data))
                return TreeEntry(MODE_EXECUTABLE if executable else MODE_FILE, child.name, digest)
        except OSError as exc:
            raise FilesystemFailure(f'cannot read {child.path}: {exc}') from exc
        logger.debug('skipping special file %s', child.path)
        return None
