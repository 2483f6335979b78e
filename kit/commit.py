"""Assemble commit objects from a tree, an optional parent and a message"""
import logging
from typing import Optional

from .digest import Digest
from .objects import Commit, Identity, Signature
from .store import ObjectStore

logger = logging.getLogger(__name__)


def commit(store: ObjectStore, tree: Digest, parent: Optional[Digest], author: Identity,
           message: str, committer: Optional[Identity] = None,
           timestamp: Optional[int] = None, tz: Optional[str] = None) -> Digest:
    """Write a commit and return its digest.

    ``tree`` and ``parent`` are not checked against the store. The timestamp
    defaults to the current wall-clock time.
    """
    authored = Signature.now(author, timestamp, tz)
    committed = authored if committer is None else Signature(committer, authored.timestamp, authored.tz)
    digest = store.put(Commit(tree, parent, authored, committed, message))
    logger.debug('committed %s (tree %s, parent %s)', digest, tree, parent)
    return digest
