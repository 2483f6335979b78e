"""Object storage: one zlib-compressed file per object under a 2/38 fan-out"""
import logging
from pathlib import Path
from typing import Iterator

from . import compression
from .digest import HEX_SIZE, Digest
from .errors import FilesystemFailure, MalformedDigest, ObjectNotFound
from .objects import Object, decode, encode

logger = logging.getLogger(__name__)


class ObjectStore:
    def __init__(self, objects_dir: Path):
        self.objects_dir = Path(objects_dir)

    def path_for(self, digest: Digest) -> Path:
        return digest.storage_path(self.objects_dir)

    def has(self, digest: Digest) -> bool:
        return self.path_for(digest).is_file()

    def write(self, digest: Digest, encoded: bytes):
        """Store the encoded object under its digest.

        An object that is already present is left untouched; its content is
        assumed to match since the path is derived from the content. A failed
        write removes whatever partial file it left, so a retry starts clean.
        """
        p = self.path_for(digest)
        if p.is_file():
            logger.debug('object %s already stored', digest)
            return
        try:
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_bytes(compression.compress(encoded))
        except OSError as exc:
            try:
                p.unlink()
            except FileNotFoundError:
                pass
            except OSError:
                logger.warning('could not remove partial object %s', p)
            raise FilesystemFailure(f'cannot write object {digest}: {exc}') from exc
        logger.debug('wrote object %s (%d bytes)', digest, len(encoded))

    def read(self, digest: Digest) -> bytes:
        p = self.path_for(digest)
        try:
            raw = p.read_bytes()
        except FileNotFoundError:
            raise ObjectNotFound(digest) from None
        except OSError as exc:
            raise FilesystemFailure(f'cannot read object {digest}: {exc}') from exc
        return compression.decompress(raw)

    def put(self, obj: Object) -> Digest:
        encoded = encode(obj)
        digest = Digest.compute(encoded)
        self.write(digest, encoded)
        return digest

    def get(self, digest: Digest) -> Object:
        return decode(self.read(digest))

    def __contains__(self, digest: Digest) -> bool:
        return self.has(digest)

    def __iter__(self) -> Iterator[Digest]:
        """Yield the digest of every object file laid out as <2 hex>/<38 hex>."""
        if not self.objects_dir.is_dir():
            return
        for fanout in sorted(self.objects_dir.iterdir()):
            if not fanout.is_dir() or len(fanout.name) != 2:
                continue
            for f in sorted(fanout.iterdir()):
                if not f.is_file() or len(fanout.name + f.name) != HEX_SIZE:
                    continue
                try:
                    yield Digest.parse_hex(fanout.name + f.name)
                except MalformedDigest:
                    continue
