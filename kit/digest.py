"""SHA-1 digests: the address of every stored object"""
import hashlib
import string
from pathlib import Path
from typing import Union

from .errors import MalformedDigest

DIGEST_SIZE = 20
HEX_SIZE = DIGEST_SIZE * 2
_HEXDIGITS = frozenset(string.hexdigits)


class Digest:
    """Twenty raw bytes naming an object by the hash of its encoding.

    Digests are immutable, hashable and compare by value, so they can be
    used directly as dict keys or set members.
    """
    __slots__ = ('_raw',)

    def __init__(self, raw: bytes):
        if not isinstance(raw, (bytes, bytearray)) or len(raw) != DIGEST_SIZE:
            raise MalformedDigest(f'digest must be {DIGEST_SIZE} raw bytes')
        self._raw = bytes(raw)

    @classmethod
    def compute(cls, data: bytes) -> 'Digest':
        return cls(hashlib.sha1(data).digest())

    @classmethod
    def from_bytes(cls, raw: bytes) -> 'Digest':
        return cls(raw)

    @classmethod
    def parse_hex(cls, text: str) -> 'Digest':
        if not isinstance(text, str) or len(text) != HEX_SIZE:
            raise MalformedDigest(f'expected {HEX_SIZE} hex characters, got {text!r}')
        if not _HEXDIGITS.issuperset(text):
            raise MalformedDigest(f'non-hex character in {text!r}')
        return cls(bytes.fromhex(text))

    @classmethod
    def coerce(cls, value: Union['Digest', str]) -> 'Digest':
        """Accept either a Digest or its hex form."""
        if isinstance(value, Digest):
            return value
        return cls.parse_hex(value)

    @property
    def raw(self) -> bytes:
        return self._raw

    @property
    def hex(self) -> str:
        return self._raw.hex()

    def to_hex(self) -> str:
        return self._raw.hex()

    def storage_path(self, objects_dir: Path) -> Path:
        # 2/38 fan-out keeps any single directory small
        h = self.hex
        return Path(objects_dir) / h[:2] / h[2:]

    def __eq__(self, other):
        if isinstance(other, Digest):
            return self._raw == other._raw
        return NotImplemented

    def __hash__(self):
        return hash(self._raw)

    def __str__(self):
        return self.hex

    def __repr__(self):
        return f'Digest({self.hex!r})'
