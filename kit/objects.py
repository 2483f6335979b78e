"""Blob, tree and commit objects and their canonical byte encoding.

Every object is encoded as ``b'<kind> <length>\\0' + payload`` and addressed
by the SHA-1 of that encoding, so the encoders here must be byte-for-byte
reproducible: any change to them changes every digest.
"""
import os
import re
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, ClassVar, Dict, Optional, Tuple, Union

from .digest import DIGEST_SIZE, Digest
from .errors import CorruptObject, MalformedHeader, TruncatedObject, UnknownObjectKind

MODE_FILE = '100644'
MODE_EXECUTABLE = '100755'
MODE_SYMLINK = '120000'
MODE_TREE = '40000'

_TZ_RE = re.compile(r'[+-]\d{4}\Z')
_SIGNATURE_RE = re.compile(r'(?P<name>[^<>\n]*) <(?P<email>[^<>\n]*)> (?P<ts>\d+) (?P<tz>[+-]\d{4})\Z')


@dataclass(frozen=True)
class Blob:
    data: bytes
    kind: ClassVar[str] = 'blob'


@dataclass(frozen=True)
class TreeEntry:
    mode: str
    name: str
    digest: Digest

    def __post_init__(self):
        if not self.mode or not self.mode.isdigit():
            raise ValueError(f'invalid tree entry mode {self.mode!r}')
        if not self.name or self.name in ('.', '..') or '/' in self.name or '\0' in self.name:
            raise ValueError(f'invalid tree entry name {self.name!r}')

    @property
    def is_tree(self) -> bool:
        return self.mode == MODE_TREE

    @property
    def kind(self) -> str:
        return 'tree' if self.is_tree else 'blob'

    def sort_key(self) -> bytes:
        return os.fsencode(self.name)


@dataclass(frozen=True)
class Tree:
    """One directory level. Entries are kept sorted by name bytes."""
    entries: Tuple[TreeEntry, ...] = ()
    kind: ClassVar[str] = 'tree'

    def __post_init__(self):
        entries = tuple(sorted(self.entries, key=TreeEntry.sort_key))
        for prev, cur in zip(entries, entries[1:]):
            if prev.name == cur.name:
                raise ValueError(f'duplicate tree entry {cur.name!r}')
        object.__setattr__(self, 'entries', entries)

    def __iter__(self):
        return iter(self.entries)

    def __len__(self):
        return len(self.entries)


@dataclass(frozen=True)
class Identity:
    name: str
    email: str

    def __post_init__(self):
        for value in (self.name, self.email):
            if any(c in value for c in '<>\n'):
                raise ValueError(f'identity may not contain <, > or newlines: {value!r}')

    def __str__(self):
        return f'{self.name} <{self.email}>'


def format_tz(offset: timedelta) -> str:
    minutes = int(offset.total_seconds()) // 60
    sign = '-' if minutes < 0 else '+'
    minutes = abs(minutes)
    return f'{sign}{minutes // 60:02d}{minutes % 60:02d}'


@dataclass(frozen=True)
class Signature:
    identity: Identity
    timestamp: int
    tz: str = '+0000'

    def __post_init__(self):
        if self.timestamp < 0:
            raise ValueError('timestamp must be non-negative')
        if not _TZ_RE.match(self.tz):
            raise ValueError(f'timezone must look like +HHMM, got {self.tz!r}')

    @classmethod
    def now(cls, identity: Identity, timestamp: Optional[int] = None,
            tz: Optional[str] = None) -> 'Signature':
        """Sign with wall-clock time and the local UTC offset."""
        if timestamp is None:
            timestamp = int(time.time())
        if tz is None:
            local = datetime.fromtimestamp(timestamp, timezone.utc).astimezone()
            tz = format_tz(local.utcoffset() or timedelta(0))
        return cls(identity, timestamp, tz)

    def __str__(self):
        return f'{self.identity} {self.timestamp} {self.tz}'


@dataclass(frozen=True)
class Commit:
    tree: Digest
    parent: Optional[Digest]
    author: Signature
    committer: Signature
    message: str
    kind: ClassVar[str] = 'commit'


Object = Union[Blob, Tree, Commit]


# -- encoding

def _encode_blob(blob: Blob) -> bytes:
    return bytes(blob.data)


def _encode_tree(tree: Tree) -> bytes:
    parts = []
    for entry in tree.entries:
        parts.append(entry.mode.encode('ascii') + b' ' + os.fsencode(entry.name) + b'\0')
        parts.append(entry.digest.raw)
    return b''.join(parts)


def _encode_commit(commit: Commit) -> bytes:
    lines = [f'tree {commit.tree}']
    if commit.parent is not None:
        lines.append(f'parent {commit.parent}')
    lines.append(f'author {commit.author}')
    lines.append(f'committer {commit.committer}')
    text = '\n'.join(lines) + '\n\n' + commit.message + '\n'
    return text.encode('utf-8')


_ENCODERS: Dict[str, Callable] = {
    'blob': _encode_blob,
    'tree': _encode_tree,
    'commit': _encode_commit,
}


def encode(obj: Object) -> bytes:
    payload = _ENCODERS[obj.kind](obj)
    return f'{obj.kind} {len(payload)}\0'.encode('ascii') + payload


def digest_of(obj: Object) -> Digest:
    return Digest.compute(encode(obj))


# -- decoding

def decode_header(data: bytes) -> Tuple[str, int, int]:
    """Parse ``<kind> <length>\\0``; return (kind, length, payload offset)."""
    nul = data.find(b'\0')
    if nul < 0:
        raise MalformedHeader('object header has no null terminator')
    kind_b, sep, length_b = data[:nul].partition(b' ')
    kind = kind_b.decode('ascii', errors='replace')
    if kind not in _DECODERS:
        raise UnknownObjectKind(f'unknown object kind {kind!r}')
    if not sep or not length_b.isdigit():
        raise MalformedHeader(f'invalid length field {length_b!r} in object header')
    return kind, int(length_b), nul + 1


def _decode_blob(payload: bytes) -> Blob:
    return Blob(payload)


def _decode_tree(payload: bytes) -> Tree:
    entries = []
    pos, end = 0, len(payload)
    while pos < end:
        nul = payload.find(b'\0', pos)
        if nul < 0:
            raise CorruptObject(f'tree entry at offset {pos} has no name terminator')
        mode, sep, name = payload[pos:nul].partition(b' ')
        if not sep or not mode or not name:
            raise CorruptObject(f'malformed tree entry at offset {pos}')
        pos = nul + 1
        # the digest is raw bytes and may itself contain b'\0' or b' '
        if end - pos < DIGEST_SIZE:
            raise TruncatedObject(f'tree entry {name!r} has {end - pos} digest bytes, expected {DIGEST_SIZE}')
        raw = payload[pos:pos + DIGEST_SIZE]
        pos += DIGEST_SIZE
        try:
            entries.append(TreeEntry(mode.decode('ascii'), os.fsdecode(name), Digest(raw)))
        except (UnicodeDecodeError, ValueError) as exc:
            raise CorruptObject(f'invalid tree entry {name!r}: {exc}') from exc
    try:
        return Tree(tuple(entries))
    except ValueError as exc:
        raise CorruptObject(str(exc)) from exc


def _parse_signature(value: str) -> Signature:
    m = _SIGNATURE_RE.match(value)
    if not m:
        raise CorruptObject(f'malformed signature {value!r}')
    return Signature(Identity(m['name'], m['email']), int(m['ts']), m['tz'])


def _decode_commit(payload: bytes) -> Commit:
    try:
        text = payload.decode('utf-8')
    except UnicodeDecodeError as exc:
        raise CorruptObject(f'commit is not valid utf-8: {exc}') from exc
    head, sep, message = text.partition('\n\n')
    if not sep:
        raise CorruptObject('commit has no blank line before its message')
    if message.endswith('\n'):
        message = message[:-1]
    fields: Dict[str, str] = {}
    for line in head.split('\n'):
        key, sep, value = line.partition(' ')
        if not sep or key not in ('tree', 'parent', 'author', 'committer'):
            raise CorruptObject(f'unsupported commit header line {line!r}')
        if key in fields:
            raise CorruptObject(f'repeated commit header {key!r}')
        fields[key] = value
    for key in ('tree', 'author', 'committer'):
        if key not in fields:
            raise CorruptObject(f'commit is missing its {key} line')
    try:
        tree = Digest.parse_hex(fields['tree'])
        parent = Digest.parse_hex(fields['parent']) if 'parent' in fields else None
    except ValueError as exc:
        raise CorruptObject(str(exc)) from exc
    return Commit(tree, parent, _parse_signature(fields['author']),
                  _parse_signature(fields['committer']), message)


_DECODERS: Dict[str, Callable[[bytes], Object]] = {
    'blob': _decode_blob,
    'tree': _decode_tree,
    'commit': _decode_commit,
}


def decode(data: bytes) -> Object:
    kind, length, offset = decode_header(data)
    payload = data[offset:]
    if len(payload) < length:
        raise TruncatedObject(f'{kind} declares {length} bytes but only {len(payload)} are present')
    if len(payload) > length:
        raise CorruptObject(f'{kind} has {len(payload) - length} bytes past its declared length')
    return _DECODERS[kind](payload)
