import hashlib
import zlib
from pathlib import Path

import pytest

from kit.compression import compress, decompress
from kit.digest import Digest
from kit.errors import CorruptObject, FilesystemFailure, ObjectNotFound
from kit.objects import Blob, encode
from kit.store import ObjectStore


def make_store(tmp_path):
    return ObjectStore(tmp_path / 'objects')


def test_compression_round_trip():
    data = b'blob 3\0hi\n' * 100
    assert decompress(compress(data)) == data
    assert zlib.decompress(compress(data)) == data


def test_decompress_rejects_garbage_and_truncation():
    with pytest.raises(CorruptObject):
        decompress(b'not zlib at all')
    packed = compress(b'some content that compresses' * 50)
    with pytest.raises(CorruptObject):
        decompress(packed[:len(packed) // 2])


def test_write_then_read_hi(tmp_path):
    store = make_store(tmp_path)
    encoded = encode(Blob(b'hi\n'))
    assert encoded == b'blob 3\0hi\n'
    digest = Digest.compute(encoded)
    assert digest.hex == hashlib.sha1(b'blob 3\0hi\n').hexdigest()
    store.write(digest, encoded)
    assert store.read(digest) == encoded
    path = tmp_path / 'objects' / digest.hex[:2] / digest.hex[2:]
    assert path.is_file()
    assert zlib.decompress(path.read_bytes()) == encoded


def test_has_and_contains(tmp_path):
    store = make_store(tmp_path)
    digest = store.put(Blob(b'x'))
    assert store.has(digest)
    assert digest in store
    assert not store.has(Digest(b'\0' * 20))


def test_write_is_idempotent(tmp_path):
    store = make_store(tmp_path)
    first = store.put(Blob(b'same'))
    mtime = store.path_for(first).stat().st_mtime_ns
    assert store.put(Blob(b'same')) == first
    assert store.path_for(first).stat().st_mtime_ns == mtime
    assert list(store) == [first]


def test_fanout_directory_shared(tmp_path):
    store = make_store(tmp_path)
    digest = Digest.compute(b'whatever')
    store.path_for(digest).parent.mkdir(parents=True)
    store.write(digest, b'blob 0\0')
    assert store.read(digest) == b'blob 0\0'


def test_missing_object(tmp_path):
    store = make_store(tmp_path)
    with pytest.raises(ObjectNotFound) as info:
        store.read(Digest(b'\x11' * 20))
    assert info.value.digest == Digest(b'\x11' * 20)
    with pytest.raises(LookupError):
        store.get(Digest(b'\x11' * 20))


def test_truncated_file_is_corrupt(tmp_path):
    store = make_store(tmp_path)
    digest = store.put(Blob(b'a fairly long blob body ' * 40))
    p = store.path_for(digest)
    p.write_bytes(p.read_bytes()[:10])
    with pytest.raises(CorruptObject):
        store.read(digest)


def test_get_decodes(tmp_path):
    store = make_store(tmp_path)
    digest = store.put(Blob(b'payload'))
    assert store.get(digest) == Blob(b'payload')


def test_write_failure_is_filesystem_failure(tmp_path):
    blocker = tmp_path / 'objects'
    blocker.write_text('a file where a directory should be')
    store = ObjectStore(blocker)
    with pytest.raises(FilesystemFailure):
        store.put(Blob(b'x'))


def test_iter_ignores_stray_files(tmp_path):
    store = make_store(tmp_path)
    digest = store.put(Blob(b'one'))
    (tmp_path / 'objects' / 'info').mkdir()
    (tmp_path / 'objects' / digest.hex[:2] / 'junk').write_text('x')
    assert list(store) == [digest]


def test_failed_write_leaves_nothing_behind(tmp_path, monkeypatch):
    store = make_store(tmp_path)
    real_write_bytes = Path.write_bytes

    def disk_full(self, data):
        real_write_bytes(self, data[:len(data) // 2])
        raise OSError(28, 'No space left on device')

    monkeypatch.setattr(Path, 'write_bytes', disk_full)
    blob = Blob(b'a body long enough to be cut in half ' * 20)
    with pytest.raises(FilesystemFailure):
        store.put(blob)
    monkeypatch.undo()

    digest = Digest.compute(encode(blob))
    assert not store.has(digest)
    assert store.put(blob) == digest
    assert store.get(digest) == blob


def test_directory_at_object_path_is_not_an_object(tmp_path):
    store = make_store(tmp_path)
    digest = Digest.compute(encode(Blob(b'x')))
    store.path_for(digest).mkdir(parents=True)
    assert not store.has(digest)
    with pytest.raises(FilesystemFailure):
        store.put(Blob(b'x'))
