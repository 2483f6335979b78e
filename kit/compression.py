"""zlib wrapper applied to objects at rest"""
import zlib

from .errors import CorruptObject


def compress(data: bytes) -> bytes:
    return zlib.compress(data)


def decompress(data: bytes) -> bytes:
    d = zlib.decompressobj()
    try:
        out = d.decompress(data)
    except zlib.error as exc:
        raise CorruptObject(f'invalid compressed stream: {exc}') from exc
    if not d.eof:
        raise CorruptObject('compressed stream ends before its end marker')
    return out
