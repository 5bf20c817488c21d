import gzip
import logging
import zlib
from typing import *

# optional compressors
try:
    import lz4.frame as lz4f  # type: ignore
except ImportError:  # pragma: no cover
    lz4f = None

try:
    import zstandard as zstd  # type: ignore
except ImportError:  # pragma: no cover
    zstd = None

logger = logging.getLogger(__name__)


class DecompressionError(Exception):
    pass


def _lz4(raw: bytes) -> bytes:
    if lz4f is None:
        raise DecompressionError("lz4 not available. Install 'lz4' package.")
    return lz4f.decompress(raw)


def _zstd(raw: bytes) -> bytes:
    if zstd is None:
        raise DecompressionError("zstd not available. Install 'zstandard' package.")
    return zstd.ZstdDecompressor().decompress(raw)


_METHODS: Dict[str, Callable[[bytes], bytes]] = {
    "zlib": zlib.decompress,
    "deflate": lambda raw: zlib.decompress(raw, wbits=-15),
    "gzip": gzip.decompress,
    "lz4": _lz4,
    "zstd": _zstd,
}

# frame magics checked before blind attempts
_MAGICS: List[Tuple[bytes, str]] = [
    (b"\x1f\x8b", "gzip"),
    (b"\x28\xb5\x2f\xfd", "zstd"),
    (b"\x04\x22\x4d\x18", "lz4"),
]

_AUTO_ORDER = ("zlib", "deflate", "gzip", "lz4", "zstd")

METHODS = ("auto", "none") + tuple(_METHODS)


def decompress_payload(raw_bytes: bytes, method: str = "auto") -> bytes:
    """
    Decompress an export payload.

    method options:
    - 'none': return raw_bytes as-is
    - 'zlib' / 'deflate' / 'gzip' / 'lz4' / 'zstd': that codec only
    - 'auto': frame magics first, then every codec in turn
    """
    m = method.lower()
    if m == "none":
        return raw_bytes
    if m in _METHODS:
        try:
            return _METHODS[m](raw_bytes)
        except DecompressionError:
            raise
        except Exception as e:
            raise DecompressionError(f"{m} failed: {e}") from e
    if m != "auto":
        raise DecompressionError(f"Unknown compression method {method!r}")

    candidates = [name for magic, name in _MAGICS if raw_bytes.startswith(magic)]
    candidates += [name for name in _AUTO_ORDER if name not in candidates]
    for name in candidates:
        try:
            out = _METHODS[name](raw_bytes)
        except Exception as e:
            logger.debug("auto decompression: %s did not apply (%s)", name, e)
            continue
        logger.debug("auto decompression: payload is %s (%d -> %d bytes)", name, len(raw_bytes), len(out))
        return out

    raise DecompressionError(
        "Could not decompress payload. Try --compression " + "|".join(METHODS[1:]) + "."
    )
