"""FNV-style hashing used to key cheatsheet tags and visited lines."""

_OFFSET_BASIS = 0x811C_9DC5
_PRIME = 0x0100_0000_01B3
_MASK = (1 << 64) - 1
_STR_TERMINATOR = b"\xff"


def fnv(text: str) -> int:
    """Return the 64-bit FNV-1a style hash of ``text``.

    The UTF-8 bytes of the text are followed by a single 0xff byte, the
    terminator that keeps hashes of adjacent strings from colliding.
    """
    value = _OFFSET_BASIS
    for byte in text.encode("utf-8") + _STR_TERMINATOR:
        value ^= byte
        value = (value * _PRIME) & _MASK
    return value