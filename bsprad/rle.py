"""Zero-run compression for per-patch trace bit rows."""

from __future__ import annotations

MAX_RUN = 255


def compress_bytes(data: bytes) -> bytes:
    """Compress ``data`` by collapsing runs of zero bytes.

    The first byte of the result is a flag. 1 means the rest is a stream of
    literal non-zero bytes and ``0, count`` pairs for runs of up to 255
    zeros. 0 means the rest is ``data`` itself, used whenever the encoded
    form would be no shorter than the input.
    """
    data = bytes(data)
    size = len(data)
    raw = b"\x00" + data
    out = bytearray()
    j = 0
    while j < size:
        byte = data[j]
        out.append(byte)
        if len(out) >= size:
            return raw
        j += 1
        if byte:
            continue
        run = 1
        while j < size and not data[j] and run < MAX_RUN:
            run += 1
            j += 1
        out.append(run)
        if len(out) >= size:
            return raw
    return b"\x01" + bytes(out)


def decompress_bytes(data: bytes, size: int) -> bytes:
    """Expand the output of :func:`compress_bytes` back to ``size`` bytes.

    Raises ValueError on an empty input, a zero-length run or an input
    that ends before ``size`` bytes have been produced.
    """
    if not data:
        raise ValueError("DecompressBytes: empty input")
    if data[0] == 0:
        body = bytes(data[1:1 + size])
        if len(body) < size:
            raise ValueError("DecompressBytes: truncated input")
        return body

    out = bytearray()
    pos = 1
    while len(out) < size:
        if pos >= len(data):
            raise ValueError("DecompressBytes: truncated input")
        byte = data[pos]
        if byte:
            out.append(byte)
            pos += 1
            continue
        if pos + 1 >= len(data):
            raise ValueError("DecompressBytes: truncated input")
        run = data[pos + 1]
        if not run:
            raise ValueError("DecompressBytes: 0 repeat")
        out.extend(bytes(run))
        pos += 2
    return bytes(out[:size])