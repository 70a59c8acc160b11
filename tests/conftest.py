"""
Shared fixtures: a tiny PNG writer so tests can control every chunk and filter byte.
"""

import base64
import struct
import zlib

import pytest


def _paeth(a, b, c):
    p = a + b - c
    pa, pb, pc = abs(p - a), abs(p - b), abs(p - c)
    if pa <= pb and pa <= pc:
        return a
    if pb <= pc:
        return b
    return c


def filter_row(filter_type, row, prev, bpp):
    """Apply a PNG filter to an unfiltered row (the encoder side)."""
    out = bytearray(len(row))
    for i in range(len(row)):
        a = row[i - bpp] if i >= bpp else 0
        b = prev[i]
        c = prev[i - bpp] if i >= bpp else 0
        if filter_type == 0:
            pred = 0
        elif filter_type == 1:
            pred = a
        elif filter_type == 2:
            pred = b
        elif filter_type == 3:
            pred = (a + b) // 2
        else:
            pred = _paeth(a, b, c)
        out[i] = (row[i] - pred) & 0xFF
    return bytes(out)


def make_chunk(ctype, data):
    crc = zlib.crc32(ctype + data) & 0xFFFFFFFF
    return struct.pack(">I", len(data)) + ctype + data + struct.pack(">I", crc)


def make_ihdr(width, height, color_type, bit_depth=8, interlace=0):
    return make_chunk(b"IHDR", struct.pack(">IIBBBBB", width, height, bit_depth,
                                           color_type, 0, 0, interlace))


def build_png(width, height, color_type, rows, palette=None, trns=None,
              filter_type=0, idat_parts=1, bit_depth=8, interlace=0):
    """
    Encode unfiltered `rows` (one bytes object per scanline).

    filter_type may be an int applied to every row or a list, one per row.
    """
    bpp = {2: 3, 3: 1, 6: 4}.get(color_type, 1)
    stride = width * bpp
    filters = filter_type if isinstance(filter_type, list) else [filter_type] * height

    prev = bytes(stride)
    raw = bytearray()
    for ft, row in zip(filters, rows):
        raw.append(ft)
        raw += filter_row(ft, row, prev, bpp) if ft in (0, 1, 2, 3, 4) else row
        prev = row
    compressed = zlib.compress(bytes(raw))

    out = b"\x89PNG\r\n\x1a\n" + make_ihdr(width, height, color_type, bit_depth, interlace)
    if palette is not None:
        out += make_chunk(b"PLTE", bytes(palette))
    if trns is not None:
        out += make_chunk(b"tRNS", bytes(trns))
    size = -(-len(compressed) // idat_parts)
    for i in range(idat_parts):
        out += make_chunk(b"IDAT", compressed[i * size:(i + 1) * size])
    out += make_chunk(b"IEND", b"")
    return out


def rgba_png(pixels, width, height, **kwargs):
    """Truecolor+alpha PNG from a flat list of (r, g, b, a) tuples."""
    rows = []
    for y in range(height):
        rows.append(bytes(v for px in pixels[y * width:(y + 1) * width] for v in px))
    return build_png(width, height, 6, rows, **kwargs)


RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)
FAINT_GREEN = (0, 255, 0, 10)


@pytest.fixture
def png_builder():
    return build_png


@pytest.fixture
def chunk_builder():
    return make_chunk


@pytest.fixture
def rgba_builder():
    return rgba_png


@pytest.fixture
def sample_png():
    """The 2x2 logo: two red, one blue, one near-transparent green."""
    return rgba_png([RED, RED, BLUE, FAINT_GREEN], 2, 2)


@pytest.fixture
def sample_svg(sample_png):
    b64 = base64.b64encode(sample_png).decode("ascii")
    # wrap the payload the way editors do
    wrapped = "\n      ".join(b64[i:i + 40] for i in range(0, len(b64), 40))
    return (
        '<svg xmlns="http://www.w3.org/2000/svg" width="2" height="2">\n'
        '  <image width="2" height="2" href="data:image/png;base64,\n'
        f'      {wrapped}"/>\n'
        '</svg>\n'
    )
