# png_decode.py
import struct, zlib
from dataclasses import dataclass
from typing import Iterator, List, Optional

from logging_config import get_logger

logger = get_logger("png_decode")

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"

COLOR_TRUECOLOR = 2
COLOR_INDEXED = 3
COLOR_TRUECOLOR_ALPHA = 6

# raw sample bytes per pixel, 8-bit depth only
BYTES_PER_PIXEL = {COLOR_TRUECOLOR: 3, COLOR_INDEXED: 1, COLOR_TRUECOLOR_ALPHA: 4}

MAX_INFLATE = 64 * 1024 * 1024


class FormatError(ValueError):
    """The byte stream is not a PNG this decoder can handle."""


# ======================================================
# ---------------------- MODELS ------------------------
# ======================================================

@dataclass(frozen=True)
class Chunk:
    type: str
    data: bytes


@dataclass(frozen=True)
class ImageHeader:
    width: int
    height: int
    bit_depth: int
    color_type: int
    interlace: int

    @property
    def bpp(self):
        return BYTES_PER_PIXEL[self.color_type]

    @property
    def stride(self):
        return self.width * self.bpp


@dataclass(frozen=True)
class PngContainer:
    """Everything the chunk walk produces; immutable once built."""
    header: ImageHeader
    compressed: bytes
    palette: Optional[bytes] = None
    transparency: Optional[bytes] = None


@dataclass
class DecodedImage:
    width: int
    height: int
    rgba: bytearray


# ======================================================
# ------------------- CHUNK READER ---------------------
# ======================================================

def u32(b, o): return struct.unpack(">I", b[o:o + 4])[0]


def iter_chunks(png_bytes) -> Iterator[Chunk]:
    """Yield chunks in file order, stopping after IEND or at the end of the buffer.

    The CRC is read past but not verified.
    """
    if not png_bytes or len(png_bytes) < 8 or png_bytes[:8] != PNG_MAGIC:
        raise FormatError("not a PNG")

    off = 8
    L = len(png_bytes)
    while off + 8 <= L:
        length = u32(png_bytes, off); off += 4
        ctype = png_bytes[off:off + 4].decode("ascii", errors="replace"); off += 4
        if off + length + 4 > L:
            raise FormatError(f"truncated chunk {ctype!r} at offset {off - 8}")
        data = bytes(png_bytes[off:off + length]); off += length
        off += 4  # crc
        yield Chunk(ctype, data)
        if ctype == "IEND":
            break


def parse_header(data) -> ImageHeader:
    if len(data) < 13:
        raise FormatError("bad IHDR length")
    return ImageHeader(
        width=u32(data, 0),
        height=u32(data, 4),
        bit_depth=data[8],
        color_type=data[9],
        interlace=data[12],
    )


def read_container(png_bytes) -> PngContainer:
    header = None
    idat: List[bytes] = []
    palette = trns = None

    for chunk in iter_chunks(png_bytes):
        if chunk.type == "IHDR":
            header = parse_header(chunk.data)
        elif chunk.type == "IDAT":
            if header is None:
                raise FormatError("IDAT before IHDR")
            idat.append(chunk.data)
        elif chunk.type == "PLTE":
            palette = chunk.data
        elif chunk.type == "tRNS":
            trns = chunk.data
        else:
            logger.debug("skipping %s chunk (%d bytes)", chunk.type, len(chunk.data))

    if header is None:
        raise FormatError("missing IHDR")
    if header.interlace != 0:
        raise FormatError("interlaced PNG not supported")
    if header.bit_depth != 8:
        raise FormatError(f"bit depth {header.bit_depth} not supported")
    if header.color_type not in BYTES_PER_PIXEL:
        raise FormatError(f"color type {header.color_type} not supported")

    logger.debug(
        "IHDR %dx%d colorType=%d, %d IDAT chunk(s), palette=%s, tRNS=%s",
        header.width, header.height, header.color_type, len(idat),
        None if palette is None else len(palette) // 3,
        None if trns is None else len(trns),
    )
    return PngContainer(header, b"".join(idat), palette, trns)


# ======================================================
# ------------------- DECOMPRESSOR ---------------------
# ======================================================

def inflate(data, max_out=MAX_INFLATE):
    """
    zlib-inflate with a soft output cap.
    Corrupt streams raise zlib.error unchanged.
    """
    d = zlib.decompressobj()
    chunks = []
    total = 0
    pos = 0
    CHUNK = 1 << 15  # 32KB
    while pos < len(data):
        out = d.decompress(data[pos:pos + CHUNK], max_out + 1 - total)
        total += len(out)
        if total > max_out or d.unconsumed_tail:
            raise FormatError("decompressed image data too large")
        chunks.append(out)
        pos += CHUNK
    out = d.flush()
    total += len(out)
    if total > max_out:
        raise FormatError("decompressed image data too large")
    chunks.append(out)
    return b"".join(chunks)


# ======================================================
# --------------- SCANLINE RECONSTRUCTOR ---------------
# ======================================================

def paeth(a, b, c):
    p = a + b - c
    pa = abs(p - a); pb = abs(p - b); pc = abs(p - c)
    if pa <= pb and pa <= pc: return a
    return b if pb <= pc else c


def unfilter_scanline(filter_type, cur, prev, bpp):
    """Reconstruct `cur` in place from its filtered bytes and the row above."""
    n = len(cur)
    if filter_type == 0:
        return cur
    if filter_type == 1:
        for i in range(bpp, n):
            cur[i] = (cur[i] + cur[i - bpp]) & 255
    elif filter_type == 2:
        for i in range(n):
            cur[i] = (cur[i] + prev[i]) & 255
    elif filter_type == 3:
        for i in range(n):
            left = cur[i - bpp] if i >= bpp else 0
            cur[i] = (cur[i] + ((left + prev[i]) >> 1)) & 255
    elif filter_type == 4:
        for i in range(n):
            if i >= bpp:
                cur[i] = (cur[i] + paeth(cur[i - bpp], prev[i], prev[i - bpp])) & 255
            else:
                cur[i] = (cur[i] + paeth(0, prev[i], 0)) & 255
    else:
        raise FormatError(f"unknown filter {filter_type}")
    return cur


def iter_scanlines(raw, height, stride, bpp) -> Iterator[bytearray]:
    """
    Yield reconstructed rows top to bottom.

    Two buffers are swapped each row; a yielded row is only valid until the
    next one is requested.
    """
    prev = bytearray(stride)
    cur = bytearray(stride)
    pos = 0
    for _y in range(height):
        f = raw[pos]; pos += 1
        cur[:] = raw[pos:pos + stride]; pos += stride
        unfilter_scanline(f, cur, prev, bpp)
        yield cur
        prev, cur = cur, prev


# ======================================================
# ---------------- PIXEL MATERIALIZER ------------------
# ======================================================

def materialize_scanline(row, y, container, out):
    """Expand one reconstructed row into RGBA at row `y` of `out`."""
    hdr = container.header
    width = hdr.width
    dst = y * width * 4
    ct = hdr.color_type

    if ct == COLOR_TRUECOLOR_ALPHA:
        out[dst:dst + width * 4] = row
    elif ct == COLOR_TRUECOLOR:
        for x in range(width):
            s = x * 3; d = dst + x * 4
            out[d:d + 3] = row[s:s + 3]
            out[d + 3] = 255
    else:
        palette = container.palette
        trns = container.transparency or b""
        if width and palette is None:
            raise FormatError("indexed PNG missing PLTE")
        plen = len(palette or b"")
        for x in range(width):
            idx = row[x]; o = idx * 3; d = dst + x * 4
            # out-of-range entries fall back to black
            out[d] = palette[o] if o < plen else 0
            out[d + 1] = palette[o + 1] if o + 1 < plen else 0
            out[d + 2] = palette[o + 2] if o + 2 < plen else 0
            out[d + 3] = trns[idx] if idx < len(trns) else 255


# ======================================================
# ----------------------- CORE -------------------------
# ======================================================

def decode_png(png_bytes, max_inflate=MAX_INFLATE) -> DecodedImage:
    container = read_container(png_bytes)
    hdr = container.header

    raw = inflate(container.compressed, max_inflate)
    expected = (hdr.stride + 1) * hdr.height
    if len(raw) < expected:
        raise FormatError(f"truncated image data ({len(raw)} of {expected} bytes)")

    out = bytearray(hdr.width * hdr.height * 4)
    for y, row in enumerate(iter_scanlines(raw, hdr.height, hdr.stride, hdr.bpp)):
        materialize_scanline(row, y, container, out)

    return DecodedImage(hdr.width, hdr.height, out)
