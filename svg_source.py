# svg_source.py
import base64, binascii, re
from pathlib import Path

from logging_config import get_logger

logger = get_logger("svg_source")

PNG_DATA_URI = re.compile(r"data:image/png;base64,([A-Za-z0-9+/=\s]+)")


class SourceError(ValueError):
    """No usable PNG payload could be located in the input."""


def decode_base64_payload(text):
    """Decode a bare base64 string or a `data:...;base64,` URI."""
    s = text.strip()
    if s.startswith("data:"):
        s = s.split(",", 1)[1] if "," in s else ""
    s = "".join(s.split())
    pad = (-len(s)) % 4
    if pad:
        s += "=" * pad
    try:
        return base64.b64decode(s, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise SourceError("invalid base64 payload") from exc


def extract_png_from_svg(svg_text):
    m = PNG_DATA_URI.search(svg_text)
    if not m:
        raise SourceError("no embedded PNG data URI found")
    png_bytes = decode_base64_payload(m.group(1))
    logger.debug("extracted %d PNG bytes from data URI at offset %d", len(png_bytes), m.start())
    return png_bytes


def load_png_bytes(path):
    """Read a PNG file directly, or the first embedded PNG of an SVG file."""
    p = Path(path)
    if not p.is_file():
        raise SourceError(f"file not found: {p}")
    if p.suffix.lower() == ".svg":
        return extract_png_from_svg(p.read_text(encoding="utf-8"))
    return p.read_bytes()
