# color_rank.py
import math
from collections import Counter
from decimal import Decimal, ROUND_HALF_UP
from dataclasses import dataclass, field
from typing import List, Tuple

from png_decode import decode_png, MAX_INFLATE

ALPHA_THRESHOLD = 16  # pixels below this alpha are treated as background
TOP_N = 10


@dataclass(frozen=True)
class RankedColor:
    hex: str
    count: int
    percent: float
    hsl: Tuple[int, int, int]

    def to_dict(self):
        h, s, l = self.hsl
        return {"hex": self.hex, "count": self.count, "percent": self.percent,
                "hsl": {"h": h, "s": s, "l": l}}


@dataclass
class ColorReport:
    width: int
    height: int
    total_counted: int
    colors: List[RankedColor] = field(default_factory=list)


# ======================================================
# -------------------- CONVERSIONS ---------------------
# ======================================================

def round_half_up(v):
    return int(math.floor(v + 0.5))


def percent_of(count, total):
    """Share as a percentage, two decimals, exact ties rounded up."""
    return float(Decimal(count / total * 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def rgb_to_hex(r, g, b):
    return f"#{r:02x}{g:02x}{b:02x}"


def hex_to_hsl(hex_color):
    """'#rrggbb' -> (hue degrees 0-359, saturation %, lightness %)."""
    r = int(hex_color[1:3], 16) / 255.0
    g = int(hex_color[3:5], 16) / 255.0
    b = int(hex_color[5:7], 16) / 255.0
    mx = max(r, g, b); mn = min(r, g, b)
    h = s = 0.0
    l = (mx + mn) / 2

    if mx != mn:
        d = mx - mn
        s = d / (2 - mx - mn) if l > 0.5 else d / (mx + mn)
        if mx == r:
            h = (g - b) / d + (6 if g < b else 0)
        elif mx == g:
            h = (b - r) / d + 2
        else:
            h = (r - g) / d + 4
        h /= 6

    return round_half_up(h * 360) % 360, round_half_up(s * 100), round_half_up(l * 100)


# ======================================================
# ------------------ HISTOGRAM / RANK ------------------
# ======================================================

def count_colors(rgba, alpha_threshold=ALPHA_THRESHOLD):
    """Tally opaque-enough pixels by RGB. Returns (counts, total_counted)."""
    counts = Counter()
    total = 0
    for i in range(0, len(rgba) - 3, 4):
        if rgba[i + 3] < alpha_threshold:
            continue
        counts[rgb_to_hex(rgba[i], rgba[i + 1], rgba[i + 2])] += 1
        total += 1
    return counts, total


def rank_colors(counts, total, limit=TOP_N) -> List[RankedColor]:
    # most_common() keeps equal counts in first-seen order
    ranked = []
    for hex_color, c in counts.most_common(limit):
        ranked.append(RankedColor(
            hex=hex_color,
            count=c,
            percent=percent_of(c, total),
            hsl=hex_to_hsl(hex_color),
        ))
    return ranked


def analyze_png(png_bytes, limit=TOP_N, alpha_threshold=ALPHA_THRESHOLD,
                max_inflate=MAX_INFLATE) -> ColorReport:
    img = decode_png(png_bytes, max_inflate)
    counts, total = count_colors(img.rgba, alpha_threshold)
    return ColorReport(img.width, img.height, total, rank_colors(counts, total, limit))


def format_report(report: ColorReport) -> str:
    lines = [f"logo embedded PNG: {report.width}x{report.height}", "top colors:"]
    for c in report.colors:
        h, s, l = c.hsl
        lines.append(f"{c.hex}  {c.percent:.2f}%  (hsl: {h} {s}% {l}%)")
    return "\n".join(lines)
