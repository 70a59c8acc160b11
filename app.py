# app.py
from flask import Flask, request, jsonify
from werkzeug.exceptions import HTTPException
import math, os, zlib

from color_rank import ALPHA_THRESHOLD, TOP_N, analyze_png, format_report
from logging_config import get_logger, setup_logging
from png_decode import PNG_MAGIC
from svg_source import decode_base64_payload, extract_png_from_svg

app = Flask(__name__)
app.config["MAX_CONTENT_LENGTH"] = int(os.environ.get("MAX_UPLOAD_MB", "16")) * 1024 * 1024

logger = get_logger("app")

MAX_TOP = 50

# ======================================================
# ---------------------- GUARDS ------------------------
# ======================================================

def safe_int(v, fb=0):
    """Convert to int if finite; otherwise fallback."""
    if v is None:
        return fb
    try:
        n = float(v)
        if math.isfinite(n):
            return int(n)
    except (TypeError, ValueError):
        pass
    return fb

def clamp(v, lo, hi):
    return max(lo, min(hi, v))

# ======================================================
# ---------------------- INPUT -------------------------
# ======================================================

def read_png_bytes(params):
    """PNG bytes from an uploaded file (PNG or SVG), `png_b64`, or `svg`; None if absent."""
    f = request.files.get("file")
    if f:
        data = f.read()
        if data[:8] == PNG_MAGIC:
            return data
        # anything else is treated as SVG text
        return extract_png_from_svg(data.decode("utf-8", errors="replace"))

    b64 = params.get("png_b64")
    if isinstance(b64, str) and b64.strip():
        return decode_base64_payload(b64)

    svg = params.get("svg")
    if isinstance(svg, str) and svg.strip():
        return extract_png_from_svg(svg)

    return None

# ======================================================
# ---------------------- ROUTES ------------------------
# ======================================================

@app.route("/logo-colors", methods=["POST"])
def logo_colors():
    try:
        # Normalize params from JSON or multipart form
        if request.is_json:
            params = request.get_json(silent=True) or {}
            if not isinstance(params, dict):
                params = {}
        else:
            params = {k: request.form.get(k) for k in request.form.keys()}

        png_bytes = read_png_bytes(params)
        if not png_bytes:
            return jsonify({"ok": False, "error": "no_data"}), 400

        top = clamp(safe_int(params.get("top"), TOP_N), 1, MAX_TOP)
        alpha_threshold = clamp(safe_int(params.get("alpha_threshold"), ALPHA_THRESHOLD), 0, 255)

        report = analyze_png(png_bytes, limit=top, alpha_threshold=alpha_threshold)
        logger.info("analyzed %dx%d PNG, %d pixels counted",
                    report.width, report.height, report.total_counted)
        return jsonify({
            "ok": True,
            "width": report.width,
            "height": report.height,
            "total_counted": report.total_counted,
            "colors": [c.to_dict() for c in report.colors],
            "report": format_report(report),
        }), 200

    except HTTPException:
        # e.g. 413 from MAX_CONTENT_LENGTH
        raise
    except ValueError as ve:
        # FormatError / SourceError and other known validation errors
        logger.warning("rejected input: %s", ve)
        return jsonify({"ok": False, "error": str(ve)}), 400
    except zlib.error as ze:
        logger.warning("corrupt IDAT stream: %s", ze)
        return jsonify({"ok": False, "error": "zlib_error"}), 400
    except Exception as e:
        # Never leak stack traces to clients
        logger.exception("unexpected failure in /logo-colors")
        return jsonify({"ok": False, "error": str(e)}), 500

@app.route("/healthz", methods=["GET"])
def healthz():
    return jsonify({"ok": True})

if __name__ == "__main__":
    setup_logging()
    port = int(os.environ.get("PORT", "8000"))
    # debug=False for production safety
    app.run(host="0.0.0.0", port=port, debug=False)
