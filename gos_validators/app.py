"""
SNILS Validation API
Flask wrapper around gos_validators

Endpoints:
- GET  /health   service status and loaded recognizers
- POST /validate checksum validation of a single SNILS
- POST /format   re-format a SNILS into another layout
- POST /analyze  find SNILS numbers with a valid checksum in free text

Configuration (environment):
- SNILS_RECOGNIZERS_PATH  recognizers YAML (default: packaged config)
- SNILS_OUTPUT_FORMAT     default output layout for /format: C, S or H
- SNILS_LOG_LEVEL         logging level (default INFO)
"""

import logging
import os
import time
from typing import List

from flask import Flask, jsonify, request
from flask.json.provider import DefaultJSONProvider
from presidio_analyzer import PatternRecognizer

from . import __version__
from .recognizers import load_custom_recognizers
from .snils import Snils, SnilsFormat
from .templating import init_app

logging.basicConfig(level=os.getenv("SNILS_LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 10000

DEFAULT_RECOGNIZERS_PATH = os.path.join(
    os.path.dirname(__file__),
    "config",
    "recognizers.yaml",
)

recognizers_path = os.getenv("SNILS_RECOGNIZERS_PATH", DEFAULT_RECOGNIZERS_PATH)
default_output_format = os.getenv("SNILS_OUTPUT_FORMAT", SnilsFormat.SPACE.value)


class SnilsJSONProvider(DefaultJSONProvider):
    """Serialize Snils values as their SPACE layout"""

    @staticmethod
    def default(o):
        if isinstance(o, Snils):
            return o.to_json()
        return DefaultJSONProvider.default(o)


app = Flask(__name__)
app.json = SnilsJSONProvider(app)
init_app(app)

recognizers: List[PatternRecognizer] = []
startup_error = None  # Track initialization failures

try:
    recognizers = load_custom_recognizers(recognizers_path)
    logger.info(f"Loaded {len(recognizers)} recognizers from {recognizers_path}")
except Exception as e:
    startup_error = str(e)
    logger.error(f"Failed to load recognizers: {e}")
    logger.warning("Running in DEGRADED mode (/analyze unavailable)")


def _invalid_request(message: str, status: int = 400):
    return jsonify({"error": "Invalid request", "message": message}), status


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


@app.route("/health", methods=["GET"])
def health():
    """Health check endpoint with service info"""
    payload = {
        "status": "healthy",
        "service": "snils-validation-api",
        "version": __version__,
        "recognizers": [r.name for r in recognizers],
        "recognizers_loaded": len(recognizers),
    }

    if startup_error:
        payload["status"] = "degraded"
        payload["error"] = startup_error
        return jsonify(payload), 503

    return jsonify(payload), 200


@app.route("/validate", methods=["POST"])
def validate():
    """
    Validate a SNILS

    Request body:
    {
        "snils": "123-456-789 64",
        "format": "S"  # optional: C / S / H, omitted = auto-detect
    }
    """
    data = _json_body()
    if data is None:
        return _invalid_request("Request body must be JSON")
    if "snils" not in data:
        return _invalid_request("snils field is required")

    try:
        snils = Snils.coerce(data["snils"], data.get("format"))
    except ValueError as e:
        logger.warning(f"Invalid format for /validate: {e}")
        return jsonify({"error": "Invalid format", "message": str(e)}), 400

    if snils is None:
        return jsonify({
            "valid": False,
            "snils": None,
            "id": None,
            "checksum": None,
            "formatted": None,
        }), 200

    return jsonify({
        "valid": True,
        "snils": snils,
        "id": snils.id,
        "checksum": snils.checksum_digits,
        "formatted": {
            "canonical": snils.format(SnilsFormat.CANONICAL),
            "space": snils.format(SnilsFormat.SPACE),
            "hyphen": snils.format(SnilsFormat.HYPHEN),
        },
    }), 200


@app.route("/format", methods=["POST"])
def format_snils():
    """
    Re-format a SNILS

    Request body:
    {
        "snils": "12345678964",
        "format": "H",  # optional output layout
        "input_format": "C"  # optional, omitted = auto-detect
    }
    """
    data = _json_body()
    if data is None:
        return _invalid_request("Request body must be JSON")
    if "snils" not in data:
        return _invalid_request("snils field is required")

    try:
        output_format = SnilsFormat(data.get("format") or default_output_format)
        formatted = Snils.string_format(data["snils"], output_format, data.get("input_format"))
    except ValueError as e:
        logger.warning(f"Invalid format for /format: {e}")
        return jsonify({"error": "Invalid format", "message": str(e)}), 400

    return jsonify({"formatted": formatted, "format": output_format.value}), 200


@app.route("/analyze", methods=["POST"])
def analyze():
    """
    Find SNILS numbers with a valid checksum in text

    Request body:
    {
        "text": "СНИЛС 112-233-445 95"
    }
    """
    start_time = time.time()

    data = _json_body()
    if data is None:
        return _invalid_request("Request body must be JSON")
    if "text" not in data:
        return _invalid_request("Text field is required")

    text = data["text"]
    if not isinstance(text, str) or not text.strip():
        return _invalid_request("Text field cannot be empty")

    if len(text) > MAX_TEXT_LENGTH:
        return jsonify({
            "error": "Text too long",
            "message": f"Maximum text length is {MAX_TEXT_LENGTH:,} characters",
        }), 422

    if startup_error:
        logger.error("Recognizers unavailable - degraded mode active")
        return jsonify({
            "error": "RECOGNIZERS_UNAVAILABLE",
            "message": startup_error,
            "status": "degraded",
        }), 503

    try:
        entities_found = []
        for recognizer in recognizers:
            results = recognizer.analyze(text=text, entities=recognizer.supported_entities)
            for result in results:
                matched_text = text[result.start:result.end]
                snils = Snils.create_from_format(matched_text)
                entities_found.append({
                    "entity_type": result.entity_type,
                    "start": result.start,
                    "end": result.end,
                    "score": round(result.score, 2),
                    "text": matched_text,
                    "canonical": snils.canonical if snils else None,
                })

        entities_found.sort(key=lambda e: e["start"])
        return jsonify({
            "entities": entities_found,
            "processing_time_ms": int((time.time() - start_time) * 1000),
        }), 200

    except Exception as e:
        logger.error(f"Unexpected error analyzing text: {e}", exc_info=True)
        return jsonify({
            "error": "Internal server error",
            "message": "An unexpected error occurred",
            "error_type": type(e).__name__,
        }), 500


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "5002")), debug=False)
