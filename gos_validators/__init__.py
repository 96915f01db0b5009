"""
Gos Validators Package
Version: 1.0.0

SNILS checksum validation, parsing and formatting, with adapters for
SQLAlchemy (gos_validators.sqlalchemy_types, gos_validators.mixins),
Jinja2 / Flask (gos_validators.templating) and Presidio text detection.
"""

__version__ = "1.0.0"

from .exceptions import InvalidSnilsError, SnilsConversionError, SnilsError
from .recognizers import (
    SNILS_ENTITY,
    ValidatedPatternRecognizer,
    build_snils_recognizer,
    load_custom_recognizers,
)
from .snils import (
    ID_MAX,
    ID_MIN,
    Snils,
    SnilsFormat,
    checksum_snils,
    validate_snils,
)

__all__ = [
    # Core
    "ID_MIN",
    "ID_MAX",
    "Snils",
    "SnilsFormat",
    "validate_snils",
    "checksum_snils",
    # Errors
    "SnilsError",
    "SnilsConversionError",
    "InvalidSnilsError",
    # Presidio integration
    "SNILS_ENTITY",
    "ValidatedPatternRecognizer",
    "build_snils_recognizer",
    "load_custom_recognizers",
]
