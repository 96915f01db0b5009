"""
SQLAlchemy column types for SNILS.

- SnilsType stores the 9-digit body as an integer (no leading zeros, no
  checksum). Preferred: smaller and faster to index.
- SnilsCanonicalType stores the 11-character canonical string (leading zeros
  and checksum). Kept for schemas that already store SNILS as text.
"""

import logging
from typing import Any, Optional

from sqlalchemy import Integer, String
from sqlalchemy.dialects import mysql
from sqlalchemy.types import TypeDecorator

from .exceptions import SnilsConversionError
from .snils import CANONICAL_LENGTH, Snils, SnilsFormat

logger = logging.getLogger(__name__)

POSSIBLE_TYPES = ["None", "int", "str", Snils.__name__]


class SnilsType(TypeDecorator):
    """SNILS body as an unsigned integer column."""

    impl = Integer
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name in ("mysql", "mariadb"):
            return dialect.type_descriptor(mysql.INTEGER(unsigned=True))
        return dialect.type_descriptor(Integer())

    def process_bind_param(self, value: Any, dialect) -> Optional[int]:
        if value is None:
            return None

        if isinstance(value, Snils):
            # Out-of-range bodies are stored unchanged
            return value.id

        if isinstance(value, (str, int)) and not isinstance(value, bool):
            snils = Snils.create_from_format(value)
            if snils is not None:
                return snils.id

        logger.warning(f"SnilsType cannot store value of type {type(value).__name__}")
        raise SnilsConversionError(value, "snils", POSSIBLE_TYPES)

    def process_result_value(self, value: Any, dialect) -> Optional[Snils]:
        if value is None or isinstance(value, Snils):
            return value
        return Snils(int(value))

    @property
    def python_type(self):
        return Snils


class SnilsCanonicalType(TypeDecorator):
    """SNILS as a fixed 11-character canonical string column."""

    impl = String
    cache_ok = True

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("length", CANONICAL_LENGTH)
        super().__init__(*args, **kwargs)

    def process_bind_param(self, value: Any, dialect) -> Optional[str]:
        if value is None:
            return None

        if isinstance(value, Snils):
            return value.canonical

        if isinstance(value, (str, int)) and not isinstance(value, bool):
            snils = Snils.create_from_format(value)
            if snils is not None:
                return snils.canonical

        logger.warning(f"SnilsCanonicalType cannot store value of type {type(value).__name__}")
        raise SnilsConversionError(value, "snils_canonical", POSSIBLE_TYPES)

    def process_result_value(self, value: Any, dialect) -> Optional[Snils]:
        if value is None or isinstance(value, Snils):
            return value

        if isinstance(value, bool) or not isinstance(value, (str, int)):
            raise SnilsConversionError(value, Snils.__name__)

        snils = Snils.create_from_format(value, SnilsFormat.CANONICAL)
        if snils is None:
            logger.debug(f"SnilsCanonicalType read invalid canonical value {value!r}")
        return snils

    @property
    def python_type(self):
        return Snils


__all__ = ["SnilsType", "SnilsCanonicalType"]
