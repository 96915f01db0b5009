"""
SNILS Validator - Russian Individual Insurance Account Number
Version: 1.0.0

SNILS (Страховой номер индивидуального лицевого счёта) is an 11-digit number:
a 9-digit body followed by a 2-digit checksum, usually written as
"XXX-XXX-XXX YY".

This module implements:
- Checksum calculation (weighted sum, modulo 101)
- Parsing of the canonical, space and hyphen layouts
- The Snils value type used by the ORM column types, template filters
  and Presidio recognizers of this package

Parsing and formatting never raise on bad input: they return None.
Only an unknown format code (a programmer error) raises ValueError.

References:
- PFR information message of 20.12.2011, "Rules for checking personified
  accounting documents", section 8 (checksum algorithm)
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Final, Optional, Union

import regex as re

logger = logging.getLogger(__name__)

# The checksum is only defined for bodies above 001-001-998
ID_MIN: Final[int] = 1001999
ID_MAX: Final[int] = 999999999

BODY_LENGTH: Final[int] = 9
CHECKSUM_LENGTH: Final[int] = 2
CANONICAL_LENGTH: Final[int] = BODY_LENGTH + CHECKSUM_LENGTH

# Longer inputs are rejected before any regex work
MAX_INPUT_LENGTH: Final[int] = 100

SEPARATOR_SPACE: Final[str] = " "
SEPARATOR_HYPHEN: Final[str] = "-"


class SnilsFormat(str, Enum):
    """Textual layouts of a SNILS"""

    CANONICAL = "C"  # 12345678964
    SPACE = "S"  # 123-456-789 64
    HYPHEN = "H"  # 123-456-789-64


_NON_DIGITS = re.compile(r"[^0-9]")
_CANONICAL_REGEX = re.compile(r"[0-9]*")
_DIGITS_REGEX = re.compile(r"[0-9]+")
_SEPARATED_REGEX = {
    SnilsFormat.SPACE: re.compile(r"([0-9]{3})-([0-9]{3})-([0-9]{3}) ([0-9]{2})"),
    SnilsFormat.HYPHEN: re.compile(r"([0-9]{3})-([0-9]{3})-([0-9]{3})-([0-9]{2})"),
}

SnilsLike = Union["Snils", str, int, None]


def _as_format(fmt: Union[SnilsFormat, str]) -> SnilsFormat:
    try:
        return SnilsFormat(fmt)
    except ValueError:
        raise ValueError(f"Unknown SNILS format: {fmt!r}") from None


def _split(text: str, fmt: SnilsFormat) -> tuple[Optional[str], Optional[str]]:
    """Split text in the given layout into (body, checksum) digit strings."""
    if fmt is SnilsFormat.CANONICAL:
        if not _CANONICAL_REGEX.fullmatch(text):
            return None, None
        padded = text.rjust(CANONICAL_LENGTH, "0")
        return padded[:BODY_LENGTH], padded[-CHECKSUM_LENGTH:]

    match = _SEPARATED_REGEX[fmt].fullmatch(text)
    if not match:
        return None, None
    return "".join(match.groups()[:3]), match.group(4)


class Snils:
    """
    SNILS value: a 9-digit body, the checksum is always derived from it.

    The constructor does NOT check the body range. This lets corrupted values
    loaded from storage be inspected and repaired; use is_valid() to check.
    Validated instances come from create_from_format().

    Example:
        >>> snils = Snils.create_from_format("123-456-789 64")
        >>> snils.id
        123456789
        >>> snils.format(SnilsFormat.HYPHEN)
        '123-456-789-64'
    """

    __slots__ = ("_id",)

    NAME: Final[str] = "snils"

    def __init__(self, id: int):
        self._id = id

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def create_from_format(
        cls,
        value: Union[str, int],
        format: Union[SnilsFormat, str, None] = None,
    ) -> Optional[Snils]:
        """
        Create a validated SNILS from text or an integer.

        Args:
            value: SNILS in any supported layout
            format: Layout code (SnilsFormat); None strips every non-digit
                character and parses the rest as canonical

        Returns:
            Snils instance, or None if the value is malformed, out of range
            or has a wrong checksum
        """
        snils_id = cls.validate(value, format)
        return cls(snils_id) if snils_id is not None else None

    @classmethod
    def coerce(
        cls,
        value: SnilsLike,
        format_hint: Union[SnilsFormat, str, None] = None,
    ) -> Optional[Snils]:
        """Resolve an instance, string or integer into a Snils (or None)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            return None
        return cls.create_from_format(value, format_hint)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def id(self) -> int:
        """Body of the number, without checksum"""
        return self._id

    def set_id(self, id: int) -> Snils:
        """
        Replace the body in place WITHOUT checksum or range checks.

        Intended for repairing stored values. Not safe to call while other
        threads read the same instance.
        """
        self._id = id
        return self

    @property
    def canonical(self) -> Optional[str]:
        """SNILS as "XXXXXXXXXYY" (None if the body is out of range)"""
        return self.format(SnilsFormat.CANONICAL)

    @property
    def checksum_digits(self) -> Optional[str]:
        return self.checksum(self._id)

    def is_valid(self) -> bool:
        return self.is_id_valid(self._id)

    # ------------------------------------------------------------------
    # Checksum and validation
    # ------------------------------------------------------------------

    @staticmethod
    def is_id_valid(id: Union[str, int, None]) -> bool:
        """Check that a body lies in [ID_MIN, ID_MAX]."""
        if isinstance(id, bool) or id is None:
            return False
        if isinstance(id, str):
            if len(id) > MAX_INPUT_LENGTH or not _DIGITS_REGEX.fullmatch(id):
                return False
            id = int(id)
        if not isinstance(id, int):
            return False
        return ID_MIN <= id <= ID_MAX

    @classmethod
    def checksum(cls, id: Union[str, int, None]) -> Optional[str]:
        """
        Calculate the 2-digit checksum of a SNILS body.

        Algorithm:
        1. Left-pad the body to 9 digits
        2. Multiply each digit by its position counted from the right (9..1)
        3. Sum all products: S = Σ(digit[i] × weight[i])
        4. Checksum = last two digits of (S mod 101), zero-padded

        Remainders 100 and 0 both give "00"; this is what the regulation
        prescribes.

        Args:
            id: SNILS body (int or string of digits)

        Returns:
            2-digit string, or None if the body is outside [ID_MIN, ID_MAX]

        Examples:
            >>> Snils.checksum(112233445)
            '95'
            >>> Snils.checksum(113353201)  # 100 % 101 = 100
            '00'
            >>> Snils.checksum(1001998)
            None
        """
        if not cls.is_id_valid(id):
            logger.debug(f"checksum undefined for {type(id).__name__} body outside [{ID_MIN}, {ID_MAX}]")
            return None

        body = str(int(id)).rjust(BODY_LENGTH, "0")
        weighted_sum = sum(
            int(digit) * weight
            for digit, weight in zip(body, range(BODY_LENGTH, 0, -1))
        )
        return f"{weighted_sum % 101:02d}"[-CHECKSUM_LENGTH:]

    @classmethod
    def validate(
        cls,
        value: SnilsLike,
        format_hint: Union[SnilsFormat, str, None] = None,
    ) -> Optional[int]:
        """
        Validate a SNILS (with checksum) by its formal attributes.

        Existence of the number is NOT checked; that requires a request to
        the pension fund registry.

        Algorithm:
        1. Without a format hint, drop every non-digit character and parse
           the rest as canonical
        2. CANONICAL: left-pad to 11 digits, body = first 9, checksum = last 2
           (longer digit strings are split the same way)
        3. SPACE / HYPHEN: exact match of "DDD-DDD-DDD<sep>DD"
        4. Reject bodies outside [ID_MIN, ID_MAX]
        5. Accept if the given checksum equals checksum(body)

        Inputs longer than MAX_INPUT_LENGTH characters (or integers with more
        digits) are rejected before step 1, even when they contain a valid
        number among separators. This bounds regex work on untrusted text.

        Args:
            value: Snils instance, string, integer or None
            format_hint: Layout code (SnilsFormat) or None for auto-detection

        Returns:
            The body as int, or None if validation fails

        Raises:
            ValueError: If format_hint is not a known layout code

        Examples:
            >>> Snils.validate("123-456-789 64")
            123456789
            >>> Snils.validate(" 123_456*789=64 ")
            123456789
            >>> Snils.validate("123-456-789-64", SnilsFormat.SPACE)
            None  # Wrong separator
        """
        if isinstance(value, cls):
            return value.id if value.is_valid() else None

        if value is None or isinstance(value, bool) or not isinstance(value, (str, int)):
            logger.debug(f"validate rejected unsupported input type {type(value).__name__}")
            return None

        if isinstance(value, int) and abs(value) >= 10 ** MAX_INPUT_LENGTH:
            logger.debug(f"validate rejected integer with more than {MAX_INPUT_LENGTH} digits")
            return None

        text = str(value)
        if len(text) > MAX_INPUT_LENGTH:
            logger.debug(f"validate rejected excessive length {len(text)}")
            return None

        if format_hint is None:
            text = _NON_DIGITS.sub("", text)
            fmt = SnilsFormat.CANONICAL
        else:
            fmt = _as_format(format_hint)

        body, checksum = _split(text, fmt)
        if body is None or checksum is None:
            logger.debug(f"validate rejected malformed input for format {fmt.name}")
            return None

        if not cls.is_id_valid(body):
            logger.debug(f"validate rejected body out of range: {body}")
            return None

        expected = cls.checksum(body)
        if checksum != expected:
            logger.debug(f"validate checksum mismatch: expected {expected}, got {checksum}")
            return None

        return int(body)

    # ------------------------------------------------------------------
    # Formatting
    # ------------------------------------------------------------------

    def format(self, fmt: Union[SnilsFormat, str] = SnilsFormat.SPACE) -> Optional[str]:
        """
        Format the SNILS in the given layout.

        Returns:
            Formatted string, or None if the body is out of range

        Raises:
            ValueError: If fmt is not a known layout code
        """
        fmt = _as_format(fmt)
        checksum = self.checksum_digits
        if checksum is None:
            return None

        digits = str(self._id).rjust(BODY_LENGTH, "0") + checksum
        if fmt is SnilsFormat.CANONICAL:
            return digits

        separator = SEPARATOR_SPACE if fmt is SnilsFormat.SPACE else SEPARATOR_HYPHEN
        return f"{digits[0:3]}-{digits[3:6]}-{digits[6:9]}{separator}{digits[9:11]}"

    @classmethod
    def string_format(
        cls,
        value: SnilsLike,
        fmt: Union[SnilsFormat, str] = SnilsFormat.SPACE,
        input_format: Union[SnilsFormat, str, None] = None,
    ) -> Optional[str]:
        """Format an instance, string or integer; None if it cannot be parsed."""
        snils = cls.coerce(value, input_format)
        return snils.format(fmt) if snils is not None else None

    # ------------------------------------------------------------------
    # Comparison and predicates
    # ------------------------------------------------------------------

    def is_equal(self, other: SnilsLike) -> bool:
        """
        Compare with another SNILS given as instance, string or integer.

        Strings and integers are parsed with format auto-detection. Both
        sides must hold a valid body; otherwise the result is False.
        """
        if other is None or not self.is_valid():
            return False
        other_id = self.validate(self.coerce(other))
        return other_id is not None and other_id == self._id

    @classmethod
    def is_snils_object(cls, value: object) -> bool:
        return isinstance(value, cls)

    @classmethod
    def is_valid_snils(cls, value: object) -> bool:
        return isinstance(value, cls) and value.is_valid()

    # ------------------------------------------------------------------
    # Python protocols
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Snils):
            return NotImplemented
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __int__(self) -> int:
        return self._id

    def __str__(self) -> str:
        return self.format(SnilsFormat.SPACE) or ""

    def __repr__(self) -> str:
        return (
            f"Snils(id={self._id!r}, valid={self.is_valid()}, "
            f"checksum={self.checksum_digits!r}, canonical={self.canonical!r})"
        )

    def to_json(self) -> str:
        """JSON representation: the SPACE layout ("" when out of range)"""
        return str(self)

    def __getstate__(self) -> dict:
        return {"id": self._id}

    def __setstate__(self, state: dict) -> None:
        self._id = state["id"]


# ============================================================================
# Presidio Integration Functions
# ============================================================================
# Called by ValidatedPatternRecognizer; they must return True (valid) or
# False (invalid)
# ============================================================================

def validate_snils(text: Union[str, int]) -> bool:
    """
    Validate a SNILS written in any layout.

    Examples:
        >>> validate_snils("112-233-445 95")
        True
        >>> validate_snils("112-233-445 96")
        False
    """
    return Snils.validate(text) is not None


def checksum_snils(text: str) -> bool:
    """Presidio validator wrapper for SNILS checksum."""
    return validate_snils(text)


__all__ = [
    "ID_MIN",
    "ID_MAX",
    "MAX_INPUT_LENGTH",
    "SEPARATOR_SPACE",
    "SEPARATOR_HYPHEN",
    "Snils",
    "SnilsFormat",
    "SnilsLike",
    "validate_snils",
    "checksum_snils",
]
