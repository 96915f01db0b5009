"""
Presidio recognizers for SNILS detection in free text.

Regex patterns find SNILS-shaped numbers; the checksum is verified during
pattern matching so numbers with a wrong checksum never reach the results.
"""

import logging
from typing import Callable, Dict, List, Optional

import regex
import yaml
from presidio_analyzer import Pattern, PatternRecognizer

from .snils import checksum_snils, validate_snils

logger = logging.getLogger(__name__)

SNILS_ENTITY = "RU_SNILS"

DEFAULT_SNILS_CONTEXT = [
    "снилс",
    "страховой",
    "пенсионного",
    "snils",
    "insurance",
]

MAX_REGEX_LENGTH = 500

VALIDATOR_MAP: Dict[str, Callable[[str], bool]] = {
    "checksum_snils": checksum_snils,
    "validate_snils": validate_snils,
}

_NESTED_QUANTIFIERS = regex.compile(r"\([^)]*[*+]\)[*+]")


class ValidatedPatternRecognizer(PatternRecognizer):
    """
    Pattern recognizer with integrated checksum validation.
    Rejects invalid checksums DURING pattern matching, not in post-processing.

    Args:
        validator_func: Callable that takes the matched text and returns bool
        **kwargs: Additional arguments passed to PatternRecognizer

    Example:
        >>> recognizer = ValidatedPatternRecognizer(
        ...     supported_entity="RU_SNILS",
        ...     name="SNILS Pattern Recognizer",
        ...     patterns=[Pattern("snils_space", r"\\d{3}-\\d{3}-\\d{3} \\d{2}", 0.5)],
        ...     validator_func=checksum_snils
        ... )
    """

    def __init__(self, validator_func: Optional[Callable[[str], bool]] = None, **kwargs):
        super().__init__(**kwargs)
        self.validator_func = validator_func

    def _execute_validator(self, pattern_text: str, context: str = "VALIDATE") -> bool:
        is_valid = self.validator_func(pattern_text)
        logger.debug(f"[{context}] {self.name}: pattern='{pattern_text}' result={is_valid}")

        if not is_valid:
            logger.debug(f"[REJECTED] {self.name}: '{pattern_text}' failed validation")

        return is_valid

    def validate_result(self, pattern_text: str) -> Optional[bool]:
        """
        Called BEFORE scoring.

        Returns:
            None (use pattern score), True (boost to 1.0) or False (drop match)
        """
        if self.validator_func:
            return self._execute_validator(pattern_text, "VALIDATE")
        return None

    def invalidate_result(self, pattern_text: str) -> Optional[bool]:
        """Return True to INVALIDATE (reject) the match."""
        if self.validator_func:
            return not self._execute_validator(pattern_text, "INVALIDATE")
        return None


def build_snils_recognizer(
    score_separated: float = 0.5,
    score_canonical: float = 0.3,
    context: Optional[List[str]] = None,
    supported_language: str = "ru",
) -> ValidatedPatternRecognizer:
    """
    Build the default SNILS recognizer.

    Bare 11-digit numbers get a lower base score than separated ones since
    they collide with phone numbers and other identifiers.
    """
    patterns = [
        Pattern(
            "snils_separated",
            r"(?<!\d)\d{3}-\d{3}-\d{3}[ -]\d{2}(?!\d)",
            score_separated,
        ),
        Pattern("snils_canonical", r"(?<!\d)\d{11}(?!\d)", score_canonical),
    ]
    return ValidatedPatternRecognizer(
        supported_entity=SNILS_ENTITY,
        name="SNILS Pattern Recognizer",
        supported_language=supported_language,
        patterns=patterns,
        context=context if context is not None else DEFAULT_SNILS_CONTEXT,
        validator_func=checksum_snils,
    )


def _check_regex(name: str, regex_str: str) -> None:
    if len(regex_str) > MAX_REGEX_LENGTH:
        logger.warning(f"Regex pattern too long ({len(regex_str)} chars) in {name}: {regex_str[:50]}...")
        raise ValueError(f"Regex pattern exceeds maximum length of {MAX_REGEX_LENGTH} characters")

    if _NESTED_QUANTIFIERS.search(regex_str):
        logger.warning(f"Potentially dangerous nested quantifiers in {name}: {regex_str}")
        raise ValueError("Regex contains nested quantifiers which may cause ReDoS")

    try:
        regex.compile(regex_str)
    except regex.error as e:
        logger.error(f"Invalid regex in {name}: {e}")
        raise ValueError(f"Invalid regex pattern: {e}")


def load_custom_recognizers(yaml_path: str) -> List[PatternRecognizer]:
    """
    Load recognizers from a YAML configuration.

    Expected layout:

        recognizers:
          - name: SNILS Pattern Recognizer
            supported_entity: RU_SNILS
            supported_language: ru
            context: [снилс]
            validator_func: checksum_snils
            patterns:
              - name: snils_separated
                regex: '\\d{3}-\\d{3}-\\d{3}[ -]\\d{2}'
                score: 0.5

    Raises:
        FileNotFoundError: If the file does not exist
        yaml.YAMLError: If the file is not valid YAML
        ValueError: If a pattern is too long, unsafe or does not compile
    """
    recognizers: List[PatternRecognizer] = []

    try:
        with open(yaml_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except FileNotFoundError:
        logger.error(f"Recognizers YAML file not found: {yaml_path}")
        raise
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse recognizers YAML: {e}")
        raise

    if not config or "recognizers" not in config:
        logger.warning("No recognizers found in YAML config")
        return recognizers

    for rec_config in config["recognizers"]:
        name = rec_config["name"]
        supported_language = rec_config.get("supported_language", "en")
        supported_entity = rec_config.get("supported_entity", name)
        context = rec_config.get("context") or None

        patterns = []
        for pattern_config in rec_config.get("patterns", []):
            regex_str = pattern_config["regex"]
            _check_regex(name, regex_str)
            patterns.append(
                Pattern(
                    name=pattern_config["name"],
                    regex=regex_str,
                    score=pattern_config["score"],
                )
            )

        validator_func_name = rec_config.get("validator_func")
        validator_func = VALIDATOR_MAP.get(validator_func_name) if validator_func_name else None

        if validator_func:
            recognizer = ValidatedPatternRecognizer(
                supported_entity=supported_entity,
                name=name,
                supported_language=supported_language,
                patterns=patterns,
                context=context,
                validator_func=validator_func,
            )
            logger.info(f"ValidatedPatternRecognizer with '{validator_func_name}' for {name}")
        else:
            if validator_func_name:
                logger.warning(f"Validator '{validator_func_name}' not found, using standard PatternRecognizer")
            recognizer = PatternRecognizer(
                supported_entity=supported_entity,
                name=name,
                supported_language=supported_language,
                patterns=patterns,
                context=context,
            )

        recognizers.append(recognizer)
        logger.info(f"Loaded custom recognizer: {name} ({supported_entity})")

    return recognizers


__all__ = [
    "SNILS_ENTITY",
    "VALIDATOR_MAP",
    "ValidatedPatternRecognizer",
    "build_snils_recognizer",
    "load_custom_recognizers",
]
