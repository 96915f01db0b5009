"""
Jinja2 filters and tests for SNILS.

    {{ person.snils|snils_format }}            -> 123-456-789 64
    {{ "12345678964"|snils_format("H") }}      -> 123-456-789-64
    {% if person.snils is valid_snils %}...{% endif %}
"""

from typing import Optional, Union

from flask import Flask
from jinja2 import Environment

from .snils import Snils, SnilsFormat, SnilsLike


def snils_format(
    value: SnilsLike,
    fmt: Union[SnilsFormat, str] = SnilsFormat.SPACE,
    input_format: Union[SnilsFormat, str, None] = None,
) -> Optional[str]:
    return Snils.string_format(value, fmt, input_format)


FILTERS = {
    "snils_format": snils_format,
}

TESTS = {
    Snils.NAME: Snils.is_snils_object,
    f"valid_{Snils.NAME}": Snils.is_valid_snils,
}


def register_jinja(env: Environment) -> Environment:
    """Install SNILS filters and tests on a Jinja2 environment."""
    env.filters.update(FILTERS)
    env.tests.update(TESTS)
    return env


def init_app(app: Flask) -> Flask:
    """Install SNILS filters and tests on a Flask application."""
    register_jinja(app.jinja_env)
    return app


__all__ = ["snils_format", "FILTERS", "TESTS", "register_jinja", "init_app"]
