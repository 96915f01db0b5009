"""
Unit Tests for SNILS Jinja2 filters and tests
"""

import pytest
from flask import Flask, render_template_string
from jinja2 import Environment

from gos_validators.snils import Snils
from gos_validators.templating import init_app, register_jinja, snils_format


@pytest.fixture
def env():
    return register_jinja(Environment(autoescape=True))


def _render(env, source, **context):
    return env.from_string(source).render(**context)


class TestSnilsFormatFilter:
    """Test snils_format filter"""

    @pytest.mark.parametrize(
        "value,args,expected",
        [
            (Snils(123456789), (), "123-456-789 64"),
            ("12345678964", ("H",), "123-456-789-64"),
            (12345678964, ("C",), "12345678964"),
            ("123-456-789 64", ("C", "S"), "12345678964"),
        ],
    )
    def test_formats(self, value, args, expected):
        assert snils_format(value, *args) == expected

    @pytest.mark.parametrize("value", [None, "", "garbage", 123, Snils(0)])
    def test_unparseable_returns_none(self, value):
        assert snils_format(value) is None

    def test_strict_input_format(self):
        assert snils_format("123-456-789-64", "C", "S") is None

    def test_in_template(self, env):
        assert _render(env, "{{ v|snils_format }}", v=Snils(123456789)) == "123-456-789 64"
        assert _render(env, "{{ v|snils_format('H') }}", v="12345678964") == "123-456-789-64"
        assert _render(env, "[{{ v|snils_format|default('', true) }}]", v="bad") == "[]"


class TestSnilsTests:
    """Test `is snils` and `is valid_snils`"""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (Snils(123456789), "yes"),
            (Snils(0), "yes"),
            ("12345678964", "no"),
            (None, "no"),
        ],
    )
    def test_is_snils(self, env, value, expected):
        assert _render(env, "{{ 'yes' if v is snils else 'no' }}", v=value) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [
            (Snils(123456789), "yes"),
            (Snils(0), "no"),
            (Snils(1000000000), "no"),
            ("12345678964", "no"),
        ],
    )
    def test_is_valid_snils(self, env, value, expected):
        assert _render(env, "{{ 'yes' if v is valid_snils else 'no' }}", v=value) == expected


class TestFlaskIntegration:
    """Test init_app on a Flask application"""

    def test_filters_available_in_flask_templates(self):
        app = init_app(Flask(__name__))

        with app.app_context():
            rendered = render_template_string(
                "{{ v|snils_format }}{% if v is valid_snils %} ok{% endif %}",
                v=Snils(1001999),
            )

        assert rendered == "001-001-999 65 ok"
