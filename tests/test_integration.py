"""
Integration Tests for the SNILS Validation API

Test coverage:
- Flask API endpoints (/health, /validate, /format, /analyze)
- Full request/response cycle
- Error handling and degraded mode
"""

import json

import pytest

from gos_validators import __version__
from gos_validators import app as app_module
from gos_validators.snils import Snils


@pytest.fixture
def client():
    """Flask test client"""
    app_module.app.config["TESTING"] = True
    with app_module.app.test_client() as client:
        yield client


def _post(client, path, payload):
    return client.post(path, data=json.dumps(payload), content_type="application/json")


# ============================================================================
# Health Endpoint Tests
# ============================================================================

class TestHealthEndpoint:
    """Test /health endpoint"""

    def test_health_check_success(self, client):
        response = client.get("/health")
        data = json.loads(response.data)

        assert response.status_code == 200
        assert data["status"] == "healthy"
        assert data["version"] == __version__
        assert data["recognizers_loaded"] == 1
        assert data["recognizers"] == ["SNILS Pattern Recognizer"]

    def test_health_check_degraded(self, client, monkeypatch):
        monkeypatch.setattr(app_module, "startup_error", "Recognizers YAML file not found")
        response = client.get("/health")
        data = json.loads(response.data)

        assert response.status_code == 503
        assert data["status"] == "degraded"
        assert "not found" in data["error"]


# ============================================================================
# Validate Endpoint Tests
# ============================================================================

class TestValidateEndpoint:
    """Test /validate endpoint"""

    def test_valid_snils(self, client):
        response = _post(client, "/validate", {"snils": "123_456*789=64"})
        data = json.loads(response.data)

        assert response.status_code == 200
        assert data["valid"] is True
        assert data["snils"] == "123-456-789 64"
        assert data["id"] == 123456789
        assert data["checksum"] == "64"
        assert data["formatted"] == {
            "canonical": "12345678964",
            "space": "123-456-789 64",
            "hyphen": "123-456-789-64",
        }

    def test_integer_input(self, client):
        data = json.loads(_post(client, "/validate", {"snils": 12345678964}).data)
        assert data["valid"] is True

    def test_strict_format(self, client):
        data = json.loads(_post(client, "/validate", {"snils": "123-456-789-64", "format": "S"}).data)
        assert data["valid"] is False
        assert data["snils"] is None
        assert data["id"] is None

    def test_invalid_checksum(self, client):
        response = _post(client, "/validate", {"snils": "123-456-789 65"})
        assert response.status_code == 200
        assert json.loads(response.data)["valid"] is False

    def test_unknown_format(self, client):
        response = _post(client, "/validate", {"snils": "123-456-789 64", "format": "X"})
        assert response.status_code == 400
        assert json.loads(response.data)["error"] == "Invalid format"

    def test_missing_field(self, client):
        assert _post(client, "/validate", {"value": "1"}).status_code == 400

    def test_non_json_body(self, client):
        response = client.post("/validate", data="12345678964", content_type="text/plain")
        assert response.status_code == 400


# ============================================================================
# Format Endpoint Tests
# ============================================================================

class TestFormatEndpoint:
    """Test /format endpoint"""

    def test_default_output_format(self, client):
        data = json.loads(_post(client, "/format", {"snils": "12345678964"}).data)
        assert data == {"formatted": "123-456-789 64", "format": "S"}

    def test_explicit_formats(self, client):
        payload = {"snils": "123-456-789 64", "format": "H", "input_format": "S"}
        data = json.loads(_post(client, "/format", payload).data)
        assert data["formatted"] == "123-456-789-64"

    def test_unparseable_input(self, client):
        response = _post(client, "/format", {"snils": "garbage", "format": "C"})
        assert response.status_code == 200
        assert json.loads(response.data)["formatted"] is None

    def test_unknown_output_format(self, client):
        response = _post(client, "/format", {"snils": "12345678964", "format": "Q"})
        assert response.status_code == 400


# ============================================================================
# Analyze Endpoint Tests
# ============================================================================

class TestAnalyzeEndpoint:
    """Test /analyze endpoint"""

    def test_finds_valid_snils_only(self, client):
        text = "СНИЛС: 112-233-445 95, ошибочный: 112-233-445 96, телефон 89161234567"
        response = _post(client, "/analyze", {"text": text})
        data = json.loads(response.data)

        assert response.status_code == 200
        assert len(data["entities"]) == 1
        entity = data["entities"][0]
        assert entity["entity_type"] == "RU_SNILS"
        assert entity["text"] == "112-233-445 95"
        assert entity["canonical"] == "11223344595"
        assert text[entity["start"]:entity["end"]] == entity["text"]
        assert "processing_time_ms" in data

    def test_entities_sorted_by_position(self, client):
        text = "11223344595 и 123-456-789-64"
        data = json.loads(_post(client, "/analyze", {"text": text}).data)
        assert [e["canonical"] for e in data["entities"]] == ["11223344595", "12345678964"]

    def test_no_entities(self, client):
        data = json.loads(_post(client, "/analyze", {"text": "нет номеров"}).data)
        assert data["entities"] == []

    @pytest.mark.parametrize("payload", [{}, {"text": ""}, {"text": "   "}, {"text": 42}])
    def test_invalid_request(self, client, payload):
        assert _post(client, "/analyze", payload).status_code == 400

    def test_text_too_long(self, client):
        response = _post(client, "/analyze", {"text": "a" * 10001})
        assert response.status_code == 422

    def test_degraded_mode(self, client, monkeypatch):
        monkeypatch.setattr(app_module, "startup_error", "boom")
        response = _post(client, "/analyze", {"text": "112-233-445 95"})
        assert response.status_code == 503


# ============================================================================
# JSON Provider Tests
# ============================================================================

class TestJSONProvider:
    """Test Snils serialization through the app's JSON provider"""

    def test_snils_serialized_as_space_layout(self):
        assert json.loads(app_module.app.json.dumps({"snils": Snils(123456789)})) == {"snils": "123-456-789 64"}

    def test_out_of_range_snils_serialized_as_empty_string(self):
        assert app_module.app.json.dumps(Snils(0)) == '""'

    def test_other_types_still_rejected(self):
        with pytest.raises(TypeError):
            app_module.app.json.dumps(object())
