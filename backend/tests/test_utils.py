import json
import logging
from unittest.mock import MagicMock, patch

from cryptography.fernet import Fernet

from cleanflow.logging_config import JSONFormatter
from cleanflow.utils import encrypt
from cleanflow.utils.ip_extractor import get_client_ip


def make_request(headers=None, host="192.0.2.10"):
    request = MagicMock()
    request.headers = headers or {}
    request.client.host = host
    return request


def test_json_formatter_includes_sync_fields():
    record = logging.LogRecord("cleanflow.services.sync_service", logging.INFO, __file__, 1, "Sync done", None, None)
    record.sync_id = "sync-1"
    record.stats = {"total": 2}

    data = json.loads(JSONFormatter().format(record))

    assert data["message"] == "Sync done"
    assert data["level"] == "INFO"
    assert data["sync_id"] == "sync-1"
    assert data["stats"] == {"total": 2}
    assert "external_code" not in data


def test_trace_level_is_installed():
    assert logging.getLevelName(5) == "TRACE"
    assert hasattr(logging.getLogger("cleanflow"), "trace")


def test_client_ip_precedence():
    assert get_client_ip(make_request({"Forwarded": 'for="[2001:db8::1]:4711";proto=https'})) == "2001:db8::1"
    assert get_client_ip(make_request({"Forwarded": "for=198.51.100.7:8080"})) == "198.51.100.7"
    assert get_client_ip(make_request({"X-Forwarded-For": "203.0.113.5, 10.0.0.1"})) == "203.0.113.5"
    assert get_client_ip(make_request({"X-Real-IP": " 203.0.113.9 "})) == "203.0.113.9"
    assert get_client_ip(make_request()) == "192.0.2.10"


def test_key_rotation():
    old_key = Fernet.generate_key().decode()
    new_key = Fernet.generate_key().decode()

    encrypt.get_fernet.cache_clear()
    try:
        with patch.object(encrypt.settings, "encryption_key", old_key):
            token = encrypt.encrypt_data("s3cret")
            encrypt.get_fernet.cache_clear()

        with patch.object(encrypt.settings, "encryption_key", f"{new_key},{old_key}"):
            assert encrypt.decrypt_data(token) == "s3cret"
            rotated = encrypt.rotate_encryption(token)
            encrypt.get_fernet.cache_clear()

        with patch.object(encrypt.settings, "encryption_key", new_key):
            assert encrypt.decrypt_data(rotated) == "s3cret"
    finally:
        encrypt.get_fernet.cache_clear()
