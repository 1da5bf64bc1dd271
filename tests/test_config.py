"""
Tests for environment configuration loading.
"""

import os
from unittest.mock import MagicMock, patch

import pytest

from intake.config import load_settings, missing_variables, normalize_supabase_url
from intake.errors import ConfigurationError
from intake.supabase_client import create_supabase_client

FULL_ENV = {
    "OPENAI_API_KEY": "sk-test",
    "SUPABASE_URL": "https://proj.supabase.co",
    "SUPABASE_ANON_KEY": "anon-key",
}


@pytest.fixture(autouse=True)
def no_dotenv():
    with patch("intake.config._load_dotenv"):
        yield


def test_all_variables_present():
    with patch.dict(os.environ, FULL_ENV, clear=True):
        settings = load_settings()

    assert settings.openai_api_key == "sk-test"
    assert settings.openai_model == "gpt-4o-mini"
    assert settings.supabase_url == "https://proj.supabase.co/"
    assert settings.port == 5000


def test_missing_variables_are_listed():
    with patch.dict(os.environ, {"OPENAI_API_KEY": "sk-test"}, clear=True):
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings()

    message = exc_info.value.user_message
    assert "SUPABASE_URL" in message
    assert "SUPABASE_ANON_KEY" in message
    assert "OPENAI_API_KEY" not in message


def test_blank_value_counts_as_missing():
    with patch.dict(os.environ, {**FULL_ENV, "SUPABASE_ANON_KEY": "   "}, clear=True):
        assert missing_variables() == ["SUPABASE_ANON_KEY"]


def test_model_and_port_overrides():
    env = {**FULL_ENV, "OPENAI_MODEL": "gpt-4o", "PORT": "8080"}
    with patch.dict(os.environ, env, clear=True):
        settings = load_settings()

    assert settings.openai_model == "gpt-4o"
    assert settings.port == 8080


def test_invalid_port():
    with patch.dict(os.environ, {**FULL_ENV, "PORT": "http"}, clear=True):
        with pytest.raises(ConfigurationError):
            load_settings()


def test_normalize_supabase_url():
    assert normalize_supabase_url("https://x.supabase.co") == "https://x.supabase.co/"
    assert normalize_supabase_url("https://x.supabase.co/") == "https://x.supabase.co/"
    assert normalize_supabase_url("") is None


class TestSupabaseClient:

    def test_missing_key_is_a_configuration_error(self):
        with pytest.raises(ConfigurationError):
            create_supabase_client("https://proj.supabase.co", "")

    def test_storage_url_gets_trailing_slash(self):
        fake = MagicMock()
        fake.storage_url = "https://proj.supabase.co/storage/v1"
        with patch("intake.supabase_client.create_client", return_value=fake) as create:
            client = create_supabase_client("https://proj.supabase.co", "anon-key")

        create.assert_called_once_with("https://proj.supabase.co/", "anon-key")
        assert str(client.storage_url) == "https://proj.supabase.co/storage/v1/"

    def test_client_creation_failure(self):
        with patch("intake.supabase_client.create_client", side_effect=Exception("Invalid API key")):
            with pytest.raises(ConfigurationError):
                create_supabase_client("https://proj.supabase.co", "bad")
