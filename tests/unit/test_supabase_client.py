"""Unit tests for Supabase token verification."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from docchat.auth import supabase_client
from docchat.auth.supabase_client import get_supabase_client, verify_token


@pytest.fixture(autouse=True)
def reset_client():
    supabase_client._supabase_client = None
    yield
    supabase_client._supabase_client = None


def _client_returning(user):
    client = MagicMock()
    client.auth.get_user.return_value = SimpleNamespace(user=user)
    return client


class TestVerifyToken:
    """Tests for verify_token."""

    @patch('docchat.auth.supabase_client.get_supabase_client')
    def test_valid_token(self, mock_get_client):
        user = SimpleNamespace(id="1b7c", email="a@example.com", user_metadata={"full_name": "A"})
        mock_get_client.return_value = _client_returning(user)

        assert verify_token("jwt") == {
            "id": "1b7c",
            "email": "a@example.com",
            "user_metadata": {"full_name": "A"},
        }

    @patch('docchat.auth.supabase_client.get_supabase_client')
    def test_no_user(self, mock_get_client):
        mock_get_client.return_value = _client_returning(None)

        assert verify_token("jwt") is None

    @patch('docchat.auth.supabase_client.get_supabase_client')
    def test_auth_error_returns_none(self, mock_get_client):
        client = MagicMock()
        client.auth.get_user.side_effect = RuntimeError("invalid JWT")
        mock_get_client.return_value = client

        assert verify_token("jwt") is None

    def test_missing_credentials_raise(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)

        with pytest.raises(ValueError, match="SUPABASE_URL"):
            get_supabase_client()
        with pytest.raises(ValueError):
            verify_token("jwt")

    @patch('docchat.auth.supabase_client.create_client')
    def test_client_is_cached(self, mock_create, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")

        assert get_supabase_client() is get_supabase_client()
        mock_create.assert_called_once_with("https://example.supabase.co", "anon")
