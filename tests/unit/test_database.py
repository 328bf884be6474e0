"""
Tests for the Supabase session store.

The Supabase client is replaced with a MagicMock so no network access is needed;
the tests check the calls made and the translation of failures to DatabaseError.
"""

import pytest
from unittest.mock import MagicMock, patch

import database
from database import SessionDB, get_supabase_client
from exceptions import DatabaseError
from session_logic import session_to_dict


@pytest.fixture
def mock_client():
    client = MagicMock()
    with patch("database.get_supabase_client", return_value=client):
        yield client


@pytest.fixture
def fresh_client_cache():
    get_supabase_client.cache_clear()
    yield
    get_supabase_client.cache_clear()


# =============================================================================
# Client
# =============================================================================


def test_client_requires_env(monkeypatch, fresh_client_cache):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_KEY", raising=False)

    with pytest.raises(DatabaseError):
        get_supabase_client()


def test_client_is_created_once(monkeypatch, fresh_client_cache):
    monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
    monkeypatch.setenv("SUPABASE_KEY", "key")

    with patch.object(database, "create_client", return_value=MagicMock()) as create:
        first = get_supabase_client()
        second = get_supabase_client()

    assert first is second
    create.assert_called_once_with("https://example.supabase.co", "key")


# =============================================================================
# SessionDB
# =============================================================================


def test_save_session_upserts_document(mock_client, sample_session):
    SessionDB.save_session(sample_session)

    mock_client.table.assert_called_with("sessions")
    upsert = mock_client.table.return_value.upsert
    row = upsert.call_args.args[0]
    assert row["id"] == "s1"
    assert row["payload"] == session_to_dict(sample_session)
    assert "updated_at" in row
    assert upsert.call_args.kwargs == {"on_conflict": "id"}
    upsert.return_value.execute.assert_called_once()


def test_save_session_failure_raises_database_error(mock_client, sample_session):
    mock_client.table.return_value.upsert.return_value.execute.side_effect = RuntimeError("boom")

    with pytest.raises(DatabaseError):
        SessionDB.save_session(sample_session)


def test_get_session_round_trip(mock_client, sample_session):
    query = mock_client.table.return_value.select.return_value.eq.return_value
    query.execute.return_value.data = [{"id": "s1", "payload": session_to_dict(sample_session)}]

    assert SessionDB.get_session("s1") == sample_session
    mock_client.table.return_value.select.return_value.eq.assert_called_with("id", "s1")


def test_get_session_missing(mock_client):
    query = mock_client.table.return_value.select.return_value.eq.return_value
    query.execute.return_value.data = []

    assert SessionDB.get_session("nope") is None


def test_get_session_malformed_payload(mock_client):
    query = mock_client.table.return_value.select.return_value.eq.return_value
    query.execute.return_value.data = [{"id": "s1", "payload": {"players": []}}]

    with pytest.raises(DatabaseError):
        SessionDB.get_session("s1")


def test_delete_session(mock_client):
    SessionDB.delete_session("s1")

    mock_client.table.return_value.delete.return_value.in_.assert_called_with("id", ["s1"])


def test_list_sessions(mock_client):
    rows = [{"id": "a", "updated_at": "2026-01-01T00:00:00+00:00"}]
    mock_client.table.return_value.select.return_value.order.return_value.execute.return_value.data = rows

    assert SessionDB.list_sessions() == rows


def test_list_sessions_failure(mock_client):
    mock_client.table.side_effect = RuntimeError("network down")

    with pytest.raises(DatabaseError):
        SessionDB.list_sessions()
