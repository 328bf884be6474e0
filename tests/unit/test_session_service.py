"""
Tests for the session service layer.

Sessions are saved to a temporary directory; the remote store is patched out.
"""

import pytest
from unittest.mock import patch

import session_service
from app_types import RejectReason
from exceptions import SessionError, ValidationError
from session_logic import SessionManager, export_session_json


def test_create_new_session_saves_locally(sessions_dir):
    with patch("session_service.SessionDB") as db:
        session = session_service.create_new_session("thursday", num_courts=3, date="2026-01-10", time="19:00")

    assert len(session.courts) == 3
    assert SessionManager.load("thursday") == session
    db.save_session.assert_not_called()


def test_create_new_session_with_sync(sessions_dir):
    with patch("session_service.SessionDB") as db:
        session = session_service.create_new_session("thursday", sync=True)

    db.save_session.assert_called_once_with(session)


def test_load_missing_session(sessions_dir):
    with pytest.raises(SessionError):
        session_service.load_session("nope")


def test_run_operation_saves_applied_result(sample_session, sessions_dir):
    result = session_service.run_operation(sample_session, "club", "assign_player_to_court", "p1", 0)

    assert result.applied
    assert session_service.load_session("club").courts[0].player_ids == ("p1",)


def test_run_operation_does_not_save_rejection(sample_session, sessions_dir):
    SessionManager.save(sample_session, "club")

    with patch("session_service.SessionDB") as db:
        result = session_service.run_operation(sample_session, "club", "start_game", 0, sync=True)

    assert result.rejected == RejectReason.NOT_READY
    assert session_service.load_session("club") == sample_session
    db.save_session.assert_not_called()


def test_run_operation_syncs(sample_session, sessions_dir):
    with patch("session_service.SessionDB") as db:
        result = session_service.run_operation(sample_session, "club", "add_court", sync=True)

    db.save_session.assert_called_once_with(result.session)


def test_run_operation_unknown_name(sample_session, sessions_dir):
    with pytest.raises(ValidationError):
        session_service.run_operation(sample_session, "club", "teleport")


def test_pull_session(sample_session, sessions_dir):
    with patch("session_service.SessionDB") as db:
        db.get_session.return_value = sample_session
        pulled = session_service.pull_session("s1", "club")

    assert pulled == sample_session
    assert SessionManager.load("club") == sample_session


def test_pull_session_missing(sessions_dir):
    with patch("session_service.SessionDB") as db:
        db.get_session.return_value = None
        assert session_service.pull_session("s1", "club") is None

    assert SessionManager.list_sessions() == []


def test_export_and_import(sample_session, sessions_dir):
    SessionManager.save(sample_session, "club")

    text = session_service.export_session("club")
    imported = session_service.import_session("copy", text)

    assert text == export_session_json(sample_session)
    assert imported == sample_session
    assert SessionManager.list_sessions() == ["club", "copy"]


def test_import_malformed_saves_nothing(sessions_dir):
    with pytest.raises(ValidationError):
        session_service.import_session("bad", "{}")

    assert SessionManager.list_sessions() == []
