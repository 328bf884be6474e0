"""
Service layer for orchestrating session operations that involve both
domain logic and persistence.

This module sits between whatever drives the club night (a UI, a script, tests)
and the lower-level logic/database modules, ensuring that every accepted
operation is persisted the same way regardless of where it is initiated.
"""

import logging
from typing import Any

from app_types import OperationResult
from constants import DEFAULT_NUM_COURTS
from database import SessionDB
from exceptions import SessionError
from session_actions import apply_operation
from session_logic import (
    Session,
    SessionManager,
    create_session,
    export_session_json,
    import_session_json,
)

logger = logging.getLogger("app.session_service")


def create_new_session(
    session_name: str,
    num_courts: int = DEFAULT_NUM_COURTS,
    date: str | None = None,
    time: str | None = None,
    sync: bool = False,
) -> Session:
    """
    Creates and initializes a new session.

    1. Builds an empty session with the requested courts
    2. Saves session to disk
    3. Pushes it to the remote store (if sync)

    Returns:
        The new Session.

    Raises:
        DatabaseError: If the remote push fails.
    """
    session = create_session(date=date, time=time, num_courts=num_courts)
    SessionManager.save(session, session_name)
    if sync:
        SessionDB.save_session(session)
    logger.info(
        "Created session '%s' (%s) with %s court(s)",
        session_name,
        session.id,
        len(session.courts),
    )
    return session


def load_session(session_name: str) -> Session:
    """
    Loads a saved session.

    Raises:
        SessionError: If no snapshot exists or it cannot be read.
    """
    session = SessionManager.load(session_name)
    if session is None:
        raise SessionError(f"No saved session named '{session_name}'")
    return session


def run_operation(
    session: Session,
    session_name: str,
    operation: str,
    *args: Any,
    sync: bool = False,
    **kwargs: Any,
) -> OperationResult:
    """
    Applies a named operation and persists the result if it was accepted.

    Args:
        session: The active session
        session_name: Name of the session (for saving)
        operation: Name of a session_actions operation
        sync: Also push the new state to the remote store

    Returns:
        The OperationResult. A rejected result is not saved.

    Raises:
        ValidationError: If the operation name or its arguments are invalid.
        DatabaseError: If the remote push fails.
    """
    result = apply_operation(session, operation, *args, **kwargs)
    if not result.applied:
        logger.debug(
            "Session '%s': %s rejected (%s)",
            session_name,
            operation,
            result.rejected.value,
        )
        return result

    SessionManager.save(result.session, session_name)
    if sync:
        SessionDB.save_session(result.session)
    return result


def pull_session(session_id: str, session_name: str) -> Session | None:
    """
    Fetches a session from the remote store and saves it locally.

    Returns:
        The fetched session, or None if the remote store does not have it.

    Raises:
        DatabaseError: If the fetch fails.
    """
    session = SessionDB.get_session(session_id)
    if session is None:
        logger.info("Remote store has no session '%s'", session_id)
        return None
    SessionManager.save(session, session_name)
    return session


def export_session(session_name: str) -> str:
    """Returns the JSON export of a saved session."""
    return export_session_json(load_session(session_name))


def import_session(session_name: str, text: str) -> Session:
    """
    Replaces (or creates) a saved session from a JSON export.

    Raises:
        ValidationError: If the export is malformed; nothing is saved then.
    """
    session = import_session_json(text)
    SessionManager.save(session, session_name)
    return session
