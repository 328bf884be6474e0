# database.py
"""
Remote session store for the Badminton App.

This module handles all Supabase interactions. A session is stored as one row
of the 'sessions' table holding its document form (see session_to_dict), so
that several devices can follow the same club night.
All methods translate Supabase exceptions to DatabaseError for consistent error handling.
"""

import logging
import os
from datetime import datetime, timezone
from functools import lru_cache

from supabase import create_client, Client

from constants import SESSIONS_TABLE
from exceptions import DatabaseError, ValidationError
from session_logic import Session, session_from_dict, session_to_dict

logger = logging.getLogger("app.database")

SUPABASE_URL_ENV = "SUPABASE_URL"
SUPABASE_KEY_ENV = "SUPABASE_KEY"


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
    """Creates the Supabase client once from SUPABASE_URL and SUPABASE_KEY.

    Raises:
        DatabaseError: If either variable is unset.
    """
    url = os.environ.get(SUPABASE_URL_ENV)
    key = os.environ.get(SUPABASE_KEY_ENV)
    if not url or not key:
        raise DatabaseError(
            f"{SUPABASE_URL_ENV} and {SUPABASE_KEY_ENV} must be set to use the remote store"
        )
    return create_client(url, key)


class SessionDB:
    """Handles session persistence in Supabase."""

    @staticmethod
    def save_session(session: Session) -> None:
        """Upserts a session document, keyed by the session id.

        Args:
            session: The session to store

        Raises:
            DatabaseError: If the upsert fails.
        """
        row = {
            "id": session.id,
            "payload": session_to_dict(session),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            supabase = get_supabase_client()
            supabase.table(SESSIONS_TABLE).upsert(row, on_conflict="id").execute()
        except DatabaseError:
            raise
        except Exception as e:
            logger.exception(f"Supabase API call failed: save_session '{session.id}'")
            raise DatabaseError(f"Failed to save session '{session.id}'") from e

    @staticmethod
    def get_session(session_id: str) -> Session | None:
        """Retrieves a session by id.

        Args:
            session_id: Id of the session to retrieve

        Returns:
            The session, or None if not found

        Raises:
            DatabaseError: If the query fails or the stored document is malformed.
        """
        try:
            supabase = get_supabase_client()
            response = (
                supabase.table(SESSIONS_TABLE)
                .select("*")
                .eq("id", session_id)
                .execute()
            )
        except DatabaseError:
            raise
        except Exception as e:
            logger.exception(f"Supabase API call failed: get_session '{session_id}'")
            raise DatabaseError(f"Failed to retrieve session '{session_id}'") from e

        if not response.data:
            return None
        try:
            return session_from_dict(response.data[0]["payload"])
        except (KeyError, ValidationError) as e:
            logger.error(f"Stored session '{session_id}' is malformed: {e}")
            raise DatabaseError(f"Stored session '{session_id}' is malformed") from e

    @staticmethod
    def delete_session(session_id: str) -> None:
        """Deletes a stored session.

        Raises:
            DatabaseError: If the delete fails.
        """
        try:
            supabase = get_supabase_client()
            supabase.table(SESSIONS_TABLE).delete().in_("id", [session_id]).execute()
        except DatabaseError:
            raise
        except Exception as e:
            logger.exception(f"Supabase API call failed: delete_session '{session_id}'")
            raise DatabaseError(f"Failed to delete session '{session_id}'") from e

    @staticmethod
    def list_sessions() -> list[dict]:
        """Fetches id and last update of every stored session, oldest first.

        Raises:
            DatabaseError: If the query fails.
        """
        try:
            supabase = get_supabase_client()
            response = (
                supabase.table(SESSIONS_TABLE)
                .select("id, updated_at")
                .order("updated_at")
                .execute()
            )
        except DatabaseError:
            raise
        except Exception as e:
            logger.exception("Supabase API call failed: list_sessions")
            raise DatabaseError("Failed to fetch sessions from database") from e

        return response.data if response.data else []
