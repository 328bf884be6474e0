"""
Service layer for roster tables.

This module handles conversion between a session's roster and pandas
DataFrames, so the roster can be shown and edited spreadsheet-style, and
turns an edited table back into player lines for add_players_bulk.
"""

import logging

import pandas as pd

from app_types import Gender
from session_logic import Session

logger = logging.getLogger("app.player_service")

ROSTER_COLUMNS = ["#", "Player Name", "Gender", "Games Played", "Court", "Excluded", "id"]


def create_roster_dataframe(session: Session) -> pd.DataFrame:
    """
    Creates a DataFrame of the session roster, in roster order.

    Court holds the 1-based court number the player is staged on, or None.
    """
    players = session.players
    excluded = set(session.auto_assign_exclude)
    courts = [session.court_of(p.id) for p in players]
    return pd.DataFrame(
        {
            "#": range(1, len(players) + 1),
            "Player Name": [p.name for p in players],
            "Gender": [p.gender.value if p.gender else None for p in players],
            "Games Played": [p.games_played for p in players],
            "Court": [c + 1 if c is not None else None for c in courts],
            "Excluded": [p.id in excluded for p in players],
            "id": [p.id for p in players],
        },
        columns=ROSTER_COLUMNS,
    )


def dataframe_to_roster_lines(edited_df: pd.DataFrame) -> list[str]:
    """
    Converts an edited roster DataFrame into "Name" / "Name, M|F" lines.

    Rows without a name are skipped. Gender cells are passed through as
    written so that add_players_bulk can reject unknown values.

    Args:
        edited_df: DataFrame with at least a 'Player Name' column

    Returns:
        One line per named row, in table order
    """
    lines = []
    for _, row in edited_df.dropna(subset=["Player Name"]).iterrows():
        name = str(row["Player Name"]).strip()
        if not name:
            continue
        gender = row.get("Gender")
        if isinstance(gender, Gender):
            gender = gender.value
        if gender is None or pd.isna(gender) or not str(gender).strip():
            lines.append(name)
        else:
            lines.append(f"{name}, {str(gender).strip()}")
    logger.debug(f"Converted {len(lines)} roster row(s) to player lines")
    return lines
