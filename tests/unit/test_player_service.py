# tests/unit/test_player_service.py
"""
Unit tests for roster table utilities in player_service.

create_roster_dataframe should show one row per player in roster order, and
dataframe_to_roster_lines should produce lines add_players_bulk accepts.
"""

import pandas as pd

from app_types import Gender
from player_service import create_roster_dataframe, dataframe_to_roster_lines
from session_actions import add_players_bulk, set_auto_assign_excluded
from tests.utils import make_session, stage


def test_roster_dataframe_columns(sample_session):
    session = stage(sample_session, 1, ["p2"])
    session = set_auto_assign_excluded(session, "p3").session

    df = create_roster_dataframe(session)

    assert list(df["Player Name"]) == ["Alice", "Bob", "Charlie", "Dave", "Eve", "Frank", "Grace", "Heidi"]
    assert list(df["#"]) == list(range(1, 9))
    assert df.loc[0, "Gender"] == "F"
    assert df.loc[1, "Court"] == 2
    assert pd.isna(df.loc[0, "Court"])
    assert bool(df.loc[2, "Excluded"]) is True
    assert list(df["id"])[:2] == ["p1", "p2"]


def test_roster_dataframe_empty_session():
    df = create_roster_dataframe(make_session())

    assert df.empty
    assert "Player Name" in df.columns


def test_dataframe_to_roster_lines():
    df = pd.DataFrame(
        {
            "Player Name": ["Alice", None, "  Bob ", "Carl", ""],
            "Gender": ["F", "M", None, float("nan"), "M"],
        }
    )

    assert dataframe_to_roster_lines(df) == ["Alice, F", "Bob", "Carl"]


def test_edited_table_feeds_bulk_add():
    df = pd.DataFrame({"Player Name": ["Dana", "Eli"], "Gender": ["f", "M"]})

    result = add_players_bulk(make_session(), dataframe_to_roster_lines(df))

    assert [(p.name, p.gender) for p in result.session.players] == [
        ("Dana", Gender.FEMALE),
        ("Eli", Gender.MALE),
    ]


def test_roster_round_trip_into_new_session(sample_session):
    lines = dataframe_to_roster_lines(create_roster_dataframe(sample_session))

    session = add_players_bulk(make_session(), lines).session

    assert [p.name for p in session.players] == [p.name for p in sample_session.players]
    assert [p.gender for p in session.players] == [p.gender for p in sample_session.players]
