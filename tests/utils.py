from dataclasses import replace
from datetime import datetime, timedelta, timezone

from app_types import CourtMode, Winner
from session_actions import end_game, start_game
from session_logic import Court, Game, Player, Session

BASE_TIME = datetime(2026, 1, 10, 19, 0, tzinfo=timezone.utc)


def at(minutes: float) -> datetime:
    """Returns a timestamp `minutes` after the start of the test evening."""
    return BASE_TIME + timedelta(minutes=minutes)


def make_players(n, genders=None):
    """
    Generates N players with ids p1..pn and names P1..Pn.

    Args:
        n: Number of players to generate
        genders: Optional sequence of genders, one per player

    Returns:
        Tuple of Player objects.
    """
    players = []
    for i in range(1, n + 1):
        gender = genders[i - 1] if genders else None
        players.append(Player(id=f"p{i}", name=f"P{i}", gender=gender))
    return tuple(players)


def make_session(players=(), num_courts=1, mode=CourtMode.DOUBLES, **kwargs) -> Session:
    courts = tuple(Court(id=f"c{i}", index=i, mode=mode) for i in range(num_courts))
    return Session(
        id="s1",
        date="2026-01-10",
        time="19:00",
        players=tuple(players),
        courts=courts,
        **kwargs,
    )


def stage(session: Session, court_index: int, side_a, side_b=(), extra=()) -> Session:
    """Places players straight onto a court, bypassing the operations."""
    court = replace(
        session.courts[court_index],
        player_ids=tuple(side_a) + tuple(side_b) + tuple(extra),
        pair_a=tuple(side_a),
        pair_b=tuple(side_b),
    )
    courts = tuple(court if c.index == court_index else c for c in session.courts)
    return replace(session, courts=courts)


def make_game(game_id, side_a, side_b, ended_at, score_a=21, score_b=15, voided=False) -> Game:
    winner = Winner.DRAW if voided or score_a == score_b else (Winner.A if score_a > score_b else Winner.B)
    return Game(
        id=game_id,
        court_index=0,
        ended_at=ended_at,
        side_a=tuple(side_a),
        side_b=tuple(side_b),
        side_a_names=tuple(side_a),
        side_b_names=tuple(side_b),
        score_a=score_a,
        score_b=score_b,
        winner=winner,
        voided=voided,
    )


def play_game(session, court_index, side_a, side_b, score=(21, 15), start=0, end=20) -> Session:
    """Stages, starts and ends one game through the operations."""
    session = stage(session, court_index, side_a, side_b)
    result = start_game(session, court_index, now=at(start))
    assert result.applied, result.rejected
    result = end_game(result.session, court_index, *score, now=at(end))
    assert result.applied, result.rejected
    return result.session
