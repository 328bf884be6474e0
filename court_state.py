# court_state.py
"""
Court lifecycle: EMPTY -> STAGING -> READY -> IN_PROGRESS -> (end/void) -> EMPTY.

When a game ends or is voided the court is cleared and immediately restaged
from the front of its queue, so the lifecycle may jump straight back to
STAGING or READY.

The functions here work on single courts and return new Court values; the
session-level bookkeeping (game records, games played) lives in
session_actions.py.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Iterable

from app_types import CourtState, RejectReason
from exceptions import ValidationError
from optimizer import form_teams
from session_logic import BlacklistPair, Court, Session

logger = logging.getLogger("app.court_state")


def resolve_court(session: Session, court_index: int) -> Court | None:
    """
    Looks up a court by index.

    Returns None for an index past the last court (it may exist after
    add_court). Raises ValidationError for an index no court can ever have.
    """
    if isinstance(court_index, bool) or not isinstance(court_index, int):
        raise ValidationError(f"Court index must be an integer, got {court_index!r}")
    if court_index < 0:
        raise ValidationError(f"Court index must not be negative, got {court_index}")
    if court_index >= len(session.courts):
        return None
    return session.courts[court_index]


def is_ready(court: Court) -> bool:
    """Both sides full and nobody staged outside them."""
    required = court.required_per_team
    if len(court.pair_a) != required or len(court.pair_b) != required:
        return False
    return set(court.player_ids) == set(court.pair_a) | set(court.pair_b) and len(
        court.player_ids
    ) == court.capacity


def court_state(court: Court) -> CourtState:
    if court.in_progress:
        return CourtState.IN_PROGRESS
    if not court.player_ids:
        return CourtState.EMPTY
    if is_ready(court):
        return CourtState.READY
    return CourtState.STAGING


def check_can_start(session: Session, court: Court) -> RejectReason | None:
    """Returns why the court cannot start, or None if it can."""
    if court.in_progress:
        return RejectReason.COURT_LOCKED
    if not is_ready(court):
        return RejectReason.NOT_READY
    busy_elsewhere = set()
    for other in session.courts:
        if other.index != court.index and other.in_progress:
            busy_elsewhere.update(other.player_ids)
    if busy_elsewhere.intersection(court.player_ids):
        return RejectReason.PLAYER_BUSY_ELSEWHERE
    return None


def begin(court: Court, now: datetime) -> Court:
    return replace(court, in_progress=True, started_at=now)


def clear(court: Court) -> Court:
    """Empties the current game's players and unlocks the court."""
    return replace(
        court,
        player_ids=(),
        pair_a=(),
        pair_b=(),
        in_progress=False,
        started_at=None,
    )


def pull_from_queue(court: Court, blacklist: Iterable[BlacklistPair]) -> Court:
    """
    Stages the next game from the front of the queue.

    Up to capacity players move from the queue onto the court. Their
    pre-assigned sides seed the team split; next_a/next_b are cleared.
    """
    if not court.queue:
        return court
    pulled = court.queue[: court.capacity]
    staged = replace(
        court,
        player_ids=pulled,
        queue=court.queue[len(pulled):],
        next_a=(),
        next_b=(),
    )
    split = form_teams(staged, blacklist, seed_a=court.next_a, seed_b=court.next_b)
    logger.debug("Court %s: staged %s from queue", court.index, list(pulled))
    return replace(staged, pair_a=split.a, pair_b=split.b)


def finish(court: Court, blacklist: Iterable[BlacklistPair]) -> Court:
    """Clears a finished court and restages it from its queue."""
    return pull_from_queue(clear(court), blacklist)
