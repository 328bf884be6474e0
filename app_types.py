# app_types.py
"""
Type aliases and small value types for the Badminton App.

This module defines type aliases to improve code readability and provide
semantic meaning to complex type hints, plus the enums shared by the
session model, the court state machine and the pairing optimizer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from session_logic import Session

# =============================================================================
# Basic Type Aliases
# =============================================================================


class Gender(str, Enum):
    """Player gender enumeration for strict type checking."""

    MALE = "M"
    FEMALE = "F"


class CourtMode(str, Enum):
    """Court format. Singles seats one player per side, doubles two."""

    SINGLES = "singles"
    DOUBLES = "doubles"


class Side(str, Enum):
    """One side of a court."""

    A = "A"
    B = "B"


class Winner(str, Enum):
    """Outcome of a completed game."""

    A = "A"
    B = "B"
    DRAW = "draw"


class CourtState(str, Enum):
    """Lifecycle position of a court, derived from its fields."""

    EMPTY = "empty"
    STAGING = "staging"
    READY = "ready"
    IN_PROGRESS = "in_progress"


class RejectReason(str, Enum):
    """Why an operation left the session unchanged."""

    COURT_LOCKED = "court_locked"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    INVALID_SCORE = "invalid_score"
    NOT_READY = "not_ready"
    SESSION_ENDED = "session_ended"
    PLAYER_BUSY_ELSEWHERE = "player_busy_elsewhere"
    COURT_NOT_FOUND = "court_not_found"
    NOT_IN_PROGRESS = "not_in_progress"
    PLAYER_NOT_FOUND = "player_not_found"
    NOT_ON_COURT = "not_on_court"
    NOT_QUEUED = "not_queued"
    ALREADY_QUEUED = "already_queued"
    INVALID_NAME = "invalid_name"
    INVALID_GENDER = "invalid_gender"
    NOTHING_TO_ADD = "nothing_to_add"
    INVALID_PAIR = "invalid_pair"
    INVALID_SIDES = "invalid_sides"
    GAME_NOT_FOUND = "game_not_found"
    NO_ELIGIBLE_PLAYERS = "no_eligible_players"
    INSUFFICIENT_PLAYERS = "insufficient_players"


# A player's id (unique within a session)
PlayerId = str

# A pair of player ids, always stored sorted (used for co-occurrence tracking)
PlayerPair = tuple[PlayerId, PlayerId]

# =============================================================================
# Optimizer Type Aliases
# =============================================================================

# How often each pair of players has shared a court (voided games included)
CoOccurrence = dict[PlayerPair, int]

# Number of games in a row, ending with the latest one, each player has played
Streaks = dict[PlayerId, int]

# Mapping of player ids to their gender, for players with a known gender
PlayerGenders = dict[PlayerId, Gender]


# =============================================================================
# Result Data Classes
# =============================================================================


@dataclass(frozen=True)
class TeamSplit:
    """A split of a court's players into two sides.

    Attributes:
        a: Player ids on side A
        b: Player ids on side B
    """

    a: tuple[PlayerId, ...]
    b: tuple[PlayerId, ...]


@dataclass
class OperationResult:
    """Result of applying one operation to a session.

    Attributes:
        session: The new session, or the unchanged input when rejected
        rejected: Reason the operation was refused, None when it applied
        applied: Whether the operation was accepted
    """

    session: Session
    rejected: RejectReason | None = None
    applied: bool = field(init=False)

    def __post_init__(self) -> None:
        self.applied = self.rejected is None
