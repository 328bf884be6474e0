# session_logic.py
"""
Session model for a club night.

Players, courts, completed games and the auto-assign configuration are held
in immutable dataclasses. Operations (see session_actions.py) never modify a
Session in place; they build a new one with dataclasses.replace, so a caller
holding an older value always sees a consistent snapshot.

This module also owns the document form of a session (the shape persisted by
the session stores) and SessionManager, the local snapshot store.
"""

import json
import logging
import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from app_types import CourtMode, Gender, PlayerId, Winner
from constants import (
    DEFAULT_BALANCE_GENDER,
    DEFAULT_NUM_COURTS,
    DEFAULT_SESSIONS_DIR,
    DELETED_PLAYER_NAME,
    DOUBLES_PLAYERS_PER_TEAM,
    PLAYER_ID_LENGTH,
    SESSION_ID_LENGTH,
    SESSIONS_DIR_ENV,
    SINGLES_PLAYERS_PER_TEAM,
)
from exceptions import SessionError, ValidationError

logger = logging.getLogger("app.session_logic")


def new_id(length: int = PLAYER_ID_LENGTH) -> str:
    """Returns a short random identifier."""
    return uuid.uuid4().hex[:length]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def players_per_team(mode: CourtMode) -> int:
    return SINGLES_PLAYERS_PER_TEAM if mode == CourtMode.SINGLES else DOUBLES_PLAYERS_PER_TEAM


@dataclass(frozen=True)
class Player:
    id: PlayerId
    name: str
    gender: Gender | None = None
    games_played: int = 0
    account_uid: str | None = None


@dataclass(frozen=True)
class Court:
    """A court and everything staged on it.

    Attributes:
        id: Stable identifier
        index: Position among the session's courts (contiguous from 0)
        mode: Singles or doubles
        player_ids: Players staged for the current game
        pair_a: Subset of player_ids on side A
        pair_b: Subset of player_ids on side B
        in_progress: Whether the current game has started
        started_at: When the current game started
        queue: Players lined up for the next game
        next_a: Subset of queue pre-assigned to side A
        next_b: Subset of queue pre-assigned to side B
    """

    id: str
    index: int
    mode: CourtMode = CourtMode.DOUBLES
    player_ids: tuple[PlayerId, ...] = ()
    pair_a: tuple[PlayerId, ...] = ()
    pair_b: tuple[PlayerId, ...] = ()
    in_progress: bool = False
    started_at: datetime | None = None
    queue: tuple[PlayerId, ...] = ()
    next_a: tuple[PlayerId, ...] = ()
    next_b: tuple[PlayerId, ...] = ()

    @property
    def required_per_team(self) -> int:
        return players_per_team(self.mode)

    @property
    def capacity(self) -> int:
        return 2 * self.required_per_team


@dataclass(frozen=True)
class Game:
    """A completed (or voided) game. Name snapshots survive player removal."""

    id: str
    court_index: int
    ended_at: datetime
    side_a: tuple[PlayerId, ...]
    side_b: tuple[PlayerId, ...]
    side_a_names: tuple[str, ...]
    side_b_names: tuple[str, ...]
    score_a: int
    score_b: int
    winner: Winner
    voided: bool = False
    started_at: datetime | None = None
    duration_ms: int | None = None

    @property
    def participants(self) -> tuple[PlayerId, ...]:
        return self.side_a + self.side_b


@dataclass(frozen=True)
class BlacklistPair:
    """Two players who should not be placed on the same side."""

    a: PlayerId
    b: PlayerId

    def matches(self, x: PlayerId, y: PlayerId) -> bool:
        return (self.a == x and self.b == y) or (self.a == y and self.b == x)

    def involves(self, player_id: PlayerId) -> bool:
        return player_id in (self.a, self.b)


@dataclass(frozen=True)
class Session:
    id: str
    date: str
    time: str
    players: tuple[Player, ...] = ()
    courts: tuple[Court, ...] = ()
    games: tuple[Game, ...] = ()  # newest first
    ended: bool = False
    ended_at: datetime | None = None
    shuttles_used: int | None = None
    auto_assign_exclude: tuple[PlayerId, ...] = ()
    blacklist: tuple[BlacklistPair, ...] = ()
    balance_gender: bool = DEFAULT_BALANCE_GENDER

    def get_player(self, player_id: PlayerId) -> Player | None:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def player_name(self, player_id: PlayerId) -> str:
        player = self.get_player(player_id)
        return player.name if player else DELETED_PLAYER_NAME

    def court_of(self, player_id: PlayerId) -> int | None:
        """Index of the court the player is staged on, if any."""
        for court in self.courts:
            if player_id in court.player_ids:
                return court.index
        return None

    def is_blacklisted(self, x: PlayerId, y: PlayerId) -> bool:
        return any(pair.matches(x, y) for pair in self.blacklist)

    def players_in_progress(self) -> set[PlayerId]:
        busy: set[PlayerId] = set()
        for court in self.courts:
            if court.in_progress:
                busy.update(court.player_ids)
        return busy


def create_session(
    date: str | None = None,
    time: str | None = None,
    num_courts: int = DEFAULT_NUM_COURTS,
    now: datetime | None = None,
) -> Session:
    """Creates an empty session with at least one doubles court."""
    now = now or utc_now()
    count = max(1, int(num_courts))
    courts = tuple(Court(id=new_id(), index=i) for i in range(count))
    return Session(
        id=new_id(SESSION_ID_LENGTH),
        date=date or now.strftime("%Y-%m-%d"),
        time=time or now.strftime("%H:%M"),
        courts=courts,
    )


# =============================================================================
# Document form
# =============================================================================


def _format_ts(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_ts(value: str | None) -> datetime | None:
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def _player_to_dict(player: Player) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": player.id,
        "name": player.name,
        "gamesPlayed": player.games_played,
    }
    if player.gender is not None:
        data["gender"] = player.gender.value
    if player.account_uid is not None:
        data["accountUid"] = player.account_uid
    return data


def _court_to_dict(court: Court) -> dict[str, Any]:
    return {
        "id": court.id,
        "index": court.index,
        "mode": court.mode.value,
        "playerIds": list(court.player_ids),
        "pairA": list(court.pair_a),
        "pairB": list(court.pair_b),
        "inProgress": court.in_progress,
        "startedAt": _format_ts(court.started_at),
        "queue": list(court.queue),
        "nextA": list(court.next_a),
        "nextB": list(court.next_b),
    }


def _game_to_dict(game: Game) -> dict[str, Any]:
    return {
        "id": game.id,
        "courtIndex": game.court_index,
        "endedAt": _format_ts(game.ended_at),
        "startedAt": _format_ts(game.started_at),
        "durationMs": game.duration_ms,
        "sideA": list(game.side_a),
        "sideB": list(game.side_b),
        "sideAPlayers": [
            {"id": pid, "name": name} for pid, name in zip(game.side_a, game.side_a_names)
        ],
        "sideBPlayers": [
            {"id": pid, "name": name} for pid, name in zip(game.side_b, game.side_b_names)
        ],
        "scoreA": game.score_a,
        "scoreB": game.score_b,
        "winner": game.winner.value,
        "players": list(game.participants),
        "voided": game.voided,
    }


def session_to_dict(session: Session) -> dict[str, Any]:
    """Converts a session into its persisted document form."""
    return {
        "id": session.id,
        "date": session.date,
        "time": session.time,
        "numCourts": len(session.courts),
        "players": [_player_to_dict(p) for p in session.players],
        "courts": [_court_to_dict(c) for c in session.courts],
        "games": [_game_to_dict(g) for g in session.games],
        "ended": session.ended,
        "endedAt": _format_ts(session.ended_at),
        "shuttlesUsed": session.shuttles_used,
        "autoAssignExclude": list(session.auto_assign_exclude),
        "autoAssignBlacklist": {
            "pairs": [{"a": pair.a, "b": pair.b} for pair in session.blacklist]
        },
        "autoAssignConfig": {"balanceGender": session.balance_gender},
    }


def _player_from_dict(data: dict[str, Any]) -> Player:
    gender = data.get("gender")
    return Player(
        id=data["id"],
        name=data["name"],
        gender=Gender(gender) if gender else None,
        games_played=int(data.get("gamesPlayed") or 0),
        account_uid=data.get("accountUid"),
    )


def _court_from_dict(data: dict[str, Any], position: int) -> Court:
    return Court(
        id=data.get("id") or new_id(),
        index=int(data.get("index", position)),
        mode=CourtMode(data.get("mode") or CourtMode.DOUBLES.value),
        player_ids=tuple(data.get("playerIds") or ()),
        pair_a=tuple(data.get("pairA") or ()),
        pair_b=tuple(data.get("pairB") or ()),
        in_progress=bool(data.get("inProgress", False)),
        started_at=_parse_ts(data.get("startedAt")),
        queue=tuple(data.get("queue") or ()),
        next_a=tuple(data.get("nextA") or ()),
        next_b=tuple(data.get("nextB") or ()),
    )


def _snapshot_names(
    ids: tuple[PlayerId, ...], snapshot: list[dict] | None, names_by_id: dict[str, str]
) -> tuple[str, ...]:
    if snapshot and len(snapshot) == len(ids):
        return tuple(entry.get("name") or DELETED_PLAYER_NAME for entry in snapshot)
    return tuple(names_by_id.get(pid, DELETED_PLAYER_NAME) for pid in ids)


def _game_from_dict(data: dict[str, Any], names_by_id: dict[str, str]) -> Game:
    side_a = tuple(data.get("sideA") or ())
    side_b = tuple(data.get("sideB") or ())
    duration = data.get("durationMs")
    return Game(
        id=data["id"],
        court_index=int(data["courtIndex"]),
        ended_at=_parse_ts(data["endedAt"]),
        side_a=side_a,
        side_b=side_b,
        side_a_names=_snapshot_names(side_a, data.get("sideAPlayers"), names_by_id),
        side_b_names=_snapshot_names(side_b, data.get("sideBPlayers"), names_by_id),
        score_a=int(data.get("scoreA") or 0),
        score_b=int(data.get("scoreB") or 0),
        winner=Winner(data.get("winner") or Winner.DRAW.value),
        voided=bool(data.get("voided", False)),
        started_at=_parse_ts(data.get("startedAt")),
        duration_ms=int(duration) if duration is not None else None,
    )


def session_from_dict(data: dict[str, Any]) -> Session:
    """
    Builds a session from its document form.

    Fields missing from older documents get their defaults (doubles courts,
    empty queues, zero games played, gender balancing enabled).

    Raises:
        ValidationError: If a required field is missing or malformed.
    """
    try:
        players = tuple(_player_from_dict(p) for p in data.get("players") or ())
        names_by_id = {p.id: p.name for p in players}
        config = data.get("autoAssignConfig") or {}
        balance = config.get("balanceGender")
        shuttles = data.get("shuttlesUsed")
        return Session(
            id=data["id"],
            date=data.get("date", ""),
            time=data.get("time", ""),
            players=players,
            courts=tuple(
                _court_from_dict(c, i) for i, c in enumerate(data.get("courts") or ())
            ),
            games=tuple(_game_from_dict(g, names_by_id) for g in data.get("games") or ()),
            ended=bool(data.get("ended", False)),
            ended_at=_parse_ts(data.get("endedAt")),
            shuttles_used=int(shuttles) if shuttles is not None else None,
            auto_assign_exclude=tuple(data.get("autoAssignExclude") or ()),
            blacklist=tuple(
                BlacklistPair(a=p["a"], b=p["b"])
                for p in (data.get("autoAssignBlacklist") or {}).get("pairs") or ()
            ),
            balance_gender=DEFAULT_BALANCE_GENDER if balance is None else bool(balance),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ValidationError(f"Malformed session document: {e}") from e


def export_session_json(session: Session, indent: int | None = 2) -> str:
    return json.dumps(session_to_dict(session), indent=indent)


def import_session_json(text: str) -> Session:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError("Session export is not valid JSON") from e
    if not isinstance(data, dict):
        raise ValidationError("Session export must be a JSON object")
    return session_from_dict(data)


# =============================================================================
# Local snapshot store
# =============================================================================


class SessionManager:
    """Handles loading, saving, and clearing named session snapshots."""

    @staticmethod
    def _sessions_dir() -> str:
        return os.environ.get(SESSIONS_DIR_ENV, DEFAULT_SESSIONS_DIR)

    @staticmethod
    def _get_session_path(session_name: str) -> str:
        """Returns the file path for a given session name."""
        sessions_dir = SessionManager._sessions_dir()
        os.makedirs(sessions_dir, exist_ok=True)
        return os.path.join(sessions_dir, f"{session_name}.json")

    @staticmethod
    def save(session: Session, session_name: str) -> None:
        """Saves the given session to a named file."""
        path = SessionManager._get_session_path(session_name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(export_session_json(session))
        logger.info("Session '%s' saved", session_name)

    @staticmethod
    def load(session_name: str) -> Session | None:
        """
        Loads a session from a named file if it exists.

        Returns:
            The session, or None when no snapshot exists.

        Raises:
            SessionError: If the snapshot exists but cannot be read.
        """
        path = SessionManager._get_session_path(session_name)
        if not os.path.exists(path):
            return None
        try:
            with open(path, encoding="utf-8") as f:
                session = import_session_json(f.read())
        except (OSError, ValidationError) as e:
            logger.error("Failed to load session '%s': %s", session_name, e)
            raise SessionError(f"Session '{session_name}' is unreadable") from e
        logger.info("Session '%s' loaded", session_name)
        return session

    @staticmethod
    def clear(session_name: str) -> None:
        """Clears a named session by deleting its file."""
        path = SessionManager._get_session_path(session_name)
        if os.path.exists(path):
            os.remove(path)
            logger.info("Session '%s' cleared", session_name)

    @staticmethod
    def list_sessions() -> list[str]:
        """Returns a list of all available session names."""
        sessions_dir = SessionManager._sessions_dir()
        if not os.path.exists(sessions_dir):
            return []
        files = [f for f in os.listdir(sessions_dir) if f.endswith(".json")]
        return sorted(f[: -len(".json")] for f in files)
