# session_actions.py
"""
Organizer operations on a session.

Every operation takes a Session plus typed arguments and returns an
OperationResult. An accepted operation carries a new Session; a refused one
carries the very same Session object it was given and a RejectReason, so
nothing is ever half-applied.

apply_operation() is the single entry point for callers that dispatch by
operation name: (Session, name, args) -> OperationResult.
"""

import logging
import math
from dataclasses import replace
from datetime import datetime
from functools import wraps
from typing import Any, Callable, Iterable

from app_types import CourtMode, Gender, OperationResult, PlayerId, RejectReason, Side, Winner
from court_state import begin, check_can_start, finish, resolve_court
from exceptions import ValidationError
from optimizer import (
    eligible_for_court,
    eligible_for_next,
    form_teams,
    select_players,
    split_teams,
)
from session_logic import (
    BlacklistPair,
    Court,
    Game,
    Player,
    Session,
    new_id,
    utc_now,
)

logger = logging.getLogger("app.session_actions")

Operation = Callable[..., OperationResult]

# Registry of operations by name, filled by @operation
OPERATIONS: dict[str, Operation] = {}


def operation(allow_ended: bool = False) -> Callable[[Operation], Operation]:
    """Registers an operation and refuses it on an ended session unless allowed."""

    def decorator(func: Operation) -> Operation:
        @wraps(func)
        def wrapper(session: Session, *args: Any, **kwargs: Any) -> OperationResult:
            if session.ended and not allow_ended:
                return _reject(session, RejectReason.SESSION_ENDED)
            return func(session, *args, **kwargs)

        OPERATIONS[func.__name__] = wrapper
        return wrapper

    return decorator


def apply_operation(session: Session, name: str, *args: Any, **kwargs: Any) -> OperationResult:
    """
    Applies a named operation to a session.

    Raises:
        ValidationError: If no operation has that name.
    """
    try:
        func = OPERATIONS[name]
    except KeyError:
        raise ValidationError(f"Unknown operation '{name}'") from None
    return func(session, *args, **kwargs)


# =============================================================================
# Helpers
# =============================================================================


def _ok(session: Session) -> OperationResult:
    return OperationResult(session=session)


def _reject(session: Session, reason: RejectReason) -> OperationResult:
    return OperationResult(session=session, rejected=reason)


def _without(ids: tuple[PlayerId, ...], player_ids: Iterable[PlayerId]) -> tuple[PlayerId, ...]:
    drop = set(player_ids)
    return tuple(pid for pid in ids if pid not in drop)


def _unstage(court: Court, player_ids: Iterable[PlayerId]) -> Court:
    drop = set(player_ids)
    return replace(
        court,
        player_ids=_without(court.player_ids, drop),
        pair_a=_without(court.pair_a, drop),
        pair_b=_without(court.pair_b, drop),
    )


def _dequeue(court: Court, player_ids: Iterable[PlayerId]) -> Court:
    drop = set(player_ids)
    return replace(
        court,
        queue=_without(court.queue, drop),
        next_a=_without(court.next_a, drop),
        next_b=_without(court.next_b, drop),
    )


def _with_court(session: Session, court: Court) -> Session:
    courts = tuple(court if c.index == court.index else c for c in session.courts)
    return replace(session, courts=courts)


def _coerce_count(value: Any) -> int | None:
    """Floors a numeric value and clamps it at zero; None if not a finite number."""
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return max(0, math.floor(number))


def _winner(score_a: int, score_b: int) -> Winner:
    if score_a > score_b:
        return Winner.A
    if score_b > score_a:
        return Winner.B
    return Winner.DRAW


def _parse_side(side: Side | str | None) -> Side | None:
    if side is None:
        return None
    try:
        return Side(side)
    except ValueError:
        raise ValidationError(f"Unknown side {side!r}") from None


def _parse_mode(mode: CourtMode | str) -> CourtMode:
    try:
        return CourtMode(mode)
    except ValueError:
        raise ValidationError(f"Unknown court mode {mode!r}") from None


def _parse_gender(gender: Gender | str | None) -> Gender | None:
    if gender is None or gender == "":
        return None
    if isinstance(gender, Gender):
        return gender
    return Gender(str(gender).upper())


def _fresh_player_id(taken: set[PlayerId]) -> PlayerId:
    player_id = new_id()
    while player_id in taken:
        player_id = new_id()
    return player_id


def _place_on_side(
    a: tuple[PlayerId, ...],
    b: tuple[PlayerId, ...],
    player_id: PlayerId,
    side: Side | None,
    required: int,
) -> tuple[tuple[PlayerId, ...], tuple[PlayerId, ...]] | None:
    """Moves a player to a side (or off both). None if the side is already full."""
    a = _without(a, [player_id])
    b = _without(b, [player_id])
    if side == Side.A:
        if len(a) >= required:
            return None
        a = a + (player_id,)
    elif side == Side.B:
        if len(b) >= required:
            return None
        b = b + (player_id,)
    return a, b


# =============================================================================
# Players
# =============================================================================


@operation()
def add_player(session: Session, name: str, gender: Gender | str | None = None) -> OperationResult:
    trimmed = (name or "").strip()
    if not trimmed:
        return _reject(session, RejectReason.INVALID_NAME)
    try:
        parsed_gender = _parse_gender(gender)
    except ValueError:
        return _reject(session, RejectReason.INVALID_GENDER)
    player = Player(
        id=_fresh_player_id({p.id for p in session.players}),
        name=trimmed,
        gender=parsed_gender,
    )
    return _ok(replace(session, players=session.players + (player,)))


@operation()
def add_players_bulk(session: Session, lines: Iterable[str]) -> OperationResult:
    """
    Adds several players from lines of "Name" or "Name, M|F".

    Blank lines and names already in the session (case-insensitive) are
    skipped. A line with any other gender token rejects the whole batch.
    """
    known_names = {p.name.casefold() for p in session.players}
    taken_ids = {p.id for p in session.players}
    added: list[Player] = []
    for raw in lines:
        line = (raw or "").strip()
        if not line:
            continue
        parts = [part.strip() for part in line.split(",") if part.strip()]
        name = parts[0] if parts else line
        gender = None
        if len(parts) >= 2:
            token = parts[1].upper()
            if token not in (Gender.MALE.value, Gender.FEMALE.value):
                return _reject(session, RejectReason.INVALID_GENDER)
            gender = Gender(token)
        key = name.casefold()
        if key in known_names:
            continue
        known_names.add(key)
        player_id = _fresh_player_id(taken_ids)
        taken_ids.add(player_id)
        added.append(Player(id=player_id, name=name, gender=gender))
    if not added:
        return _reject(session, RejectReason.NOTHING_TO_ADD)
    return _ok(replace(session, players=session.players + tuple(added)))


@operation()
def remove_player(session: Session, player_id: PlayerId) -> OperationResult:
    """Removes a player everywhere. Refused while the player is in a game."""
    if session.get_player(player_id) is None:
        return _reject(session, RejectReason.PLAYER_NOT_FOUND)
    if player_id in session.players_in_progress():
        return _reject(session, RejectReason.COURT_LOCKED)
    courts = tuple(_dequeue(_unstage(c, [player_id]), [player_id]) for c in session.courts)
    return _ok(
        replace(
            session,
            players=tuple(p for p in session.players if p.id != player_id),
            courts=courts,
            auto_assign_exclude=_without(session.auto_assign_exclude, [player_id]),
            blacklist=tuple(pair for pair in session.blacklist if not pair.involves(player_id)),
        )
    )


@operation()
def link_player_account(session: Session, player_id: PlayerId, account_uid: str) -> OperationResult:
    if not account_uid:
        raise ValidationError("account_uid must be a non-empty string")
    player = session.get_player(player_id)
    if player is None:
        return _reject(session, RejectReason.PLAYER_NOT_FOUND)
    players = tuple(
        replace(p, account_uid=account_uid) if p.id == player_id else p for p in session.players
    )
    return _ok(replace(session, players=players))


@operation()
def unlink_player_account(session: Session, player_id: PlayerId) -> OperationResult:
    if session.get_player(player_id) is None:
        return _reject(session, RejectReason.PLAYER_NOT_FOUND)
    players = tuple(
        replace(p, account_uid=None) if p.id == player_id else p for p in session.players
    )
    return _ok(replace(session, players=players))


# =============================================================================
# Courts
# =============================================================================


@operation()
def assign_player_to_court(
    session: Session, player_id: PlayerId, court_index: int | None
) -> OperationResult:
    """
    Moves a player onto a court, or off every court when court_index is None.

    A player in a game cannot be moved, even if they are also staged on an idle
    court after a queue pull, and a court in a game cannot take new players.
    Placing a player also takes them out of any court's queue.
    """
    if session.get_player(player_id) is None:
        return _reject(session, RejectReason.PLAYER_NOT_FOUND)
    if player_id in session.players_in_progress():
        return _reject(session, RejectReason.COURT_LOCKED)
    current = session.court_of(player_id)

    if court_index is None:
        courts = tuple(c if c.in_progress else _unstage(c, [player_id]) for c in session.courts)
        return _ok(replace(session, courts=courts))

    target = resolve_court(session, court_index)
    if target is None:
        return _reject(session, RejectReason.COURT_NOT_FOUND)
    if target.in_progress:
        return _reject(session, RejectReason.COURT_LOCKED)
    if current == court_index:
        return _ok(session)
    if len(target.player_ids) >= target.capacity:
        return _reject(session, RejectReason.CAPACITY_EXCEEDED)

    courts = []
    for court in session.courts:
        if not court.in_progress:
            court = _unstage(court, [player_id])
        court = _dequeue(court, [player_id])
        if court.index == court_index:
            court = replace(court, player_ids=court.player_ids + (player_id,))
        courts.append(court)
    return _ok(replace(session, courts=tuple(courts)))


@operation()
def set_player_pair(
    session: Session, court_index: int, player_id: PlayerId, side: Side | str | None
) -> OperationResult:
    parsed = _parse_side(side)
    court = resolve_court(session, court_index)
    if court is None:
        return _reject(session, RejectReason.COURT_NOT_FOUND)
    if court.in_progress:
        return _reject(session, RejectReason.COURT_LOCKED)
    if player_id not in court.player_ids:
        return _reject(session, RejectReason.NOT_ON_COURT)
    placed = _place_on_side(court.pair_a, court.pair_b, player_id, parsed, court.required_per_team)
    if placed is None:
        return _reject(session, RejectReason.CAPACITY_EXCEEDED)
    pair_a, pair_b = placed
    return _ok(_with_court(session, replace(court, pair_a=pair_a, pair_b=pair_b)))


@operation()
def set_court_mode(session: Session, court_index: int, mode: CourtMode | str) -> OperationResult:
    """
    Switches a court between singles and doubles.

    Staged players and the queue are cut to the new capacity keeping the
    earliest entries; both sides and the next-game sides are cleared.
    """
    parsed = _parse_mode(mode)
    court = resolve_court(session, court_index)
    if court is None:
        return _reject(session, RejectReason.COURT_NOT_FOUND)
    if court.in_progress:
        return _reject(session, RejectReason.COURT_LOCKED)
    if court.mode == parsed:
        return _ok(session)
    switched = replace(court, mode=parsed)
    capacity = switched.capacity
    switched = replace(
        switched,
        player_ids=court.player_ids[:capacity],
        pair_a=(),
        pair_b=(),
        queue=court.queue[:capacity],
        next_a=(),
        next_b=(),
    )
    return _ok(_with_court(session, switched))


@operation()
def add_court(session: Session) -> OperationResult:
    court = Court(id=new_id(), index=len(session.courts))
    return _ok(replace(session, courts=session.courts + (court,)))


@operation()
def remove_court(session: Session, court_index: int) -> OperationResult:
    court = resolve_court(session, court_index)
    if court is None:
        return _reject(session, RejectReason.COURT_NOT_FOUND)
    if court.in_progress:
        return _reject(session, RejectReason.COURT_LOCKED)
    remaining = [c for c in session.courts if c.index != court_index]
    courts = tuple(replace(c, index=i) for i, c in enumerate(remaining))
    return _ok(replace(session, courts=courts))


@operation()
def auto_assign_available(session: Session) -> OperationResult:
    """
    Places unassigned players, in roster order, on the first court with room.

    The auto-assign exclusion list only applies to the optimizer, so excluded
    players are placed here too.
    """
    staged = {pid for court in session.courts for pid in court.player_ids}
    waiting = [p.id for p in session.players if p.id not in staged]
    if not waiting:
        return _reject(session, RejectReason.NO_ELIGIBLE_PLAYERS)

    courts = list(session.courts)
    placed: list[PlayerId] = []
    for player_id in waiting:
        for i, court in enumerate(courts):
            if not court.in_progress and len(court.player_ids) < court.capacity:
                courts[i] = replace(court, player_ids=court.player_ids + (player_id,))
                placed.append(player_id)
                break
        else:
            break
    if not placed:
        return _reject(session, RejectReason.CAPACITY_EXCEEDED)
    courts = [_dequeue(c, placed) for c in courts]
    return _ok(replace(session, courts=tuple(courts)))


# =============================================================================
# Games
# =============================================================================


@operation()
def start_game(session: Session, court_index: int, now: datetime | None = None) -> OperationResult:
    court = resolve_court(session, court_index)
    if court is None:
        return _reject(session, RejectReason.COURT_NOT_FOUND)
    reason = check_can_start(session, court)
    if reason is not None:
        return _reject(session, reason)
    return _ok(_with_court(session, begin(court, now or utc_now())))


def _close_game(
    session: Session,
    court: Court,
    score_a: int,
    score_b: int,
    voided: bool,
    now: datetime,
) -> Session:
    duration_ms = None
    if court.started_at is not None:
        elapsed = (now - court.started_at).total_seconds() * 1000
        duration_ms = max(0, int(elapsed))
    game = Game(
        id=new_id(),
        court_index=court.index,
        ended_at=now,
        started_at=court.started_at,
        duration_ms=duration_ms,
        side_a=court.pair_a,
        side_b=court.pair_b,
        side_a_names=tuple(session.player_name(pid) for pid in court.pair_a),
        side_b_names=tuple(session.player_name(pid) for pid in court.pair_b),
        score_a=score_a,
        score_b=score_b,
        winner=Winner.DRAW if voided else _winner(score_a, score_b),
        voided=voided,
    )
    players = session.players
    if not voided:
        played = set(game.participants)
        players = tuple(
            replace(p, games_played=p.games_played + 1) if p.id in played else p
            for p in players
        )
    updated = replace(session, players=players, games=(game,) + session.games)
    logger.info(
        "Court %s: game %s %s (%s-%s)",
        court.index,
        game.id,
        "voided" if voided else "ended",
        score_a,
        score_b,
    )
    return _with_court(updated, finish(court, session.blacklist))


@operation()
def end_game(
    session: Session,
    court_index: int,
    score_a: Any,
    score_b: Any,
    now: datetime | None = None,
) -> OperationResult:
    """
    Records the result of a court's game and frees the court.

    Scores are floored and clamped at zero. Everyone who played gets one more
    game played, and the court restages from its queue.
    """
    court = resolve_court(session, court_index)
    if court is None:
        return _reject(session, RejectReason.COURT_NOT_FOUND)
    if not court.in_progress:
        return _reject(session, RejectReason.NOT_IN_PROGRESS)
    a = _coerce_count(score_a)
    b = _coerce_count(score_b)
    if a is None or b is None:
        return _reject(session, RejectReason.INVALID_SCORE)
    return _ok(_close_game(session, court, a, b, voided=False, now=now or utc_now()))


@operation()
def void_game(session: Session, court_index: int, now: datetime | None = None) -> OperationResult:
    """Abandons a court's game. It stays in history but counts for nobody."""
    court = resolve_court(session, court_index)
    if court is None:
        return _reject(session, RejectReason.COURT_NOT_FOUND)
    if not court.in_progress:
        return _reject(session, RejectReason.NOT_IN_PROGRESS)
    return _ok(_close_game(session, court, 0, 0, voided=True, now=now or utc_now()))


@operation()
def update_game(
    session: Session,
    game_id: str,
    score_a: Any,
    score_b: Any,
    side_a: Iterable[PlayerId],
    side_b: Iterable[PlayerId],
    duration_ms: Any = None,
) -> OperationResult:
    """
    Corrects a recorded game's scores, sides and duration.

    Court and id never change. For counted games, players taken off the game
    lose the game from their games played and players put on it gain it.
    """
    game = next((g for g in session.games if g.id == game_id), None)
    if game is None:
        return _reject(session, RejectReason.GAME_NOT_FOUND)
    a = _coerce_count(score_a)
    b = _coerce_count(score_b)
    if a is None or b is None:
        return _reject(session, RejectReason.INVALID_SCORE)
    new_duration = game.duration_ms
    if duration_ms is not None:
        new_duration = _coerce_count(duration_ms)
        if new_duration is None:
            return _reject(session, RejectReason.INVALID_SCORE)
    side_a, side_b = tuple(side_a), tuple(side_b)
    everyone = side_a + side_b
    if not side_a or not side_b or len(set(everyone)) != len(everyone):
        return _reject(session, RejectReason.INVALID_SIDES)

    old_names = dict(zip(game.side_a + game.side_b, game.side_a_names + game.side_b_names))

    def snapshot(pid: PlayerId) -> str:
        player = session.get_player(pid)
        if player is not None:
            return player.name
        return old_names.get(pid, session.player_name(pid))

    corrected = replace(
        game,
        score_a=a,
        score_b=b,
        side_a=side_a,
        side_b=side_b,
        side_a_names=tuple(snapshot(pid) for pid in side_a),
        side_b_names=tuple(snapshot(pid) for pid in side_b),
        winner=_winner(a, b),
        duration_ms=new_duration,
    )

    players = session.players
    if not game.voided:
        before, after = set(game.participants), set(everyone)
        delta = {pid: -1 for pid in before - after}
        delta.update({pid: 1 for pid in after - before})
        players = tuple(
            replace(p, games_played=max(0, p.games_played + delta[p.id])) if p.id in delta else p
            for p in players
        )
    games = tuple(corrected if g.id == game_id else g for g in session.games)
    return _ok(replace(session, players=players, games=games))


# =============================================================================
# Queues
# =============================================================================


@operation()
def enqueue_to_court(session: Session, court_index: int, player_id: PlayerId) -> OperationResult:
    """
    Lines a player up for a court.

    An idle court with room takes the player straight away; otherwise the
    player joins the court's next-game queue.
    """
    if session.get_player(player_id) is None:
        return _reject(session, RejectReason.PLAYER_NOT_FOUND)
    court = resolve_court(session, court_index)
    if court is None:
        return _reject(session, RejectReason.COURT_NOT_FOUND)
    if (
        not court.in_progress
        and len(court.player_ids) < court.capacity
        and player_id not in court.player_ids
    ):
        return assign_player_to_court(session, player_id, court_index)

    if any(player_id in c.queue for c in session.courts):
        return _reject(session, RejectReason.ALREADY_QUEUED)
    if any(not c.in_progress and player_id in c.player_ids for c in session.courts):
        return _reject(session, RejectReason.PLAYER_BUSY_ELSEWHERE)
    if len(court.queue) >= court.capacity:
        return _reject(session, RejectReason.CAPACITY_EXCEEDED)
    return _ok(_with_court(session, replace(court, queue=court.queue + (player_id,))))


@operation()
def remove_from_court_queue(session: Session, court_index: int, player_id: PlayerId) -> OperationResult:
    court = resolve_court(session, court_index)
    if court is None:
        return _reject(session, RejectReason.COURT_NOT_FOUND)
    if player_id not in court.queue:
        return _reject(session, RejectReason.NOT_QUEUED)
    return _ok(_with_court(session, _dequeue(court, [player_id])))


@operation()
def clear_court_queue(session: Session, court_index: int) -> OperationResult:
    court = resolve_court(session, court_index)
    if court is None:
        return _reject(session, RejectReason.COURT_NOT_FOUND)
    return _ok(_with_court(session, replace(court, queue=(), next_a=(), next_b=())))


@operation()
def set_next_pair(
    session: Session, court_index: int, player_id: PlayerId, side: Side | str | None
) -> OperationResult:
    parsed = _parse_side(side)
    court = resolve_court(session, court_index)
    if court is None:
        return _reject(session, RejectReason.COURT_NOT_FOUND)
    if player_id not in court.queue:
        return _reject(session, RejectReason.NOT_QUEUED)
    placed = _place_on_side(court.next_a, court.next_b, player_id, parsed, court.required_per_team)
    if placed is None:
        return _reject(session, RejectReason.CAPACITY_EXCEEDED)
    next_a, next_b = placed
    return _ok(_with_court(session, replace(court, next_a=next_a, next_b=next_b)))


# =============================================================================
# Auto-assign
# =============================================================================


@operation()
def auto_assign_court(session: Session, court_index: int) -> OperationResult:
    """
    Fills a court's free places with the best available players and splits sides.

    Only players not staged on any court and not excluded are considered.
    Existing side assignments on the court are kept as seeds. A doubles court
    is left alone unless every free place can be filled; a singles court takes
    whoever is available.
    """
    court = resolve_court(session, court_index)
    if court is None:
        return _reject(session, RejectReason.COURT_NOT_FOUND)
    if court.in_progress:
        return _reject(session, RejectReason.COURT_LOCKED)
    need = court.capacity - len(court.player_ids)
    if need <= 0:
        return _reject(session, RejectReason.CAPACITY_EXCEEDED)
    pool = eligible_for_court(session)
    if not pool:
        return _reject(session, RejectReason.NO_ELIGIBLE_PLAYERS)
    if court.mode == CourtMode.DOUBLES and len(pool) < need:
        return _reject(session, RejectReason.INSUFFICIENT_PLAYERS)

    selection = select_players(session, pool, min(need, len(pool)), court.mode, court.index)
    chosen = selection.player_ids if selection else ()
    courts = tuple(_dequeue(c, chosen) for c in session.courts)
    updated = replace(session, courts=courts)
    court = replace(updated.courts[court_index], player_ids=court.player_ids + chosen)
    split = form_teams(court, session.blacklist, seed_a=court.pair_a, seed_b=court.pair_b)
    return _ok(_with_court(updated, replace(court, pair_a=split.a, pair_b=split.b)))


@operation()
def auto_assign_next(session: Session, court_index: int) -> OperationResult:
    """
    Lines up a full next game for a court, replacing its queue.

    Players currently in a game on another court may be picked. The sides are
    left empty when no split keeps blacklisted players apart.
    """
    court = resolve_court(session, court_index)
    if court is None:
        return _reject(session, RejectReason.COURT_NOT_FOUND)
    pool = eligible_for_next(session, court_index)
    if len(pool) < court.capacity:
        return _reject(session, RejectReason.INSUFFICIENT_PLAYERS)
    selection = select_players(session, pool, court.capacity, court.mode, court.index)
    if selection is None:
        return _reject(session, RejectReason.INSUFFICIENT_PLAYERS)
    split = split_teams(selection.player_ids, court.required_per_team, session.blacklist)
    staged = replace(
        court,
        queue=selection.player_ids,
        next_a=split.a if split else (),
        next_b=split.b if split else (),
    )
    return _ok(_with_court(session, staged))


# =============================================================================
# Constraints
# =============================================================================


@operation()
def add_blacklist_pair(session: Session, a: PlayerId, b: PlayerId) -> OperationResult:
    if a == b:
        return _reject(session, RejectReason.INVALID_PAIR)
    if session.get_player(a) is None or session.get_player(b) is None:
        return _reject(session, RejectReason.PLAYER_NOT_FOUND)
    if session.is_blacklisted(a, b):
        return _ok(session)
    return _ok(replace(session, blacklist=session.blacklist + (BlacklistPair(a=a, b=b),)))


@operation()
def remove_blacklist_pair(session: Session, a: PlayerId, b: PlayerId) -> OperationResult:
    if not session.is_blacklisted(a, b):
        return _ok(session)
    blacklist = tuple(pair for pair in session.blacklist if not pair.matches(a, b))
    return _ok(replace(session, blacklist=blacklist))


@operation()
def set_auto_assign_excluded(
    session: Session, player_id: PlayerId, excluded: bool = True
) -> OperationResult:
    if session.get_player(player_id) is None:
        return _reject(session, RejectReason.PLAYER_NOT_FOUND)
    current = player_id in session.auto_assign_exclude
    if current == excluded:
        return _ok(session)
    if excluded:
        ids = session.auto_assign_exclude + (player_id,)
    else:
        ids = _without(session.auto_assign_exclude, [player_id])
    return _ok(replace(session, auto_assign_exclude=ids))


@operation()
def set_balance_gender(session: Session, enabled: bool) -> OperationResult:
    if session.balance_gender == bool(enabled):
        return _ok(session)
    return _ok(replace(session, balance_gender=bool(enabled)))


# =============================================================================
# Session lifecycle
# =============================================================================


@operation(allow_ended=True)
def end_session(
    session: Session, shuttles_used: Any = None, now: datetime | None = None
) -> OperationResult:
    """Closes the session for good. Refused while any court is mid-game."""
    if session.ended:
        return _reject(session, RejectReason.SESSION_ENDED)
    if any(c.in_progress for c in session.courts):
        return _reject(session, RejectReason.COURT_LOCKED)
    shuttles = _coerce_count(shuttles_used) if shuttles_used is not None else None
    return _ok(
        replace(session, ended=True, ended_at=now or utc_now(), shuttles_used=shuttles)
    )
