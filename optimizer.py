# optimizer.py
"""
Pairing optimizer for court auto-assignment.

Given the players eligible for a court, picks the subset that minimizes

    gender_penalty + 1000 * repeat co-occurrences + 1 * games played
                   + 2000 * consecutive-game streaks

and splits it into two sides without putting blacklisted players together.

Enumeration is exhaustive but capped to the K least-played candidates, so
the result is a deterministic approximation rather than a global optimum.
Candidate order is part of the contract: see sort_candidates().
"""

import logging
from dataclasses import dataclass
from itertools import combinations
from typing import Iterable

from app_types import (
    CoOccurrence,
    CourtMode,
    Gender,
    PlayerGenders,
    PlayerId,
    PlayerPair,
    Streaks,
    TeamSplit,
)
from constants import (
    DOUBLES_CANDIDATE_CAP,
    FAIRNESS_WEIGHT,
    GENDER_IMBALANCE_PENALTY,
    REPEAT_WEIGHT,
    REST_WEIGHT,
    SINGLES_CANDIDATE_CAP,
)
from logger import log_selection_debug
from session_logic import BlacklistPair, Court, Game, Player, Session

logger = logging.getLogger("app.optimizer")


@dataclass(frozen=True)
class Selection:
    """Best subset found for a court.

    Attributes:
        player_ids: Chosen players in candidate order
        score: Objective value of the subset
        has_blacklisted_pair: True only when every evaluated subset had one
    """

    player_ids: tuple[PlayerId, ...]
    score: int
    has_blacklisted_pair: bool = False


# =============================================================================
# History
# =============================================================================


def pair_key(a: PlayerId, b: PlayerId) -> PlayerPair:
    return (a, b) if a <= b else (b, a)


def compute_co_occurrence(games: Iterable[Game]) -> CoOccurrence:
    """Counts how many games each pair of players shared, voided games included."""
    counts: CoOccurrence = {}
    for game in games:
        for a, b in combinations(game.participants, 2):
            if a == b:
                continue
            key = pair_key(a, b)
            counts[key] = counts.get(key, 0) + 1
    return counts


def compute_streaks(session: Session) -> Streaks:
    """
    Counts, for every player, the games in a row they played up to the latest one.

    Games are walked newest first by end time; a player's streak stops at the
    first game they were not part of.
    """
    newest_first = sorted(session.games, key=lambda g: g.ended_at, reverse=True)
    streaks: Streaks = {}
    for player in session.players:
        streak = 0
        for game in newest_first:
            if player.id not in game.participants:
                break
            streak += 1
        streaks[player.id] = streak
    return streaks


# =============================================================================
# Eligibility
# =============================================================================


def sort_candidates(players: Iterable[Player]) -> list[Player]:
    """
    Orders candidates by games played, then name (case-insensitive).

    The sort is stable, so players with equal games and names keep roster
    order. The optimizer only enumerates the head of this list.
    """
    return sorted(players, key=lambda p: (p.games_played, p.name.casefold()))


def eligible_for_court(session: Session) -> list[Player]:
    """Players who can be placed on a court right now."""
    staged = {pid for court in session.courts for pid in court.player_ids}
    excluded = set(session.auto_assign_exclude)
    return sort_candidates(
        p for p in session.players if p.id not in staged and p.id not in excluded
    )


def eligible_for_next(session: Session, court_index: int) -> list[Player]:
    """
    Players who can be lined up for a court's next game.

    Players in a game on another court are allowed, since they will be free
    by the time this court turns over; players waiting on a court that has not
    started, or already queued for another court, are not.
    """
    unavailable: set[PlayerId] = set()
    for court in session.courts:
        if court.index == court_index or not court.in_progress:
            unavailable.update(court.player_ids)
        if court.index != court_index:
            unavailable.update(court.queue)
    unavailable.update(session.auto_assign_exclude)
    return sort_candidates(p for p in session.players if p.id not in unavailable)


# =============================================================================
# Scoring
# =============================================================================


def gender_penalty(
    ids: Iterable[PlayerId], genders: PlayerGenders, enabled: bool
) -> int:
    """Penalizes subsets whose men or women cannot be split evenly across sides."""
    if not enabled:
        return 0
    men = women = 0
    for pid in ids:
        gender = genders.get(pid)
        if gender == Gender.MALE:
            men += 1
        elif gender == Gender.FEMALE:
            women += 1
    return 0 if men % 2 == 0 and women % 2 == 0 else GENDER_IMBALANCE_PENALTY


def has_blacklisted_pair(ids: Iterable[PlayerId], blacklist: Iterable[BlacklistPair]) -> bool:
    pairs = list(blacklist)
    if not pairs:
        return False
    return any(p.matches(a, b) for a, b in combinations(ids, 2) for p in pairs)


def subset_score(
    subset: tuple[Player, ...],
    co_occurrence: CoOccurrence,
    streaks: Streaks,
    penalty: int = 0,
) -> int:
    repeat = sum(co_occurrence.get(pair_key(a.id, b.id), 0) for a, b in combinations(subset, 2))
    games = sum(p.games_played for p in subset)
    rest = sum(streaks.get(p.id, 0) for p in subset)
    return penalty + REPEAT_WEIGHT * repeat + FAIRNESS_WEIGHT * games + REST_WEIGHT * rest


def select_players(
    session: Session,
    pool: list[Player],
    size: int,
    mode: CourtMode,
    court_index: int = -1,
) -> Selection | None:
    """
    Picks the best `size` players from an already sorted pool.

    Doubles subsets are compared first on whether they contain a blacklisted
    pair and only then on score; singles players face each other, so the
    blacklist and gender terms do not apply. Ties keep the earliest subset in
    combination order.

    Returns:
        The best selection, or None when the pool is smaller than `size`.
    """
    if size <= 0:
        return None
    is_doubles = mode == CourtMode.DOUBLES
    cap = DOUBLES_CANDIDATE_CAP if is_doubles else SINGLES_CANDIDATE_CAP
    candidates = pool[:cap]
    if len(candidates) < size:
        return None

    co_occurrence = compute_co_occurrence(session.games)
    streaks = compute_streaks(session)
    genders: PlayerGenders = {p.id: p.gender for p in session.players if p.gender is not None}

    best: Selection | None = None
    best_key: tuple[bool, int] | None = None
    for subset in combinations(candidates, size):
        ids = tuple(p.id for p in subset)
        if is_doubles:
            penalty = gender_penalty(ids, genders, session.balance_gender)
            blacklisted = has_blacklisted_pair(ids, session.blacklist)
        else:
            penalty = 0
            blacklisted = False
        score = subset_score(subset, co_occurrence, streaks, penalty)
        key = (blacklisted, score)
        if best_key is None or key < best_key:
            best_key = key
            best = Selection(player_ids=ids, score=score, has_blacklisted_pair=blacklisted)

    if best is not None:
        log_selection_debug(
            logger,
            court_index,
            len(pool),
            [p.id for p in candidates],
            best.player_ids,
            best.score,
            best.has_blacklisted_pair,
        )
    return best


# =============================================================================
# Team split
# =============================================================================


def _can_place(pid: PlayerId, team: tuple[PlayerId, ...], blacklist: tuple[BlacklistPair, ...]) -> bool:
    return not any(p.matches(pid, other) for other in team for p in blacklist)


def _search(
    remaining: tuple[PlayerId, ...],
    a: tuple[PlayerId, ...],
    b: tuple[PlayerId, ...],
    required: int,
    blacklist: tuple[BlacklistPair, ...],
) -> TeamSplit | None:
    if len(a) > required or len(b) > required:
        return None
    if not remaining:
        if len(a) == required and len(b) == required:
            return TeamSplit(a=a, b=b)
        return None
    pid, rest = remaining[0], remaining[1:]
    if len(a) < required and _can_place(pid, a, blacklist):
        found = _search(rest, a + (pid,), b, required, blacklist)
        if found:
            return found
    if len(b) < required and _can_place(pid, b, blacklist):
        found = _search(rest, a, b + (pid,), required, blacklist)
        if found:
            return found
    return _search(rest, a, b, required, blacklist)


def split_teams(
    player_ids: Iterable[PlayerId],
    required: int,
    blacklist: Iterable[BlacklistPair] = (),
    seed_a: tuple[PlayerId, ...] = (),
    seed_b: tuple[PlayerId, ...] = (),
) -> TeamSplit | None:
    """
    Finds the first conflict-free split with both sides full.

    Players not already seeded are visited in order; each is tried on side A,
    then side B, then left out. Returns None if no such split exists.
    """
    seeded = set(seed_a) | set(seed_b)
    remaining = tuple(pid for pid in player_ids if pid not in seeded)
    return _search(remaining, tuple(seed_a), tuple(seed_b), required, tuple(blacklist))


def greedy_split(
    player_ids: Iterable[PlayerId],
    required: int,
    blacklist: Iterable[BlacklistPair] = (),
    seed_a: tuple[PlayerId, ...] = (),
    seed_b: tuple[PlayerId, ...] = (),
) -> TeamSplit:
    """Fills side A then side B, avoiding blacklisted teammates only when possible."""
    pairs = tuple(blacklist)
    a, b = list(seed_a), list(seed_b)
    seeded = set(seed_a) | set(seed_b)
    for pid in player_ids:
        if pid in seeded:
            continue
        if len(a) < required and _can_place(pid, tuple(a), pairs):
            a.append(pid)
        elif len(b) < required and _can_place(pid, tuple(b), pairs):
            b.append(pid)
        elif len(a) < required:
            a.append(pid)
        elif len(b) < required:
            b.append(pid)
        if len(a) >= required and len(b) >= required:
            break
    return TeamSplit(a=tuple(a), b=tuple(b))


def _seed_is_valid(team: tuple[PlayerId, ...], blacklist: tuple[BlacklistPair, ...]) -> bool:
    return not has_blacklisted_pair(team, blacklist)


def form_teams(
    court: Court,
    blacklist: Iterable[BlacklistPair],
    seed_a: tuple[PlayerId, ...] = (),
    seed_b: tuple[PlayerId, ...] = (),
) -> TeamSplit:
    """
    Splits a court's staged players into sides.

    Seeds that already hold a blacklisted pair are dropped. If no
    conflict-free split exists, falls back to greedy_split().
    """
    pairs = tuple(blacklist)
    required = court.required_per_team
    seed_a = tuple(pid for pid in seed_a if pid in court.player_ids)[:required]
    seed_b = tuple(pid for pid in seed_b if pid in court.player_ids and pid not in seed_a)[:required]
    if not (_seed_is_valid(seed_a, pairs) and _seed_is_valid(seed_b, pairs)):
        seed_a, seed_b = (), ()
    found = split_teams(court.player_ids, required, pairs, seed_a, seed_b)
    if found is not None:
        return found
    logger.debug("Court %s: no conflict-free split, using greedy fill", court.index)
    return greedy_split(court.player_ids, required, pairs, seed_a, seed_b)
