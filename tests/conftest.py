import pytest

from app_types import Gender
from session_logic import Court, Player, Session


@pytest.fixture
def sample_players():
    """Returns a tuple of eight sample players, four men and four women."""
    return (
        Player(id="p1", name="Alice", gender=Gender.FEMALE),
        Player(id="p2", name="Bob", gender=Gender.MALE),
        Player(id="p3", name="Charlie", gender=Gender.MALE),
        Player(id="p4", name="Dave", gender=Gender.MALE),
        Player(id="p5", name="Eve", gender=Gender.FEMALE),
        Player(id="p6", name="Frank", gender=Gender.MALE),
        Player(id="p7", name="Grace", gender=Gender.FEMALE),
        Player(id="p8", name="Heidi", gender=Gender.FEMALE),
    )


@pytest.fixture
def sample_session(sample_players):
    """A fresh session with the sample players and two empty doubles courts."""
    return Session(
        id="s1",
        date="2026-01-10",
        time="19:00",
        players=sample_players,
        courts=(Court(id="c0", index=0), Court(id="c1", index=1)),
    )


@pytest.fixture
def player_genders(sample_players):
    """Returns a mapping of player ids to their genders."""
    return {p.id: p.gender for p in sample_players}


@pytest.fixture
def sessions_dir(tmp_path, monkeypatch):
    """Points the local snapshot store at a temporary directory."""
    directory = tmp_path / "sessions"
    monkeypatch.setenv("BADMINTON_SESSIONS_DIR", str(directory))
    return directory
