import pytest

from pairflip.database import GameDatabase
from pairflip.engine import MatchEngine
from pairflip.persistence import SessionPersistence
from pairflip.scoring import ComboTracker
from pairflip.server import create_app
from pairflip.settings import GameSettings


class NoShuffle:
    """Random source that leaves the deck in deal order: A A B B C C ..."""

    def randint(self, a, b):
        return a


class EventRecorder:
    """Collects every event an engine fires, in order."""

    def __init__(self, engine):
        self.events = []
        for name in MatchEngine.EVENTS + ComboTracker.EVENTS:
            engine.subscribe(name, self._handler(name))

    def _handler(self, name):
        def handler(*args):
            self.events.append((name, args))
        return handler

    def named(self, name):
        return [args for event, args in self.events if event == name]

    def names(self):
        return [event for event, _ in self.events]


@pytest.fixture()
def settings():
    return GameSettings(
        reveal_delay=0.01,
        mismatch_delay=0.01,
        restart_countdown_seconds=2,
        countdown_tick_seconds=0.01,
        combo_tick_seconds=0.005,
    )


@pytest.fixture()
def db():
    database = GameDatabase(":memory:")
    yield database
    database.close()


@pytest.fixture()
def persistence(db):
    return SessionPersistence(db)


@pytest.fixture()
def make_engine(settings, persistence, db):
    def factory(**overrides):
        kwargs = dict(settings=settings, persistence=persistence, stats_db=db, rng=NoShuffle())
        kwargs.update(overrides)
        return MatchEngine(**kwargs)
    return factory


@pytest.fixture()
def flask_app(tmp_path):
    application = create_app(str(tmp_path / "server_stats.db"))
    application.config['TESTING'] = True
    return application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()
