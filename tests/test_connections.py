import pytest

from sqlgen.config import Settings
from sqlgen.db.connections import dispose_engines, get_engine, startup_healthcheck
from sqlgen.db.connections import test_connection as ping_dsn
from sqlgen.errors import ConfigError


@pytest.fixture(autouse=True)
def _dispose():
    yield
    dispose_engines()


def test_get_engine_is_cached(tmp_path):
    dsn = f"sqlite:///{tmp_path / 'a.db'}"
    assert get_engine(dsn) is get_engine(dsn)


def test_get_engine_requires_dsn():
    with pytest.raises(ConfigError):
        get_engine("")


def test_ping(tmp_path):
    assert ping_dsn(f"sqlite:///{tmp_path / 'ok.db'}")
    assert not ping_dsn(f"sqlite:///{tmp_path / 'missing' / 'nope.db'}")


def test_startup_healthcheck(tmp_path):
    good = f"sqlite:///{tmp_path / 'ok.db'}"
    bad = f"sqlite:///{tmp_path / 'missing' / 'nope.db'}"

    assert startup_healthcheck(Settings()) == 0
    assert startup_healthcheck(Settings(sandbox_dsn=good)) == 0
    assert startup_healthcheck(Settings(sandbox_dsn=good), dsns=[bad]) == 1
    with pytest.raises(RuntimeError):
        startup_healthcheck(Settings(), dsns=[bad], strict=True)
