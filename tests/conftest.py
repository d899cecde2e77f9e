import pytest

from dicedist import settings


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    monkeypatch.delenv(settings.SETTINGS_ENV_VAR, raising=False)
    monkeypatch.chdir(tmp_path)
    settings.reset_settings()
    yield
    settings.reset_settings()


class FixedRandom:
    """Stands in for random.Random, handing out the given draws in order."""

    def __init__(self, *draws: float) -> None:
        self.draws = list(draws)

    def random(self) -> float:
        return self.draws.pop(0)


@pytest.fixture
def fixed_random():
    return FixedRandom
