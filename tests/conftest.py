from __future__ import annotations

import pytest

from hsjwt.core.config import Settings
from hsjwt.core.jwt import TokenEngine

SECRET = "test-secret"


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, jwt_secret_key=SECRET, jwt_algorithm="HS512")


@pytest.fixture
def engine(settings: Settings, clock: FakeClock) -> TokenEngine:
    return TokenEngine(settings, clock=clock)
