import sys
from pathlib import Path

import pytest

# Add project root so `import ledger` works without an install
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ledger.clock import BlockClock  # noqa: E402
from ledger.journal import Journal  # noqa: E402
from ledger.token import Token  # noqa: E402
from ledger.upgrade import V1, V2  # noqa: E402

OWNER = "owner"
ALICE = "alice"
BOB = "bob"
CAP = 100_000_000 * 10**18


@pytest.fixture
def clock():
    return BlockClock(10)


@pytest.fixture
def token(clock):
    return Token.create(OWNER, CAP, 1, 1000, clock, version=V2, journal=Journal(echo=False))


@pytest.fixture
def token_v1(clock):
    return Token.create(OWNER, CAP, 1, 1000, clock, version=V1, journal=Journal(echo=False))


@pytest.fixture
def funded(token):
    """V2 token with 2000 available for alice."""
    token.mint(OWNER, ALICE, 2000)
    return token


def open_gate(token, clock):
    token.set_enabled_from(OWNER, clock.current() + 1)
    clock.advance(1)


class FakeRedis:
    """Just enough of redis.Redis for RedisStorage: get/set, pipelines, locks."""

    def __init__(self):
        self.kv = {}
        self.locks = []

    def get(self, key):
        return self.kv.get(key)

    def set(self, key, val):
        self.kv[key] = val

    def pipeline(self, transaction=True):
        return FakePipeline(self)

    def lock(self, name, timeout=None, blocking_timeout=None):
        return FakeLock(self, name)


class FakePipeline:
    def __init__(self, client):
        self.client = client
        self.pending = []

    def set(self, key, val):
        self.pending.append((key, val))

    def execute(self):
        for key, val in self.pending:
            self.client.set(key, val)
        self.pending = []


class FakeLock:
    def __init__(self, client, name):
        self.client = client
        self.name = name

    def __enter__(self):
        self.client.locks.append(self.name)
        return self

    def __exit__(self, *exc):
        return False
