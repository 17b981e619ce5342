import os

import pytest
import sys
from pathlib import Path

# Add repo root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from verimail.blocklist import BlocklistStore, FALLBACK_DOMAINS
from verimail.cache import InMemoryStore, ResultCache
from verimail.domain_matcher import DomainMatcher
from verimail.models import BlocklistSnapshot
from verimail.pipeline import VerificationPipeline


def pytest_configure(config):
    config.addinivalue_line("markers", "live: marks tests that hit real DNS/SMTP servers (deselect with '-m not live')")


def pytest_collection_modifyitems(config, items):
    # Skip live tests unless --run-live is passed or RUN_LIVE_TESTS=1
    run_live = config.getoption("--run-live", default=False) or os.environ.get("RUN_LIVE_TESTS") == "1"
    if not run_live:
        skip_live = pytest.mark.skip(reason="Live tests skipped. Use --run-live or RUN_LIVE_TESTS=1")
        for item in items:
            if "live" in item.keywords:
                item.add_marker(skip_live)


def pytest_addoption(parser):
    parser.addoption("--run-live", action="store_true", default=False, help="Run live tests against real DNS and mail servers")


class FakeClock:
    """Manually advanced replacement for time.time."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeMXResolver:
    def __init__(self, has_mx: bool = True):
        self.has_mx = has_mx
        self.calls = []

    async def has_valid_mx(self, domain: str) -> bool:
        self.calls.append(domain)
        return self.has_mx


class FakeMailboxProbe:
    def __init__(self, accepts: bool = True):
        self.accepts = accepts
        self.calls = []

    async def probe(self, email: str) -> bool:
        self.calls.append(email)
        return self.accepts


def fresh_blocklist(clock, domains=FALLBACK_DOMAINS) -> BlocklistStore:
    """A store that already holds a current snapshot, so no fetch happens."""
    store = BlocklistStore(url="https://blocklist.test/list.conf", clock=clock)
    store._snapshot = BlocklistSnapshot(domains=frozenset(domains), fetched_at=clock(), source="remote")
    return store


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_blocklist(clock):
    def _make(domains=FALLBACK_DOMAINS) -> BlocklistStore:
        return fresh_blocklist(clock, domains)
    return _make


@pytest.fixture
def kv_store(clock):
    return InMemoryStore(clock=clock)


@pytest.fixture
def mx_resolver():
    return FakeMXResolver()


@pytest.fixture
def mailbox_probe():
    return FakeMailboxProbe()


@pytest.fixture
def pipeline(clock, kv_store, mx_resolver, mailbox_probe):
    blocklist = fresh_blocklist(clock)
    return VerificationPipeline(
        cache=ResultCache(kv_store, ttl=3600, clock=clock),
        blocklist=blocklist,
        matcher=DomainMatcher(blocklist),
        mx_resolver=mx_resolver,
        mailbox_probe=mailbox_probe,
    )
