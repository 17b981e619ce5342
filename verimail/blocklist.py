# verimail/blocklist.py
"""Disposable-domain blocklist with time-based refresh from a remote list."""
import logging
import time
from typing import Callable, Iterable, Optional

import httpx

from verimail.models import BlocklistSnapshot

logger = logging.getLogger(__name__)

DEFAULT_BLOCKLIST_URL = (
    "https://raw.githubusercontent.com/disposable-email-domains/"
    "disposable-email-domains/master/disposable_email_blocklist.conf"
)

DEFAULT_REFRESH_INTERVAL = 24 * 60 * 60  # seconds

# Used on its own when the remote list can't be fetched, merged in otherwise
FALLBACK_DOMAINS = frozenset({
    "tempmail.com", "throwawaymail.com", "10minutemail.com",
    "guerrillamail.com", "mailinator.com", "tempmail.net",
    "temp-mail.org", "yopmail.com", "disposablemail.com",
    "sharklasers.com", "spam4.me", "dispostable.com",
})


class BlocklistFetchError(Exception):
    """Remote list was unreachable or unusable."""


def parse_blocklist(text: str) -> set[str]:
    """Parse a one-domain-per-line list, skipping blanks and # comments."""
    domains = set()
    for line in text.splitlines():
        line = line.strip().lower()
        if line and not line.startswith("#"):
            domains.add(line)
    return domains


class BlocklistStore:
    """Holds the current blocklist snapshot and refreshes it when stale.

    The snapshot is swapped in with a single assignment, so readers always see
    either the old or the new complete set. Refreshes are not serialized: two
    callers that both find the snapshot stale will both fetch, and the last
    one to finish wins.
    """

    def __init__(
        self,
        url: str = DEFAULT_BLOCKLIST_URL,
        refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
        fallback_domains: Iterable[str] = FALLBACK_DOMAINS,
        timeout: float = 10.0,
        clock: Callable[[], float] = time.time,
    ):
        self.url = url
        self.refresh_interval = refresh_interval
        self.fallback_domains = frozenset(d.strip().lower() for d in fallback_domains if d.strip())
        if not self.fallback_domains:
            raise ValueError("Fallback domain list must not be empty")
        self.timeout = timeout
        self._clock = clock
        self._snapshot: Optional[BlocklistSnapshot] = None

    @property
    def snapshot(self) -> Optional[BlocklistSnapshot]:
        return self._snapshot

    def is_stale(self) -> bool:
        snapshot = self._snapshot
        if snapshot is None:
            return True
        return snapshot.age(self._clock()) > self.refresh_interval

    def contains(self, domain: str) -> bool:
        snapshot = self._snapshot
        return snapshot is not None and domain in snapshot

    async def ensure_fresh(self) -> None:
        """Refresh the snapshot if it's missing or older than the interval."""
        if not self.is_stale():
            return
        await self.refresh()

    async def refresh(self) -> BlocklistSnapshot:
        """Fetch the remote list now. Falls back to the built-in set on failure."""
        try:
            logger.info("Fetching disposable email blocklist from %s", self.url)
            domains = await self._fetch_domains()
            snapshot = BlocklistSnapshot(
                domains=frozenset(domains | self.fallback_domains),
                fetched_at=self._clock(),
                source="remote",
            )
            logger.info("Updated blocklist with %d domains", len(snapshot))
            logger.debug("Sample blocked domains: %s", sorted(snapshot.domains)[:5])
        except Exception as e:
            logger.warning("Failed to update blocklist, using fallback list: %s", e)
            # Stamped like a successful fetch so we don't retry on every request
            snapshot = BlocklistSnapshot(
                domains=self.fallback_domains,
                fetched_at=self._clock(),
                source="fallback",
            )

        self._snapshot = snapshot
        return snapshot

    async def _fetch_domains(self) -> set[str]:
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            response = await client.get(self.url)
            response.raise_for_status()
            domains = parse_blocklist(response.text)

        if not domains:
            raise BlocklistFetchError(f"No domains found in blocklist from {self.url}")
        return domains
