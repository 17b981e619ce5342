# verimail/mx_resolver.py
"""MX lookups via dnspython's async resolver."""
import logging
from dataclasses import dataclass
from typing import Optional

import dns.asyncresolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MxRecord:
    priority: int
    host: str


class MXResolver:
    """Wraps MX resolution. ``has_valid_mx`` never raises."""

    def __init__(self, resolver: Optional[dns.asyncresolver.Resolver] = None, timeout: float = 5.0):
        self.resolver = resolver or dns.asyncresolver.Resolver()
        self.timeout = timeout

    async def resolve_mail_exchange(self, domain: str) -> list[MxRecord]:
        """Return MX records sorted by priority. DNS errors propagate."""
        answers = await self.resolver.resolve(domain, "MX", lifetime=self.timeout)
        records = [
            MxRecord(priority=int(r.preference), host=str(r.exchange).rstrip("."))
            for r in answers
        ]
        return sorted(records, key=lambda r: r.priority)

    async def has_valid_mx(self, domain: str) -> bool:
        try:
            records = await self.resolve_mail_exchange(domain)
        except Exception as e:
            # NXDOMAIN, NoAnswer, NoNameservers, timeouts: all mean "no mail server"
            logger.info("MX lookup failed for %s: %s", domain, e)
            return False
        return any(r.priority >= 0 for r in records)
