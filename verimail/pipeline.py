# verimail/pipeline.py
"""
Staged email verification.

Stages run in a fixed order and the first failing check ends the run:
1. Cache lookup - a live cached verdict is returned as-is
2. Blocklist refresh - reload disposable domains if stale
3. Syntax check - local@domain.tld shape
4. Disposable check - domain or any parent domain on the blocklist
5. MX check - domain has a mail server
6. Mailbox check - mail server accepts the recipient

Every computed verdict is written back to the cache before it's returned.
"""
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from verimail.blocklist import BlocklistStore
from verimail.cache import InMemoryStore, RedisStore, ResultCache
from verimail.domain_matcher import DomainMatcher
from verimail.mailbox_probe import MailboxProbe, SmtpRcptCheck
from verimail.models import Verification, VerificationOutcome
from verimail.mx_resolver import MXResolver

logger = logging.getLogger(__name__)

# Whitespace as ECMAScript defines it; re's \s also takes \x1c-\x1f and \x85
WHITESPACE = r"\t\n\v\f\r \u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff"

# Shape check only, not RFC 5321
EMAIL_PATTERN = re.compile(
    rf"[^{WHITESPACE}@]+@[^{WHITESPACE}@]+\.[^{WHITESPACE}@]+"
)


def check_syntax(email: str) -> bool:
    return EMAIL_PATTERN.fullmatch(email) is not None


def extract_domain(email: str) -> str:
    """Everything after the first @, lower-cased."""
    return email.split("@", 1)[1].lower()


class Stage(Enum):
    CACHE_LOOKUP = "cache_lookup"
    BLOCKLIST_REFRESH = "blocklist_refresh"
    SYNTAX_CHECK = "syntax_check"
    DISPOSABLE_CHECK = "disposable_check"
    MX_CHECK = "mx_check"
    MAILBOX_CHECK = "mailbox_check"
    STORE = "store"
    RETURNED = "returned"


@dataclass
class PipelineRun:
    """State of one request as it moves through the stages."""
    email: str
    verification: Verification
    domain: str = ""
    cached: bool = False
    stage: Stage = Stage.CACHE_LOOKUP

    @classmethod
    def start(cls, email: str) -> "PipelineRun":
        return cls(email=email, verification=Verification.new(email))

    def outcome(self) -> VerificationOutcome:
        return VerificationOutcome(result=self.verification, cached=self.cached)


class VerificationPipeline:
    """Runs one address through the verification stages."""

    def __init__(
        self,
        cache: ResultCache,
        blocklist: BlocklistStore,
        matcher: DomainMatcher,
        mx_resolver: MXResolver,
        mailbox_probe: MailboxProbe,
    ):
        self.cache = cache
        self.blocklist = blocklist
        self.matcher = matcher
        self.mx_resolver = mx_resolver
        self.mailbox_probe = mailbox_probe
        self._handlers = {
            Stage.CACHE_LOOKUP: self._cache_lookup,
            Stage.BLOCKLIST_REFRESH: self._blocklist_refresh,
            Stage.SYNTAX_CHECK: self._syntax_check,
            Stage.DISPOSABLE_CHECK: self._disposable_check,
            Stage.MX_CHECK: self._mx_check,
            Stage.MAILBOX_CHECK: self._mailbox_check,
            Stage.STORE: self._store,
        }

    @classmethod
    def from_settings(cls, settings=None) -> "VerificationPipeline":
        """Build the production wiring from application settings."""
        if settings is None:
            from verimail.config import settings

        if settings.cache.redis_url:
            store = RedisStore(settings.cache.redis_url, settings.cache.table)
        else:
            store = InMemoryStore()
        cache = ResultCache(store, ttl=settings.cache.ttl_seconds)

        blocklist = BlocklistStore(
            url=settings.blocklist.url,
            refresh_interval=settings.blocklist.refresh_interval_seconds,
            fallback_domains=settings.blocklist.fallback_domains,
            timeout=settings.blocklist.timeout,
        )
        mx_resolver = MXResolver(timeout=settings.dns.timeout)
        capability = SmtpRcptCheck(
            mx_resolver,
            from_email=settings.smtp.from_email,
            helo_host=settings.smtp.helo_host,
            timeout=settings.smtp.timeout,
            port=settings.smtp.port,
        )
        return cls(
            cache=cache,
            blocklist=blocklist,
            matcher=DomainMatcher(blocklist),
            mx_resolver=mx_resolver,
            mailbox_probe=MailboxProbe(capability),
        )

    async def aclose(self) -> None:
        """Close the cache store's connections."""
        await self.cache.aclose()

    async def verify(self, email: str) -> VerificationOutcome:
        run = PipelineRun.start(email)
        while run.stage is not Stage.RETURNED:
            run.stage = await self.run_stage(run.stage, run)
        return run.outcome()

    async def run_stage(self, stage: Stage, run: PipelineRun) -> Stage:
        """Execute a single stage and return the stage that follows it."""
        return await self._handlers[stage](run)

    async def _cache_lookup(self, run: PipelineRun) -> Stage:
        cached = await self.cache.get(run.email)
        if cached is None:
            return Stage.BLOCKLIST_REFRESH
        run.verification = cached
        run.cached = True
        return Stage.RETURNED

    async def _blocklist_refresh(self, run: PipelineRun) -> Stage:
        await self.blocklist.ensure_fresh()
        return Stage.SYNTAX_CHECK

    async def _syntax_check(self, run: PipelineRun) -> Stage:
        if not check_syntax(run.email):
            return Stage.STORE
        run.verification = run.verification.with_updates(syntax_valid=True)
        run.domain = extract_domain(run.email)
        return Stage.DISPOSABLE_CHECK

    async def _disposable_check(self, run: PipelineRun) -> Stage:
        if self.matcher.is_disposable(run.domain):
            run.verification = run.verification.with_updates(disposable=True)
            return Stage.STORE
        return Stage.MX_CHECK

    async def _mx_check(self, run: PipelineRun) -> Stage:
        if not await self.mx_resolver.has_valid_mx(run.domain):
            return Stage.STORE
        run.verification = run.verification.with_updates(has_mx_record=True)
        return Stage.MAILBOX_CHECK

    async def _mailbox_check(self, run: PipelineRun) -> Stage:
        accepted = await self.mailbox_probe.probe(run.email)
        run.verification = run.verification.with_updates(
            mailbox_verified=accepted,
            verified=accepted,
        )
        return Stage.STORE

    async def _store(self, run: PipelineRun) -> Stage:
        await self.cache.put(run.email, run.verification)
        logger.debug("Verified %s: %s", run.email, run.verification.to_dict())
        return Stage.RETURNED


_default_pipeline: Optional[VerificationPipeline] = None


def get_pipeline() -> VerificationPipeline:
    """Process-wide pipeline, built lazily from settings."""
    global _default_pipeline
    if _default_pipeline is None:
        _default_pipeline = VerificationPipeline.from_settings()
    return _default_pipeline


async def close_pipeline() -> None:
    """Release the process-wide pipeline's connections, if it was ever built."""
    global _default_pipeline
    if _default_pipeline is not None:
        pipeline, _default_pipeline = _default_pipeline, None
        await pipeline.aclose()
