# verimail/models.py
"""Value objects passed between the verification stages and the cache."""
from dataclasses import dataclass, field, replace


@dataclass(frozen=True)
class Verification:
    """Verdict for a single address. Built once per request, never mutated."""
    email: str
    syntax_valid: bool = False
    disposable: bool = False
    has_mx_record: bool = False
    mailbox_verified: bool = False
    verified: bool = False

    @classmethod
    def new(cls, email: str) -> "Verification":
        return cls(email=email)

    def with_updates(self, **changes) -> "Verification":
        """Return a copy with the given fields changed."""
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "email": self.email,
            "syntax": self.syntax_valid,
            "disposable": self.disposable,
            "mxRecord": self.has_mx_record,
            "smtp": self.mailbox_verified,
            "verified": self.verified,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Verification":
        return cls(
            email=data["email"],
            syntax_valid=bool(data.get("syntax", False)),
            disposable=bool(data.get("disposable", False)),
            has_mx_record=bool(data.get("mxRecord", False)),
            mailbox_verified=bool(data.get("smtp", False)),
            verified=bool(data.get("verified", False)),
        )


@dataclass(frozen=True)
class CacheEntry:
    email: str
    verification: Verification
    expires_at: float  # epoch seconds

    def is_usable(self, now: float) -> bool:
        return now < self.expires_at

    def to_item(self) -> dict:
        return {
            "email": self.email,
            "verification": self.verification.to_dict(),
            "expires_at": self.expires_at,
        }

    @classmethod
    def from_item(cls, item: dict) -> "CacheEntry":
        return cls(
            email=item["email"],
            verification=Verification.from_dict(item["verification"]),
            expires_at=float(item["expires_at"]),
        )


@dataclass(frozen=True)
class BlocklistSnapshot:
    """Complete set of disposable domains as of ``fetched_at``."""
    domains: frozenset = field(default_factory=frozenset)
    fetched_at: float = 0.0
    source: str = "fallback"  # "remote" or "fallback"

    def age(self, now: float) -> float:
        return now - self.fetched_at

    def __len__(self) -> int:
        return len(self.domains)

    def __contains__(self, domain: str) -> bool:
        return domain in self.domains


@dataclass(frozen=True)
class VerificationOutcome:
    result: Verification
    cached: bool = False

    def to_body(self) -> dict:
        if self.cached:
            return {"cached": True, "result": self.result.to_dict()}
        return {"result": self.result.to_dict()}

