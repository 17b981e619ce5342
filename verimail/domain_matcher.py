# verimail/domain_matcher.py
from verimail.blocklist import BlocklistStore


def domain_suffixes(domain: str) -> list[str]:
    """Return the domain and its parent suffixes, longest first.

    The bare top-level label is never included, so ``a.b.example.com`` gives
    ``["a.b.example.com", "b.example.com", "example.com"]``.
    """
    labels = domain.split(".")
    return [".".join(labels[i:]) for i in range(len(labels) - 1)]


class DomainMatcher:
    """Checks a domain and its parent domains against the blocklist."""

    def __init__(self, store: BlocklistStore):
        self.store = store

    def is_disposable(self, domain: str) -> bool:
        for candidate in domain_suffixes(domain.lower()):
            if self.store.contains(candidate):
                return True
        return False
