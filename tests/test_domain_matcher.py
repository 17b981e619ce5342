# tests/test_domain_matcher.py
from verimail.domain_matcher import DomainMatcher, domain_suffixes


def test_suffixes_exclude_bare_tld():
    assert domain_suffixes("a.b.example.com") == ["a.b.example.com", "b.example.com", "example.com"]


def test_suffixes_of_registrable_domain():
    assert domain_suffixes("example.com") == ["example.com"]


def test_single_label_has_no_suffixes():
    assert domain_suffixes("localhost") == []


def test_exact_match(make_blocklist):
    matcher = DomainMatcher(make_blocklist())
    assert matcher.is_disposable("mailinator.com") is True


def test_subdomain_of_blocked_domain_matches(make_blocklist):
    matcher = DomainMatcher(make_blocklist())
    assert matcher.is_disposable("mail.tempmail.com") is True
    assert matcher.is_disposable("a.b.yopmail.com") is True


def test_match_is_case_insensitive(make_blocklist):
    matcher = DomainMatcher(make_blocklist())
    assert matcher.is_disposable("Mail.TempMail.COM") is True


def test_normal_domain_not_disposable(make_blocklist):
    matcher = DomainMatcher(make_blocklist())
    assert matcher.is_disposable("gmail.com") is False
    assert matcher.is_disposable("company.co.uk") is False


def test_tld_alone_never_matches(make_blocklist):
    # "com" on the list must not make every .com address disposable
    matcher = DomainMatcher(make_blocklist({"com", "mailinator.com"}))
    assert matcher.is_disposable("example.com") is False


def test_parent_of_blocked_domain_not_matched(make_blocklist):
    matcher = DomainMatcher(make_blocklist({"mail.example.com"}))
    assert matcher.is_disposable("example.com") is False
    assert matcher.is_disposable("x.mail.example.com") is True
