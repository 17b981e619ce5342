# verimail/config.py
import json
import os
from pathlib import Path
from dataclasses import dataclass, field
from dotenv import load_dotenv

from verimail.blocklist import DEFAULT_BLOCKLIST_URL, DEFAULT_REFRESH_INTERVAL, FALLBACK_DOMAINS

load_dotenv()

CONFIG_FILE = Path(__file__).parent.parent / "config" / "verimail.json"


@dataclass
class CacheSettings:
    """Settings for the verdict cache."""
    table: str = "verimail-results"
    ttl_seconds: int = 24 * 60 * 60
    redis_url: str = ""  # Empty means in-memory store


@dataclass
class BlocklistSettings:
    """Settings for the disposable-domain blocklist."""
    url: str = DEFAULT_BLOCKLIST_URL
    refresh_interval_seconds: int = DEFAULT_REFRESH_INTERVAL
    fallback_domains: list = field(default_factory=lambda: sorted(FALLBACK_DOMAINS))
    timeout: float = 10.0


@dataclass
class DnsSettings:
    timeout: float = 5.0


@dataclass
class SmtpSettings:
    """Identity and limits for the RCPT TO mailbox probe."""
    from_email: str = "verify@example.com"
    helo_host: str = "verify.local"
    timeout: int = 10
    port: int = 25


@dataclass
class Settings:
    cache: CacheSettings = field(default_factory=CacheSettings)
    blocklist: BlocklistSettings = field(default_factory=BlocklistSettings)
    dns: DnsSettings = field(default_factory=DnsSettings)
    smtp: SmtpSettings = field(default_factory=SmtpSettings)
    log_level: str = "INFO"
    config_path: Path = CONFIG_FILE

    def __post_init__(self):
        config = {}
        if self.config_path.exists():
            with open(self.config_path) as f:
                config = json.load(f)

        # Load cache settings
        cache_config = config.get("cache", {})
        self.cache = CacheSettings(
            table=os.getenv("CACHE_TABLE", cache_config.get("table", "verimail-results")),
            ttl_seconds=int(os.getenv("CACHE_TTL", cache_config.get("ttl_seconds", 24 * 60 * 60))),
            redis_url=os.getenv("REDIS_URL", ""),
        )

        # Load blocklist settings
        blocklist_config = config.get("blocklist", {})
        self.blocklist = BlocklistSettings(
            url=os.getenv("BLOCKLIST_URL", blocklist_config.get("url", DEFAULT_BLOCKLIST_URL)),
            refresh_interval_seconds=int(os.getenv(
                "BLOCKLIST_REFRESH_SECONDS",
                blocklist_config.get("refresh_interval_seconds", DEFAULT_REFRESH_INTERVAL),
            )),
            fallback_domains=blocklist_config.get("fallback_domains") or sorted(FALLBACK_DOMAINS),
            timeout=float(blocklist_config.get("timeout", 10.0)),
        )

        dns_config = config.get("dns", {})
        self.dns = DnsSettings(timeout=float(dns_config.get("timeout", 5.0)))

        # Load SMTP probe settings
        smtp_config = config.get("smtp", {})
        self.smtp = SmtpSettings(
            from_email=os.getenv("SMTP_FROM_EMAIL", smtp_config.get("from_email", "verify@example.com")),
            helo_host=smtp_config.get("helo_host", "verify.local"),
            timeout=int(smtp_config.get("timeout", 10)),
            port=int(smtp_config.get("port", 25)),
        )

        self.log_level = os.getenv("LOG_LEVEL", self.log_level).upper()


settings = Settings()
