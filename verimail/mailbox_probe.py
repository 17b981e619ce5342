# verimail/mailbox_probe.py
"""
Mailbox existence checks.

The probe itself only knows how to turn a capability's answer into a boolean.
The default capability talks SMTP to the domain's primary MX host:
connect -> HELO -> MAIL FROM -> RCPT TO -> QUIT, no message is sent.
Many servers block this or accept every recipient, so a pass is a signal,
not a guarantee.
"""
import asyncio
import logging
import smtplib
from typing import Protocol

from verimail.mx_resolver import MXResolver

logger = logging.getLogger(__name__)

ACCEPTED_RCPT_CODES = (250, 251)


class MailboxCheckError(Exception):
    """The capability could not confirm the mailbox."""


class MailboxCapability(Protocol):
    async def attempt(self, email: str) -> None:
        """Return normally if the mailbox was confirmed, raise otherwise."""


class SmtpRcptCheck:
    """Confirms a mailbox by asking its MX host whether it accepts RCPT TO."""

    def __init__(
        self,
        mx_resolver: MXResolver,
        from_email: str = "verify@example.com",
        helo_host: str = "verify.local",
        timeout: int = 10,
        port: int = 25,
    ):
        self.mx_resolver = mx_resolver
        self.from_email = from_email
        self.helo_host = helo_host
        self.timeout = timeout
        self.port = port

    async def attempt(self, email: str) -> None:
        domain = email.rsplit("@", 1)[-1].lower()
        records = await self.mx_resolver.resolve_mail_exchange(domain)
        if not records:
            raise MailboxCheckError(f"No MX host for {domain}")

        mx_host = records[0].host
        loop = asyncio.get_running_loop()
        code, message = await loop.run_in_executor(None, self._rcpt, email, mx_host)
        if code not in ACCEPTED_RCPT_CODES:
            raise MailboxCheckError(f"{mx_host} rejected recipient: {code} {message}")

    def _rcpt(self, email: str, mx_host: str) -> tuple[int, str]:
        smtp = smtplib.SMTP(timeout=self.timeout)
        try:
            smtp.connect(mx_host, self.port)
            smtp.helo(self.helo_host)
            smtp.mail(self.from_email)
            code, message = smtp.rcpt(email)
        finally:
            try:
                smtp.quit()
            except smtplib.SMTPException:
                smtp.close()
        if isinstance(message, bytes):
            message = message.decode(errors="replace")
        return code, message


class MailboxProbe:
    """Reduces a mailbox capability to a plain yes/no. Never raises."""

    def __init__(self, capability: MailboxCapability):
        self.capability = capability

    async def probe(self, email: str) -> bool:
        try:
            await self.capability.attempt(email)
        except Exception as e:
            logger.info("Mailbox verification failed for %s: %s", email, e)
            return False
        return True
