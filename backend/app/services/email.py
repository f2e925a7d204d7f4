"""SMTP send helper for the contact form relay.

Configuration is read from environment variables on every call to
`EmailConfig.from_env()` so a change in the hosting environment is picked
up by the next request.
"""
from __future__ import annotations

import os
import ssl
import smtplib
from email.message import EmailMessage
from email.utils import getaddresses, make_msgid
from dataclasses import dataclass
from typing import List, Optional
import asyncio


def allowed_origin() -> str:
	return os.getenv("ALLOWED_ORIGIN", "*")


class ConfigurationError(ValueError):
	"""Required SMTP credentials or the recipient address are missing."""


@dataclass
class EmailConfig:
	smtp_host: str = "smtp.yandex.ru"
	smtp_port: int = 465
	smtp_user: Optional[str] = None
	smtp_password: Optional[str] = None
	recipient: Optional[str] = None
	timeout: float = 30

	@property
	def secure(self) -> bool:
		# implicit TLS only on the SMTPS port
		return self.smtp_port == 465

	@property
	def recipients(self) -> List[str]:
		"""RECIPIENT_EMAIL may hold a comma-separated list of addresses."""
		return [addr for _, addr in getaddresses([self.recipient or ""]) if addr]

	@classmethod
	def from_env(cls) -> "EmailConfig":
		return cls(
			smtp_host=os.getenv("SMTP_HOST", "smtp.yandex.ru"),
			smtp_port=int(os.getenv("SMTP_PORT", "465")),
			smtp_user=os.getenv("SMTP_USER"),
			smtp_password=os.getenv("SMTP_PASS"),
			recipient=os.getenv("RECIPIENT_EMAIL"),
			timeout=float(os.getenv("SMTP_TIMEOUT", "30")),
		)

	def require(self) -> "EmailConfig":
		"""Raise ConfigurationError unless user, password and recipient are set."""
		if not self.smtp_user or not self.smtp_password or not self.recipient:
			raise ConfigurationError("SMTP or recipient not configured")
		return self


class EmailService:
	"""Sends a single message over SMTP per call.

	A new connection is opened for every send and closed before returning.
	"""

	def __init__(self, config: EmailConfig):
		self.config = config

	def _connect(self) -> smtplib.SMTP:
		context = ssl.create_default_context()
		if self.config.secure:
			return smtplib.SMTP_SSL(
				self.config.smtp_host,
				self.config.smtp_port,
				timeout=self.config.timeout,
				context=context,
			)
		server = smtplib.SMTP(self.config.smtp_host, self.config.smtp_port, timeout=self.config.timeout)
		server.ehlo()
		if server.has_extn("starttls"):
			server.starttls(context=context)
			server.ehlo()
		return server

	def send_email(
		self,
		to_addresses: List[str],
		subject: str,
		body: str,
		html: Optional[str] = None,
		from_address: Optional[str] = None,
	) -> str:
		"""Send an email via SMTP (blocking) and return its Message-ID.

		Raises smtplib.SMTPException or OSError on failure.
		"""
		if from_address is None:
			from_address = self.config.smtp_user
		msg = EmailMessage()
		msg["Subject"] = subject
		msg["From"] = from_address
		msg["To"] = ", ".join(to_addresses)

		domain = None
		if self.config.smtp_user and "@" in self.config.smtp_user:
			domain = self.config.smtp_user.rsplit("@", 1)[1]
		msg["Message-ID"] = make_msgid(domain=domain)

		msg.set_content(body)
		if html:
			msg.add_alternative(html, subtype="html")

		server = self._connect()
		try:
			if self.config.smtp_user and self.config.smtp_password:
				server.login(self.config.smtp_user, self.config.smtp_password)
			server.send_message(msg, to_addrs=list(to_addresses))
		finally:
			try:
				server.quit()
			except Exception:
				server.close()
		return msg["Message-ID"]

	async def send_email_async(self, *args, **kwargs) -> str:
		"""Async wrapper for send_email using asyncio.to_thread."""
		return await asyncio.to_thread(self.send_email, *args, **kwargs)
