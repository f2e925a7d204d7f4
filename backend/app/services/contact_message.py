"""Rendering of a contact form submission into mail bodies."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

SUBJECT = "Запрос коммерческого предложения"
SENDER_NAME = "Сайт УРАЛПРОМТ"
PLACEHOLDER = "-"

_HTML_ESCAPES = {
	"&": "&amp;",
	"<": "&lt;",
	">": "&gt;",
	'"': "&quot;",
	"'": "&#39;",
}


def escape_html(value: Optional[Any]) -> str:
	"""Replace the five HTML-special characters with their entities."""
	if value is None:
		return ""
	return "".join(_HTML_ESCAPES.get(ch, ch) for ch in str(value))


def _optional_str(value: Any) -> Optional[str]:
	if value is None:
		return None
	return str(value)


@dataclass
class Submission:
	name: Optional[str] = None
	phone: Optional[str] = None
	message: Optional[str] = None

	@classmethod
	def from_body(cls, body: Any) -> "Submission":
		if not isinstance(body, dict):
			body = {}
		return cls(
			name=_optional_str(body.get("name")),
			phone=_optional_str(body.get("phone")),
			message=_optional_str(body.get("message")),
		)

	def with_defaults(self) -> "Submission":
		"""Return a copy where absent fields hold the placeholder."""
		return Submission(
			name=PLACEHOLDER if self.name is None else self.name,
			phone=PLACEHOLDER if self.phone is None else self.phone,
			message=PLACEHOLDER if self.message is None else self.message,
		)


def render_text(submission: Submission) -> str:
	s = submission.with_defaults()
	return f"Имя: {s.name}\nТелефон: {s.phone}\nСообщение:\n{s.message}"


def render_html(submission: Submission) -> str:
	s = submission.with_defaults()
	message = escape_html(s.message).replace("\n", "<br/>")
	return "\n".join([
		f"<p><strong>Имя:</strong> {escape_html(s.name)}</p>",
		f"<p><strong>Телефон:</strong> {escape_html(s.phone)}</p>",
		f"<p><strong>Сообщение:</strong><br/>{message}</p>",
	])
