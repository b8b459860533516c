from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class MailMessage:
    """
    Outgoing HTML email.

    :param to: Recipient address.
    :type to: str
    :param subject: Subject line.
    :type subject: str
    :param html: Rendered HTML body.
    :type html: str
    """

    to: str
    subject: str
    html: str


class EmailSender(Protocol):
    """Port for delivering a single HTML email. Failures raise ``EmailDeliveryError``."""

    def send_html(self, message: MailMessage) -> None: ...


class InMemoryEmailSender(EmailSender):
    """Collects messages in an outbox instead of delivering them."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.outbox: list[MailMessage] = []

    def send_html(self, message: MailMessage) -> None:
        with self._lock:
            self.outbox.append(message)

    def sent_to(self, address: str) -> list[MailMessage]:
        """Return the messages addressed to ``address`` in sending order."""
        with self._lock:
            return [m for m in self.outbox if m.to == address]

    def clear(self) -> None:
        with self._lock:
            self.outbox.clear()
