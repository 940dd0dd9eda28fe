"""
notifications/mailer.py -- Background email outbox.

enqueue() is non-blocking: messages go onto a queue.Queue and a single daemon
worker thread delivers them over SMTP. Request handlers never wait on the
mail server, and a delivery failure is logged, never raised to the caller.

With SMTP_HOST unset the outbox runs in log-only mode: messages are drained
and logged but not sent. This is the default for development and tests.

Lifecycle: start() in the app lifespan startup, stop() on shutdown. stop()
pushes a sentinel so the worker finishes what is already queued first.
"""

from __future__ import annotations

import html
import logging
import queue
import smtplib
import threading
from dataclasses import dataclass
from email.mime.text import MIMEText

from catalog.models import Funko
from core.config import Settings

_STOP = object()


@dataclass(frozen=True)
class OutgoingEmail:
    to: str
    subject: str
    body: str
    is_html: bool = True


class EmailOutbox:
    def __init__(self, settings: Settings, logger: logging.Logger | None = None) -> None:
        self._settings = settings
        self._queue: queue.Queue = queue.Queue()
        self._worker: threading.Thread | None = None
        self._log = logger or logging.getLogger("funkostore.mailer")
        self.sent = 0
        self.failed = 0

    @property
    def enabled(self) -> bool:
        return bool(self._settings.smtp_host)

    def start(self) -> None:
        if self._worker is not None and self._worker.is_alive():
            return
        self._worker = threading.Thread(target=self._run, name="email-outbox", daemon=True)
        self._worker.start()
        self._log.info("Email outbox started (smtp %s)", "enabled" if self.enabled else "disabled, log-only")

    def stop(self, timeout: float = 5.0) -> None:
        if self._worker is None:
            return
        self._queue.put(_STOP)
        self._worker.join(timeout)
        self._worker = None

    def enqueue(self, message: OutgoingEmail) -> None:
        self._queue.put(message)
        self._log.debug("Email queued for %s: %s", message.to, message.subject)

    def pending(self) -> int:
        return self._queue.qsize()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self._deliver(item)
            finally:
                self._queue.task_done()

    def _deliver(self, message: OutgoingEmail) -> None:
        if not self.enabled:
            self._log.info("SMTP disabled, dropping email to %s: %s", message.to, message.subject)
            return
        mime = MIMEText(message.body, "html" if message.is_html else "plain", "utf-8")
        mime["Subject"] = message.subject
        mime["From"] = self._settings.smtp_from
        mime["To"] = message.to
        try:
            with smtplib.SMTP(self._settings.smtp_host, self._settings.smtp_port, timeout=10) as smtp:
                if self._settings.smtp_use_tls:
                    smtp.starttls()
                if self._settings.smtp_username:
                    smtp.login(self._settings.smtp_username, self._settings.smtp_password)
                smtp.send_message(mime)
            self.sent += 1
            self._log.info("Email sent to %s: %s", message.to, message.subject)
        except (smtplib.SMTPException, OSError) as exc:
            self.failed += 1
            self._log.warning("Email delivery to %s failed: %s", message.to, exc)


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


def _base_template(title: str, content: str) -> str:
    return (
        "<html><body style='font-family: sans-serif'>"
        f"<h2>{html.escape(title)}</h2>{content}"
        "<p style='color: #888'>Funko Store</p>"
        "</body></html>"
    )


def funko_created_email(funko: Funko, to: str) -> OutgoingEmail:
    """Admin notice for a newly created product."""
    content = (
        "<ul>"
        f"<li>ID: {funko.id}</li>"
        f"<li>Name: {html.escape(funko.name)}</li>"
        f"<li>Category: {html.escape(funko.category)}</li>"
        f"<li>Price: {funko.price:.2f}</li>"
        "</ul>"
    )
    return OutgoingEmail(
        to=to,
        subject=f"New product in Funko Store: {funko.name}",
        body=_base_template("New product created", content),
    )
