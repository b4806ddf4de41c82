"""Fake email adapter: keeps sent mail in memory for tests and local runs."""

import threading
from uuid import uuid4

from notifications.channel.email_port import EmailPort


class FakeEmailAdapter(EmailPort):
    """Email adapter that records messages in memory for test assertions."""

    def __init__(self):
        self.sent_emails: list[dict] = []
        self.should_succeed = True
        self.raise_error: Exception | None = None
        self.delivered = threading.Event()

    def configure(self, should_succeed: bool = True, raise_error: Exception | None = None):
        """Fail softly (status "failed") or hard (raise) on the next sends."""
        self.should_succeed = should_succeed
        self.raise_error = raise_error

    def send(self, to: str, subject: str, body: str) -> dict:
        try:
            if self.raise_error is not None:
                raise self.raise_error
            if not self.should_succeed:
                return {"message_id": None, "status": "failed", "error": "Email delivery failed"}

            message_id = f"email-{uuid4().hex[:12]}"
            self.sent_emails.append({"message_id": message_id, "to": to, "subject": subject, "body": body})
            return {"message_id": message_id, "status": "sent"}
        finally:
            self.delivered.set()

    def reset(self):
        """Clear sent emails (useful between tests)."""
        self.sent_emails.clear()
        self.should_succeed = True
        self.raise_error = None
        self.delivered.clear()
