"""Email channel port: abstract interface for sending plain-text mail."""

from abc import ABC, abstractmethod


class EmailPort(ABC):
    """Abstract interface for email dispatch adapters."""

    @abstractmethod
    def send(self, to: str, subject: str, body: str) -> dict:
        """Send a plain-text message.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...
