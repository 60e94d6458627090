"""Email delivery interfaces."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class EmailDeliveryError(Exception):
    """Raised when a message cannot be handed to the mail provider."""


@dataclass(frozen=True, slots=True)
class EmailMessage:
    to: str
    subject: str
    body: str


class EmailSender(ABC):
    """Provider-neutral email delivery interface."""

    @abstractmethod
    async def send(self, message: EmailMessage) -> None:
        """Deliver one message or raise ``EmailDeliveryError``."""


__all__ = ["EmailDeliveryError", "EmailMessage", "EmailSender"]
