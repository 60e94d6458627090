"""Outbox-capturing email sender for local development and tests."""

from devcamper.adapters.email.base import EmailDeliveryError, EmailMessage, EmailSender


class MemoryEmailSender(EmailSender):
    """Keeps sent messages in ``outbox``; ``fail_next`` makes the next send raise."""

    def __init__(self) -> None:
        self.outbox: list[EmailMessage] = []
        self.fail_next: str | None = None

    async def send(self, message: EmailMessage) -> None:
        if self.fail_next is not None:
            reason = self.fail_next
            self.fail_next = None
            raise EmailDeliveryError(reason)
        self.outbox.append(message)


__all__ = ["MemoryEmailSender"]
