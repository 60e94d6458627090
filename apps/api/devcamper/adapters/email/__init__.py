"""Email sender adapters."""

from .base import EmailDeliveryError, EmailMessage, EmailSender
from .http_email import HttpEmailSender
from .memory_email import MemoryEmailSender

__all__ = [
    "EmailDeliveryError",
    "EmailMessage",
    "EmailSender",
    "HttpEmailSender",
    "MemoryEmailSender",
]
