"""
Feature managers for modem functionality.

- SMSManager: SMS messaging, storage and character set management
"""

from .sms import SMSManager

__all__ = [
    "SMSManager",
]
