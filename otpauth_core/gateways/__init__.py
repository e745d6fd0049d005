"""
External Collaborators
======================
User repository and SMS gateways consumed by the auth flow.
"""

from .users import UserAccount, UserRepository, InMemoryUserRepository
from .sms import SendResult, SmsGateway, ConsoleSmsGateway, RetryingSmsGateway
from .twilio import TwilioSmsGateway

__all__ = [
    # Users
    "UserAccount",
    "UserRepository",
    "InMemoryUserRepository",
    # SMS
    "SendResult",
    "SmsGateway",
    "ConsoleSmsGateway",
    "RetryingSmsGateway",
    "TwilioSmsGateway",
]
