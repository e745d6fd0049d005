"""
SMS Gateways
============
Delivery of OTP messages through an SMS provider.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

import structlog
from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

logger = structlog.get_logger(__name__)


@dataclass
class SendResult:
    """Result of an SMS send operation."""
    success: bool
    message_id: Optional[str] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    retryable: bool = True


class SmsGateway(ABC):
    """Abstract SMS delivery gateway."""

    name: str = "sms"

    @abstractmethod
    async def send(self, phone: str, message: str) -> SendResult:
        """
        Send a text message.

        Args:
            phone: Canonical recipient phone number
            message: Message body

        Returns:
            SendResult; provider failures are reported, not raised
        """

    async def close(self) -> None:
        """Clean up resources (e.g., close HTTP clients)."""


class ConsoleSmsGateway(SmsGateway):
    """
    Gateway that logs messages instead of sending them.

    For development only. Keeps an outbox so tests can read codes back.
    """

    name = "console"

    def __init__(self):
        self.outbox: List[tuple] = []

    async def send(self, phone: str, message: str) -> SendResult:
        self.outbox.append((phone, message))
        logger.info("sms_logged", phone=phone, length=len(message))
        return SendResult(success=True, message_id=f"console-{len(self.outbox)}")


class RetryingSmsGateway(SmsGateway):
    """
    Wraps another gateway with bounded retries and exponential backoff.

    Only results marked ``retryable`` are retried; the final result is
    returned as-is so callers see the last provider error.
    """

    def __init__(
        self,
        gateway: SmsGateway,
        max_attempts: int = 3,
        min_wait: float = 0.5,
        max_wait: float = 4.0,
    ):
        self.gateway = gateway
        self.name = gateway.name
        self.max_attempts = max_attempts
        self.min_wait = min_wait
        self.max_wait = max_wait

    async def send(self, phone: str, message: str) -> SendResult:
        retrying = AsyncRetrying(
            retry=retry_if_result(lambda result: not result.success and result.retryable),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.min_wait, min=self.min_wait, max=self.max_wait),
            before_sleep=before_sleep_log(logging.getLogger(__name__), logging.WARNING),
        )
        try:
            return await retrying(self.gateway.send, phone, message)
        except RetryError as e:
            result = e.last_attempt.result()
            logger.error(
                "sms_retry_exhausted",
                provider=self.name,
                attempts=self.max_attempts,
                error=result.error_message,
            )
            return result

    async def close(self) -> None:
        await self.gateway.close()
