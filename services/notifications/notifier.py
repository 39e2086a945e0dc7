"""
=====================================================
AI Receptionist - Owner Notifier
=====================================================
Fire-and-forget side effects (owner emails, follow-up texts).

Failures are logged and never surface to the caller.
"""

import asyncio
from typing import Awaitable, Optional, Set

from loguru import logger

from services.notifications.email_service import EmailService, create_email_service


class BackgroundDispatcher:
    """Runs side-effect coroutines as tracked background tasks"""

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    def submit(self, coro: Awaitable, description: str) -> asyncio.Task:
        task = asyncio.create_task(self._guard(coro, description))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @staticmethod
    async def _guard(coro: Awaitable, description: str) -> None:
        try:
            await coro
        except Exception as e:
            logger.error(f"Background: {description} failed: {e}")

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every submitted task (shutdown and tests)"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))


class Notifier:
    """
    Sends {subject, body} notifications to the operator address.

    Args:
        email_service: Delivery backend
        owner_email: Fixed operator address
        dispatcher: Background task runner for fire-and-forget sends
    """

    def __init__(self, email_service: EmailService, owner_email: str,
                 dispatcher: Optional[BackgroundDispatcher] = None):
        self.email_service = email_service
        self.owner_email = owner_email
        self.dispatcher = dispatcher or BackgroundDispatcher()

    async def send(self, subject: str, body: str) -> bool:
        """Send now; returns False instead of raising"""
        if not self.owner_email:
            logger.warning(f"Notifier: No owner email configured, dropping '{subject}'")
            return False
        try:
            return await self.email_service.send_email_async(self.owner_email, subject, body)
        except Exception as e:
            logger.error(f"Notifier: Email failed: {e}")
            return False

    def notify(self, subject: str, body: str) -> None:
        """Enqueue a notification without waiting for delivery"""
        self.dispatcher.submit(self.send(subject, body), f"email '{subject}'")


# Global instance
_notifier: Optional[Notifier] = None


def get_notifier() -> Notifier:
    """Get global notifier instance"""
    global _notifier
    if _notifier is None:
        from config.settings import get_settings
        from services.knowledge.business_profile import get_business_profile
        settings = get_settings()
        owner_email = settings.owner_email or get_business_profile().owner_email
        _notifier = Notifier(create_email_service(settings.model_dump()), owner_email)
    return _notifier
