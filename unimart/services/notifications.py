"""
Notification gateway: delivers one-time codes to a user's email.

The identity service awaits ``send_otp`` and treats ``DeliveryFailure`` as a
distinct outcome. Backends:

- ``smtp``: send in-process, blocking I/O pushed to the threadpool.
- ``celery``: enqueue the ``send_otp_email`` task and wait for its result.
- ``console``: log the code (local development).
"""
from starlette.concurrency import run_in_threadpool

from unimart.core.config import settings
from unimart.core.errors import DeliveryFailure
from unimart.core.logging import get_logger
from unimart.core.otp import OtpTrigger
from unimart.mycelery.worker import send_otp_email
from unimart.services.email import deliver_otp_email

logger = get_logger("auth")


class NotificationGateway:
    async def send_otp(self, email: str, code: str, trigger: OtpTrigger) -> None:
        raise NotImplementedError


class SmtpNotificationGateway(NotificationGateway):
    async def send_otp(self, email: str, code: str, trigger: OtpTrigger) -> None:
        await run_in_threadpool(deliver_otp_email, email, code, trigger)


class CeleryNotificationGateway(NotificationGateway):
    def __init__(self, timeout: int = 30):
        self.timeout = timeout

    async def send_otp(self, email: str, code: str, trigger: OtpTrigger) -> None:
        try:
            result = send_otp_email.delay(email, code, trigger.value)
            await run_in_threadpool(result.get, timeout=self.timeout)
        except Exception as e:
            # Broker down, timeout, or the task gave up after its retries
            logger.error(f"Queued OTP delivery to {email} failed: {e}")
            raise DeliveryFailure() from e


class ConsoleNotificationGateway(NotificationGateway):
    async def send_otp(self, email: str, code: str, trigger: OtpTrigger) -> None:
        logger.info(f"=== SIMULATED EMAIL === to={email} purpose={trigger.value} otp={code}")


def build_notification_gateway(backend: str = None) -> NotificationGateway:
    backend = (backend or settings.NOTIFICATION_BACKEND).lower()
    if backend == "smtp":
        return SmtpNotificationGateway()
    if backend == "celery":
        return CeleryNotificationGateway(timeout=settings.NOTIFICATION_TIMEOUT_SECONDS)
    if backend == "console":
        return ConsoleNotificationGateway()
    raise ValueError(f"Unknown notification backend: {backend}")
