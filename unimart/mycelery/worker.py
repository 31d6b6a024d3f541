from unimart.core.errors import DeliveryFailure
from unimart.core.logging import get_logger
from unimart.core.otp import OtpTrigger
from unimart.mycelery.app import celery_app
from unimart.services.email import deliver_otp_email

logger = get_logger("auth")


@celery_app.task(name="send_otp_email", bind=True, max_retries=3)
def send_otp_email(self, email: str, code: str, trigger: str):
    """Deliver an OTP email, retrying transport failures with exponential backoff."""
    try:
        deliver_otp_email(email, code, OtpTrigger(trigger))
    except DeliveryFailure as e:
        logger.warning(f"OTP delivery to {email} failed (attempt {self.request.retries + 1})")
        raise self.retry(exc=e, countdown=2 ** self.request.retries)
    return {"sent": True, "email": email}
