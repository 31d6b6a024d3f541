"""
Blocking SMTP delivery of one-time codes.

Shared by the in-process SMTP gateway (run in a threadpool) and the Celery
worker task.
"""
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from unimart.core.config import settings
from unimart.core.errors import DeliveryFailure
from unimart.core.logging import get_logger
from unimart.core.otp import OtpTrigger, expiry_for

logger = get_logger(__name__)

SUBJECTS = {
    OtpTrigger.REGISTER: "Your OTP for Unimart Email Verification",
    OtpTrigger.RESEND: "Your OTP for Unimart Email Verification",
    OtpTrigger.FORGOT_PASSWORD: "Your OTP for Unimart Password Reset",
}


def build_otp_message(email: str, code: str, trigger: OtpTrigger) -> MIMEMultipart:
    from_email = settings.SMTP_FROM_EMAIL or settings.SMTP_USERNAME
    minutes = int(expiry_for(trigger).total_seconds() // 60)

    msg = MIMEMultipart()
    msg['From'] = f"{settings.SMTP_FROM_NAME} <{from_email}>"
    msg['To'] = email
    msg['Subject'] = SUBJECTS[trigger]

    if trigger == OtpTrigger.FORGOT_PASSWORD:
        intro = "You requested a password reset for your Unimart account."
    else:
        intro = "Welcome to Unimart! Confirm your email address to finish signing up."

    body = f"""
    <html>
        <body>
            <h2>Verification code</h2>
            <p>{intro}</p>
            <p>Your OTP is: <strong>{code}</strong></p>
            <p>It expires in {minutes} minutes.</p>
            <p>If you did not request this code, ignore this email.</p>
            <hr>
            <p><small>Unimart - please do not reply to this email</small></p>
        </body>
    </html>
    """
    msg.attach(MIMEText(body, 'html'))
    return msg


def deliver_otp_email(email: str, code: str, trigger: OtpTrigger) -> None:
    """Send the code over SMTP; raises ``DeliveryFailure`` on any transport error."""
    if not settings.SMTP_USERNAME or not settings.SMTP_PASSWORD:
        logger.error("SMTP credentials not configured")
        raise DeliveryFailure()

    msg = build_otp_message(email, code, trigger)
    from_email = settings.SMTP_FROM_EMAIL or settings.SMTP_USERNAME

    logger.info(f"Sending {trigger.value} OTP to {email}")
    try:
        server = smtplib.SMTP(settings.SMTP_SERVER, settings.SMTP_PORT, timeout=settings.NOTIFICATION_TIMEOUT_SECONDS)
        try:
            server.starttls()
            server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            server.sendmail(from_email, email, msg.as_string())
        finally:
            server.quit()
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send OTP email to {email}: {e}")
        raise DeliveryFailure() from e
