"""Outgoing email.

Mail goes through a plain SMTP connection configured from the environment.
When no SMTP server is configured (local development) messages are written
to the log instead of being sent.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from quiz_arena import config
from quiz_arena.core.exceptions import MailDeliveryError

logger = logging.getLogger(__name__)


class Mailer:
    """Sends plain-text emails over SMTP."""

    def __init__(
        self,
        server: Optional[str] = config.SMTP_SERVER,
        port: int = config.SMTP_PORT,
        user: Optional[str] = config.SMTP_USER,
        password: Optional[str] = config.SMTP_PASSWORD,
        sender: str = config.SMTP_SENDER,
        use_tls: bool = config.SMTP_USE_TLS,
    ):
        self.server = server
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender
        self.use_tls = use_tls

    @property
    def configured(self) -> bool:
        return bool(self.server)

    def send(self, to: str, subject: str, body: str) -> None:
        """Send one email.

        Raises:
            MailDeliveryError: If the SMTP exchange fails.
        """
        if not self.configured:
            logger.warning(
                "SMTP not configured, email not sent. To: %s Subject: %s\n%s",
                to,
                subject,
                body,
            )
            return

        msg = MIMEMultipart()
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.attach(MIMEText(body, "plain"))

        try:
            with smtplib.SMTP(self.server, self.port, timeout=10) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.user and self.password:
                    smtp.login(self.user, self.password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email to %s: %s", to, e)
            raise MailDeliveryError(f"Could not send email to {to}") from e
        logger.info("Sent email '%s' to %s", subject, to)

    def send_verification_code(self, to: str, name: str, code: str, ttl_minutes: int) -> None:
        body = (
            f"Hello {name},\n\n"
            f"Your Quiz Arena verification code is: {code}\n\n"
            f"The code expires in {ttl_minutes} minutes. If you did not try to "
            "register, you can ignore this email.\n"
        )
        self.send(to, "Your Quiz Arena verification code", body)
