from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional

import aiosmtplib
from fastapi import Request
from loguru import logger

from marketplace.core.config import Settings
from marketplace.core.exceptions import EmailDeliveryError


class EmailSender:
    """SMTP delivery with a bounded timeout. Failures raise EmailDeliveryError."""

    def __init__(
            self,
            hostname: Optional[str],
            port: Optional[int],
            username: Optional[str] = None,
            password: Optional[str] = None,
            start_tls: bool = True,
            timeout: float = 10.0,
            from_email: Optional[str] = None,
            from_name: Optional[str] = None,
    ):
        self.hostname = hostname
        self.port = port
        self.username = username
        self.password = password
        self.start_tls = start_tls
        self.timeout = timeout
        self.from_email = from_email
        self.from_name = from_name

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmailSender":
        return cls(
            hostname=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            start_tls=settings.SMTP_TLS,
            timeout=settings.SMTP_TIMEOUT,
            from_email=settings.EMAILS_FROM_EMAIL,
            from_name=settings.EMAILS_FROM_NAME,
        )

    def build_message(self, email_to: str, subject: str, html_body: str) -> MIMEMultipart:
        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = f"{self.from_name} <{self.from_email}>"
        message["To"] = email_to
        message.attach(MIMEText(html_body, "html"))
        return message

    async def send(self, email_to: str, subject: str, html_body: str) -> None:
        if not self.hostname:
            raise EmailDeliveryError("El servidor de correo no está configurado.")

        message = self.build_message(email_to, subject, html_body)
        try:
            await aiosmtplib.send(
                message,
                hostname=self.hostname,
                port=self.port,
                username=self.username,
                password=self.password,
                start_tls=self.start_tls,
                timeout=self.timeout,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {email_to}: {str(e)}")
            raise EmailDeliveryError() from e

        logger.info(f"Email sent successfully to {email_to}")


def get_email_sender(request: Request) -> EmailSender:
    return request.app.state.email_sender


def render_password_reset_email(reset_link: str, expire_minutes: int) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="UTF-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
    </head>
    <body style="margin: 0; padding: 0; font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Arial, sans-serif; background-color: #f5f5f5;">
        <table cellpadding="0" cellspacing="0" border="0" width="100%" style="background-color: #f5f5f5; padding: 20px 0;">
            <tr>
                <td align="center">
                    <table cellpadding="0" cellspacing="0" border="0" width="600" style="max-width: 600px; background-color: #ffffff; border-radius: 8px;">
                        <tr>
                            <td style="padding: 32px 30px; text-align: center; background-color: #1E3A8A; border-radius: 8px 8px 0 0;">
                                <h1 style="margin: 0; color: #ffffff; font-size: 26px;">TIC Americas</h1>
                            </td>
                        </tr>
                        <tr>
                            <td style="padding: 32px 30px; color: #374151; font-size: 15px; line-height: 22px;">
                                <p>Has solicitado restablecer tu contraseña. Haz clic en el siguiente enlace o pégalo en tu navegador:</p>
                                <p><a href="{reset_link}">{reset_link}</a></p>
                                <p>Este enlace expira en {expire_minutes} minutos.</p>
                            </td>
                        </tr>
                    </table>
                </td>
            </tr>
        </table>
    </body>
    </html>
    """
