"""
Email delivery providers.

Every provider has the same surface: send() for one message and
send_batch() for many. A provider without credentials raises
ConfigurationMissingError so the fallback chain can skip it; any other
failure raises DeliveryError (or the underlying client error).
"""

import logging
import smtplib
from dataclasses import dataclass
from email.mime.text import MIMEText
from typing import List

import boto3
import httpx
import resend
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import settings as app_settings
from app.core.exceptions import BatchDeliveryError, ConfigurationMissingError, DeliveryError

logger = logging.getLogger(__name__)

HTTP_TIMEOUT_SECONDS = 20.0


@dataclass
class EmailMessage:
    to: str
    subject: str
    html: str


class EmailProvider:
    """Base provider. Subclasses implement send(); send_batch() loops by default."""

    name = "base"

    def __init__(self, config=None):
        self.config = config or app_settings

    @property
    def sender(self) -> str:
        return f"{self.config.EMAIL_FROM_NAME} <{self.config.EMAIL_FROM_ADDRESS}>"

    def is_configured(self) -> bool:
        return False

    def ensure_configured(self) -> None:
        if not self.is_configured():
            raise ConfigurationMissingError(f"{self.name} is not configured")

    def send(self, message: EmailMessage) -> None:
        raise NotImplementedError

    def send_batch(self, messages: List[EmailMessage]) -> None:
        """
        Send messages one by one.

        Raises:
            BatchDeliveryError: If a message fails after earlier ones were sent
        """
        self.ensure_configured()
        for delivered, message in enumerate(messages):
            try:
                self.send(message)
            except Exception as e:
                if delivered == 0:
                    raise
                raise BatchDeliveryError(delivered, e) from e


class ResendProvider(EmailProvider):
    name = "resend"

    def is_configured(self) -> bool:
        return bool(self.config.RESEND_API_KEY)

    def _params(self, message: EmailMessage) -> dict:
        return {
            "from": self.sender,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
        }

    def send(self, message: EmailMessage) -> None:
        self.ensure_configured()
        resend.api_key = self.config.RESEND_API_KEY

        response = resend.Emails.send(self._params(message))
        if not response or "id" not in response:
            raise DeliveryError(f"Resend returned no email id: {response}")
        logger.info(f"Email sent via Resend (Email ID: {response['id']})")

    def send_batch(self, messages: List[EmailMessage]) -> None:
        self.ensure_configured()
        resend.api_key = self.config.RESEND_API_KEY

        # The batch endpoint takes one request for up to 100 messages
        response = resend.Batch.send([self._params(message) for message in messages])
        if not response:
            raise DeliveryError("Resend batch send returned an empty response")
        logger.info(f"Batch of {len(messages)} emails sent via Resend")


class SendGridProvider(EmailProvider):
    name = "sendgrid"
    api_url = "https://api.sendgrid.com/v3/mail/send"

    def is_configured(self) -> bool:
        return bool(self.config.SENDGRID_API_KEY)

    def send(self, message: EmailMessage) -> None:
        self.ensure_configured()

        payload = {
            "personalizations": [{"to": [{"email": message.to}], "subject": message.subject}],
            "from": {"email": self.config.EMAIL_FROM_ADDRESS, "name": self.config.EMAIL_FROM_NAME},
            "content": [{"type": "text/html", "value": message.html}],
        }
        headers = {"Authorization": f"Bearer {self.config.SENDGRID_API_KEY}"}

        with httpx.Client(timeout=HTTP_TIMEOUT_SECONDS) as client:
            response = client.post(self.api_url, json=payload, headers=headers)

        if response.status_code >= 300:
            raise DeliveryError(f"SendGrid API error: {response.status_code} - {response.text[:300]}")
        logger.info(f"Email sent via SendGrid with subject {message.subject!r}")


class BrevoProvider(EmailProvider):
    name = "brevo"
    api_url = "https://api.brevo.com/v3/smtp/email"

    def is_configured(self) -> bool:
        return bool(self.config.BREVO_API_KEY)

    def _post(self, payload: dict) -> None:
        headers = {
            "accept": "application/json",
            "api-key": self.config.BREVO_API_KEY,
            "content-type": "application/json",
        }
        with httpx.Client(timeout=HTTP_TIMEOUT_SECONDS) as client:
            response = client.post(self.api_url, json=payload, headers=headers)

        if response.status_code >= 300:
            raise DeliveryError(f"Brevo API error: {response.status_code} - {response.text[:300]}")

    def _sender(self) -> dict:
        return {"name": self.config.EMAIL_FROM_NAME, "email": self.config.EMAIL_FROM_ADDRESS}

    def send(self, message: EmailMessage) -> None:
        self.ensure_configured()
        self._post({
            "sender": self._sender(),
            "to": [{"email": message.to}],
            "subject": message.subject,
            "htmlContent": message.html,
        })
        logger.info(f"Email sent via Brevo with subject {message.subject!r}")

    def send_batch(self, messages: List[EmailMessage]) -> None:
        self.ensure_configured()
        if not messages:
            return

        # messageVersions sends per-recipient subject/body in a single request
        first = messages[0]
        self._post({
            "sender": self._sender(),
            "subject": first.subject,
            "htmlContent": first.html,
            "messageVersions": [
                {"to": [{"email": m.to}], "subject": m.subject, "htmlContent": m.html}
                for m in messages
            ],
        })
        logger.info(f"Batch of {len(messages)} emails sent via Brevo")


class SESProvider(EmailProvider):
    name = "ses"

    def __init__(self, config=None, client=None):
        super().__init__(config)
        self._client = client

    def is_configured(self) -> bool:
        return bool(self.config.AWS_SES_ENABLED)

    @property
    def client(self):
        if self._client is None:
            session_kwargs = {"region_name": self.config.AWS_REGION}

            # Add credentials if provided (otherwise uses IAM role)
            if self.config.AWS_ACCESS_KEY_ID and self.config.AWS_SECRET_ACCESS_KEY:
                session_kwargs["aws_access_key_id"] = self.config.AWS_ACCESS_KEY_ID
                session_kwargs["aws_secret_access_key"] = self.config.AWS_SECRET_ACCESS_KEY

            self._client = boto3.client("ses", **session_kwargs)
        return self._client

    def send(self, message: EmailMessage) -> None:
        self.ensure_configured()
        try:
            response = self.client.send_email(
                Source=self.sender,
                Destination={"ToAddresses": [message.to]},
                Message={
                    "Subject": {"Data": message.subject, "Charset": "UTF-8"},
                    "Body": {"Html": {"Data": message.html, "Charset": "UTF-8"}},
                }
            )
        except ClientError as e:
            error_code = e.response["Error"]["Code"]
            error_message = e.response["Error"]["Message"]
            raise DeliveryError(f"AWS SES ClientError: {error_code} - {error_message}") from e
        except BotoCoreError as e:
            raise DeliveryError(f"AWS BotoCoreError: {e}") from e

        logger.info(f"Email sent via SES (MessageId: {response.get('MessageId')})")


class SMTPProvider(EmailProvider):
    name = "smtp"

    def is_configured(self) -> bool:
        return bool(self.config.SMTP_SERVER)

    def _build(self, message: EmailMessage) -> MIMEText:
        mime = MIMEText(message.html, "html", "utf-8")
        mime["Subject"] = message.subject
        mime["From"] = self.sender
        mime["To"] = message.to
        return mime

    def _deliver(self, messages: List[EmailMessage]) -> None:
        with smtplib.SMTP(self.config.SMTP_SERVER, self.config.SMTP_PORT, timeout=HTTP_TIMEOUT_SECONDS) as server:
            if self.config.SMTP_USE_TLS:
                server.starttls()
            if self.config.SMTP_USER:
                server.login(self.config.SMTP_USER, self.config.SMTP_PASSWORD)
            for delivered, message in enumerate(messages):
                try:
                    server.sendmail(self.config.EMAIL_FROM_ADDRESS, [message.to], self._build(message).as_string())
                except smtplib.SMTPException as e:
                    if delivered == 0:
                        raise
                    raise BatchDeliveryError(delivered, e) from e

    def send(self, message: EmailMessage) -> None:
        self.ensure_configured()
        self._deliver([message])
        logger.info(f"Email sent via SMTP to {self.config.SMTP_SERVER}")

    def send_batch(self, messages: List[EmailMessage]) -> None:
        self.ensure_configured()
        # One connection for the whole batch
        self._deliver(messages)
        logger.info(f"Batch of {len(messages)} emails sent via SMTP")


def default_providers(config=None) -> List[EmailProvider]:
    """Providers in fallback order."""
    return [
        ResendProvider(config),
        SendGridProvider(config),
        BrevoProvider(config),
        SESProvider(config),
        SMTPProvider(config),
    ]
