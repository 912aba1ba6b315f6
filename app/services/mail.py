"""Transactional email through the ZeptoMail template API.

Sends run on a background thread pool. Email is a best-effort side channel: enqueue
and delivery failures are logged and never reach the caller.
"""

import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import httpx

from app.config import Settings, get_settings

logger = logging.getLogger("saas_base")


@dataclass
class WelcomeEmail:
    name: str
    last_name: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.last_name}".strip()


@dataclass
class VerificationCodeEmail:
    name: str
    otp: str
    expiration_minutes: int = 30


class MailService:
    """Builds template payloads and posts them in the background."""

    def __init__(
        self,
        settings: Settings | None = None,
        executor: Executor | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._executor = executor or ThreadPoolExecutor(
            max_workers=self.settings.MAIL_WORKERS, thread_name_prefix="mail"
        )
        self._client = client
        if not self.settings.MAIL_API_TOKEN:
            logger.warning("MAIL_API_TOKEN not configured. Emails will be logged, not sent.")

    # --- Enqueue (fire and forget) ---

    def enqueue_welcome_email(self, to_email: str, model: WelcomeEmail) -> None:
        self._enqueue(self.send_welcome_email, to_email, model, "welcome")

    def enqueue_verification_code_email(self, to_email: str, model: VerificationCodeEmail) -> None:
        self._enqueue(self.send_verification_code_email, to_email, model, "verification code")

    def _enqueue(self, send: Any, to_email: str, model: Any, kind: str) -> None:
        try:
            self._executor.submit(send, to_email, model)
            logger.debug("%s email job enqueued for %s", kind.capitalize(), to_email)
        except Exception:
            logger.warning("Failed to enqueue %s email for %s. This is non-critical.", kind, to_email, exc_info=True)

    # --- Send ---

    def send_welcome_email(self, to_email: str, model: WelcomeEmail) -> bool:
        body = {
            "mail_template_key": self.settings.MAIL_WELCOME_TEMPLATE_KEY,
            "from": self._sender(),
            "to": [{"email_address": {"address": to_email, "name": model.full_name}}],
            "merge_info": {
                "user_name": model.full_name,
                "app_url": self.settings.APP_URL,
                "year": datetime.now(timezone.utc).year,
            },
        }
        try:
            return self._post(body)
        except Exception:
            logger.exception("Failed to send welcome email to %s", to_email)
            return False

    def send_verification_code_email(self, to_email: str, model: VerificationCodeEmail) -> bool:
        body = {
            "mail_template_key": self.settings.MAIL_VERIFICATION_TEMPLATE_KEY,
            "from": self._sender(),
            "to": [{"email_address": {"address": to_email, "name": model.name}}],
            "merge_info": {
                "user_name": model.name,
                "verification_code": model.otp,
                "expiration_minutes": str(model.expiration_minutes),
                "year": datetime.now(timezone.utc).year,
            },
        }
        try:
            return self._post(body)
        except Exception:
            logger.exception("Failed to send verification code email to %s", to_email)
            return False

    def _sender(self) -> dict[str, str]:
        return {"address": self.settings.MAIL_FROM_ADDRESS, "name": self.settings.MAIL_FROM_NAME}

    def _post(self, body: dict[str, Any]) -> bool:
        if not self.settings.MAIL_API_TOKEN:
            logger.info("Development mode: email to %s skipped", body["to"][0]["email_address"]["address"])
            return True

        url = f"{self.settings.MAIL_API_URL.rstrip('/')}/email/template"
        headers = {
            "Accept": "application/json",
            "Authorization": f"Zoho-enczapikey {self.settings.MAIL_API_TOKEN}",
        }
        client = self._client or httpx.Client(timeout=self.settings.MAIL_TIMEOUT_SECONDS)
        try:
            response = client.post(url, json=body, headers=headers)
        except httpx.HTTPError:
            logger.exception("Mail API request failed")
            return False
        finally:
            if self._client is None:
                client.close()

        if response.is_success:
            logger.info("Email sent via mail API")
            return True
        logger.error("Mail API error: %d - %s", response.status_code, response.text)
        return False

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)


_mail_service: MailService | None = None


def get_mail_service() -> MailService:
    """Get singleton mail service instance."""
    global _mail_service
    if _mail_service is None:
        _mail_service = MailService()
    return _mail_service
