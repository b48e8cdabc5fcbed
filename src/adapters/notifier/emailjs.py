"""
EmailJS notification sender adapter - Implements NotificationSender protocol.

Delivers templated emails through the EmailJS REST API. Template params
match the dashboard templates: empty values render as "N/A" and
positions as "#<n>".
"""

import logging
from datetime import datetime
from typing import Any

import httpx

from src.domain.ports import TemplateKind

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.emailjs.com/api/v1.0/email/send"


def _or_na(value: Any) -> str:
    return str(value) if value not in (None, "") else "N/A"


def _format_position(position: Any) -> str:
    return f"#{position}" if position else "N/A"


def _format_joined_at(joined_at: Any) -> str:
    if not joined_at:
        return "N/A"
    try:
        return datetime.fromisoformat(str(joined_at)).strftime("%Y-%m-%d %H:%M:%S %Z").strip()
    except ValueError:
        return str(joined_at)


def build_template_params(
    recipient: str, template_kind: TemplateKind, parameters: dict[str, Any]
) -> dict[str, str]:
    """Map domain notification parameters onto EmailJS template variables."""
    if template_kind == TemplateKind.ADMIN_ALERT:
        return {
            "to_email": recipient,
            "user_email": _or_na(parameters.get("email")),
            "twitter": _or_na(parameters.get("twitter")),
            "telegram": _or_na(parameters.get("telegram")),
            "discord": _or_na(parameters.get("discord")),
            "position": _format_position(parameters.get("position")),
            "referral_code": _or_na(parameters.get("referral_code")),
            "joined_at": _format_joined_at(parameters.get("joined_at")),
        }
    return {
        "to_email": recipient,
        "user_name": parameters.get("name") or "there",
        "position": _format_position(parameters.get("position")),
    }


class EmailJSNotificationSender:
    """
    Implements NotificationSender protocol via the EmailJS REST API.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Transport errors and non-2xx responses are reported as False; the
    dispatcher owns retrying.
    """

    def __init__(
        self,
        public_key: str,
        service_id: str,
        template_ids: dict[TemplateKind, str],
        private_key: str = "",
        api_url: str = DEFAULT_API_URL,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.public_key = public_key
        self.service_id = service_id
        self.template_ids = template_ids
        self.private_key = private_key
        self.api_url = api_url
        self._client = client or httpx.Client(timeout=timeout)

    def send(self, recipient: str, template_kind: TemplateKind, parameters: dict[str, Any]) -> bool:
        template_id = self.template_ids.get(template_kind)
        if not template_id:
            logger.error("No EmailJS template configured for %s", template_kind.value)
            return False

        payload: dict[str, Any] = {
            "service_id": self.service_id,
            "template_id": template_id,
            "user_id": self.public_key,
            "template_params": build_template_params(recipient, template_kind, parameters),
        }
        if self.private_key:
            payload["accessToken"] = self.private_key

        try:
            resp = self._client.post(self.api_url, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("EmailJS request error for %s: %s", template_kind.value, exc)
            return False

        if resp.status_code >= 300:
            logger.warning(
                "EmailJS returned %s for %s: %s", resp.status_code, template_kind.value, resp.text
            )
            return False
        return True

    def close(self) -> None:
        self._client.close()
