"""
Console notification sender adapter - Implements NotificationSender protocol.

This module provides a console-based implementation of the domain's
notification sender port, logging messages to stdout for development.
"""

import logging
from typing import Any

from src.domain.ports import TemplateKind

logger = logging.getLogger(__name__)


class ConsoleNotificationSender:
    """
    Implements NotificationSender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - every message is "delivered".
    """

    def send(self, recipient: str, template_kind: TemplateKind, parameters: dict[str, Any]) -> bool:
        """
        Log the message to console (simulates email delivery).

        The message is logged at INFO level to be visible in docker-compose logs.

        Args:
            recipient: Destination email address
            template_kind: Template to render
            parameters: Template parameters

        Returns:
            Always True
        """
        logger.info(
            "[NOTIFICATION] To: %s Template: %s Params: %s",
            recipient,
            template_kind.value,
            parameters,
        )
        return True
