"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting domain services
and infrastructure adapters into routes, plus the constructors the
lifespan uses to build long-lived collaborators from settings.
"""

import logging

from fastapi import Request

from src.adapters.notifier.console import ConsoleNotificationSender
from src.adapters.notifier.emailjs import EmailJSNotificationSender
from src.config.settings import Settings
from src.domain.limiter import AdmissionLimiter
from src.domain.notifications import NotificationDispatcher
from src.domain.ports import NotificationSender, TemplateKind, WaitlistRegistry
from src.domain.registration import RegistrationCoordinator

logger = logging.getLogger(__name__)


def create_notification_sender(settings: Settings) -> NotificationSender | None:
    """
    Build the configured notification transport.

    Returns None when EmailJS is selected but not fully configured;
    the dispatcher then skips notifications instead of failing.
    """
    if settings.email_transport == "console":
        return ConsoleNotificationSender()

    missing = settings.missing_emailjs_settings()
    if missing:
        logger.warning(
            "EmailJS configuration missing (%s). Notifications are disabled until configured.",
            ", ".join(missing),
        )
        return None

    return EmailJSNotificationSender(
        public_key=settings.emailjs_public_key,
        service_id=settings.emailjs_service_id,
        template_ids={
            TemplateKind.ADMIN_ALERT: settings.emailjs_admin_template_id,
            TemplateKind.WELCOME: settings.emailjs_welcome_template_id,
        },
        private_key=settings.emailjs_private_key,
        api_url=settings.emailjs_api_url,
        timeout=settings.emailjs_timeout_seconds,
    )


def create_limiter(settings: Settings) -> AdmissionLimiter:
    return AdmissionLimiter(
        max_attempts=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )


def create_dispatcher(settings: Settings, sender: NotificationSender | None) -> NotificationDispatcher:
    return NotificationDispatcher(
        sender=sender,
        admin_email=settings.admin_email,
        max_attempts=settings.notification_max_attempts,
        base_delay=settings.notification_base_delay_seconds,
        max_delay=settings.notification_max_delay_seconds,
        max_workers=settings.notification_workers,
    )


def get_registry(request: Request) -> WaitlistRegistry:
    """
    Get the registry from app state.

    The registry is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.registry


def get_dispatcher(request: Request) -> NotificationDispatcher:
    return request.app.state.dispatcher


def get_coordinator(request: Request) -> RegistrationCoordinator:
    """
    Create registration coordinator with injected dependencies.

    The limiter and dispatcher are process-wide singletons held in
    app.state; the coordinator itself is stateless.
    """
    return RegistrationCoordinator(
        registry=get_registry(request),
        limiter=request.app.state.limiter,
        dispatcher=get_dispatcher(request),
    )


def get_client_context(request: Request) -> tuple[str, str]:
    """
    Extract source address and client agent from the transport layer.

    Returns:
        Tuple of (source_address, client_agent)
    """
    source_address = request.client.host if request.client else "unknown"
    client_agent = request.headers.get("user-agent") or "Unknown"
    return source_address, client_agent
