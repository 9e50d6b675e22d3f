"""
Transactional email via the Resend HTTP API.

Uses httpx against POST https://api.resend.com/emails.

Configuration:
  RESEND_API_KEY: server-side only (never exposed to clients)
  EMAIL_FROM: sender address
  APP_URL: base URL for links in the emails
  ENVIRONMENT: "dev" logs the email instead of sending it

Every send either returns normally or raises MailerError. Callers decide
whether a failure matters: admin approval emails are best-effort, the
reminder sweep records failures per project.
"""

from __future__ import annotations

import html
import logging
import uuid

import httpx

from memberdir.core.config import settings

logger = logging.getLogger(__name__)

_RESEND_BASE_URL = "https://api.resend.com"

_WRAPPER = (
    '<div style="font-family: -apple-system, BlinkMacSystemFont, \'Segoe UI\', '
    'Roboto, sans-serif; max-width: 480px; margin: 0 auto; padding: 40px 20px;">'
    "{body}</div>"
)
_BUTTON = (
    '<a href="{href}" style="display: inline-block; background-color: #1a1a1a; '
    'color: #ffffff; padding: 12px 24px; text-decoration: none;">{label}</a>'
)


class MailerError(RuntimeError):
    """Raised when the email provider rejects or fails a send."""


async def send_email(to: str, subject: str, html_body: str) -> None:
    """
    Deliver one email.

    Raises:
        MailerError: provider not configured, unreachable, or non-2xx.
    """
    if settings.is_dev:
        logger.info("EMAIL (dev mode, not sent) to=%s subject=%r", to, subject)
        return

    if not settings.RESEND_API_KEY:
        raise MailerError("RESEND_API_KEY is not configured")

    payload = {
        "from": settings.EMAIL_FROM,
        "to": [to],
        "subject": subject,
        "html": html_body,
    }
    headers = {
        "Authorization": f"Bearer {settings.RESEND_API_KEY}",
        "Content-Type": "application/json",
    }

    try:
        async with httpx.AsyncClient(timeout=15.0) as client:
            response = await client.post(
                f"{_RESEND_BASE_URL}/emails",
                json=payload,
                headers=headers,
            )
    except httpx.HTTPError as exc:
        raise MailerError(f"Email provider unreachable: {exc}") from exc

    if response.status_code >= 300:
        logger.error(
            "Resend API error: status=%d body=%s",
            response.status_code,
            response.text[:500],
        )
        raise MailerError(f"Email provider returned status {response.status_code}")


# ── Profile review emails ───────────────────────────────────
async def send_profile_approved_email(to: str, profile_name: str) -> None:
    body = (
        "<h1>Welcome to the directory</h1>"
        f"<p>Your profile <strong>{html.escape(profile_name)}</strong> has been approved. "
        "You now have full access to the directory.</p>"
        + _BUTTON.format(href=settings.APP_URL, label="View Directory")
    )
    await send_email(to, "Your profile has been approved", _WRAPPER.format(body=body))


async def send_profile_rejected_email(
    to: str,
    profile_name: str,
    rejection_note: str | None = None,
) -> None:
    note = (
        f"<p style=\"padding: 16px; background-color: #f5f5f5;\"><strong>Note:</strong> "
        f"{html.escape(rejection_note)}</p>"
        if rejection_note
        else ""
    )
    body = (
        "<h1>Profile Review Update</h1>"
        f"<p>Your profile <strong>{html.escape(profile_name)}</strong> "
        "was not approved at this time.</p>"
        f"{note}"
        "<p>You can update your profile and resubmit for review.</p>"
        + _BUTTON.format(href=f"{settings.APP_URL}/account/profile", label="Edit Profile")
    )
    await send_email(to, "Your profile needs changes", _WRAPPER.format(body=body))


# ── Stale needs reminder ────────────────────────────────────
async def send_need_reminder_email(
    to: str,
    profile_name: str,
    project_title: str,
    project_id: uuid.UUID,
) -> None:
    body = (
        "<h1>Keep your project needs current</h1>"
        f"<p>Hi {html.escape(profile_name)},</p>"
        "<p>It's been a while since you updated the needs for "
        f"<strong>{html.escape(project_title)}</strong>. Keeping your needs current "
        "helps the community know how they can support you.</p>"
        + _BUTTON.format(
            href=f"{settings.APP_URL}/account/projects?project={project_id}",
            label="Update Project Needs",
        )
        + "<p style=\"font-size: 14px; color: #888;\">If your needs are still accurate, "
        "saving them again without changes dismisses this reminder.</p>"
    )
    await send_email(to, f"Update your needs for {project_title}", _WRAPPER.format(body=body))


class EmailReminderNotifier:
    """ReminderNotifier backed by send_need_reminder_email()."""

    async def send_need_reminder(
        self,
        *,
        to: str,
        profile_name: str,
        project_title: str,
        project_id: uuid.UUID,
    ) -> None:
        await send_need_reminder_email(to, profile_name, project_title, project_id)
