"""Email sending via Resend API.

Plain-text emails (portal magic links, project invitations) sent with a
single HTTP POST. Delivery failures are logged and swallowed so the
calling endpoint's response never depends on the mail provider.
"""

import logging
from urllib.parse import quote, urlencode

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

_RESEND_API_URL = "https://api.resend.com/emails"
_RESEND_TIMEOUT = 10.0


def build_portal_verify_url(token: str) -> str:
    """Backend URL that validates the token, sets the portal cookie and redirects."""
    params = urlencode({"token": token}, quote_via=quote)
    return f"{settings.backend_url}/api/v1/portal/auth/verify?{params}"


def build_invitation_url(token: str) -> str:
    """Frontend page where an invitee sets up their account."""
    params = urlencode({"token": token}, quote_via=quote)
    return f"{settings.frontend_url}/accept-invite?{params}"


async def _send_email(*, to_email: str, subject: str, text: str) -> None:
    try:
        async with httpx.AsyncClient() as client:
            resp = await client.post(
                _RESEND_API_URL,
                headers={
                    "Authorization": f"Bearer {settings.resend_api_key.get_secret_value()}",
                },
                json={
                    "from": settings.email_from,
                    "to": to_email,
                    "subject": subject,
                    "text": text,
                },
                timeout=_RESEND_TIMEOUT,
            )
            resp.raise_for_status()
    except httpx.HTTPError:
        logger.warning("Failed to send email: %s", subject, exc_info=True)


async def send_portal_magic_link_email(
    *, to_email: str, client_name: str | None, token: str
) -> None:
    """Send a client portal sign-in email via Resend.

    Args:
        to_email: Recipient email address.
        client_name: Greeting name; falls back to "Valued Client".
        token: Plain (unhashed) login token.
    """
    verify_url = build_portal_verify_url(token)
    ttl = settings.portal_login_token_ttl_minutes
    await _send_email(
        to_email=to_email,
        subject="Sign in to your client portal",
        text=(
            f"Hello {client_name or 'Valued Client'},\n\n"
            f"Click this link to sign in to your client portal:\n\n"
            f"{verify_url}\n\n"
            f"This link expires in {ttl} minutes and can be used once. "
            "If you didn't request this, you can safely ignore this email."
        ),
    )


async def send_project_invitation_email(
    *, to_email: str, inviter_name: str | None, project_title: str, token: str
) -> None:
    """Invite someone without an account to a project.

    Args:
        to_email: Invitee address.
        inviter_name: Name of the staff user who sent the invitation.
        project_title: Project the invitee will join.
        token: Plain (unhashed) invitation token.
    """
    ttl = settings.invitation_ttl_days
    await _send_email(
        to_email=to_email,
        subject=f"You're invited to collaborate on {project_title}",
        text=(
            f"{inviter_name or 'A colleague'} has invited you to join the project "
            f'"{project_title}".\n\n'
            f"Accept the invitation and set up your account here:\n\n"
            f"{build_invitation_url(token)}\n\n"
            f"This invitation expires in {ttl} days."
        ),
    )


async def send_project_added_email(
    *, to_email: str, inviter_name: str | None, project_title: str
) -> None:
    """Tell an existing staff user they were added to a project."""
    await _send_email(
        to_email=to_email,
        subject=f"You've been added to {project_title}",
        text=(
            f"{inviter_name or 'A colleague'} has added you to the project "
            f'"{project_title}".\n\n'
            f"Open it here: {settings.frontend_url}/projects"
        ),
    )
