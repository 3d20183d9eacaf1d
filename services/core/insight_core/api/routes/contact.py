"""Contact form route."""

from fastapi import APIRouter, HTTPException, status

from insight_core.api.deps import DBSession, MailerDep, SettingsDep
from insight_core.api.schemas.contact import ContactRequest, ContactResponse
from insight_core.domain.services.audit import AuditService
from insight_core.domain.services.mailer import MailerError, MailerNotConfiguredError
from insight_core.observability.logging import get_logger

log = get_logger(__name__)

router = APIRouter(prefix="/contact", tags=["contact"])


@router.post("", response_model=ContactResponse)
async def submit_contact_form(
    request: ContactRequest,
    db: DBSession,
    settings: SettingsDep,
    mailer: MailerDep,
) -> ContactResponse:
    """Email a contact form submission to the support inbox.

    The sender's address is set as Reply-To.
    """
    recipient = settings.contact_recipient or settings.email_from or settings.email_user
    if not mailer.enabled or not recipient:
        log.error("Contact form submitted but email is not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server configuration error. Email cannot be sent.",
        )

    try:
        await mailer.send_async(
            to=recipient,
            subject=f"New Contact Form Submission from {request.name}",
            text=(
                f"Name: {request.name}\n"
                f"Email: {request.email}\n\n"
                f"{request.message}"
            ),
            reply_to=request.email,
        )
    except MailerNotConfiguredError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server configuration error. Email cannot be sent.",
        )
    except MailerError as e:
        log.error("Contact form email failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send message. Please try again later.",
        )

    AuditService(db).record(
        "contact.submit",
        actor="system",
        request_json={"name": request.name, "email": request.email},
    )
    return ContactResponse()
