"""
Contact form API endpoint.
"""
import logging

from fastapi import APIRouter, Depends

from app.config import get_settings
from app.schemas.contact import ContactRequest, ContactResponse
from app.services.contact import ContactService, get_contact_service
from app.services.rate_limit import RateLimit

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/api/contact", tags=["Contact"])

contact_rate_limit = RateLimit(
    "contact",
    limit=settings.contact_limit,
    window_s=settings.contact_window_s,
)


@router.post(
    "",
    response_model=ContactResponse,
    summary="Send a contact message",
    dependencies=[Depends(contact_rate_limit)],
)
async def send_contact_message(
    contact: ContactRequest,
    contact_service: ContactService = Depends(get_contact_service),
) -> ContactResponse:
    """
    Relay a message from the public contact form to the site owner.

    Rate-limited per client IP.
    """
    await contact_service.send(contact)
    return ContactResponse()
