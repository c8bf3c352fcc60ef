"""
Contact form relay.

Forwards contact messages to Web3Forms, which emails them to the site owner.
"""
import logging
from typing import Optional

import httpx

from app.config import get_settings
from app.schemas.contact import ContactRequest
from app.services.errors import ContactDeliveryError

logger = logging.getLogger(__name__)


class ContactService:
    """Client for the Web3Forms submission API."""

    def __init__(
        self,
        access_key: Optional[str] = None,
        endpoint: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self._access_key = access_key if access_key is not None else settings.web3forms_access_key
        self._endpoint = endpoint or settings.web3forms_url
        self._transport = transport

    async def send(self, contact: ContactRequest) -> None:
        """
        Submit a contact message.

        Raises:
            ContactDeliveryError: If the relay is unreachable, misconfigured
                or reports failure
        """
        payload = {
            "access_key": self._access_key,
            "name": contact.name,
            "email": contact.email,
            "message": contact.message,
        }

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.post(
                    self._endpoint,
                    json=payload,
                    headers={"Accept": "application/json"},
                    timeout=10.0,
                )
        except httpx.HTTPError as e:
            logger.error(f"Contact relay request failed: {e}")
            raise ContactDeliveryError("An error occurred. Please try again later.", cause=e) from e

        # A bad access key yields an HTML page instead of JSON
        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            logger.error(f"Non-JSON response from Web3Forms: {response.text[:200]}")
            raise ContactDeliveryError("Email service configuration error. Please check your Access Key.")

        result = response.json()
        if not result.get("success"):
            logger.error(f"Web3Forms error: {result}")
            raise ContactDeliveryError("Failed to send message. Please try again.")

        logger.info(f"Contact message from {contact.email} relayed")


def get_contact_service() -> ContactService:
    """Dependency providing the contact relay client."""
    return ContactService()
