"""WhatsApp delivery through Twilio.

Outbound messages (welcome, broadcasts) go through the REST API; webhook
replies are returned inline as TwiML.
"""

from __future__ import annotations

import asyncio
from typing import Any, Iterable, Optional
import logging

from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client
from twilio.twiml.messaging_response import MessagingResponse

import settings

logger = logging.getLogger(__name__)


class DeliveryError(RuntimeError):
    """Raised when a message could not be handed to Twilio."""


def whatsapp_address(phone: str) -> str:
    phone = phone.strip()
    return phone if phone.startswith("whatsapp:") else f"whatsapp:{phone}"


def build_twiml_reply(parts: Iterable[str]) -> str:
    """TwiML envelope with one <Message> per reply part."""
    response = MessagingResponse()
    for part in parts:
        response.message(part)
    return str(response)


class TwilioGateway:
    def __init__(self, client: Any = None, from_number: Optional[str] = None):
        self.from_number = from_number or settings.get_twilio_whatsapp_from()
        self._client = client or Client(
            settings.get_twilio_account_sid(),
            settings.get_twilio_auth_token(),
            http_client=TwilioHttpClient(timeout=settings.get_twilio_timeout()),
        )

    def _send_sync(self, to: str, body: str) -> str:
        message = self._client.messages.create(
            from_=self.from_number,
            to=whatsapp_address(to),
            body=body,
        )
        return message.sid

    async def send(self, to: str, body: str) -> str:
        """Send one WhatsApp message; returns the Twilio message SID."""
        try:
            sid = await asyncio.to_thread(self._send_sync, to, body)
        except Exception as e:
            raise DeliveryError(f"Failed to send WhatsApp message to {to}: {e}") from e
        logger.info(f"Sent WhatsApp message to {to}")
        return sid
