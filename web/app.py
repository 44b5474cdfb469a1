"""
API Application

FastAPI application for:
- Twilio WhatsApp webhook (multilingual health Q&A)
- Subscriber registration for scheduled alerts
- Subscriber statistics
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import Depends, FastAPI, Form, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator

import settings
from alerts.messaging import build_twiml_reply
from ingestion.subscriber_repo import SUBSCRIPTIONS, Subscriber
from pipeline.resolver import APOLOGY_MESSAGE

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Multilingual Health Alert Bot",
    description="WhatsApp health Q&A and regional health alerts",
    version="1.0.0"
)

# Lazy collaborator initialization
_repo = None
_gateway = None
_handler = None


def get_repo():
    """Get or create SubscriberRepo instance."""
    global _repo
    if _repo is None:
        from ingestion.subscriber_repo import SubscriberRepo
        _repo = SubscriberRepo.from_env()
    return _repo


def get_gateway():
    """Get or create TwilioGateway instance."""
    global _gateway
    if _gateway is None:
        from alerts.messaging import TwilioGateway
        _gateway = TwilioGateway()
    return _gateway


def get_message_handler():
    """Get or create the inbound MessageHandler.

    Returns None when the handler cannot be built (missing Gemini key,
    unreadable feeds file), so the webhook can still answer with the apology.
    Construction is retried on the next request.
    """
    global _handler
    if _handler is None:
        from ingestion.regional_dataset import RegionalDatasetBuilder
        from pipeline.ai_client import GeminiClient
        from pipeline.message_handler import MessageHandler
        from pipeline.resolver import QueryResolver
        from pipeline.translator import get_translator

        try:
            resolver = QueryResolver(
                ai_client=GeminiClient(),
                dataset_builder=RegionalDatasetBuilder(),
            )
            _handler = MessageHandler(resolver=resolver, translator=get_translator())
        except Exception as e:
            logger.error(f"Message handler unavailable: {e}")
            return None
    return _handler


class RegistrationRequest(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    # The original sign-up form posts the region as "state"
    region: Optional[str] = Field(default=None, validation_alias=AliasChoices("region", "state"))
    subscription: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("subscription", "subscriptionFrequency"),
    )

    @field_validator("name", "phone", "region", "subscription", mode="before")
    @classmethod
    def _as_text(cls, value: Any) -> Optional[str]:
        # Phone numbers often arrive as JSON numbers
        return None if value is None else str(value)


async def _read_registration(request: Request) -> RegistrationRequest:
    """Parse a registration from a JSON or form-encoded body."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        data = await request.json()
    else:
        data = dict(await request.form())
    if not isinstance(data, dict):
        raise ValueError("Registration body must be an object")
    return RegistrationRequest.model_validate(data)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


# ========================================
# Messaging Webhook
# ========================================

@app.post("/whatsapp")
async def whatsapp_webhook(
    body: str = Form("", alias="Body"),
    sender: str = Form("", alias="From"),
    handler=Depends(get_message_handler),
):
    """Answer an inbound WhatsApp message with a multi-part TwiML reply."""
    logger.info(f"📩 User message from {sender}: {body}")
    if handler is None:
        return Response(content=build_twiml_reply([APOLOGY_MESSAGE]), media_type="text/xml")

    try:
        result = await handler.handle(body)
        parts = result.parts
    except Exception as e:
        logger.error(f"Webhook error: {e}")
        parts = [APOLOGY_MESSAGE]

    return Response(content=build_twiml_reply(parts), media_type="text/xml")


# ========================================
# API Routes
# ========================================

@app.post("/api/register")
async def register(
    request: Request,
    repo=Depends(get_repo),
    gateway=Depends(get_gateway),
):
    """Register a subscriber and send a welcome message."""
    try:
        payload = await _read_registration(request)
    except (ValueError, ValidationError) as e:
        logger.warning(f"Unreadable registration body: {e}")
        return _error(400, "Invalid registration body")

    name = (payload.name or "").strip()
    phone = (payload.phone or "").strip()
    if not name or not phone:
        return _error(400, "Name and phone are required")

    subscription = (payload.subscription or "daily").strip().lower()
    if subscription not in SUBSCRIPTIONS:
        return _error(400, f"Subscription must be one of: {', '.join(SUBSCRIPTIONS)}")

    try:
        if repo.find_by_phone(phone):
            return _error(409, "User already exists")

        subscriber = repo.create(Subscriber(
            name=name,
            phone=phone,
            region=(payload.region or "").strip() or None,
            subscription=subscription,
        ))
    except Exception as e:
        logger.error(f"Registration error: {e}")
        return _error(500, "Server error")

    try:
        await gateway.send(
            subscriber.phone,
            f"👋 Hi {subscriber.name}! You are subscribed for {subscriber.subscription} health alerts.",
        )
    except Exception as e:
        logger.error(f"Welcome message failed for {subscriber.phone}: {e}")

    return {"message": "Registration successful!"}


@app.get("/api/stats")
async def get_statistics(repo=Depends(get_repo)):
    """Get subscriber counts."""
    try:
        return {
            "total": repo.count(),
            "daily": repo.count("daily"),
            "weekly": repo.count("weekly"),
        }
    except Exception as e:
        logger.error(f"Stats error: {e}")
        raise HTTPException(status_code=500, detail="Server error")


# ========================================
# Health Check
# ========================================

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "health-alert-bot"
    }


# ========================================
# Run Server
# ========================================

def run_server(host: str = "0.0.0.0", port: int = 8000):
    """Run the web server."""
    import uvicorn
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Health Alert Bot Web Server")
    parser.add_argument("--host", default="0.0.0.0", help="Host address")
    parser.add_argument("--port", type=int, default=8000, help="Port number")

    args = parser.parse_args()

    logging.basicConfig(
        level=settings.get_log_level(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    print("=" * 60)
    print("  MULTILINGUAL HEALTH ALERT BOT - WEB INTERFACE")
    print(f"  Starting server at http://{args.host}:{args.port}")
    print("=" * 60)
    print()

    run_server(args.host, args.port)
