#!/usr/bin/env python3
"""
Adobe Sign Webhook Handler
Answers Adobe Sign's webhook verification and re-syncs envelopes on agreement events
"""
import hmac
import logging
import os
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from envelope_models import SignatureProvider
from esign_errors import AdobeSignError
from esign_ports import SignatureEnvelopePort
from esign_provider import create_signature_envelope_port
from settings import Settings, settings

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

CLIENT_ID_HEADER = "X-AdobeSign-ClientId"
WEBHOOK_PATH = "/adobe-sign/webhook"


def _extract_agreement_id(event: Dict[str, Any]) -> Optional[str]:
    agreement = event.get("agreement")
    if isinstance(agreement, dict) and agreement.get("id"):
        return str(agreement["id"])
    if event.get("agreementId"):
        return str(event["agreementId"])
    return None


def create_webhook_app(
    app_settings: Settings,
    envelope_port: Optional[SignatureEnvelopePort] = None,
) -> FastAPI:
    """Build the webhook app; the envelope port is created on first use if not given."""
    app = FastAPI(title="Adobe Sign Webhook Handler")
    app.state.envelope_port = envelope_port

    def get_port() -> SignatureEnvelopePort:
        if app.state.envelope_port is None:
            app.state.envelope_port = create_signature_envelope_port(app_settings)
        return app.state.envelope_port

    def verify(request: Request) -> str:
        """Check the Adobe Sign client id (and shared secret, when configured)."""
        client_id = request.headers.get(CLIENT_ID_HEADER)
        if not client_id:
            logger.warning(f"⚠️ Webhook request without {CLIENT_ID_HEADER} header")
            raise HTTPException(status_code=400, detail=f"Missing {CLIENT_ID_HEADER} header")
        if client_id != app_settings.client_id:
            logger.warning("⚠️ Webhook request from unexpected Adobe Sign client id")
            raise HTTPException(status_code=403, detail="Unknown Adobe Sign client id")
        if app_settings.webhook_secret:
            supplied = request.query_params.get("secret", "")
            if not hmac.compare_digest(supplied.encode(), app_settings.webhook_secret.encode()):
                logger.warning("⚠️ Webhook request with invalid secret")
                raise HTTPException(status_code=403, detail="Invalid webhook secret")
        return client_id

    def acknowledge(client_id: str, **extra: Any) -> JSONResponse:
        content = {"xAdobeSignClientId": client_id}
        content.update(extra)
        return JSONResponse(content=content, headers={CLIENT_ID_HEADER: client_id})

    @app.get("/health")
    async def health() -> dict:
        return {"status": "healthy", "message": "Webhook handler is running"}

    @app.get(WEBHOOK_PATH)
    async def verify_webhook(request: Request) -> JSONResponse:
        client_id = verify(request)
        logger.info("✅ Adobe Sign webhook verification request acknowledged")
        return acknowledge(client_id)

    @app.post(WEBHOOK_PATH)
    async def receive_event(request: Request) -> JSONResponse:
        client_id = verify(request)
        try:
            event = await request.json()
        except ValueError:
            logger.error("❌ Invalid JSON in webhook request")
            raise HTTPException(status_code=400, detail="Invalid JSON")
        if not isinstance(event, dict):
            raise HTTPException(status_code=400, detail="Event must be a JSON object")

        event_type = event.get("event", "unknown")
        agreement_id = _extract_agreement_id(event)
        logger.info(f"📨 Received Adobe Sign event {event_type} for agreement {agreement_id}")
        if agreement_id is None:
            return acknowledge(client_id, event=event_type, synced=False)

        try:
            envelope = await get_port().get_envelope_by_external_id(agreement_id, SignatureProvider.ADOBE_SIGN)
        except AdobeSignError as e:
            logger.error(f"❌ Failed to sync envelope for agreement {agreement_id}: {e}")
            return acknowledge(client_id, event=event_type, synced=False, error=str(e))

        if envelope is None:
            logger.info(f"Ignoring event for unmapped agreement {agreement_id}")
            return acknowledge(client_id, event=event_type, synced=False)
        return acknowledge(
            client_id,
            event=event_type,
            synced=True,
            envelope_id=str(envelope.id),
            status=envelope.status.value,
        )

    return app


app = create_webhook_app(settings)


def run_webhook_server():
    """Run the webhook server"""
    port = int(os.environ.get("WEBHOOK_PORT", 8001))
    host = settings.host

    logger.info(f"🚀 Starting Adobe Sign webhook handler on {host}:{port}")
    logger.info(f"📱 Webhook endpoint: http://{host}:{port}{WEBHOOK_PATH}")
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_webhook_server()
