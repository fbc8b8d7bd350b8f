#!/usr/bin/env python3
"""
Adobe Sign E-Signing MCP Server
Built with FastMCP; exposes the signature envelope port as MCP tools
"""
import asyncio
import logging
from typing import Any, Dict, Optional
from uuid import UUID

from fastmcp import FastMCP

from envelope_models import SignatureEnvelope, SignatureProvider
from esign_errors import AdobeSignError, EnvelopeNotFoundError, UnsupportedOperationError
from esign_ports import SignatureEnvelopePort
from esign_provider import create_signature_envelope_port
from settings import settings

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SERVER_NAME = "Adobe Sign E-Signing MCP Server"
SERVER_VERSION = "1.0.0"

# Initialize FastMCP
mcp = FastMCP(SERVER_NAME)

_envelope_port: Optional[SignatureEnvelopePort] = None


def get_envelope_port() -> SignatureEnvelopePort:
    """Create the envelope adapter on first use."""
    global _envelope_port
    if _envelope_port is None:
        _envelope_port = create_signature_envelope_port(settings)
    return _envelope_port


async def close_envelope_port() -> None:
    """Close the envelope adapter, if one was created."""
    global _envelope_port
    if _envelope_port is not None:
        port, _envelope_port = _envelope_port, None
        await port.aclose()


def _parse_envelope_id(envelope_id: str) -> UUID:
    try:
        return UUID(envelope_id)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid envelope_id: {envelope_id!r}")


def _failure(error: Exception, message: str) -> Dict[str, Any]:
    return {"success": False, "error": str(error), "message": message}


async def get_server_info() -> dict:
    """Get server information and configuration status."""
    return {
        "success": True,
        "server": {"name": SERVER_NAME, "version": SERVER_VERSION, "status": "running"},
        "config": {
            "adobe_sign": {
                "configured": settings.validate_adobe_sign_config(),
                "enabled": settings.is_adobe_sign_enabled(),
                "base_url": settings.base_url,
                "api_version": settings.api_version,
                "embedded_signing": settings.enable_embedded_signing,
            },
            "environment": settings.environment,
        },
        "message": "Server is running and ready",
    }


async def create_envelope(
    title: Optional[str] = None,
    description: Optional[str] = None,
    envelope_id: Optional[str] = None,
) -> dict:
    """Create an Adobe Sign agreement for a new envelope."""
    logger.info(f"📧 create_envelope called with title: {title}")
    try:
        envelope = SignatureEnvelope(
            id=_parse_envelope_id(envelope_id) if envelope_id else None,
            title=title,
            description=description,
        )
        created = await get_envelope_port().create_envelope(envelope)
        return {"success": True, "envelope": created.to_dict(), "message": "Envelope created in Adobe Sign"}
    except (AdobeSignError, ValueError) as e:
        logger.error(f"❌ create_envelope error: {e}")
        return _failure(e, "Failed to create envelope")


async def get_envelope(envelope_id: str) -> dict:
    """Get an envelope and its current Adobe Sign status."""
    logger.info(f"📊 get_envelope called with envelope_id: {envelope_id}")
    try:
        envelope = await get_envelope_port().get_envelope(_parse_envelope_id(envelope_id))
        return {"success": True, "envelope": envelope.to_dict()}
    except EnvelopeNotFoundError as e:
        return _failure(e, "Envelope not found")
    except (AdobeSignError, ValueError) as e:
        logger.error(f"❌ get_envelope error: {e}")
        return _failure(e, "Failed to get envelope")


async def sync_envelope_status(envelope_id: str) -> dict:
    """Refresh an envelope's status from Adobe Sign."""
    logger.info(f"🔄 sync_envelope_status called with envelope_id: {envelope_id}")
    try:
        envelope = await get_envelope_port().sync_envelope_status(_parse_envelope_id(envelope_id))
        return {"success": True, "envelope": envelope.to_dict(), "status": envelope.status.value}
    except EnvelopeNotFoundError as e:
        return _failure(e, "Envelope not found")
    except (AdobeSignError, ValueError) as e:
        logger.error(f"❌ sync_envelope_status error: {e}")
        return _failure(e, "Failed to sync envelope status")


async def get_envelope_by_external_id(agreement_id: str) -> dict:
    """Find an envelope by its Adobe Sign agreement id."""
    try:
        envelope = await get_envelope_port().get_envelope_by_external_id(agreement_id, SignatureProvider.ADOBE_SIGN)
    except (AdobeSignError, ValueError) as e:
        logger.error(f"❌ get_envelope_by_external_id error: {e}")
        return _failure(e, "Failed to look up agreement")
    if envelope is None:
        return {"success": False, "error": f"Unknown agreement: {agreement_id}", "message": "Envelope not found"}
    return {"success": True, "envelope": envelope.to_dict()}


async def envelope_exists(envelope_id: str) -> dict:
    """Check whether an envelope is known to this server."""
    try:
        exists = await get_envelope_port().exists_envelope(_parse_envelope_id(envelope_id))
    except ValueError as e:
        return _failure(e, "Failed to check envelope")
    return {"success": True, "envelope_id": envelope_id, "exists": exists}


async def get_signing_url(envelope_id: str, signer_email: str, signer_name: str) -> dict:
    """Request an embedded signing URL (not supported by Adobe Sign)."""
    try:
        url = await get_envelope_port().get_signing_url(_parse_envelope_id(envelope_id), signer_email, signer_name)
    except UnsupportedOperationError as e:
        return _failure(e, "Embedded signing is not supported for Adobe Sign")
    except (AdobeSignError, ValueError) as e:
        return _failure(e, "Failed to get signing URL")
    return {"success": True, "signing_url": url}


mcp.tool(get_server_info, description="Get server information and configuration status")
mcp.tool(create_envelope, description="Create an Adobe Sign agreement for a new envelope")
mcp.tool(get_envelope, description="Get an envelope and its current Adobe Sign status")
mcp.tool(sync_envelope_status, description="Refresh an envelope's status from Adobe Sign")
mcp.tool(get_envelope_by_external_id, description="Find an envelope by its Adobe Sign agreement id")
mcp.tool(envelope_exists, description="Check whether an envelope is known to this server")
mcp.tool(get_signing_url, description="Request an embedded signing URL for a signer")


if __name__ == "__main__":
    logger.info("🚀 Starting Adobe Sign E-Signing MCP Server with FastMCP...")
    logger.info(f"🌍 Environment: {settings.environment}")
    logger.info(f"🌐 Starting FastMCP server on {settings.host}:{settings.port}")

    try:
        mcp.run(
            transport="http",
            host=settings.host,
            port=settings.port,
            stateless_http=True,
        )
    except KeyboardInterrupt:
        logger.info("🛑 Server shutdown requested by user")
    finally:
        asyncio.run(close_envelope_port())
        logger.info("🏁 Server shutdown complete")
