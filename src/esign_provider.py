"""
Startup-time selection of the e-signature envelope adapter.
"""
import logging
from typing import Optional

import httpx

from esign_adobe import AdobeSignEnvelopeAdapter
from esign_ports import DocumentContentPort, DocumentPort, SignatureEnvelopePort
from settings import ADOBE_SIGN_PROVIDER, Settings

logger = logging.getLogger(__name__)


def create_signature_envelope_port(
    settings: Settings,
    document_content_port: Optional[DocumentContentPort] = None,
    document_port: Optional[DocumentPort] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> SignatureEnvelopePort:
    """
    Build the envelope adapter for the configured provider.

    Raises:
        ValueError: If the provider is not Adobe Sign or its configuration is invalid
    """
    if not settings.is_adobe_sign_enabled():
        raise ValueError(
            f"Unsupported e-signature provider {settings.esignature_provider!r}; "
            f"expected {ADOBE_SIGN_PROVIDER!r}"
        )
    settings.validate()
    logger.info("Creating Adobe Sign signature envelope adapter")
    return AdobeSignEnvelopeAdapter(
        settings,
        http_client=http_client,
        document_content_port=document_content_port,
        document_port=document_port,
    )
