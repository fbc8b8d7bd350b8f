#!/usr/bin/env python3
"""
Adobe Sign e-signature envelope adapter.
Implements SignatureEnvelopePort on top of Adobe Sign agreements.
"""
import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar
from uuid import UUID

import httpx

from adobe_auth import TokenManager, utcnow
from adobe_client import AgreementClient, build_http_client
from adobe_session import AdobeSignSession
from envelope_models import (
    EnvelopeStatus,
    SignatureEnvelope,
    SignatureProvider,
    parse_adobe_sign_status,
)
from esign_errors import EnvelopeNotFoundError, RemoteCallError, UnsupportedOperationError
from esign_ports import DocumentContentPort, DocumentPort, SignatureEnvelopePort
from resilience import CircuitBreaker, ResilienceConfig, Retry
from settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_AGREEMENT_NAME = "Agreement"


class AdobeSignEnvelopeAdapter(SignatureEnvelopePort):
    """
    Adobe Sign implementation of the signature envelope port.

    Only create and read reach Adobe Sign. Update, send, void, sync and archive
    re-read the agreement; delete and resend do nothing; listings are empty;
    embedded signing is unsupported.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: Optional[httpx.AsyncClient] = None,
        document_content_port: Optional[DocumentContentPort] = None,
        document_port: Optional[DocumentPort] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
        retry: Optional[Retry] = None,
        session: Optional[AdobeSignSession] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.settings = settings
        self._owns_http_client = http_client is None
        self._http = http_client if http_client is not None else build_http_client(settings)
        # Not used yet; documents and participants are not attached to agreements
        self.document_content_port = document_content_port
        self.document_port = document_port

        config = ResilienceConfig.from_settings(settings)
        self.circuit_breaker = circuit_breaker or CircuitBreaker("adobeSign", config)
        self.retry = retry or Retry("adobeSign", config)

        self.session = session or AdobeSignSession()
        self._clock = clock
        self.token_manager = TokenManager(self._http, settings, self.session, clock=clock)
        self.agreements = AgreementClient(self._http, settings)

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http.aclose()

    async def __aenter__(self) -> "AdobeSignEnvelopeAdapter":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _guarded(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run operation through the circuit breaker, retrying the whole attempt."""
        return await self.retry.call(self.circuit_breaker.call, operation)

    async def _authorized(self, call: Callable[[str], Awaitable[T]]) -> T:
        token = await self.token_manager.ensure_valid_access_token()
        try:
            return await call(token)
        except RemoteCallError as e:
            if e.status_code == 401:
                # Rejected token; force a refresh on the next attempt
                self.token_manager.invalidate()
            raise

    def build_agreement_request(self, envelope: SignatureEnvelope) -> Dict[str, Any]:
        """Minimal agreement body; documents and participants are not mapped."""
        return {
            "name": envelope.title if envelope.title is not None else DEFAULT_AGREEMENT_NAME,
            "message": envelope.description if envelope.description is not None else "",
        }

    async def create_envelope(self, envelope: SignatureEnvelope) -> SignatureEnvelope:
        """
        Create an Adobe Sign agreement for the envelope.

        Returns:
            The envelope with id, external id, ADOBE_SIGN provider, DRAFT status
            and creation time set
        """
        payload = self.build_agreement_request(envelope)

        async def attempt() -> SignatureEnvelope:
            agreement_id = await self._authorized(lambda token: self.agreements.create_agreement(token, payload))
            envelope_id = envelope.id if envelope.id is not None else uuid.uuid4()
            self.session.id_mapping.put(envelope_id, agreement_id)
            logger.info(f"Envelope {envelope_id} mapped to Adobe Sign agreement {agreement_id}")
            return replace(
                envelope,
                id=envelope_id,
                provider=SignatureProvider.ADOBE_SIGN,
                status=EnvelopeStatus.DRAFT,
                external_envelope_id=agreement_id,
                created_at=self._clock(),
            )

        return await self._guarded(attempt)

    async def get_envelope(self, envelope_id: UUID) -> SignatureEnvelope:
        """
        Read the envelope's agreement from Adobe Sign.

        Raises:
            EnvelopeNotFoundError: If no agreement is mapped to envelope_id
        """
        agreement_id = self.session.id_mapping.get_agreement_id(envelope_id)
        if agreement_id is None:
            raise EnvelopeNotFoundError(envelope_id)

        async def attempt() -> SignatureEnvelope:
            node = await self._authorized(lambda token: self.agreements.get_agreement(token, agreement_id))
            return SignatureEnvelope(
                id=envelope_id,
                provider=SignatureProvider.ADOBE_SIGN,
                title=node.get("name"),
                status=parse_adobe_sign_status(node.get("status")),
                external_envelope_id=agreement_id,
            )

        return await self._guarded(attempt)

    # TODO: issue real agreement updates (PUT /agreements/{id}/state) once the
    # transitions for send, void and archive are settled.
    async def update_envelope(self, envelope: SignatureEnvelope) -> SignatureEnvelope:
        return await self.get_envelope(envelope.id)

    async def send_envelope(self, envelope_id: UUID, sent_by: Optional[UUID] = None) -> SignatureEnvelope:
        return await self.get_envelope(envelope_id)

    async def void_envelope(
        self, envelope_id: UUID, void_reason: Optional[str] = None, voided_by: Optional[UUID] = None
    ) -> SignatureEnvelope:
        return await self.get_envelope(envelope_id)

    async def archive_envelope(self, envelope_id: UUID) -> SignatureEnvelope:
        return await self.get_envelope(envelope_id)

    async def sync_envelope_status(self, envelope_id: UUID) -> SignatureEnvelope:
        return await self.get_envelope(envelope_id)

    async def delete_envelope(self, envelope_id: UUID) -> None:
        return None

    async def resend_envelope(self, envelope_id: UUID) -> None:
        return None

    async def get_envelopes_by_status(
        self, status: EnvelopeStatus, limit: Optional[int] = None
    ) -> List[SignatureEnvelope]:
        return []

    async def get_envelopes_by_creator(self, created_by: UUID, limit: Optional[int] = None) -> List[SignatureEnvelope]:
        return []

    async def get_envelopes_by_sender(self, sent_by: UUID, limit: Optional[int] = None) -> List[SignatureEnvelope]:
        return []

    async def get_envelopes_by_provider(
        self, provider: SignatureProvider, limit: Optional[int] = None
    ) -> List[SignatureEnvelope]:
        return []

    async def get_expiring_envelopes(self, from_time: datetime, to_time: datetime) -> List[SignatureEnvelope]:
        return []

    async def get_completed_envelopes(self, from_time: datetime, to_time: datetime) -> List[SignatureEnvelope]:
        return []

    async def exists_envelope(self, envelope_id: Optional[UUID]) -> bool:
        return self.session.id_mapping.contains(envelope_id)

    async def get_envelope_by_external_id(
        self, external_envelope_id: str, provider: SignatureProvider = SignatureProvider.ADOBE_SIGN
    ) -> Optional[SignatureEnvelope]:
        if provider != SignatureProvider.ADOBE_SIGN:
            return None
        envelope_id = self.session.id_mapping.get_envelope_id(external_envelope_id)
        if envelope_id is None:
            return None
        return await self.get_envelope(envelope_id)

    async def get_signing_url(
        self,
        envelope_id: UUID,
        signer_email: str,
        signer_name: str,
        client_user_id: Optional[str] = None,
    ) -> str:
        raise UnsupportedOperationError("Embedded signing URL not implemented for Adobe Sign")
