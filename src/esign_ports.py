"""
E-signature port definitions.

SignatureEnvelopePort is the contract callers depend on; e-signature adapters
implement it. DocumentContentPort and DocumentPort are collaborators handed to
adapters for attaching stored documents to envelopes.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Protocol
from uuid import UUID

from envelope_models import EnvelopeStatus, SignatureEnvelope, SignatureProvider


class DocumentContentPort(Protocol):
    """Read access to stored document bytes."""

    async def get_content(self, document_id: UUID) -> bytes:
        ...


class DocumentPort(Protocol):
    """Read access to stored document metadata."""

    async def get_document(self, document_id: UUID) -> Optional[dict]:
        ...


class SignatureEnvelopePort(ABC):
    """Lifecycle operations on signature envelopes."""

    @abstractmethod
    async def create_envelope(self, envelope: SignatureEnvelope) -> SignatureEnvelope:
        """Create the envelope at the provider and return it with ids assigned."""

    @abstractmethod
    async def get_envelope(self, envelope_id: UUID) -> SignatureEnvelope:
        """Fetch an envelope; raises EnvelopeNotFoundError if unknown."""

    @abstractmethod
    async def update_envelope(self, envelope: SignatureEnvelope) -> SignatureEnvelope:
        pass

    @abstractmethod
    async def delete_envelope(self, envelope_id: UUID) -> None:
        pass

    @abstractmethod
    async def send_envelope(self, envelope_id: UUID, sent_by: Optional[UUID] = None) -> SignatureEnvelope:
        pass

    @abstractmethod
    async def void_envelope(
        self, envelope_id: UUID, void_reason: Optional[str] = None, voided_by: Optional[UUID] = None
    ) -> SignatureEnvelope:
        pass

    @abstractmethod
    async def archive_envelope(self, envelope_id: UUID) -> SignatureEnvelope:
        pass

    @abstractmethod
    async def sync_envelope_status(self, envelope_id: UUID) -> SignatureEnvelope:
        """Refresh the envelope status from the provider."""

    @abstractmethod
    async def get_envelopes_by_status(
        self, status: EnvelopeStatus, limit: Optional[int] = None
    ) -> List[SignatureEnvelope]:
        pass

    @abstractmethod
    async def get_envelopes_by_creator(self, created_by: UUID, limit: Optional[int] = None) -> List[SignatureEnvelope]:
        pass

    @abstractmethod
    async def get_envelopes_by_sender(self, sent_by: UUID, limit: Optional[int] = None) -> List[SignatureEnvelope]:
        pass

    @abstractmethod
    async def get_envelopes_by_provider(
        self, provider: SignatureProvider, limit: Optional[int] = None
    ) -> List[SignatureEnvelope]:
        pass

    @abstractmethod
    async def get_expiring_envelopes(self, from_time: datetime, to_time: datetime) -> List[SignatureEnvelope]:
        pass

    @abstractmethod
    async def get_completed_envelopes(self, from_time: datetime, to_time: datetime) -> List[SignatureEnvelope]:
        pass

    @abstractmethod
    async def exists_envelope(self, envelope_id: Optional[UUID]) -> bool:
        pass

    @abstractmethod
    async def get_envelope_by_external_id(
        self, external_envelope_id: str, provider: SignatureProvider
    ) -> Optional[SignatureEnvelope]:
        """Look up an envelope by the provider's id; None if unknown."""

    @abstractmethod
    async def get_signing_url(
        self,
        envelope_id: UUID,
        signer_email: str,
        signer_name: str,
        client_user_id: Optional[str] = None,
    ) -> str:
        """Embedded signing URL for a signer."""

    @abstractmethod
    async def resend_envelope(self, envelope_id: UUID) -> None:
        pass

    async def aclose(self) -> None:
        """Release resources held by the port (no-op by default)."""
