"""
Envelope data model shared by the e-signature port and its adapters.
"""
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID

logger = logging.getLogger(__name__)


class EnvelopeStatus(str, Enum):
    """Envelope status enumeration."""
    DRAFT = "DRAFT"
    SENT = "SENT"
    DELIVERED = "DELIVERED"
    SIGNED = "SIGNED"
    COMPLETED = "COMPLETED"
    DECLINED = "DECLINED"
    VOIDED = "VOIDED"
    EXPIRED = "EXPIRED"
    ARCHIVED = "ARCHIVED"


class SignatureProvider(str, Enum):
    """Supported e-signature provider types."""
    ADOBE_SIGN = "ADOBE_SIGN"
    DOCUSIGN = "DOCUSIGN"
    HELLOSIGN = "HELLOSIGN"


# Adobe Sign agreement states that have no same-named EnvelopeStatus
ADOBE_SIGN_STATUS_ALIASES = {
    "AUTHORING": EnvelopeStatus.DRAFT,
    "PREFILL": EnvelopeStatus.DRAFT,
    "WIDGET_WAITING_FOR_VERIFICATION": EnvelopeStatus.DRAFT,
    "IN_PROCESS": EnvelopeStatus.SENT,
    "OUT_FOR_SIGNATURE": EnvelopeStatus.SENT,
    "OUT_FOR_APPROVAL": EnvelopeStatus.SENT,
    "OUT_FOR_ACCEPTANCE": EnvelopeStatus.SENT,
    "OUT_FOR_DELIVERY": EnvelopeStatus.SENT,
    "OUT_FOR_FORM_FILLING": EnvelopeStatus.SENT,
    "WAITING_FOR_MY_SIGNATURE": EnvelopeStatus.SENT,
    "WAITING_FOR_VERIFICATION": EnvelopeStatus.SENT,
    "WAITING_FOR_NOTARIZATION": EnvelopeStatus.SENT,
    "APPROVED": EnvelopeStatus.COMPLETED,
    "ACCEPTED": EnvelopeStatus.COMPLETED,
    "FORM_FILLED": EnvelopeStatus.COMPLETED,
    "CANCELLED": EnvelopeStatus.VOIDED,
    "RECALLED": EnvelopeStatus.VOIDED,
}


def parse_adobe_sign_status(value: Optional[str]) -> EnvelopeStatus:
    """
    Map an Adobe Sign agreement status onto an EnvelopeStatus.

    Missing values map to DRAFT. Unknown values are logged and also map to DRAFT.
    """
    if not value:
        return EnvelopeStatus.DRAFT
    name = value.strip().upper()
    if name in EnvelopeStatus.__members__:
        return EnvelopeStatus[name]
    if name in ADOBE_SIGN_STATUS_ALIASES:
        return ADOBE_SIGN_STATUS_ALIASES[name]
    logger.warning(f"Unknown Adobe Sign agreement status {value!r}, treating as DRAFT")
    return EnvelopeStatus.DRAFT


@dataclass(frozen=True)
class SignatureEnvelope:
    """A signature request as seen by the rest of the system."""
    id: Optional[UUID] = None
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[EnvelopeStatus] = None
    provider: Optional[SignatureProvider] = None
    external_envelope_id: Optional[str] = None
    created_by: Optional[UUID] = None
    sent_by: Optional[UUID] = None
    voided_by: Optional[UUID] = None
    void_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly representation (UUIDs, enums and datetimes as strings)."""
        result = {}
        for key, value in asdict(self).items():
            if isinstance(value, UUID):
                value = str(value)
            elif isinstance(value, Enum):
                value = value.value
            elif isinstance(value, datetime):
                value = value.isoformat()
            result[key] = value
        return result
