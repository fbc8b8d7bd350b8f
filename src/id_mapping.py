"""
Bidirectional cache between internal envelope ids and Adobe Sign agreement ids.
"""
import threading
from typing import Dict, Optional
from uuid import UUID


class EnvelopeIdMapping:
    """
    Two maps kept in sync: envelope id -> agreement id and agreement id -> envelope id.

    Both entries are written under one lock so readers never see half a pair.
    Entries are never evicted.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._agreement_ids: Dict[UUID, str] = {}
        self._envelope_ids: Dict[str, UUID] = {}

    def put(self, envelope_id: UUID, agreement_id: str) -> None:
        with self._lock:
            # Drop stale halves so both maps stay one-to-one
            previous_agreement_id = self._agreement_ids.pop(envelope_id, None)
            if previous_agreement_id is not None:
                self._envelope_ids.pop(previous_agreement_id, None)
            previous_envelope_id = self._envelope_ids.pop(agreement_id, None)
            if previous_envelope_id is not None:
                self._agreement_ids.pop(previous_envelope_id, None)
            self._agreement_ids[envelope_id] = agreement_id
            self._envelope_ids[agreement_id] = envelope_id

    def get_agreement_id(self, envelope_id: Optional[UUID]) -> Optional[str]:
        if envelope_id is None:
            return None
        with self._lock:
            return self._agreement_ids.get(envelope_id)

    def get_envelope_id(self, agreement_id: Optional[str]) -> Optional[UUID]:
        if agreement_id is None:
            return None
        with self._lock:
            return self._envelope_ids.get(agreement_id)

    def contains(self, envelope_id: Optional[UUID]) -> bool:
        return self.get_agreement_id(envelope_id) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._agreement_ids)
