"""
Mutable state shared by all operations of one Adobe Sign adapter.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from id_mapping import EnvelopeIdMapping

# Tokens are refreshed this long before they actually expire
TOKEN_EXPIRY_MARGIN = timedelta(seconds=60)


@dataclass(frozen=True)
class AccessToken:
    """A bearer token and the instant it stops being accepted."""
    value: str
    expires_at: datetime

    def is_fresh(self, now: datetime, margin: timedelta = TOKEN_EXPIRY_MARGIN) -> bool:
        return now < self.expires_at - margin


@dataclass
class AdobeSignSession:
    """
    Token state plus the envelope/agreement id mapping.

    The token is replaced as a whole on refresh; concurrent refreshes may both
    run and whichever finishes last wins.
    """
    access_token: Optional[AccessToken] = None
    id_mapping: EnvelopeIdMapping = field(default_factory=EnvelopeIdMapping)

    def fresh_token(self, now: datetime) -> Optional[str]:
        token = self.access_token
        if token is not None and token.is_fresh(now):
            return token.value
        return None
