"""
Outcome of one trigger event passing through the poster.
"""

import enum
from decimal import Decimal

from pydantic import BaseModel, Field


class PostingState(str, enum.Enum):
    """
    Lifecycle of a posting.

    RECEIVED -> RESOLVING -> BUILDING -> COMMITTING -> COMMITTED
    Any non-terminal state may move to ABORTED. SKIPPED means the
    event was a re-delivery or had nothing to post.
    """
    RECEIVED = "RECEIVED"
    RESOLVING = "RESOLVING"
    BUILDING = "BUILDING"
    COMMITTING = "COMMITTING"
    COMMITTED = "COMMITTED"
    ABORTED = "ABORTED"
    SKIPPED = "SKIPPED"


class PostingResult(BaseModel):
    state: PostingState
    event_kind: str
    source_id: str
    voucher_ids: list[str] = Field(default_factory=list)
    reference_number: str | None = None
    commission: Decimal | None = None
    error: str | None = None
    attempts: int = 0
