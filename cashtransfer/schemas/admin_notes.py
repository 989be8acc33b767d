"""
Typed admin notes attached to a transaction.

Notes are stored as a JSON list on ``Transaction.admin_notes``; each entry
carries a ``kind`` discriminator so it parses back into exactly one of the
variants below.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ManualProcessingRequired(BaseModel):
    """Payout needs an operator (bank transfer, mobile money, cash)."""
    kind: Literal["manual_processing_required"] = "manual_processing_required"
    payment_method_type: str
    reason: str
    recorded_at: datetime = Field(default_factory=_now)


class PaymentVerified(BaseModel):
    """Sender's payment was confirmed by the gateway or an operator."""
    kind: Literal["payment_verified"] = "payment_verified"
    provider_reference: str
    amount: Decimal
    recorded_at: datetime = Field(default_factory=_now)


class TransferCompleted(BaseModel):
    """Funds were paid out to the receiver."""
    kind: Literal["transfer_completed"] = "transfer_completed"
    payout_reference: str | None = None
    received_amount: Decimal
    currency: str
    recorded_at: datetime = Field(default_factory=_now)


class FailureInfo(BaseModel):
    """Why a transaction failed or was cancelled."""
    kind: Literal["failure"] = "failure"
    stage: Literal["payment", "settlement", "payout"]
    reason: str
    provider_status: str | None = None
    error: str | None = None
    recorded_at: datetime = Field(default_factory=_now)


AdminNote = Annotated[
    Union[ManualProcessingRequired, PaymentVerified, TransferCompleted, FailureInfo],
    Field(discriminator="kind"),
]

admin_notes_adapter = TypeAdapter(list[AdminNote])


def parse_notes(raw: list[dict] | None) -> list[AdminNote]:
    """Parse the stored JSON list into typed notes."""
    return admin_notes_adapter.validate_python(raw or [])


def dump_notes(notes: list[AdminNote]) -> list[dict]:
    """Serialise typed notes into JSON-compatible dicts."""
    return admin_notes_adapter.dump_python(notes, mode="json")


def describe_note(note: AdminNote) -> str:
    """One-line human summary used in admin listings."""
    if isinstance(note, ManualProcessingRequired):
        return f"Manual processing required ({note.payment_method_type}): {note.reason}"
    if isinstance(note, PaymentVerified):
        return f"Payment verified ({note.provider_reference}) for {note.amount}"
    if isinstance(note, TransferCompleted):
        ref = note.payout_reference or "no payout reference"
        return f"Transfer completed: {note.received_amount} {note.currency} ({ref})"
    if isinstance(note, FailureInfo):
        return f"Failed during {note.stage}: {note.reason}"
    raise TypeError(f"Unknown admin note type: {type(note).__name__}")
