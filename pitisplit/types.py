"""Type definitions and enums for pitisplit."""

from enum import Enum


class DealType(str, Enum):
    """Kinds of real-estate deal a loan can belong to."""

    RENTAL = "rental"
    FLIP = "flip"
    PERSONAL = "personal"
    WHOLESALE = "wholesale"


class Purpose(str, Enum):
    """Ledger purpose a mortgage payment is booked under."""

    BUSINESS = "business"
    PERSONAL = "personal"


class WarningKind(str, Enum):
    """Categories of caveat attached to a computed payment split."""

    FALLBACK_DATE = "FALLBACK_DATE"  # first payment date missing, origination used
    OUT_OF_RANGE = "OUT_OF_RANGE"  # payment date outside the loan term, clamped
    ESCROW_INFERRED = "ESCROW_INFERRED"  # escrow back-solved from the total
    RECONCILIATION = "RECONCILIATION"  # split does not sum to the amount paid
