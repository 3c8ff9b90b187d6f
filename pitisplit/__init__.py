"""Pitisplit - Mortgage PITI payment splitting for small-business bookkeeping.

This package splits a mortgage payment into principal, interest, and escrow
(taxes and insurance) from the loan's origination terms, and turns the
confirmed split into a balanced Beancount transaction.

Main exports:
    compute_mortgage_split: Split an actual payment into PITI components
    compute_scheduled_split: Principal/interest of a scheduled payment
"""

from .amortization import (
    AmortizationSchedule,
    InvalidTermsError,
    LoanTerms,
    PaymentSplit,
    compute_mortgage_split,
    compute_scheduled_split,
)

__all__ = [
    "AmortizationSchedule",
    "InvalidTermsError",
    "LoanTerms",
    "PaymentSplit",
    "compute_mortgage_split",
    "compute_scheduled_split",
]
__version__ = "1.0.0"
