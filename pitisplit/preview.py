"""Editable preview of a mortgage payment split.

A preview is what the user confirms before a payment is booked: the three
editable amounts (principal, interest, escrow) plus the context they were
computed from. Previews are immutable; every edit returns a new one.
"""

from decimal import Decimal
from typing import NamedTuple, Optional

from . import constants
from .amortization import PaymentSplit, SplitWarning, to_cents


class SplitPreview(NamedTuple):
    """Principal/interest/escrow breakdown awaiting confirmation."""

    total: Decimal
    principal: Decimal
    interest: Decimal
    escrow: Decimal
    escrow_taxes: Decimal
    escrow_insurance: Decimal
    payment_number: Optional[int] = None
    auto_calculated: bool = False
    escrow_inferred: bool = False
    warnings: tuple[SplitWarning, ...] = ()
    label: str = ""

    @property
    def edited_total(self) -> Decimal:
        return self.principal + self.interest + self.escrow


class BalanceCheck(NamedTuple):
    """Result of comparing an edited split against the amount paid."""

    edited_total: Decimal
    diff: Decimal
    is_balanced: bool
    label: str


def preview_from_split(split: PaymentSplit, label: str = "") -> SplitPreview:
    """Build an auto-calculated preview from an engine split."""
    return SplitPreview(
        total=split.total_payment,
        principal=split.principal,
        interest=split.interest,
        escrow=split.escrow,
        escrow_taxes=split.escrow_taxes,
        escrow_insurance=split.escrow_insurance,
        payment_number=split.payment_number,
        auto_calculated=True,
        escrow_inferred=split.escrow_inferred,
        warnings=split.warnings,
        label=label,
    )


def manual_preview(
    total: Decimal,
    interest: Decimal = constants.ZERO,
    escrow: Decimal = constants.ZERO,
    label: str = "",
) -> SplitPreview:
    """Build a preview from user-entered interest and escrow.

    Principal is whatever the total leaves after interest and escrow, never
    below zero. Escrow is divided evenly between taxes and insurance.
    """
    total = to_cents(total)
    interest = to_cents(interest)
    escrow = to_cents(escrow)
    principal = max(total - interest - escrow, constants.ZERO)
    taxes = to_cents(escrow * constants.HALF)

    return SplitPreview(
        total=total,
        principal=principal,
        interest=interest,
        escrow=escrow,
        escrow_taxes=taxes,
        escrow_insurance=escrow - taxes,
        label=label,
    )


def with_edits(
    preview: SplitPreview,
    principal: Optional[Decimal] = None,
    interest: Optional[Decimal] = None,
    escrow: Optional[Decimal] = None,
) -> SplitPreview:
    """Return a copy of ``preview`` with user-edited amounts.

    Fields left as None keep their previous value. An edited escrow is
    re-divided between taxes and insurance in the preview's existing ratio
    (evenly if the preview had no escrow).
    """
    changes = {}
    if principal is not None:
        changes["principal"] = to_cents(principal)
    if interest is not None:
        changes["interest"] = to_cents(interest)
    if escrow is not None:
        escrow = to_cents(escrow)
        if preview.escrow > 0:
            taxes = to_cents(escrow * preview.escrow_taxes / preview.escrow)
        else:
            taxes = to_cents(escrow * constants.HALF)
        changes.update(escrow=escrow, escrow_taxes=taxes, escrow_insurance=escrow - taxes)

    if not changes:
        return preview
    return preview._replace(**changes)


def balance_check(
    preview: SplitPreview, tolerance: Decimal = constants.RECONCILIATION_TOLERANCE
) -> BalanceCheck:
    """Compare the preview's edited amounts with the amount paid.

    Balanced means within ``tolerance``, the same test posting applies. The
    label is ``OK`` when balanced, otherwise the signed difference
    (e.g. ``+0.05``).
    """
    edited_total = preview.edited_total
    diff = edited_total - preview.total
    is_balanced = abs(diff) <= tolerance
    label = "OK" if is_balanced else f"{diff:+.2f}"
    return BalanceCheck(
        edited_total=edited_total,
        diff=diff,
        is_balanced=is_balanced,
        label=label,
    )
