"""Amortization calculations for mortgage payments.

Splits a mortgage payment into principal, interest, and escrow (taxes and
insurance) using a standard fixed-rate amortization table. The table is
produced by walking the balance forward one period at a time, rounding each
period's interest to cents the way a lender's statement does, so the split for
payment N carries the same rounding history as a printed schedule.
"""

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterator, NamedTuple, Optional

from dateutil.relativedelta import relativedelta

from . import constants
from .types import WarningKind

logger = logging.getLogger(__name__)


class InvalidTermsError(ValueError):
    """Loan terms that cannot describe a real amortizing loan."""


class LoanTerms(NamedTuple):
    """Origination terms of a fixed-rate loan."""

    original_principal: Decimal
    annual_rate_percent: Decimal  # e.g. Decimal("6.5") for 6.5%
    term_months: int
    origination_date: date
    first_payment_date: Optional[date] = None
    monthly_escrow_taxes: Decimal = constants.ZERO
    monthly_escrow_insurance: Decimal = constants.ZERO


class ScheduledSplit(NamedTuple):
    """Principal and interest components of one scheduled payment."""

    payment_number: int
    principal: Decimal
    interest: Decimal
    total_payment: Decimal
    remaining_balance: Decimal


class SplitWarning(NamedTuple):
    """A non-fatal caveat attached to a computed payment split."""

    kind: WarningKind
    message: str

    def __str__(self) -> str:
        return self.message


class PaymentSplit(NamedTuple):
    """PITI breakdown of an actual payment."""

    payment_number: int
    principal: Decimal
    interest: Decimal
    escrow_taxes: Decimal
    escrow_insurance: Decimal
    total_payment: Decimal
    escrow_inferred: bool = False
    warnings: tuple[SplitWarning, ...] = ()

    @property
    def escrow(self) -> Decimal:
        return self.escrow_taxes + self.escrow_insurance

    @property
    def computed_total(self) -> Decimal:
        return self.principal + self.interest + self.escrow

    @property
    def delta(self) -> Decimal:
        """Computed split minus the amount actually paid."""
        return self.computed_total - self.total_payment

    @property
    def warning_messages(self) -> list[str]:
        return [w.message for w in self.warnings]

    def has_warning(self, kind: WarningKind) -> bool:
        return any(w.kind == kind for w in self.warnings)


def to_cents(value: Decimal) -> Decimal:
    """Round a money amount to cents, half away from zero."""
    return value.quantize(constants.CENTS_PRECISION, rounding=ROUND_HALF_UP)


def _as_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def validate_terms(terms: LoanTerms) -> None:
    """Raise InvalidTermsError when terms cannot be amortized.

    Raises:
        InvalidTermsError: If principal or term is not positive, or the rate
            is negative
    """
    if _as_decimal(terms.original_principal) <= 0:
        raise InvalidTermsError(
            f"original principal must be positive, got {terms.original_principal}"
        )
    if terms.term_months <= 0:
        raise InvalidTermsError(f"term must be at least 1 month, got {terms.term_months}")
    if _as_decimal(terms.annual_rate_percent) < 0:
        raise InvalidTermsError(
            f"annual rate must be non-negative, got {terms.annual_rate_percent}"
        )


def elapsed_whole_months(start: date, end: date) -> int:
    """Count whole calendar months from ``start`` to ``end``.

    A month only counts once the day of month of ``start`` has been reached,
    so 2024-01-15 -> 2024-02-14 is 0 months and -> 2024-02-15 is 1. The result
    is negative when ``end`` falls a month or more before ``start``.
    """
    delta = relativedelta(end, start)
    return delta.years * constants.MONTHS_PER_YEAR + delta.months


class AmortizationSchedule:
    """Fixed-payment amortization table for one set of loan terms.

    Example:
        >>> schedule = AmortizationSchedule(LoanTerms(
        ...     original_principal=Decimal("200000"),
        ...     annual_rate_percent=Decimal("6"),
        ...     term_months=360,
        ...     origination_date=date(2024, 1, 2),
        ...     first_payment_date=date(2024, 2, 1),
        ... ))
        >>> schedule.payment
        Decimal('1199.10')
        >>> schedule.get_payment_split(1).interest
        Decimal('1000.00')
    """

    def __init__(self, terms: LoanTerms):
        """Initialize amortization schedule.

        Args:
            terms: Loan origination terms

        Raises:
            InvalidTermsError: If the terms are structurally invalid
        """
        validate_terms(terms)

        self.terms = terms
        self.principal = to_cents(_as_decimal(terms.original_principal))
        self.term_months = terms.term_months
        self.monthly_rate = (
            _as_decimal(terms.annual_rate_percent)
            / Decimal("100")
            / Decimal(constants.MONTHS_PER_YEAR)
        )
        self.payment = self._calculate_payment()

        logger.debug(
            "Amortization schedule created: principal=%s, rate=%s%%, term=%d months, payment=%s",
            self.principal,
            terms.annual_rate_percent,
            self.term_months,
            self.payment,
        )

    @property
    def anchor_date(self) -> date:
        """Date of payment #1, falling back to the origination date."""
        return self.terms.first_payment_date or self.terms.origination_date

    def _calculate_payment(self) -> Decimal:
        """Calculate the level monthly payment.

        Formula: PMT = P * r / (1 - (1 + r)^-n)
        Where:
            P = principal
            r = monthly interest rate
            n = number of payments
        """
        if self.monthly_rate == 0:
            # No interest - simple division
            return to_cents(self.principal / Decimal(self.term_months))

        r = self.monthly_rate
        discount = (Decimal("1") + r) ** -self.term_months
        return to_cents(self.principal * r / (Decimal("1") - discount))

    def _walk(self, through: int) -> Iterator[ScheduledSplit]:
        """Yield scheduled splits for payments 1..through."""
        balance = self.principal

        for number in range(1, through + 1):
            interest = to_cents(balance * self.monthly_rate)

            if number == self.term_months:
                # Final payment retires whatever rounding left behind
                principal = balance
            else:
                principal = min(self.payment - interest, balance)
                principal = max(principal, constants.ZERO)

            balance -= principal

            yield ScheduledSplit(
                payment_number=number,
                principal=principal,
                interest=interest,
                total_payment=principal + interest,
                remaining_balance=balance,
            )

    def get_payment_split(self, payment_number: int) -> ScheduledSplit:
        """Get principal/interest split for a specific payment.

        Args:
            payment_number: Payment number (1-indexed, 1 = first payment)

        Returns:
            ScheduledSplit with principal, interest, and remaining balance

        Raises:
            ValueError: If payment_number is outside the loan term
        """
        if payment_number < 1:
            raise ValueError("Payment number must be >= 1")

        if payment_number > self.term_months:
            raise ValueError(
                f"Payment number {payment_number} exceeds term of {self.term_months} months"
            )

        split = None
        for split in self._walk(payment_number):
            pass
        return split

    def generate_full_schedule(self) -> list[ScheduledSplit]:
        """Generate complete amortization schedule for all payments."""
        return list(self._walk(self.term_months))

    def get_total_interest(self) -> Decimal:
        """Calculate total interest paid over life of loan."""
        return sum((split.interest for split in self._walk(self.term_months)), Decimal("0"))

    def get_payment_date(self, payment_number: int) -> date:
        """Scheduled due date of a payment, counted from the anchor date."""
        return self.anchor_date + relativedelta(months=payment_number - 1)

    def get_payment_number_for_date(self, payment_date: date) -> int | None:
        """Calculate payment number for a given date.

        Returns:
            Payment number (1-indexed), or None if the date falls before the
            anchor date or beyond the loan term
        """
        if payment_date < self.anchor_date:
            return None

        payment_number = elapsed_whole_months(self.anchor_date, payment_date) + 1

        if payment_number > self.term_months:
            return None

        return payment_number


def compute_scheduled_split(terms: LoanTerms, payment_number: int) -> ScheduledSplit:
    """Principal and interest of scheduled payment ``payment_number``.

    Raises:
        InvalidTermsError: If the terms are structurally invalid
        ValueError: If payment_number is outside ``[1, term_months]``
    """
    return AmortizationSchedule(terms).get_payment_split(payment_number)


def _resolve_payment_number(
    schedule: AmortizationSchedule, payment_date: date
) -> tuple[int, Optional[SplitWarning]]:
    anchor = schedule.anchor_date

    if payment_date < anchor:
        message = constants.MSG_BEFORE_TERM.format(payment_date=payment_date, anchor=anchor)
        return 1, SplitWarning(WarningKind.OUT_OF_RANGE, message)

    payment_number = elapsed_whole_months(anchor, payment_date) + 1
    if payment_number > schedule.term_months:
        message = constants.MSG_AFTER_TERM.format(
            payment_date=payment_date, term=schedule.term_months
        )
        return schedule.term_months, SplitWarning(WarningKind.OUT_OF_RANGE, message)

    return payment_number, None


def _split_escrow(
    combined: Decimal, taxes_weight: Decimal, insurance_weight: Decimal
) -> tuple[Decimal, Decimal]:
    """Divide combined escrow between taxes and insurance.

    Weights are the configured monthly amounts; with no configuration the
    escrow is halved. Insurance takes the remainder so the shares always sum
    to ``combined``.
    """
    weight_total = taxes_weight + insurance_weight
    if weight_total > 0:
        taxes = to_cents(combined * taxes_weight / weight_total)
    else:
        taxes = to_cents(combined * constants.HALF)
    return taxes, combined - taxes


def compute_mortgage_split(
    terms: LoanTerms,
    payment_date: date,
    total_payment_amount: Decimal,
    tolerance: Decimal = constants.RECONCILIATION_TOLERANCE,
) -> PaymentSplit:
    """Split an actual mortgage payment into principal, interest and escrow.

    Escrow comes straight from the configured monthly amounts when they
    reconcile with the amount paid. Otherwise it is back-solved as whatever
    the payment leaves after scheduled principal and interest, and divided
    between taxes and insurance in the configured ratio.

    Only structurally invalid terms fail. Date fallbacks, out-of-term dates,
    inferred escrow, and totals that cannot be reconciled are reported in
    ``warnings`` on a best-effort split.

    Args:
        terms: Loan origination terms
        payment_date: Date the payment was made
        total_payment_amount: Cash amount actually paid
        tolerance: Largest difference still treated as balanced

    Returns:
        PaymentSplit for the payment

    Raises:
        InvalidTermsError: If the terms are structurally invalid
        ValueError: If total_payment_amount is not a positive finite amount
    """
    schedule = AmortizationSchedule(terms)

    total = _as_decimal(total_payment_amount)
    if not total.is_finite():
        raise ValueError(f"total payment amount must be finite, got {total_payment_amount}")
    total = to_cents(total)
    if total <= 0:
        raise ValueError(f"total payment amount must be positive, got {total_payment_amount}")

    warnings: list[SplitWarning] = []

    if terms.first_payment_date is None:
        warnings.append(SplitWarning(WarningKind.FALLBACK_DATE, constants.MSG_FALLBACK_DATE))

    payment_number, range_warning = _resolve_payment_number(schedule, payment_date)
    if range_warning is not None:
        logger.warning("%s", range_warning.message)
        warnings.append(range_warning)

    scheduled = schedule.get_payment_split(payment_number)
    principal = scheduled.principal
    interest = scheduled.interest

    fixed_taxes = to_cents(_as_decimal(terms.monthly_escrow_taxes))
    fixed_insurance = to_cents(_as_decimal(terms.monthly_escrow_insurance))

    if abs(principal + interest + fixed_taxes + fixed_insurance - total) <= tolerance:
        escrow_taxes, escrow_insurance = fixed_taxes, fixed_insurance
        escrow_inferred = False
    else:
        combined = max(total - principal - interest, constants.ZERO)
        escrow_taxes, escrow_insurance = _split_escrow(combined, fixed_taxes, fixed_insurance)
        escrow_inferred = True
        warnings.append(SplitWarning(WarningKind.ESCROW_INFERRED, constants.MSG_ESCROW_INFERRED))

    delta = principal + interest + escrow_taxes + escrow_insurance - total
    if abs(delta) > tolerance:
        warnings.append(
            SplitWarning(
                WarningKind.RECONCILIATION,
                constants.MSG_RECONCILIATION.format(delta=f"{delta:+.2f}"),
            )
        )

    logger.debug(
        "Payment #%d on %s: principal=%s interest=%s taxes=%s insurance=%s inferred=%s",
        payment_number,
        payment_date,
        principal,
        interest,
        escrow_taxes,
        escrow_insurance,
        escrow_inferred,
    )

    return PaymentSplit(
        payment_number=payment_number,
        principal=principal,
        interest=interest,
        escrow_taxes=escrow_taxes,
        escrow_insurance=escrow_insurance,
        total_payment=total,
        escrow_inferred=escrow_inferred,
        warnings=tuple(warnings),
    )
