"""Turn a confirmed payment split into balanced Beancount postings."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from beancount.core import amount, data
from beancount.parser import printer

from . import constants
from .preview import SplitPreview
from .schema import Deal, GlobalConfig, MortgageAccounts

logger = logging.getLogger(__name__)


class UnbalancedSplitError(ValueError):
    """A split whose parts do not add up to the amount paid."""


def _posting(account: str, value: Decimal, currency: str) -> data.Posting:
    return data.Posting(
        account=account,
        units=amount.Amount(value, currency),
        cost=None,
        price=None,
        flag=None,
        meta=None,
    )


def build_payment_postings(
    preview: SplitPreview,
    deal: Deal,
    accounts: MortgageAccounts,
    cash_account: str,
    currency: str = constants.DEFAULT_CURRENCY,
    tolerance: Decimal = constants.RECONCILIATION_TOLERANCE,
) -> list[data.Posting]:
    """Build the postings for one mortgage payment.

    The cash account is credited the full amount paid; principal goes to the
    deal's loan account, interest and escrow to the purpose-specific expense
    accounts. Zero legs are left out. A difference within ``tolerance`` is
    absorbed by the principal leg (or the largest leg when principal would go
    negative) so the postings always sum to zero.

    Args:
        preview: Confirmed (possibly user-edited) split
        deal: Deal the loan belongs to
        accounts: Interest and escrow account names
        cash_account: Account the payment was made from
        currency: Posting currency
        tolerance: Largest split/total difference accepted

    Returns:
        List of Beancount postings summing to zero

    Raises:
        UnbalancedSplitError: If the split differs from the total by more
            than ``tolerance``
        ValueError: If the deal has no loan account or an amount is negative
    """
    if not deal.loan_account:
        raise ValueError(f"Deal '{deal.id}' has no loan account")

    for name in ("principal", "interest", "escrow"):
        if getattr(preview, name) < 0:
            raise ValueError(f"{name} cannot be negative")

    split_total = preview.edited_total
    residual = preview.total - split_total
    if abs(residual) > tolerance:
        raise UnbalancedSplitError(
            f"Split ({split_total:.2f}) doesn't match total ({preview.total:.2f})."
        )

    purpose = deal.purpose
    legs = [
        [deal.loan_account, preview.principal],
        [accounts.interest_account(purpose), preview.interest],
        [accounts.escrow_account(purpose), preview.escrow],
    ]
    if residual:
        _absorb_residual(legs, residual)

    postings = [_posting(cash_account, -preview.total, currency)]
    for account, value in legs:
        if value > 0:
            postings.append(_posting(account, value, currency))

    return postings


def _absorb_residual(legs: list[list], residual: Decimal) -> None:
    """Fold a within-tolerance residual into one leg so the postings sum to zero.

    ``legs`` is a list of ``[account, amount]`` pairs, principal first.
    Principal takes the residual when it can stay non-negative; otherwise the
    largest leg does.
    """
    leg = legs[0]
    if leg[1] + residual < 0:
        leg = max(legs, key=lambda pair: pair[1])
    if leg[1] + residual < 0:
        raise UnbalancedSplitError(
            f"Cannot absorb {residual:+.2f} residual without a negative posting."
        )
    logger.debug("Absorbing %s rounding residual into %s", residual, leg[0])
    leg[1] += residual


def build_payment_transaction(
    preview: SplitPreview,
    deal: Deal,
    payment_date: date,
    config: Optional[GlobalConfig] = None,
    cash_account: Optional[str] = None,
    description: Optional[str] = None,
    cleared: bool = True,
) -> data.Transaction:
    """Build a balanced Beancount transaction for a mortgage payment.

    Args:
        preview: Confirmed (possibly user-edited) split
        deal: Deal the loan belongs to
        payment_date: Transaction date
        config: Global configuration (defaults when None)
        cash_account: Account paid from (defaults to config.default_cash_account)
        description: Narration (defaults to "Mortgage payment - <nickname>")
        cleared: Flag ``*`` when True, ``!`` when still pending

    Returns:
        beancount.core.data.Transaction
    """
    config = config or GlobalConfig()

    postings = build_payment_postings(
        preview,
        deal,
        config.accounts,
        cash_account or config.default_cash_account,
        currency=config.default_currency,
        tolerance=config.reconciliation_tolerance,
    )

    meta = data.new_metadata("<pitisplit>", 0)
    meta[constants.META_DEAL_ID] = deal.id
    meta[constants.META_PURPOSE] = deal.purpose.value
    if preview.payment_number is not None:
        meta[constants.META_PAYMENT_NUMBER] = str(preview.payment_number)
    meta[constants.META_AUTO_CALCULATED] = preview.auto_calculated
    if preview.escrow_inferred:
        meta[constants.META_ESCROW_INFERRED] = True

    narration = description or constants.DEFAULT_NARRATION_TEMPLATE.format(
        nickname=deal.nickname
    )

    txn = data.Transaction(
        meta=meta,
        date=payment_date,
        flag=constants.CLEARED_FLAG if cleared else constants.PENDING_FLAG,
        payee=None,
        narration=narration,
        tags=frozenset(),
        links=frozenset(),
        postings=postings,
    )

    logger.info(
        "Built mortgage payment for %s on %s: %d postings, total %s",
        deal.id,
        payment_date,
        len(postings),
        preview.total,
    )
    return txn


def format_transaction(txn: data.Transaction) -> str:
    """Render a transaction as Beancount ledger text."""
    return printer.format_entry(txn)
