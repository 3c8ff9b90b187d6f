"""Click CLI commands for pitisplit."""

import logging
import sys
import traceback
from decimal import Decimal, InvalidOperation
from pathlib import Path

import click

from pitisplit import __version__
from pitisplit.amortization import AmortizationSchedule, InvalidTermsError, compute_mortgage_split
from pitisplit.ledger import build_payment_transaction, format_transaction
from pitisplit.loader import load_deals_from_path
from pitisplit.preview import balance_check, manual_preview, preview_from_split, with_edits

from .formatters import (
    print_amortization_csv,
    print_amortization_json,
    print_amortization_table,
    print_deal_csv,
    print_deal_table,
    print_split_json,
    print_split_table,
)

logger = logging.getLogger(__name__)


def parse_decimal(ctx, param, value):
    """Click callback converting an option or argument to Decimal."""
    if value is None:
        return None
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise click.BadParameter(f"'{value}' is not a valid amount") from None
    if not amount.is_finite():
        raise click.BadParameter(f"'{value}' is not a finite amount")
    return amount


def _load_deal(deals_path: str | None, deal_id: str):
    """Load the deal file and look up ``deal_id``, exiting on failure."""
    path_obj = Path(deals_path) if deals_path else None
    try:
        deal_file = load_deals_from_path(path_obj)
    except Exception as e:
        _fail(e)

    if deal_file is None:
        click.echo(f"Error: No deals found at {path_obj or 'default locations'}", err=True)
        sys.exit(1)

    deal = deal_file.get_deal(deal_id)
    if deal is None:
        click.echo(f"Error: Deal '{deal_id}' not found", err=True)
        sys.exit(1)

    return deal_file, deal


def _require_loan_terms(deal):
    if not deal.can_auto_split:
        click.echo(
            f"Error: Deal '{deal.id}' is missing loan fields: "
            f"{', '.join(deal.missing_loan_fields())}",
            err=True,
        )
        sys.exit(1)
    return deal.loan_terms()


def _fail(e: Exception):
    click.echo(f"Error: {e}", err=True)
    if logger.isEnabledFor(logging.DEBUG):
        traceback.print_exc()
    sys.exit(1)


deals_path_option = click.option(
    "--deals-path",
    type=click.Path(exists=True),
    default=None,
    help="Path to deals file or directory (default: discover deals/ or deals.yaml)",
)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.version_option(version=__version__)
def main(verbose: bool):
    """Pitisplit - Mortgage PITI payment splitting for small-business books."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


@main.command()
@click.argument("path", type=click.Path(exists=True))
def validate(path: str):
    """Validate deal files for syntax and schema compliance.

    PATH can be either a deals.yaml file or a deals/ directory.

    Examples:
        pitisplit validate deals.yaml
        pitisplit validate deals/
    """
    path_obj = Path(path)

    click.echo(f"Validating deals from: {path_obj}")

    try:
        deal_file = load_deals_from_path(path_obj)
        if deal_file is None:
            click.echo(f"Error: Path is neither a file nor a directory: {path_obj}", err=True)
            sys.exit(1)

        num_deals = len(deal_file.deals)
        num_splittable = sum(1 for d in deal_file.deals if d.can_auto_split)

        click.echo("✓ Validation successful!")
        click.echo(f"  Total deals: {num_deals}")
        click.echo(f"  Auto-split ready: {num_splittable}")

        duplicates = deal_file.duplicate_ids()
        if duplicates:
            click.echo(f"\n⚠ Warning: Duplicate deal IDs found: {', '.join(duplicates)}", err=True)
            sys.exit(1)

        click.echo("\nAll deals are valid!")

    except Exception as e:
        click.echo(f"✗ Validation failed: {e}", err=True)
        if logger.isEnabledFor(logging.DEBUG):
            traceback.print_exc()
        sys.exit(1)


@main.command(name="list")
@click.argument("path", type=click.Path(exists=True))
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "csv"], case_sensitive=False),
    default="table",
    help="Output format (default: table)",
)
def list_deals(path: str, output_format: str):
    """List all deals with their loan terms.

    Examples:
        pitisplit list deals.yaml
        pitisplit list deals/ --format csv
    """
    try:
        deal_file = load_deals_from_path(Path(path))
    except Exception as e:
        _fail(e)

    if deal_file is None or not deal_file.deals:
        click.echo("No deals found")
        return

    if output_format == "csv":
        print_deal_csv(deal_file.deals)
    else:
        print_deal_table(deal_file.deals)


@main.command()
@click.argument("deal_id")
@deals_path_option
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "csv", "json"], case_sensitive=False),
    default="table",
    help="Output format (default: table)",
)
@click.option(
    "--limit",
    type=int,
    default=None,
    help="Limit number of payments to display (default: all)",
)
@click.option(
    "--summary-only",
    is_flag=True,
    help="Show only summary statistics, not full table",
)
def amortize(
    deal_id: str,
    deals_path: str | None,
    output_format: str,
    limit: int | None,
    summary_only: bool,
):
    """Display the amortization schedule for a deal's loan.

    DEAL_ID: The ID of a deal with complete loan terms

    Examples:
        pitisplit amortize maple-duplex
        pitisplit amortize maple-duplex --limit 12
        pitisplit amortize maple-duplex --format csv > schedule.csv
        pitisplit amortize maple-duplex --summary-only
    """
    _, deal = _load_deal(deals_path, deal_id)
    terms = _require_loan_terms(deal)

    try:
        amort = AmortizationSchedule(terms)
        full_schedule = amort.generate_full_schedule()
    except InvalidTermsError as e:
        _fail(e)

    all_dated_splits = [
        (amort.get_payment_date(split.payment_number), split) for split in full_schedule
    ]

    total_interest = sum((s.interest for s in full_schedule), Decimal("0"))
    total_principal = sum((s.principal for s in full_schedule), Decimal("0"))
    total_paid = total_interest + total_principal

    summary_info = {
        "deal_id": deal.id,
        "principal": float(amort.principal),
        "annual_rate_percent": float(terms.annual_rate_percent),
        "term_months": amort.term_months,
        "first_payment_date": str(amort.anchor_date),
        "monthly_payment": float(amort.payment),
        "total_interest": float(total_interest),
        "total_principal": float(total_principal),
        "total_paid": float(total_paid),
    }

    if output_format == "table" or summary_only:
        click.echo(f"Deal: {deal.nickname}")
        click.echo(f"Loan Amount: ${amort.principal:,.2f}")
        click.echo(f"Interest Rate: {terms.annual_rate_percent:.3f}%")
        click.echo(f"Term: {amort.term_months} months ({amort.term_months // 12} years)")
        click.echo(f"First Payment: {amort.anchor_date}")
        if terms.first_payment_date is None:
            click.echo("  (first payment date missing, using close date)")
        click.echo(f"Monthly Payment: ${amort.payment:,.2f}")
        click.echo(f"\nTotal Interest: ${total_interest:,.2f}")
        click.echo(f"Total Principal: ${total_principal:,.2f}")
        click.echo(f"Total Paid: ${total_paid:,.2f}")
        click.echo()

    if summary_only:
        return

    display_splits = all_dated_splits[:limit] if limit else all_dated_splits

    if output_format == "table":
        print_amortization_table(display_splits)
        if limit and len(all_dated_splits) > limit:
            click.echo(f"\n... {len(all_dated_splits) - limit} more payments")
            _, final = all_dated_splits[-1]
            click.echo(f"\nFinal payment #{final.payment_number}:")
            click.echo(f"  Payment: ${final.total_payment:,.2f}")
            click.echo(f"  Principal: ${final.principal:,.2f}")
            click.echo(f"  Interest: ${final.interest:,.2f}")
            click.echo(f"  Balance: ${final.remaining_balance:,.2f}")

    elif output_format == "csv":
        print_amortization_csv(display_splits)

    elif output_format == "json":
        print_amortization_json(display_splits, summary_info)


@main.command()
@click.argument("deal_id")
@click.argument("payment_date", type=click.DateTime(formats=["%Y-%m-%d"]))
@click.argument("amount", callback=parse_decimal)
@deals_path_option
@click.option("--interest", callback=parse_decimal, help="Manual interest amount")
@click.option("--escrow", callback=parse_decimal, help="Manual escrow amount")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    help="Output format (default: table)",
)
def split(
    deal_id: str,
    payment_date,
    amount: Decimal,
    deals_path: str | None,
    interest: Decimal | None,
    escrow: Decimal | None,
    output_format: str,
):
    """Split a mortgage payment into principal, interest and escrow.

    The split is computed from the deal's loan terms unless --interest or
    --escrow is given, in which case principal is whatever remains.

    Examples:
        pitisplit split maple-duplex 2024-02-01 1500.00
        pitisplit split maple-duplex 2024-02-01 1500.00 --interest 1000 --escrow 300
        pitisplit split maple-duplex 2024-02-01 1500.00 --format json
    """
    deal_file, deal = _load_deal(deals_path, deal_id)
    tolerance = deal_file.config.reconciliation_tolerance

    try:
        if interest is not None or escrow is not None:
            preview = manual_preview(
                amount,
                interest=interest or Decimal("0"),
                escrow=escrow or Decimal("0"),
                label=deal.nickname,
            )
        else:
            terms = _require_loan_terms(deal)
            payment_split = compute_mortgage_split(
                terms, payment_date.date(), amount, tolerance=tolerance
            )
            preview = preview_from_split(payment_split, label=deal.nickname)
    except ValueError as e:
        _fail(e)

    check = balance_check(preview, tolerance=tolerance)

    if output_format == "json":
        print_split_json(preview, check)
    else:
        print_split_table(preview, check)


@main.command()
@click.argument("deal_id")
@click.argument("payment_date", type=click.DateTime(formats=["%Y-%m-%d"]))
@click.argument("amount", callback=parse_decimal)
@deals_path_option
@click.option("--cash-account", default=None, help="Account the payment was made from")
@click.option("--principal", callback=parse_decimal, help="Override principal amount")
@click.option("--interest", callback=parse_decimal, help="Override interest amount")
@click.option("--escrow", callback=parse_decimal, help="Override escrow amount")
@click.option("--pending", is_flag=True, help="Flag the transaction as pending (!)")
@click.option("--description", default=None, help="Transaction narration")
def post(
    deal_id: str,
    payment_date,
    amount: Decimal,
    deals_path: str | None,
    cash_account: str | None,
    principal: Decimal | None,
    interest: Decimal | None,
    escrow: Decimal | None,
    pending: bool,
    description: str | None,
):
    """Print the balanced ledger entry for a mortgage payment.

    Computes the split from the deal's loan terms, applies any overrides,
    and prints a Beancount transaction. Fails if the (edited) split does not
    add up to AMOUNT.

    Examples:
        pitisplit post maple-duplex 2024-02-01 1500.00
        pitisplit post maple-duplex 2024-02-01 1500.00 --escrow 300.90 --pending
        pitisplit post maple-duplex 2024-02-01 1500.00 >> ledger.beancount
    """
    deal_file, deal = _load_deal(deals_path, deal_id)
    config = deal_file.config
    date_ = payment_date.date()

    try:
        if deal.can_auto_split:
            payment_split = compute_mortgage_split(
                deal.loan_terms(), date_, amount, tolerance=config.reconciliation_tolerance
            )
            preview = preview_from_split(payment_split, label=deal.nickname)
            for warning in preview.warnings:
                click.echo(f"; ⚠ {warning.message}", err=True)
            preview = with_edits(preview, principal=principal, interest=interest, escrow=escrow)
        else:
            preview = manual_preview(
                amount,
                interest=interest or Decimal("0"),
                escrow=escrow or Decimal("0"),
                label=deal.nickname,
            )
            preview = with_edits(preview, principal=principal)

        txn = build_payment_transaction(
            preview,
            deal,
            date_,
            config=config,
            cash_account=cash_account,
            description=description,
            cleared=not pending,
        )
    except ValueError as e:
        _fail(e)

    click.echo(format_transaction(txn), nl=False)
