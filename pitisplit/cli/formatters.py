"""Output formatting functions for CLI commands."""

import csv
import json
import sys

import click

from pitisplit import constants


def print_deal_table(deals: list) -> None:
    """
    Print deals as a formatted ASCII table.

    Displays deal ID, type, loan amount, rate, and term. Deals without
    complete loan terms are marked as not splittable.

    Args:
        deals: List of Deal objects to display.
    """
    id_width = max(len(d.id) for d in deals)
    id_width = max(id_width, len("ID"))

    name_width = max(len(d.nickname) for d in deals)
    name_width = max(name_width, len("Nickname"))
    name_width = min(name_width, constants.MAX_TABLE_COLUMN_WIDTH)

    click.echo(
        f"{'ID':<{id_width}}  {'Nickname':<{name_width}}  {'Type':<10}  "
        f"{'Loan':>14}  {'Rate':>7}  {'Term':>5}  Auto-split"
    )
    click.echo("-" * (id_width + name_width + 10 + 14 + 7 + 5 + 22))

    for d in deals:
        loan = f"${d.original_loan_amount:,.2f}" if d.original_loan_amount is not None else "-"
        rate = f"{d.interest_rate:.3f}%" if d.interest_rate is not None else "-"
        term = str(d.loan_term_months) if d.loan_term_months is not None else "-"
        auto = "yes" if d.can_auto_split else "no"
        name = d.nickname[:name_width]

        click.echo(
            f"{d.id:<{id_width}}  {name:<{name_width}}  {d.type.value:<10}  "
            f"{loan:>14}  {rate:>7}  {term:>5}  {auto}"
        )

    click.echo(f"\nTotal: {len(deals)} deals")


def print_deal_csv(deals: list) -> None:
    """
    Print deals as comma-separated values (CSV) to stdout.

    Args:
        deals: List of Deal objects to export.
    """
    writer = csv.writer(sys.stdout)
    writer.writerow(["ID", "Nickname", "Type", "Loan", "Rate", "Term", "AutoSplit"])

    for d in deals:
        writer.writerow(
            [
                d.id,
                d.nickname,
                d.type.value,
                d.original_loan_amount if d.original_loan_amount is not None else "",
                d.interest_rate if d.interest_rate is not None else "",
                d.loan_term_months if d.loan_term_months is not None else "",
                "true" if d.can_auto_split else "false",
            ],
        )


def print_amortization_table(dated_splits):
    """Print amortization schedule as formatted table.

    Args:
        dated_splits: List of (date, ScheduledSplit) tuples, sorted by date.
    """
    header = (
        f"{'#':>4} {'Date':>12} {'Payment':>12} {'Principal':>12} {'Interest':>12} {'Balance':>14}"
    )
    click.echo(header)
    click.echo("-" * len(header))

    for payment_date, split in dated_splits:
        row = (
            f"{split.payment_number:>4} "
            f"{payment_date.strftime('%Y-%m-%d'):>12} "
            f"${split.total_payment:>11,.2f} "
            f"${split.principal:>11,.2f} "
            f"${split.interest:>11,.2f} "
            f"${split.remaining_balance:>13,.2f}"
        )
        click.echo(row)


def print_amortization_csv(dated_splits):
    """Print amortization schedule as CSV.

    Args:
        dated_splits: List of (date, ScheduledSplit) tuples, sorted by date.
    """
    writer = csv.writer(sys.stdout)
    writer.writerow(["#", "Date", "Payment", "Principal", "Interest", "Balance"])

    for payment_date, split in dated_splits:
        writer.writerow(
            [
                split.payment_number,
                payment_date.strftime("%Y-%m-%d"),
                f"{split.total_payment:.2f}",
                f"{split.principal:.2f}",
                f"{split.interest:.2f}",
                f"{split.remaining_balance:.2f}",
            ],
        )


def print_amortization_json(dated_splits, summary_info):
    """Print amortization schedule as JSON.

    Args:
        dated_splits: List of (date, ScheduledSplit) tuples, sorted by date.
        summary_info: Dict of summary metadata to include at top of JSON output.
    """
    payments = []
    for payment_date, split in dated_splits:
        payments.append(
            {
                "number": split.payment_number,
                "date": payment_date.strftime("%Y-%m-%d"),
                "payment": float(split.total_payment),
                "principal": float(split.principal),
                "interest": float(split.interest),
                "balance": float(split.remaining_balance),
            },
        )

    output = {
        "summary": summary_info,
        "payments": payments,
    }

    click.echo(json.dumps(output, indent=2))


def print_split_table(preview, check) -> None:
    """Print a payment split with its balance indicator and warnings.

    Args:
        preview: SplitPreview to display.
        check: BalanceCheck for the preview.
    """
    if preview.label:
        click.echo(f"Deal: {preview.label}")
    if preview.payment_number is not None:
        click.echo(f"Payment #: {preview.payment_number}")
    click.echo(f"Mode: {'automatic' if preview.auto_calculated else 'manual'}")
    click.echo(f"Total:     ${preview.total:>12,.2f}")
    click.echo(f"Principal: ${preview.principal:>12,.2f}")
    click.echo(f"Interest:  ${preview.interest:>12,.2f}")

    escrow_line = (
        f"Escrow:    ${preview.escrow:>12,.2f}  "
        f"(taxes ${preview.escrow_taxes:,.2f}, insurance ${preview.escrow_insurance:,.2f})"
    )
    if preview.escrow_inferred:
        escrow_line += " [inferred]"
    click.echo(escrow_line)

    click.echo(f"\nSplit: ${check.edited_total:,.2f} {check.label}")

    if preview.warnings:
        click.echo("\nWarnings:")
        for warning in preview.warnings:
            click.echo(f"  ⚠ {warning.message}")


def print_split_json(preview, check) -> None:
    """Print a payment split as JSON.

    Args:
        preview: SplitPreview to display.
        check: BalanceCheck for the preview.
    """
    output = {
        "deal": preview.label,
        "payment_number": preview.payment_number,
        "auto_calculated": preview.auto_calculated,
        "total": float(preview.total),
        "principal": float(preview.principal),
        "interest": float(preview.interest),
        "escrow": float(preview.escrow),
        "escrow_taxes": float(preview.escrow_taxes),
        "escrow_insurance": float(preview.escrow_insurance),
        "escrow_inferred": preview.escrow_inferred,
        "balanced": check.is_balanced,
        "diff": float(check.diff),
        "warnings": [{"kind": w.kind.value, "message": w.message} for w in preview.warnings],
    }

    click.echo(json.dumps(output, indent=2))
