"""Pytest configuration and shared fixtures for pitisplit tests."""

from datetime import date
from decimal import Decimal

import pytest
import yaml

from pitisplit.amortization import LoanTerms
from pitisplit.schema import Deal
from pitisplit.types import DealType

# ============================================================================
# Loan and Deal Builders
# ============================================================================


def make_loan_terms(
    original_principal: Decimal = Decimal("200000"),
    annual_rate_percent: Decimal = Decimal("6"),
    term_months: int = 360,
    origination_date: date = date(2024, 1, 2),
    first_payment_date: date | None = date(2024, 2, 1),
    monthly_escrow_taxes: Decimal = Decimal("0"),
    monthly_escrow_insurance: Decimal = Decimal("0"),
) -> LoanTerms:
    """Create LoanTerms with sensible defaults (200k at 6% for 30 years)."""
    return LoanTerms(
        original_principal=original_principal,
        annual_rate_percent=annual_rate_percent,
        term_months=term_months,
        origination_date=origination_date,
        first_payment_date=first_payment_date,
        monthly_escrow_taxes=monthly_escrow_taxes,
        monthly_escrow_insurance=monthly_escrow_insurance,
    )


def make_deal(
    id: str = "maple-duplex",
    nickname: str = "Maple Duplex",
    type: DealType = DealType.RENTAL,
    loan_account: str | None = "Liabilities:Mortgage:Maple",
    **kwargs,
) -> Deal:
    """Create a Deal with a complete 200k / 6% / 360-month loan by default."""
    fields = {
        "original_loan_amount": Decimal("200000"),
        "interest_rate": Decimal("6"),
        "loan_term_months": 360,
        "close_date": date(2024, 1, 2),
        "first_payment_date": date(2024, 2, 1),
    }
    fields.update(kwargs)
    return Deal(id=id, nickname=nickname, type=type, loan_account=loan_account, **fields)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def loan_terms():
    """Standard 200k / 6% / 360-month loan with no escrow configured."""
    return make_loan_terms()


@pytest.fixture
def deal():
    """Rental deal financed by the standard loan."""
    return make_deal()


@pytest.fixture
def sample_deal_dict():
    """Deal as it appears in YAML."""
    return {
        "id": "maple-duplex",
        "nickname": "Maple Duplex",
        "type": "rental",
        "loan_account": "Liabilities:Mortgage:Maple",
        "original_loan_amount": 200000,
        "interest_rate": 6.0,
        "loan_term_months": 360,
        "close_date": "2024-01-02",
        "first_payment_date": "2024-02-01",
    }


@pytest.fixture
def deals_yaml_file(tmp_path, sample_deal_dict):
    """Create a temporary deals.yaml with one financed and one cash deal."""
    data = {
        "version": "1.0",
        "config": {"default_cash_account": "Assets:Bank:Operating"},
        "deals": [
            sample_deal_dict,
            {
                "id": "oak-flip",
                "nickname": "Oak Flip",
                "type": "flip",
                "close_date": "2024-03-15",
            },
        ],
    }
    path = tmp_path / "deals.yaml"
    path.write_text(yaml.dump(data))
    return path


@pytest.fixture
def temp_deal_dir(tmp_path):
    """Create an empty deals/ directory."""
    path = tmp_path / "deals"
    path.mkdir()
    return path
