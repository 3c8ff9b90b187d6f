"""Pydantic schema models for deal and loan configuration."""

from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from . import constants
from .amortization import LoanTerms
from .types import DealType, Purpose


class MortgageAccounts(BaseModel):
    """Ledger accounts that receive the interest and escrow legs of a payment."""

    rental_interest: str = Field(
        constants.DEFAULT_RENTAL_INTEREST_ACCOUNT,
        description="Mortgage interest account for business deals",
    )
    rental_escrow: str = Field(
        constants.DEFAULT_RENTAL_ESCROW_ACCOUNT,
        description="Taxes & insurance account for business deals",
    )
    personal_interest: str = Field(
        constants.DEFAULT_PERSONAL_INTEREST_ACCOUNT,
        description="Mortgage interest account for personal deals",
    )
    personal_escrow: str = Field(
        constants.DEFAULT_PERSONAL_ESCROW_ACCOUNT,
        description="Taxes & insurance account for personal deals",
    )

    def interest_account(self, purpose: Purpose) -> str:
        if purpose == Purpose.PERSONAL:
            return self.personal_interest
        return self.rental_interest

    def escrow_account(self, purpose: Purpose) -> str:
        if purpose == Purpose.PERSONAL:
            return self.personal_escrow
        return self.rental_escrow


class Deal(BaseModel):
    """A real-estate deal and the loan financing it.

    Loan fields are optional because not every deal is financed; a deal can
    only be auto-split once the loan amount, rate, term, and a date are known.

    Example::

        deals:
          - id: maple-duplex
            nickname: Maple Duplex
            type: rental
            loan_account: Liabilities:Mortgage:Maple
            original_loan_amount: 200000
            interest_rate: 6.0
            loan_term_months: 360
            close_date: 2024-01-02
            first_payment_date: 2024-02-01
            rental_monthly_taxes: 250.00
            rental_monthly_insurance: 100.00
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str = Field(..., description="Unique deal identifier")
    nickname: str = Field("", description="Display name (defaults to id)")
    type: DealType = Field(DealType.RENTAL, description="Deal type")
    loan_account: Optional[str] = Field(None, description="Liability account for the loan")

    original_loan_amount: Optional[Decimal] = Field(None, description="Amount financed")
    interest_rate: Optional[Decimal] = Field(
        None, description="Annual interest rate in percent (e.g., 6.5)"
    )
    loan_term_months: Optional[int] = Field(None, description="Loan term in months")
    close_date: Optional[date] = Field(None, description="Closing / origination date")
    first_payment_date: Optional[date] = Field(None, description="Due date of payment #1")

    rental_monthly_taxes: Decimal = Field(Decimal("0"), description="Monthly escrowed taxes")
    rental_monthly_insurance: Decimal = Field(
        Decimal("0"), description="Monthly escrowed insurance"
    )

    source_file: Optional[Path] = Field(
        None,
        exclude=True,
        description="Source file path (populated during loading, not from YAML)",
    )

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        """Ensure id is valid."""
        if not v or not v.strip():
            raise ValueError("id cannot be empty")
        return v

    @field_validator("original_loan_amount")
    @classmethod
    def validate_loan_amount_positive(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        """Ensure original_loan_amount is positive if provided."""
        if v is not None and v <= 0:
            raise ValueError("original_loan_amount must be positive")
        return v

    @field_validator("interest_rate")
    @classmethod
    def validate_rate_nonnegative(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        """Ensure interest_rate is non-negative if provided."""
        if v is not None and v < 0:
            raise ValueError("interest_rate must be non-negative")
        return v

    @field_validator("loan_term_months")
    @classmethod
    def validate_term_positive(cls, v: Optional[int]) -> Optional[int]:
        """Ensure loan_term_months is positive if provided."""
        if v is not None and v <= 0:
            raise ValueError("loan_term_months must be positive")
        return v

    @field_validator("rental_monthly_taxes", "rental_monthly_insurance")
    @classmethod
    def validate_escrow_nonnegative(cls, v: Decimal) -> Decimal:
        """Ensure escrow amounts are non-negative."""
        if v < 0:
            raise ValueError("monthly escrow amounts must be non-negative")
        return v

    @model_validator(mode="after")
    def default_nickname(self) -> "Deal":
        if not self.nickname:
            self.nickname = self.id
        return self

    @property
    def purpose(self) -> Purpose:
        if self.type == DealType.PERSONAL:
            return Purpose.PERSONAL
        return Purpose.BUSINESS

    @property
    def can_auto_split(self) -> bool:
        """Whether the loan fields are complete enough for an automatic split."""
        return not self.missing_loan_fields()

    def missing_loan_fields(self) -> list[str]:
        missing = []
        if self.original_loan_amount is None:
            missing.append("original_loan_amount")
        if self.interest_rate is None:
            missing.append("interest_rate")
        if self.loan_term_months is None:
            missing.append("loan_term_months")
        if self.first_payment_date is None and self.close_date is None:
            missing.append("first_payment_date or close_date")
        return missing

    def loan_terms(self) -> LoanTerms:
        """Build engine loan terms from this deal.

        Raises:
            ValueError: If required loan fields are missing
        """
        missing = self.missing_loan_fields()
        if missing:
            raise ValueError(f"Deal '{self.id}' is missing loan fields: {', '.join(missing)}")

        return LoanTerms(
            original_principal=self.original_loan_amount,
            annual_rate_percent=self.interest_rate,
            term_months=self.loan_term_months,
            origination_date=self.close_date or self.first_payment_date,
            first_payment_date=self.first_payment_date,
            monthly_escrow_taxes=self.rental_monthly_taxes,
            monthly_escrow_insurance=self.rental_monthly_insurance,
        )


class GlobalConfig(BaseModel):
    """Global configuration for pitisplit."""

    default_currency: str = Field(
        constants.DEFAULT_CURRENCY, description="Currency for generated postings"
    )
    default_cash_account: str = Field(
        constants.DEFAULT_CASH_ACCOUNT, description="Account mortgage payments are paid from"
    )
    reconciliation_tolerance: Decimal = Field(
        constants.RECONCILIATION_TOLERANCE,
        description="Largest split/total difference still treated as balanced",
    )
    accounts: MortgageAccounts = Field(
        default_factory=MortgageAccounts, description="Interest and escrow accounts"
    )

    @field_validator("reconciliation_tolerance")
    @classmethod
    def validate_tolerance(cls, v: Decimal) -> Decimal:
        """Ensure reconciliation_tolerance is non-negative."""
        if v < 0:
            raise ValueError("reconciliation_tolerance must be non-negative")
        return v


class DealFile(BaseModel):
    """Root deal file structure."""

    version: str = Field(constants.DEAL_FILE_VERSION, description="Deal file format version")
    deals: list[Deal] = Field(default_factory=list, description="List of deals")
    config: GlobalConfig = Field(default_factory=GlobalConfig, description="Global configuration")

    def get_deal(self, deal_id: str) -> Optional[Deal]:
        return next((d for d in self.deals if d.id == deal_id), None)

    def duplicate_ids(self) -> list[str]:
        """Deal ids that appear more than once, sorted."""
        seen: set[str] = set()
        duplicates: set[str] = set()
        for deal in self.deals:
            if deal.id in seen:
                duplicates.add(deal.id)
            seen.add(deal.id)
        return sorted(duplicates)
