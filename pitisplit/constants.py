"""
Global constants for pitisplit.

This module centralizes all magic strings, thresholds, and default values
to improve maintainability and make configuration easier.
"""

from decimal import Decimal

# ============================================================================
# File Paths and Directories
# ============================================================================

CONFIG_FILENAME = "_config.yaml"
DEAL_FILE_PATTERN = "*.yaml"
DEFAULT_DEALS_DIR = "deals"
DEFAULT_DEALS_FILE = "deals.yaml"
DEAL_FILE_VERSION = "1.0"

# Environment variables for deal location discovery
ENV_DEALS_DIR = "PITISPLIT_DIR"
ENV_DEALS_FILE = "PITISPLIT_FILE"

# ============================================================================
# Financial/Decimal Constants
# ============================================================================

CENTS_PRECISION = Decimal("0.01")  # Currency rounding precision
MONTHS_PER_YEAR = 12
ZERO = Decimal("0")
HALF = Decimal("0.5")

# Maximum |computed split - amount paid| still treated as balanced
RECONCILIATION_TOLERANCE = Decimal("0.02")

# ============================================================================
# Warning Messages
# ============================================================================

MSG_FALLBACK_DATE = "Using close/origination date as fallback."
MSG_ESCROW_INFERRED = "Escrow inferred from payment difference."
MSG_RECONCILIATION = "Computed split differs from total by {delta}"
MSG_BEFORE_TERM = (
    "Payment date {payment_date} is before the first payment date {anchor}; "
    "using payment #1."
)
MSG_AFTER_TERM = (
    "Payment date {payment_date} is beyond the {term}-month loan term; "
    "using final payment #{term}."
)

# ============================================================================
# Default Configuration Values
# ============================================================================

DEFAULT_CURRENCY = "USD"
DEFAULT_CASH_ACCOUNT = "Assets:Bank:Checking"

DEFAULT_RENTAL_INTEREST_ACCOUNT = "Expenses:Rental:MortgageInterest"
DEFAULT_RENTAL_ESCROW_ACCOUNT = "Expenses:Rental:TaxesInsurance"
DEFAULT_PERSONAL_INTEREST_ACCOUNT = "Expenses:Personal:MortgageInterest"
DEFAULT_PERSONAL_ESCROW_ACCOUNT = "Expenses:Personal:TaxesInsurance"

DEFAULT_NARRATION_TEMPLATE = "Mortgage payment - {nickname}"

CLEARED_FLAG = "*"
PENDING_FLAG = "!"

# ============================================================================
# Metadata Keys (added to generated transactions)
# ============================================================================

META_DEAL_ID = "deal_id"
META_PURPOSE = "purpose"
META_PAYMENT_NUMBER = "mortgage_payment_number"
META_ESCROW_INFERRED = "mortgage_escrow_inferred"
META_AUTO_CALCULATED = "mortgage_auto_calculated"

# ============================================================================
# Display/Formatting Constants
# ============================================================================

MAX_TABLE_COLUMN_WIDTH = 30  # Max width for table columns in CLI
