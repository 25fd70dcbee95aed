"""
Modelling constants and default inputs for the mortgage payoff strategy
simulator.

All monetary values in USD. Rates entered by the user are annual
percentages (6.5 means 6.5%), converted to monthly decimals in the engine.
"""

# ── Modelling assumptions ────────────────────────────────────────────
LOAN_TO_VALUE = 0.80           # home value is back-derived as balance / LTV
MONTHS_PER_YEAR = 12
MONTH_CAP_MULTIPLIER = 2       # simulators stop at 2x the nominal term
PAID_OFF_TOLERANCE = 0.01      # balances at or below one cent count as paid

# ── Default inputs ───────────────────────────────────────────────────
DEFAULT_INPUTS = {
    "mortgage_balance": 240_000,
    "mortgage_rate": 6.5,
    "mortgage_years": 30,
    "monthly_income": 10_000,
    "monthly_expenses": 8_000,
    "loc_limit": 10_000,
    "loc_rate": 10.0,
    "tax_rate": 22.0,
    "investment_return": 8.0,
    "maintenance_rate": 1.5,
    "home_appreciation_rate": 3.5,
    "rental_discount_percent": 10.0,
    "enable_rental_comparison": False,
}

NUMERIC_FIELDS = [k for k in DEFAULT_INPUTS if k != "enable_rental_comparison"]

FIELD_LABELS = {
    "mortgage_balance": "Mortgage balance ($)",
    "mortgage_rate": "Interest rate (%)",
    "mortgage_years": "Term (years)",
    "monthly_income": "Monthly income ($)",
    "monthly_expenses": "Monthly expenses ($)",
    "loc_limit": "LOC limit ($)",
    "loc_rate": "LOC rate (%)",
    "tax_rate": "Tax rate (%)",
    "investment_return": "Investment return (%)",
    "maintenance_rate": "Maintenance rate (% of home value/yr)",
    "home_appreciation_rate": "Home appreciation rate (%/yr)",
    "rental_discount_percent": "Rental discount (%)",
    "enable_rental_comparison": "Enable rental comparison",
}

# ── Strategies (ranking order = tie-break order) ─────────────────────
TRADITIONAL = "traditional"
EXTRA_PAYMENT = "extra_payment"
ACCELERATED = "accelerated"
INVESTMENT = "investment"

STRATEGY_KEYS = [TRADITIONAL, EXTRA_PAYMENT, ACCELERATED, INVESTMENT]

STRATEGY_NAMES = {
    TRADITIONAL: "Traditional",
    EXTRA_PAYMENT: "Extra Principal",
    ACCELERATED: "LOC Strategy",
    INVESTMENT: "Invest & Pay",
}

RENTAL_NAME = "Rent & Invest"

# ── Rate sensitivity sweep ───────────────────────────────────────────
SWEEP_MORTGAGE_RATES = [3.0, 4.0, 5.0, 6.0, 7.0, 8.0]
SWEEP_LOC_RATES = [4.0, 6.0, 8.0, 10.0, 12.0, 15.0]

# ── Presentation ─────────────────────────────────────────────────────
DEBUG_TRACE_ROWS = 12          # months shown per page of the LOC trace
PDF_FILENAME = "mortgage_strategy_report.pdf"
WEB_HOST = "127.0.0.1"
WEB_PORT = 5000
