"""
trok/utils/constants.py

Purpose: Centralized static values

- Durations used by staging records, uploads and jobs
- Platform constants (country, currency, Plaid products)
- User-facing response messages

(Prevents hardcoding across the codebase)
"""

# ============================================================
# DURATIONS (seconds)
# ============================================================

ONE_MINUTE = 60
ONE_HOUR = 60 * 60
TWENTY_FOUR_HOURS = 24 * ONE_HOUR
TWO_DAYS = 2 * TWENTY_FOUR_HOURS

# Minimum gap between invoice date and due date
MIN_INVOICE_TERM_DAYS = 3

# ============================================================
# PLATFORM
# ============================================================

COUNTRY_CODE = "GB"
CURRENCY = "GBP"
LANGUAGE = "en"

STRIPE_ACCOUNT_TYPE = "custom"
STRIPE_REQUESTED_CAPABILITIES = ("card_payments", "transfers")

PLAID_LINK_PRODUCTS = ["auth", "transactions"]
PLAID_PAYMENT_PRODUCTS = ["payment_initiation"]

# UK Faster Payments reference limit
PAYMENT_REFERENCE_MAX_LENGTH = 18

INVOICE_ID_PREFIX = "inv_"
PAYMENT_ID_PREFIX = "pay_"
STATEMENT_ID_PREFIX = "stmt_"
USER_ID_PREFIX = "user_"

# ============================================================
# MESSAGES
# ============================================================

WELCOME_MESSAGE = "Welcome to trok!"
SIGNUP_INITIATED_MESSAGE = "Signup for {email} has been initiated"
ONBOARDING_STEP_MESSAGE = "{email} has completed onboarding step {step}"
LOGIN_FAILED_MESSAGE = "User not found!"
PING_MESSAGE = "Pinged at {timestamp}"
