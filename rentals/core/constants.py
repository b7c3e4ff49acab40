# rentals/core/constants.py
"""
Business constants for pricing, scheduling and refunds.
"""

BRAND_NAME = "ForzaCars Rentals"

# Scheduling grid
SLOT_MINUTES = 30
MIN_BOOKING_MINUTES = 60

# Pricing tiers
DAY_CAP_HOURS = 5  # a day never costs more than 5 hours
HOURLY_THRESHOLD_HOURS = 5
DAY_MINUTES = 24 * 60
WEEK_DAYS = 7
WEEK_BILLABLE_DAYS = 5  # a week never costs more than 5 days

# Refund tiers, evaluated top-down on hours until start
FULL_REFUND_MIN_HOURS = 6  # strictly more than this
PARTIAL_REFUND_MIN_HOURS = 1  # at least this
FULL_REFUND_PCT = 100
PARTIAL_REFUND_PCT = 50
NO_REFUND_PCT = 0

# Ledger reasons
BOOKING_CHARGE_REASON = "Booking charge"
CANCELLATION_REFUND_REASON = "Cancellation refund ({pct}%)"

# Input limits
MAX_COLOR_FILTER_LENGTH = 50
MAX_GRANT_REASON_LENGTH = 500
MAX_BLACKOUT_REASON_LENGTH = 500
DEFAULT_LEDGER_PAGE_SIZE = 50
MAX_LEDGER_PAGE_SIZE = 200
