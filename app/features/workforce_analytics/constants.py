"""
Source table names, status vocabularies and scoring policy constants.

Policy constants live in code rather than settings: changing one changes
every composite score, so a change ships as a new versioned constant.
"""

# Source tables
APPOINTMENTS_TABLE = "phorest_appointments"
TRANSACTION_ITEMS_TABLE = "phorest_transaction_items"
DAILY_SALES_TABLE = "phorest_daily_sales_summary"
PERFORMANCE_METRICS_TABLE = "phorest_performance_metrics"
STAFF_MAPPING_TABLE = "phorest_staff_mapping"
EMPLOYEE_PROFILES_TABLE = "employee_profiles"
LOCATIONS_TABLE = "locations"
FEEDBACK_RESPONSES_TABLE = "client_feedback_responses"
SITE_SETTINGS_TABLE = "site_settings"

PERFORMANCE_THRESHOLD_SETTING = "performance_threshold"

# Appointment statuses excluded from revenue and rate denominators
CANCELLED_STATUSES = frozenset({"cancelled", "canceled"})
NO_SHOW_STATUSES = frozenset({"no_show", "noshow", "no-show"})
EXCLUDED_STATUSES = CANCELLED_STATUSES | NO_SHOW_STATUSES

PRODUCT_ITEM_TYPES = frozenset({"product", "retail"})
SERVICE_ITEM_TYPES = frozenset({"service"})

UNKNOWN_STAFF_NAME = "Unknown"

# Scoring policy
MIN_SCORING_APPOINTMENTS = 5
# A 25% average tip is treated as the ceiling of the tip sub-score
TIP_RATE_CEILING = 25.0
# Retention used when no weekly metrics exist for a staff member.
# Neutral midpoint; pending product confirmation before any change.
NEUTRAL_RETENTION_RATE = 50.0

TIER_NEEDS_ATTENTION = "needs_attention"
TIER_WATCH = "watch"
TIER_STRONG = "strong"
WATCH_TIER_FLOOR = 50.0
STRONG_TIER_FLOOR = 70.0

# Threshold policy
MIN_DAYS_FOR_THRESHOLD_ALERT = 7
EVALUATION_PERIOD_CHOICES = (30, 60, 90)

# Appointments without a usable duration are counted as one hour
DEFAULT_APPOINTMENT_HOURS = 1.0
# Appointments with neither a category nor a service name
UNCATEGORIZED_SERVICE = "Other"
# Locations without a configured padding between appointments
DEFAULT_APPOINTMENT_PADDING_MINUTES = 10
