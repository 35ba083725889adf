"""
Monitoring and authentication constants.
"""

# Verification codes: 6 numeric digits
CODE_DIGITS = 6

# Query pagination
DEFAULT_PAGE_LIMIT = 50
MAX_PAGE_LIMIT = 100  # Hard cap regardless of requested limit
SORTABLE_LOG_FIELDS = ("timestamp", "level", "source", "category")

# Health score weights
FAILED_TENANT_WEIGHT = 30  # Applied to the failed/total ratio
CRITICAL_LOG_PENALTY = 5
CRITICAL_LOG_PENALTY_CAP = 25
ERROR_LOG_PENALTY = 1
ERROR_LOG_PENALTY_CAP = 20
UNRESOLVED_CRITICAL_PENALTY = 10
UNRESOLVED_ERROR_PENALTY = 3

# Health status thresholds (score >= threshold)
HEALTH_EXCELLENT = 95
HEALTH_GOOD = 85
HEALTH_FAIR = 70

# Live health check: unresolved critical events in the last hour
ERROR_RATE_DEGRADED_BELOW = 5

# Dashboard windows
DASHBOARD_TREND_DAYS = 7
ACTIVE_TENANT_WINDOW_DAYS = 30
ANALYTICS_RANGES = {"7d": 7, "30d": 30, "90d": 90}
ANALYTICS_DEFAULT_DAYS = 365

# Security events recorded in the log store
SYSTEM_SOURCE = "system"
SECURITY_CATEGORY = "security"
