"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
DEFAULT_SEARCH_LIMIT = 10

DEFAULT_SORT_FIELD = "createdAt"
TIE_BREAK_FIELD = "id"

UNKNOWN_GROUP_LABEL = "Unknown"

DEFAULT_TOKEN_MAX_AGE_SECONDS = 7 * 24 * 3600
CURSOR_PREFIX = "employee"
