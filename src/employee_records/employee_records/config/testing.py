SECRET_KEY = "test-secret-key"

DB_CONFIG = {
    "host": "localhost",
    "port": 3306,
    "user": "root",
    "password": "",
    "database": "employee_records_test",
}

STORE_BACKEND = "memory"

DEBUG = False
TESTING = True

LOG_LEVEL = "WARNING"
LOG_JSON = False

TOKEN_MAX_AGE_SECONDS = 3600

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
DEFAULT_SEARCH_LIMIT = 10

AUTO_INIT_DB = False
AUTO_SEED_DB = False
