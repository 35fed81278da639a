"""Constants and static configuration for sqlsentry."""

# Application constants
SERVER_NAME = "sqlsentry"
SERVER_VERSION = "1.0.0"
EXIT_SUCCESS = 0
EXIT_FAILURE = 1

# Configuration file lookup
CONFIG_ENV_VAR = "SQLSENTRY_CONFIG"
DEFAULT_CONFIG_FILE = ".sqlsentry.md"

# Safety policy defaults (used when the config file has no safety section)
DEFAULT_ROW_LIMIT = 100
DEFAULT_CONFIRMATION_KEYWORDS = ("DELETE", "UPDATE", "DROP", "TRUNCATE", "ALTER")
DEFAULT_BLACKLISTED_PHRASES = ("DROP DATABASE",)

# Database constants
DB_CONNECT_TIMEOUT = 10.0  # Seconds allowed for connection establishment only
DB_POOL_MIN_SIZE = 1
DB_POOL_SIZE = 5  # Maximum pooled connections per PostgreSQL profile
DB_DEFAULT_SCHEMA = "public"
DB_SUPPORTED_ENGINES = ["mysql", "postgresql"]

# Result text markers
ERROR_MARKER = "ERROR:"
WARNING_MARKER = "WARNING:"
NO_RESULTS = "No results"
QUERY_PREVIEW_LENGTH = 100
