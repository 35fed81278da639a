"""sqlsentry - guarded command-oriented access to MySQL and PostgreSQL."""

from sqlsentry.constants import SERVER_VERSION as __version__

__all__ = ["__version__"]
