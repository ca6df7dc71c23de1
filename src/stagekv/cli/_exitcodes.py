"""Exit codes for the stagekv CLI."""

SUCCESS = 0
GENERAL_ERROR = 1
USAGE_ERROR = 2
SCHEMA_ERROR = 3
VALIDATION_ERROR = 4
NOT_FOUND = 5
CONFLICT = 6
DATABASE_ERROR = 7
