"""Process exit codes shared by CLI commands."""

SUCCESS = 0
GENERAL_ERROR = 1
USAGE_ERROR = 2
DATABASE_ERROR = 3
NOT_FOUND = 4
LOCKED = 5
EXECUTION_FAILURE = 6
