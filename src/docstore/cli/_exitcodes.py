"""Process exit codes used by the docstore CLI."""

SUCCESS = 0
GENERAL_ERROR = 1
USAGE_ERROR = 2
DATABASE_ERROR = 3
NOT_FOUND = 4
VALIDATION_FAILED = 5
INTEGRITY_CONFLICT = 6
IMPORT_FAILED = 7
