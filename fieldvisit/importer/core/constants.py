"""Column names, collection names and fixed values used across the importer.

Column names match the header of the supervision visit spreadsheet export.
"""

from __future__ import annotations

# Required header columns; a file missing any of these is rejected before row work
COLUMN_ENTITY_CODE = "Terminal ID"
COLUMN_SUBMITTED_ON = "Submitted On"
COLUMN_CYCLE = "Visit"
COLUMN_SUPERVISOR_CODE = "Emp. code"
COLUMN_APPROVED = "approved"

REQUIRED_COLUMNS = (
    COLUMN_ENTITY_CODE,
    COLUMN_SUBMITTED_ON,
    COLUMN_CYCLE,
    COLUMN_SUPERVISOR_CODE,
    COLUMN_APPROVED,
)

# Optional columns
COLUMN_CREATED_AT = "created_at"  # timestamp fallback when Submitted On is blank
COLUMN_LATITUDE = "latitude"
COLUMN_LONGITUDE = "longitude"

# Free text kept for display under reserved submission_data keys
RESERVED_DISPLAY_COLUMNS = {
    "Region": "_region",
    "Branch": "_branch",
    "Agent Name": "_agent_name",
}

# PocketBase collections behind the collaborator contracts
CUSTOMERS_COLLECTION = "customers"
USERS_COLLECTION = "users"
SUBMISSIONS_COLLECTION = "form_submissions"

# Submission status derived from the approval flag
STATUS_APPROVED = "approved"
STATUS_PENDING = "pending"

DEFAULT_CYCLE = 1
UNKNOWN_MONTH = "unknown"

# Progress milestones (percent)
PROGRESS_LOADING_IDENTITIES = 5
PROGRESS_CHECKING_DUPLICATES = 10
PROGRESS_WRITE_CEILING = 95
PROGRESS_COMPLETE = 100

MESSAGE_LOADING_IDENTITIES = "Loading agent and supervisor data..."
MESSAGE_CHECKING_DUPLICATES = "Checking for existing submissions..."
MESSAGE_COMPLETE = "Import complete!"
MESSAGE_CANCELLED = "Import cancelled"
