"""SubmissionRepository - Reads duplicate keys and batch-inserts form submissions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ...core.constants import SUBMISSIONS_COLLECTION
from ...core.models import DuplicateKey, MappedSubmission
from ..filters import any_of, equals
from .errors import as_collaborator_error

if TYPE_CHECKING:
    from pocketbase import PocketBase

logger = logging.getLogger(__name__)

BATCH_PATH = "/api/batch"
RECORDS_URL = f"/api/collections/{SUBMISSIONS_COLLECTION}/records"

# PocketBase's stored datetime layout
_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.000Z"


def to_record(form_id: str, submission: MappedSubmission) -> dict[str, Any]:
    """Build the form_submissions record body for one submission.

    The geolocation is written to both the record-level and the
    submission-level coordinate fields. geo_captured_at is always the
    submission time, with or without coordinates.
    """
    submitted_at = submission.submitted_at.strftime(_TIMESTAMP_FORMAT)
    geo = submission.geolocation
    return {
        "form_id": form_id,
        "agent_id": submission.entity_id,
        "submission_data": submission.submission_data,
        "cycle_number": submission.cycle_number,
        "submitted_by": submission.supervisor_id,
        "latitude": geo.latitude if geo else None,
        "longitude": geo.longitude if geo else None,
        "submission_latitude": geo.latitude if geo else None,
        "submission_longitude": geo.longitude if geo else None,
        "status": submission.status,
        "submitted_at": submitted_at,
        "geo_captured_at": submitted_at,
        "submitter_supervisor_code": submission.supervisor_code,
        "supervisor_code": submission.supervisor_code,
        "review_notes": "; ".join(submission.review_notes) if submission.review_notes else None,
    }


class SubmissionRepository:
    """Repository for the form_submissions collection"""

    def __init__(self, pb_client: PocketBase) -> None:
        """Initialize repository with PocketBase client.

        Args:
            pb_client: Authenticated PocketBase client
        """
        self.pb = pb_client

    def find_existing_keys(self, form_id: str, entity_ids: list[str]) -> list[DuplicateKey]:
        """Duplicate keys of stored submissions for one chunk of entity ids.

        Raises:
            CollaboratorError: If the query fails
        """
        if not entity_ids:
            return []

        filter_str = f"{equals('form_id', form_id)} && {any_of('agent_id', entity_ids)}"
        try:
            records = self.pb.collection(SUBMISSIONS_COLLECTION).get_full_list(
                batch=500,
                query_params={"filter": filter_str, "fields": "agent_id,cycle_number,submitted_at"},
            )
        except Exception as e:
            raise as_collaborator_error(e, "Existing submission lookup failed") from e

        keys = []
        for record in records:
            cycle = getattr(record, "cycle_number", None)
            if cycle is None:
                continue
            submitted_at = getattr(record, "submitted_at", None)
            stored_at = str(submitted_at) if submitted_at else None
            keys.append(DuplicateKey.for_stored(record.agent_id, int(cycle), stored_at))

        logger.debug(f"Found {len(keys)} stored submissions for {len(entity_ids)} entities")
        return keys

    def insert_batch(self, form_id: str, submissions: list[MappedSubmission]) -> None:
        """Insert submissions in a single PocketBase batch request.

        The batch API is transactional, so either every record is created or
        none is.

        Raises:
            CollaboratorError: If the batch is rejected
        """
        if not submissions:
            return

        requests = [{"method": "POST", "url": RECORDS_URL, "body": to_record(form_id, s)} for s in submissions]
        try:
            self.pb.send(BATCH_PATH, {"method": "POST", "body": {"requests": requests}})
        except Exception as e:
            raise as_collaborator_error(e) from e

        logger.debug(f"Inserted batch of {len(submissions)} submissions")
