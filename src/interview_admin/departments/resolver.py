"""Find-or-create departments by exact name.

Independent signups (teachers and students typing the same department name)
must converge on one department document. Firestore has no unique
constraint, so every resolution runs in a transaction that reads and writes
a name-index document keyed by the hash of the exact name. Two resolvers
racing on a new name both read the missing index entry; Firestore rejects
the second commit and re-runs it, and the re-run finds the first one's
department.
"""

import logging
from typing import Optional

from google.cloud import firestore as gcloud_firestore

from interview_admin.constants import CREATED_AT_FIELD, DEPARTMENT_ID_FIELD, DEPARTMENT_NAME_FIELD
from interview_admin.logging_config import get_structured_logger
from interview_admin.storage.institution_store import (
    InstitutionStore,
    creation_sort_key,
    department_name_of,
)

logger = logging.getLogger(__name__)


def _validate_department_name(department_name) -> None:
    if not isinstance(department_name, str) or not department_name:
        raise ValueError("department_name must be a non-empty string")


class DepartmentResolver:
    """Resolves (institution, exact department name) to one department id."""

    def __init__(self, store: InstitutionStore):
        self.store = store
        self.slogger = get_structured_logger(__name__)

    def resolve(
        self, institution_id: str, department_name: str, created_by: str = "system"
    ) -> str:
        """
        Return the id of the department with this exact name, creating it if absent.

        Matching is case- and whitespace-sensitive. If legacy duplicates already
        exist, the earliest-created one is returned, which is the department
        the merger keeps.

        Args:
            institution_id: Owning institution
            department_name: Exact department name
            created_by: Recorded on a newly created department

        Returns:
            Department document id

        Raises:
            ValueError: If department_name is empty or not a string
            StorageError: If the transaction cannot be committed
        """
        _validate_department_name(department_name)

        outcome = {}

        @gcloud_firestore.transactional
        def resolve_in_transaction(transaction) -> str:
            outcome.clear()
            index_ref = self.store.name_index_ref(institution_id, department_name)
            index_snapshot = index_ref.get(transaction=transaction)

            if index_snapshot.exists:
                indexed_id = (index_snapshot.to_dict() or {}).get(DEPARTMENT_ID_FIELD)
                if indexed_id:
                    department = self.store.department_ref(institution_id, indexed_id).get(
                        transaction=transaction
                    )
                    if department_name_of(department.to_dict()) == department_name:
                        outcome["action"] = "found"
                        return indexed_id
                logger.warning(
                    "Name index for %r points at missing department %s, rebuilding",
                    department_name,
                    indexed_id,
                )

            matches = self.store.departments_named(institution_id, department_name).get(
                transaction=transaction
            )
            if matches:
                primary = sorted(matches, key=creation_sort_key)[0]
                outcome["action"] = "indexed"
                outcome["matches"] = len(matches)
                department_id = primary.id
            else:
                department_ref = self.store.departments_ref(institution_id).document()
                transaction.create(
                    department_ref,
                    {
                        DEPARTMENT_NAME_FIELD: department_name,
                        CREATED_AT_FIELD: gcloud_firestore.SERVER_TIMESTAMP,
                        "createdBy": created_by,
                    },
                )
                outcome["action"] = "created"
                department_id = department_ref.id

            transaction.set(
                index_ref,
                {
                    DEPARTMENT_NAME_FIELD: department_name,
                    DEPARTMENT_ID_FIELD: department_id,
                    "updatedAt": gcloud_firestore.SERVER_TIMESTAMP,
                },
            )
            return department_id

        department_id = self.store.run(
            f"resolve department {department_name!r}",
            lambda: resolve_in_transaction(self.store.db.transaction()),
        )

        details = {"department_id": department_id}
        if outcome.get("matches", 0) > 1:
            details["duplicates"] = outcome["matches"]
        self.slogger.department_activity(
            institution_id, department_name, outcome.get("action", "found"), details
        )
        return department_id

    def lookup(self, institution_id: str, department_name: str) -> Optional[str]:
        """Return the id of an existing department with this exact name, or None."""
        _validate_department_name(department_name)
        matches = self.store.run(
            f"look up department {department_name!r}",
            lambda: list(self.store.departments_named(institution_id, department_name).stream()),
        )
        if not matches:
            return None
        return sorted(matches, key=creation_sort_key)[0].id
