"""Access to the institution -> department -> teacher/student hierarchy."""

import hashlib
import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Tuple, TypeVar

from google.cloud import firestore as gcloud_firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from interview_admin.constants import CREATED_AT_FIELD, DEPARTMENT_NAME_FIELD
from interview_admin.settings import AdminSettings
from interview_admin.storage.errors import build_store_retry, call_with_retry

logger = logging.getLogger(__name__)

T = TypeVar("T")


def department_name_key(department_name: str) -> str:
    """
    Document id of the name-index entry for an exact department name.

    Firestore ids cannot contain '/' and have reserved forms, so the raw name
    is hashed. Hashing is exact: "Nursing" and "nursing " get different keys.
    """
    return hashlib.sha256(department_name.encode("utf-8")).hexdigest()


def department_name_of(data: Optional[dict]) -> Optional[str]:
    """Return the department's name, or None if it is missing or unusable."""
    if not data:
        return None
    name = data.get(DEPARTMENT_NAME_FIELD)
    if isinstance(name, str) and name:
        return name
    return None


def creation_sort_key(snapshot) -> Tuple:
    """
    Sort key ordering department snapshots by createdAt ascending.

    Departments without a usable timestamp sort after all timestamped ones;
    ties are broken by document id so the order is deterministic.
    """
    created_at = (snapshot.to_dict() or {}).get(CREATED_AT_FIELD)
    if isinstance(created_at, datetime):
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return (0, created_at, snapshot.id)
    return (1, snapshot.id)


class InstitutionStore:
    """Reads and references for the hierarchical institution collections.

    Writes are performed by the department services inside transactions;
    this class only hands out references and runs retried reads.
    """

    def __init__(self, db: gcloud_firestore.Client, settings: Optional[AdminSettings] = None):
        """
        Args:
            db: Firestore client acquired by the composition root
            settings: Collection names and retry policy (defaults if omitted)
        """
        self.db = db
        self.settings = settings or AdminSettings()
        self.collections = self.settings.collections
        self._retry = build_store_retry(self.settings.retry)

    def run(self, operation: str, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run a store call with retry and error translation."""
        return call_with_retry(self._retry, operation, func, *args, **kwargs)

    # ------------------------------------------------------------------ refs

    def institutions_ref(self):
        return self.db.collection(self.collections.institutions)

    def institution_ref(self, institution_id: str):
        return self.institutions_ref().document(institution_id)

    def departments_ref(self, institution_id: str):
        return self.institution_ref(institution_id).collection(self.collections.departments)

    def department_ref(self, institution_id: str, department_id: str):
        return self.departments_ref(institution_id).document(department_id)

    def members_ref(self, institution_id: str, department_id: str, kind: str):
        """Teachers or students collection under a department."""
        return self.department_ref(institution_id, department_id).collection(kind)

    def name_index_ref(self, institution_id: str, department_name: str):
        return (
            self.institution_ref(institution_id)
            .collection(self.collections.department_names)
            .document(department_name_key(department_name))
        )

    def departments_named(self, institution_id: str, department_name: str):
        """Exact-match query for departments with the given name."""
        return self.departments_ref(institution_id).where(
            filter=FieldFilter(DEPARTMENT_NAME_FIELD, "==", department_name)
        )

    # ----------------------------------------------------------------- reads

    def list_institutions(self) -> List:
        return self.run("list institutions", lambda: list(self.institutions_ref().stream()))

    def get_institution(self, institution_id: str):
        """Return the institution snapshot, or None if it does not exist."""
        snapshot = self.run(
            f"read institution {institution_id}", self.institution_ref(institution_id).get
        )
        return snapshot if snapshot.exists else None

    def list_departments(self, institution_id: str) -> List:
        """
        All departments of an institution, oldest first.

        The ordering is applied client-side: a Firestore ``order_by`` would
        silently drop legacy departments that have no createdAt field.
        """
        snapshots = self.run(
            f"list departments of {institution_id}",
            lambda: list(self.departments_ref(institution_id).stream()),
        )
        return sorted(snapshots, key=creation_sort_key)

    def list_members(self, institution_id: str, department_id: str, kind: str) -> List:
        return self.run(
            f"list {kind} of department {department_id}",
            lambda: list(self.members_ref(institution_id, department_id, kind).stream()),
        )
