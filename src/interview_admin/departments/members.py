"""Enroll teachers and students into departments resolved by name."""

import logging
from typing import Any, Dict, Optional, Tuple

from google.cloud import firestore as gcloud_firestore

from interview_admin.constants import (
    CREATED_AT_FIELD,
    DEPARTMENT_ID_FIELD,
    INSTITUTION_ID_FIELD,
    MEMBER_ROLES,
)
from interview_admin.departments.resolver import DepartmentResolver
from interview_admin.storage.institution_store import InstitutionStore

logger = logging.getLogger(__name__)


class MembershipService:
    """Creates teacher/student records under the department their name resolves to."""

    def __init__(self, store: InstitutionStore, resolver: Optional[DepartmentResolver] = None):
        self.store = store
        self.resolver = resolver or DepartmentResolver(store)

    def _collection_for(self, role: str) -> str:
        if role not in MEMBER_ROLES:
            raise ValueError(f"Unsupported role: {role} (expected one of {sorted(MEMBER_ROLES)})")
        collections = self.store.collections
        return collections.teachers if role == "teacher" else collections.students

    def add_member(
        self,
        institution_id: str,
        department_name: str,
        role: str,
        profile: Dict[str, Any],
        member_id: Optional[str] = None,
        created_by: str = "system",
    ) -> Tuple[str, str]:
        """
        Add a teacher or student to the named department.

        Args:
            institution_id: Owning institution
            department_name: Exact department name (created if new)
            role: "teacher" or "student"
            profile: Member fields (name, email, ...)
            member_id: Document id to use (e.g. the auth uid); generated if None
            created_by: Recorded on the department if it has to be created

        Returns:
            Tuple of (department_id, member_id)
        """
        kind = self._collection_for(role)
        department_id = self.resolver.resolve(institution_id, department_name, created_by)

        members = self.store.members_ref(institution_id, department_id, kind)
        member_ref = members.document(member_id) if member_id else members.document()

        record = {
            **profile,
            "role": role,
            DEPARTMENT_ID_FIELD: department_id,
            INSTITUTION_ID_FIELD: institution_id,
            CREATED_AT_FIELD: gcloud_firestore.SERVER_TIMESTAMP,
            "updatedAt": gcloud_firestore.SERVER_TIMESTAMP,
        }
        if role == "student":
            record.setdefault("enrollmentStatus", "active")

        self.store.run(f"create {role} {member_ref.id}", member_ref.set, record)
        logger.info(
            "Added %s %s to department %s (%s) in institution %s",
            role,
            member_ref.id,
            department_id,
            department_name,
            institution_id,
        )
        return department_id, member_ref.id
