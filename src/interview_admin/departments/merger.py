"""
Merge duplicate departments that share an exact name within an institution.

The earliest-created department of each name is kept. Every teacher and
student of the other departments is moved under it, then the emptied
duplicates are deleted. Each child move and each department deletion is a
single transaction, so an interrupted run leaves no child in two places and
re-running simply finishes the job.

Usage:
    interview-admin merge-departments <institution_id> --dry-run
    interview-admin merge-departments --all
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import List

from google.cloud import firestore as gcloud_firestore

from interview_admin.constants import DEPARTMENT_ID_FIELD, DEPARTMENT_NAME_FIELD
from interview_admin.exceptions import DepartmentMergeError
from interview_admin.logging_config import get_structured_logger
from interview_admin.storage.institution_store import InstitutionStore, department_name_of

logger = logging.getLogger(__name__)

# Outcomes of a single child move
MOVED = "moved"
ALREADY_MOVED = "already_moved"
COMPLETED_PARTIAL = "completed_partial"


@dataclass
class DuplicateGroup:
    """Departments sharing one name; the first-created is the primary."""

    name: str
    primary_id: str
    duplicate_ids: List[str]


@dataclass
class MergeReport:
    """What a merge did (or, in dry-run mode, would do) to one institution."""

    institution_id: str
    dry_run: bool = False
    groups: List[DuplicateGroup] = field(default_factory=list)
    teachers_moved: int = 0
    students_moved: int = 0
    departments_deleted: int = 0

    @property
    def children_moved(self) -> int:
        return self.teachers_moved + self.students_moved

    def count_move(self, role: str) -> None:
        if role == "teacher":
            self.teachers_moved += 1
        else:
            self.students_moved += 1


class DepartmentMerger:
    """Consolidates same-named departments into their primary."""

    def __init__(self, store: InstitutionStore, dry_run: bool = False):
        self.store = store
        self.dry_run = dry_run
        self.slogger = get_structured_logger(__name__)

    def find_duplicate_groups(self, institution_id: str) -> List[DuplicateGroup]:
        """
        Group the institution's departments by exact name.

        Returns:
            One DuplicateGroup per name held by more than one department,
            in order of each primary's creation time.
        """
        by_name: "OrderedDict[str, List[str]]" = OrderedDict()
        for snapshot in self.store.list_departments(institution_id):
            name = department_name_of(snapshot.to_dict())
            if name is None:
                logger.warning(
                    "Department %s in institution %s has no name, skipping",
                    snapshot.id,
                    institution_id,
                )
                continue
            by_name.setdefault(name, []).append(snapshot.id)

        return [
            DuplicateGroup(name=name, primary_id=ids[0], duplicate_ids=ids[1:])
            for name, ids in by_name.items()
            if len(ids) > 1
        ]

    def merge_institution(self, institution_id: str) -> MergeReport:
        """
        Merge every duplicate group of one institution.

        Raises:
            DepartmentMergeError: A child collides with a different record at the
                primary, or a duplicate gained members while being drained.
            StorageError: The store failed after retries.
        """
        report = MergeReport(institution_id=institution_id, dry_run=self.dry_run)
        report.groups = self.find_duplicate_groups(institution_id)

        if not report.groups:
            logger.info("No duplicate departments found in institution %s", institution_id)
            return report

        self.slogger.merge_activity(
            institution_id,
            "started",
            {"groups": len(report.groups), "dry_run": self.dry_run},
        )

        try:
            for group in report.groups:
                logger.info(
                    "Merging %d duplicate(s) of %r into %s",
                    len(group.duplicate_ids),
                    group.name,
                    group.primary_id,
                )
                for duplicate_id in group.duplicate_ids:
                    self._merge_duplicate(institution_id, group, duplicate_id, report)
        except DepartmentMergeError as e:
            self.slogger.merge_activity(
                institution_id,
                "failed",
                {"department_id": e.department_id, "child_id": e.child_id, "error": str(e)},
            )
            raise

        self.slogger.merge_activity(
            institution_id,
            "completed",
            {
                "dry_run": self.dry_run,
                "teachers_moved": report.teachers_moved,
                "students_moved": report.students_moved,
                "departments_deleted": report.departments_deleted,
            },
        )
        return report

    def merge_all(self) -> List[MergeReport]:
        """Merge duplicates in every institution."""
        reports = []
        for institution in self.store.list_institutions():
            reports.append(self.merge_institution(institution.id))
        return reports

    def _merge_duplicate(
        self, institution_id: str, group: DuplicateGroup, duplicate_id: str, report: MergeReport
    ) -> None:
        collections = self.store.collections
        for role, kind in (("teacher", collections.teachers), ("student", collections.students)):
            children = self.store.list_members(institution_id, duplicate_id, kind)
            for child in children:
                if self.dry_run:
                    report.count_move(role)
                    continue
                outcome = self._move_child(
                    institution_id, kind, child.id, duplicate_id, group.primary_id
                )
                if outcome != ALREADY_MOVED:
                    report.count_move(role)
                    logger.info(
                        "Moved %s %s from %s to %s (%s)",
                        kind,
                        child.id,
                        duplicate_id,
                        group.primary_id,
                        outcome,
                    )

        if self.dry_run:
            report.departments_deleted += 1
            return

        if self._retire_department(institution_id, group, duplicate_id):
            report.departments_deleted += 1
            logger.info("Deleted duplicate department %s (%r)", duplicate_id, group.name)

    def _move_child(
        self,
        institution_id: str,
        kind: str,
        child_id: str,
        source_department_id: str,
        primary_department_id: str,
    ) -> str:
        """Atomically copy a child under the primary and delete the original."""
        source_ref = self.store.members_ref(institution_id, source_department_id, kind).document(
            child_id
        )
        target_ref = self.store.members_ref(institution_id, primary_department_id, kind).document(
            child_id
        )

        @gcloud_firestore.transactional
        def move_in_transaction(transaction) -> str:
            source = source_ref.get(transaction=transaction)
            target = target_ref.get(transaction=transaction)

            if not source.exists:
                return ALREADY_MOVED

            moved = {**(source.to_dict() or {}), DEPARTMENT_ID_FIELD: primary_department_id}

            if target.exists:
                if target.to_dict() != moved:
                    raise DepartmentMergeError(
                        f"{kind} {child_id} exists in both department {source_department_id} "
                        f"and primary {primary_department_id} with different data; "
                        "resolve the conflict and re-run the merge",
                        institution_id=institution_id,
                        department_id=source_department_id,
                        child_id=child_id,
                    )
                transaction.delete(source_ref)
                return COMPLETED_PARTIAL

            transaction.set(target_ref, moved)
            transaction.delete(source_ref)
            return MOVED

        return self.store.run(
            f"move {kind} {child_id} to department {primary_department_id}",
            lambda: move_in_transaction(self.store.db.transaction()),
        )

    def _retire_department(
        self, institution_id: str, group: DuplicateGroup, duplicate_id: str
    ) -> bool:
        """Delete an emptied duplicate and point the name index at the primary."""
        department_ref = self.store.department_ref(institution_id, duplicate_id)
        index_ref = self.store.name_index_ref(institution_id, group.name)
        member_queries = [
            (kind, self.store.members_ref(institution_id, duplicate_id, kind).limit(1))
            for kind in self.store.collections.members
        ]

        @gcloud_firestore.transactional
        def retire_in_transaction(transaction) -> bool:
            department = department_ref.get(transaction=transaction)
            if not department.exists:
                return False

            for kind, query in member_queries:
                if query.get(transaction=transaction):
                    raise DepartmentMergeError(
                        f"Department {duplicate_id} gained {kind} while being merged; "
                        "re-run the merge",
                        institution_id=institution_id,
                        department_id=duplicate_id,
                    )

            transaction.set(
                index_ref,
                {
                    DEPARTMENT_NAME_FIELD: group.name,
                    DEPARTMENT_ID_FIELD: group.primary_id,
                    "updatedAt": gcloud_firestore.SERVER_TIMESTAMP,
                },
            )
            transaction.delete(department_ref)
            return True

        retired = self.store.run(
            f"delete duplicate department {duplicate_id}",
            lambda: retire_in_transaction(self.store.db.transaction()),
        )
        if retired:
            self.slogger.merge_activity(
                institution_id,
                "retired",
                {"department_id": duplicate_id, "primary_id": group.primary_id},
            )
        return retired
