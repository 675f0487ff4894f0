"""Department resolution, membership and duplicate merging."""

from interview_admin.departments.members import MembershipService
from interview_admin.departments.merger import DepartmentMerger, DuplicateGroup, MergeReport
from interview_admin.departments.resolver import DepartmentResolver

__all__ = [
    "DepartmentResolver",
    "MembershipService",
    "DepartmentMerger",
    "DuplicateGroup",
    "MergeReport",
]
