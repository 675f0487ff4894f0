"""Tests for DepartmentMerger."""

import pytest

from interview_admin.departments.merger import DepartmentMerger
from interview_admin.departments.resolver import DepartmentResolver
from interview_admin.exceptions import DepartmentMergeError
from interview_admin.storage.institution_store import department_name_key
from tests.fixtures import INSTITUTION_ID, make_timestamp

DEPARTMENTS = f"institutions/{INSTITUTION_ID}/departments"
NAME_INDEX = f"institutions/{INSTITUTION_ID}/departmentNames"


def children(fake_db, department_id, kind):
    return set(fake_db.ids(f"{DEPARTMENTS}/{department_id}/{kind}"))


@pytest.fixture
def duplicated(seed_department, seed_member):
    """
    Three "Computer Science" departments plus an unrelated one.

    cs-primary (oldest) has t1, s1; cs-dup-a has t2, s2, s3; cs-dup-b has s4.
    """
    seed_department(INSTITUTION_ID, "cs-primary", "Computer Science", make_timestamp(1))
    seed_department(INSTITUTION_ID, "cs-dup-a", "Computer Science", make_timestamp(5))
    seed_department(INSTITUTION_ID, "cs-dup-b", "Computer Science", make_timestamp(9))
    seed_department(INSTITUTION_ID, "math", "Mathematics", make_timestamp(2))

    seed_member(INSTITUTION_ID, "cs-primary", "teachers", "t1")
    seed_member(INSTITUTION_ID, "cs-primary", "students", "s1")
    seed_member(INSTITUTION_ID, "cs-dup-a", "teachers", "t2")
    seed_member(INSTITUTION_ID, "cs-dup-a", "students", "s2")
    seed_member(INSTITUTION_ID, "cs-dup-a", "students", "s3")
    seed_member(INSTITUTION_ID, "cs-dup-b", "students", "s4")
    seed_member(INSTITUTION_ID, "math", "students", "m1")


class TestFindDuplicateGroups:
    def test_groups_by_exact_name_with_oldest_primary(self, store, duplicated):
        groups = DepartmentMerger(store).find_duplicate_groups(INSTITUTION_ID)

        assert len(groups) == 1
        assert groups[0].name == "Computer Science"
        assert groups[0].primary_id == "cs-primary"
        assert groups[0].duplicate_ids == ["cs-dup-a", "cs-dup-b"]

    def test_undated_departments_sort_last(self, store, seed_department):
        seed_department(INSTITUTION_ID, "aaa-undated", "Art")
        seed_department(INSTITUTION_ID, "zzz-dated", "Art", make_timestamp(3))

        groups = DepartmentMerger(store).find_duplicate_groups(INSTITUTION_ID)

        assert groups[0].primary_id == "zzz-dated"
        assert groups[0].duplicate_ids == ["aaa-undated"]

    def test_case_variants_are_not_duplicates(self, store, seed_department):
        seed_department(INSTITUTION_ID, "d1", "Biology", make_timestamp(1))
        seed_department(INSTITUTION_ID, "d2", "biology", make_timestamp(2))

        assert DepartmentMerger(store).find_duplicate_groups(INSTITUTION_ID) == []

    def test_unnamed_departments_are_skipped(self, store, seed_department, fake_db):
        seed_department(INSTITUTION_ID, "d1", "Biology", make_timestamp(1))
        fake_db.seed(f"{DEPARTMENTS}/broken", {"createdAt": make_timestamp(2)})

        assert DepartmentMerger(store).find_duplicate_groups(INSTITUTION_ID) == []


class TestMergeInstitution:
    def test_primary_receives_union_of_children(self, store, fake_db, duplicated):
        report = DepartmentMerger(store).merge_institution(INSTITUTION_ID)

        assert children(fake_db, "cs-primary", "teachers") == {"t1", "t2"}
        assert children(fake_db, "cs-primary", "students") == {"s1", "s2", "s3", "s4"}
        assert report.teachers_moved == 1
        assert report.students_moved == 3
        assert report.departments_deleted == 2

    def test_duplicates_are_deleted_and_others_untouched(self, store, fake_db, duplicated):
        DepartmentMerger(store).merge_institution(INSTITUTION_ID)

        assert sorted(fake_db.ids(DEPARTMENTS)) == ["cs-primary", "math"]
        assert fake_db.ids(f"{DEPARTMENTS}/cs-dup-a/students") == []
        assert children(fake_db, "math", "students") == {"m1"}

    def test_moved_children_point_at_primary(self, store, fake_db, duplicated):
        DepartmentMerger(store).merge_institution(INSTITUTION_ID)

        record = fake_db.data(f"{DEPARTMENTS}/cs-primary/students/s4")
        assert record["departmentId"] == "cs-primary"
        assert record["name"] == "S4"

    def test_name_index_points_at_primary(self, store, fake_db, duplicated):
        DepartmentMerger(store).merge_institution(INSTITUTION_ID)

        index = fake_db.data(f"{NAME_INDEX}/{department_name_key('Computer Science')}")
        assert index["departmentId"] == "cs-primary"
        assert DepartmentResolver(store).resolve(INSTITUTION_ID, "Computer Science") == "cs-primary"

    def test_rerun_is_a_no_op(self, store, fake_db, duplicated):
        merger = DepartmentMerger(store)
        merger.merge_institution(INSTITUTION_ID)
        commits = fake_db.commits

        report = merger.merge_institution(INSTITUTION_ID)

        assert report.groups == []
        assert report.children_moved == 0
        assert fake_db.commits == commits

    def test_institution_without_duplicates(self, store, seed_department):
        seed_department(INSTITUTION_ID, "d1", "Biology", make_timestamp(1))

        report = DepartmentMerger(store).merge_institution(INSTITUTION_ID)

        assert report.groups == []
        assert report.departments_deleted == 0


class TestCollisions:
    def test_identical_leftover_only_deletes_source(
        self, store, fake_db, seed_department, seed_member
    ):
        seed_department(INSTITUTION_ID, "p", "Law", make_timestamp(1))
        seed_department(INSTITUTION_ID, "d", "Law", make_timestamp(2))
        # A previous run copied s1 but died before deleting the original
        seed_member(INSTITUTION_ID, "p", "students", "s1", departmentId="p")
        seed_member(INSTITUTION_ID, "d", "students", "s1", departmentId="d")

        report = DepartmentMerger(store).merge_institution(INSTITUTION_ID)

        assert children(fake_db, "p", "students") == {"s1"}
        assert fake_db.ids(DEPARTMENTS) == ["p"]
        assert report.students_moved == 1

    def test_conflicting_child_raises_and_keeps_both(
        self, store, fake_db, seed_department, seed_member
    ):
        seed_department(INSTITUTION_ID, "p", "Law", make_timestamp(1))
        seed_department(INSTITUTION_ID, "d", "Law", make_timestamp(2))
        seed_member(INSTITUTION_ID, "p", "students", "s1", email="old@example.edu")
        seed_member(INSTITUTION_ID, "d", "students", "s1", email="new@example.edu")

        with pytest.raises(DepartmentMergeError) as exc_info:
            DepartmentMerger(store).merge_institution(INSTITUTION_ID)

        assert exc_info.value.child_id == "s1"
        assert exc_info.value.department_id == "d"
        assert fake_db.data(f"{DEPARTMENTS}/p/students/s1")["email"] == "old@example.edu"
        assert fake_db.data(f"{DEPARTMENTS}/d/students/s1")["email"] == "new@example.edu"
        assert sorted(fake_db.ids(DEPARTMENTS)) == ["d", "p"]

    def test_rerun_after_resolving_conflict_converges(
        self, store, fake_db, seed_department, seed_member
    ):
        seed_department(INSTITUTION_ID, "p", "Law", make_timestamp(1))
        seed_department(INSTITUTION_ID, "d", "Law", make_timestamp(2))
        seed_member(INSTITUTION_ID, "d", "students", "a-first")
        seed_member(INSTITUTION_ID, "p", "students", "b-clash", email="x")
        seed_member(INSTITUTION_ID, "d", "students", "b-clash", email="y")
        seed_member(INSTITUTION_ID, "d", "students", "c-last")

        merger = DepartmentMerger(store)
        with pytest.raises(DepartmentMergeError):
            merger.merge_institution(INSTITUTION_ID)

        # Children moved before the failure stay moved; nothing is duplicated
        assert children(fake_db, "p", "students") == {"a-first", "b-clash"}
        assert children(fake_db, "d", "students") == {"b-clash", "c-last"}

        fake_db.document(f"{DEPARTMENTS}/d/students/b-clash").delete()
        merger.merge_institution(INSTITUTION_ID)

        assert children(fake_db, "p", "students") == {"a-first", "b-clash", "c-last"}
        assert fake_db.ids(DEPARTMENTS) == ["p"]


class TestDryRun:
    def test_dry_run_reports_without_writing(self, store, fake_db, duplicated):
        commits = fake_db.commits
        before = sorted(fake_db.ids(DEPARTMENTS))

        report = DepartmentMerger(store, dry_run=True).merge_institution(INSTITUTION_ID)

        assert report.dry_run is True
        assert report.teachers_moved == 1
        assert report.students_moved == 3
        assert report.departments_deleted == 2
        assert fake_db.commits == commits
        assert sorted(fake_db.ids(DEPARTMENTS)) == before


class TestRetireGuard:
    def test_department_that_gained_members_is_not_deleted(
        self, store, fake_db, seed_department, seed_member
    ):
        seed_department(INSTITUTION_ID, "p", "Law", make_timestamp(1))
        seed_department(INSTITUTION_ID, "d", "Law", make_timestamp(2))
        seed_member(INSTITUTION_ID, "d", "students", "s1")

        merger = DepartmentMerger(store)
        original_move = merger._move_child

        def move_then_late_signup(*args):
            outcome = original_move(*args)
            seed_member(INSTITUTION_ID, "d", "teachers", "late")
            return outcome

        merger._move_child = move_then_late_signup

        with pytest.raises(DepartmentMergeError, match="re-run"):
            merger.merge_institution(INSTITUTION_ID)

        assert sorted(fake_db.ids(DEPARTMENTS)) == ["d", "p"]
        assert children(fake_db, "d", "teachers") == {"late"}


class TestMergeAll:
    def test_merges_every_institution(self, store, fake_db, seed_department, seed_member):
        for institution in ("inst-a", "inst-b"):
            fake_db.seed(f"institutions/{institution}", {"name": institution.upper()})
            seed_department(institution, "p", "Law", make_timestamp(1))
            seed_department(institution, "d", "Law", make_timestamp(2))
            seed_member(institution, "d", "teachers", "t1")

        reports = DepartmentMerger(store).merge_all()

        assert [report.institution_id for report in reports] == ["inst-a", "inst-b"]
        assert all(report.teachers_moved == 1 for report in reports)
        assert fake_db.ids("institutions/inst-a/departments") == ["p"]
        assert fake_db.ids("institutions/inst-b/departments") == ["p"]
