"""Command-line entry point for the interview admin tooling.

Usage:
    interview-admin resolve-department <institution_id> "Computer Science"
    interview-admin add-member <institution_id> "Nursing" --role student --name "Ada" --email ada@example.edu
    interview-admin list-departments <institution_id>
    interview-admin merge-departments <institution_id> --dry-run
    interview-admin merge-departments --all
    interview-admin aggregate --limit 200 --json
    interview-admin assess --report

Exit codes: 0 on success, 1 when a command fails, 2 on bad usage.
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from interview_admin.ai.inference_client import InferenceClient
from interview_admin.ai.insights import InsightsService
from interview_admin.analytics.aggregator import aggregate_documents
from interview_admin.departments.members import MembershipService
from interview_admin.departments.merger import DepartmentMerger, MergeReport
from interview_admin.departments.resolver import DepartmentResolver
from interview_admin.exceptions import InterviewAdminError
from interview_admin.logging_config import get_structured_logger, setup_logging
from interview_admin.settings import AdminSettings, load_settings
from interview_admin.storage.analysis_store import AnalysisStore
from interview_admin.storage.firestore_client import FirestoreClient
from interview_admin.storage.institution_store import InstitutionStore, department_name_of

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1


def _connect(settings: AdminSettings):
    return FirestoreClient.get_client(settings.database_name, settings.credentials_path)


def _institution_store(settings: AdminSettings) -> InstitutionStore:
    return InstitutionStore(_connect(settings), settings)


# ------------------------------------------------------------------ commands


def cmd_resolve_department(args, settings: AdminSettings) -> int:
    resolver = DepartmentResolver(_institution_store(settings))
    department_id = resolver.resolve(args.institution_id, args.department_name, args.created_by)
    print(department_id)
    return EXIT_OK


def cmd_add_member(args, settings: AdminSettings) -> int:
    profile = {"name": args.name}
    if args.email:
        profile["email"] = args.email

    service = MembershipService(_institution_store(settings))
    department_id, member_id = service.add_member(
        args.institution_id,
        args.department_name,
        args.role,
        profile,
        member_id=args.member_id,
        created_by=args.created_by,
    )
    print(f"✓ Added {args.role} {member_id} to department {department_id}")
    return EXIT_OK


def cmd_list_departments(args, settings: AdminSettings) -> int:
    store = _institution_store(settings)

    institution = store.get_institution(args.institution_id)
    if institution is None:
        print(f"❌ Institution not found: {args.institution_id}", file=sys.stderr)
        return EXIT_FAILED

    institution_name = (institution.to_dict() or {}).get("name") or args.institution_id
    departments = store.list_departments(args.institution_id)
    print(f"{institution_name} ({args.institution_id}): {len(departments)} department(s)")

    for department in departments:
        name = department_name_of(department.to_dict()) or "<unnamed>"
        teachers = store.list_members(
            args.institution_id, department.id, settings.collections.teachers
        )
        students = store.list_members(
            args.institution_id, department.id, settings.collections.students
        )
        print(f"  {name} [{department.id}]: {len(teachers)} teacher(s), {len(students)} student(s)")
    return EXIT_OK


def _print_merge_report(report: MergeReport) -> None:
    prefix = "[dry run] " if report.dry_run else ""
    if not report.groups:
        print(f"{prefix}{report.institution_id}: no duplicate departments")
        return

    print(f"{prefix}{report.institution_id}: {len(report.groups)} duplicate group(s)")
    for group in report.groups:
        print(f"  {group.name!r}: keep {group.primary_id}, merge {', '.join(group.duplicate_ids)}")

    verb = "would move" if report.dry_run else "moved"
    deleted = "would delete" if report.dry_run else "deleted"
    print(
        f"  {verb} {report.teachers_moved} teacher(s) and {report.students_moved} student(s); "
        f"{deleted} {report.departments_deleted} department(s)"
    )


def cmd_merge_departments(args, settings: AdminSettings) -> int:
    merger = DepartmentMerger(_institution_store(settings), dry_run=args.dry_run)

    if args.all:
        reports = merger.merge_all()
    else:
        reports = [merger.merge_institution(args.institution_id)]

    for report in reports:
        _print_merge_report(report)
    return EXIT_OK


def _load_insight(args, settings: AdminSettings):
    store = AnalysisStore(_connect(settings), settings)
    documents = store.list_analyses(
        limit=args.limit, student_id=getattr(args, "student_id", None)
    )
    top_n = getattr(args, "top", None) or settings.top_skill_gaps
    return aggregate_documents(documents, top_n)


def cmd_aggregate(args, settings: AdminSettings) -> int:
    insight = _load_insight(args, settings)

    if args.json:
        print(json.dumps(insight.to_dict(), indent=2))
        return EXIT_OK

    print(
        f"Interviews analyzed: {insight.documents_processed} "
        f"({insight.documents_skipped} skipped)"
    )
    print("\nPerformance:")
    for item in insight.performance_data:
        print(f"  {item.category}: {item.score}/100")
    print("\nSkill gaps:")
    for item in insight.skill_gaps_data:
        print(f"  {item.name}: {item.gap}%")
    return EXIT_OK


def cmd_assess(args, settings: AdminSettings) -> int:
    insight = _load_insight(args, settings)
    service = InsightsService(InferenceClient.from_settings(settings.ai), settings.ai)

    if args.report:
        result = service.report(insight)
        if args.json:
            print(json.dumps(result.to_dict(), indent=2))
            return EXIT_OK
        print(f"EXECUTIVE SUMMARY: {result.executive_summary}")
        print("KEY OBSERVATIONS:")
        for item in result.key_observations:
            print(f"  - {item}")
        print("STRATEGIC RECOMMENDATIONS:")
        for item in result.strategic_recommendations:
            print(f"  - {item}")
        print(f"FORECASTED IMPACT: {result.forecasted_impact}")
        return EXIT_OK

    assessment = service.assess(insight)
    if args.json:
        print(json.dumps(assessment.to_dict(), indent=2))
        return EXIT_OK
    print(f"OVERALL PERFORMANCE GRADE: {assessment.overall_performance_grade}")
    print(f"GRADE EXPLANATION: {assessment.grade_explanation}")
    print(f"DATA LINKING STATUS: {assessment.data_linking_status}")
    print(f"STUDENT IMPROVEMENT ASSESSMENT: {assessment.student_improvement_assessment}")
    print(f"KEY INSIGHT: {assessment.key_insight}")
    return EXIT_OK


# -------------------------------------------------------------------- parser


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="interview-admin",
        description="Admin tooling for interview practice platform data",
    )
    parser.add_argument(
        "--config",
        help="YAML settings overlay (default: INTERVIEW_ADMIN_CONFIG, if set)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: LOG_LEVEL, then INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve = subparsers.add_parser(
        "resolve-department", help="Find or create a department by exact name"
    )
    resolve.add_argument("institution_id")
    resolve.add_argument("department_name")
    resolve.add_argument("--created-by", default="system", help="Recorded on a new department")
    resolve.set_defaults(func=cmd_resolve_department)

    add_member = subparsers.add_parser(
        "add-member", help="Add a teacher or student to a department (created if new)"
    )
    add_member.add_argument("institution_id")
    add_member.add_argument("department_name")
    add_member.add_argument("--role", required=True, choices=["teacher", "student"])
    add_member.add_argument("--name", required=True)
    add_member.add_argument("--email")
    add_member.add_argument("--member-id", help="Document id to use (e.g. auth uid)")
    add_member.add_argument("--created-by", default="system")
    add_member.set_defaults(func=cmd_add_member)

    list_departments = subparsers.add_parser(
        "list-departments", help="Show departments with teacher and student counts"
    )
    list_departments.add_argument("institution_id")
    list_departments.set_defaults(func=cmd_list_departments)

    merge = subparsers.add_parser(
        "merge-departments", help="Merge same-named departments into the oldest one"
    )
    target = merge.add_mutually_exclusive_group(required=True)
    target.add_argument("institution_id", nargs="?")
    target.add_argument("--all", action="store_true", help="Merge every institution")
    merge.add_argument(
        "--dry-run", action="store_true", help="Show what would change without writing"
    )
    merge.set_defaults(func=cmd_merge_departments)

    aggregate = subparsers.add_parser(
        "aggregate", help="Aggregate interview summaries into scores and skill gaps"
    )
    aggregate.add_argument("--limit", type=int, help="Maximum documents to load")
    aggregate.add_argument("--student-id", help="Only this student's interviews")
    aggregate.add_argument("--top", type=int, help="Number of skill gaps to report")
    aggregate.add_argument("--json", action="store_true", help="Print JSON")
    aggregate.set_defaults(func=cmd_aggregate)

    assess = subparsers.add_parser(
        "assess", help="Ask the AI for a platform assessment (or insights report)"
    )
    assess.add_argument("--limit", type=int, help="Maximum documents to load")
    assess.add_argument(
        "--report", action="store_true", help="Produce the insights report instead of a grade"
    )
    assess.add_argument("--json", action="store_true", help="Print JSON")
    assess.set_defaults(func=cmd_assess)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run one admin command and return its exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "limit", None) is not None and args.limit <= 0:
        parser.error("--limit must be positive")
    if getattr(args, "top", None) is not None and args.top <= 0:
        parser.error("--top must be positive")

    load_dotenv()
    setup_logging(log_level=args.log_level)
    slogger = get_structured_logger(__name__)
    slogger.script_status("started", {"command": args.command})

    try:
        settings = load_settings(args.config)
        exit_code = args.func(args, settings)
    except InterviewAdminError as e:
        logger.error("Command %s failed: %s", args.command, e, exc_info=True)
        slogger.script_status("failed", {"command": args.command, "error": str(e)})
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_FAILED
    except ValueError as e:
        slogger.script_status("failed", {"command": args.command, "error": str(e)})
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_FAILED

    slogger.script_status("completed", {"command": args.command, "exit_code": exit_code})
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
