"""Prompt templates and response layouts for platform insights."""

from typing import List

from interview_admin.ai.section_parser import SectionSpec
from interview_admin.analytics.models import AggregateInsight

NO_DATA = "No data available"

ASSESSMENT_SECTIONS = (
    SectionSpec("OVERALL PERFORMANCE GRADE:", "overall_performance_grade", "N/A"),
    SectionSpec("GRADE EXPLANATION:", "grade_explanation", "No grade explanation available."),
    SectionSpec("DATA LINKING STATUS:", "data_linking_status", "Unknown data linking status."),
    SectionSpec(
        "STUDENT IMPROVEMENT ASSESSMENT:",
        "student_improvement_assessment",
        "No student improvement assessment available.",
    ),
    SectionSpec("KEY INSIGHT:", "key_insight", "No key insight available."),
)

REPORT_SECTIONS = (
    SectionSpec("EXECUTIVE SUMMARY:", "executive_summary", "No executive summary available."),
    SectionSpec("KEY OBSERVATIONS:", "key_observations", [], is_list=True),
    SectionSpec("STRATEGIC RECOMMENDATIONS:", "strategic_recommendations", [], is_list=True),
    SectionSpec("FORECASTED IMPACT:", "forecasted_impact", "No forecasted impact available."),
)

_PREAMBLE = (
    "You are an AI expert in educational technology and workforce development, "
    "analyzing interview practice platform data."
)

_GUIDELINES = """Important guidelines:
- Focus on educational and workforce development insights
- Keep responses concise but data-driven
- Do not use markdown formatting in your response"""


def format_performance_lines(insight: AggregateInsight) -> str:
    lines = [f"- {item.category}: {item.score}/100" for item in insight.performance_data]
    return "\n".join(lines) or NO_DATA


def format_skill_gap_lines(insight: AggregateInsight) -> str:
    lines = [
        f"- {item.name}: {item.gap}% of students need improvement"
        for item in insight.skill_gaps_data
    ]
    return "\n".join(lines) or NO_DATA


def _data_block(insight: AggregateInsight) -> str:
    return (
        f"Interviews analyzed: {insight.documents_processed} "
        f"({insight.documents_skipped} without a readable summary)\n\n"
        "Performance Data (category scores out of 100):\n"
        f"{format_performance_lines(insight)}\n\n"
        "Skill Gaps (areas needing improvement):\n"
        f"{format_skill_gap_lines(insight)}"
    )


def _format_layout(sections) -> str:
    lines: List[str] = []
    for spec in sections:
        if spec.is_list:
            lines.append(f"{spec.label}\n- [item]\n- [item]")
        else:
            lines.append(f"{spec.label} [text]")
    return "\n".join(lines)


def build_assessment_prompt(insight: AggregateInsight) -> str:
    """Prompt asking for a single A-F grade of overall platform performance."""
    return f"""{_PREAMBLE}

YOUR PRIMARY TASK: Provide a high-level performance assessment and grade (A-F) for \
overall platform performance based on all aggregated interview data. This is for \
platform administrators to quickly understand how students are improving.

Analyze the following interview platform data:

{_data_block(insight)}

{_GUIDELINES}

Format your response exactly as follows:
OVERALL PERFORMANCE GRADE: [Letter Grade A-F]
GRADE EXPLANATION: [Brief explanation of how the grade was calculated]
DATA LINKING STATUS: [Whether data is linked to institutions/students or not]
STUDENT IMPROVEMENT ASSESSMENT: [High-level assessment of student performance improvement]
KEY INSIGHT: [One key insight from the data]"""


def build_insights_prompt(insight: AggregateInsight) -> str:
    """Prompt asking for an executive insights report with list sections."""
    return f"""{_PREAMBLE} Your task is to provide actionable insights for improving \
student interview performance and platform effectiveness.

Analyze the following interview platform data:

{_data_block(insight)}

{_GUIDELINES}

Format your response exactly as follows, with 3-5 items in each list:
{_format_layout(REPORT_SECTIONS)}"""
