"""Turn an aggregate into an AI-written assessment or insights report."""

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from interview_admin.ai.inference_client import InferenceClient
from interview_admin.ai.prompts import (
    ASSESSMENT_SECTIONS,
    REPORT_SECTIONS,
    build_assessment_prompt,
    build_insights_prompt,
)
from interview_admin.ai.section_parser import normalize_grade, parse_sections
from interview_admin.analytics.models import AggregateInsight
from interview_admin.logging_config import get_structured_logger
from interview_admin.settings import AISettings

logger = logging.getLogger(__name__)


@dataclass
class PlatformAssessment:
    """Graded overall assessment parsed from a model response."""

    overall_performance_grade: str
    grade_explanation: str
    data_linking_status: str
    student_improvement_assessment: str
    key_insight: str
    model: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class InsightsReport:
    """Executive insights report parsed from a model response."""

    executive_summary: str
    key_observations: List[str] = field(default_factory=list)
    strategic_recommendations: List[str] = field(default_factory=list)
    forecasted_impact: str = ""
    model: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def parse_assessment(text: Optional[str], model: str = "") -> PlatformAssessment:
    """Parse an assessment response; missing sections take their placeholders."""
    sections = parse_sections(text, ASSESSMENT_SECTIONS)
    sections["overall_performance_grade"] = normalize_grade(sections["overall_performance_grade"])
    return PlatformAssessment(model=model, **sections)


def parse_report(text: Optional[str], model: str = "") -> InsightsReport:
    """Parse an insights report response; missing sections take their placeholders."""
    return InsightsReport(model=model, **parse_sections(text, REPORT_SECTIONS))


class InsightsService:
    """Builds the prompt, calls the model, parses the labeled reply."""

    def __init__(self, client: InferenceClient, settings: Optional[AISettings] = None):
        self.client = client
        self.settings = settings or AISettings()
        self.slogger = get_structured_logger(__name__)

    def _complete(self, task_type: str, prompt: str):
        self.slogger.ai_activity(task_type, "started", {"prompt_chars": len(prompt)})
        return self.client.execute(
            task_type,
            prompt,
            model_override=self.settings.model,
            max_tokens=self.settings.max_tokens,
            temperature=self.settings.temperature,
        )

    def assess(self, insight: AggregateInsight) -> PlatformAssessment:
        result = self._complete("assessment", build_assessment_prompt(insight))
        assessment = parse_assessment(result.text, model=result.model)
        self.slogger.ai_activity(
            "assessment",
            "completed",
            {"model": result.model, "grade": assessment.overall_performance_grade},
        )
        return assessment

    def report(self, insight: AggregateInsight) -> InsightsReport:
        result = self._complete("report", build_insights_prompt(insight))
        report = parse_report(result.text, model=result.model)
        self.slogger.ai_activity(
            "report",
            "completed",
            {
                "model": result.model,
                "observations": len(report.key_observations),
                "recommendations": len(report.strategic_recommendations),
            },
        )
        return report
