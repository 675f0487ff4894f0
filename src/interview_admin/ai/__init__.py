"""AI-generated platform insights."""

from interview_admin.ai.inference_client import InferenceClient
from interview_admin.ai.insights import InsightsReport, InsightsService, PlatformAssessment
from interview_admin.ai.section_parser import SectionSpec, parse_sections

__all__ = [
    "InferenceClient",
    "InsightsService",
    "PlatformAssessment",
    "InsightsReport",
    "SectionSpec",
    "parse_sections",
]
