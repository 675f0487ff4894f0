"""Data models for interview analysis documents and their aggregates."""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AnalysisDocument(BaseModel):
    """One completed interview call as stored in the analysis collection."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field("", description="Firestore document id")
    call_id: str = Field("", alias="callId", description="Voice-call provider id")
    student_id: str = Field(
        "", alias="studentId", description="Denormalized student id, often blank"
    )
    summary: str = Field("", description="LLM summary, usually JSON inside a markdown fence")
    structured_data: Dict[str, Any] = Field(default_factory=dict, alias="structuredData")
    success_evaluation: Any = Field(None, alias="successEvaluation")
    transcript: Any = Field(None, description="Raw transcript (string or message list)")
    recording_url: str = Field("", alias="recordingUrl")
    duration: Any = None
    timestamp: Any = None

    @field_validator("call_id", "student_id", "recording_url", mode="before")
    @classmethod
    def _blank_if_missing(cls, value: Any) -> str:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    @field_validator("summary", mode="before")
    @classmethod
    def _summary_as_text(cls, value: Any) -> str:
        # Some webhook versions stored the summary payload as a map
        if value is None:
            return ""
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        return value if isinstance(value, str) else str(value)

    @field_validator("structured_data", mode="before")
    @classmethod
    def _empty_if_missing(cls, value: Any) -> Dict[str, Any]:
        return value if isinstance(value, dict) else {}

    @classmethod
    def from_firestore(cls, doc_id: str, data: Optional[Dict[str, Any]]) -> "AnalysisDocument":
        return cls.model_validate({**(data or {}), "id": doc_id})


@dataclass
class CategoryScore:
    """Mean score for one summary category."""

    category: str
    score: int


@dataclass
class SkillGap:
    """An improvement area and the share of interviews that mention it."""

    name: str
    gap: int


@dataclass
class AggregateInsight:
    """Aggregate of many summaries. Recomputed on every run, never stored.

    ``gap`` percentages are relative to ``documents_processed`` (every
    document fed in), not to the number of documents that parsed.
    """

    performance_data: List[CategoryScore] = field(default_factory=list)
    skill_gaps_data: List[SkillGap] = field(default_factory=list)
    documents_processed: int = 0
    documents_skipped: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "performanceData": [
                {"category": item.category, "score": item.score} for item in self.performance_data
            ],
            "skillGapsData": [{"name": item.name, "gap": item.gap} for item in self.skill_gaps_data],
            "documentsProcessed": self.documents_processed,
            "documentsSkipped": self.documents_skipped,
        }
