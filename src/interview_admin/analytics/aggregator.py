"""Aggregate interview summaries into category means and ranked skill gaps."""

import logging
import math
from collections import Counter
from typing import Dict, Iterable, List, Optional

from interview_admin.analytics.models import (
    AggregateInsight,
    AnalysisDocument,
    CategoryScore,
    SkillGap,
)
from interview_admin.analytics.summary_parser import parse_summary
from interview_admin.constants import (
    DEFAULT_TOP_SKILL_GAPS,
    MAX_GAP_PERCENTAGE,
    SUMMARY_CATEGORIES,
    SUMMARY_IMPROVEMENTS_KEY,
)
from interview_admin.logging_config import get_structured_logger

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves rounding up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def gap_percentage(count: int, total: int) -> int:
    """100 * count / total rounded half-up, capped at 100 (integer arithmetic)."""
    return min(MAX_GAP_PERCENTAGE, (200 * count + total) // (2 * total))


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


class SummaryAggregator:
    """Accumulates category scores and improvement areas across summaries.

    Feed documents with :meth:`add`, then read the aggregate with
    :meth:`result`. A summary that does not parse is counted as skipped but
    still counts toward the document total used for gap percentages.
    """

    def __init__(self, categories: Optional[Dict[str, str]] = None):
        """
        Args:
            categories: Summary key -> reported category name. Defaults to the
                overall rating plus the four sub-skill categories.
        """
        self.categories = categories or SUMMARY_CATEGORIES
        self._totals: Dict[str, float] = {}
        self._counts: Dict[str, int] = {}
        self._improvements: Counter = Counter()
        self.documents_processed = 0
        self.documents_skipped = 0

    def add(self, document: AnalysisDocument) -> bool:
        """
        Add one document.

        Returns:
            True if its summary parsed, False if it was skipped.
        """
        self.documents_processed += 1

        summary = parse_summary(document.summary)
        if summary is None:
            self.documents_skipped += 1
            logger.debug("Skipped analysis %s: summary did not parse", document.id or "<unsaved>")
            return False

        for key, category in self.categories.items():
            value = summary.get(key)
            if _is_number(value):
                self._totals[category] = self._totals.get(category, 0) + value
                self._counts[category] = self._counts.get(category, 0) + 1

        improvements = summary.get(SUMMARY_IMPROVEMENTS_KEY)
        if isinstance(improvements, list):
            for improvement in improvements:
                if isinstance(improvement, str) and improvement:
                    self._improvements[improvement] += 1

        return True

    def add_all(self, documents: Iterable[AnalysisDocument]) -> "SummaryAggregator":
        for document in documents:
            self.add(document)
        return self

    def performance_data(self) -> List[CategoryScore]:
        return [
            CategoryScore(category=category, score=round_half_up(total / self._counts[category]))
            for category, total in self._totals.items()
        ]

    def skill_gaps(self, top_n: int = DEFAULT_TOP_SKILL_GAPS) -> List[SkillGap]:
        """Most frequent improvement areas, as a percentage of all documents."""
        if not self.documents_processed:
            return []

        gaps = [
            SkillGap(name=name, gap=gap_percentage(count, self.documents_processed))
            for name, count in self._improvements.items()
        ]
        # sorted() is stable: equal gaps keep first-seen order
        gaps = sorted(gaps, key=lambda gap: gap.gap, reverse=True)
        return gaps[:top_n]

    def result(self, top_n: int = DEFAULT_TOP_SKILL_GAPS) -> AggregateInsight:
        return AggregateInsight(
            performance_data=self.performance_data(),
            skill_gaps_data=self.skill_gaps(top_n),
            documents_processed=self.documents_processed,
            documents_skipped=self.documents_skipped,
        )


def aggregate_documents(
    documents: Iterable[AnalysisDocument], top_n: int = DEFAULT_TOP_SKILL_GAPS
) -> AggregateInsight:
    """Aggregate a batch of analysis documents in one call."""
    aggregator = SummaryAggregator().add_all(documents)
    insight = aggregator.result(top_n)
    get_structured_logger(__name__).analytics_activity(
        "aggregated",
        {
            "documents_processed": insight.documents_processed,
            "documents_skipped": insight.documents_skipped,
            "categories": len(insight.performance_data),
            "skill_gaps": len(insight.skill_gaps_data),
        },
    )
    return insight
