"""Aggregation of LLM-generated interview summaries."""

from interview_admin.analytics.aggregator import SummaryAggregator, aggregate_documents
from interview_admin.analytics.models import AggregateInsight, AnalysisDocument
from interview_admin.analytics.summary_parser import parse_summary

__all__ = [
    "AnalysisDocument",
    "AggregateInsight",
    "SummaryAggregator",
    "aggregate_documents",
    "parse_summary",
]
