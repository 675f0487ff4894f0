"""Firestore access modules."""

from interview_admin.storage.analysis_store import AnalysisStore
from interview_admin.storage.firestore_client import FirestoreClient
from interview_admin.storage.institution_store import InstitutionStore

__all__ = ["FirestoreClient", "InstitutionStore", "AnalysisStore"]
