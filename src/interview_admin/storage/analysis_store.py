"""Load interview analysis documents from Firestore."""

import logging
from typing import List, Optional

from google.cloud import firestore as gcloud_firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from interview_admin.analytics.models import AnalysisDocument
from interview_admin.logging_config import get_structured_logger
from interview_admin.settings import AdminSettings
from interview_admin.storage.errors import build_store_retry, call_with_retry

logger = logging.getLogger(__name__)


class AnalysisStore:
    """Reads the end-of-call analysis collection."""

    def __init__(self, db: gcloud_firestore.Client, settings: Optional[AdminSettings] = None):
        self.db = db
        self.settings = settings or AdminSettings()
        self._retry = build_store_retry(self.settings.retry)
        self.slogger = get_structured_logger(__name__)

    def list_analyses(
        self, limit: Optional[int] = None, student_id: Optional[str] = None
    ) -> List[AnalysisDocument]:
        """
        Load analysis documents.

        Args:
            limit: Maximum number of documents to load (all if None)
            student_id: Only documents linked to this student

        Returns:
            Documents in store order. Individual documents that fail model
            validation are skipped with a warning.
        """
        collection_name = self.settings.collections.analyses
        query = self.db.collection(collection_name)
        if student_id:
            query = query.where(filter=FieldFilter("studentId", "==", student_id))
        if limit:
            query = query.limit(limit)

        snapshots = call_with_retry(
            self._retry, f"list {collection_name}", lambda: list(query.stream())
        )

        documents = []
        malformed = 0
        for snapshot in snapshots:
            try:
                documents.append(AnalysisDocument.from_firestore(snapshot.id, snapshot.to_dict()))
            except ValueError as e:
                malformed += 1
                logger.warning("Skipping malformed analysis document %s: %s", snapshot.id, e)

        self.slogger.database_activity(
            "query",
            collection_name,
            "loaded",
            {"documents": len(documents), "malformed": malformed, "student_id": student_id},
        )
        return documents
