"""Shared pytest fixtures for all tests."""

import pytest

from interview_admin.analytics.models import AnalysisDocument
from interview_admin.settings import AdminSettings, RetrySettings, clear_settings_cache
from interview_admin.storage.firestore_client import FirestoreClient
from interview_admin.storage.institution_store import InstitutionStore
from tests.fixtures.fake_firestore import FakeFirestore, fake_transactional


@pytest.fixture(autouse=True)
def set_test_environment(monkeypatch):
    """
    Automatically set ENVIRONMENT variable for all tests.

    This prevents ValueError from being raised when initializing
    StructuredLogger or calling setup_logging() in tests.
    """
    monkeypatch.setenv("ENVIRONMENT", "development")


@pytest.fixture(autouse=True)
def reset_singletons():
    """Tests never share cached settings or Firestore clients."""
    clear_settings_cache()
    FirestoreClient.reset_instances()
    yield
    clear_settings_cache()
    FirestoreClient.reset_instances()


@pytest.fixture
def fast_settings():
    """Settings with a retry policy short enough for tests."""
    return AdminSettings(
        retry=RetrySettings(initial=0.01, maximum=0.02, multiplier=1.0, deadline=0.1)
    )


@pytest.fixture
def fake_db(monkeypatch):
    """In-memory Firestore with transactions routed through the fake."""
    monkeypatch.setattr("google.cloud.firestore.transactional", fake_transactional)
    return FakeFirestore()


@pytest.fixture
def store(fake_db, fast_settings):
    return InstitutionStore(fake_db, fast_settings)


@pytest.fixture
def seed_department(fake_db):
    """
    Write a legacy department document directly (no name index entry).

    Returns a function(institution_id, department_id, name, created_at=..., **extra).
    """

    def _seed(institution_id, department_id, name, created_at=None, **extra):
        data = {"departmentName": name, **extra}
        if created_at is not None:
            data["createdAt"] = created_at
        fake_db.seed(f"institutions/{institution_id}/departments/{department_id}", data)
        return department_id

    return _seed


@pytest.fixture
def seed_member(fake_db):
    """Write a teacher/student document under a department."""

    def _seed(institution_id, department_id, kind, member_id, **fields):
        data = {"name": member_id.title(), "departmentId": department_id, **fields}
        fake_db.seed(
            f"institutions/{institution_id}/departments/{department_id}/{kind}/{member_id}", data
        )
        return member_id

    return _seed


@pytest.fixture
def make_analysis():
    """Create an AnalysisDocument with a fenced JSON summary."""

    def _make(summary, doc_id="call-1", **fields):
        return AnalysisDocument(id=doc_id, summary=summary, **fields)

    return _make
