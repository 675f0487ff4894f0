"""Tests for store retry policy and error translation."""

from unittest.mock import MagicMock

import pytest
from google.api_core import exceptions as gcloud_exceptions

from interview_admin.exceptions import (
    DepartmentMergeError,
    StorageError,
    StoreAccessError,
    TransientStorageError,
)
from interview_admin.settings import RetrySettings
from interview_admin.storage.errors import build_store_retry, call_with_retry, translate_store_error
from interview_admin.storage.institution_store import InstitutionStore

FAST_RETRY = RetrySettings(initial=0.01, maximum=0.02, multiplier=1.0, deadline=0.2)


class TestTranslateStoreError:
    @pytest.mark.parametrize(
        "exc",
        [
            gcloud_exceptions.PermissionDenied("no"),
            gcloud_exceptions.Unauthenticated("no"),
            gcloud_exceptions.Forbidden("no"),
        ],
    )
    def test_access_errors(self, exc):
        error = translate_store_error(exc, "list departments")

        assert isinstance(error, StoreAccessError)
        assert error.operation == "list departments"

    def test_transient_errors(self):
        error = translate_store_error(gcloud_exceptions.ServiceUnavailable("down"), "read")
        assert isinstance(error, TransientStorageError)

    def test_retry_exhaustion(self):
        exc = gcloud_exceptions.RetryError("gave up", cause=gcloud_exceptions.Aborted("busy"))
        error = translate_store_error(exc, "commit")

        assert isinstance(error, TransientStorageError)
        assert "Gave up retrying commit" in str(error)

    def test_other_errors(self):
        error = translate_store_error(gcloud_exceptions.InvalidArgument("bad"), "query")

        assert type(error) is StorageError


class TestCallWithRetry:
    def test_retries_transient_errors_then_succeeds(self):
        func = MagicMock(side_effect=[gcloud_exceptions.ServiceUnavailable("down"), "ok"])

        result = call_with_retry(build_store_retry(FAST_RETRY), "read", func)

        assert result == "ok"
        assert func.call_count == 2

    def test_access_errors_fail_fast(self):
        func = MagicMock(side_effect=gcloud_exceptions.PermissionDenied("no"))

        with pytest.raises(StoreAccessError):
            call_with_retry(build_store_retry(FAST_RETRY), "read", func)
        assert func.call_count == 1

    def test_persistent_transient_error_becomes_transient_storage_error(self):
        func = MagicMock(side_effect=gcloud_exceptions.DeadlineExceeded("slow"))

        with pytest.raises(TransientStorageError):
            call_with_retry(build_store_retry(FAST_RETRY), "read", func)
        assert func.call_count > 1

    def test_domain_errors_propagate_unchanged(self):
        error = DepartmentMergeError("collision", institution_id="i", department_id="d")
        func = MagicMock(side_effect=error)

        with pytest.raises(DepartmentMergeError) as exc_info:
            call_with_retry(build_store_retry(FAST_RETRY), "merge", func)
        assert exc_info.value is error

    def test_arguments_are_forwarded(self):
        func = MagicMock(return_value=1)

        call_with_retry(build_store_retry(FAST_RETRY), "write", func, "a", key="b")

        func.assert_called_once_with("a", key="b")


class TestInstitutionStoreErrors:
    def test_list_departments_translates_permission_errors(self, fast_settings):
        db = MagicMock()
        (
            db.collection.return_value.document.return_value.collection.return_value.stream
        ).side_effect = gcloud_exceptions.PermissionDenied("rules")

        with pytest.raises(StoreAccessError, match="list departments of inst-1"):
            InstitutionStore(db, fast_settings).list_departments("inst-1")
