"""Tests for FirestoreClient singleton."""

from unittest.mock import MagicMock, Mock, patch

import pytest

from interview_admin.exceptions import ConfigurationError, InitializationError
from interview_admin.storage.firestore_client import FirestoreClient


@pytest.fixture
def mock_credentials_path(tmp_path):
    """Create a temporary credentials file."""
    creds_file = tmp_path / "serviceAccountKey.json"
    creds_file.write_text(
        '{"type": "service_account", "project_id": "interview-test", '
        '"private_key_id": "test", "private_key": "test", "client_email": "test@test.com"}'
    )
    return str(creds_file)


def _setup_mocks(mock_creds, mock_firebase, project_id="interview-test"):
    mock_firebase.get_app.side_effect = ValueError("No app")
    mock_cred = Mock()
    mock_cred.project_id = project_id
    mock_creds.Certificate.return_value = mock_cred


class TestFirestoreClient:
    """Test FirestoreClient singleton functionality."""

    @patch("interview_admin.storage.firestore_client.firebase_admin")
    @patch("interview_admin.storage.firestore_client.gcloud_firestore")
    @patch("interview_admin.storage.firestore_client.credentials")
    def test_get_client_creates_named_database_client(
        self, mock_creds, mock_firestore, mock_firebase, mock_credentials_path
    ):
        _setup_mocks(mock_creds, mock_firebase)
        mock_client = MagicMock()
        mock_firestore.Client.return_value = mock_client

        client = FirestoreClient.get_client(
            database_name="interview-staging", credentials_path=mock_credentials_path
        )

        mock_firebase.initialize_app.assert_called_once()
        mock_firestore.Client.assert_called_once_with(
            project="interview-test", database="interview-staging"
        )
        assert client == mock_client

    @patch("interview_admin.storage.firestore_client.firebase_admin")
    @patch("interview_admin.storage.firestore_client.gcloud_firestore")
    @patch("interview_admin.storage.firestore_client.credentials")
    def test_default_database_omits_database_argument(
        self, mock_creds, mock_firestore, mock_firebase, mock_credentials_path
    ):
        _setup_mocks(mock_creds, mock_firebase)

        FirestoreClient.get_client(credentials_path=mock_credentials_path)

        mock_firestore.Client.assert_called_once_with(project="interview-test")

    @patch("interview_admin.storage.firestore_client.firebase_admin")
    @patch("interview_admin.storage.firestore_client.gcloud_firestore")
    @patch("interview_admin.storage.firestore_client.credentials")
    def test_client_is_acquired_once(
        self, mock_creds, mock_firestore, mock_firebase, mock_credentials_path
    ):
        _setup_mocks(mock_creds, mock_firebase)
        mock_firestore.Client.return_value = MagicMock()

        first = FirestoreClient.get_client(credentials_path=mock_credentials_path)
        second = FirestoreClient.get_client(credentials_path=mock_credentials_path)

        assert first is second
        assert mock_firestore.Client.call_count == 1
        assert mock_firebase.initialize_app.call_count == 1

    @patch("interview_admin.storage.firestore_client.firebase_admin")
    @patch("interview_admin.storage.firestore_client.gcloud_firestore")
    @patch("interview_admin.storage.firestore_client.credentials")
    def test_env_credentials(
        self, mock_creds, mock_firestore, mock_firebase, mock_credentials_path, monkeypatch
    ):
        monkeypatch.setenv("GOOGLE_APPLICATION_CREDENTIALS", mock_credentials_path)
        _setup_mocks(mock_creds, mock_firebase)

        FirestoreClient.get_client()

        mock_creds.Certificate.assert_called_with(mock_credentials_path)

    @patch("interview_admin.storage.firestore_client.firebase_admin")
    def test_missing_credentials(self, mock_firebase, monkeypatch):
        monkeypatch.delenv("GOOGLE_APPLICATION_CREDENTIALS", raising=False)
        mock_firebase.get_app.side_effect = ValueError("No app")

        with pytest.raises(ConfigurationError, match="Firebase credentials not found"):
            FirestoreClient.get_client()

    @patch("interview_admin.storage.firestore_client.firebase_admin")
    def test_missing_credentials_file(self, mock_firebase):
        mock_firebase.get_app.side_effect = ValueError("No app")

        with pytest.raises(ConfigurationError, match="Credentials file not found"):
            FirestoreClient.get_client(credentials_path="/nonexistent/path.json")

    @patch("interview_admin.storage.firestore_client.firebase_admin")
    @patch("interview_admin.storage.firestore_client.gcloud_firestore")
    @patch("interview_admin.storage.firestore_client.credentials")
    def test_firebase_admin_already_initialized(
        self, mock_creds, mock_firestore, mock_firebase, mock_credentials_path
    ):
        mock_firebase.get_app.return_value = Mock()
        mock_cred = Mock()
        mock_cred.project_id = "interview-test"
        mock_creds.Certificate.return_value = mock_cred

        FirestoreClient.get_client(credentials_path=mock_credentials_path)

        mock_firebase.initialize_app.assert_not_called()
        mock_firestore.Client.assert_called_once()

    @patch("interview_admin.storage.firestore_client.firebase_admin")
    @patch("interview_admin.storage.firestore_client.gcloud_firestore")
    @patch("interview_admin.storage.firestore_client.credentials")
    def test_initialization_error(
        self, mock_creds, mock_firestore, mock_firebase, mock_credentials_path
    ):
        mock_firebase.get_app.side_effect = ValueError("No app")
        mock_creds.Certificate.side_effect = Exception("Failed to load credentials")

        with pytest.raises(InitializationError, match="Failed to initialize Firebase Admin"):
            FirestoreClient.get_client(credentials_path=mock_credentials_path)

    @patch("interview_admin.storage.firestore_client.firebase_admin")
    @patch("interview_admin.storage.firestore_client.gcloud_firestore")
    @patch("interview_admin.storage.firestore_client.credentials")
    def test_reset_instances(self, mock_creds, mock_firestore, mock_firebase, mock_credentials_path):
        _setup_mocks(mock_creds, mock_firebase)
        mock_firestore.Client.side_effect = [MagicMock(), MagicMock()]

        first = FirestoreClient.get_client(credentials_path=mock_credentials_path)
        FirestoreClient.reset_instances()
        second = FirestoreClient.get_client(credentials_path=mock_credentials_path)

        assert first is not second
        assert mock_firestore.Client.call_count == 2
