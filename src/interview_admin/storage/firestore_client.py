"""Centralized Firestore client management with singleton pattern.

Every command acquires its database handle here once and passes it by
reference into the stores; nothing re-initializes Firebase per call.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Optional

import firebase_admin
from firebase_admin import credentials
from google.cloud import firestore as gcloud_firestore

from interview_admin.exceptions import ConfigurationError, InitializationError

logger = logging.getLogger(__name__)

DEFAULT_DATABASE = "(default)"

CREDENTIALS_MISSING_ERROR = (
    "Firebase credentials not found. Set GOOGLE_APPLICATION_CREDENTIALS "
    "environment variable or pass credentials_path parameter."
)


def _resolve_credentials_path(credentials_path: Optional[str]) -> str:
    creds_path = credentials_path or os.getenv("GOOGLE_APPLICATION_CREDENTIALS")

    if not creds_path:
        raise ConfigurationError(CREDENTIALS_MISSING_ERROR)

    if not Path(creds_path).exists():
        raise ConfigurationError(f"Credentials file not found: {creds_path}")

    return creds_path


class FirestoreClient:
    """Manages Firestore database connections with singleton pattern.

    Example:
        >>> db = FirestoreClient.get_client("(default)")
        >>> institutions = db.collection("institutions")
    """

    _instances: Dict[str, gcloud_firestore.Client] = {}
    _firebase_initialized: bool = False

    @classmethod
    def get_client(
        cls, database_name: str = DEFAULT_DATABASE, credentials_path: Optional[str] = None
    ) -> gcloud_firestore.Client:
        """
        Get or create Firestore client for specified database.

        Args:
            database_name: Firestore database name. Use "(default)" for default database.
            credentials_path: Optional path to service account JSON. If not provided,
                            uses GOOGLE_APPLICATION_CREDENTIALS environment variable.

        Returns:
            Firestore client instance for the specified database.

        Raises:
            ConfigurationError: If credentials are missing or the file does not exist.
            InitializationError: If Firebase Admin or the client fails to initialize.
        """
        if database_name in cls._instances:
            logger.debug(f"Reusing existing Firestore client for: {database_name}")
            return cls._instances[database_name]

        if not cls._firebase_initialized:
            cls._initialize_firebase_admin(credentials_path)
            cls._firebase_initialized = True

        client = cls._create_database_client(database_name, credentials_path)

        cls._instances[database_name] = client
        logger.info(f"Created new Firestore client for database: {database_name}")

        return client

    @classmethod
    def _initialize_firebase_admin(cls, credentials_path: Optional[str] = None) -> None:
        """Initialize Firebase Admin SDK (only once per process)."""
        try:
            firebase_admin.get_app()
            logger.info("Firebase Admin already initialized, reusing existing app")
            return
        except ValueError:
            pass

        creds_path = _resolve_credentials_path(credentials_path)

        try:
            cred = credentials.Certificate(creds_path)
            firebase_admin.initialize_app(cred)
            logger.info("Initialized Firebase Admin SDK")
        except Exception as e:
            raise InitializationError(f"Failed to initialize Firebase Admin: {str(e)}") from e

    @classmethod
    def _create_database_client(
        cls, database_name: str, credentials_path: Optional[str] = None
    ) -> gcloud_firestore.Client:
        """Create a Firestore client for the project named in the service account."""
        creds_path = _resolve_credentials_path(credentials_path)

        try:
            cred = credentials.Certificate(creds_path)
            project_id = cred.project_id

            if database_name == DEFAULT_DATABASE:
                client = gcloud_firestore.Client(project=project_id)
            else:
                client = gcloud_firestore.Client(project=project_id, database=database_name)

            logger.info(f"Connected to Firestore database: {database_name} in project {project_id}")
            return client

        except Exception as e:
            raise InitializationError(
                f"Failed to create Firestore client for {database_name}: {str(e)}"
            ) from e

    @classmethod
    def reset_instances(cls) -> None:
        """
        Reset all cached client instances.

        Only for tests; commands keep one client for their whole run.
        """
        cls._instances.clear()
        cls._firebase_initialized = False
        logger.info("Reset all Firestore client instances")
