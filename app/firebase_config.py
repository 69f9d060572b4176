"""Firebase initialization helpers.

Integration details:
- Reads the project id and optional service-account path from `settings` (env-backed).
- Without a credentials path the Admin SDK uses application-default credentials, which
  is what the hosted functions runtime provides.
- Initialization is process-wide and idempotent: the default app is created once and reused.
"""

import logging
from typing import Optional

import firebase_admin
from firebase_admin import credentials, firestore

from app.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


def initialize_firebase(settings: Optional[Settings] = None) -> firebase_admin.App:
    """Initialize (or reuse) the default Firebase app from env-backed settings.

    Raises when credentials are configured but unusable so the process fails at
    startup rather than on the first trigger.
    """
    settings = settings or default_settings
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    options = {}
    if settings.firebase_project_id:
        options["projectId"] = settings.firebase_project_id

    try:
        if settings.firebase_credentials_path:
            cred = credentials.Certificate(settings.firebase_credentials_path)
        else:
            cred = credentials.ApplicationDefault()
        app = firebase_admin.initialize_app(cred, options or None)
    except Exception as e:
        logger.error(f"Failed to initialize Firebase: {str(e)}")
        raise
    logger.info("Firebase initialized successfully (project=%s)", app.project_id)
    return app


def get_firestore_client(app: Optional[firebase_admin.App] = None):
    """Return the Firestore client bound to `app` (default app when omitted)."""
    return firestore.client(app)


__all__ = ["initialize_firebase", "get_firestore_client"]
