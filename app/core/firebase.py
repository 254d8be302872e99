import logging

import firebase_admin
from app.config import Settings
from firebase_admin import credentials

logger = logging.getLogger(__name__)


def initialize_firebase(settings: Settings) -> firebase_admin.App | None:
  """Initialize the Firebase Admin SDK once per process for FCM delivery."""
  if firebase_admin._apps:
    return firebase_admin.get_app()

  if not settings.firebase_project_id:
    logger.warning("Firebase Project ID not set. Firebase Admin SDK not initialized.")
    return None

  options = {"projectId": settings.firebase_project_id, "httpTimeout": settings.push_timeout_seconds}
  if settings.firebase_service_account_json_path:
    cred = credentials.Certificate(settings.firebase_service_account_json_path)
    app = firebase_admin.initialize_app(cred, options)
  else:
    # Use default credentials (e.g. Google Application Default Credentials)
    app = firebase_admin.initialize_app(options=options)
  logger.info("Firebase Admin SDK initialized successfully.")
  return app
