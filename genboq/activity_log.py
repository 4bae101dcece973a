# genboq/activity_log.py
# Fire-and-forget audit sink. Engines report failures here; a failing sink is
# logged and dropped, never raised into the operation that called it.

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

import firebase_admin
import numpy as np
import pandas as pd
from firebase_admin import credentials, firestore

logger = logging.getLogger(__name__)

ACTIVITY_COLLECTION = 'activityLogs'


def sanitize_for_firestore(data):
    """
    Recursively converts NumPy, pandas, and other non-serializable types
    to native Python types that Firestore can handle.
    """
    if isinstance(data, dict):
        return {str(key): sanitize_for_firestore(value) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return [sanitize_for_firestore(item) for item in data]
    if isinstance(data, np.integer):
        return int(data)
    if isinstance(data, np.floating):
        return None if np.isnan(data) else float(data)
    if isinstance(data, np.bool_):
        return bool(data)
    if isinstance(data, np.ndarray):
        return sanitize_for_firestore(data.tolist())
    if isinstance(data, pd.Series):
        return sanitize_for_firestore(data.to_dict())
    if isinstance(data, pd.DataFrame):
        return sanitize_for_firestore(data.to_dict('records'))
    if isinstance(data, (str, int, float, bool)) or data is None:
        if isinstance(data, float) and pd.isna(data):
            return None
        return data
    if hasattr(data, 'to_dict'):
        return sanitize_for_firestore(data.to_dict())
    return str(data)


class ActivityLogger:
    def log(self, action: str, resource_type: str, details: Optional[Mapping[str, Any]] = None,
            user_email: Optional[str] = None) -> None:
        raise NotImplementedError


class LoggingActivityLogger(ActivityLogger):
    """Writes activity records to the application log only."""

    def log(self, action, resource_type, details=None, user_email=None):
        logger.info(f"Activity {action} on {resource_type} by {user_email or 'unknown'}: {dict(details or {})}")


class FirestoreActivityLogger(ActivityLogger):
    """Appends activity records to a Firestore collection."""

    def __init__(self, db, collection: str = ACTIVITY_COLLECTION):
        self.db = db
        self.collection = collection

    def log(self, action, resource_type, details=None, user_email=None):
        record: Dict[str, Any] = {
            'action': action,
            'resourceType': resource_type,
            'userEmail': user_email or 'unknown',
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'details': dict(details or {}),
        }
        self.db.collection(self.collection).add(sanitize_for_firestore(record))


def initialize_firebase(credentials_info: Mapping[str, Any]):
    """Initialize the Firebase app once and return a Firestore client."""
    if not firebase_admin._apps:
        creds_dict = dict(credentials_info)
        creds_dict['private_key'] = creds_dict.get('private_key', '').replace('\\n', '\n')
        firebase_admin.initialize_app(credentials.Certificate(creds_dict))
    return firestore.client()


def log_activity_safely(activity_logger: Optional[ActivityLogger], action: str, resource_type: str,
                        details: Optional[Mapping[str, Any]] = None, user_email: Optional[str] = None) -> None:
    if activity_logger is None:
        return
    try:
        activity_logger.log(action, resource_type, details=details, user_email=user_email)
    except Exception as e:
        logger.warning(f"Failed to log activity {action}: {e}")
