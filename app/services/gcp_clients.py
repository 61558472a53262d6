# app/services/gcp_clients.py
import json
import logging
from functools import lru_cache

import firebase_admin
from firebase_admin import credentials, firestore as fb_firestore, storage as fb_storage
from google.cloud import firestore
from google.cloud import storage as gcs

from app.core.config import settings

logger = logging.getLogger(__name__)


def _credential():
    if settings.firebase_service_account:
        return credentials.Certificate(json.loads(settings.firebase_service_account))
    if settings.firebase_client_email and settings.firebase_private_key:
        return credentials.Certificate({
            "type": "service_account",
            "project_id": settings.firebase_project_id,
            "client_email": settings.firebase_client_email,
            # .env files carry the key with literal "\n"
            "private_key": settings.firebase_private_key.replace("\\n", "\n"),
            "token_uri": "https://oauth2.googleapis.com/token",
        })
    logger.warning("No Firebase service account configured; using Application Default Credentials")
    return credentials.ApplicationDefault()


@lru_cache(maxsize=1)
def get_firebase_app() -> firebase_admin.App:
    try:
        return firebase_admin.get_app()
    except ValueError:
        options = {"storageBucket": settings.storage_bucket} if settings.storage_bucket else {}
        if settings.firebase_project_id:
            options["projectId"] = settings.firebase_project_id
        app = firebase_admin.initialize_app(_credential(), options)
        logger.info("Firebase Admin SDK initialized (project=%s)", app.project_id)
        return app


@lru_cache(maxsize=1)
def get_firestore_client() -> firestore.Client:
    return fb_firestore.client(get_firebase_app())


@lru_cache(maxsize=1)
def get_bucket() -> gcs.Bucket:
    return fb_storage.bucket(app=get_firebase_app())
