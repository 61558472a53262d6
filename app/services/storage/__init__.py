# app/services/storage/__init__.py
"""
Storage facade.

Usage across the codebase:
    from app.services import storage

Spaces and Cloud Storage helpers live in `storage_gcp`; teams, tours and user
profiles have their own modules on top of the same Firestore client.
"""
from app.services.storage_gcp import *  # noqa: F401,F403
from app.services.teams import *  # noqa: F401,F403
from app.services.tours import *  # noqa: F401,F403
from app.services.users import *  # noqa: F401,F403
