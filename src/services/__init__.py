"""
Application services built on the record store.
"""

from .auth import AuthResult, AuthService
from .catalog import CatalogService
from .progress_service import ProgressService
from .community import CommunityService
from .admin import AdminService

__all__ = [
    "AuthResult",
    "AuthService",
    "CatalogService",
    "ProgressService",
    "CommunityService",
    "AdminService",
]
