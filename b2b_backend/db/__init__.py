"""Database package."""

from b2b_backend.db.base import Base, commit_or_conflict, get_db, init_db
from b2b_backend.db.tables import (
    CompanyPage,
    CompanyPageMember,
    Connection,
    Job,
    JobApplication,
    Notification,
    User,
    UserProfile,
)

__all__ = [
    "Base",
    "get_db",
    "init_db",
    "commit_or_conflict",
    "User",
    "UserProfile",
    "CompanyPage",
    "CompanyPageMember",
    "Notification",
    "Connection",
    "Job",
    "JobApplication",
]
