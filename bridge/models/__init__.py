"""
Database Models
"""
from .user import User
from .upgrade_request import UpgradeRequest
from .profile import StartupProfile
from .career_application import CareerApplication

__all__ = [
    "User",
    "UpgradeRequest",
    "StartupProfile",
    "CareerApplication",
]

# Export Base from database
from bridge.core.database import Base
