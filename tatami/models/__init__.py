from tatami.core.database import Base
from tatami.models.user import DAILY, WEEKLY, DigestRegistration, User

__all__ = [
    "Base",
    "User",
    "DigestRegistration",
    "DAILY",
    "WEEKLY",
]
