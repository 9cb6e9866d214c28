from tatami.schemas.account import (
    Preferences,
    UserPassword,
    UserProfile,
    UserProfileUpdate,
)

__all__ = [
    "UserProfile", "UserProfileUpdate",
    "Preferences", "UserPassword",
]
