"""Account payloads. JSON keys are camelCase; snake_case is accepted on input."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tatami.models.user import User


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class UserProfile(CamelModel):
    login: str
    username: str
    domain: str
    avatar: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    job_title: str | None = None
    phone_number: str | None = None
    theme: str | None = None
    preferences_mention_email: bool = True
    daily_digest_subscription: bool = False
    weekly_digest_subscription: bool = False
    rss_uid: str | None = None
    is_new: bool = True
    activated: bool = True


class UserProfileUpdate(CamelModel):
    first_name: str | None = None
    last_name: str | None = None
    job_title: str | None = None
    phone_number: str | None = None


class Preferences(CamelModel):
    theme: str = ""
    themes_list: list[str] = Field(default_factory=list)
    mention_email: bool = False
    rss_uid: str | None = None
    rss_uid_active: bool = False
    daily_digest: bool = False
    weekly_digest: bool = False

    @classmethod
    def from_user(cls, user: User, themes: list[str] | None = None) -> "Preferences":
        return cls(
            theme=user.theme or "",
            themes_list=list(themes or []),
            mention_email=bool(user.preferences_mention_email),
            rss_uid=user.rss_uid,
            rss_uid_active=bool(user.rss_uid),
            daily_digest=bool(user.daily_digest_subscription),
            weekly_digest=bool(user.weekly_digest_subscription),
        )


class UserPassword(CamelModel):
    old_password: str | None = None
    new_password: str | None = None
    new_password_confirmation: str | None = None
