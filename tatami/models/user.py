from datetime import UTC, datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Text, UniqueConstraint

from tatami.core.database import Base

DAILY = "daily"
WEEKLY = "weekly"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    login = Column(Text, unique=True, nullable=False, index=True)  # username@domain
    username = Column(Text, nullable=False)
    domain = Column(Text, nullable=False, index=True)
    password = Column(Text, nullable=False)  # bcrypt hash
    avatar = Column(Text, nullable=True)
    first_name = Column(Text, nullable=True)
    last_name = Column(Text, nullable=True)
    job_title = Column(Text, nullable=True)
    phone_number = Column(Text, nullable=True)
    theme = Column(Text, nullable=True)
    preferences_mention_email = Column(Boolean, nullable=False, default=True)
    daily_digest_subscription = Column(Boolean, nullable=False, default=False)
    weekly_digest_subscription = Column(Boolean, nullable=False, default=False)
    rss_uid = Column(Text, unique=True, nullable=True)
    is_new = Column(Boolean, nullable=False, default=True)
    activated = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(UTC))

    def __repr__(self) -> str:
        return f"<User login={self.login!r} theme={self.theme!r} is_new={self.is_new}>"


class DigestRegistration(Base):
    """A user's subscription to the daily or weekly digest of their domain."""

    __tablename__ = "digest_registrations"
    __table_args__ = (UniqueConstraint("domain", "login", "frequency", name="uq_digest_domain_login_frequency"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    domain = Column(Text, nullable=False, index=True)
    login = Column(Text, nullable=False)
    frequency = Column(Text, nullable=False)  # daily, weekly
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(UTC))
