"""Persistence of users, their preferences and digest registrations.

Writes are flushed, not committed: the caller owns the transaction.
"""
import uuid

from loguru import logger
from sqlalchemy.orm import Session

from tatami.core.config import get_settings
from tatami.core.errors import AccountError, AccountErrorKind
from tatami.models.user import DAILY, WEEKLY, DigestRegistration, User
from tatami.services.auth_service import hash_password
from tatami.services.domain_util import get_domain_from_login, get_username_from_login

# Column -> maximum length accepted on write.
FIELD_LIMITS = {
    "first_name": 50,
    "last_name": 50,
    "job_title": 100,
    "phone_number": 20,
    "theme": 50,
}
PASSWORD_MIN_LENGTH = 4
# bcrypt only hashes the first 72 bytes and rejects longer input.
PASSWORD_MAX_BYTES = 72


def get_user_by_login(db: Session, login: str) -> User | None:
    return db.query(User).filter(User.login == login).first()


def create_user(db: Session, login: str, password: str, **profile) -> User:
    user = User(
        login=login,
        username=get_username_from_login(login),
        domain=get_domain_from_login(login),
        password=hash_password(password),
        **profile,
    )
    update_user(db, user)
    db.commit()
    return user


def validate_user(user: User) -> None:
    for field, limit in FIELD_LIMITS.items():
        value = getattr(user, field)
        if value is not None and len(value) > limit:
            raise AccountError(AccountErrorKind.PERSISTENCE_REJECTED, field)


def update_user(db: Session, user: User) -> User:
    validate_user(user)
    db.add(user)
    db.flush()
    logger.debug(f"User saved: {user!r}")
    return user


def delete_user(db: Session, user: User) -> None:
    db.query(DigestRegistration).filter(DigestRegistration.user_id == user.id).delete(synchronize_session=False)
    db.delete(user)
    db.flush()
    logger.info(f"Account deleted: {user.login}")


def update_password(db: Session, user: User, raw_password: str) -> None:
    if not raw_password or len(raw_password) < PASSWORD_MIN_LENGTH:
        raise AccountError(AccountErrorKind.PERSISTENCE_REJECTED, "password")
    if len(raw_password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise AccountError(AccountErrorKind.PERSISTENCE_REJECTED, "password")
    user.password = hash_password(raw_password)
    db.flush()
    logger.debug(f"Password updated for {user.login}")


def is_domain_handled_by_ldap(domain: str) -> bool:
    return domain.lower() in get_settings().ldap_domain_list


def update_rss_timeline_preferences(db: Session, user: User, active: bool) -> str | None:
    """Return the RSS feed id the user should have after the change.

    Activating keeps an existing id; deactivating drops it. The caller stores
    the result on the user.
    """
    if not active:
        if user.rss_uid:
            logger.debug(f"RSS timeline disabled for {user.login}")
        return None
    if user.rss_uid:
        return user.rss_uid
    rss_uid = uuid.uuid4().hex
    while db.query(User.id).filter(User.rss_uid == rss_uid).first() is not None:
        rss_uid = uuid.uuid4().hex
    logger.debug(f"RSS timeline enabled for {user.login}")
    return rss_uid


def update_theme_preferences(db: Session, user: User, theme: str) -> None:
    user.theme = theme
    validate_user(user)
    db.flush()


def update_daily_digest_registration(db: Session, user: User, registered: bool) -> None:
    _update_digest_registration(db, user, DAILY, registered)


def update_weekly_digest_registration(db: Session, user: User, registered: bool) -> None:
    _update_digest_registration(db, user, WEEKLY, registered)


def _update_digest_registration(db: Session, user: User, frequency: str, registered: bool) -> None:
    existing = (
        db.query(DigestRegistration)
        .filter(
            DigestRegistration.domain == user.domain,
            DigestRegistration.login == user.login,
            DigestRegistration.frequency == frequency,
        )
        .first()
    )
    if registered and existing is None:
        db.add(DigestRegistration(user_id=user.id, domain=user.domain, login=user.login, frequency=frequency))
    elif not registered and existing is not None:
        db.delete(existing)
    else:
        return
    db.flush()
    logger.debug(f"{frequency.capitalize()} digest registration for {user.login}: {registered}")


def get_digest_registrations(db: Session, domain: str, frequency: str) -> list[str]:
    """Logins of a domain registered for the given digest."""
    rows = (
        db.query(DigestRegistration.login)
        .filter(DigestRegistration.domain == domain, DigestRegistration.frequency == frequency)
        .order_by(DigestRegistration.login)
        .all()
    )
    return [login for (login,) in rows]
