"""REST endpoints for the current user's account."""
import html

from fastapi import APIRouter, Depends, Request, Response, status
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tatami.core.config import get_settings
from tatami.core.database import get_db
from tatami.core.errors import AccountError, AccountErrorKind, status_for_kind
from tatami.core.limiter import limiter
from tatami.models.user import User
from tatami.schemas.account import Preferences, UserPassword, UserProfile, UserProfileUpdate
from tatami.services import user_service
from tatami.services.auth_service import create_token, get_current_user, get_security_context, verify_password
from tatami.services.domain_util import get_domain_from_login
from tatami.services.security_context import AUTH_TOKEN_HEADER, SecurityContext

router = APIRouter(prefix="/rest", tags=["account"])

PROFILE_TEXT_FIELDS = ("first_name", "last_name", "job_title", "phone_number")


def sanitize_text(value: str) -> str:
    """Blank out markup openers, then escape what remains."""
    return html.escape(value.replace("<", " "), quote=False)


def _themes() -> list[str]:
    return get_settings().themes


@router.get("/account/profile", response_model=UserProfile)
def get_profile(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    logger.debug("REST request to get account's profile")
    return user_service.get_user_by_login(db, current_user.login)


@router.put("/account/profile", response_model=UserProfile)
def update_profile(
    data: UserProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    for field in PROFILE_TEXT_FIELDS:
        value = getattr(data, field)
        if value is not None:
            setattr(current_user, field, sanitize_text(value))
    try:
        user_service.update_user(db, current_user)
        db.commit()
    except AccountError as err:
        db.rollback()
        logger.debug(f"Profile update rejected for {current_user.login}: {err}")
        return Response(status_code=status_for_kind(err.kind))
    logger.debug(f"User updated : {current_user!r}")
    return current_user


@router.delete("/account/profile")
def delete_profile(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    logger.debug(f"Deleting account : {current_user!r}")
    user_service.delete_user(db, current_user)
    db.commit()
    return Response(status_code=status.HTTP_200_OK)


@router.get("/account/preferences", response_model=Preferences)
def get_preferences(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    logger.debug("REST request to get account's preferences")
    user = user_service.get_user_by_login(db, current_user.login)
    return Preferences.from_user(user, _themes())


@router.post("/account/preferences", response_model=Preferences)
def update_preferences(
    data: Preferences,
    response: Response,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    context: SecurityContext = Depends(get_security_context),
):
    logger.debug("REST request to set account's preferences")
    try:
        theme = (data.theme or "").strip()
        if not theme:
            raise AccountError(AccountErrorKind.EMPTY_THEME, "theme")
        current_user.theme = theme
        current_user.preferences_mention_email = data.mention_email
        current_user.daily_digest_subscription = data.daily_digest
        current_user.weekly_digest_subscription = data.weekly_digest
        current_user.rss_uid = user_service.update_rss_timeline_preferences(db, current_user, data.rss_uid_active)

        user_service.update_user(db, current_user)
        user_service.update_daily_digest_registration(db, current_user, data.daily_digest)
        user_service.update_weekly_digest_registration(db, current_user, data.weekly_digest)
        user_service.update_theme_preferences(db, current_user, theme)
        db.commit()

        refreshed = context.with_theme(theme)
        response.headers[AUTH_TOKEN_HEADER] = create_token(refreshed.principal)
        logger.debug(f"User updated : {current_user!r}")
        return Preferences.from_user(current_user, _themes())
    except Exception as err:
        logger.opt(exception=err).debug("Error during setting preferences")
        db.rollback()
        response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        return _best_effort_preferences(db, current_user, data)


def _best_effort_preferences(db: Session, user: User, submitted: Preferences) -> Preferences:
    """Stored preferences of the user, or the submitted ones if they cannot be read."""
    try:
        db.refresh(user)
        preferences = Preferences.from_user(user)
    except SQLAlchemyError as err:
        logger.warning(f"Could not reload stored preferences, echoing submitted ones: {err}")
        preferences = submitted.model_copy()
    preferences.themes_list = _themes()
    return preferences


@router.get("/account/password", response_model=UserPassword)
def check_password_managed_by_ldap(current_user: User = Depends(get_current_user)):
    domain = get_domain_from_login(current_user.login)
    if user_service.is_domain_handled_by_ldap(domain):
        logger.debug(f"Password of {current_user.login} is managed by LDAP")
        return Response(status_code=status_for_kind(AccountErrorKind.LDAP_MANAGED))
    return UserPassword()


@router.post("/account/password", response_model=UserPassword)
@limiter.limit("10 per minute")
def set_password(
    request: Request,
    data: UserPassword,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    logger.debug("REST request to set account's password")
    try:
        if not verify_password(data.old_password or "", current_user.password):
            raise AccountError(AccountErrorKind.OLD_PASSWORD_MISMATCH, "oldPassword")
        if data.new_password != data.new_password_confirmation:
            raise AccountError(AccountErrorKind.CONFIRMATION_MISMATCH, "newPasswordConfirmation")
        user_service.update_password(db, current_user, data.new_password)
        db.commit()
    except AccountError as err:
        db.rollback()
        logger.debug(f"Password change refused for {current_user.login}: {err.kind.value}")
        return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
    except Exception:
        db.rollback()
        logger.exception(f"Password change failed for {current_user.login}")
        return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
    logger.debug(f"User password updated : {current_user.login}")
    return UserPassword()


@router.delete("/visit")
def finish_visit(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    current_user.is_new = False
    user_service.update_user(db, current_user)
    db.commit()
    return Response(status_code=status.HTTP_200_OK)
