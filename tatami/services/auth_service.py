"""Resolution of the current caller from a JWT, and password hashing."""
from datetime import UTC, datetime, timedelta

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger
from sqlalchemy.orm import Session

from tatami.core.config import get_settings
from tatami.core.database import get_db
from tatami.core.errors import ApiError
from tatami.models.user import User
from tatami.services.security_context import Principal, SecurityContext

security = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


def create_token(principal: Principal) -> str:
    settings = get_settings()
    payload = {
        **principal.to_claims(),
        "exp": datetime.now(UTC) + timedelta(minutes=settings.jwt_expire_minutes),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError as err:
        raise ApiError(401, "unauthorized", "Token expired") from err
    except jwt.InvalidTokenError as err:
        raise ApiError(401, "unauthorized", "Invalid token") from err


def get_security_context(
    creds: HTTPAuthorizationCredentials | None = Depends(security),
) -> SecurityContext:
    """Requires authentication. Raises 401 without a valid bearer token."""
    if not creds:
        raise ApiError(401, "unauthorized", "Not authenticated")
    claims = decode_token(creds.credentials)
    if not claims.get("sub"):
        raise ApiError(401, "unauthorized", "Invalid token")
    return SecurityContext(principal=Principal.from_claims(claims))


def get_current_user(
    context: SecurityContext = Depends(get_security_context),
    db: Session = Depends(get_db),
) -> User:
    user = db.query(User).filter(User.login == context.login, User.activated.is_(True)).first()
    if not user:
        raise ApiError(401, "unauthorized", "User not found or inactive")
    return user
