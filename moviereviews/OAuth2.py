from datetime import datetime, timezone, timedelta
from typing import Optional

from jose import jwt, JWTError
from fastapi import Depends
from fastapi.security import APIKeyHeader
from pydantic import ValidationError as SchemaValidationError
import logging

from .config import Settings
from .dependencies import get_settings
from .exceptions import UnauthorizedError, ValidationError
from .schemas import SignIn, TokenData, UserCreate
from .utils import hash

ALGORITHM = "HS256"
TOKEN_SCHEME = "JWT"

logger = logging.getLogger("moviereviews.auth")

# Clients send back the token exactly as /signin returned it: "JWT <token>"
authorization_header = APIKeyHeader(name="Authorization", scheme_name=TOKEN_SCHEME, auto_error=False)


# Create Access Token
def create_access_token(data: dict, settings: Settings) -> str:
    payload = data.copy()
    expires = datetime.now(timezone.utc) + timedelta(minutes=settings.TOKEN_EXPIRE_IN_MINUTES)
    payload.update({"exp": expires})
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def authenticate(token: str, settings: Settings) -> TokenData:
    """Verify signature and expiry of `token` and return the identity it carries."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"Token rejected: {e}")
        raise UnauthorizedError("Invalid or expired token")

    user_id = payload.get("id")
    username = payload.get("username")
    if not user_id or not username:
        raise UnauthorizedError("Invalid or expired token")
    try:
        return TokenData(id=user_id, username=username)
    except SchemaValidationError:
        raise UnauthorizedError("Invalid or expired token")


def parse_authorization(header: Optional[str]) -> str:
    if not header:
        raise UnauthorizedError("Missing authorization token")
    scheme, _, token = header.strip().partition(" ")
    if scheme.upper() != TOKEN_SCHEME or not token.strip():
        raise UnauthorizedError(f"Authorization header must be '{TOKEN_SCHEME} <token>'")
    return token.strip()


async def get_current_user(
    authorization: Optional[str] = Depends(authorization_header),
    settings: Settings = Depends(get_settings),
) -> Optional[TokenData]:
    if not settings.REQUIRE_AUTH:
        return None
    return authenticate(parse_authorization(authorization), settings)


async def signup(store, name: Optional[str], username: str, password: str) -> None:
    try:
        user = UserCreate(name=name, username=username, password=password)
    except SchemaValidationError:
        raise ValidationError("Please include both username and password to signup.")

    await store.create(user.name, user.username, hash(user.password))
    logger.info(f"New user created: username={user.username}")


async def signin(store, username: str, password: str, settings: Settings) -> str:
    try:
        credentials = SignIn(username=username, password=password)
    except SchemaValidationError:
        raise ValidationError("Please include both username and password to signin.")

    user = await store.find_by_username(credentials.username)
    if not user or not store.verify_password(user, credentials.password):
        logger.warning(f"Signin failed: username={credentials.username}")
        raise UnauthorizedError("Authentication failed.")

    token = create_access_token({"id": str(user.id), "username": user.username}, settings)
    return f"{TOKEN_SCHEME} {token}"
