import logging
from datetime import datetime, timedelta, timezone
from typing import Annotated, Optional

import bcrypt
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from jose import JWTError, jwt

from api.dependencies import get_settings, get_user_repository
from config import ACCESS_TOKEN_COOKIE, Settings
from errors import Unauthenticated
from user_repository import UserRepository

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)

# Bearer token in the Authorization header, with the session cookie as fallback.
# auto_error is off so a missing token reaches our own 401 envelope.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def create_access_token(data: dict, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    to_encode.update({"exp": datetime.now(timezone.utc) + expires_delta})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_user_id(token: str, settings: Settings) -> Optional[str]:
    """Returns the user id carried by a valid token, or None."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    user_id = payload.get("sub")
    return str(user_id) if user_id else None


async def get_current_user_id(
    request: Request,
    token: Annotated[Optional[str], Depends(oauth2_scheme)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> str:
    """
    Resolves the caller from the bearer token or the session cookie.
    Raises Unauthenticated when neither carries a valid token.
    """
    token = token or request.cookies.get(ACCESS_TOKEN_COOKIE)
    if not token:
        raise Unauthenticated("Please sign in to access this resource")

    user_id = decode_user_id(token, settings)
    if user_id is None:
        raise Unauthenticated("Invalid or expired session")
    return user_id


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    if not hashed_password:
        return False
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


@router.post("/login", response_model=None)
async def login_for_access_token(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    users: Annotated[UserRepository, Depends(get_user_repository)],
    settings: Annotated[Settings, Depends(get_settings)],
):
    user = await users.get_by_email(form_data.username)

    if not user or not verify_password(form_data.password, user.passwordHash):
        raise Unauthenticated("Invalid email or password.")

    access_token = create_access_token(data={"sub": user.id}, settings=settings)
    response = JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "access_token": access_token,
            "token_type": "bearer",
            "email": user.email,
            "name": user.name,
        },
    )
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        access_token,
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        samesite="lax",
    )
    logger.info(f"User {user.id} signed in")
    return response


@router.post("/logout", status_code=status.HTTP_200_OK)
async def logout_user(user_id: Annotated[str, Depends(get_current_user_id)]):
    """
    Clears the session cookie. Bearer clients just drop their token.
    """
    response = JSONResponse(content={"success": True, "message": "User logged out successfully."})
    response.delete_cookie(ACCESS_TOKEN_COOKIE)
    return response
