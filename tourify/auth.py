from typing import cast
from fastapi import HTTPException, status, Request
import jwt
from datetime import datetime, timedelta
import logging

from tourify.core.config import get_settings

logger = logging.getLogger(__name__)


async def get_current_user(request: Request) -> str:
    """
    Get the current authenticated user from the JWT token in the request.

    Tokens are issued by the external auth provider; only the ``sub``
    claim is used.

    Args:
        request: FastAPI Request object

    Returns:
        User ID from token

    Raises:
        HTTPException: If token is invalid or expired
    """
    settings = get_settings()
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        logger.debug("No Bearer token found in Authorization header")
        raise credentials_exception

    token = auth_header.split(" ", 1)[1]
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.debug("Token has expired")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.PyJWTError as e:
        logger.debug(f"JWT Error: {str(e)}")
        raise credentials_exception

    user_id = cast(str, payload.get("sub"))
    if not user_id:
        logger.debug("No user_id found in token payload")
        raise credentials_exception
    return user_id


def create_access_token(user_id: str) -> str:
    """
    Create a JWT access token for local tooling and tests.

    Args:
        user_id: User ID to encode in token

    Returns:
        JWT access token
    """
    settings = get_settings()
    expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {
        "sub": user_id,
        "exp": expire
    }
    encoded_jwt = jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    if isinstance(encoded_jwt, (bytes, bytearray)):
        return encoded_jwt.decode('utf-8')
    return str(encoded_jwt)
