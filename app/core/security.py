import jwt
from pydantic import BaseModel
from typing import Optional

from app.config import settings
from app.core.exceptions import AuthenticationError


class TokenData(BaseModel):
    """Claims we rely on from the identity provider's access token."""
    user_id: str
    email: Optional[str] = None


def verify_access_token(token: str) -> TokenData:
    """
    Verify a bearer token issued by the identity provider.
    The `sub` claim is the user id, shared with profiles.id.
    """
    try:
        payload = jwt.decode(
            token,
            settings.AUTH_JWT_SECRET,
            algorithms=[settings.AUTH_JWT_ALGORITHM],
            audience=settings.AUTH_JWT_AUDIENCE,
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Could not validate credentials")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Token has no subject")

    return TokenData(user_id=str(user_id), email=payload.get("email"))
