import datetime
from typing import Optional
import bcrypt
from jose import jwt, JWTError, ExpiredSignatureError
from pydantic import BaseModel
from marketplace_backend.settings import settings


class TokenClaims(BaseModel):
    user_id: str
    role: Optional[str] = None


class TokenError(Exception):
    pass


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")

def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False

def create_access_token(user_id: str, role: Optional[str] = None, expires_minutes: Optional[int] = None) -> str:
    now = datetime.datetime.now(datetime.timezone.utc)
    lifetime = expires_minutes if expires_minutes is not None else settings.JWT_EXPIRE_MINUTES
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + datetime.timedelta(minutes=lifetime),
    }
    if role is not None:
        payload["role"] = role
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

def verify_access_token(token: str) -> TokenClaims:
    try:
        claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise TokenError("Token expired")
    except JWTError as e:
        raise TokenError(f"Invalid token: {e}")

    user_id = claims.get("sub")
    if not user_id:
        raise TokenError("Token has no subject")

    return TokenClaims(user_id=user_id, role=claims.get("role"))
