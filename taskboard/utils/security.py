from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt


def get_password_hash(password: str, rounds: int = 10) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # malformed hash, or a password bcrypt refuses (over 72 bytes)
        return False


def create_access_token(data: dict, secret_key: str, algorithm: str, expires_delta: timedelta) -> str:
    issued_at = datetime.now(timezone.utc)
    to_encode = data.copy()
    to_encode.update({
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + expires_delta).timestamp()),
    })
    return jwt.encode(to_encode, secret_key, algorithm=algorithm)


def decode_access_token(token: str, secret_key: str, algorithm: str) -> dict | None:
    """Claims of a token with a valid signature and expiry, otherwise None."""
    try:
        return jwt.decode(token, secret_key, algorithms=[algorithm])
    except JWTError:
        return None
