from datetime import timedelta
from uuid import UUID

from src.api.auth_utils import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)


class JWTAuthAdapter:
    """Argon2 password hashes and signed access tokens whose subject is the user id."""

    def hash_password(self, password: str) -> str:
        return get_password_hash(password)

    def verify_password(self, plain: str, hashed: str) -> bool:
        return verify_password(plain, hashed)

    def create_token(self, user_id: object, ttl_minutes: int) -> str:
        return create_access_token({"sub": str(user_id)}, timedelta(minutes=ttl_minutes))

    def validate_token(self, token: str) -> UUID | None:
        """Return the user id carried by a valid, unexpired token."""
        payload = decode_access_token(token)
        subject = payload.get("sub") if payload else None
        if not isinstance(subject, str):
            return None
        try:
            return UUID(subject)
        except ValueError:
            return None
