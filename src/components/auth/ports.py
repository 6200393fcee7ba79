from datetime import datetime
from typing import Protocol
from uuid import UUID

from src.domain.entities import Company, User


class UserRepoPort(Protocol):
    def get_by_email(self, email: str) -> User | None: ...
    def get_by_id(self, user_id: UUID) -> User | None: ...
    def save(self, user: User) -> User: ...
    def list_by_company(self, company_id: UUID) -> list[User]: ...


class CompanyRepoPort(Protocol):
    def save(self, company: Company) -> Company: ...
    def get_by_id(self, company_id: UUID) -> Company | None: ...


class AuthAdapterPort(Protocol):
    def verify_password(self, plain: str, hashed: str) -> bool: ...
    def hash_password(self, plain: str) -> str: ...
    def create_token(self, user_id: object, ttl_minutes: int) -> str: ...


class TimePort(Protocol):
    """Port for time operations - enables deterministic testing."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
