from dataclasses import dataclass, field

from src.domain.entities import Company, User
from src.domain.errors import OperationError


@dataclass
class RegisterInput:
    email: str
    password: str
    display_name: str
    company_name: str


@dataclass
class LoginInput:
    email: str
    password: str


@dataclass
class CreateUserInput:
    actor: User
    email: str
    password: str
    roles: list[str]
    display_name: str | None = None


@dataclass
class UpdateUserInput:
    actor: User
    target_id: str
    new_roles: list[str] | None = None
    new_status: str | None = None
    display_name: str | None = None


@dataclass
class ListUsersInput:
    actor: User


@dataclass
class AuthOutput:
    user: User | None = None
    company: Company | None = None
    token: str | None = None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class UserOutput:
    user: User | None = None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False


@dataclass
class UserListOutput:
    users: list[User]
    errors: list[OperationError] = field(default_factory=list)
    success: bool = False
