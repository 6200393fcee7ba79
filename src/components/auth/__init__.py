"""
Auth component - Registration, login and user administration.

Tokens are stateless JWTs; the API layer stores them in an HttpOnly cookie.
"""

from .component import (
    ACCOUNT_DISABLED,
    INVALID_CREDENTIALS,
    run_create_user,
    run_list_users,
    run_login,
    run_register,
    run_update_user,
)
from .models import (
    AuthOutput,
    CreateUserInput,
    ListUsersInput,
    LoginInput,
    RegisterInput,
    UpdateUserInput,
    UserListOutput,
    UserOutput,
)
from .ports import AuthAdapterPort, CompanyRepoPort, TimePort, UserRepoPort

__all__ = [
    # Entry points
    "run_register",
    "run_login",
    "run_create_user",
    "run_update_user",
    "run_list_users",
    "INVALID_CREDENTIALS",
    "ACCOUNT_DISABLED",
    # Models
    "AuthOutput",
    "CreateUserInput",
    "ListUsersInput",
    "LoginInput",
    "RegisterInput",
    "UpdateUserInput",
    "UserListOutput",
    "UserOutput",
    # Ports
    "AuthAdapterPort",
    "CompanyRepoPort",
    "TimePort",
    "UserRepoPort",
]
