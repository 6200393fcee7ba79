import logging
from typing import cast
from uuid import UUID

from src.domain.entities import Company, RoleType, User, UserStatus
from src.domain.errors import CONFLICT, OperationError, access_denied, not_found
from src.domain.policy import ADMIN_ROLES, PolicyEngine

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

logger = logging.getLogger(__name__)

VALID_ROLES = ("owner", "admin", "manager", "member", "viewer")
VALID_STATUSES = ("active", "disabled")

INVALID_CREDENTIALS = "invalid_credentials"
ACCOUNT_DISABLED = "account_disabled"


def _credential_errors(email: str, password: str, min_length: int) -> list[OperationError]:
    errors = []
    if "@" not in email or email.startswith("@") or email.endswith("@"):
        errors.append(OperationError("invalid_email", "A valid email is required", "email"))
    if len(password) < min_length:
        errors.append(
            OperationError(
                "weak_password",
                f"Password must be at least {min_length} characters",
                "password",
            )
        )
    return errors


def run_register(
    inp: RegisterInput,
    user_repo: UserRepoPort,
    company_repo: CompanyRepoPort,
    auth_adapter: AuthAdapterPort,
    time: TimePort,
    password_min_length: int,
) -> AuthOutput:
    """Create a company together with its first user, who becomes the owner."""
    email = inp.email.strip().lower()
    errors = _credential_errors(email, inp.password, password_min_length)
    if not inp.display_name.strip():
        errors.append(OperationError("required", "Display name is required", "display_name"))
    if not inp.company_name.strip():
        errors.append(OperationError("required", "Company name is required", "company_name"))
    if errors:
        return AuthOutput(errors=errors)

    if user_repo.get_by_email(email):
        return AuthOutput(errors=[OperationError(CONFLICT, "Email already in use", "email")])

    now = time.now_utc()
    company = company_repo.save(Company(name=inp.company_name.strip(), created_at=now))
    user = User(
        email=email,
        display_name=inp.display_name.strip(),
        password_hash=auth_adapter.hash_password(inp.password),
        roles=["owner"],
        company_id=company.id,
        created_at=now,
        updated_at=now,
    )
    user_repo.save(user)
    logger.info("Registered company %s with owner %s", company.id, user.id)
    return AuthOutput(user=user, company=company, success=True)


def run_login(
    inp: LoginInput,
    user_repo: UserRepoPort,
    auth_adapter: AuthAdapterPort,
    time: TimePort,
    token_ttl_minutes: int,
) -> AuthOutput:
    user = user_repo.get_by_email(inp.email.strip().lower())
    if not user or not auth_adapter.verify_password(inp.password, user.password_hash):
        logger.warning("Failed login attempt")
        return AuthOutput(errors=[OperationError(INVALID_CREDENTIALS, "Invalid credentials")])

    if user.status != "active":
        return AuthOutput(errors=[OperationError(ACCOUNT_DISABLED, "User account is disabled")])

    user.last_login_at = time.now_utc()
    user_repo.save(user)
    token = auth_adapter.create_token(user.id, token_ttl_minutes)
    return AuthOutput(user=user, token=token, success=True)


def run_create_user(
    inp: CreateUserInput,
    user_repo: UserRepoPort,
    auth_adapter: AuthAdapterPort,
    policy: PolicyEngine,
    time: TimePort,
    password_min_length: int,
) -> UserOutput:
    if not policy.can_manage_users(inp.actor):
        return UserOutput(errors=[access_denied()])

    email = inp.email.strip().lower()
    errors = _credential_errors(email, inp.password, password_min_length)
    unknown = [r for r in inp.roles if r not in VALID_ROLES]
    if unknown:
        errors.append(OperationError("invalid_role", f"Unknown role(s): {unknown}", "roles"))
    if "owner" in inp.roles and "owner" not in inp.actor.roles:
        return UserOutput(errors=[access_denied("Only an owner can grant the owner role")])
    if errors:
        return UserOutput(errors=errors)

    if user_repo.get_by_email(email):
        return UserOutput(errors=[OperationError(CONFLICT, "Email already in use", "email")])

    now = time.now_utc()
    new_user = User(
        email=email,
        display_name=inp.display_name or email.split("@")[0],
        password_hash=auth_adapter.hash_password(inp.password),
        roles=cast(list[RoleType], inp.roles),
        status="active",
        company_id=inp.actor.company_id,
        created_at=now,
        updated_at=now,
    )
    user_repo.save(new_user)
    logger.info("User %s created by %s", new_user.id, inp.actor.id)
    return UserOutput(user=new_user, success=True)


def run_update_user(
    inp: UpdateUserInput,
    user_repo: UserRepoPort,
    policy: PolicyEngine,
    time: TimePort,
) -> UserOutput:
    if not policy.can_manage_users(inp.actor):
        return UserOutput(errors=[access_denied()])

    try:
        uid = UUID(str(inp.target_id))
    except (ValueError, TypeError):
        return UserOutput(errors=[OperationError("invalid_id", "Invalid user ID format")])

    target = user_repo.get_by_id(uid)
    if not target or not policy.same_company(inp.actor, target):
        return UserOutput(errors=[not_found("User")])

    if inp.new_roles is not None:
        unknown = [r for r in inp.new_roles if r not in VALID_ROLES]
        if unknown:
            return UserOutput(
                errors=[OperationError("invalid_role", f"Unknown role(s): {unknown}", "roles")]
            )
        granting_owner = "owner" in inp.new_roles and "owner" not in target.roles
        if granting_owner and "owner" not in inp.actor.roles:
            return UserOutput(errors=[access_denied("Only an owner can grant the owner role")])
    if inp.new_status is not None and inp.new_status not in VALID_STATUSES:
        return UserOutput(
            errors=[OperationError("invalid_status", f"Unknown status: {inp.new_status}")]
        )

    # Self-lockout check
    if target.id == inp.actor.id:
        held = ADMIN_ROLES.intersection(target.roles)
        if inp.new_roles is not None and held and not held.intersection(inp.new_roles):
            return UserOutput(
                errors=[OperationError("self_lockout", "Cannot remove admin role from yourself")]
            )
        if inp.new_status is not None and inp.new_status != "active":
            return UserOutput(errors=[OperationError("self_lockout", "Cannot disable yourself")])

    if inp.new_roles is not None:
        target.roles = cast(list[RoleType], inp.new_roles)
    if inp.new_status is not None:
        target.status = cast(UserStatus, inp.new_status)
    if inp.display_name:
        target.display_name = inp.display_name

    target.updated_at = time.now_utc()
    user_repo.save(target)
    logger.info("User %s updated by %s", target.id, inp.actor.id)
    return UserOutput(user=target, success=True)


def run_list_users(
    inp: ListUsersInput, user_repo: UserRepoPort, policy: PolicyEngine
) -> UserListOutput:
    if not policy.can_manage_users(inp.actor):
        return UserListOutput(users=[], errors=[access_denied()])
    if inp.actor.company_id is None:
        return UserListOutput(users=[], success=True)

    return UserListOutput(users=user_repo.list_by_company(inp.actor.company_id), success=True)
