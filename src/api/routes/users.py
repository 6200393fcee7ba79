from typing import Any

from fastapi import APIRouter, Depends

from src.api.deps import (
    get_auth_adapter,
    get_clock,
    get_current_user,
    get_policy,
    get_rules,
    get_user_repo,
    raise_for_errors,
)
from src.api.schemas import UserCreateRequest, UserResponse, UserUpdateRequest
from src.components.auth import (
    CreateUserInput,
    ListUsersInput,
    UpdateUserInput,
    run_create_user,
    run_list_users,
    run_update_user,
)
from src.domain.entities import User
from src.rules.models import Rules

router = APIRouter()


@router.get("", response_model=list[UserResponse])
def list_users(
    current_user: User = Depends(get_current_user),
    user_repo: Any = Depends(get_user_repo),
    policy: Any = Depends(get_policy),
) -> list[UserResponse]:
    """List the users of the caller's company."""
    result = run_list_users(ListUsersInput(actor=current_user), user_repo=user_repo, policy=policy)
    raise_for_errors(result.errors)
    return [UserResponse.model_validate(u) for u in result.users]


@router.post("", response_model=UserResponse, status_code=201)
def create_user(
    req: UserCreateRequest,
    current_user: User = Depends(get_current_user),
    user_repo: Any = Depends(get_user_repo),
    policy: Any = Depends(get_policy),
    auth_adapter: Any = Depends(get_auth_adapter),
    rules: Rules = Depends(get_rules),
    clock: Any = Depends(get_clock),
) -> UserResponse:
    inp = CreateUserInput(
        actor=current_user,
        email=req.email,
        password=req.password,
        roles=req.roles,
        display_name=req.display_name,
    )
    result = run_create_user(
        inp,
        user_repo=user_repo,
        auth_adapter=auth_adapter,
        policy=policy,
        time=clock,
        password_min_length=rules.auth.password_min_length,
    )
    raise_for_errors(result.errors)
    return UserResponse.model_validate(result.user)


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: str,
    req: UserUpdateRequest,
    current_user: User = Depends(get_current_user),
    user_repo: Any = Depends(get_user_repo),
    policy: Any = Depends(get_policy),
    clock: Any = Depends(get_clock),
) -> UserResponse:
    """Change roles, status or display name of a company user."""
    inp = UpdateUserInput(
        actor=current_user,
        target_id=user_id,
        new_roles=req.roles,
        new_status=req.status,
        display_name=req.display_name,
    )
    result = run_update_user(inp, user_repo=user_repo, policy=policy, time=clock)
    raise_for_errors(result.errors)
    return UserResponse.model_validate(result.user)
