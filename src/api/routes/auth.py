from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordRequestForm

from src.adapters.auth.crypto import JWTAuthAdapter
from src.adapters.sqlite.repos import SQLiteCompanyRepo, SQLiteUserRepo
from src.api.auth_utils import COOKIE_NAME
from src.api.deps import (
    get_auth_adapter,
    get_clock,
    get_company_repo,
    get_current_user,
    get_rate_limiter,
    get_rules,
    get_user_repo,
    raise_for_errors,
)
from src.api.schemas import RegisterRequest, RegisterResponse, Token, UserResponse
from src.app_shell.rate_limit import RateLimiter
from src.components.auth import (
    ACCOUNT_DISABLED,
    INVALID_CREDENTIALS,
    LoginInput,
    RegisterInput,
    run_login,
    run_register,
)
from src.domain.entities import User
from src.rules.models import Rules

router = APIRouter()


def _set_auth_cookie(response: Response, token: str, rules: Rules) -> None:
    max_age = rules.auth.token_ttl_minutes * 60
    response.set_cookie(
        key=COOKIE_NAME,
        value=f"Bearer {token}",
        httponly=True,
        max_age=max_age,
        expires=max_age,
        samesite=rules.auth.cookie.same_site,  # type: ignore[arg-type]
        secure=rules.auth.cookie.secure,
    )


@router.post("/register", response_model=RegisterResponse, status_code=201)
def register(
    req: RegisterRequest,
    response: Response,
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    company_repo: SQLiteCompanyRepo = Depends(get_company_repo),
    auth_adapter: JWTAuthAdapter = Depends(get_auth_adapter),
    rules: Rules = Depends(get_rules),
    clock: Any = Depends(get_clock),
) -> RegisterResponse:
    """Create a company with its owner account and sign the owner in."""
    result = run_register(
        RegisterInput(
            email=req.email,
            password=req.password,
            display_name=req.display_name,
            company_name=req.company_name,
        ),
        user_repo=user_repo,
        company_repo=company_repo,
        auth_adapter=auth_adapter,
        time=clock,
        password_min_length=rules.auth.password_min_length,
    )
    raise_for_errors(result.errors)
    assert result.user is not None and result.company is not None

    token = auth_adapter.create_token(result.user.id, rules.auth.token_ttl_minutes)
    _set_auth_cookie(response, token, rules)
    return RegisterResponse(
        access_token=token,
        user=UserResponse.model_validate(result.user),
        company_id=result.company.id,
    )


@router.post("/login", response_model=Token)
def login_for_access_token(
    request: Request,
    response: Response,
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    auth_adapter: JWTAuthAdapter = Depends(get_auth_adapter),
    limiter: RateLimiter = Depends(get_rate_limiter),
    rules: Rules = Depends(get_rules),
    clock: Any = Depends(get_clock),
) -> Token:
    """Authenticate with the OAuth2 password form and return an access token."""
    client_ip = request.client.host if request.client else "unknown"
    if not limiter.check_login(client_ip):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many login attempts. Try again later.",
        )

    result = run_login(
        LoginInput(email=form_data.username, password=form_data.password),
        user_repo=user_repo,
        auth_adapter=auth_adapter,
        time=clock,
        token_ttl_minutes=rules.auth.token_ttl_minutes,
    )
    if not result.success or result.token is None:
        code = result.errors[0].code if result.errors else INVALID_CREDENTIALS
        if code == ACCOUNT_DISABLED:
            raise HTTPException(status_code=400, detail="User account is inactive")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    _set_auth_cookie(response, result.token, rules)
    return Token(access_token=result.token)


@router.post("/logout")
def logout(response: Response) -> dict[str, str]:
    """Log out user by clearing cookie."""
    response.delete_cookie(key=COOKIE_NAME)
    return {"status": "success"}


@router.get("/me", response_model=UserResponse)
def read_users_me(current_user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(current_user)
