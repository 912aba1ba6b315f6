"""Authentication API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import CurrentUser, get_client_ip, get_current_user, get_user_agent
from app.rate_limit import limiter
from app.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    LogoutRequest,
    MessageResponse,
    RefreshRequest,
    ResetPasswordRequest,
    SignupRequest,
    TokenResponse,
    UserResponse,
)
from app.services.auth import get_auth_service

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


@router.post("/signup", response_model=UserResponse, status_code=201)
@limiter.limit("5/minute")
def signup(request: Request, body: SignupRequest, db: Session = Depends(get_db)) -> UserResponse:
    """Register a new user account together with its own company."""
    user = get_auth_service().register(db, body.email, body.password, body.name)
    return UserResponse.model_validate(user)


@router.post("/login", response_model=LoginResponse)
@limiter.limit("10/minute")
def login(request: Request, body: LoginRequest, db: Session = Depends(get_db)) -> LoginResponse:
    """Authenticate and receive an access/refresh token pair."""
    result = get_auth_service().login(db, body.email, body.password, get_client_ip(request), get_user_agent(request))
    return LoginResponse(
        access_token=result.access_token,
        refresh_token=result.refresh_token,
        user=UserResponse.model_validate(result.user),
    )


@router.post("/refresh", response_model=TokenResponse)
@limiter.limit("30/minute")
def refresh(request: Request, body: RefreshRequest, db: Session = Depends(get_db)) -> TokenResponse:
    """Exchange a refresh token for a new pair. The presented token is revoked."""
    pair = get_auth_service().refresh(db, body.refresh_token)
    return TokenResponse(access_token=pair.access_token, refresh_token=pair.refresh_token)


@router.post("/logout", status_code=204)
def logout(
    request: Request,
    body: LogoutRequest,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    get_auth_service().logout(db, user.user_id, body.refresh_token, get_client_ip(request), get_user_agent(request))


@router.get("/me", response_model=UserResponse)
def me(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)) -> UserResponse:
    """Return the authenticated user."""
    current = get_auth_service().get_current_user(db, user.user_id)
    if current is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return UserResponse.model_validate(current)


@router.post("/forgot-password", response_model=MessageResponse)
@limiter.limit("3/minute")
def forgot_password(request: Request, body: ForgotPasswordRequest, db: Session = Depends(get_db)) -> MessageResponse:
    """Email a one-time reset code. The response does not reveal whether the account exists."""
    get_auth_service().initiate_password_reset(db, body.email)
    return MessageResponse(message="If an account exists with that email, a verification code has been sent.")


@router.post("/reset-password", response_model=MessageResponse)
@limiter.limit("5/minute")
def reset_password(request: Request, body: ResetPasswordRequest, db: Session = Depends(get_db)) -> MessageResponse:
    """Set a new password using a valid code. All sessions are signed out."""
    get_auth_service().reset_password(db, body.email, body.otp, body.new_password)
    return MessageResponse(message="Password has been reset. Please sign in again.")
