"""Account API routes"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request, Response

from ..core.config import get_settings
from ..models.common import ApiResponse
from ..models.user import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokenPair,
    UpdateInfoRequest,
    UpdatePasswordRequest,
    User,
)
from ..security.auth import ACCESS_COOKIE, REFRESH_COOKIE, CurrentUser, require_user
from ..services.accounts import account_service

router = APIRouter(prefix="/users", tags=["Users"])


def set_auth_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    """Send both tokens as http-only cookies"""
    settings = get_settings()
    options = {"httponly": True, "samesite": "strict", "secure": not settings.debug}
    response.set_cookie(
        ACCESS_COOKIE,
        access_token,
        max_age=settings.access_token_expiry_minutes * 60,
        **options,
    )
    response.set_cookie(
        REFRESH_COOKIE,
        refresh_token,
        max_age=settings.refresh_token_expiry_days * 24 * 60 * 60,
        **options,
    )


def clear_auth_cookies(response: Response) -> None:
    response.delete_cookie(ACCESS_COOKIE)
    response.delete_cookie(REFRESH_COOKIE)


@router.post("/register", response_model=ApiResponse[AuthResponse], status_code=201)
def register(request: RegisterRequest, response: Response):
    """Create a customer account and sign it in"""
    auth = account_service.register(request)
    set_auth_cookies(response, auth.access_token, auth.refresh_token)
    return ApiResponse(status=201, data=auth, message="User registered successfully")


@router.post("/register/admin", response_model=ApiResponse[AuthResponse], status_code=201)
def register_admin(
    request: RegisterRequest,
    response: Response,
    x_admin_key: Optional[str] = Header(None),
):
    """Create an admin account; requires the X-Admin-Key header"""
    auth = account_service.register_admin(request, x_admin_key)
    set_auth_cookies(response, auth.access_token, auth.refresh_token)
    return ApiResponse(status=201, data=auth, message="Admin registered successfully")


@router.post("/login", response_model=ApiResponse[AuthResponse])
def login(request: LoginRequest, response: Response):
    auth = account_service.login(request.email, request.password)
    set_auth_cookies(response, auth.access_token, auth.refresh_token)
    return ApiResponse(data=auth, message="Logged in successfully")


@router.post("/logout", response_model=ApiResponse[None])
def logout(response: Response, user: CurrentUser = Depends(require_user)):
    account_service.logout(user.id)
    clear_auth_cookies(response)
    return ApiResponse(message="Logged out successfully")


@router.post("/refresh", response_model=ApiResponse[TokenPair])
def refresh(
    http_request: Request,
    response: Response,
    request: Optional[RefreshRequest] = None,
):
    """Exchange a refresh token (body or cookie) for a new token pair"""
    token = (request.refresh_token if request else None) or http_request.cookies.get(REFRESH_COOKIE)
    pair = account_service.refresh(token)
    set_auth_cookies(response, pair.access_token, pair.refresh_token)
    return ApiResponse(data=pair, message="Token refreshed successfully")


@router.get("/profile", response_model=ApiResponse[User])
def profile(user: CurrentUser = Depends(require_user)):
    return ApiResponse(data=account_service.profile(user.id), message="Profile fetched successfully")


@router.put("/update-info", response_model=ApiResponse[User])
def update_info(request: UpdateInfoRequest, user: CurrentUser = Depends(require_user)):
    """Update name, phone and address"""
    updated = account_service.update_info(user.id, request)
    return ApiResponse(data=updated, message="Profile updated successfully")


@router.patch("/update/password", response_model=ApiResponse[None])
def update_password(request: UpdatePasswordRequest, user: CurrentUser = Depends(require_user)):
    account_service.update_password(user.id, request.current_password, request.new_password)
    return ApiResponse(message="Password updated successfully")


@router.post("/password/forgot", response_model=ApiResponse[None])
def forgot_password(request: ForgotPasswordRequest):
    """Mail a password reset link"""
    account_service.forgot_password(request.email)
    return ApiResponse(message=f"Email sent to {request.email}")


@router.put("/password/reset/{token}", response_model=ApiResponse[AuthResponse])
def reset_password(token: str, request: ResetPasswordRequest, response: Response):
    """Set a new password using a mailed reset token"""
    auth = account_service.reset_password(token, request.password, request.confirm_password)
    set_auth_cookies(response, auth.access_token, auth.refresh_token)
    return ApiResponse(data=auth, message="Password reset successfully")
