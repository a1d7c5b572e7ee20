from fastapi import APIRouter, Request

from app.errors import ApiError
from app.schemas import LoginRequest, TokenResponse
from app.security import (
    create_access_token,
    ensure_login_attempt_allowed,
    register_login_failure,
    register_login_success,
    verify_admin_credentials,
)

router = APIRouter(tags=["auth"])


def _client_ip(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


@router.post("/api/auth/login", response_model=TokenResponse)
def login(payload: LoginRequest, request: Request) -> TokenResponse:
    ip = _client_ip(request)
    ensure_login_attempt_allowed(ip)
    if not verify_admin_credentials(payload.username, payload.password):
        register_login_failure(ip)
        raise ApiError(status_code=401, code="INVALID_CREDENTIALS", message="Invalid credentials")

    register_login_success(ip)
    token, expires_in, _claims = create_access_token(
        sub=payload.username,
        username=payload.username,
        is_superuser=True,
    )
    return TokenResponse(access_token=token, expires_in=expires_in)
