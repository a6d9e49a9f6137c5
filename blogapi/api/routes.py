from __future__ import annotations

from typing import Any, Iterator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from blogapi.auth import AuthService, LoginResult, policy
from blogapi.auth.google import GoogleOAuthClient, create_state, state_secret, verify_state
from blogapi.errors import AuthError
from blogapi.models import Account

from .schemas import (
    EmailCodeRequest,
    EmailRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    RoleUpdateRequest,
    success,
)

router = APIRouter()
bearer = HTTPBearer(auto_error=False)


def get_session(request: Request) -> Iterator[Session]:
    session = request.app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


def get_auth_service(request: Request, session: Session = Depends(get_session)) -> AuthService:
    state = request.app.state
    return AuthService(
        session,
        state.settings.auth,
        notifier=state.notifier,
        rate_limiter=state.login_rate_limiter,
        hasher=state.password_hasher,
    )


def current_account(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    service: AuthService = Depends(get_auth_service),
) -> Account:
    if credentials is None or not credentials.credentials:
        raise AuthError("invalid_token", "Access token required")
    return service.authenticate(credentials.credentials)


def get_google_client(request: Request) -> GoogleOAuthClient:
    client = request.app.state.google_client
    if client is None:
        raise AuthError("upstream_unavailable", "Google sign-in is not configured")
    return client


def _session_payload(result: LoginResult) -> dict[str, Any]:
    return {"user": result.account.to_public_dict(), **result.tokens.to_dict()}


@router.post("/auth/register", status_code=201)
def register(body: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    result = service.register(body.username, body.email, body.password)
    return success(
        "User registered successfully. Please check your email for verification code.",
        {"userId": result.account_id, "emailSent": result.email_sent},
    )


@router.post("/auth/verify-email")
def verify_email(body: EmailCodeRequest, service: AuthService = Depends(get_auth_service)):
    result = service.verify_email(body.email, body.code)
    return success("Email verified successfully!", {"welcomeSent": result.welcome_sent})


@router.post("/auth/resend-verification")
def resend_verification(body: EmailRequest, service: AuthService = Depends(get_auth_service)):
    email_sent = service.resend_verification(body.email)
    return success("New verification code sent to your email", {"emailSent": email_sent})


@router.post("/auth/login")
def login(body: LoginRequest, service: AuthService = Depends(get_auth_service)):
    result = service.login(body.email, body.password)
    if result.pending:
        return JSONResponse(
            status_code=202,
            content=success(
                "You have been inactive for over a week. A verification code has been sent to your email.",
                {"userId": result.account.id, "emailSent": result.email_sent},
            ),
        )
    return success("Login successful", _session_payload(result))


@router.post("/auth/login-verify")
def login_verify(body: EmailCodeRequest, service: AuthService = Depends(get_auth_service)):
    result = service.complete_pending_login(body.email, body.code)
    return success("Login verified successfully", _session_payload(result))


@router.post("/auth/refresh")
def refresh(body: RefreshRequest, service: AuthService = Depends(get_auth_service)):
    if not body.refresh_token:
        raise AuthError("invalid_token", "Refresh token required")
    tokens = service.refresh(body.refresh_token)
    return success("Token refreshed successfully", tokens.to_dict())


@router.post("/auth/logout")
def logout(account: Account = Depends(current_account), service: AuthService = Depends(get_auth_service)):
    service.logout(account)
    return success("Logout successful")


@router.get("/auth/me")
def me(account: Account = Depends(current_account)):
    return success(data=account.to_public_dict())


@router.get("/auth/google")
def google_start(request: Request, client: GoogleOAuthClient = Depends(get_google_client)):
    state = create_state(state_secret(request.app.state.settings.auth.access_token_secret))
    return RedirectResponse(client.authorization_url(state), status_code=302)


@router.get("/auth/google/callback")
def google_callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    client: GoogleOAuthClient = Depends(get_google_client),
    service: AuthService = Depends(get_auth_service),
):
    if not verify_state(state, state_secret(request.app.state.settings.auth.access_token_secret)):
        raise AuthError("invalid_token", "Invalid OAuth state")
    identity = client.exchange_code(code or "")
    result = service.login_external(identity)
    return success("Google authentication successful", _session_payload(result))


@router.get("/users")
def list_users(
    role: str | None = None,
    account: Account = Depends(current_account),
    service: AuthService = Depends(get_auth_service),
):
    policy.require(account, "user:list")
    users = service.accounts.list_accounts(role=role)
    return success(data={"users": [user.to_public_dict() for user in users]})


@router.patch("/users/{user_id}/role")
def update_role(
    user_id: int,
    body: RoleUpdateRequest,
    account: Account = Depends(current_account),
    service: AuthService = Depends(get_auth_service),
):
    policy.require(account, "user:update_role")
    updated = service.set_role(account, user_id, body.role)
    return success("User role updated successfully", updated.to_public_dict())
