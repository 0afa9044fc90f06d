from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from storeapi.core import responses
from storeapi.core.errors import AppError
from storeapi.schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UserOut,
)
from storeapi.services.auth_service import AuthFailure, AuthResult, AuthService
from storeapi.services.session_service import SessionClaims, current_claims

router = APIRouter(prefix="/auth", tags=["auth"])

FORGOT_MESSAGE = "If the email is registered, a reset link is on its way."


def _auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def _session_payload(result: AuthResult) -> dict:
    return {"user": UserOut.model_validate(result.user), "token": result.token}


def _raise_failure(failure: AuthFailure):
    raise AppError(failure.kind)


@router.post("/register")
def register(body: RegisterRequest, service: AuthService = Depends(_auth_service)):
    result = service.register(body.email, body.password, body.name)
    if isinstance(result, AuthFailure):
        _raise_failure(result)
    return responses.success(_session_payload(result), "User registered successfully", 201)


@router.post("/login")
def login(body: LoginRequest, service: AuthService = Depends(_auth_service)):
    result = service.login(body.email, body.password)
    if isinstance(result, AuthFailure):
        _raise_failure(result)
    return responses.success(_session_payload(result), "Login successful")


@router.post("/forgot-password")
def forgot_password(body: ForgotPasswordRequest, service: AuthService = Depends(_auth_service)):
    failure = service.request_password_reset(body.email)
    if failure:
        _raise_failure(failure)
    return responses.success(None, FORGOT_MESSAGE)


@router.get("/reset-password")
def reset_password_check(token: str = "", service: AuthService = Depends(_auth_service)):
    failure = service.validate_reset_token(token)
    if failure:
        _raise_failure(failure)
    return responses.success(None, "Reset token is valid")


@router.post("/reset-password")
def reset_password(body: ResetPasswordRequest, service: AuthService = Depends(_auth_service)):
    result = service.redeem_password_reset(body.token, body.password)
    if isinstance(result, AuthFailure):
        _raise_failure(result)
    return responses.success(None, "Password has been reset, please log in again")


@router.get("/me")
def me(claims: SessionClaims = Depends(current_claims), service: AuthService = Depends(_auth_service)):
    user = service.current_user(claims.user_id)
    if isinstance(user, AuthFailure):
        _raise_failure(user)
    payload = {"user": UserOut.model_validate(user), "expires_at": claims.expires_at}
    return responses.success(payload, "Session is valid")
