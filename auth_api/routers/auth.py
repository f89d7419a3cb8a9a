from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from auth_api.services.auth_service import AuthService
from auth_api.services.federated_service import FederatedLoginService
from auth_api.dependencies import get_auth_service, get_federated_service

router = APIRouter(prefix="/api/auth", tags=["auth"])


class SignupBody(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class ActivationBody(BaseModel):
    token: Optional[str] = None


class SigninBody(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordBody(BaseModel):
    email: Optional[str] = None


class ResetPasswordBody(BaseModel):
    resetPasswordLink: Optional[str] = None
    newPassword: Optional[str] = None


class GoogleLoginBody(BaseModel):
    idToken: Optional[str] = None


class FacebookLoginBody(BaseModel):
    userID: Optional[str] = None
    accessToken: Optional[str] = None


@router.post("/signup")
def signup(body: SignupBody, auth: AuthService = Depends(get_auth_service)):
    return {"message": auth.signup(body.name or "", body.email or "", body.password or "")}


@router.post("/account-activation")
def account_activation(body: ActivationBody, auth: AuthService = Depends(get_auth_service)):
    return {"message": auth.activate(body.token or "")}


@router.post("/signin")
def signin(body: SigninBody, auth: AuthService = Depends(get_auth_service)):
    return auth.signin(body.email or "", body.password or "").as_dict()


@router.put("/forgot-password")
def forgot_password(body: ForgotPasswordBody, auth: AuthService = Depends(get_auth_service)):
    return {"message": auth.forgot_password(body.email or "")}


@router.put("/reset-password")
def reset_password(body: ResetPasswordBody, auth: AuthService = Depends(get_auth_service)):
    return {"message": auth.reset_password(body.resetPasswordLink or "", body.newPassword or "")}


@router.post("/google-login")
def google_login(
    request: Request,
    body: GoogleLoginBody,
    federated: FederatedLoginService = Depends(get_federated_service),
):
    return federated.login(request.app.state.google, id_token=body.idToken or "")


@router.post("/facebook-login")
def facebook_login(
    request: Request,
    body: FacebookLoginBody,
    federated: FederatedLoginService = Depends(get_federated_service),
):
    return federated.login(
        request.app.state.facebook,
        user_id=body.userID or "",
        access_token=body.accessToken or "",
    )
