from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from auth_api.db.models import User
from auth_api.dependencies import get_user_service, require_admin, require_signin
from auth_api.services.session_service import AuthIdentity
from auth_api.services.user_service import UserService

router = APIRouter(prefix="/api/user", tags=["user"])


class UpdateUserBody(BaseModel):
    name: Optional[str] = None
    password: Optional[str] = None


@router.get("/{user_id}")
def get_user(
    user_id: str,
    _: AuthIdentity = Depends(require_signin),
    users: UserService = Depends(get_user_service),
):
    return users.get_profile(user_id)


@router.put("/update")
def update_user(
    body: UpdateUserBody,
    identity: AuthIdentity = Depends(require_signin),
    users: UserService = Depends(get_user_service),
):
    return users.update_profile(identity.user_id, body.name, body.password)


@router.put("/admin/update")
def admin_update_user(
    body: UpdateUserBody,
    admin: User = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    """Same update as /update, reserved for admins (applies to the admin's own record)."""
    return users.update_profile(admin.id, body.name, body.password)
