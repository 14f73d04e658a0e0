"""
User management API. Every route requires a live session.

The path parameter is named `id`; path params are forwarded as-is to the
webhook payload, whose consumers expect that key.
"""

from fastapi import APIRouter, Depends

from nexus_admin.api.deps import get_auth_service, get_current_user_id, get_user_service
from nexus_admin.api.schemas import (
    SuccessResponse,
    UserCreate,
    UserEnvelope,
    UserListEnvelope,
    UserOut,
    UserUpdate,
)
from nexus_admin.auth.service import AuthService
from nexus_admin.users.service import UserService
from nexus_admin.webhooks import WebhookRoute

router = APIRouter(
    prefix="/api/users",
    tags=["users"],
    route_class=WebhookRoute,
    dependencies=[Depends(get_current_user_id)],
)


@router.get("", response_model=UserListEnvelope)
def list_users(users: UserService = Depends(get_user_service)) -> UserListEnvelope:
    return UserListEnvelope(users=[UserOut.model_validate(u) for u in users.list_users()])


@router.get("/{id}", response_model=UserEnvelope)
def get_user(id: str, users: UserService = Depends(get_user_service)) -> UserEnvelope:
    return UserEnvelope(user=UserOut.model_validate(users.get_user(id)))


@router.post("", response_model=UserEnvelope, status_code=201)
def create_user(body: UserCreate, auth: AuthService = Depends(get_auth_service)) -> UserEnvelope:
    """Admin-side create: same rules as register, but no session is opened."""
    user = auth.create_user(body.model_dump())
    return UserEnvelope(user=UserOut.model_validate(user))


@router.patch("/{id}", response_model=UserEnvelope)
def update_user(
    id: str,
    body: UserUpdate,
    users: UserService = Depends(get_user_service),
) -> UserEnvelope:
    user = users.update_user(id, body.model_dump(exclude_unset=True))
    return UserEnvelope(user=UserOut.model_validate(user))


@router.delete("/{id}", response_model=SuccessResponse)
def delete_user(id: str, users: UserService = Depends(get_user_service)) -> SuccessResponse:
    users.delete_user(id)
    return SuccessResponse()
