"""Admin user management (GET/POST/PUT/DELETE /api/users). Admin role only."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from app.api.deps import get_credential_store, require_role
from app.core.config import Settings, get_settings
from app.core.errors import ResourceNotFoundError
from app.core.security import hash_password
from app.models import ROLE_ADMIN, User
from app.schemas.auth import CurrentUser, UserPublic
from app.schemas.common import DataResponse
from app.schemas.users import UserCreate, UserUpdate, UserUpdated
from app.services.credentials import CredentialStore

router = APIRouter()

AdminUser = Annotated[CurrentUser, Depends(require_role(ROLE_ADMIN))]
Store = Annotated[CredentialStore, Depends(get_credential_store)]


def _get_or_404(store: CredentialStore, user_id: str) -> User:
    user = store.get_by_id(user_id)
    if user is None:
        raise ResourceNotFoundError("User not found.")
    return user


@router.get("", response_model=DataResponse[list[UserPublic]])
def list_users(_admin: AdminUser, store: Store) -> DataResponse[list[UserPublic]]:
    """List all users ordered by name (password hashes never included)."""
    users = store.list_users()
    return DataResponse[list[UserPublic]](data=[UserPublic.model_validate(u) for u in users])


@router.get("/{user_id}", response_model=DataResponse[UserPublic])
def get_user(user_id: str, _admin: AdminUser, store: Store) -> DataResponse[UserPublic]:
    return DataResponse[UserPublic](data=UserPublic.model_validate(_get_or_404(store, user_id)))


@router.post("", response_model=DataResponse[UserPublic], status_code=status.HTTP_201_CREATED)
def create_user(
    body: UserCreate,
    _admin: AdminUser,
    store: Store,
    settings: Annotated[Settings, Depends(get_settings)],
) -> DataResponse[UserPublic]:
    """Create a user. Without a password the account cannot log in until one is set."""
    password_hash = hash_password(body.password, settings.BCRYPT_ROUNDS) if body.password else None
    user = store.insert(
        name=body.name.strip(),
        email=body.email,
        cnpj_access=body.cnpj_access,
        password_hash=password_hash,
        role=body.role,
        user_id=body.id,
    )
    return DataResponse[UserPublic](data=UserPublic.model_validate(user))


@router.put("/{user_id}", response_model=DataResponse[UserUpdated])
def update_user(
    user_id: str,
    body: UserUpdate,
    _admin: AdminUser,
    store: Store,
    settings: Annotated[Settings, Depends(get_settings)],
) -> DataResponse[UserUpdated]:
    user = _get_or_404(store, user_id)
    password_hash = hash_password(body.password, settings.BCRYPT_ROUNDS) if body.password else None
    store.update_profile(
        user,
        name=body.name.strip(),
        email=body.email,
        cnpj_access=body.cnpj_access,
        role=body.role,
        password_hash=password_hash,
    )
    return DataResponse[UserUpdated](data=UserUpdated(id=user_id))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(user_id: str, _admin: AdminUser, store: Store) -> Response:
    store.delete(_get_or_404(store, user_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
