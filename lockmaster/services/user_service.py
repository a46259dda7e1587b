# =======================================================================================
# lockmaster/services/user_service.py - User Management Service
# =======================================================================================
import logging
from typing import Optional
from ..models.enums import ALL
from ..models.schemas import ListResponse, UserCreate, UserRecord, UserUpdate
from ..utils.exceptions import ValidationFailedError
from .entity_client import Entities
from .filtering import filter_users

logger = logging.getLogger(__name__)

UNKNOWN_USER = "Unknown User"


def display_name(user: Optional[UserRecord], fallback: str = UNKNOWN_USER) -> str:
    """full_name, then email, then the fallback for dangling references."""
    if user is None:
        return fallback
    return user.full_name or user.email or fallback


class UserService:
    """Handles resident and staff accounts."""

    @staticmethod
    def normalize_email(email: Optional[str]) -> Optional[str]:
        if email is None:
            return None
        email = email.strip().lower()
        if "@" not in email:
            raise ValidationFailedError(f"'{email}' is not an e-mail address")
        return email

    def list_users(self, entities: Entities, search: Optional[str] = None, status: str = ALL,
                   access_level: str = ALL, building: str = ALL) -> ListResponse[UserRecord]:
        users = entities.users.list("-created_date")
        filtered = filter_users(users, search, status, access_level, building)
        return ListResponse[UserRecord](total=len(users), count=len(filtered), items=filtered)

    def get_user(self, entities: Entities, user_id: str) -> UserRecord:
        return entities.users.get(user_id)

    def create_user(self, entities: Entities, request: UserCreate) -> UserRecord:
        fields = request.model_dump()
        fields["email"] = self.normalize_email(request.email)
        return entities.users.create(fields)

    def update_user(self, entities: Entities, user_id: str, request: UserUpdate) -> UserRecord:
        fields = request.model_dump(exclude_unset=True)
        if "email" in fields:
            fields["email"] = self.normalize_email(fields["email"])
        return entities.users.update(user_id, fields)

    def delete_user(self, entities: Entities, user_id: str) -> None:
        # credentials and schedules keep their user_id and render as "Unknown User"
        entities.users.delete(user_id)
