# =======================================================================================
# lockmaster/services/credential_service.py - Credential Management Service
# =======================================================================================
import logging
import secrets
from datetime import datetime
from typing import Optional
from ..models.enums import ALL
from ..models.schemas import (
    CredentialCreate, CredentialRecord, CredentialUpdate, CredentialView, ListResponse,
)
from ..utils.clock import utcnow
from ..utils.exceptions import ValidationFailedError
from ..utils.validators import CredentialValidator
from .access_control import effective_credential_status
from .entity_client import Entities
from .filtering import filter_credentials
from .lock_service import lock_label
from .user_service import display_name

logger = logging.getLogger(__name__)

PIN_MASK = "••••"


def generate_credential_value(credential_type: str) -> Optional[str]:
    """
    Fresh value for a credential type:
    6-digit PIN for pin types, 8 upper-case hex chars for RFID, a random app key.
    Fingerprints are enrolled at the lock, so there is nothing to generate.
    """
    if "pin" in credential_type:
        return str(100000 + secrets.randbelow(900000))
    if "rfid" in credential_type:
        return secrets.token_hex(4).upper()
    if credential_type == "app_key":
        return secrets.token_urlsafe(24)
    return None


class CredentialService:
    """Handles PINs, cards, fobs, fingerprints and app keys."""

    @staticmethod
    def mask_value(credential: CredentialRecord) -> str:
        if credential.credential_type == "pin":
            return PIN_MASK
        return credential.credential_value

    def to_view(self, credential: CredentialRecord, user_names: dict, lock_names: dict,
                now: datetime) -> CredentialView:
        return CredentialView(
            **credential.model_dump(),
            effective_status=effective_credential_status(credential, now),
            display_value=self.mask_value(credential),
            user_name=user_names.get(credential.user_id, display_name(None)),
            lock_name=lock_names.get(credential.lock_id, lock_label(None)),
        )

    def list_credentials(self, entities: Entities, search: Optional[str] = None,
                         credential_type: str = ALL, status: str = ALL, user: str = ALL,
                         lock: str = ALL, now: Optional[datetime] = None) -> ListResponse[CredentialView]:
        now = now or utcnow()
        credentials = entities.credentials.list("-created_date")
        user_names = {u.id: display_name(u) for u in entities.users.list()}
        lock_names = {item.id: item.lock_name for item in entities.locks.list()}
        filtered = filter_credentials(credentials, search, credential_type, status, user, lock)
        return ListResponse[CredentialView](
            total=len(credentials),
            count=len(filtered),
            items=[self.to_view(c, user_names, lock_names, now) for c in filtered],
        )

    def get_credential(self, entities: Entities, credential_id: str) -> CredentialRecord:
        return entities.credentials.get(credential_id)

    def create_credential(self, entities: Entities, request: CredentialCreate,
                          ttlock_credential_id: Optional[str] = None) -> CredentialRecord:
        fields = request.model_dump()
        if not fields.get("credential_value"):
            fields["credential_value"] = generate_credential_value(request.credential_type)
        CredentialValidator.validate_value(request.credential_type, fields["credential_value"])
        fields["valid_from"] = fields.get("valid_from") or utcnow()
        CredentialValidator.validate_validity_window(fields["valid_from"], fields.get("valid_until"))
        fields["usage_count"] = 0
        fields["ttlock_credential_id"] = ttlock_credential_id
        credential = entities.credentials.create(fields)
        logger.info("Issued %s credential %s to user %s on lock %s",
                    credential.credential_type, credential.id, credential.user_id, credential.lock_id)
        return credential

    def update_credential(self, entities: Entities, credential_id: str,
                          request: CredentialUpdate) -> CredentialRecord:
        current = entities.credentials.get(credential_id)
        fields = request.model_dump(exclude_unset=True)
        merged = {**current.model_dump(), **fields}
        if "credential_value" in fields or "credential_type" in fields:
            CredentialValidator.validate_value(merged["credential_type"], merged["credential_value"])
        CredentialValidator.validate_validity_window(merged.get("valid_from"), merged.get("valid_until"))
        return entities.credentials.update(credential_id, fields)

    def toggle_status(self, entities: Entities, credential_id: str) -> CredentialRecord:
        """active <-> inactive; any other stored status becomes active."""
        credential = entities.credentials.get(credential_id)
        new_status = "inactive" if credential.status == "active" else "active"
        return entities.credentials.update(credential_id, {"status": new_status})

    def delete_credential(self, entities: Entities, credential_id: str) -> None:
        entities.credentials.delete(credential_id)

    def generate_value(self, credential_type: str) -> Optional[str]:
        if credential_type == "fingerprint":
            raise ValidationFailedError("Fingerprint templates are enrolled at the lock")
        return generate_credential_value(credential_type)
