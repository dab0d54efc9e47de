"""
Staff identity resolution.

POS records carry the external staff id; feedback responses carry the
internal user id. The directory joins both to one display identity and is
rebuilt from source rows on every call.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from app.features.workforce_analytics.constants import UNKNOWN_STAFF_NAME
from app.features.workforce_analytics.domain.models import (
    EmployeeProfileRow,
    StaffIdentity,
    StaffKey,
    StaffMappingRow,
)
from app.features.workforce_analytics.errors import MissingIdentity
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


def _first_present(*values: str | None) -> str | None:
    for value in values:
        if value and value.strip():
            return value.strip()
    return None


class StaffDirectory:
    """Bidirectional index between external staff ids and internal user ids."""

    def __init__(self, identities: Iterable[StaffIdentity] = ()):
        self._by_external: dict[StaffKey, StaffIdentity] = {}
        self._by_user: dict[str, StaffKey] = {}
        for identity in identities:
            self._add(identity)

    def _add(self, identity: StaffIdentity) -> None:
        if identity.external_id in self._by_external:
            return
        self._by_external[identity.external_id] = identity
        if identity.user_id and identity.user_id not in self._by_user:
            self._by_user[identity.user_id] = identity.external_id

    def get(self, external_id: StaffKey | None) -> StaffIdentity | None:
        if external_id is None:
            return None
        return self._by_external.get(external_id)

    def require(self, external_id: StaffKey | None) -> StaffIdentity:
        identity = self.get(external_id)
        if identity is None:
            raise MissingIdentity(external_id)
        return identity

    def external_id_for_user(self, user_id: str | None) -> StaffKey | None:
        if user_id is None:
            return None
        return self._by_user.get(user_id)

    def display_name(self, external_id: StaffKey) -> str:
        identity = self.get(external_id)
        return identity.display_name if identity else UNKNOWN_STAFF_NAME

    def __contains__(self, external_id: object) -> bool:
        return external_id in self._by_external

    def __iter__(self) -> Iterator[StaffIdentity]:
        return iter(self._by_external.values())

    def __len__(self) -> int:
        return len(self._by_external)


class StaffIdentityResolver:
    def resolve_all(
        self,
        mapping_rows: Iterable[StaffMappingRow],
        employee_rows: Iterable[EmployeeProfileRow],
    ) -> StaffDirectory:
        """
        Build the staff directory from POS mappings and employee profiles.

        Display name precedence: profile display name, profile full name,
        POS staff name, then the literal placeholder. Inactive mappings are
        skipped; inactive profiles still lend their name to history.
        """
        profiles: dict[str, EmployeeProfileRow] = {}
        for profile in employee_rows:
            profiles.setdefault(profile.user_id, profile)

        identities: list[StaffIdentity] = []
        skipped = 0
        for mapping in mapping_rows:
            if not mapping.is_active:
                skipped += 1
                continue

            profile = profiles.get(mapping.user_id) if mapping.user_id else None
            display_name = _first_present(
                profile.display_name if profile else None,
                profile.full_name if profile else None,
                mapping.external_name,
            )
            identities.append(
                StaffIdentity(
                    external_id=mapping.external_id,
                    user_id=mapping.user_id,
                    display_name=display_name or UNKNOWN_STAFF_NAME,
                    photo_url=profile.photo_url if profile else None,
                )
            )

        directory = StaffDirectory(identities)
        logger.debug(
            "Staff directory resolved",
            staff=len(directory),
            inactive_skipped=skipped,
            profiles=len(profiles),
        )
        return directory


staff_identity_resolver = StaffIdentityResolver()
