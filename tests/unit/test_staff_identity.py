import pytest

from app.features.workforce_analytics.domain.models import EmployeeProfileRow, StaffMappingRow
from app.features.workforce_analytics.errors import MissingIdentity
from app.features.workforce_analytics.pipeline.identity.service import StaffIdentityResolver


def _mapping(external_id, user_id=None, name=None, active=True):
    return StaffMappingRow(
        external_id=external_id, user_id=user_id, external_name=name, is_active=active
    )


def _profile(user_id, full_name=None, display_name=None, photo_url=None):
    return EmployeeProfileRow(
        user_id=user_id,
        full_name=full_name,
        display_name=display_name,
        photo_url=photo_url,
    )


@pytest.fixture
def directory():
    return StaffIdentityResolver().resolve_all(
        [
            _mapping("ext-1", "user-1", "POS Ana"),
            _mapping("ext-2", "user-2", "POS Bo"),
            _mapping("ext-3", None, "POS Cy"),
            _mapping("ext-4", None, "   "),
            _mapping("ext-5", "user-5", "POS Old", active=False),
        ],
        [
            _profile("user-1", full_name="Ana Full", display_name="Ana", photo_url="ana.png"),
            _profile("user-2", full_name="Bo Full", display_name=""),
        ],
    )


def test_display_name_precedence(directory):
    assert directory.require("ext-1").display_name == "Ana"
    assert directory.require("ext-2").display_name == "Bo Full"
    assert directory.require("ext-3").display_name == "POS Cy"
    assert directory.require("ext-4").display_name == "Unknown"


def test_photo_comes_from_profile(directory):
    assert directory.require("ext-1").photo_url == "ana.png"
    assert directory.require("ext-3").photo_url is None


def test_reverse_index_maps_user_to_external_id(directory):
    assert directory.external_id_for_user("user-1") == "ext-1"
    assert directory.external_id_for_user("user-404") is None
    assert directory.external_id_for_user(None) is None


def test_inactive_mappings_are_skipped(directory):
    assert "ext-5" not in directory
    assert directory.external_id_for_user("user-5") is None
    assert len(directory) == 4


def test_require_raises_missing_identity(directory):
    with pytest.raises(MissingIdentity) as exc_info:
        directory.require("ext-404")
    assert exc_info.value.external_id == "ext-404"

    with pytest.raises(MissingIdentity):
        directory.require(None)


def test_get_returns_none_for_unknown(directory):
    assert directory.get("ext-404") is None
    assert directory.display_name("ext-404") == "Unknown"


def test_duplicate_user_mappings_keep_the_first():
    directory = StaffIdentityResolver().resolve_all(
        [_mapping("ext-a", "user-1", "First"), _mapping("ext-b", "user-1", "Second")],
        [],
    )

    assert directory.external_id_for_user("user-1") == "ext-a"
    assert {identity.external_id for identity in directory} == {"ext-a", "ext-b"}
