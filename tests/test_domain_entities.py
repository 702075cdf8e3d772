"""
Tests for domain entities.
"""

import pytest

from user_search.domain.entities import (
    MAX_USER_ID,
    MIN_USER_ID,
    AvatarRecord,
    Page,
    SearchOutcome,
    UserRecord,
)
from user_search.domain.exceptions import ValidationException


class TestUserRecord:
    """Test UserRecord entity."""

    def test_to_dict(self):
        user = UserRecord(id=7, display_name="Ann", user_name="ann", avatar_url="https://a/7.png")

        assert user.to_dict() == {
            "id": 7,
            "display_name": "Ann",
            "user_name": "ann",
            "avatar_url": "https://a/7.png",
        }

    def test_is_immutable(self):
        user = UserRecord(id=7, display_name="Ann", user_name="ann", avatar_url="")

        with pytest.raises(AttributeError):
            user.display_name = "Bob"

    def test_accepts_64_bit_bounds(self):
        assert UserRecord(id=MAX_USER_ID, display_name="", user_name="", avatar_url="").id == 2**63 - 1
        assert UserRecord(id=MIN_USER_ID, display_name="", user_name="", avatar_url="").id == -(2**63)

    @pytest.mark.parametrize("user_id", [2**63, -(2**63) - 1])
    def test_rejects_out_of_range_id(self, user_id):
        with pytest.raises(ValueError, match="64-bit"):
            UserRecord(id=user_id, display_name="", user_name="", avatar_url="")

    def test_equality_by_value(self):
        first = UserRecord(id=1, display_name="Ann", user_name="ann", avatar_url="")
        second = UserRecord(id=1, display_name="Ann", user_name="ann", avatar_url="")
        assert first == second


class TestAvatarRecord:
    """Test AvatarRecord entity."""

    def test_repr_hides_bytes(self):
        avatar = AvatarRecord(url="https://a/1.png", image_bytes=b"\x89PNG" * 100)
        assert "PNG" not in repr(avatar)
        assert "https://a/1.png" in repr(avatar)


class TestPage:
    """Test Page value object."""

    def test_fetch_window(self):
        page = Page("ann", 3, 20)

        assert page.fetch_offset == 60
        assert page.fetch_limit == 20
        assert not page.is_first

    def test_first_page(self):
        assert Page("", 0, 20).is_first

    def test_negative_offset_rejected(self):
        with pytest.raises(ValidationException) as exc_info:
            Page("ann", -1, 20)

        assert exc_info.value.details["field"] == "page_offset"

    @pytest.mark.parametrize("page_size", [0, -5])
    def test_non_positive_size_rejected(self, page_size):
        with pytest.raises(ValidationException) as exc_info:
            Page("ann", 0, page_size)

        assert exc_info.value.details["field"] == "page_size"


class TestSearchOutcome:
    """Test SearchOutcome."""

    def test_defaults_to_not_denied(self):
        outcome = SearchOutcome(users=[])

        assert outcome.is_empty
        assert outcome.denied is False

    def test_not_empty(self):
        user = UserRecord(id=1, display_name="Ann", user_name="ann", avatar_url="")
        assert not SearchOutcome(users=[user]).is_empty
