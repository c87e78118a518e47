"""
Unit tests for the shared access checks.

These tests cover:
- Class membership and group-creation checks
- Thread participant checks
- School access through each membership path
- News posting capabilities at school and class scope
"""

from unittest.mock import AsyncMock, patch

import pytest

from edubridge.core.errors import AccessDeniedError
from edubridge.modules.access import (
    CLASS_ACCESS_DENIED,
    GROUP_CREATION_DENIED,
    THREAD_ACCESS_DENIED,
    can_post_to_class,
    can_post_to_school,
    has_school_access,
    require_class_membership,
    require_group_creation,
    require_school_access,
    require_thread_participant,
)
from edubridge.modules.schools.models import SchoolCapability

CHECKS = "edubridge.modules.access.checks"


class TestRequireClassMembership:
    """Tests for require_class_membership."""

    @pytest.mark.asyncio
    async def test_returns_membership(self, mock_db, make_membership):
        """A member gets their membership row back."""
        membership = make_membership("class-1", "user-1")
        with patch(f"{CHECKS}.classes_repository") as mock_repo:
            mock_repo.get_membership = AsyncMock(return_value=membership)

            result = await require_class_membership(mock_db, "class-1", "user-1")

        assert result is membership
        mock_repo.get_membership.assert_called_once_with(mock_db, "class-1", "user-1")

    @pytest.mark.asyncio
    async def test_non_member_denied(self, mock_db):
        """A non-member is rejected with the default message."""
        with patch(f"{CHECKS}.classes_repository") as mock_repo:
            mock_repo.get_membership = AsyncMock(return_value=None)

            with pytest.raises(AccessDeniedError) as exc_info:
                await require_class_membership(mock_db, "class-1", "user-1")

        assert exc_info.value.message == CLASS_ACCESS_DENIED
        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_custom_message(self, mock_db):
        """Callers can override the denial message."""
        with patch(f"{CHECKS}.classes_repository") as mock_repo:
            mock_repo.get_membership = AsyncMock(return_value=None)

            with pytest.raises(AccessDeniedError) as exc_info:
                await require_class_membership(
                    mock_db, "class-1", "user-1", message="No access to class news"
                )

        assert exc_info.value.message == "No access to class news"


class TestRequireGroupCreation:
    """Tests for require_group_creation."""

    @pytest.mark.asyncio
    async def test_member_with_capability(self, mock_db, make_membership):
        membership = make_membership("class-1", "user-1", can_create_groups=True)
        with patch(f"{CHECKS}.classes_repository") as mock_repo:
            mock_repo.get_membership = AsyncMock(return_value=membership)

            result = await require_group_creation(mock_db, "class-1", "user-1")

        assert result is membership

    @pytest.mark.asyncio
    async def test_member_without_capability(self, mock_db, make_membership):
        """Members lacking the flag get a permission error, not an access error."""
        membership = make_membership("class-1", "user-1", can_create_groups=False)
        with patch(f"{CHECKS}.classes_repository") as mock_repo:
            mock_repo.get_membership = AsyncMock(return_value=membership)

            with pytest.raises(AccessDeniedError) as exc_info:
                await require_group_creation(mock_db, "class-1", "user-1")

        assert exc_info.value.message == GROUP_CREATION_DENIED
        assert exc_info.value.error_code == "GROUP_CREATION_DENIED"

    @pytest.mark.asyncio
    async def test_non_member(self, mock_db):
        with patch(f"{CHECKS}.classes_repository") as mock_repo:
            mock_repo.get_membership = AsyncMock(return_value=None)

            with pytest.raises(AccessDeniedError) as exc_info:
                await require_group_creation(mock_db, "class-1", "user-1")

        assert exc_info.value.message == CLASS_ACCESS_DENIED


class TestRequireThreadParticipant:
    """Tests for require_thread_participant."""

    @pytest.mark.asyncio
    async def test_participant_allowed(self, mock_db):
        with patch(f"{CHECKS}.messaging_repository") as mock_repo:
            mock_repo.is_participant = AsyncMock(return_value=True)

            await require_thread_participant(mock_db, "thread-1", "user-1")

        mock_repo.is_participant.assert_called_once_with(mock_db, "thread-1", "user-1")

    @pytest.mark.asyncio
    async def test_non_participant_denied(self, mock_db):
        with patch(f"{CHECKS}.messaging_repository") as mock_repo:
            mock_repo.is_participant = AsyncMock(return_value=False)

            with pytest.raises(AccessDeniedError) as exc_info:
                await require_thread_participant(mock_db, "thread-1", "user-1")

        assert exc_info.value.message == THREAD_ACCESS_DENIED


class TestSchoolAccess:
    """Tests for has_school_access and require_school_access."""

    def _school_repo(self, mock_repo, admin=False, permission=False, member=False, parent=False):
        mock_repo.is_school_admin = AsyncMock(return_value=admin)
        mock_repo.has_any_permission = AsyncMock(return_value=permission)
        mock_repo.is_class_member_in_school = AsyncMock(return_value=member)
        mock_repo.is_parent_in_school = AsyncMock(return_value=parent)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "path",
        ["admin", "permission", "member", "parent"],
    )
    async def test_any_path_grants_access(self, mock_db, path):
        """Each membership path on its own is enough."""
        with patch(f"{CHECKS}.SchoolRepository") as mock_repo:
            self._school_repo(mock_repo, **{path: True})

            assert await has_school_access(mock_db, "school-1", "user-1") is True

    @pytest.mark.asyncio
    async def test_no_path_denied(self, mock_db):
        with patch(f"{CHECKS}.SchoolRepository") as mock_repo:
            self._school_repo(mock_repo)

            assert await has_school_access(mock_db, "school-1", "user-1") is False
            with pytest.raises(AccessDeniedError) as exc_info:
                await require_school_access(mock_db, "school-1", "user-1")

        assert exc_info.value.error_code == "SCHOOL_ACCESS_DENIED"

    @pytest.mark.asyncio
    async def test_admin_short_circuits(self, mock_db):
        """Later paths are not queried once one matches."""
        with patch(f"{CHECKS}.SchoolRepository") as mock_repo:
            self._school_repo(mock_repo, admin=True)

            await require_school_access(mock_db, "school-1", "user-1")

        mock_repo.is_parent_in_school.assert_not_called()


class TestCanPost:
    """Tests for the news posting capability checks."""

    @pytest.mark.asyncio
    async def test_school_admin_can_post(self, mock_db):
        with patch(f"{CHECKS}.SchoolRepository") as mock_repo:
            mock_repo.is_school_admin = AsyncMock(return_value=True)
            mock_repo.has_capability = AsyncMock(return_value=False)

            assert await can_post_to_school(mock_db, "user-1", "school-1") is True

        mock_repo.has_capability.assert_not_called()

    @pytest.mark.asyncio
    async def test_school_grant_can_post(self, mock_db):
        with patch(f"{CHECKS}.SchoolRepository") as mock_repo:
            mock_repo.is_school_admin = AsyncMock(return_value=False)
            mock_repo.has_capability = AsyncMock(return_value=True)

            assert await can_post_to_school(mock_db, "user-1", "school-1") is True

        mock_repo.has_capability.assert_called_once_with(
            mock_db, "school-1", "user-1", SchoolCapability.POST_NEWS
        )

    @pytest.mark.asyncio
    async def test_school_plain_member_cannot_post(self, mock_db):
        with patch(f"{CHECKS}.SchoolRepository") as mock_repo:
            mock_repo.is_school_admin = AsyncMock(return_value=False)
            mock_repo.has_capability = AsyncMock(return_value=False)

            assert await can_post_to_school(mock_db, "user-1", "school-1") is False

    @pytest.mark.asyncio
    async def test_class_flag_controls_posting(self, mock_db, make_membership):
        with patch(f"{CHECKS}.classes_repository") as mock_repo:
            mock_repo.get_membership = AsyncMock(
                return_value=make_membership("class-1", "user-1", can_post_news=True)
            )
            assert await can_post_to_class(mock_db, "user-1", "class-1") is True

            mock_repo.get_membership = AsyncMock(
                return_value=make_membership("class-1", "user-1", can_post_news=False)
            )
            assert await can_post_to_class(mock_db, "user-1", "class-1") is False

            mock_repo.get_membership = AsyncMock(return_value=None)
            assert await can_post_to_class(mock_db, "user-1", "class-1") is False
