"""
Unit tests for school resolution.

These tests cover:
- Union of the four membership paths, de-duplicated and sorted by name
- Collecting every user attached to a school
"""

from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from edubridge.modules.schools.repository import SchoolRepository
from edubridge.modules.schools.service import get_user_schools

SERVICE = "edubridge.modules.schools.service"


def _school(school_id: str, name: str) -> SimpleNamespace:
    now = datetime(2025, 9, 1, tzinfo=UTC)
    return SimpleNamespace(
        id=school_id, name=name, address=None, logo=None, created_at=now, updated_at=now
    )


class TestGetUserSchools:
    """Tests for get_user_schools."""

    @pytest.mark.asyncio
    async def test_union_is_unique_and_sorted(self, mock_db):
        hillside = _school("s1", "hillside Primary")
        accra = _school("s2", "Accra Academy")
        riverside = _school("s3", "Riverside")
        with patch(f"{SERVICE}.SchoolRepository") as mock_repo:
            mock_repo.get_schools_by_class_membership = AsyncMock(return_value=[hillside])
            mock_repo.get_schools_by_permissions = AsyncMock(return_value=[accra, hillside])
            mock_repo.get_schools_by_admin_role = AsyncMock(return_value=[])
            mock_repo.get_schools_by_parent_role = AsyncMock(return_value=[riverside, accra])

            result = await get_user_schools(mock_db, "user-1")

        assert [s.id for s in result] == ["s2", "s1", "s3"]

    @pytest.mark.asyncio
    async def test_no_paths(self, mock_db):
        with patch(f"{SERVICE}.SchoolRepository") as mock_repo:
            mock_repo.get_schools_by_class_membership = AsyncMock(return_value=[])
            mock_repo.get_schools_by_permissions = AsyncMock(return_value=[])
            mock_repo.get_schools_by_admin_role = AsyncMock(return_value=[])
            mock_repo.get_schools_by_parent_role = AsyncMock(return_value=[])

            assert await get_user_schools(mock_db, "user-1") == []


class TestGetMemberUserIds:
    """Tests for SchoolRepository.get_member_user_ids."""

    @pytest.mark.asyncio
    async def test_merges_every_path(self, mock_db):
        def result(ids):
            res = MagicMock()
            res.scalars.return_value.all.return_value = ids
            return res

        mock_db.execute = AsyncMock(
            side_effect=[
                result(["admin"]),
                result(["grantee", "admin"]),
                result(["teacher", "parent"]),
                result(["parent"]),
            ]
        )

        user_ids = await SchoolRepository.get_member_user_ids(mock_db, "school-1")

        assert user_ids == {"admin", "grantee", "teacher", "parent"}
        assert mock_db.execute.call_count == 4
