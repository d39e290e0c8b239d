"""Tests for DirectoryService."""

from unittest.mock import Mock

import pytest
from conftest import make_user, put_user

from services.directory_service import DirectoryService
from services.errors import Unauthenticated


@pytest.fixture
def directory(tables):
    """DirectoryService over the moto users table with a small population."""
    users_table = tables["users"]
    for user in [
        make_user("u_ann", "Ann Lee"),
        make_user("u_anna", "Anna Marie"),
        make_user("u_annie", "annie o'neil"),
        make_user("u_andy", "Andy"),
        make_user("u_bob", "Bob"),
        make_user("u_invited", "Anne Invited", account_activated=False),
        make_user("u_gone", "Annabel Gone", is_active=False),
        make_user("u_noname", None),
    ]:
        put_user(users_table, user)
    return DirectoryService(users_table)


class TestSearchByName:
    """Test cases for DirectoryService.search_by_name."""

    def test_prefix_match_ascending(self, directory, u1_actor):
        """Test results are activated users matching the prefix, in name order."""
        results = directory.search_by_name("ann", u1_actor)

        assert [r.user_id for r in results] == ["u_ann", "u_anna", "u_annie"]
        assert results[0].name == "Ann Lee"

    def test_prefix_is_normalized(self, directory, u1_actor):
        """Test the typed prefix is normalized like stored names."""
        results = directory.search_by_name("  ANNIE O'N", u1_actor)

        assert [r.user_id for r in results] == ["u_annie"]

    def test_excludes_inactive_and_unactivated(self, directory, u1_actor):
        """Test invited and deactivated users never appear."""
        ids = {r.user_id for r in directory.search_by_name("an", u1_actor)}

        assert "u_invited" not in ids
        assert "u_gone" not in ids
        assert ids == {"u_ann", "u_anna", "u_annie", "u_andy"}

    def test_exclude_user_ids(self, directory, u1_actor):
        """Test callers can leave out already chosen users."""
        results = directory.search_by_name("ann", u1_actor, exclude_user_ids=["u_anna"])

        assert [r.user_id for r in results] == ["u_ann", "u_annie"]

    def test_limit(self, directory, u1_actor):
        """Test the result count is capped."""
        results = directory.search_by_name("a", u1_actor, limit=2)

        assert [r.user_id for r in results] == ["u_andy", "u_ann"]

    @pytest.mark.parametrize("prefix", ["", "   ", "!!!"])
    def test_empty_prefix_returns_nothing(self, directory, u1_actor, prefix):
        """Test prefixes that normalize to nothing match no one."""
        assert directory.search_by_name(prefix, u1_actor) == []

    def test_no_match(self, directory, u1_actor):
        """Test a prefix matching nobody."""
        assert directory.search_by_name("zed", u1_actor) == []

    def test_requires_actor(self, directory):
        """Test anonymous callers cannot search the directory."""
        with pytest.raises(Unauthenticated):
            directory.search_by_name("ann", None)

    def test_pages_until_limit(self, u1_actor):
        """Test filtered-out rows do not shorten the result when more pages exist."""
        table = Mock()
        table.query.side_effect = [
            {
                "Items": [
                    {
                        "user_id": "u_hidden",
                        "name": "Ann Hidden",
                        "account_activated": False,
                        "created_at": "2026-01-20T08:00:00+00:00",
                    }
                ],
                "LastEvaluatedKey": {"user_id": "u_hidden"},
            },
            {
                "Items": [
                    {
                        "user_id": "u_ann",
                        "name": "Ann",
                        "account_activated": True,
                        "created_at": "2026-01-20T08:00:00+00:00",
                    }
                ]
            },
        ]

        results = DirectoryService(table).search_by_name("ann", u1_actor, limit=1)

        assert [r.user_id for r in results] == ["u_ann"]
        assert table.query.call_count == 2
