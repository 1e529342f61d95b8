"""Tests for project access control helpers."""

import pytest

from cutroom.exceptions import ForbiddenError
from cutroom.schemas.identity import Identity
from cutroom.schemas.project import Comment
from cutroom.services.access import (
    AccessLevel,
    can_access,
    can_modify_comment,
    require_access,
    require_comment_author_or_verified,
)


class TestProjectAccess:
    def test_owner_has_write_access_without_membership(self, alice, project_factory):
        project = project_factory(owner_id=alice.id, team=[])

        assert can_access(alice, project) == AccessLevel.WRITE

    def test_team_member_has_write_access(self, guest, project_factory):
        project = project_factory(team=[{"id": guest.id, "name": "Guest", "role": "Guest"}])

        assert can_access(guest, project) == AccessLevel.WRITE

    def test_stranger_has_no_access(self, bob, project_factory):
        project = project_factory(team=[{"id": "carol@example.com", "name": "Carol"}])

        assert can_access(bob, project) == AccessLevel.NONE
        with pytest.raises(ForbiddenError):
            require_access(bob, project, AccessLevel.READ)
        with pytest.raises(ForbiddenError):
            require_access(bob, project, AccessLevel.WRITE)

    def test_empty_owner_never_matches(self, project_factory):
        """A project without an owner id is not owned by an identity with an empty id."""
        nobody = Identity(id="", display_name="")
        project = project_factory(owner_id="")

        assert can_access(nobody, project) == AccessLevel.NONE

    def test_require_access_passes_for_member(self, bob, project_factory):
        project = project_factory(team=[{"id": bob.id, "name": "Bob"}])

        require_access(bob, project, AccessLevel.READ)
        require_access(bob, project, AccessLevel.WRITE)


class TestCommentAuthorship:
    def test_author_may_modify_own_comment(self, guest):
        comment = Comment(id="c1", user_id=guest.id, text="hi")

        assert can_modify_comment(guest, comment)

    def test_guest_may_not_modify_others_comment(self, guest):
        comment = Comment(id="c1", user_id="alice@example.com", text="hi")

        assert not can_modify_comment(guest, comment)
        with pytest.raises(ForbiddenError):
            require_comment_author_or_verified(guest, comment)

    def test_verified_identity_may_modify_any_comment(self, bob):
        comment = Comment(id="c1", user_id="guest-999", text="hi")

        assert can_modify_comment(bob, comment)
