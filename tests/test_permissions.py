# tests/test_permissions.py

from types import SimpleNamespace

import pytest

from apps.core.exceptions import Forbidden, NotFound
from apps.core.models import Role
from apps.core.permissions import (
    ACTION_MIN_ROLE, OWNER_ONLY, Action, gate, resolve_access,
)


ROLES = [Role.TEAM_MEMBER, Role.PROJECT_MANAGER, Role.ADMIN]


def snapshot(owner_id=1):
    return SimpleNamespace(owner_id=owner_id)


def test_owner_is_admin_without_membership():
    access = resolve_access(snapshot(owner_id=1), 1, Role.ADMIN, members={})

    assert access.role == Role.ADMIN
    assert access.is_owner


def test_owner_stays_admin_even_if_listed_with_lower_role():
    access = resolve_access(snapshot(owner_id=1), 1, Role.ADMIN, members={1: Role.TEAM_MEMBER})
    assert access.role == Role.ADMIN


def test_non_member_is_forbidden():
    with pytest.raises(Forbidden):
        resolve_access(snapshot(), 99, None, members={2: Role.ADMIN})


@pytest.mark.parametrize('held', ROLES)
@pytest.mark.parametrize('required', ROLES)
def test_role_rank_is_monotonic(held, required):
    members = {2: held}
    permitido = Role.rank(held) >= Role.rank(required)

    if permitido:
        assert resolve_access(snapshot(), 2, required, members=members).role == held
    else:
        with pytest.raises(Forbidden):
            resolve_access(snapshot(), 2, required, members=members)


def test_every_action_has_a_minimum_role():
    assert set(ACTION_MIN_ROLE) == set(Action)
    assert ACTION_MIN_ROLE[Action.DELETE_PROJECT] == OWNER_ONLY
    assert ACTION_MIN_ROLE[Action.REMOVE_MEMBER] == Role.PROJECT_MANAGER


@pytest.mark.django_db
class TestPermissionGate:

    def test_manager_can_add_members(self, project, manager):
        access = gate.authorize_action(manager.pk, project.pk, Action.ADD_MEMBER)
        assert access.role == Role.PROJECT_MANAGER

    def test_team_member_cannot_manage_sprints(self, project, developer):
        with pytest.raises(Forbidden):
            gate.authorize_action(developer.pk, project.pk, Action.CREATE_SPRINT)

    def test_only_owner_deletes_project(self, project, owner, manager):
        assert gate.authorize_action(owner.pk, project.pk, Action.DELETE_PROJECT).is_owner

        with pytest.raises(Forbidden):
            gate.authorize_action(manager.pk, project.pk, Action.DELETE_PROJECT)

    def test_outsider_is_forbidden(self, project, outsider):
        with pytest.raises(Forbidden):
            gate.authorize(outsider.pk, project.pk)

    def test_inactive_project_is_not_found(self, project, owner):
        project.is_active = False
        project.save()

        with pytest.raises(NotFound):
            gate.authorize(owner.pk, project.pk)

    def test_owner_is_listed_as_admin_member(self, project, owner):
        member = project.members.get(user=owner)
        assert member.role == Role.ADMIN
