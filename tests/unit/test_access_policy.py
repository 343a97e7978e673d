import pytest

from app.requests.domain import policy
from app.requests.domain.errors import PermissionDenied
from app.requests.domain.models import CurrentUser, UserRole

ASSIGNED_ROLES = ["restaurant_manager", "room_manager", "bar_manager", "employee"]
MANAGER_ROLES = ["restaurant_manager", "room_manager", "bar_manager"]


@pytest.mark.parametrize("role", ASSIGNED_ROLES)
def test_assigned_roles_are_scoped_to_their_restaurant(role):
    user = CurrentUser(uid="u-1", role=role, restaurant_id="3", active_restaurant_id="1")

    assert policy.resolve_scope(user) == "3"


def test_maintenance_without_selection_sees_all_restaurants(maintenance_user):
    assert policy.resolve_scope(maintenance_user) == policy.ALL_RESTAURANTS


def test_maintenance_with_selection_is_scoped_to_it():
    user = CurrentUser(uid="m-1", role="maintenance", active_restaurant_id="1")

    assert policy.resolve_scope(user) == "1"


def test_maintenance_can_edit_any_restaurant(maintenance_user, order_factory):
    for restaurant_id in ("1", "2", "3", "4"):
        order = order_factory(restaurant_id=restaurant_id, status="completed")
        assert policy.can_edit(maintenance_user, order) is True


@pytest.mark.parametrize("role", MANAGER_ROLES)
def test_managers_edit_only_their_restaurant(role, order_factory):
    user = CurrentUser(uid="m-2", role=role, restaurant_id="2")

    assert policy.can_edit(user, order_factory(restaurant_id="2", status="in_progress")) is True
    assert policy.can_edit(user, order_factory(restaurant_id="3", status="in_progress")) is False


@pytest.mark.parametrize("role", ASSIGNED_ROLES + ["maintenance"])
def test_creator_edits_own_pending_request_regardless_of_role(role, maintenance_factory):
    user = CurrentUser(uid="creator-1", role=role, restaurant_id="4")
    request = maintenance_factory(created_by="creator-1", restaurant_id="1", department="room")

    assert policy.can_edit(user, request) is True


def test_creator_loses_edit_once_request_moves_on(order_factory):
    user = CurrentUser(uid="creator-1", role="employee", restaurant_id="1")

    assert policy.can_edit(user, order_factory(status="in_progress")) is False


def test_employee_cannot_edit_foreign_pending_request(order_factory):
    user = CurrentUser(uid="d-1", role="employee", restaurant_id="2")
    order = order_factory(created_by="someone-else", restaurant_id="3", status="pending")

    assert policy.can_edit(user, order) is False
    with pytest.raises(PermissionDenied):
        policy.ensure_can_edit(user, order)


def test_can_edit_reflects_current_request_state(order_factory):
    user = CurrentUser(uid="creator-1", role="employee", restaurant_id="1")
    order = order_factory(status="pending")

    assert policy.can_edit(user, order) is True
    assert policy.can_edit(user, order_factory(status="cancelled")) is False
    assert policy.can_edit(user, order) is True


def test_switch_rules(maintenance_user):
    employee = CurrentUser(uid="e-1", role="employee", restaurant_id="2")

    assert policy.can_switch_to(maintenance_user, "4") is True
    assert policy.can_switch_to(maintenance_user, None) is True
    assert policy.can_switch_to(employee, "2") is True
    assert policy.can_switch_to(employee, "1") is False
    assert policy.can_switch_to(employee, None) is False

    with pytest.raises(PermissionDenied):
        policy.ensure_can_switch_to(employee, "1")


def test_report_access():
    assert policy.can_view_reports(CurrentUser(uid="m", role="maintenance")) is True
    assert policy.can_view_reports(
        CurrentUser(uid="r", role="restaurant_manager", restaurant_id="1")
    ) is True
    assert policy.can_view_reports(
        CurrentUser(uid="b", role="bar_manager", restaurant_id="1")
    ) is False


def test_default_department():
    assert policy.default_department("room_manager") == "room"
    assert policy.default_department("bar_manager") == "bar"
    assert policy.default_department("employee") == "general"


@pytest.mark.parametrize("role", MANAGER_ROLES)
def test_manager_edit_implies_same_restaurant(role, order_factory):
    for own in ("1", "2", "3", "4"):
        user = CurrentUser(uid="someone", role=role, restaurant_id=own)
        for restaurant_id in ("1", "2", "3", "4"):
            for status in ("pending", "in_progress", "completed", "cancelled"):
                order = order_factory(restaurant_id=restaurant_id, status=status)
                if policy.can_edit(user, order):
                    assert order.restaurant_id == user.restaurant_id


def test_role_enum_members_match_role_values(order_factory):
    manager = CurrentUser(uid="m-3", role=UserRole.ROOM_MANAGER, restaurant_id="1")
    reporter = CurrentUser(uid="r-3", role=UserRole.RESTAURANT_MANAGER, restaurant_id="1")

    assert policy.can_edit(manager, order_factory(status="completed")) is True
    assert policy.can_view_reports(reporter) is True
