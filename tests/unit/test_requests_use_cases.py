import asyncio
from datetime import timedelta

import pytest

from app.requests.application.use_cases import (
    CreateMaintenanceRequestCommand,
    CreateMaintenanceRequestUseCase,
    CreateOrderCommand,
    CreateOrderUseCase,
    DashboardUseCase,
    GetRequestUseCase,
    ListNotificationsUseCase,
    ListRequestsQuery,
    ListRequestsUseCase,
    MarkAllNotificationsReadUseCase,
    MarkNotificationReadUseCase,
    OrderItemInput,
    ReportQuery,
    ReportUseCase,
    SwitchRestaurantUseCase,
    UpdateRequestCommand,
    UpdateRequestUseCase,
)
from app.requests.domain.errors import InvalidRequest, NotFound, PermissionDenied
from app.requests.domain.models import CurrentUser, Notification, RequestPredicates

from conftest import NOW, make_maintenance, make_order


def run(coro):
    return asyncio.run(coro)


def id_sequence(*ids):
    values = iter(ids)
    return lambda: next(values)


def order_command(**overrides):
    values = dict(
        category="glassware",
        items=[OrderItemInput(name="Verres à vin", quantity=24, unit="pieces")],
    )
    values.update(overrides)
    return CreateOrderCommand(**values)


def test_order_visible_only_within_its_restaurant(repository, room_manager):
    create = CreateOrderUseCase(
        repository=repository,
        id_generator=id_sequence("order-1", "notif-1"),
        clock=lambda: NOW,
    )
    order = run(create.execute(order_command(), room_manager))

    assert order.restaurant_id == "2"
    assert order.status == "pending"
    assert order.department == "room"
    assert order.created_by == "room-manager"

    listing = ListRequestsUseCase(repository, "order")
    colleague = CurrentUser(uid="b", role="employee", restaurant_id="2")
    outsider = CurrentUser(uid="c", role="employee", restaurant_id="3")

    assert [o.id for o in run(listing.execute(ListRequestsQuery(), colleague))] == ["order-1"]
    assert run(listing.execute(ListRequestsQuery(), outsider)) == []

    with pytest.raises(NotFound):
        run(GetRequestUseCase(repository, "order").execute("order-1", outsider))


def test_create_order_notifies_maintenance(repository, room_manager):
    create = CreateOrderUseCase(repository, id_sequence("order-1", "notif-1"), lambda: NOW)

    run(create.execute(order_command(), room_manager))

    assert repository.commits == 2
    [notification] = repository.notifications
    assert notification.recipient == "maintenance"
    assert notification.related_type == "order"
    assert notification.related_id == "order-1"
    assert notification.message == "Gigio - Verrerie"


def test_order_survives_notification_failure(repository, room_manager):
    repository.fail_notifications = True
    create = CreateOrderUseCase(repository, id_sequence("order-1", "notif-1"), lambda: NOW)

    with pytest.raises(RuntimeError):
        run(create.execute(order_command(), room_manager))

    assert "order-1" in repository.orders
    assert repository.commits == 1
    assert repository.notifications == []


def test_create_order_validation(repository, room_manager):
    create = CreateOrderUseCase(repository, id_sequence("a", "b", "c", "d"), lambda: NOW)

    with pytest.raises(InvalidRequest):
        run(create.execute(order_command(items=[]), room_manager))
    with pytest.raises(InvalidRequest):
        run(create.execute(
            order_command(items=[OrderItemInput(name="Verres", quantity=0, unit="pieces")]),
            room_manager,
        ))
    with pytest.raises(InvalidRequest):
        run(create.execute(order_command(category="spaceships"), room_manager))
    with pytest.raises(InvalidRequest):
        run(create.execute(order_command(is_recurring=True), room_manager))
    with pytest.raises(InvalidRequest):
        run(create.execute(order_command(photo_urls=["p"] * 6), room_manager))

    assert repository.orders == {}


def test_maintenance_must_pick_a_restaurant_before_creating(repository, maintenance_user):
    create = CreateMaintenanceRequestUseCase(repository, id_sequence("m-1", "n-1"), lambda: NOW)
    command = CreateMaintenanceRequestCommand(
        category="electrical", location="Salle", description="Néon grillé"
    )

    with pytest.raises(InvalidRequest):
        run(create.execute(command, maintenance_user))

    scoped = CurrentUser(uid="maint-user", role="maintenance", active_restaurant_id="4")
    request = run(create.execute(command, scoped))

    assert request.restaurant_id == "4"
    assert request.department == "general"
    assert repository.notifications[0].title == "Nouvelle demande de maintenance"


def test_dashboard_for_maintenance_across_restaurants(repository, maintenance_user):
    for index in range(7):
        order = make_order(
            f"o-{index}",
            restaurant_id=str(index % 4 + 1),
            created_at=NOW - timedelta(hours=index),
            status="pending" if index % 2 == 0 else "completed",
        )
        repository.orders[order.id] = order
    for index in range(3):
        request = make_maintenance(
            f"m-{index}", created_at=NOW - timedelta(minutes=30 + index * 60)
        )
        repository.maintenance_requests[request.id] = request

    summary = run(DashboardUseCase(repository).execute(maintenance_user))

    assert summary.scope == "ALL"
    assert summary.pending_orders_count == 4
    assert [o.id for o in summary.pending_orders] == ["o-0", "o-2", "o-4", "o-6"]
    assert summary.pending_maintenance_count == 3
    assert [r.id for r in summary.recent_requests] == ["o-0", "m-0", "o-1", "m-1", "o-2"]
    assert repository.last_filters.restaurant_id is None


def test_dashboard_scoped_to_assigned_restaurant(repository, room_manager):
    repository.orders["o-1"] = make_order("o-1", restaurant_id="2")
    repository.orders["o-2"] = make_order("o-2", restaurant_id="3")

    summary = run(DashboardUseCase(repository).execute(room_manager))

    assert summary.scope == "2"
    assert [o.id for o in summary.pending_orders] == ["o-1"]


def test_list_requests_filters_and_sorts(repository, maintenance_user):
    repository.orders["o-1"] = make_order("o-1", priority="planned")
    repository.orders["o-2"] = make_order("o-2", priority="urgent")
    repository.orders["o-3"] = make_order("o-3", priority="urgent", status="completed")

    listing = ListRequestsUseCase(repository, "order")
    result = run(listing.execute(
        ListRequestsQuery(
            predicates=RequestPredicates(status="pending"),
            sort_key="priority",
            direction="asc",
        ),
        maintenance_user,
    ))

    assert [o.id for o in result] == ["o-2", "o-1"]
    assert repository.last_filters.status == "pending"


def test_update_missing_request_is_not_found(repository, maintenance_user):
    update = UpdateRequestUseCase(repository, "order", id_sequence("n-1"), lambda: NOW)

    with pytest.raises(NotFound):
        run(update.execute("missing", UpdateRequestCommand(status="completed"), maintenance_user))


def test_update_denied_leaves_request_untouched(repository):
    repository.orders["o-1"] = make_order("o-1", restaurant_id="3", created_by="someone")
    employee = CurrentUser(uid="d", role="employee", restaurant_id="2")
    update = UpdateRequestUseCase(repository, "order", id_sequence("n-1"), lambda: NOW)

    with pytest.raises(PermissionDenied):
        run(update.execute("o-1", UpdateRequestCommand(status="cancelled"), employee))

    assert repository.orders["o-1"].status == "pending"
    assert repository.commits == 0


def test_status_change_notifies_creator(repository, maintenance_user):
    repository.maintenance_requests["m-1"] = make_maintenance("m-1")
    later = NOW + timedelta(days=2)
    update = UpdateRequestUseCase(repository, "maintenance", id_sequence("n-1"), lambda: later)

    updated = run(update.execute(
        "m-1",
        UpdateRequestCommand(status="completed", actual_date=later, assigned_to="Paul"),
        maintenance_user,
    ))

    assert updated.status == "completed"
    assert updated.actual_completion_date == later
    assert updated.assigned_to == "Paul"
    assert updated.updated_by == "maint-user"
    assert repository.maintenance_requests["m-1"] == updated
    [notification] = repository.notifications
    assert notification.recipient == "creator-1"
    assert notification.message == "Monsieur Mouettes - Terminé"
    assert repository.commits == 1


def test_completion_date_ignored_unless_completed(repository, maintenance_user):
    repository.maintenance_requests["m-1"] = make_maintenance("m-1")
    update = UpdateRequestUseCase(repository, "maintenance", id_sequence("n-1"), lambda: NOW)

    updated = run(update.execute(
        "m-1", UpdateRequestCommand(status="in_progress", actual_date=NOW), maintenance_user
    ))

    assert updated.actual_completion_date is None


def test_creator_edit_without_status_change_sends_nothing(repository):
    repository.orders["o-1"] = make_order("o-1")
    creator = CurrentUser(uid="creator-1", role="employee", restaurant_id="1")
    update = UpdateRequestUseCase(repository, "order", id_sequence("n-1"), lambda: NOW)

    updated = run(update.execute("o-1", UpdateRequestCommand(comments="Urgent svp"), creator))

    assert updated.comments == "Urgent svp"
    assert repository.notifications == []


def test_reports_gate_and_aggregates(repository, maintenance_user):
    repository.orders["o-1"] = make_order("o-1", restaurant_id="1", category="food")
    repository.orders["o-2"] = make_order("o-2", restaurant_id="3", category="food")
    repository.orders["o-old"] = make_order("o-old", created_at=NOW - timedelta(days=90))
    repository.maintenance_requests["m-1"] = make_maintenance(
        "m-1", status="completed", actual_completion_date=NOW + timedelta(days=2)
    )
    repository.maintenance_requests["m-2"] = make_maintenance("m-2")
    report_use_case = ReportUseCase(repository, clock=lambda: NOW + timedelta(days=3))

    report = run(report_use_case.execute(ReportQuery(period="month"), maintenance_user))

    assert report.orders_by_restaurant == {"1": 1, "2": 0, "3": 1, "4": 0}
    assert report.orders_by_category == {"food": 2}
    assert report.maintenance_by_status == {"completed": 1, "pending": 1}
    assert report.average_resolution_days == 2
    assert report.pending_maintenance_count == 1

    bar_manager = CurrentUser(uid="b", role="bar_manager", restaurant_id="1")
    with pytest.raises(PermissionDenied):
        run(report_use_case.execute(ReportQuery(), bar_manager))

    manager = CurrentUser(uid="r", role="restaurant_manager", restaurant_id="1")
    with pytest.raises(PermissionDenied):
        run(report_use_case.execute(ReportQuery(restaurant_id="3"), manager))

    own = run(report_use_case.execute(ReportQuery(), manager))
    assert [o.id for o in own.orders] == ["o-1"]


def test_reports_reject_inverted_custom_range(repository, maintenance_user):
    report_use_case = ReportUseCase(repository, clock=lambda: NOW)

    with pytest.raises(InvalidRequest):
        run(report_use_case.execute(
            ReportQuery(period="custom", start=NOW, end=NOW - timedelta(days=1)),
            maintenance_user,
        ))


def test_switch_restaurant(profile_repository, maintenance_user):
    switch = SwitchRestaurantUseCase(profile_repository, clock=lambda: NOW)

    switched = run(switch.execute("3", maintenance_user))
    assert switched.active_restaurant_id == "3"
    assert profile_repository.active_restaurants == {"maint-user": "3"}

    reset = run(switch.execute(None, switched))
    assert reset.active_restaurant_id is None

    employee = CurrentUser(uid="e", role="employee", restaurant_id="2")
    with pytest.raises(PermissionDenied):
        run(switch.execute("1", employee))
    with pytest.raises(InvalidRequest):
        run(switch.execute("9", maintenance_user))

    assert run(switch.execute("2", employee)) == employee


def _notification(notification_id, recipient, minutes, read=False):
    return Notification(
        id=notification_id,
        recipient=recipient,
        title="Nouvelle commande",
        message="Gigio - Verrerie",
        created_at=NOW + timedelta(minutes=minutes),
        related_type="order",
        related_id="o-1",
        read=read,
    )


def test_notification_feed(notification_repository_factory, maintenance_user):
    repository = notification_repository_factory([
        _notification("n-1", "maintenance", 1),
        _notification("n-2", "maint-user", 5, read=True),
        _notification("n-3", "creator-1", 3),
    ])

    feed = run(ListNotificationsUseCase(repository).execute(maintenance_user))

    assert [n.id for n in feed.notifications] == ["n-2", "n-1"]
    assert feed.unread_count == 1


def test_mark_notifications_read(notification_repository_factory, maintenance_user):
    repository = notification_repository_factory([
        _notification("n-1", "maintenance", 1),
        _notification("n-2", "maint-user", 2),
        _notification("n-3", "creator-1", 3),
    ])

    with pytest.raises(NotFound):
        run(MarkNotificationReadUseCase(repository).execute("n-3", maintenance_user))

    run(MarkNotificationReadUseCase(repository).execute("n-1", maintenance_user))
    assert repository.notifications["n-1"].read is True

    count = run(MarkAllNotificationsReadUseCase(repository).execute(maintenance_user))
    assert count == 1
    assert repository.notifications["n-2"].read is True
    assert repository.notifications["n-3"].read is False


def test_dashboard_follows_selected_restaurant(repository, profile_repository, maintenance_user):
    for restaurant_id in ("1", "2", "3", "4"):
        request = make_maintenance(f"m-{restaurant_id}", restaurant_id=restaurant_id)
        repository.maintenance_requests[request.id] = request
    dashboard = DashboardUseCase(repository)

    assert run(dashboard.execute(maintenance_user)).pending_maintenance_count == 4

    switched = run(SwitchRestaurantUseCase(profile_repository, lambda: NOW).execute("1", maintenance_user))
    summary = run(dashboard.execute(switched))

    assert summary.pending_maintenance_count == 1
    assert [r.id for r in summary.pending_maintenance] == ["m-1"]


def test_blank_assignee_unassigns(repository, maintenance_user):
    repository.orders["o-1"] = make_order("o-1", assigned_to="Paul")
    update = UpdateRequestUseCase(repository, "order", id_sequence("n-1"), lambda: NOW)

    kept = run(update.execute("o-1", UpdateRequestCommand(comments="ok"), maintenance_user))
    assert kept.assigned_to == "Paul"

    cleared = run(update.execute("o-1", UpdateRequestCommand(assigned_to="  "), maintenance_user))
    assert cleared.assigned_to is None
