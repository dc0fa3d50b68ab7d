"""
Tests for the container ledger operations.

Covers:
- add_inventory: catalog creation, ADD transaction, expiry estimation,
  alias learning, all-or-nothing batches
- add_leftover
- update_inventory: ADJUST logging, unit changes, status rules, re-pointing
- delete_inventory (soft delete)
- search, expiring items, summary and the append-only log
"""

from datetime import timedelta

import pytest

from test_fixtures import db_session, engine, uow, add_item, operations, seed_catalog
from app.exceptions import InvalidOperationError, NotFoundError, ServiceValidationError
from domain.enums import ContainerStatus
from domain.models import Container, InventoryTransaction, utcnow
from domain.schemas.inventory_schemas import (
    AddInventoryItem,
    AddInventoryRequest,
    AddLeftoverRequest,
    ContainerSpec,
    ContentsSpec,
    InventoryUpdates,
    SearchInventoryFilters,
    UpdateInventoryRequest,
)
from services.inventory_service import InventoryService


def update(uow, container_id, reason=None, **changes):
    return InventoryService.update_inventory(
        uow, container_id, UpdateInventoryRequest(updates=InventoryUpdates(**changes), reason=reason)
    )


# =============================================================================
# ADD
# =============================================================================


def test_add_inventory_creates_container_contents_and_add(uow):
    request = AddInventoryRequest(
        items=[
            AddInventoryItem(
                name="Greek Yogurt",
                category="dairy",
                container=ContainerSpec(unit="tub"),
                contents=ContentsSpec(quantity=500, unit="g"),
                source="vision",
                confidence="high",
                vision_job_id="job-42",
            )
        ]
    )

    result = InventoryService.add_inventory(uow, request)

    assert result.created == 1
    container = uow.containers.get_by_id(result.container_ids[0])
    assert container.master_id == "greek-yogurt"
    assert container.master.canonical_name == "Greek Yogurt"
    assert container.master.category == "dairy"
    assert container.master.default_unit == "g"
    assert container.status == "SEALED"
    assert container.purchase_unit == "tub"
    assert container.vision_job_id == "job-42"
    assert container.confidence == "high"
    assert container.contents.remaining_qty == 500
    assert container.contents.unit == "g"

    log = uow.transactions.get_for_container(container.id)
    assert [(t.operation, t.delta, t.unit, t.reason) for t in log] == [
        ("ADD", 500, "g", "vision_ingest")
    ]


def test_add_inventory_batch(uow):
    request = AddInventoryRequest(
        items=[
            AddInventoryItem(name="Apple", contents=ContentsSpec(quantity=6, unit="count")),
            AddInventoryItem(name="apple", contents=ContentsSpec(quantity=4, unit="count")),
            AddInventoryItem(name="Carrots", contents=ContentsSpec(quantity=1, unit="kg")),
        ]
    )

    result = InventoryService.add_inventory(uow, request)

    assert result.created == 3
    assert len(set(result.container_ids)) == 3
    masters = [uow.containers.get_by_id(cid).master_id for cid in result.container_ids]
    assert masters == ["apple", "apple", "carrots"]


def test_add_inventory_batch_is_all_or_nothing(uow):
    request = AddInventoryRequest(
        items=[
            AddInventoryItem(name="Apple", contents=ContentsSpec(quantity=6, unit="count")),
            AddInventoryItem(
                name="Pear", master_id="missing", contents=ContentsSpec(quantity=1, unit="count")
            ),
        ]
    )

    with pytest.raises(NotFoundError):
        InventoryService.add_inventory(uow, request)

    assert uow.db.query(Container).count() == 0
    assert uow.ingredients.get_by_id("apple") is None


def test_add_inventory_estimates_expiry_from_shelf_life(uow):
    before = utcnow()
    cid = add_item(uow, "Spinach", 200, "g", default_shelf_life_days=5)

    container = uow.containers.get_by_id(cid)
    assert before + timedelta(days=5) <= container.expires_at <= utcnow() + timedelta(days=5)


def test_add_inventory_keeps_explicit_expiry(uow):
    expires = utcnow() + timedelta(days=10)
    cid = add_item(uow, "Spinach", 200, "g", default_shelf_life_days=5, expires_at=expires)

    assert uow.containers.get_by_id(cid).expires_at == expires


def test_add_inventory_with_master_id_learns_alias(uow):
    seed_catalog(uow, "Scallion")

    cid = add_item(uow, "Green Onions", 1, "bunch", master_id="scallion")

    assert uow.containers.get_by_id(cid).master_id == "scallion"
    alias = uow.aliases.get_by_alias("green onions")
    assert alias.master_id == "scallion"
    assert alias.source == "agent"


def test_add_inventory_with_matching_name_learns_nothing(uow):
    seed_catalog(uow, "Scallion")

    add_item(uow, "scallion", 1, "bunch", master_id="scallion")

    assert uow.aliases.get_for_master("scallion") == []


def test_add_inventory_rejects_terminal_initial_status(uow):
    with pytest.raises(ServiceValidationError):
        add_item(uow, "Rice", 1, "kg", container=ContainerSpec(status="EMPTY"))


def test_add_inventory_rejects_unsluggable_name(uow):
    with pytest.raises(ServiceValidationError):
        add_item(uow, "???", 1, "kg")


def test_add_leftover(uow):
    result = InventoryService.add_leftover(
        uow, AddLeftoverRequest(dish_name="Chicken Curry", quantity=3, unit="serving", recipe_id="r-7")
    )

    container = uow.containers.get_by_id(result.container_id)
    assert container.master_id is None
    assert container.dish_name == "Chicken Curry"
    assert container.cooked_from_recipe_id == "r-7"
    assert container.status == "OPEN"
    assert container.source == "cooked"
    assert container.is_leftover
    expected = utcnow() + timedelta(days=4)
    assert abs((container.expires_at - expected).total_seconds()) < 60

    log = uow.transactions.get_for_container(container.id)
    assert [(t.operation, t.delta, t.reason) for t in log] == [("ADD", 3, "leftover:r-7")]


def test_add_leftover_without_recipe(uow):
    result = InventoryService.add_leftover(
        uow, AddLeftoverRequest(dish_name="Soup", quantity=2, unit="cups", expires_in_days=2)
    )

    container = uow.containers.get_by_id(result.container_id)
    assert container.contents.unit == "cup"
    assert uow.transactions.get_for_container(container.id)[0].reason == "leftover:manual"
    expected = utcnow() + timedelta(days=2)
    assert abs((container.expires_at - expected).total_seconds()) < 60


# =============================================================================
# UPDATE / DELETE
# =============================================================================


def test_update_quantity_logs_adjust(uow):
    cid = add_item(uow, "Rice", 1000, "g", container=ContainerSpec(status="OPEN"))

    item = update(uow, cid, remaining_qty=700, reason="recount")

    assert item.remaining_qty == 700
    assert item.status == ContainerStatus.OPEN
    log = uow.transactions.get_for_container(cid)
    assert (log[-1].operation, log[-1].delta, log[-1].unit, log[-1].reason) == (
        "ADJUST", -300, "g", "recount"
    )
    assert InventoryService.verify_projection(uow, cid).consistent


def test_update_same_quantity_logs_nothing(uow):
    cid = add_item(uow, "Rice", 1000, "g")

    update(uow, cid, remaining_qty=1000)

    assert operations(uow, cid) == ["ADD"]


def test_update_quantity_rederives_low_and_back(uow):
    cid = add_item(uow, "Rice", 1000, "g", container=ContainerSpec(status="OPEN"))

    assert update(uow, cid, remaining_qty=150).status == ContainerStatus.LOW
    assert update(uow, cid, remaining_qty=600).status == ContainerStatus.OPEN
    assert update(uow, cid, remaining_qty=0).status == ContainerStatus.EMPTY


def test_update_quantity_keeps_sealed(uow):
    cid = add_item(uow, "Rice", 1000, "g")

    item = update(uow, cid, remaining_qty=100)

    assert item.status == ContainerStatus.SEALED
    assert item.remaining_qty == 100


def test_update_unit_logs_balanced_adjusts(uow):
    cid = add_item(uow, "Flour", 1, "kg", container=ContainerSpec(status="OPEN"))

    item = update(uow, cid, unit="g")

    assert item.unit == "g"
    assert item.remaining_qty == pytest.approx(1000)
    log = uow.transactions.get_for_container(cid)
    assert [(t.operation, t.delta, t.unit) for t in log[1:]] == [
        ("ADJUST", -1, "kg"),
        ("ADJUST", pytest.approx(1000), "g"),
    ]
    check = InventoryService.verify_projection(uow, cid)
    assert check.consistent
    assert check.unit == "g"


def test_update_status_follows_lifecycle(uow):
    cid = add_item(uow, "Rice", 1000, "g")

    item = update(uow, cid, status="OPEN")

    assert item.status == ContainerStatus.OPEN
    assert operations(uow, cid) == ["ADD", "STATUS_CHANGE"]
    with pytest.raises(InvalidOperationError):
        update(uow, cid, status="SEALED")


def test_update_status_empty_zeroes_remaining_stock(uow):
    cid = add_item(uow, "Rice", 10, "g", container=ContainerSpec(status="OPEN"))
    update(uow, cid, remaining_qty=9)

    item = update(uow, cid, status="EMPTY", reason="used up")

    assert item.status == ContainerStatus.EMPTY
    assert item.remaining_qty == 0
    log = uow.transactions.get_for_container(cid)
    assert (log[-1].operation, log[-1].delta, log[-1].unit, log[-1].reason) == (
        "ADJUST", -9, "g", "used up"
    )
    assert InventoryService.verify_projection(uow, cid).consistent
    assert uow.containers.get_active_for_master("rice") == []


def test_update_status_empty_on_sealed_container(uow):
    cid = add_item(uow, "Rice", 10, "g")

    item = update(uow, cid, status="EMPTY")

    assert item.status == ContainerStatus.EMPTY
    assert item.remaining_qty == 0
    assert operations(uow, cid) == ["ADD", "ADJUST"]


def test_update_rejects_open_status_for_low_quantity(uow):
    cid = add_item(uow, "Rice", 10, "g")

    with pytest.raises(InvalidOperationError) as exc_info:
        update(uow, cid, remaining_qty=1, status="OPEN")

    assert exc_info.value.code == "STATUS_QUANTITY_MISMATCH"
    container = uow.containers.get_by_id(cid)
    assert container.status == "SEALED"
    assert container.contents.remaining_qty == 10
    assert operations(uow, cid) == ["ADD"]


def test_update_rejects_low_status_for_full_container(uow):
    cid = add_item(uow, "Rice", 10, "g", container=ContainerSpec(status="OPEN"))

    with pytest.raises(InvalidOperationError):
        update(uow, cid, status="LOW")

    assert uow.containers.get_by_id(cid).status == "OPEN"


def test_update_accepts_low_status_matching_quantity(uow):
    cid = add_item(uow, "Rice", 10, "g")

    item = update(uow, cid, remaining_qty=1, status="LOW")

    assert item.status == ContainerStatus.LOW
    assert operations(uow, cid) == ["ADD", "ADJUST", "STATUS_CHANGE"]


def test_update_rejects_empty_container(uow):
    cid = add_item(uow, "Rice", 100, "g", container=ContainerSpec(status="OPEN"))
    update(uow, cid, remaining_qty=0)

    with pytest.raises(InvalidOperationError):
        update(uow, cid, remaining_qty=50)


def test_update_status_deleted_is_soft_delete(uow):
    cid = add_item(uow, "Rice", 100, "g")

    item = update(uow, cid, status="DELETED", reason="spilled")

    assert item.status == ContainerStatus.DELETED
    log = uow.transactions.get_for_container(cid)
    assert (log[-1].operation, log[-1].reason) == ("DELETE", "spilled")


def test_update_repoints_master_and_learns_correction(uow):
    seed_catalog(uow, "Spring Onion")
    cid = add_item(uow, "Scallion", 1, "bunch")

    item = update(uow, cid, master_id="spring-onion", name="Spring Onion")

    assert item.master_id == "spring-onion"
    assert item.name == "Spring Onion"
    alias = uow.aliases.get_by_alias("scallion")
    assert alias.master_id == "spring-onion"
    assert alias.source == "user_correction"


def test_update_repoint_to_unknown_master(uow):
    cid = add_item(uow, "Scallion", 1, "bunch")

    with pytest.raises(NotFoundError):
        update(uow, cid, master_id="missing")


def test_update_missing_container(uow):
    with pytest.raises(NotFoundError):
        update(uow, "no-such-container", remaining_qty=1)


def test_delete_is_soft_and_keeps_quantity(uow):
    cid = add_item(uow, "Rice", 500, "g")

    item = InventoryService.delete_inventory(uow, cid, "expired")

    assert item.status == ContainerStatus.DELETED
    assert item.remaining_qty == 500
    log = uow.transactions.get_for_container(cid)
    assert (log[-1].operation, log[-1].delta, log[-1].reason) == ("DELETE", None, "expired")
    with pytest.raises(InvalidOperationError):
        InventoryService.delete_inventory(uow, cid, "again")


def test_delete_missing_container(uow):
    with pytest.raises(NotFoundError):
        InventoryService.delete_inventory(uow, "no-such-container")


# =============================================================================
# READ
# =============================================================================


def test_search_excludes_deleted_unless_requested(uow):
    kept = add_item(uow, "Rice", 500, "g")
    gone = add_item(uow, "Pasta", 500, "g")
    InventoryService.delete_inventory(uow, gone, "user_removed")

    default = InventoryService.search_inventory(uow)
    deleted = InventoryService.search_inventory(uow, SearchInventoryFilters(status=["DELETED"]))

    assert [i.container_id for i in default] == [kept]
    assert [i.container_id for i in deleted] == [gone]


def test_search_filters(uow):
    seed_catalog(uow, "Cheddar", category="dairy")
    cheese = add_item(uow, "Cheddar", 200, "g")
    add_item(uow, "Rice", 500, "g", category="grain")
    InventoryService.add_leftover(
        uow, AddLeftoverRequest(dish_name="Mac and Cheese", quantity=2, unit="serving")
    )

    by_query = InventoryService.search_inventory(uow, SearchInventoryFilters(query="CHE"))
    by_category = InventoryService.search_inventory(uow, SearchInventoryFilters(category="dairy"))
    no_leftovers = InventoryService.search_inventory(
        uow, SearchInventoryFilters(query="che", include_leftovers=False)
    )
    by_master = InventoryService.search_inventory(uow, SearchInventoryFilters(master_id="rice"))

    assert sorted(i.name for i in by_query) == ["Cheddar", "Mac and Cheese"]
    assert [i.container_id for i in by_category] == [cheese]
    assert [i.name for i in no_leftovers] == ["Cheddar"]
    assert [i.name for i in by_master] == ["Rice"]


def test_search_applies_filters_before_limit(uow):
    for _ in range(3):
        add_item(uow, "Rice", 500, "g")
    wanted = add_item(uow, "Beans", 500, "g")

    items = InventoryService.search_inventory(
        uow, SearchInventoryFilters(master_id="beans", limit=1)
    )

    assert [i.container_id for i in items] == [wanted]


def test_search_item_shape(uow):
    expires = utcnow() + timedelta(days=2, hours=1)
    cid = add_item(uow, "Milk", 1000, "ml", expires_at=expires)

    item = InventoryService.search_inventory(uow)[0]

    assert item.container_id == cid
    assert item.name == "Milk"
    assert item.category == "unknown"
    assert item.days_until_expiry == 3
    assert item.is_leftover is False
    assert item.source == "manual"


def test_days_until_expiry_is_none_without_expiry(uow):
    add_item(uow, "Salt", 1, "kg")

    assert InventoryService.search_inventory(uow)[0].days_until_expiry is None


def test_expiring_items_sorted_soonest_first(uow):
    now = utcnow()
    later = add_item(uow, "Yogurt", 500, "g", expires_at=now + timedelta(days=2))
    sooner = add_item(uow, "Milk", 1000, "ml", expires_at=now + timedelta(days=1))
    add_item(uow, "Cheese", 200, "g", expires_at=now + timedelta(days=10))
    add_item(uow, "Salt", 1, "kg")
    gone = add_item(uow, "Cream", 200, "ml", expires_at=now + timedelta(hours=5))
    InventoryService.delete_inventory(uow, gone, "spoiled")

    items = InventoryService.get_expiring_items(uow, 3)

    assert [i.container_id for i in items] == [sooner, later]


def test_summary_groups_by_category(uow):
    now = utcnow()
    add_item(uow, "Milk", 1000, "ml", category="dairy", expires_at=now + timedelta(days=1))
    add_item(uow, "Cheddar", 200, "g", category="dairy")
    add_item(uow, "Mystery Powder", 50, "g")
    InventoryService.add_leftover(uow, AddLeftoverRequest(dish_name="Chili", quantity=4, unit="serving"))

    summary = InventoryService.get_summary(uow)

    assert summary.total_count == 4
    assert summary.categories["dairy"].count == 2
    assert summary.categories["unknown"].count == 1
    assert summary.categories["produce"].count == 0
    assert [i.name for i in summary.leftovers] == ["Chili"]
    assert [i.name for i in summary.expiring_soon] == ["Milk"]


def test_transactions_are_append_only(uow):
    cid = add_item(uow, "Rice", 500, "g")
    txn = uow.transactions.get_for_container(cid)[0]

    txn.reason = "rewritten"
    with pytest.raises(InvalidOperationError):
        uow.db.flush()
    uow.db.rollback()

    uow.db.delete(uow.db.get(InventoryTransaction, txn.id))
    with pytest.raises(InvalidOperationError):
        uow.db.flush()
    uow.db.rollback()

    assert uow.transactions.get_for_container(cid)[0].reason == "manual_ingest"


def test_transaction_ids_are_ordered(uow):
    cid = add_item(uow, "Rice", 500, "g")
    update(uow, cid, status="OPEN")
    update(uow, cid, remaining_qty=200)

    ids = [t.id for t in InventoryService.get_transactions(uow, cid)]

    assert ids == sorted(ids)
    assert operations(uow, cid) == ["ADD", "STATUS_CHANGE", "ADJUST"]


def test_get_transactions_missing_container(uow):
    with pytest.raises(NotFoundError):
        InventoryService.get_transactions(uow, "no-such-container")
