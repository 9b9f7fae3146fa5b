import pytest

from core.events import EventType
from core.exceptions import BusinessRuleError, NotFoundError, ValidationError
from tests.conftest import NATURE_ID, PLANT_ID


def test_get_product_by_id_and_slug(service, existing_product):
    by_id = service.get_product(existing_product["id"])
    by_slug = service.get_product("zinc-coat")

    assert by_id["id"] == by_slug["id"] == existing_product["id"]
    assert by_id["nature"] == {"id": NATURE_ID, "name": "Adhesives", "slug": "adhesives"}
    assert by_id["plant"]["id"] == PLANT_ID


def test_get_product_hides_inactive(service, existing_product, repo):
    repo.records[existing_product["id"]]["is_active"] = False

    with pytest.raises(NotFoundError):
        service.get_product(existing_product["id"])
    with pytest.raises(NotFoundError, match="slug not found or inactive"):
        service.get_product("zinc-coat")


def test_list_products_paginates(service, repo):
    for name in ("Alpha", "Beta", "Gamma"):
        repo.seed({"name": name, "slug": name.lower(), "nature_id": NATURE_ID, "plant_id": PLANT_ID})

    page = service.list_products(page=2, limit=2)

    assert page["total"] == 3
    assert page["page"] == 2
    assert page["limit"] == 2
    assert [p["name"] for p in page["products"]] == ["Gamma"]


@pytest.mark.parametrize("page, limit", [(0, 10), (1, 0), ("x", 10)])
def test_list_products_rejects_bad_pagination(service, page, limit):
    with pytest.raises(ValidationError, match="positive integers"):
        service.list_products(page=page, limit=limit)


def test_deactivate_is_soft_delete(service, existing_product, repo, event_bus):
    deleted_events = []
    event_bus.subscribe(EventType.PRODUCT_DELETED, deleted_events.append)

    product = service.deactivate_product(existing_product["id"])

    assert product["is_active"] is False
    assert existing_product["id"] in repo.records
    assert deleted_events[0].data == {"id": existing_product["id"], "hard": False}


def test_toggle_switches_both_ways(service, existing_product):
    assert service.toggle_product_status(existing_product["id"])["is_active"] is False
    assert service.toggle_product_status(existing_product["id"])["is_active"] is True


def test_toggle_refuses_activation_with_inactive_plant(service, existing_product, repo, plants):
    repo.records[existing_product["id"]]["is_active"] = False
    plants.active_ids.clear()

    with pytest.raises(BusinessRuleError, match="inactive Plant"):
        service.toggle_product_status(existing_product["id"])

    assert repo.records[existing_product["id"]]["is_active"] is False


def test_deactivation_ignores_reference_state(service, existing_product, natures):
    natures.active_ids.clear()

    assert service.toggle_product_status(existing_product["id"])["is_active"] is False


def test_restore_requires_active_nature(service, existing_product, repo, natures):
    repo.records[existing_product["id"]]["is_active"] = False
    natures.active_ids.clear()

    with pytest.raises(BusinessRuleError, match="inactive Nature"):
        service.restore_product(existing_product["id"])


def test_restore_reactivates(service, existing_product, repo, event_bus):
    restored = []
    event_bus.subscribe(EventType.PRODUCT_RESTORED, restored.append)
    repo.records[existing_product["id"]]["is_active"] = False

    product = service.restore_product(existing_product["id"])

    assert product["is_active"] is True
    assert len(restored) == 1


def test_permanent_delete_removes_assets_then_record(service, existing_product, repo, store, journal):
    deleted = service.permanent_delete_product(existing_product["id"])

    assert deleted["id"] == existing_product["id"]
    assert existing_product["id"] not in repo.records
    assert store.deleted == [
        "https://cdn.test/products/image/A.png",
        "https://cdn.test/products/image/B.png",
        "https://cdn.test/products/image/C.png",
        "https://cdn.test/products/brochure/old.pdf",
        "https://cdn.test/products/tds/old.pdf",
    ]
    assert journal[-1] == ("delete_record", existing_product["id"])


def test_permanent_delete_reports_assets_left_behind(service, existing_product, repo, store, orphaned_events):
    store.failing_deletes = {"https://cdn.test/products/tds/old.pdf"}

    service.permanent_delete_product(existing_product["id"])

    assert existing_product["id"] not in repo.records
    assert [e.data["url"] for e in orphaned_events] == ["https://cdn.test/products/tds/old.pdf"]
    assert orphaned_events[0].data["phase"] == "permanent_delete"


def test_permanent_delete_of_unknown_product(service, store):
    with pytest.raises(NotFoundError):
        service.permanent_delete_product("0b8f0000-0000-4000-8000-00000000dead")

    assert store.deleted == []
