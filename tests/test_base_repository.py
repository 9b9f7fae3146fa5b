from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from core.exceptions import (
    DuplicateRecordError,
    OptimisticLockError,
    PersistenceError,
    RecordNotFoundError,
    ValidationError,
)
from natures.repository import NatureRepository
from products.repository import ProductRepository


class PostgrestError(Exception):
    def __init__(self, message, code):
        super().__init__(message)
        self.code = code


def response(data, count=None):
    return SimpleNamespace(data=data, count=count)


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def table(client):
    return client.table.return_value


@pytest.fixture
def repo(client):
    return ProductRepository(client)


def test_create_inserts_with_defaults(repo, client, table):
    table.insert.return_value.execute.return_value = response([{"id": "p1", "slug": "x"}])

    record = repo.create({"slug": "x"})

    assert record["id"] == "p1"
    client.table.assert_called_with("products")
    inserted = table.insert.call_args.args[0]
    assert inserted["is_active"] is True
    assert inserted["version"] == 1


def test_unique_violation_maps_to_duplicate_field(repo, table):
    table.insert.return_value.execute.side_effect = PostgrestError(
        'duplicate key value violates unique constraint "products_slug_key"', "23505"
    )

    with pytest.raises(DuplicateRecordError) as exc_info:
        repo.create({"slug": "x"})

    assert exc_info.value.details["field"] == "slug"
    assert exc_info.value.details["value"] == "x"


def test_check_violation_maps_to_validation_error(repo, table):
    table.insert.return_value.execute.side_effect = PostgrestError(
        'new row violates check constraint "products_status_check"', "23514"
    )

    with pytest.raises(ValidationError) as exc_info:
        repo.create({"status": "Gone"})

    assert exc_info.value.code == "DB_VALIDATION"


def test_other_errors_map_to_persistence_error(repo, table):
    table.insert.return_value.execute.side_effect = ConnectionError("reset by peer")

    with pytest.raises(PersistenceError):
        repo.create({"slug": "x"})


def test_get_by_id_or_raise(repo, table):
    table.select.return_value.eq.return_value.eq.return_value.limit.return_value.execute.return_value = response([])

    with pytest.raises(RecordNotFoundError, match="Active Product"):
        repo.get_by_id_or_raise("p1")


def stored(table, record):
    # get_by_id(include_deleted=True): select().eq(id).limit(1).execute()
    table.select.return_value.eq.return_value.limit.return_value.execute.return_value = response([record])


def test_update_bumps_version(repo, table):
    stored(table, {"id": "p1", "version": 3})
    table.update.return_value.eq.return_value.execute.return_value = response([{"id": "p1", "version": 4}])

    repo.update("p1", {"status": "In Stock", "id": "ignored", "created_at": "x"})

    payload = table.update.call_args.args[0]
    assert payload["version"] == 4
    assert "id" not in payload and "created_at" not in payload
    assert "updated_at" in payload


def test_update_rejects_stale_version(repo, table):
    stored(table, {"id": "p1", "version": 3})

    with pytest.raises(OptimisticLockError):
        repo.update("p1", {"status": "In Stock"}, expected_version=2)

    table.update.assert_not_called()


def test_update_is_conditional_on_expected_version(repo, table):
    stored(table, {"id": "p1", "version": 3})
    conditional = table.update.return_value.eq.return_value
    conditional.eq.return_value.execute.return_value = response([])

    with pytest.raises(OptimisticLockError):
        repo.update("p1", {"status": "In Stock"}, expected_version=3)

    conditional.eq.assert_called_with("version", 3)


def test_soft_delete_marks_inactive(repo, table):
    stored(table, {"id": "p1", "version": 1})

    assert repo.delete("p1") is True

    payload = table.update.call_args.args[0]
    assert payload["is_active"] is False
    assert payload["deleted_at"]
    table.delete.assert_not_called()


def test_list_page_returns_total(repo, table):
    ordered = table.select.return_value.eq.return_value.order.return_value
    ordered.range.return_value.execute.return_value = response([{"id": "p3"}], count=21)

    records, total = repo.list_page(page=3, limit=10)

    assert records == [{"id": "p3"}]
    assert total == 21
    ordered.range.assert_called_with(20, 29)


def test_find_conflict_filters_name_or_slug_excluding_self(repo, table):
    chain = table.select.return_value.or_.return_value.neq.return_value
    chain.limit.return_value.execute.return_value = response([{"id": "p2"}])

    conflict = repo.find_conflict(name="Zinc Coat", slug="zinc-coat", exclude_id="p1")

    assert conflict == {"id": "p2"}
    table.select.return_value.or_.assert_called_with('name.ilike."Zinc Coat",slug.eq."zinc-coat"')
    table.select.return_value.or_.return_value.neq.assert_called_with("id", "p1")


def test_find_conflict_matches_underscore_literally(repo, table):
    table.select.return_value.or_.return_value.limit.return_value.execute.return_value = response([])

    assert repo.find_conflict(name="Steel_A", slug="steel-a") is None

    # LIKE pattern Steel\_A, backslash doubled inside the quoted PostgREST value
    table.select.return_value.or_.assert_called_with(r'name.ilike."Steel\\_A",slug.eq."steel-a"')
    table.select.return_value.or_.return_value.neq.assert_not_called()


def test_find_conflict_escapes_percent(repo, table):
    table.select.return_value.or_.return_value.limit.return_value.execute.return_value = response([])

    repo.find_conflict(name="Zinc 100%")

    table.select.return_value.or_.assert_called_with(r'name.ilike."Zinc 100\\%"')


def test_get_by_slug_filters_active(repo, table):
    chain = table.select.return_value.eq.return_value.eq.return_value
    chain.limit.return_value.execute.return_value = response([{"id": "p1", "slug": "zinc-coat"}])

    assert repo.get_by_slug("zinc-coat")["id"] == "p1"
    table.select.return_value.eq.assert_called_with("slug", "zinc-coat")
    table.select.return_value.eq.return_value.eq.assert_called_with("is_active", True)


def test_nature_get_active_only_returns_active(client):
    table = client.table.return_value
    table.select.return_value.eq.return_value.eq.return_value.limit.return_value.execute.return_value = response([])

    assert NatureRepository(client).get_active("n1") is None
    table.select.return_value.eq.return_value.eq.assert_called_with("is_active", True)
    assert NatureRepository(client).get_active(None) is None
