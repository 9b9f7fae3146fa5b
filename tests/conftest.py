"""Pytest configuration and in-memory fakes for catalog tests."""

import copy
import sys
import uuid
from pathlib import Path

import pytest

# Add project root to path for imports
project_root = Path(__file__).resolve().parents[1]
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from core.events import EventBus  # noqa: E402
from core.exceptions import (  # noqa: E402
    OptimisticLockError,
    RecordNotFoundError,
)
from products.assets import AssetFile, AssetRole  # noqa: E402
from products.service import ProductService  # noqa: E402

NATURE_ID = "6f1c3b4e-0000-4000-8000-000000000001"
PLANT_ID = "6f1c3b4e-0000-4000-8000-000000000002"


# ============================================================================
# Fakes
# ============================================================================


class FakeObjectStore:
    """Object store keeping urls in memory; every call goes to the journal."""

    def __init__(self, journal, bucket="products"):
        self.journal = journal
        self.bucket = bucket
        self.objects = set()
        self.put_count = 0
        self.fail_on_put = None          # 1-based number of the failing put
        self.raise_on_put = None         # exception raised by the failing put
        self.failing_deletes = set()

    def put(self, data, filename, role="image", bucket=None):
        self.put_count += 1
        if self.put_count == self.fail_on_put:
            self.journal.append(("put_failed", filename))
            if self.raise_on_put is not None:
                raise self.raise_on_put
            return False, "Upload error: storage unavailable"

        url = f"https://cdn.test/{bucket or self.bucket}/{role}/{self.put_count}_{filename}"
        self.objects.add(url)
        self.journal.append(("put", url))
        return True, url

    def delete(self, url, bucket=None):
        self.journal.append(("delete", url))
        if url in self.failing_deletes:
            return False
        self.objects.discard(url)
        return True

    def delete_multiple(self, urls, bucket=None):
        return [url for url in urls if not self.delete(url, bucket)]

    @property
    def deleted(self):
        return [url for action, url in self.journal if action == "delete"]


class FakeProductRepository:
    """Record store keeping products in a dict."""

    def __init__(self, journal, natures=None, plants=None):
        self.journal = journal
        self.records = {}
        self.natures = natures
        self.plants = plants
        self.fail_with = None

    def seed(self, record):
        record = copy.deepcopy(record)
        record.setdefault("id", str(uuid.uuid4()))
        record.setdefault("is_active", True)
        record.setdefault("version", 1)
        self.records[record["id"]] = record
        return copy.deepcopy(record)

    def create(self, data):
        self.journal.append(("create", data.get("slug")))
        if self.fail_with is not None:
            raise self.fail_with
        return self.seed(data)

    def update(self, id, data, expected_version=None):
        self.journal.append(("update", id))
        if self.fail_with is not None:
            raise self.fail_with
        self.get_by_id_or_raise(id, include_deleted=True)
        current = self.records[id]
        if expected_version is not None and current["version"] != expected_version:
            raise OptimisticLockError("Product", id, expected_version)
        current.update(copy.deepcopy(data))
        current["version"] += 1
        return copy.deepcopy(current)

    def get_by_id(self, id, include_deleted=False):
        record = self.records.get(id)
        if record is None or (not include_deleted and not record.get("is_active")):
            return None
        return copy.deepcopy(record)

    def get_by_id_or_raise(self, id, include_deleted=False):
        if id not in self.records or (not include_deleted and not self.records[id].get("is_active")):
            raise RecordNotFoundError("Product", id, active_only=not include_deleted)
        return copy.deepcopy(self.records[id])

    def get_populated(self, id=None, slug=None, include_deleted=False):
        if id is None:
            matches = [r for r in self.records.values() if r.get("slug") == slug]
            record = matches[0] if matches else None
        else:
            record = self.records.get(id)
        if record is None or (not include_deleted and not record.get("is_active")):
            return None
        populated = copy.deepcopy(record)
        populated["nature"] = {"id": record.get("nature_id"), "name": "Adhesives", "slug": "adhesives"}
        populated["plant"] = {"id": record.get("plant_id"), "name": "Plant A", "certifications": []}
        return populated

    def list_populated(self, page=1, limit=10, include_deleted=False):
        rows = [
            self.get_populated(id=r["id"], include_deleted=include_deleted)
            for r in sorted(self.records.values(), key=lambda r: r["name"])
        ]
        rows = [r for r in rows if r]
        start = (page - 1) * limit
        return rows[start:start + limit], len(rows)

    def find_conflict(self, name=None, slug=None, exclude_id=None):
        for record in self.records.values():
            if record["id"] == exclude_id:
                continue
            if (name and record.get("name", "").lower() == name.lower()) or (slug and record.get("slug") == slug):
                return record
        return None

    def delete(self, id, hard=False):
        self.journal.append(("delete_record" if hard else "deactivate", id))
        if hard:
            del self.records[id]
        else:
            self.records[id]["is_active"] = False
        return True

    def set_active(self, id, active):
        self.records[id]["is_active"] = active
        return copy.deepcopy(self.records[id])

    def restore(self, id):
        return self.set_active(id, True)


class FakeReferenceRepository:
    """Natures / plants: get_active returns a record for active ids only."""

    def __init__(self, active_ids):
        self.active_ids = set(active_ids)

    def get_active(self, id):
        if id in self.active_ids:
            return {"id": id, "is_active": True}
        return None


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def reset_event_bus():
    EventBus.reset()
    yield
    EventBus.reset()


@pytest.fixture
def journal():
    return []


@pytest.fixture
def store(journal):
    return FakeObjectStore(journal)


@pytest.fixture
def natures():
    return FakeReferenceRepository([NATURE_ID])


@pytest.fixture
def plants():
    return FakeReferenceRepository([PLANT_ID])


@pytest.fixture
def repo(journal, natures, plants):
    return FakeProductRepository(journal, natures, plants)


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def orphaned_events(event_bus):
    from core.events import EventType

    events = []
    event_bus.subscribe(EventType.PRODUCT_ASSET_ORPHANED, events.append)
    return events


@pytest.fixture
def service(repo, store, natures, plants, event_bus):
    return ProductService(repo, store, natures, plants, event_bus=event_bus)


@pytest.fixture
def product_data():
    return {
        "name": "Epoxy Primer 200",
        "abbreviation": "ep200",
        "nature_id": NATURE_ID,
        "plant_id": PLANT_ID,
        "description": "Two component epoxy primer for steel.",
        "short_description": "Epoxy primer",
        "seo_title": "Epoxy Primer 200",
        "seo_description": "Two component epoxy primer for steel surfaces.",
        "seo_keywords": "epoxy, primer, steel",
        "technical_specifications": '[{"key": "Solids", "value": "65%"}]',
        "plant_availability": [{"state": "Gujarat"}],
        "applications": ["Bridges", "Tanks"],
        "status": "In Stock",
    }


def image_file(name="photo.png", size=16):
    return AssetFile(data=b"\x89PNG" + b"0" * size, filename=name)


def doc_file(name="sheet.pdf", role=AssetRole.BROCHURE):
    return AssetFile(data=b"%PDF-1.7 data", filename=name, role=role)


@pytest.fixture
def existing_product(repo):
    """Stored product with images A, B, C (A primary)."""
    return repo.seed({
        "name": "Zinc Coat",
        "abbreviation": "ZC",
        "slug": "zinc-coat",
        "nature_id": NATURE_ID,
        "plant_id": PLANT_ID,
        "description": "Zinc rich coating for steel.",
        "short_description": "Zinc coating",
        "seo_title": "Zinc Coat",
        "seo_description": "Zinc rich coating for structural steel.",
        "seo_keywords": ["zinc"],
        "technical_specifications": [{"key": "Zinc", "value": "80%"}],
        "plant_availability": [{"state": "Kerala"}],
        "applications": ["Marine"],
        "status": "In Stock",
        "images": [
            {"url": "https://cdn.test/products/image/A.png", "alt": "A", "is_primary": True},
            {"url": "https://cdn.test/products/image/B.png", "alt": "B", "is_primary": False},
            {"url": "https://cdn.test/products/image/C.png", "alt": "C", "is_primary": False},
        ],
        "brochure": {"url": "https://cdn.test/products/brochure/old.pdf", "title": "Old Brochure"},
        "tds": {"url": "https://cdn.test/products/tds/old.pdf", "title": "Old TDS"},
    })
