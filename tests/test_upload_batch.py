import pytest

from core.exceptions import UploadError
from products.assets import AssetFile, AssetRole
from products.upload_batch import AssetUploadBatch
from tests.conftest import image_file


def test_empty_input_is_not_an_error(store):
    outcomes, error = AssetUploadBatch(store).upload_all([])

    assert outcomes == []
    assert error is None
    assert store.put_count == 0


def test_uploads_every_file_in_submitted_order(store):
    files = [
        image_file("a.png"),
        image_file("b.png"),
        AssetFile(b"%PDF-1.7", "b.pdf", AssetRole.BROCHURE, {"title": "Brochure"}),
    ]

    outcomes, error = AssetUploadBatch(store).upload_all(files)

    assert error is None
    assert [o.url.rsplit("/", 1)[1] for o in outcomes] == ["1_a.png", "2_b.png", "3_b.pdf"]
    assert [o.role for o in outcomes] == [AssetRole.IMAGE, AssetRole.IMAGE, AssetRole.BROCHURE]
    assert outcomes[2].metadata == {"title": "Brochure"}
    assert all(o.bucket == "products" for o in outcomes)


def test_stops_at_first_failure_and_returns_partial_outcomes(store):
    store.fail_on_put = 2

    outcomes, error = AssetUploadBatch(store).upload_all(
        [image_file("a.png"), image_file("b.png"), image_file("c.png")]
    )

    assert isinstance(error, UploadError)
    assert error.details["uploaded_count"] == 1
    assert [o.url for o in outcomes] == ["https://cdn.test/products/image/1_a.png"]
    assert store.put_count == 2
    # batch never compensates by itself
    assert store.deleted == []


def test_exception_from_store_is_an_upload_failure(store):
    store.fail_on_put = 1
    store.raise_on_put = TimeoutError("read timed out")

    outcomes, error = AssetUploadBatch(store).upload_all([image_file("a.png")])

    assert outcomes == []
    assert isinstance(error, UploadError)
    assert "timed out" in error.message


def test_appends_into_caller_owned_list(store):
    uploaded = []

    outcomes, _ = AssetUploadBatch(store).upload_all([image_file("a.png")], into=uploaded)

    assert outcomes is uploaded
    assert len(uploaded) == 1


def test_interruption_leaves_partial_outcomes_visible(store):
    store.fail_on_put = 2
    store.raise_on_put = KeyboardInterrupt()
    uploaded = []

    with pytest.raises(KeyboardInterrupt):
        AssetUploadBatch(store).upload_all([image_file("a.png"), image_file("b.png")], into=uploaded)

    assert [o.url for o in uploaded] == ["https://cdn.test/products/image/1_a.png"]
