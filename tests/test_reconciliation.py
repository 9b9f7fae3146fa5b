import copy

import pytest

from core.exceptions import ValidationError
from products.assets import AssetFile, ImageAsset, KeepImage, ReplaceWithUpload, UploadImage, UploadOutcome
from products.reconciliation import reconcile, validate_instructions

A = "https://cdn.test/products/image/A.png"
B = "https://cdn.test/products/image/B.png"
C = "https://cdn.test/products/image/C.png"


@pytest.fixture
def existing():
    return [
        ImageAsset(A, "front", True),
        ImageAsset(B, "side", False),
        ImageAsset(C, "back", False),
    ]


def uploaded(url, alt="new", primary=False):
    return ReplaceWithUpload(UploadOutcome(url, "products"), alt=alt, is_primary=primary)


def test_keep_and_replace_produce_final_list_and_orphans(existing):
    plan = reconcile(existing, [KeepImage(A, is_primary=True), uploaded("https://cdn.test/new.png")])

    assert [img.url for img in plan.final_images] == [A, "https://cdn.test/new.png"]
    assert plan.final_images[0].alt == "front"
    assert plan.orphan_urls == {B, C}


def test_final_order_follows_instructions(existing):
    plan = reconcile(existing, [KeepImage(C, True), KeepImage(A), KeepImage(B)])

    assert [img.url for img in plan.final_images] == [C, A, B]
    assert plan.orphan_urls == set()


def test_primary_flag_comes_from_instruction(existing):
    plan = reconcile(existing, [KeepImage(A, False), KeepImage(B, True)])

    assert [img.is_primary for img in plan.final_images] == [False, True]


def test_alt_override_replaces_stored_alt(existing):
    plan = reconcile(existing, [KeepImage(A, True, alt_override="hero shot")])

    assert plan.final_images[0].alt == "hero shot"


def test_unknown_keep_url_is_dropped(existing):
    plan = reconcile(existing, [KeepImage(A, True), KeepImage("https://elsewhere/x.png")])

    assert [img.url for img in plan.final_images] == [A]
    assert plan.orphan_urls == {B, C}


def test_matching_is_exact_string_comparison(existing):
    plan = reconcile(existing, [KeepImage(A + "?v=2", True), uploaded("https://cdn.test/n.png", primary=True)])

    assert [img.url for img in plan.final_images] == ["https://cdn.test/n.png"]
    assert A in plan.orphan_urls


@pytest.mark.parametrize("instructions", [
    [KeepImage(A, False), KeepImage(B, False)],
    [KeepImage(A, True), KeepImage(B, True)],
])
def test_requires_exactly_one_primary(existing, instructions):
    with pytest.raises(ValidationError, match="Exactly one image must be marked as primary"):
        reconcile(existing, instructions)


def test_rejects_more_than_five_images(existing):
    instructions = [KeepImage(A, True), KeepImage(B), KeepImage(C)] + [
        uploaded(f"https://cdn.test/n{i}.png") for i in range(3)
    ]

    with pytest.raises(ValidationError, match="Maximum 5 images allowed"):
        reconcile(existing, instructions)


def test_rejects_empty_result(existing):
    with pytest.raises(ValidationError, match="At least one image is required"):
        reconcile(existing, [KeepImage("https://elsewhere/x.png", True)])


def test_does_not_modify_inputs(existing):
    snapshot = copy.deepcopy(existing)
    instructions = [KeepImage(B, True, alt_override="x")]

    first = reconcile(existing, instructions)
    second = reconcile(existing, instructions)

    assert existing == snapshot
    assert first == second


def new_image(primary=False):
    return UploadImage(AssetFile(b"\x89PNG", "n.png"), is_primary=primary)


def test_instructions_allow_keeps_beyond_upload_limit():
    keeps = [KeepImage(f"https://cdn.test/{i}.png") for i in range(6)]

    validate_instructions(keeps + [new_image(True)])


@pytest.mark.parametrize("instructions, message", [
    ([], "At least one image is required"),
    ([new_image(True)] + [new_image() for _ in range(5)], "Maximum 5 images allowed"),
    ([KeepImage("https://cdn.test/a.png"), new_image(True), new_image(True)], "Exactly one image"),
])
def test_instructions_invalid_before_upload(instructions, message):
    with pytest.raises(ValidationError, match=message):
        validate_instructions(instructions)
