"""
Catalog - Image Reconciliation
==============================
Uzgodnienie listy zdjęć przy aktualizacji produktu.

Czysta funkcja: (istniejące zdjęcia, instrukcje klienta) → plan.
Nie dotyka Storage ani bazy.
"""

from typing import List, Sequence

from config.settings import MIN_PRODUCT_IMAGES, MAX_PRODUCT_IMAGES
from core.exceptions import ValidationError
from products.assets import (
    ImageAsset,
    ImageInstruction,
    KeepImage,
    ReplaceWithUpload,
    ReconcileInstruction,
    ReconciliationPlan,
    UploadImage,
)


def reconcile(
    existing: Sequence[ImageAsset],
    instructions: Sequence[ReconcileInstruction]
) -> ReconciliationPlan:
    """
    Zbuduj finalną listę zdjęć i zbiór URL do usunięcia.

    - Kolejność final_images = kolejność instrukcji
    - KeepImage szuka source_url w existing (dokładne porównanie stringów);
      nieznany URL jest pomijany
    - ReplaceWithUpload bierze URL z wyniku uploadu
    - orphan_urls = URL-e z existing, których nie ma w final_images

    Raises:
        ValidationError: Liczba zdjęć poza zakresem lub != 1 zdjęcie główne
    """
    by_url = {image.url: image for image in existing}
    final_images: List[ImageAsset] = []

    for instruction in instructions:
        if isinstance(instruction, KeepImage):
            current = by_url.get(instruction.source_url)
            if current is None:
                continue
            alt = instruction.alt_override if instruction.alt_override is not None else current.alt
            final_images.append(ImageAsset(
                url=current.url,
                alt=alt,
                is_primary=bool(instruction.is_primary),
            ))

        elif isinstance(instruction, ReplaceWithUpload):
            final_images.append(ImageAsset(
                url=instruction.outcome.url,
                alt=instruction.alt,
                is_primary=bool(instruction.is_primary),
            ))

        else:
            raise TypeError(f"Unknown image instruction: {type(instruction).__name__}")

    validate_image_list(final_images)

    kept_urls = {image.url for image in final_images}
    orphan_urls = {image.url for image in existing if image.url not in kept_urls}

    return ReconciliationPlan(final_images=final_images, orphan_urls=orphan_urls)


def validate_image_list(images: Sequence) -> None:
    """
    Sprawdź liczbę zdjęć i zdjęcie główne.

    Przyjmuje ImageAsset lub dowolne obiekty z atrybutem is_primary.
    """
    if len(images) < MIN_PRODUCT_IMAGES:
        raise _too_few()

    if len(images) > MAX_PRODUCT_IMAGES:
        raise _too_many(len(images))

    primary_count = sum(1 for image in images if image.is_primary)
    if primary_count != 1:
        raise _wrong_primary(primary_count)


def validate_instructions(instructions: Sequence[ImageInstruction]) -> None:
    """
    Reguły znane przed uploadem.

    Każdy UploadImage trafi do finalnej listy, więc za dużo uploadów albo
    więcej niż jeden primary wśród nich to błąd niezależnie od KeepImage.
    """
    if len(instructions) < MIN_PRODUCT_IMAGES:
        raise _too_few()

    uploads = [i for i in instructions if isinstance(i, UploadImage)]
    if len(uploads) > MAX_PRODUCT_IMAGES:
        raise _too_many(len(uploads))

    primary_count = sum(1 for i in uploads if i.is_primary)
    if primary_count > 1:
        raise _wrong_primary(primary_count)


def _too_few() -> ValidationError:
    return ValidationError("At least one image is required", code="IMAGE_COUNT")


def _too_many(count: int) -> ValidationError:
    return ValidationError(
        f"Maximum {MAX_PRODUCT_IMAGES} images allowed",
        code="IMAGE_COUNT",
        details={"count": count}
    )


def _wrong_primary(count: int) -> ValidationError:
    return ValidationError(
        "Exactly one image must be marked as primary",
        code="PRIMARY_IMAGE",
        details={"primary_count": count}
    )
