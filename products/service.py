#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ProductService - Warstwa logiki biznesowej dla produktów

Odpowiedzialność:
- Walidacja pól produktu i plików
- Koordynacja zapisu rekordu i zasobów w Storage
- Uzgadnianie listy zdjęć przy aktualizacji
- Cykl życia produktu (dezaktywacja, przywrócenie, trwałe usunięcie)

Zasady:
- NIGDY nie zostawiaj w Storage zasobów z nieudanego żądania
- Kolejność przy zapisie: walidacja danych → upload plików → walidacja
  domenowa → JEDEN zapis rekordu → usunięcie zastąpionych plików
- Stare pliki usuwane dopiero po udanym zapisie

Użycie:
    from products import create_product_service

    service = create_product_service(timeout=15)

    product = service.create_product(
        data={'name': 'Steel Bracket', ...},
        images=[UploadImage(AssetFile(png, 'front.png'), is_primary=True)],
        brochure=AssetFile(pdf, 'brochure.pdf'),
        tds=AssetFile(pdf, 'tds.pdf'),
    )
"""

from dataclasses import replace
from typing import Optional, Dict, List, Any, Sequence
import logging

from config.settings import (
    DEFAULT_IMAGE_ALT,
    DEFAULT_BROCHURE_TITLE,
    DEFAULT_TDS_TITLE,
    PRODUCTS_PAGE_SIZE,
)
from core.base_service import BaseService
from core.events import EventBus, EventType
from core.exceptions import (
    ConflictError,
    BusinessRuleError,
    NotFoundError,
    RecordNotFoundError,
    RequiredFieldError,
    InvalidFieldValueError,
    ValidationError,
)
from products.assets import (
    AssetFile,
    AssetRole,
    DocumentAsset,
    ImageInstruction,
    KeepImage,
    ReplaceWithUpload,
    UploadImage,
    UploadOutcome,
    images_from_record,
)
from products.coordinator import CompensatingWriteCoordinator, WritePlan
from products.reconciliation import reconcile, validate_image_list, validate_instructions
from products.repository import ProductRepository
from products.storage import StorageRepository
from products import validation

logger = logging.getLogger(__name__)


class ProductService(BaseService):
    """
    Serwis produktów - główny punkt wejścia dla operacji biznesowych.

    Example:
        service = ProductService(product_repo, storage_repo, nature_repo, plant_repo)

        product = service.update_product(
            product_id,
            data={'status': 'Limited Stock'},
            images=[KeepImage(old_url, is_primary=True)],
        )
    """

    ENTITY_NAME = "Product"

    REQUIRED_FIELDS = [
        "name", "abbreviation", "nature_id", "plant_id",
        "description", "short_description",
        "seo_title", "seo_description", "seo_keywords",
        "technical_specifications", "plant_availability", "applications",
        "status",
    ]

    OPTIONAL_FIELDS = ["slug"]

    FIELD_TYPES = {
        "name": str,
        "abbreviation": str,
        "nature_id": str,
        "plant_id": str,
    }

    EVENT_CREATE = EventType.PRODUCT_CREATED
    EVENT_UPDATE = EventType.PRODUCT_UPDATED
    EVENT_DELETE = EventType.PRODUCT_DELETED

    def __init__(
        self,
        product_repo: ProductRepository,
        storage_repo: StorageRepository,
        nature_repo,
        plant_repo,
        event_bus: EventBus = None
    ):
        """
        Args:
            product_repo: Operacje na tabeli products
            storage_repo: Operacje na Storage (put / delete)
            nature_repo: Repozytorium natur (get_active)
            plant_repo: Repozytorium zakładów (get_active)
            event_bus: Event bus (domyślnie singleton)
        """
        super().__init__(event_bus)
        self.products = product_repo
        self.storage = storage_repo
        self.natures = nature_repo
        self.plants = plant_repo
        self.coordinator = CompensatingWriteCoordinator(storage_repo, event_bus=self.event_bus)

    # ============================================================
    # Validation
    # ============================================================

    def _validate_business_rules(self, data: Dict[str, Any], is_update: bool):
        """Normalizacja i walidacja pól produktu (modyfikuje data)"""

        data["name"] = validation.check_name(data.get("name"))
        data["abbreviation"] = validation.check_length("abbreviation", data.get("abbreviation")).upper()

        for field in ("description", "short_description", "seo_title", "seo_description"):
            data[field] = validation.check_length(field, data.get(field))

        data["slug"] = validation.check_slug(data.get("slug") or validation.generate_slug(data["name"]))
        data["status"] = validation.check_status(data.get("status"))

        data["seo_keywords"] = validation.require_non_empty(
            validation.to_list(data.get("seo_keywords")),
            "seo_keywords", "At least one SEO keyword is required"
        )
        data["applications"] = validation.require_non_empty(
            validation.to_list(data.get("applications")),
            "applications", "At least one application is required"
        )
        data["technical_specifications"] = validation.check_specifications(
            data.get("technical_specifications")
        )
        data["plant_availability"] = validation.check_availability(
            data.get("plant_availability")
        )

    def _check_references(self, nature_id: str = None, plant_id: str = None):
        """
        Sprawdź czy natura i zakład istnieją i są aktywne.

        Raises:
            RecordNotFoundError: Brak aktywnej natury / zakładu
        """
        if nature_id and not self.natures.get_active(nature_id):
            raise RecordNotFoundError("Nature", nature_id, active_only=True)
        if plant_id and not self.plants.get_active(plant_id):
            raise RecordNotFoundError("Plant", plant_id, active_only=True)

    def _check_unique(self, name: str, slug: str, exclude_id: str = None):
        conflict = self.products.find_conflict(name=name, slug=slug, exclude_id=exclude_id)
        if conflict:
            raise ConflictError(
                "Product with this name or slug already exists",
                code="DUPLICATE_RECORD",
                details={"name": name, "slug": slug, "existing_id": conflict.get("id")}
            )

    def _check_can_activate(self, product: Dict[str, Any]):
        """Aktywacja wymaga aktywnej natury i aktywnego zakładu"""
        if not self.natures.get_active(product.get("nature_id")):
            raise BusinessRuleError(
                "Cannot activate Product with an inactive Nature",
                {"product_id": product.get("id"), "nature_id": product.get("nature_id")}
            )
        if not self.plants.get_active(product.get("plant_id")):
            raise BusinessRuleError(
                "Cannot activate Product with an inactive Plant",
                {"product_id": product.get("id"), "plant_id": product.get("plant_id")}
            )

    @staticmethod
    def _as_role(asset: AssetFile, role: AssetRole, **metadata) -> AssetFile:
        checked = replace(asset, role=role, metadata={**asset.metadata, **metadata})
        return validation.check_asset_file(checked)

    # ============================================================
    # CREATE
    # ============================================================

    def create_product(
        self,
        data: Dict[str, Any],
        images: Sequence[UploadImage],
        brochure: AssetFile,
        tds: AssetFile,
        brochure_title: str = None,
        tds_title: str = None
    ) -> Dict[str, Any]:
        """
        Utwórz produkt z 1-5 zdjęciami, broszurą i kartą TDS.

        Returns:
            Zapisany produkt z naturą i zakładem

        Raises:
            ValidationError: Złe dane / pliki (przed jakimkolwiek uploadem)
            NotFoundError: Nieaktywna natura lub zakład
            ConflictError: Nazwa lub slug zajęte
            UploadError: Błąd Storage (wysłane pliki usunięte)
            PersistenceError: Błąd zapisu (wysłane pliki usunięte)
        """
        fields = self.validate(data)

        images = list(images or [])
        for image in images:
            if not isinstance(image, UploadImage):
                raise InvalidFieldValueError(
                    "images", type(image).__name__, "New product accepts only uploaded images"
                )
        validate_image_list(images)
        if brochure is None:
            raise RequiredFieldError("brochure", self.ENTITY_NAME)
        if tds is None:
            raise RequiredFieldError("tds", self.ENTITY_NAME)

        uploads = [
            self._as_role(
                image.file, AssetRole.IMAGE,
                alt=image.alt or DEFAULT_IMAGE_ALT.format(index=index + 1),
                is_primary=bool(image.is_primary),
            )
            for index, image in enumerate(images)
        ]
        uploads.append(self._as_role(brochure, AssetRole.BROCHURE))
        uploads.append(self._as_role(tds, AssetRole.TDS))

        def build(outcomes: List[UploadOutcome]) -> WritePlan:
            self._check_references(fields["nature_id"], fields["plant_id"])
            self._check_unique(fields["name"], fields["slug"])

            by_role = _split_by_role(outcomes)
            record = dict(fields)
            record["images"] = [
                {"url": o.url, "alt": o.metadata["alt"], "is_primary": o.metadata["is_primary"]}
                for o in by_role[AssetRole.IMAGE]
            ]
            record["brochure"] = DocumentAsset(
                by_role[AssetRole.BROCHURE][0].url,
                brochure_title or DEFAULT_BROCHURE_TITLE
            ).to_dict()
            record["tds"] = DocumentAsset(
                by_role[AssetRole.TDS][0].url,
                tds_title or DEFAULT_TDS_TITLE
            ).to_dict()
            return WritePlan(fields=record)

        with self.correlation_context() as cid:
            created = self.coordinator.execute(uploads, build, self.products.create, correlation_id=cid)
            product_id = created["id"]
            self.emit_create_event(product_id, {"name": created.get("name"), "slug": created.get("slug")})

        logger.info(f"[Product] Created: {created.get('slug')} ({product_id})")
        return self._populated(product_id, fallback=created)

    # ============================================================
    # UPDATE
    # ============================================================

    def update_product(
        self,
        product_id: str,
        data: Dict[str, Any] = None,
        images: Sequence[ImageInstruction] = None,
        brochure: AssetFile = None,
        tds: AssetFile = None,
        brochure_title: str = None,
        tds_title: str = None,
        expected_version: int = None
    ) -> Dict[str, Any]:
        """
        Aktualizuj produkt.

        Args:
            product_id: ID produktu
            data: Zmienione pola (pozostałe bez zmian)
            images: Uporządkowana lista KeepImage / UploadImage
                    (None = zdjęcia bez zmian)
            brochure: Nowy plik broszury (zastępuje poprzedni)
            tds: Nowy plik TDS (zastępuje poprzedni)
            brochure_title: Nowy tytuł broszury (także bez nowego pliku)
            tds_title: Nowy tytuł TDS (także bez nowego pliku)
            expected_version: Wersja rekordu (optimistic locking)

        Returns:
            Zaktualizowany produkt z naturą i zakładem
        """
        data = dict(data or {})
        current = self.products.get_by_id_or_raise(product_id, include_deleted=True)

        merged = {field: current.get(field) for field in self.REQUIRED_FIELDS + self.OPTIONAL_FIELDS}
        for field, value in data.items():
            if value is not None:
                merged[field] = value
        if data.get("name") and data["name"] != current.get("name") and not data.get("slug"):
            merged["slug"] = validation.generate_slug(data["name"])

        fields = self.validate(merged)

        existing = images_from_record(current)
        if images is None:
            images = [KeepImage(img.url, img.is_primary) for img in existing]
        images = list(images)

        uploads = []
        for position, instruction in enumerate(images):
            if isinstance(instruction, UploadImage):
                uploads.append(self._as_role(
                    instruction.file, AssetRole.IMAGE,
                    position=position,
                    alt=instruction.alt or instruction.file.filename,
                    is_primary=bool(instruction.is_primary),
                ))
            elif not isinstance(instruction, KeepImage):
                raise InvalidFieldValueError("images", type(instruction).__name__, "Unknown image instruction")

        validate_instructions(images)

        if brochure is not None:
            uploads.append(self._as_role(brochure, AssetRole.BROCHURE))
        if tds is not None:
            uploads.append(self._as_role(tds, AssetRole.TDS))

        def build(outcomes: List[UploadOutcome]) -> WritePlan:
            self._check_references(data.get("nature_id"), data.get("plant_id"))
            if data.get("name") or data.get("slug"):
                self._check_unique(fields["name"], fields["slug"], exclude_id=product_id)

            by_role = _split_by_role(outcomes)
            uploaded_at = {o.metadata["position"]: o for o in by_role[AssetRole.IMAGE]}
            instructions = [
                ReplaceWithUpload(
                    uploaded_at[pos],
                    alt=uploaded_at[pos].metadata["alt"],
                    is_primary=uploaded_at[pos].metadata["is_primary"],
                ) if pos in uploaded_at else instruction
                for pos, instruction in enumerate(images)
            ]
            plan = reconcile(existing, instructions)
            orphan_urls = set(plan.orphan_urls)

            record = dict(fields)
            record["images"] = plan.images_to_list()
            for column, outcome_list, title, default in (
                ("brochure", by_role[AssetRole.BROCHURE], brochure_title, DEFAULT_BROCHURE_TITLE),
                ("tds", by_role[AssetRole.TDS], tds_title, DEFAULT_TDS_TITLE),
            ):
                previous = DocumentAsset.from_dict(current.get(column))
                if outcome_list:
                    if previous:
                        orphan_urls.add(previous.url)
                    record[column] = DocumentAsset(
                        outcome_list[0].url,
                        title or (previous.title if previous else default)
                    ).to_dict()
                elif previous:
                    record[column] = DocumentAsset(previous.url, title or previous.title).to_dict()

            return WritePlan(fields=record, orphan_urls=orphan_urls)

        def persist(record: Dict[str, Any]) -> Dict[str, Any]:
            return self.products.update(product_id, record, expected_version=expected_version)

        with self.correlation_context() as cid:
            updated = self.coordinator.execute(uploads, build, persist, correlation_id=cid)
            self.emit_update_event(
                product_id,
                {k: current.get(k) for k in data},
                {k: updated.get(k) for k in data}
            )

        logger.info(f"[Product] Updated: {product_id}")
        return self._populated(product_id, include_deleted=True, fallback=updated)

    # ============================================================
    # READ
    # ============================================================

    def get_product(self, id_or_slug: str) -> Dict[str, Any]:
        """
        Pobierz aktywny produkt po ID (UUID) lub slug.

        Raises:
            NotFoundError: Brak produktu lub produkt nieaktywny
        """
        if not id_or_slug:
            raise RequiredFieldError("id", self.ENTITY_NAME)

        if validation.is_uuid(id_or_slug):
            product = self.products.get_populated(id=id_or_slug)
            if not product:
                raise RecordNotFoundError(self.ENTITY_NAME, id_or_slug, active_only=True)
        else:
            product = self.products.get_populated(slug=id_or_slug)
            if not product:
                raise NotFoundError(
                    "Product with this slug not found or inactive",
                    code="RECORD_NOT_FOUND",
                    details={"slug": id_or_slug}
                )

        return product

    def list_products(
        self,
        page: int = 1,
        limit: int = PRODUCTS_PAGE_SIZE,
        include_inactive: bool = False
    ) -> Dict[str, Any]:
        """
        Strona produktów.

        Returns:
            {"products": [...], "total": int, "page": int, "limit": int}
        """
        try:
            page, limit = int(page), int(limit)
        except (ValueError, TypeError):
            raise ValidationError("Page and limit must be positive integers", code="PAGINATION")
        if page < 1 or limit < 1:
            raise ValidationError("Page and limit must be positive integers", code="PAGINATION")

        products, total = self.products.list_populated(page, limit, include_deleted=include_inactive)
        return {"products": products, "total": total, "page": page, "limit": limit}

    # ============================================================
    # LIFECYCLE
    # ============================================================

    def deactivate_product(self, product_id: str) -> Dict[str, Any]:
        """Soft delete (is_active = False)"""
        self.products.get_by_id_or_raise(product_id, include_deleted=True)
        self.products.delete(product_id, hard=False)

        self.emit_delete_event(product_id, {"hard": False})
        return self._populated(product_id, include_deleted=True)

    def toggle_product_status(self, product_id: str) -> Dict[str, Any]:
        """
        Przełącz is_active.

        Raises:
            BusinessRuleError: Aktywacja przy nieaktywnej naturze / zakładzie
        """
        product = self.products.get_by_id_or_raise(product_id, include_deleted=True)
        activate = not product.get("is_active", False)

        if activate:
            self._check_can_activate(product)

        self.products.set_active(product_id, activate)
        self.emit_event(EventType.PRODUCT_STATUS_CHANGED, {"id": product_id, "is_active": activate})

        logger.info(f"[Product] {'Activated' if activate else 'Deactivated'}: {product_id}")
        return self._populated(product_id, include_deleted=True)

    def restore_product(self, product_id: str) -> Dict[str, Any]:
        """Przywróć dezaktywowany produkt"""
        product = self.products.get_by_id_or_raise(product_id, include_deleted=True)

        if not product.get("is_active"):
            self._check_can_activate(product)
            self.products.restore(product_id)
            self.emit_event(EventType.PRODUCT_RESTORED, {"id": product_id})

        return self._populated(product_id, include_deleted=True)

    def permanent_delete_product(self, product_id: str) -> Dict[str, Any]:
        """
        Usuń wszystkie zasoby produktu ze Storage, potem rekord.

        Zasoby, których nie udało się usunąć, są logowane i zgłaszane
        eventem product.asset_orphaned - nie blokują usunięcia rekordu.

        Returns:
            Usunięty produkt (stan sprzed usunięcia)
        """
        product = self._populated(product_id, include_deleted=True)

        urls = [img.url for img in images_from_record(product)]
        for column in ("brochure", "tds"):
            document = DocumentAsset.from_dict(product.get(column))
            if document:
                urls.append(document.url)

        with self.correlation_context():
            for url in self.storage.delete_multiple(urls):
                logger.error(f"[Product] Could not delete asset {url} of {product_id}")
                self.emit_event(EventType.PRODUCT_ASSET_ORPHANED, {
                    "url": url,
                    "bucket": self.storage.bucket,
                    "phase": "permanent_delete",
                    "product_id": product_id,
                })

            self.products.delete(product_id, hard=True)
            self.emit_delete_event(product_id, {"hard": True, "assets": len(urls)})

        logger.info(f"[Product] Permanently deleted: {product_id} ({len(urls)} assets)")
        return product

    # ============================================================
    # Helpers
    # ============================================================

    def _populated(
        self,
        product_id: str,
        include_deleted: bool = False,
        fallback: Dict[str, Any] = None
    ) -> Dict[str, Any]:
        """Produkt z naturą i zakładem"""
        product = self.products.get_populated(id=product_id, include_deleted=include_deleted)
        if product:
            return product
        if fallback is not None:
            return fallback
        raise RecordNotFoundError(self.ENTITY_NAME, product_id)


def _split_by_role(outcomes: Sequence[UploadOutcome]) -> Dict[AssetRole, List[UploadOutcome]]:
    by_role = {role: [] for role in AssetRole}
    for outcome in outcomes:
        by_role[outcome.role].append(outcome)
    return by_role


# =========================================================
# FACTORY
# =========================================================

def create_product_service(client=None, timeout: int = None, event_bus: EventBus = None) -> ProductService:
    """
    Factory method do tworzenia ProductService.

    Args:
        client: Opcjonalna instancja Supabase Client
                (jeśli None - użyje get_supabase_client(timeout))
        timeout: Timeout wywołań Storage / PostgREST w sekundach
        event_bus: Opcjonalny event bus

    Returns:
        Skonfigurowana instancja ProductService
    """
    from natures.repository import NatureRepository
    from plants.repository import PlantRepository

    if client is None:
        from core.supabase_client import get_supabase_client
        client = get_supabase_client(timeout)

    return ProductService(
        ProductRepository(client),
        StorageRepository(client),
        NatureRepository(client),
        PlantRepository(client),
        event_bus=event_bus,
    )
