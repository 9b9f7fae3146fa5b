#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Products Module - Moduł zarządzania produktami

Architektura:
─────────────────────────────────────────────────────────────
    ProductService (products.service) ← Główny punkt wejścia
         │
         ▼
    CompensatingWriteCoordinator (products.coordinator)
         │   ├─ AssetUploadBatch (products.upload_batch)
         │   └─ reconcile()      (products.reconciliation)
         │
         ├───────────────────┐
         ▼                   ▼
    ProductRepository    StorageRepository
    (products.repository) (products.storage)
         │                   │
         ▼                   ▼
    Supabase DB          Supabase Storage
─────────────────────────────────────────────────────────────

Użycie:
    from products import create_product_service, AssetFile, UploadImage, KeepImage

    service = create_product_service(timeout=15)

    # Utwórz produkt
    product = service.create_product(
        data={'name': 'Steel Bracket', 'abbreviation': 'SB', ...},
        images=[
            UploadImage(AssetFile(front_png, 'front.png'), is_primary=True),
            UploadImage(AssetFile(side_png, 'side.png')),
        ],
        brochure=AssetFile(brochure_pdf, 'brochure.pdf'),
        tds=AssetFile(tds_pdf, 'tds.pdf'),
    )

    # Zmień kolejność zdjęć, dodaj nowe, usuń pominięte
    product = service.update_product(
        product['id'],
        images=[
            KeepImage(product['images'][1]['url'], is_primary=True),
            UploadImage(AssetFile(back_png, 'back.png')),
        ],
    )
"""

# Główny serwis i factory
from products.service import ProductService, create_product_service

# Repozytoria
from products.repository import ProductRepository
from products.storage import StorageRepository

# Zasoby i instrukcje
from products.assets import (
    AssetRole,
    AssetFile,
    ImageAsset,
    DocumentAsset,
    UploadOutcome,
    KeepImage,
    UploadImage,
    ReplaceWithUpload,
    ReconciliationPlan,
)

# Rdzeń zapisu
from products.upload_batch import AssetUploadBatch
from products.reconciliation import reconcile
from products.coordinator import CompensatingWriteCoordinator, WritePlan, WriteStage

# Ścieżki Storage
from products.paths import StoragePaths

__all__ = [
    # Główny punkt wejścia
    'ProductService',
    'create_product_service',

    # Repozytoria
    'ProductRepository',
    'StorageRepository',

    # Zasoby
    'AssetRole',
    'AssetFile',
    'ImageAsset',
    'DocumentAsset',
    'UploadOutcome',
    'KeepImage',
    'UploadImage',
    'ReplaceWithUpload',
    'ReconciliationPlan',

    # Zapis
    'AssetUploadBatch',
    'reconcile',
    'CompensatingWriteCoordinator',
    'WritePlan',
    'WriteStage',

    # Pomocnicze
    'StoragePaths',
]

__version__ = '1.0.0'
