#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Catalog - Product Catalog Backend
Narzędzie administracyjne

Uruchomienie:
    python main.py check          # Konfiguracja + test połączenia
    python main.py deactivate ID  # Dezaktywuj produkt (soft delete)
    python main.py restore ID     # Przywróć produkt
    python main.py toggle ID      # Przełącz aktywność produktu
    python main.py purge ID       # Usuń produkt i jego pliki na stałe
"""

import sys
import argparse
import logging

from config.settings import validate_config
from core.exceptions import CatalogError

# Konfiguracja logowania
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def run_check() -> int:
    """Test połączenia z Supabase"""
    from core.supabase_client import test_connection
    return 0 if test_connection() else 1


def run_product_command(command: str, product_id: str, timeout: int = None) -> int:
    """Wykonaj operację cyklu życia produktu"""
    from core.events import setup_event_logging
    from products import create_product_service

    setup_event_logging()
    service = create_product_service(timeout=timeout)

    actions = {
        'deactivate': service.deactivate_product,
        'restore': service.restore_product,
        'toggle': service.toggle_product_status,
        'purge': service.permanent_delete_product,
    }

    try:
        product = actions[command](product_id)
    except CatalogError as e:
        logger.error(f"[Product] {command} failed: {e}")
        return 1

    logger.info(
        f"[Product] {command}: {product.get('name')} "
        f"({product.get('id')}) active={product.get('is_active')}"
    )
    return 0


def main():
    """Główna funkcja"""
    parser = argparse.ArgumentParser(description="Catalog - product catalog backend")
    parser.add_argument('--debug', action='store_true', help='Tryb debug (więcej logów)')
    parser.add_argument('--timeout', type=int, default=None, help='Timeout Storage/DB w sekundach')

    subparsers = parser.add_subparsers(dest='command', required=True)
    subparsers.add_parser('check', help='Sprawdź konfigurację i połączenie')
    for name, help_text in (
        ('deactivate', 'Dezaktywuj produkt'),
        ('restore', 'Przywróć produkt'),
        ('toggle', 'Przełącz aktywność produktu'),
        ('purge', 'Usuń produkt i pliki na stałe'),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument('product_id', help='ID produktu')

    args = parser.parse_args()

    # Tryb debug
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    # Walidacja konfiguracji
    try:
        validate_config()
        logger.info("Konfiguracja OK")
    except ValueError as e:
        logger.error(f"Błąd konfiguracji: {e}")
        return 1

    if args.command == 'check':
        return run_check()

    return run_product_command(args.command, args.product_id, args.timeout)


if __name__ == "__main__":
    sys.exit(main())
