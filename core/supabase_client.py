#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Centralny moduł połączenia z Supabase

Jeden klient na wartość timeoutu (współdzielony w aplikacji).
Używa SERVICE_ROLE_KEY dla pełnych uprawnień (obejście RLS).
Każde wywołanie Storage/PostgREST ma timeout (STORAGE_TIMEOUT).
"""

import logging
from typing import Dict

from supabase import create_client, Client, ClientOptions

from config.settings import SUPABASE_URL, SUPABASE_SERVICE_KEY, STORAGE_TIMEOUT

logger = logging.getLogger(__name__)

# Klienci Supabase, po jednym na timeout
_clients: Dict[int, Client] = {}


def get_supabase_client(timeout: int = None) -> Client:
    """
    Zwraca instancję klienta Supabase dla danego timeoutu.

    Klient jest tworzony raz na każdą wartość timeoutu i współdzielony
    przez kolejne wywołania z tą samą wartością.

    Args:
        timeout: Timeout w sekundach dla Storage i PostgREST
                 (domyślnie STORAGE_TIMEOUT z konfiguracji)

    Returns:
        Client: Klient Supabase z pełnymi uprawnieniami

    Raises:
        ValueError: Jeśli brak konfiguracji
    """
    timeout = timeout or STORAGE_TIMEOUT

    if timeout not in _clients:
        if not SUPABASE_URL or not SUPABASE_SERVICE_KEY:
            raise ValueError(
                "[ERROR] Brak konfiguracji Supabase!\n"
                "Sprawdź SUPABASE_URL i SUPABASE_SERVICE_KEY w .env"
            )

        options = ClientOptions(
            storage_client_timeout=timeout,
            postgrest_client_timeout=timeout,
        )
        _clients[timeout] = create_client(SUPABASE_URL, SUPABASE_SERVICE_KEY, options=options)
        logger.info(f"[OK] Połączono z Supabase (timeout={timeout}s)")

    return _clients[timeout]


def reset_client():
    """
    Resetuj klientów (przydatne do testów).
    """
    _clients.clear()


def test_connection() -> bool:
    """
    Testuj połączenie z Supabase.

    Returns:
        True jeśli połączenie działa
    """
    try:
        client = get_supabase_client()

        # Prosty test - sprawdź czy można wykonać zapytanie
        client.table('products').select("id").limit(1).execute()

        logger.info("[OK] Test połączenia zakończony sukcesem")
        return True

    except Exception as e:
        logger.error(f"[ERROR] Test połączenia nie powiódł się: {e}")
        return False
