import pytest

from core import supabase_client


@pytest.fixture
def created(monkeypatch):
    calls = []

    def fake_create_client(url, key, options=None):
        calls.append(options)
        return object()

    monkeypatch.setattr(supabase_client, "SUPABASE_URL", "https://xyz.supabase.co")
    monkeypatch.setattr(supabase_client, "SUPABASE_SERVICE_KEY", "service-key")
    monkeypatch.setattr(supabase_client, "create_client", fake_create_client)
    supabase_client.reset_client()
    yield calls
    supabase_client.reset_client()


def test_each_timeout_reaches_client_options(created):
    slow = supabase_client.get_supabase_client(60)
    fast = supabase_client.get_supabase_client(5)

    assert [o.storage_client_timeout for o in created] == [60, 5]
    assert [o.postgrest_client_timeout for o in created] == [60, 5]
    assert slow is not fast


def test_client_is_reused_for_same_timeout(created):
    first = supabase_client.get_supabase_client(5)

    assert supabase_client.get_supabase_client(5) is first
    assert len(created) == 1


def test_default_timeout_comes_from_settings(created, monkeypatch):
    monkeypatch.setattr(supabase_client, "STORAGE_TIMEOUT", 42)

    supabase_client.get_supabase_client()

    assert created[0].storage_client_timeout == 42


def test_missing_credentials(created, monkeypatch):
    monkeypatch.setattr(supabase_client, "SUPABASE_URL", "")

    with pytest.raises(ValueError):
        supabase_client.get_supabase_client(5)

    assert created == []
