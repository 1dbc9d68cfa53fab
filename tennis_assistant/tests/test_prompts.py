from __future__ import annotations

from datetime import datetime, timezone

from tennis_assistant.catalog import CatalogStore, minimal_fallback
from tennis_assistant.enums import FlowType
from tennis_assistant.models import InFlow, Session, UserPreferences
from tennis_assistant.prompts import build_system_prompt, format_italian_datetime


def _session() -> Session:
    now = datetime(2024, 5, 1, 10, 0)
    return Session(id="s1", created_at=now, last_activity=now)


def test_italian_date_names():
    when = format_italian_datetime(datetime(2024, 3, 4, 9, 5))
    assert when == {"date": "Lunedì 4 Marzo 2024", "time": "09:05"}


def test_aware_time_is_converted_to_rome():
    # 23:30 UTC on 31 Dec is already New Year in Rome
    now = datetime(2023, 12, 31, 23, 30, tzinfo=timezone.utc)
    prompt = build_system_prompt(_session(), _catalog_stub(), now=now)
    assert "Lunedì 1 Gennaio 2024" in prompt
    assert "ORA: 00:30" in prompt


def test_prompt_lists_store_sections(catalog):
    prompt = build_system_prompt(_session(), catalog, now=datetime(2024, 5, 1, 10, 0))
    assert prompt.startswith("Sei l'assistente virtuale specializzato di TennisShop Pro.")
    assert "- Racchette da Tennis: Racchette professionali per ogni livello" in prompt
    assert "- Incordatura Professionale:" in prompt
    assert "- Wilson: Racchette professionali" in prompt
    assert "PRODOTTI IN EVIDENZA (primi 5)" in prompt
    assert "- Head Ti S6: €69.0 (racchette)" in prompt
    assert "Nessun flow attivo" in prompt
    assert "CONTESTO UTENTE" not in prompt


def test_context_catalog_and_preferences_override(catalog):
    session = _session()
    session.user_preferences = UserPreferences(level="principiante")
    context = {
        "productCatalog": [{"name": "Racchetta Demo", "price": 10, "category": "racchette"}],
        "userPreferences": {"level": "avanzato", "playingSurface": "terra"},
    }
    prompt = build_system_prompt(session, catalog, context, now=datetime(2024, 5, 1, 10, 0))

    assert "- Racchetta Demo: €10 (racchette)" in prompt
    assert "Head Ti S6" not in prompt
    assert "Livello di gioco: avanzato" in prompt
    assert "Superficie preferita: terra" in prompt
    assert "Budget: Non specificato" in prompt


def test_active_flow_marker(catalog):
    session = _session()
    session.flow_state = InFlow(FlowType.SIZE_GUIDE)
    prompt = build_system_prompt(session, catalog, now=datetime(2024, 5, 1, 10, 0))
    assert "FLOW ATTIVO: SIZE_GUIDE" in prompt


def _catalog_stub() -> CatalogStore:
    return CatalogStore(minimal_fallback(), from_fallback=True)
