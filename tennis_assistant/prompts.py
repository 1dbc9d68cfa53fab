"""
System prompt for the free-form assistant reply.

Rebuilt on every LLM call from the catalog, the session snapshot and the
optional client context, so store data changes show up without restarts.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional
from zoneinfo import ZoneInfo

from .catalog import DEFAULT_EMAIL, DEFAULT_PHONE, CatalogStore
from .models import Session, UserPreferences

GIORNI = ["Lunedì", "Martedì", "Mercoledì", "Giovedì", "Venerdì", "Sabato", "Domenica"]
MESI = [
    "Gennaio", "Febbraio", "Marzo", "Aprile", "Maggio", "Giugno",
    "Luglio", "Agosto", "Settembre", "Ottobre", "Novembre", "Dicembre",
]

STORE_STATUS = "🟢 NEGOZIO ONLINE SEMPRE APERTO"
NOT_SPECIFIED = "Non specificato"

SHIPPING_INFO = """INFO SPEDIZIONI E CONSEGNE:
- Spedizione GRATUITA per ordini superiori a €50
- Consegna in 24-48h in tutta Italia
- Tracking completo dell'ordine
- Reso gratuito entro 30 giorni
- Pagamento sicuro con carte e PayPal"""

BEHAVIOUR_RULES = """REGOLE COMPORTAMENTO SPECIALIZZATO TENNIS:
1. Sei un ESPERTO di tennis e attrezzature sportive
2. Conosci tutti i prodotti: racchette, scarpe, abbigliamento, accessori
3. Sai consigliare in base a: livello di gioco, budget, superficie, stile
4. Fornisci sempre consigli tecnici specifici e dettagliati
5. Usa terminologia tecnica del tennis quando appropriato
6. Considera peso racchetta, tensione corde, tipo suola scarpe, ecc.
7. Risposte BREVI ma TECNICHE (max 3-4 righe)
8. USA SEMPRE emoji tennis appropriate 🎾🏆👟
9. HTML: <br> per nuove righe, <strong> per grassetto
10. SEMPRE professionale ma entusiasta del tennis

ESEMPI DI CONSULENZA TENNIS:
- "Per principianti consiglio racchette 260-280g, head 100+ sq.in"
- "Su terra battuta serve suola specifica con pattern herringbone"
- "Tensione corde: 24-26kg per potenza, 26-28kg per controllo"
- "Wilson Pro Staff per giocatori tecnici, Babolat Pure Drive per potenza"

FLOW DI CONSULENZA PRODOTTI:
Se l'utente chiede consigli, avvia flow guidato:
1. Livello di gioco (principiante/intermedio/avanzato/professionale)
2. Budget orientativo (sotto €50, €50-100, €100-200, oltre €200)
3. Raccomandazioni specifiche con add-to-cart

Rispondi SEMPRE in italiano, con passione per il tennis e conoscenza tecnica approfondita."""


def format_italian_datetime(now: datetime) -> Dict[str, str]:
    return {
        "date": f"{GIORNI[now.weekday()]} {now.day} {MESI[now.month - 1]} {now.year}",
        "time": f"{now.hour:02d}:{now.minute:02d}",
    }


def _listing(section: Mapping[str, Any], detail_key: str = "descrizione", default: str = "") -> str:
    lines = []
    for entry in section.values():
        if not isinstance(entry, dict):
            continue
        lines.append(f"- {entry.get('nome', '')}: {entry.get(detail_key) or default}")
    return "\n".join(lines)


def _featured_products(catalog: CatalogStore, context: Mapping[str, Any], limit: int) -> str:
    entries: List[Mapping[str, Any]] = list(context.get("productCatalog") or [])
    if not entries:
        entries = [p.to_dict() for p in catalog.products[:limit]]
    if not entries:
        return ""
    lines = "\n".join(
        f"- {p.get('name', '')}: €{p.get('price', '')} ({p.get('category', '')})" for p in entries
    )
    return f"PRODOTTI IN EVIDENZA (primi {limit}):\n{lines}"


def _user_context(session: Session, context: Mapping[str, Any]) -> str:
    override = context.get("userPreferences")
    prefs = UserPreferences.from_dict(override) if override else session.user_preferences
    if not (prefs.level or prefs.budget):
        return ""
    return (
        "CONTESTO UTENTE:\n"
        f"- Livello di gioco: {prefs.level or NOT_SPECIFIED}\n"
        f"- Budget: {prefs.budget or NOT_SPECIFIED}\n"
        f"- Superficie preferita: {prefs.playing_surface or NOT_SPECIFIED}\n"
        f"- Stile di gioco: {prefs.playing_style or NOT_SPECIFIED}"
    )


def _flow_marker(session: Session) -> str:
    if session.current_flow:
        return (
            f"🔄 FLOW ATTIVO: {session.current_flow.upper()}\n"
            "⚠️ IMPORTANTE: Questo flow gestisce la conversazione guidata per consulenza prodotti."
        )
    return "Nessun flow attivo - rispondi normalmente usando le informazioni sopra."


def build_system_prompt(
    session: Session,
    catalog: CatalogStore,
    context: Optional[Mapping[str, Any]] = None,
    now: Optional[datetime] = None,
    *,
    timezone: str = "Europe/Rome",
    featured_limit: int = 5,
) -> str:
    context = context or {}
    tz = ZoneInfo(timezone)
    local_now = now.astimezone(tz) if now and now.tzinfo else (now or datetime.now(tz))
    when = format_italian_datetime(local_now)
    store = catalog.store

    sections = [
        f"Sei l'assistente virtuale specializzato di {store.get('nome', 'TennisShop Pro')}.",
        "🕒 DATA E ORA ATTUALE (ITALIA):\n"
        f"• DATA: {when['date']}\n"
        f"• ORA: {when['time']}\n"
        f"• STATO NEGOZIO: {STORE_STATUS}",
        "INFORMAZIONI NEGOZIO:\n"
        f"- Nome: {store.get('nome', '')}\n"
        f"- Descrizione: {store.get('descrizione', '')}\n"
        f"- Settore: {store.get('settore', '')}\n"
        f"- Fondato: {store.get('fondato', '')}\n"
        f"- Slogan: {store.get('slogan', '')}\n"
        f"- Telefono: {store.get('telefono') or DEFAULT_PHONE}\n"
        f"- Email: {store.get('email') or DEFAULT_EMAIL}\n"
        f"- Indirizzo: {store.get('indirizzo') or 'Via del Tennis 10, Milano'}\n"
        f"- Spedizioni: {store.get('spedizioni') or 'Spedizione gratuita sopra €50'}",
        f"CATEGORIE PRODOTTI:\n{_listing(catalog.categories)}",
        f"SERVIZI DISPONIBILI:\n{_listing(catalog.services)}",
        f"BRANDS PRINCIPALI:\n{_listing(catalog.brands, 'specialita', 'Brand di qualità')}",
        _featured_products(catalog, context, featured_limit),
        _user_context(session, context),
        SHIPPING_INFO,
        f"GESTIONE FLOW (SE ATTIVO):\n{_flow_marker(session)}",
        BEHAVIOUR_RULES,
    ]
    return "\n\n".join(s for s in sections if s)
