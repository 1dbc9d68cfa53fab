"""
Centralized configuration for the guided flows.

Single source of truth for:
- Flow step tables (field, question, validation pattern, error, synonyms)
- Intent keywords per flow, in detection priority order
- The demo order-code pattern

Adding a flow or a synonym is a data change here; the flow engine
dispatches on FlowType and never branches on field names for validation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Pattern, Tuple

from .enums import FlowType


@dataclass(frozen=True)
class FlowStep:
    field: str
    question: str
    pattern: Pattern[str]
    error: str
    synonyms: Dict[str, str] = field(default_factory=dict)

    def canonicalize(self, normalized: str) -> str:
        return self.synonyms.get(normalized, normalized)

    def is_valid(self, value: str) -> bool:
        return bool(self.pattern.match(value))


# ─────────────────────────────────────────────────────────────
# Synonym tables (normalized input → canonical value)
# ─────────────────────────────────────────────────────────────
LEVEL_SYNONYMS: Dict[str, str] = {
    "principiante": "principiante", "beginner": "principiante", "1": "principiante",
    "intermedio": "intermedio", "intermediate": "intermedio", "2": "intermedio",
    "avanzato": "avanzato", "advanced": "avanzato", "3": "avanzato",
    "professionale": "professionale", "professional": "professionale", "4": "professionale",
}

BUDGET_SYNONYMS: Dict[str, str] = {
    # up to 50
    "fino a 50": "under50", "fino a €50": "under50", "sotto 50": "under50",
    "meno di 50": "under50", "under50": "under50",
    # 50 - 100
    "50 100": "50to100", "50-100": "50to100", "50 - 100": "50to100", "€50 - €100": "50to100",
    "tra 50 e 100": "50to100", "50to100": "50to100", "50": "50to100",
    # 100 - 200
    "100 200": "100to200", "100-200": "100to200", "100 - 200": "100to200", "€100 - €200": "100to200",
    "tra 100 e 200": "100to200", "da 100 a 200": "100to200", "100to200": "100to200", "100": "100to200",
    # over 200
    "oltre 200": "over200", "oltre €200": "over200", "oltre i 200": "over200", "sopra 200": "over200",
    "più di 200": "over200", "over200": "over200", "200": "over200", "tutti": "over200",
}

CATEGORY_SYNONYMS: Dict[str, str] = {
    "racchette": "racchette", "racchetta": "racchette", "racket": "racchette", "rackets": "racchette",
    "abbigliamento": "abbigliamento", "clothing": "abbigliamento",
    "scarpe": "scarpe", "scarpa": "scarpe", "shoes": "scarpe",
    "accessori": "accessori", "accessories": "accessori",
}

PRODUCT_TYPE_SYNONYMS: Dict[str, str] = {
    k: v for k, v in CATEGORY_SYNONYMS.items() if v != "racchette"
}

SUPPORT_TYPE_SYNONYMS: Dict[str, str] = {
    "tracking": "tracking", "spedizione": "tracking", "shipping": "tracking",
    "reso": "reso", "cambio": "reso", "return": "reso",
    "pagamento": "pagamento", "payment": "pagamento",
    "generale": "generale", "general": "generale",
}


# ─────────────────────────────────────────────────────────────
# Step tables
# ─────────────────────────────────────────────────────────────
FLOW_STEPS: Dict[FlowType, Tuple[FlowStep, ...]] = {
    FlowType.PRODUCT_CONSULTATION: (
        FlowStep(
            field="level",
            question=(
                "🎾 Perfetto! Per consigliarti al meglio, dimmi il tuo livello di gioco:<br><br>"
                "🟢 <strong>Principiante</strong> - Ho appena iniziato<br>"
                "🟡 <strong>Intermedio</strong> - Gioco da qualche anno<br>"
                "🟠 <strong>Avanzato</strong> - Gioco regolarmente<br>"
                "🔴 <strong>Professionale</strong> - Livello agonistico"
            ),
            pattern=re.compile(r"^(principiante|intermedio|avanzato|professionale)$"),
            error="Per favore scegli tra: principiante, intermedio, avanzato, professionale",
            synonyms=LEVEL_SYNONYMS,
        ),
        FlowStep(
            field="budget",
            question=(
                "💰 Ottimo! Qual è il tuo budget orientativo?<br><br>"
                "💚 <strong>Fino a €50</strong><br>"
                "💛 <strong>€50 - €100</strong><br>"
                "🧡 <strong>€100 - €200</strong><br>"
                "❤️ <strong>Oltre €200</strong>"
            ),
            pattern=re.compile(r"^(under50|50to100|100to200|over200)$"),
            error="Per favore indica un range di budget valido",
            synonyms=BUDGET_SYNONYMS,
        ),
        FlowStep(
            field="category",
            question=(
                "🛍️ Che tipo di prodotto stai cercando?<br><br>"
                "🎾 <strong>Racchette</strong><br>"
                "👕 <strong>Abbigliamento</strong><br>"
                "👟 <strong>Scarpe</strong><br>"
                "🎒 <strong>Accessori</strong>"
            ),
            pattern=re.compile(r"^(racchette|abbigliamento|scarpe|accessori)$"),
            error="Per favore scegli tra: racchette, abbigliamento, scarpe, accessori",
            synonyms=CATEGORY_SYNONYMS,
        ),
    ),
    FlowType.SIZE_GUIDE: (
        FlowStep(
            field="product_type",
            question=(
                "📏 Per quale tipo di prodotto ti serve la guida taglie?<br><br>"
                "👕 <strong>Abbigliamento</strong> (maglie, pantaloni, giacche)<br>"
                "👟 <strong>Scarpe</strong> (da tennis)<br>"
                "🧢 <strong>Accessori</strong> (cappelli, polsini)"
            ),
            pattern=re.compile(r"^(abbigliamento|scarpe|accessori)$"),
            error="Per favore scegli tra: abbigliamento, scarpe, accessori",
            synonyms=PRODUCT_TYPE_SYNONYMS,
        ),
    ),
    FlowType.ORDER_SUPPORT: (
        FlowStep(
            field="support_type",
            question=(
                "💬 Come posso aiutarti con il tuo ordine?<br><br>"
                "📦 <strong>Tracking spedizione</strong><br>"
                "↩️ <strong>Reso/Cambio</strong><br>"
                "💳 <strong>Pagamento</strong><br>"
                "❓ <strong>Domanda generale</strong>"
            ),
            pattern=re.compile(r"^(tracking|reso|pagamento|generale)$"),
            error="Per favore scegli tra: tracking, reso, pagamento, generale",
            synonyms=SUPPORT_TYPE_SYNONYMS,
        ),
    ),
}


# ─────────────────────────────────────────────────────────────
# Intent keywords (dict order == detection priority)
# ─────────────────────────────────────────────────────────────
FLOW_KEYWORDS: Dict[FlowType, List[str]] = {
    FlowType.PRODUCT_CONSULTATION: [
        "consigli", "consiglio", "aiuto a scegliere", "che racchetta", "che scarpe", "consulenza",
    ],
    FlowType.SIZE_GUIDE: ["taglie", "taglia", "misura", "size"],
    FlowType.ORDER_SUPPORT: ["spedizione", "consegna", "reso", "ordine"],
}

# Fixed prefix followed by 6+ digits, e.g. TS123456
ORDER_CODE_RE = re.compile(r"\bTS\d{6,}\b", re.IGNORECASE)


def steps_for(flow_type: FlowType) -> Tuple[FlowStep, ...]:
    return FLOW_STEPS.get(flow_type, ())
