"""
Completion generators for finished guided flows.

Pure functions of the collected answers (plus the catalog where products or
store contacts are needed). Output is chat-ready HTML.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

from .catalog import CatalogStore, filter_products_by_preferences
from .enums import FlowType, PlayerLevel
from .models import FlowResult
from .utils.helpers import find_order_code

MAX_RECOMMENDED_PRODUCTS = 3

RACKET_COPY: Dict[str, str] = {
    "introductory": (
        "🎾 <strong>Racchette per Principianti</strong><br><br>"
        "Ti consiglio racchette con:<br>"
        "• <strong>Peso:</strong> 260-280g (più facili da manovrare)<br>"
        "• <strong>Head size:</strong> 100+ sq.in (area di impatto maggiore)<br>"
        "• <strong>Pattern corde:</strong> 16x19 (più potenza, più tolleranza)<br><br>"
        "🏆 <strong>Modelli consigliati:</strong><br>"
        "• Babolat Drive Max (€89) - Perfetta per iniziare<br>"
        "• Wilson Clash 100 (€199) - Comfort superiore<br>"
        "• Head Ti S6 (€69) - Ottimo rapporto qualità/prezzo"
    ),
    "competitive": (
        "🏆 <strong>Racchette Professionali</strong><br><br>"
        "Per il tuo livello ti serve:<br>"
        "• <strong>Peso:</strong> 300+ g (controllo e precisione)<br>"
        "• <strong>Head size:</strong> 95-100 sq.in (controllo ottimale)<br>"
        "• <strong>Pattern corde:</strong> 18x20 (massimo controllo)<br><br>"
        "🥇 <strong>Modelli top:</strong><br>"
        "• Wilson Pro Staff RF97 (€299) - La racchetta di Federer<br>"
        "• Babolat Pure Strike (€249) - Precisione chirurgica<br>"
        "• Head Prestige MP (€279) - Classico atemporale"
    ),
}

SHOES_COPY = (
    "👟 <strong>Scarpe da Tennis</strong><br><br>"
    "Caratteristiche essenziali:<br>"
    "• <strong>Suola:</strong> Herringbone per terra battuta, All Court per cemento<br>"
    "• <strong>Ammortizzazione:</strong> Importante per articolazioni<br>"
    "• <strong>Stabilità:</strong> Supporto laterale per cambi direzione<br><br>"
    "🏃‍♂️ <strong>Modelli top:</strong><br>"
    "• Nike Air Zoom Vapor Cage 4 (€139)<br>"
    "• Adidas Barricade 2022 (€119)<br>"
    "• Asics Gel Resolution 8 (€149)"
)

SIZE_GUIDES: Dict[str, str] = {
    "abbigliamento": (
        "👕 <strong>Guida Taglie Abbigliamento</strong><br><br>"
        "<strong>UOMO:</strong><br>"
        "• S: Torace 88-96cm<br>"
        "• M: Torace 96-104cm<br>"
        "• L: Torace 104-112cm<br>"
        "• XL: Torace 112-120cm<br><br>"
        "<strong>DONNA:</strong><br>"
        "• S: Torace 82-90cm<br>"
        "• M: Torace 90-98cm<br>"
        "• L: Torace 98-106cm<br>"
        "• XL: Torace 106-114cm<br><br>"
        "📏 <strong>Come misurare:</strong> Torace nel punto più largo"
    ),
    "scarpe": (
        "👟 <strong>Guida Taglie Scarpe</strong><br><br>"
        "<strong>CONVERSIONE EU/US:</strong><br>"
        "• EU 40 = US 7 = 25.5cm<br>"
        "• EU 41 = US 8 = 26cm<br>"
        "• EU 42 = US 8.5 = 26.5cm<br>"
        "• EU 43 = US 9.5 = 27cm<br>"
        "• EU 44 = US 10 = 27.5cm<br>"
        "• EU 45 = US 11 = 28cm<br><br>"
        "📏 <strong>Consiglio:</strong> Misura i piedi la sera (sono più gonfi)"
    ),
    "accessori": (
        "🧢 <strong>Guida Taglie Accessori</strong><br><br>"
        "• <strong>Cappellini:</strong> taglia unica regolabile (54-60cm)<br>"
        "• <strong>Polsini e fasce:</strong> taglia unica elasticizzata<br>"
        "• <strong>Grip:</strong> misura L1-L4 in base alla circonferenza del manico"
    ),
}


def _level_tier(level: Optional[str]) -> Optional[str]:
    if level == PlayerLevel.PRINCIPIANTE.value:
        return "introductory"
    if level == PlayerLevel.PROFESSIONALE.value:
        return "competitive"
    return None


def product_consultation(data: Dict[str, str], catalog: CatalogStore, message: str = "") -> FlowResult:
    level = data.get("level")
    budget = data.get("budget")
    category = data.get("category")

    recommendations = ""
    if category == "racchette":
        tier = _level_tier(level)
        if tier:
            recommendations = RACKET_COPY[tier]
    elif category == "scarpe":
        recommendations = SHOES_COPY

    products = filter_products_by_preferences(
        catalog.products, level=level, budget=budget, category=category
    )[:MAX_RECOMMENDED_PRODUCTS]

    response = (
        "✅ <strong>Consulenza completata!</strong><br><br>"
        "📋 <strong>Il tuo profilo:</strong><br>"
        f"• Livello: {level}<br>"
        f"• Budget: {budget}<br>"
        f"• Categoria: {category}<br><br>"
        f"{recommendations}<br><br>"
        "🛒 <strong>Vuoi vedere questi prodotti nel catalogo?</strong><br>"
        "💬 <strong>Hai altre domande tecniche?</strong>"
    )
    return FlowResult(
        response=response,
        completed=True,
        recommendations=recommendations,
        products=products,
    )


def size_guide(data: Dict[str, str], catalog: CatalogStore, message: str = "") -> FlowResult:
    guide = SIZE_GUIDES.get(data.get("product_type", ""), "")
    return FlowResult(
        response=(
            f"✅ <strong>Guida Taglie</strong><br><br>{guide}<br><br>"
            "❓ <strong>Hai ancora dubbi sulla taglia?</strong> Scrivimi!"
        ),
        completed=True,
    )


def order_support(data: Dict[str, str], catalog: CatalogStore, message: str = "") -> FlowResult:
    support_type = data.get("support_type")

    if support_type == "tracking":
        code = find_order_code(message)
        if not code:
            return FlowResult(
                response=(
                    "📦 <strong>Tracking Spedizione</strong><br><br>"
                    "Per aiutarti, inserisci il <strong>numero del tuo ordine</strong> (es: <code>TS123456</code>).<br><br>"
                    "🔎 <em>Scrivi qui sotto il codice ordine che vuoi tracciare!</em>"
                ),
                completed=False,
                ask_order_number=True,
            )
        # Resolution happens in the orchestrator's demo-order lookup
        return FlowResult(
            response=f"🔎 Sto verificando il tuo ordine <strong>{code}</strong>...",
            completed=False,
        )

    if support_type == "reso":
        info = (
            "↩️ <strong>Reso e Cambio</strong><br><br>"
            "• <strong>Tempo:</strong> 30 giorni dalla consegna<br>"
            "• <strong>Condizioni:</strong> Prodotti non utilizzati con etichette<br>"
            "• <strong>Costo:</strong> Reso GRATUITO con etichetta prepagata<br>"
            "• <strong>Rimborso:</strong> 3-5 giorni lavorativi<br><br>"
            f"📧 <strong>Per iniziare:</strong> Contatta {catalog.email}"
        )
    elif support_type == "pagamento":
        info = (
            "💳 <strong>Pagamenti</strong><br><br>"
            "• Carte di credito e debito (Visa, Mastercard, Amex)<br>"
            "• PayPal<br>"
            "• Transazioni protette con crittografia SSL"
        )
    else:
        info = (
            "❓ <strong>Domanda generale</strong><br><br>"
            "• Spedizione GRATUITA per ordini superiori a €50<br>"
            "• Consegna in 24-48h in tutta Italia<br>"
            f"• Per qualsiasi richiesta scrivi a {catalog.email}"
        )

    return FlowResult(
        response=(
            f"✅ <strong>Supporto Ordini</strong><br><br>{info}<br><br>"
            f"📞 <strong>Serve altro aiuto?</strong> Chiamaci: {catalog.phone}"
        ),
        completed=True,
    )


CompletionGenerator = Callable[[Dict[str, str], CatalogStore, str], FlowResult]

COMPLETION_GENERATORS: Dict[FlowType, CompletionGenerator] = {
    FlowType.PRODUCT_CONSULTATION: product_consultation,
    FlowType.SIZE_GUIDE: size_guide,
    FlowType.ORDER_SUPPORT: order_support,
}
