"""
Catalog store
─────────────
Static store metadata and product list, loaded once at startup from
product-info.json and read-only afterwards. Also holds the product filters
shared by the consultation flow and the recommendations endpoint so both
agree on budget buckets and level rules.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from .enums import BudgetBucket, PlayerLevel
from .models import Product, UserPreferences

log = logging.getLogger(__name__)

DEFAULT_PHONE = "+39 02 1234 5678"
DEFAULT_EMAIL = "info@tennisshoppro.it"


def minimal_fallback() -> Dict[str, Any]:
    """Hardcoded data used when product-info.json is missing or unreadable."""
    return {
        "store": {
            "nome": "TennisShop Pro",
            "descrizione": "Il tuo negozio specializzato per tennis e racchettismo",
            "settore": "Abbigliamento e Attrezzatura Sportiva - Tennis",
            "fondato": "2019",
            "slogan": "Performance. Passione. Professionalità.",
            "telefono": DEFAULT_PHONE,
            "email": DEFAULT_EMAIL,
            "indirizzo": "Via del Tennis 10, Milano (MI)",
            "spedizioni": "Spedizione gratuita per ordini sopra €50",
        },
        "categorie": {
            "racchette": {"nome": "Racchette da Tennis", "descrizione": "Racchette professionali per ogni livello"},
            "abbigliamento": {"nome": "Abbigliamento Tennis", "descrizione": "Vestiario tecnico e alla moda"},
            "scarpe": {"nome": "Scarpe da Tennis", "descrizione": "Calzature per ogni superficie"},
            "accessori": {"nome": "Accessori Tennis", "descrizione": "Grip, palline, borse e altro"},
        },
        "servizi": {
            "consulenza_prodotti": {
                "nome": "Consulenza Prodotti",
                "descrizione": "Ti aiutiamo a scegliere l'attrezzatura perfetta",
            },
            "spedizione_gratuita": {
                "nome": "Spedizione Gratuita",
                "descrizione": "Spedizione gratuita per ordini superiori a €50",
            },
        },
        "brands": {
            "wilson": {"nome": "Wilson", "specialita": "Racchette professionali"},
            "babolat": {"nome": "Babolat", "specialita": "Corde e racchette"},
            "nike": {"nome": "Nike", "specialita": "Abbigliamento e calzature"},
        },
        "flow_types": {
            "product_consultation": {"nome": "Consulenza Prodotto", "descrizione": "Ti aiutiamo a trovare il prodotto perfetto"},
            "size_guide": {"nome": "Guida Taglie", "descrizione": "Assistenza per la scelta della taglia"},
            "order_support": {"nome": "Supporto Ordine", "descrizione": "Aiuto per ordini e spedizioni"},
        },
    }


class CatalogStore:
    """Read-only view over the catalog document."""

    def __init__(self, data: Dict[str, Any], *, from_fallback: bool = False) -> None:
        self._data = data
        self.from_fallback = from_fallback
        self._products: List[Product] = []
        for raw in data.get("prodotti") or []:
            try:
                self._products.append(Product.from_dict(raw))
            except (KeyError, TypeError, ValueError) as e:
                log.warning(f"CATALOG_PRODUCT_SKIPPED | product={raw!r:.80} | error={e}")

    @classmethod
    def load(cls, path: Union[str, Path]) -> "CatalogStore":
        path = Path(path)
        log.info(f"CATALOG_LOAD_START | path={path}")
        if not path.exists():
            log.warning(f"CATALOG_NOT_FOUND | path={path} | using minimal fallback")
            return cls(minimal_fallback(), from_fallback=True)
        try:
            with path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
            if not isinstance(data, dict):
                raise ValueError("catalog root must be an object")
        except (OSError, ValueError) as e:
            log.warning(f"CATALOG_LOAD_FAILED | path={path} | error={e} | using minimal fallback")
            return cls(minimal_fallback(), from_fallback=True)

        store = cls(data)
        log.info(f"CATALOG_LOADED | sections={list(data.keys())} | products={len(store.products)}")
        return store

    # ────────────────────────────────────────────────────────
    # Accessors
    # ────────────────────────────────────────────────────────
    @property
    def store(self) -> Dict[str, Any]:
        return self._data.get("store") or {}

    @property
    def categories(self) -> Dict[str, Any]:
        return self._data.get("categorie") or {}

    @property
    def services(self) -> Dict[str, Any]:
        return self._data.get("servizi") or {}

    @property
    def brands(self) -> Dict[str, Any]:
        return self._data.get("brands") or {}

    @property
    def demo_order(self) -> Optional[Dict[str, Any]]:
        return self._data.get("ordine_demo") or None

    @property
    def products(self) -> List[Product]:
        return list(self._products)

    @property
    def phone(self) -> str:
        return self.store.get("telefono") or DEFAULT_PHONE

    @property
    def email(self) -> str:
        return self.store.get("email") or DEFAULT_EMAIL

    def is_loaded(self) -> bool:
        return bool(self._data)

    def to_dict(self) -> Dict[str, Any]:
        return json.loads(json.dumps(self._data))


# ─────────────────────────────────────────────────────────────
# Filters
# ─────────────────────────────────────────────────────────────
def budget_bucket_for(price: float) -> BudgetBucket:
    if price <= 50:
        return BudgetBucket.UNDER_50
    if price <= 100:
        return BudgetBucket.FROM_50_TO_100
    if price <= 200:
        return BudgetBucket.FROM_100_TO_200
    return BudgetBucket.OVER_200


def matches_budget(product: Product, budget: Optional[str]) -> bool:
    if not budget:
        return True
    try:
        wanted = BudgetBucket(budget)
    except ValueError:
        return True
    return budget_bucket_for(product.price) is wanted


def matches_level(product: Product, level: Optional[str]) -> bool:
    name = product.name.lower()
    if level == PlayerLevel.PRINCIPIANTE.value:
        return "pro" not in name
    if level == PlayerLevel.PROFESSIONALE.value:
        return "pro" in name or "rf97" in name or product.price > 200
    return True


def filter_products_by_preferences(
    products: Iterable[Product],
    level: Optional[str] = None,
    budget: Optional[str] = None,
    category: Optional[str] = None,
) -> List[Product]:
    return [
        p for p in products
        if (not category or p.category == category)
        and matches_level(p, level)
        and matches_budget(p, budget)
    ]


def search_products(query: str, products: Iterable[Product]) -> List[Product]:
    term = (query or "").strip().lower()
    if not term:
        return []
    return [
        p for p in products
        if term in p.name.lower() or term in p.description.lower() or term in p.category.lower()
    ]


def get_product_recommendations(
    preferences: UserPreferences,
    products: Iterable[Product],
    limit: int = 6,
) -> List[Product]:
    filtered = filter_products_by_preferences(products, preferences.level, preferences.budget)
    if preferences.level == PlayerLevel.PRINCIPIANTE.value:
        filtered.sort(key=lambda p: p.price)
    elif preferences.level == PlayerLevel.PROFESSIONALE.value:
        filtered.sort(key=lambda p: p.price, reverse=True)
    return filtered[:limit]
