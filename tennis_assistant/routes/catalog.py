# tennis_assistant/routes/catalog.py
"""
Catalog endpoints
─────────────────
GET  /api/product-info                 – the whole catalog document
GET  /api/products/search?q=racchetta  – substring search
POST /api/products/recommendations     – {"userPreferences": {...}} → up to 6 products
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from flask import Blueprint, jsonify, request

from ..catalog import get_product_recommendations, search_products
from ..models import UserPreferences
from ._common import extension

log = logging.getLogger(__name__)
bp = Blueprint("catalog", __name__)

RECOMMENDATION_LIMIT = 6


@bp.get("/product-info")
def product_info():
    try:
        return jsonify(extension("catalog").to_dict()), 200
    except Exception:  # noqa: BLE001
        log.exception("product-info endpoint failed")
        return jsonify({"error": "Unable to load product info"}), 500


@bp.get("/products/search")
def product_search():
    query = (request.args.get("q") or "").strip()
    if not query:
        return jsonify({"error": "Missing query parameter 'q'"}), 400

    products = search_products(query, extension("catalog").products)
    log.info(f"PRODUCT_SEARCH | q='{query}' | results={len(products)}")
    return jsonify({
        "query": query,
        "count": len(products),
        "products": [p.to_dict() for p in products],
    }), 200


@bp.post("/products/recommendations")
def product_recommendations():
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    raw_prefs = data.get("userPreferences")
    if raw_prefs is not None and not isinstance(raw_prefs, dict):
        return jsonify({"error": "userPreferences must be an object"}), 400

    prefs = UserPreferences.from_dict(raw_prefs)
    products = get_product_recommendations(prefs, extension("catalog").products, limit=RECOMMENDATION_LIMIT)
    log.info(f"PRODUCT_RECOMMENDATIONS | level={prefs.level} | budget={prefs.budget} | results={len(products)}")
    return jsonify({
        "userPreferences": prefs.to_dict(),
        "count": len(products),
        "products": [p.to_dict() for p in products],
    }), 200
