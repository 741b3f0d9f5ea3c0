# Overview: Flask API routes for the product catalog; public browsing and staff editing.

from flask import Blueprint, request, jsonify, current_app, g

from ..errors import HerbTradeError
from ..services import catalog_service
from ..decorators import require_auth, require_capability


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products_route():
    """
    Public product listing (max 50).

    Query params: search, category, min_price, max_price, quality,
    sort (price_low | price_high | newest)
    """
    try:
        args = request.args
        products = catalog_service.list_products(
            search=args.get("search"),
            category=args.get("category"),
            min_price=args.get("min_price") or args.get("minPrice"),
            max_price=args.get("max_price") or args.get("maxPrice"),
            quality=args.get("quality"),
            sort=args.get("sort"),
        )
        return jsonify({"products": [product.to_dict() for product in products]}), 200

    except HerbTradeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list products")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("/categories/list")
def list_categories_route():
    return jsonify({"categories": catalog_service.list_categories()}), 200


@products_bp.get("/<int:product_id>")
def get_product_route(product_id: int):
    try:
        product = catalog_service.get_product(product_id)
        return jsonify({"product": product.to_dict()}), 200

    except HerbTradeError as e:
        return jsonify(e.to_dict()), e.status_code


@products_bp.post("")
@require_auth
@require_capability("MANAGE_PRODUCTS")
def create_product_route():
    try:
        data = request.get_json(silent=True) or {}
        product = catalog_service.create_product(g.current_principal, data)
        return jsonify({"product": product.to_dict()}), 201

    except HerbTradeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.put("/<int:product_id>")
@require_auth
@require_capability("MANAGE_PRODUCTS")
def update_product_route(product_id: int):
    try:
        data = request.get_json(silent=True) or {}
        product = catalog_service.update_product(product_id, data, g.current_principal)
        return jsonify({"product": product.to_dict()}), 200

    except HerbTradeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500
