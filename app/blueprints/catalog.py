"""Catalog blueprint - public product listing."""
from flask import Blueprint, current_app, jsonify, request

from app.database import get_session
from app.services import catalog_service

catalog_bp = Blueprint('catalog', __name__, url_prefix='/api/productos')


@catalog_bp.route('', methods=['GET'])
def list_products():
    """Active products; ?q= searches name and description."""
    default_size = current_app.config.get('CATALOG_PAGE_SIZE', 20)
    page = max(request.args.get('page', 1, type=int) or 1, 1)
    limit = min(max(request.args.get('limit', default_size, type=int) or default_size, 1), 100)
    search = (request.args.get('q') or '').strip() or None

    return jsonify(catalog_service.list_products(get_session(), search=search, page=page, per_page=limit))


@catalog_bp.route('/<slug>', methods=['GET'])
def product_detail(slug):
    return jsonify({'producto': catalog_service.get_product_by_slug(get_session(), slug)})
