from datetime import datetime

from flask import Blueprint, current_app, jsonify, request

from modules.boutiquedb.boutiquedb_models import ProductStatus
from modules.configuration.log_config import debug_id, error_id, get_request_id, info_id
from modules.search import (
    ProductFilters,
    ProductListParams,
    ProductRepository,
    build_search_conditions,
    get_spell_suggestion,
    quick_search_products,
)

search_products_bp = Blueprint('search_products_bp', __name__)

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 24


class BadFilter(ValueError):
    """Raised for a query-string value that cannot be parsed."""


def _db_config():
    return current_app.config.get('db_config')


def _many(name):
    """Repeated or comma-separated values: ?color=or&color=argent or ?color=or,argent"""
    values = []
    for raw in request.args.getlist(name):
        values.extend(v.strip() for v in raw.split(',') if v.strip())
    return values or None


def _number(name, cast=float):
    raw = request.args.get(name)
    if raw is None or raw == '':
        return None
    try:
        return cast(raw)
    except ValueError:
        raise BadFilter(f"'{name}' must be a number, got '{raw}'")


def _date(name):
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        raise BadFilter(f"'{name}' must be an ISO date, got '{raw}'")


def _flag(name):
    raw = request.args.get(name)
    if raw is None:
        return None
    return raw.lower() in ('1', 'true', 'yes', 'on')


def _status(raw):
    try:
        return ProductStatus(raw.upper())
    except ValueError:
        raise BadFilter(f"Unknown status '{raw}'")


def parse_list_params():
    """Build ProductListParams from the query string. Raises BadFilter on malformed values."""
    statuses = [_status(s) for s in (_many('status') or [])]
    filters = ProductFilters(
        type=_many('type'),
        color=_many('color'),
        material=_many('material'),
        collection_slug=_many('collection'),
        collection_id=_many('collection_id'),
        slugs=_many('slug'),
        price_min=_number('price_min', int),
        price_max=_number('price_max', int),
        on_sale=_flag('on_sale'),
        stock_status=request.args.get('stock') or None,
        rating_min=_number('rating_min'),
        created_after=_date('created_after'),
        created_before=_date('created_before'),
        updated_after=_date('updated_after'),
        updated_before=_date('updated_before'),
    )
    if len(statuses) > 1:
        filters.status = statuses

    limit = _number('limit', int)
    offset = _number('offset', int)
    return ProductListParams(
        search=request.args.get('q', ''),
        status=statuses[0] if len(statuses) == 1 else (None if statuses else ProductStatus.PUBLIC),
        filters=filters,
        sort=request.args.get('sort') or 'relevance',
        limit=min(max(limit, 1), MAX_PAGE_SIZE) if limit is not None else DEFAULT_PAGE_SIZE,
        offset=max(offset, 0) if offset is not None else 0,
    )


@search_products_bp.route('/search/quick', methods=['GET'])
def quick_search():
    query = request.args.get('q', '')
    debug_id(f"Quick search request: '{query}'", get_request_id())
    result = quick_search_products(query, db_config=_db_config())
    return jsonify(result.to_dict())


@search_products_bp.route('/search/suggest', methods=['GET'])
def suggest():
    query = request.args.get('q', '')
    suggestion = get_spell_suggestion(query, status=ProductStatus.PUBLIC, db_config=_db_config())
    return jsonify({'query': query, 'suggestion': suggestion.to_dict() if suggestion else None})


@search_products_bp.route('/search/products', methods=['GET'])
def search_products():
    request_id = get_request_id()
    try:
        params = parse_list_params()
    except BadFilter as e:
        info_id(f"Rejected product search: {e}", request_id)
        return jsonify({'error': str(e)}), 400

    fuzzy_status = params.status if isinstance(params.status, ProductStatus) else None
    try:
        search = build_search_conditions(params.search, status=fuzzy_status, db_config=_db_config())
        products, total = ProductRepository(db_config=_db_config()).search_products(params, search, request_id)
    except Exception as e:
        error_id(f"Product listing failed: {e}", request_id)
        products, total = [], 0

    info_id(f"Product search '{params.search}' -> {len(products)} of {total}", request_id)
    return jsonify({
        'products': products,
        'total_count': total,
        'limit': params.limit,
        'offset': params.offset,
    })
