# modules/search/product_repository.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import case, func
from sqlalchemy.orm import Session, selectinload

from modules.boutiquedb.boutiquedb_models import Product, ProductSku
from modules.configuration.config_env import get_db_config
from modules.configuration.log_config import (
    with_request_id, get_request_id, log_timed_operation, debug_id,
)
from .query_builder import ProductListParams, SearchConditions, build_product_where_clause

SORT_ORDERS = {
    "newest": (Product.created_at.desc(), Product.id),
    "oldest": (Product.created_at.asc(), Product.id),
    "title": (Product.title.asc(), Product.id),
}


class BaseRepository:
    """
    Shared session lifecycle for repositories.
    - If a session is provided, we reuse it and do NOT close it.
    - If not provided, we create a session and close it after each op.
    """
    def __init__(self, session=None, db_config=None):
        self._db = db_config
        self._external_session = session
        debug_id(f"{self.__class__.__name__} initialized (owns_session={self._external_session is None})",
                 get_request_id())

    def _session(self) -> Session:
        if self._external_session is not None:
            return self._external_session
        return (self._db or get_db_config()).new_session()

    def _owns_session(self) -> bool:
        return self._external_session is None


class ProductRepository(BaseRepository):
    """
    Read access to products for search:
      - get_by_ids(...)      bulk record fetch for ranked ids (no ordering guarantee)
      - search_products(...) filtered, paginated listing
    """

    @with_request_id
    def get_by_ids(self, ids: Sequence[str], request_id: Optional[str] = None) -> List[Dict[str, Any]]:
        rid = request_id or get_request_id()
        if not ids:
            return []
        sess = self._session()
        try:
            with log_timed_operation("ProductRepository.get_by_ids", rid):
                rows = (
                    sess.query(Product)
                    .options(selectinload(Product.skus))
                    .filter(Product.id.in_(list(ids)), Product.deleted_at.is_(None))
                    .all()
                )
                debug_id(f"get_by_ids -> {len(rows)} of {len(ids)} products", rid)
                return [p.to_search_dict() for p in rows]
        finally:
            if self._owns_session():
                sess.close()

    @with_request_id
    def search_products(
        self,
        params: ProductListParams,
        search: Optional[SearchConditions] = None,
        request_id: Optional[str] = None,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Run the listing query. With ``sort="relevance"`` and fuzzy ids present,
        products follow the fuzzy rank; exact-only hits come after them.
        """
        rid = request_id or get_request_id()
        conditions = build_product_where_clause(params, search)
        sess = self._session()
        try:
            with log_timed_operation("ProductRepository.search_products", rid):
                total = sess.query(func.count(Product.id)).filter(*conditions).scalar() or 0

                q = sess.query(Product).options(selectinload(Product.skus).selectinload(ProductSku.color))
                q = q.filter(*conditions).order_by(*self._order_by(params.sort, search))
                rows = q.offset(max(params.offset, 0)).limit(params.limit).all()

                debug_id(f"search_products -> {len(rows)} row(s), total={total}", rid)
                return [p.to_search_dict() for p in rows], int(total)
        finally:
            if self._owns_session():
                sess.close()

    @staticmethod
    def _order_by(sort: str, search: Optional[SearchConditions]):
        if sort == "relevance" and search is not None and search.fuzzy_ids:
            rank = case(
                {pid: position for position, pid in enumerate(search.fuzzy_ids)},
                value=Product.id,
                else_=len(search.fuzzy_ids),
            )
            return rank, Product.created_at.desc(), Product.id
        return SORT_ORDERS.get(sort, SORT_ORDERS["newest"])
