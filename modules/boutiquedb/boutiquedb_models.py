# modules/boutiquedb/boutiquedb_models.py
"""
ORM models for the catalog tables read by product search.

Only the columns search and listing touch are mapped; writes happen in the
admin application.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import (
    Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from modules.configuration.base import Base


class ProductStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLIC = "PUBLIC"
    ARCHIVED = "ARCHIVED"


class ProductType(Base):
    __tablename__ = 'product_type'

    id = Column(String, primary_key=True)
    slug = Column(String, unique=True, nullable=False)
    label = Column(String, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    products = relationship("Product", back_populates="type")


class Color(Base):
    __tablename__ = 'color'

    id = Column(String, primary_key=True)
    slug = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    hex = Column(String(7))
    is_active = Column(Boolean, default=True, nullable=False)


class Material(Base):
    __tablename__ = 'material'

    id = Column(String, primary_key=True)
    slug = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)


class Collection(Base):
    __tablename__ = 'collection'

    id = Column(String, primary_key=True)
    slug = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text)
    status = Column(String, default=ProductStatus.DRAFT.value, nullable=False)

    products = relationship("ProductCollection", back_populates="collection")


class Product(Base):
    __tablename__ = 'product'

    id = Column(String, primary_key=True)
    slug = Column(String, unique=True, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text)
    status = Column(String, default=ProductStatus.DRAFT.value, nullable=False, index=True)
    type_id = Column(String, ForeignKey('product_type.id'))
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    deleted_at = Column(DateTime)  # soft delete

    type = relationship("ProductType", back_populates="products")
    skus = relationship("ProductSku", back_populates="product")
    collections = relationship("ProductCollection", back_populates="product")
    review_stats = relationship("ProductReviewStats", back_populates="product", uselist=False)

    def default_sku(self):
        """Default active SKU, else the cheapest active one."""
        active = [s for s in self.skus if s.is_active]
        if not active:
            return None
        for sku in active:
            if sku.is_default:
                return sku
        return min(active, key=lambda s: s.price_incl_tax)

    def to_search_dict(self):
        sku = self.default_sku()
        return {
            'id': self.id,
            'slug': self.slug,
            'title': self.title,
            'status': self.status,
            'price_incl_tax': sku.price_incl_tax if sku else None,
            'compare_at_price': sku.compare_at_price if sku else None,
            'in_stock': bool(sku and sku.inventory > 0),
        }


class ProductSku(Base):
    __tablename__ = 'product_sku'

    id = Column(String, primary_key=True)
    product_id = Column(String, ForeignKey('product.id'), nullable=False, index=True)
    sku = Column(String, unique=True, nullable=False)
    color_id = Column(String, ForeignKey('color.id'))
    material_id = Column(String, ForeignKey('material.id'))
    size = Column(String)
    price_incl_tax = Column(Integer, nullable=False)  # cents
    compare_at_price = Column(Integer)  # cents, set when on sale
    inventory = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)

    product = relationship("Product", back_populates="skus")
    color = relationship("Color")
    material = relationship("Material")


class ProductCollection(Base):
    __tablename__ = 'product_collection'

    id = Column(String, primary_key=True)
    product_id = Column(String, ForeignKey('product.id'), nullable=False)
    collection_id = Column(String, ForeignKey('collection.id'), nullable=False)
    added_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    is_featured = Column(Boolean, default=False, nullable=False)

    product = relationship("Product", back_populates="collections")
    collection = relationship("Collection", back_populates="products")

    __table_args__ = (UniqueConstraint('product_id', 'collection_id', name='_product_collection_uc'),)


class ProductReviewStats(Base):
    __tablename__ = 'product_review_stats'

    product_id = Column(String, ForeignKey('product.id'), primary_key=True)
    average_rating = Column(Float, default=0.0, nullable=False)
    review_count = Column(Integer, default=0, nullable=False)

    product = relationship("Product", back_populates="review_stats")
