from .boutiquedb_models import (
    Collection,
    Color,
    Material,
    Product,
    ProductCollection,
    ProductReviewStats,
    ProductSku,
    ProductStatus,
    ProductType,
)
