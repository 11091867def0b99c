# admin_console/models/product.py
from pydantic import BaseModel, Field
from typing import List, Optional, Any, Dict

from admin_console.models.attribute import CustomAttribute

# Упрощенные модели: бэкенд каталога является источником истины, лишние поля пропускаем как есть

class ProductSummary(BaseModel):
    id: str
    product_id: Optional[str] = None
    name: str = ""
    sku: Optional[str] = None
    status: Optional[str] = None
    price: Optional[Any] = None
    stock_quantity: Optional[int] = None
    low_stock_alert: Optional[int] = None
    stock_status: Optional[str] = None
    thumbnail: Optional[str] = None
    subcategory_ids: List[str] = []

class ProductImage(BaseModel):
    id: Optional[str] = None
    url: str
    alt: Optional[str] = None
    is_primary: bool = False

class ProductDetails(BaseModel):
    """Карточка товара, собранная из разделов бэкенда."""
    product_id: str
    basic: Dict[str, Any] = {}
    seo: Dict[str, Any] = {}
    variant: Dict[str, Any] = {}
    shipping: Dict[str, Any] = {}
    variants: List[Dict[str, Any]] = []
    images: List[ProductImage] = []
    attributes: List[CustomAttribute] = []

class ProductSavePayload(BaseModel):
    """Сохранение товара: произвольные поля формы + атрибуты из редактора."""
    fields: Dict[str, Any] = {}
    attributes: List[CustomAttribute] = []

class SubcategoryLinkPayload(BaseModel):
    product_ids: List[str] = Field(..., min_length=1)
    subcategory_id: str

class ThumbnailPayload(BaseModel):
    image_id: str

class CatalogSubcategoryNode(BaseModel):
    id: str
    name: str
    products: List[ProductSummary] = []

class CatalogCategoryNode(BaseModel):
    name: str
    subcategories: List[CatalogSubcategoryNode] = []
