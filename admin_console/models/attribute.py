# admin_console/models/attribute.py
from pydantic import BaseModel
from typing import Dict, List, Optional, Literal

AttrType = Literal["size", "color", "material", "custom"]
AttrStatus = Literal["visible", "hidden"]
SelectionState = Literal["full", "partial", "none"]

# Значение scope в форме атрибута, означающее «для всех подкатегорий»
GLOBAL_SCOPE = "__global__"
# Значение фильтра подкатегории «все»
ALL_SUBCATEGORIES = "__all__"


# --- Библиотека атрибутов (страница «Атрибуты») ---

class AttributeValue(BaseModel):
    id: str
    name: str = ""
    price_delta: Optional[float] = None
    is_default: bool = False
    image_url: Optional[str] = None
    image_id: Optional[str] = None
    short_description: Optional[str] = None

class Attribute(BaseModel):
    id: str
    name: str
    slug: str = ""
    type: AttrType = "custom"
    status: AttrStatus = "visible"
    values: List[AttributeValue] = []
    created_at: str
    # пусто = глобальный атрибут
    subcategory_ids: List[str] = []

class AttributeForm(BaseModel):
    """Форма создания/редактирования атрибута."""
    id: Optional[str] = None
    name: str
    status: AttrStatus = "visible"
    type: Optional[AttrType] = None
    values: List[AttributeValue] = []
    scope: str = GLOBAL_SCOPE
    created_at: Optional[str] = None

class AttributeLinkPayload(BaseModel):
    subcategory_id: str

class DefaultTogglePayload(BaseModel):
    values: List[AttributeValue]
    value_id: str


# --- Атрибуты товара (редактор товара) ---

class AttributeOption(BaseModel):
    id: Optional[str] = None
    label: str = ""
    price_delta: float = 0.0
    is_default: bool = False
    image_id: Optional[str] = None
    image_preview: Optional[str] = None
    # новое изображение (data URL), которое нужно отправить на бэкенд
    image: Optional[str] = None
    description: Optional[str] = None

class CustomAttribute(BaseModel):
    id: Optional[str] = None
    name: str = ""
    status: Optional[str] = None
    options: List[AttributeOption] = []

class LibraryAttributeView(CustomAttribute):
    """Атрибут библиотеки с состоянием выбора в текущем товаре."""
    selection: SelectionState = "none"
    selected_option_keys: List[str] = []
    # ключ опции -> «+5 AED»
    price_labels: Dict[str, str] = {}

class LibraryRequest(BaseModel):
    subcategory_ids: List[str] = []
    selected: List[CustomAttribute] = []
    edit_mode: bool = False

class LibraryResponse(BaseModel):
    attributes: List[LibraryAttributeView] = []
    warning: Optional[str] = None

class AttributeToggleRequest(BaseModel):
    selected: List[CustomAttribute] = []
    attribute: CustomAttribute
    checked: bool

class OptionToggleRequest(AttributeToggleRequest):
    option: AttributeOption

class SetDefaultRequest(BaseModel):
    selected: List[CustomAttribute] = []
    attribute_id: str
    option_id: str
