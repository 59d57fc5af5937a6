from dataclasses import dataclass, field
from datetime import datetime
from typing import Annotated, Any, List, Optional, Union

from pydantic import BaseModel, Field, StrictInt, StrictStr, ValidationError

# Menus mix "₹120" style strings with numeric prices, so both are kept as-is.
FinitePrice = Annotated[float, Field(strict=True, allow_inf_nan=False)]
Price = Union[StrictInt, FinitePrice, StrictStr]


class MenuOption(BaseModel):
    label: str
    price: Optional[Price] = None


class MenuItem(BaseModel):
    name: str = Field(min_length=1)
    category: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Price] = None
    options: Optional[List[MenuOption]] = None


class Menu(BaseModel):
    vendor: Optional[str] = None
    currency: Optional[str] = None
    items: List[MenuItem] = Field(min_length=1)

    def items_payload(self) -> list[dict]:
        return [item.model_dump(exclude_none=True) for item in self.items]


class StoredMenuSummary(BaseModel):
    id: int
    vendor: Optional[str] = None
    currency: Optional[str] = None
    created_at: datetime


class StoredMenu(StoredMenuSummary):
    items: List[MenuItem]


@dataclass
class ValidationIssue:
    path: str
    message: str

    def as_dict(self) -> dict:
        return {"path": self.path, "message": self.message}


@dataclass
class MenuValidation:
    menu: Optional[Menu] = None
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.menu is not None


def validate_menu(data: Any) -> MenuValidation:
    """Validate untrusted parsed JSON against the Menu shape.

    Never raises for bad input: a failed validation comes back with one issue
    per violated constraint, keyed by dotted field path (``items.0.name``).
    """
    try:
        return MenuValidation(menu=Menu.model_validate(data))
    except ValidationError as e:
        issues = [
            ValidationIssue(
                path=".".join(str(part) for part in err["loc"]),
                message=err["msg"],
            )
            for err in e.errors()
        ]
        return MenuValidation(issues=issues)
