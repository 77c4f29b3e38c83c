# frozen records mirrored from backend rows

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

ApplicationStatus = Literal["pending", "reviewing", "shortlisted", "rejected", "accepted"]

OrderStatus = Literal["pending", "processing", "shipped", "delivered"]


def _parse_ts(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: Optional[str]

    @classmethod
    def from_supabase(cls, user) -> "AuthUser":
        return cls(id=str(user.id), email=getattr(user, "email", None))


@dataclass(frozen=True)
class AuthSession:
    access_token: str
    refresh_token: Optional[str]
    expires_at: Optional[int]
    user: AuthUser

    @classmethod
    def from_supabase(cls, session) -> Optional["AuthSession"]:
        """Mirror a client session object; None stays None."""
        if session is None or getattr(session, "user", None) is None:
            return None
        return cls(
            access_token=session.access_token,
            refresh_token=getattr(session, "refresh_token", None),
            expires_at=getattr(session, "expires_at", None),
            user=AuthUser.from_supabase(session.user),
        )


@dataclass(frozen=True)
class Category:
    id: str
    name: str

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Category":
        return cls(id=str(row["id"]), name=row.get("name") or "")


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    description: str
    price: float
    category_id: Optional[str]
    stock_quantity: int
    is_available: bool = True
    image_url: Optional[str] = None
    category: Optional[str] = None  # display name, filled when joined

    @property
    def is_purchasable(self) -> bool:
        return self.is_available and self.stock_quantity > 0

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Product":
        category_id = row.get("category_id")
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            description=row.get("description") or "",
            price=float(row.get("price") or 0),
            category_id=str(category_id) if category_id is not None else None,
            stock_quantity=int(row.get("stock_quantity") or 0),
            is_available=bool(row.get("is_available", True)),
            image_url=row.get("image_url"),
            category=row.get("category"),
        )


@dataclass(frozen=True)
class CartItem:
    product: Product
    quantity: int

    @property
    def line_total(self) -> float:
        return self.product.price * self.quantity


@dataclass(frozen=True)
class SearchEntry:
    id: str
    query: str
    created_at: Optional[datetime]

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "SearchEntry":
        return cls(
            id=str(row["id"]),
            query=row.get("query") or "",
            created_at=_parse_ts(row.get("created_at")),
        )


@dataclass(frozen=True)
class JobApplication:
    id: str
    job_title: str
    email: str
    phone: str
    cv_path: str
    status: ApplicationStatus
    cover_letter: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "JobApplication":
        return cls(
            id=str(row["id"]),
            job_title=row.get("job_title") or "",
            email=row.get("email") or "",
            phone=row.get("phone") or "",
            cv_path=row.get("cv_path") or "",
            status=row.get("status") or "pending",
            cover_letter=row.get("cover_letter"),
            created_at=_parse_ts(row.get("created_at")),
        )


@dataclass(frozen=True)
class Order:
    id: str
    user_id: str
    total_amount: float
    status: OrderStatus
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Order":
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            total_amount=float(row.get("total_amount") or 0),
            status=row.get("status") or "pending",
            created_at=_parse_ts(row.get("created_at")),
        )


@dataclass(frozen=True)
class OrderLine:
    order_id: str
    product_id: str
    quantity: int
    price: float  # unit price at time of order

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "OrderLine":
        return cls(
            order_id=str(row["order_id"]),
            product_id=str(row["product_id"]),
            quantity=int(row["quantity"]),
            price=float(row["price"]),
        )


@dataclass(frozen=True)
class UserProfile:
    id: str
    email: Optional[str]
    full_name: Optional[str]
    phone_number: Optional[str]

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "UserProfile":
        return cls(
            id=str(row["id"]),
            email=row.get("email"),
            full_name=row.get("full_name"),
            phone_number=row.get("phone_number"),
        )


@dataclass(frozen=True)
class Catalog:
    products: List[Product] = field(default_factory=list)
    categories: List[Category] = field(default_factory=list)
    source: Literal["live", "fallback"] = "live"

    @property
    def is_fallback(self) -> bool:
        return self.source == "fallback"
