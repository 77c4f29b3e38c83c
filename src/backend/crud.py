# src/backend/crud.py
from __future__ import annotations

import dataclasses
from typing import Any, Dict, Iterable, List, Optional, Tuple

from backend import models
from backend.client import BackendClient
from backend.sample_data import sample_catalog
from utils.logger import get_logger

_logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 12
MAX_PAGE_SIZE = 100
SEARCH_RESULT_LIMIT = 10


def _rows(response) -> List[Dict[str, Any]]:
    data = getattr(response, "data", None)
    if data is None:
        return []
    if isinstance(data, dict):
        return [data]
    return list(data)


def _first(response) -> Optional[Dict[str, Any]]:
    rows = _rows(response)
    return rows[0] if rows else None


# ---------------------------
# Products & Categories
# ---------------------------


async def get_product(backend: BackendClient, product_id: str) -> Optional[models.Product]:
    """Return the product row, or None if it does not exist."""
    response = await backend.execute(
        lambda: backend.table("products").select("*").eq("id", product_id).limit(1).execute()
    )
    row = _first(response)
    return models.Product.from_row(row) if row else None


async def list_categories(backend: BackendClient) -> List[models.Category]:
    response = await backend.execute(
        lambda: backend.table("categories").select("id, name").order("name").execute()
    )
    return [models.Category.from_row(row) for row in _rows(response)]


async def list_products(
    backend: BackendClient,
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0,
    category_id: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: str = "created_at",
    descending: bool = True,
) -> Tuple[List[models.Product], int]:
    """
    One page of available products and the total number of matches.

    limit is clamped to 1..MAX_PAGE_SIZE. search is a case-insensitive
    substring match on the product name.
    """
    limit = max(1, min(limit, MAX_PAGE_SIZE))
    offset = max(0, offset)

    def request():
        query = (
            backend.table("products")
            .select("*", count="exact")
            .eq("is_available", True)
        )
        if category_id:
            query = query.eq("category_id", category_id)
        if search and search.strip():
            query = query.ilike("name", f"%{search.strip()}%")
        return (
            query.order(sort_by, desc=descending)
            .range(offset, offset + limit - 1)
            .execute()
        )

    response = await backend.execute(request)
    products = [models.Product.from_row(row) for row in _rows(response)]
    total = getattr(response, "count", None)
    return products, total if total is not None else len(products)


async def search_products(
    backend: BackendClient, query: str, limit: int = SEARCH_RESULT_LIMIT
) -> List[models.Product]:
    """Name search used by the search modal. Blank queries match nothing."""
    phrase = (query or "").strip()
    if not phrase:
        return []
    response = await backend.execute(
        lambda: backend.table("products")
        .select("*")
        .ilike("name", f"%{phrase}%")
        .limit(limit)
        .execute()
    )
    return [models.Product.from_row(row) for row in _rows(response)]


async def fetch_catalog(backend: BackendClient) -> models.Catalog:
    """
    Products joined with their category names, newest first.

    Falls back to the built-in sample catalog when the backend is unreachable,
    a read fails, or either table is empty. The returned catalog says which
    path was taken in its source field.
    """
    if not await backend.health_check():
        _logger.warning("Using fallback catalog due to connection issues")
        return sample_catalog()

    try:
        categories = await list_categories(backend)
        response = await backend.execute(
            lambda: backend.table("products")
            .select("*")
            .order("created_at", desc=True)
            .execute()
        )
    except Exception as exc:
        _logger.error(f"Error fetching catalog: {exc!r}")
        return sample_catalog()

    rows = _rows(response)
    if not rows or not categories:
        _logger.warning("Catalog is empty, using fallback catalog")
        return sample_catalog()

    names = {c.id: c.name for c in categories}
    products = []
    for row in rows:
        product = models.Product.from_row(row)
        products.append(
            dataclasses.replace(
                product, category=names.get(product.category_id, "Uncategorized")
            )
        )
    return models.Catalog(products=products, categories=categories, source="live")


# ---------------------------
# Favorites
# ---------------------------


async def list_favorites(backend: BackendClient, user_id: str) -> List[models.Product]:
    response = await backend.execute(
        lambda: backend.table("favorites")
        .select("product_id, products(*)")
        .eq("user_id", user_id)
        .execute()
    )
    return [
        models.Product.from_row(row["products"])
        for row in _rows(response)
        if row.get("products")
    ]


async def add_favorite(backend: BackendClient, user_id: str, product_id: str) -> None:
    await backend.execute(
        lambda: backend.table("favorites")
        .insert({"user_id": user_id, "product_id": product_id})
        .execute()
    )


async def remove_favorite(backend: BackendClient, user_id: str, product_id: str) -> None:
    await backend.execute(
        lambda: backend.table("favorites")
        .delete()
        .eq("user_id", user_id)
        .eq("product_id", product_id)
        .execute()
    )


# ---------------------------
# Cart Management
# ---------------------------


async def list_cart(backend: BackendClient, user_id: str) -> List[models.CartItem]:
    response = await backend.execute(
        lambda: backend.table("cart_items")
        .select("quantity, products(*)")
        .eq("user_id", user_id)
        .execute()
    )
    return [
        models.CartItem(
            product=models.Product.from_row(row["products"]),
            quantity=int(row["quantity"]),
        )
        for row in _rows(response)
        if row.get("products")
    ]


async def insert_cart_item(
    backend: BackendClient, user_id: str, product_id: str, quantity: int
) -> None:
    await backend.execute(
        lambda: backend.table("cart_items")
        .insert({"user_id": user_id, "product_id": product_id, "quantity": quantity})
        .execute()
    )


async def update_cart_item(
    backend: BackendClient, user_id: str, product_id: str, quantity: int
) -> None:
    await backend.execute(
        lambda: backend.table("cart_items")
        .update({"quantity": quantity})
        .eq("user_id", user_id)
        .eq("product_id", product_id)
        .execute()
    )


async def delete_cart_item(backend: BackendClient, user_id: str, product_id: str) -> None:
    await backend.execute(
        lambda: backend.table("cart_items")
        .delete()
        .eq("user_id", user_id)
        .eq("product_id", product_id)
        .execute()
    )


# ---------------------------
# Search History
# ---------------------------


async def list_search_history(
    backend: BackendClient, user_id: str, limit: Optional[int] = None
) -> List[models.SearchEntry]:
    """Most recent first."""

    def request():
        query = (
            backend.table("search_history")
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
        )
        if limit:
            query = query.limit(limit)
        return query.execute()

    response = await backend.execute(request)
    return [models.SearchEntry.from_row(row) for row in _rows(response)]


async def add_search_entry(
    backend: BackendClient, user_id: str, query: str
) -> Optional[models.SearchEntry]:
    response = await backend.execute(
        lambda: backend.table("search_history")
        .insert({"user_id": user_id, "query": query})
        .execute()
    )
    row = _first(response)
    return models.SearchEntry.from_row(row) if row else None


async def clear_search_history(backend: BackendClient, user_id: str) -> None:
    await backend.execute(
        lambda: backend.table("search_history").delete().eq("user_id", user_id).execute()
    )


# ---------------------------
# Checkout & Orders
# ---------------------------


async def create_order(
    backend: BackendClient, user_id: str, items: Iterable[models.CartItem]
) -> models.Order:
    """
    Insert an order and its lines priced at the current product price.
    Status starts as pending.

    If the lines cannot be written, the order row is deleted again before the
    error is re-raised, so no order is left without its lines.
    """
    items = list(items)
    total = round(sum(item.line_total for item in items), 2)
    response = await backend.execute(
        lambda: backend.table("orders")
        .insert({"user_id": user_id, "total_amount": total, "status": "pending"})
        .execute()
    )
    order = models.Order.from_row(_first(response))

    lines = [
        {
            "order_id": order.id,
            "product_id": item.product.id,
            "quantity": item.quantity,
            "price": item.product.price,
        }
        for item in items
    ]
    if not lines:
        return order
    try:
        await backend.execute(lambda: backend.table("order_items").insert(lines).execute())
    except Exception:
        _logger.error(f"Order lines insert failed, removing order {order.id}")
        try:
            await backend.execute(
                lambda: backend.table("orders").delete().eq("id", order.id).execute()
            )
        except Exception as cleanup_exc:
            _logger.error(f"Could not remove order {order.id}: {cleanup_exc!r}")
        raise
    return order


async def list_orders(backend: BackendClient, user_id: str) -> List[models.Order]:
    response = await backend.execute(
        lambda: backend.table("orders")
        .select("*")
        .eq("user_id", user_id)
        .order("created_at", desc=True)
        .execute()
    )
    return [models.Order.from_row(row) for row in _rows(response)]


async def get_order_lines(backend: BackendClient, order_id: str) -> List[models.OrderLine]:
    response = await backend.execute(
        lambda: backend.table("order_items").select("*").eq("order_id", order_id).execute()
    )
    return [models.OrderLine.from_row(row) for row in _rows(response)]


# ---------------------------
# Profiles
# ---------------------------


async def get_user_profile(
    backend: BackendClient, user_id: str
) -> Optional[models.UserProfile]:
    response = await backend.execute(
        lambda: backend.table("user_profiles").select("*").eq("id", user_id).limit(1).execute()
    )
    row = _first(response)
    return models.UserProfile.from_row(row) if row else None


async def update_user_profile(
    backend: BackendClient, user_id: str, **fields: Any
) -> Optional[models.UserProfile]:
    allowed = {"full_name", "phone_number"}
    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"Unknown profile fields: {', '.join(sorted(unknown))}")
    response = await backend.execute(
        lambda: backend.table("user_profiles").update(fields).eq("id", user_id).execute()
    )
    row = _first(response)
    return models.UserProfile.from_row(row) if row else None


# ---------------------------
# Job Applications
# ---------------------------


async def insert_job_application(
    backend: BackendClient, record: Dict[str, Any]
) -> models.JobApplication:
    response = await backend.execute(
        lambda: backend.table("job_applications").insert(record).execute()
    )
    return models.JobApplication.from_row(_first(response))


async def list_user_applications(
    backend: BackendClient, email: str
) -> List[models.JobApplication]:
    response = await backend.execute(
        lambda: backend.table("job_applications")
        .select("*")
        .eq("email", email)
        .order("created_at", desc=True)
        .execute()
    )
    return [models.JobApplication.from_row(row) for row in _rows(response)]
