# shown when the backend cannot be reached, flagged as fallback by the catalog
from backend.models import Catalog, Category, Product

SAMPLE_CATEGORIES = [
    Category(id="1", name="Furniture"),
    Category(id="2", name="Electronics"),
]

SAMPLE_PRODUCTS = [
    Product(
        id="1",
        name="Modern Sofa",
        description="Comfortable 3-seater sofa with premium fabric upholstery",
        price=899.99,
        category_id="1",
        stock_quantity=10,
        is_available=True,
        image_url="https://images.unsplash.com/photo-1555041469-a586c61ea9bc?auto=format&fit=crop&q=80",
        category="Furniture",
    ),
    Product(
        id="2",
        name='Smart TV 55"',
        description="4K Ultra HD Smart LED TV with HDR",
        price=699.99,
        category_id="2",
        stock_quantity=15,
        is_available=True,
        image_url="https://images.unsplash.com/photo-1593784991095-a205069470b6?auto=format&fit=crop&q=80",
        category="Electronics",
    ),
]


def sample_catalog() -> Catalog:
    return Catalog(
        products=list(SAMPLE_PRODUCTS),
        categories=list(SAMPLE_CATEGORIES),
        source="fallback",
    )
