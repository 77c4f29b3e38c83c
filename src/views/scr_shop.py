from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widgets import DataTable, Label, Select

from backend import crud
from backend.errors import error_message
from backend.models import Product
from utils.messages import UserDataChangedMessage
from utils.pure import filter_by_category, format_currency
from views.base_screen import BaseScreen

ALL_CATEGORIES = "all"


def stock_label(product: Product) -> str:
    if not product.is_available:
        return "Unavailable"
    if product.stock_quantity == 0:
        return "Out of stock"
    if product.stock_quantity < 5:
        return f"Only {product.stock_quantity} left"
    return "In stock"


class ShopScreen(BaseScreen):
    """
    Product grid with a category filter.

    Every product is listed; add-to-cart is refused for products that are
    unavailable or out of stock.
    """

    BINDINGS = [
        Binding("a", "add_to_cart", "Add to Cart", show=True),
        Binding("f", "toggle_favorite", "Favorite", show=True),
        Binding("r", "reload", "Reload", show=True),
    ]

    def __init__(self):
        super().__init__()
        self._shown: List[Product] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal(id="hort-shop-filters"):
            yield Select(
                [], prompt="All categories", allow_blank=True, id="select-category"
            )
            yield Label("", id="label-catalog-status")
        yield DataTable(id="table-products")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Product", "Category", "Price", "Stock", "Favorite")
        self.load_catalog()

    @work(exclusive=True)
    async def load_catalog(self) -> None:
        catalog = await crud.fetch_catalog(self.app.state.backend)
        self.app.state.catalog = catalog

        select = self.query_one("#select-category", Select)
        select.set_options([(c.name, c.name) for c in catalog.categories])

        status = self.query_one("#label-catalog-status", Label)
        if catalog.is_fallback:
            status.update("Cannot connect to the store, showing sample products.")
            status.add_class("-fallback")
        else:
            status.update(f"{len(catalog.products)} products")
            status.remove_class("-fallback")
        self.render_products()

    def render_products(self) -> None:
        catalog = self.app.state.catalog
        value = self.query_one("#select-category", Select).value
        category = value if isinstance(value, str) else ALL_CATEGORIES
        self._shown = filter_by_category(catalog.products, catalog.categories, category)

        data = self.app.state.user_data
        table = self.query_one(DataTable)
        table.clear()
        for product in self._shown:
            table.add_row(
                product.name,
                product.category or "-",
                format_currency(product.price),
                stock_label(product),
                "★" if data.is_favorite(product.id) else "",
            )

    def _selected(self) -> Optional[Product]:
        table = self.query_one(DataTable)
        if not self._shown or table.cursor_row is None:
            return None
        if 0 <= table.cursor_row < len(self._shown):
            return self._shown[table.cursor_row]
        return None

    @on(Select.Changed, "#select-category")
    def handle_category_changed(self) -> None:
        self.render_products()

    @on(UserDataChangedMessage)
    def handle_user_data_changed(self, message: UserDataChangedMessage) -> None:
        if message.affects("favorites"):
            self.render_products()

    def action_reload(self) -> None:
        self.load_catalog()

    @work(group="cart")
    async def action_add_to_cart(self) -> None:
        product = self._selected()
        if product is None:
            return
        if not self.signed_in:
            self.notify("Please sign in to add items to your cart", severity="error")
            return
        if not product.is_purchasable:
            self.notify(f"{product.name} cannot be purchased right now.", severity="warning")
            return

        try:
            await self.app.state.user_data.add_to_cart(product.id)
        except Exception as exc:
            self.notify(
                error_message(exc, "Failed to add to cart. Please try again."),
                severity="error",
            )
            return
        self.notify("Added to cart successfully!")

    @work(group="favorites")
    async def action_toggle_favorite(self) -> None:
        product = self._selected()
        if product is None:
            return
        if not self.signed_in:
            self.notify("Please sign in to save favorites", severity="error")
            return

        data = self.app.state.user_data
        try:
            if data.is_favorite(product.id):
                await data.remove_from_favorites(product.id)
                self.notify("Removed from favorites")
            else:
                await data.add_to_favorites(product.id)
                self.notify("Added to favorites")
        except Exception as exc:
            self.notify(
                error_message(exc, "Failed to update favorites. Please try again."),
                severity="error",
            )
