from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.events import ScreenResume
from textual.widgets import DataTable, Label

from backend.errors import error_message
from backend.models import Product
from utils.messages import AuthChangedMessage, UserDataChangedMessage
from utils.pure import format_currency
from views.base_screen import BaseScreen
from views.scr_shop import stock_label


class FavoritesScreen(BaseScreen):
    """
    saved products, remove them or move them to the cart
    """

    BINDINGS = [
        Binding("c", "move_to_cart", "Move to Cart", show=True),
        Binding("x", "remove", "Remove", show=True),
    ]

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield Label("", id="label-favorites-status")
        yield DataTable(id="table-favorites")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Product", "Price", "Stock")
        self.render_favorites()

    @on(ScreenResume)
    @on(AuthChangedMessage)
    def handle_screen_resume(self):
        self.render_favorites()

    @on(UserDataChangedMessage)
    def handle_user_data_changed(self, message: UserDataChangedMessage):
        if message.affects("favorites"):
            self.render_favorites()

    def render_favorites(self) -> None:
        table = self.query_one(DataTable)
        table.clear()
        status = self.query_one("#label-favorites-status", Label)

        if not self.signed_in:
            status.update("Please sign in to see your favorites")
            return

        favorites = self.app.state.user_data.favorites
        status.update(
            f"{len(favorites)} saved product(s)" if favorites else "No favorites yet"
        )
        for product in favorites:
            table.add_row(product.name, format_currency(product.price), stock_label(product))

    def _selected(self) -> Optional[Product]:
        if not self.signed_in:
            return None
        favorites = self.app.state.user_data.favorites
        row = self.query_one(DataTable).cursor_row
        if row is None or not 0 <= row < len(favorites):
            return None
        return favorites[row]

    @work(group="favorites")
    async def action_remove(self) -> None:
        product = self._selected()
        if product is None:
            return
        try:
            await self.app.state.user_data.remove_from_favorites(product.id)
        except Exception as exc:
            self.notify(
                error_message(exc, "Failed to update favorites. Please try again."),
                severity="error",
            )
            return
        self.notify("Removed from favorites")

    @work(group="cart")
    async def action_move_to_cart(self) -> None:
        product = self._selected()
        if product is None:
            return
        if not product.is_purchasable:
            self.notify(f"{product.name} cannot be purchased right now.", severity="warning")
            return

        data = self.app.state.user_data
        try:
            await data.add_to_cart(product.id)
            await data.remove_from_favorites(product.id)
        except Exception as exc:
            self.notify(
                error_message(exc, "Failed to add to cart. Please try again."),
                severity="error",
            )
            return
        self.notify(f"{product.name} moved to your cart")
