from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, HorizontalGroup, VerticalScroll
from textual.events import ScreenResume
from textual.message import Message
from textual.widgets import Button, Label, Rule

from backend.errors import error_message
from backend.models import CartItem
from utils.messages import AuthChangedMessage, UserDataChangedMessage
from utils.pure import format_currency
from views.base_screen import BaseScreen
from views.modal_checkout import CheckoutModal
from views.modal_dialog import DialogModal


class CartItemActionMessage(Message):
    bubble = True

    def __init__(self, product_id: str, action: str) -> None:
        super().__init__()
        self.product_id = product_id
        self.action = action  # "decrease", "increase" or "remove"


class CartItemActionLabel(Label):
    def __init__(self, product_id: str, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.product_id = product_id

    def action_decrease(self):
        self.post_message(CartItemActionMessage(self.product_id, "decrease"))

    def action_increase(self):
        self.post_message(CartItemActionMessage(self.product_id, "increase"))

    def action_remove(self):
        self.post_message(CartItemActionMessage(self.product_id, "remove"))


class CartItemWidget(HorizontalGroup):
    def __init__(self, item: CartItem):
        super().__init__()
        self.item = item

    def compose(self):
        pid = self.item.product.id
        with Container(id="div-cart-item-group"):
            with Container(id="div-item"):
                yield Label(self.item.product.name, id="label-item-name")
                yield Label(format_currency(self.item.product.price), id="label-item-price")
                yield Label(f"x {self.item.quantity}", id="label-item-qty")
                yield Label(format_currency(self.item.line_total), id="label-item-total")
            with Container(id="div-actions"):
                yield CartItemActionLabel(pid, "[@click=decrease()] - [/]", id="link-item-dec")
                yield CartItemActionLabel(pid, "[@click=increase()] + [/]", id="link-item-inc")
                yield CartItemActionLabel(
                    pid, "[@click=remove()]Remove[/]", id="link-item-remove"
                )


class CartScreen(BaseScreen):
    """
    Cart lines with quantity controls, the running total and checkout.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield VerticalScroll(id="vertscroll-content")
        yield Label("Total: USh 0", id="label-cart-total")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("Checkout", id="btn-checkout", variant="primary")

    def on_mount(self):
        self.render_cart()

    @on(ScreenResume)
    @on(AuthChangedMessage)
    def handle_screen_resume(self):
        self.render_cart()

    @on(UserDataChangedMessage)
    def handle_user_data_changed(self, message: UserDataChangedMessage):
        if message.affects("cart"):
            self.render_cart()

    @work(exclusive=True, group="render")
    async def render_cart(self) -> None:
        content = self.query_one("#vertscroll-content")
        await content.remove_children()

        if not self.signed_in:
            content.add_class("no-items")
            await content.mount(
                Label("Please sign in to view your cart", classes="label-cart-empty")
            )
            self.query_one("#label-cart-total", Label).update("")
            self.query_one("#btn-checkout").disabled = True
            return

        data = self.app.state.user_data
        if not data.cart_items:
            content.add_class("no-items")
            await content.mount(Label("Your cart is empty", classes="label-cart-empty"))
        else:
            content.remove_class("no-items")
            await content.mount_all([CartItemWidget(item) for item in data.cart_items])

        self.query_one("#label-cart-total", Label).update(
            f"Total: {format_currency(data.cart_total)}"
        )
        self.query_one("#btn-checkout").disabled = not data.cart_items

    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True)
    async def handle_refresh(self) -> None:
        await self.app.state.user_data.load()

    @on(CartItemActionMessage)
    @work(group="cart")
    async def handle_item_action(self, message: CartItemActionMessage) -> None:
        data = self.app.state.user_data
        pid = message.product_id

        try:
            if message.action == "increase":
                await data.change_cart_quantity(pid, 1)
                return
            if message.action == "decrease" and await data.change_cart_quantity(pid, -1):
                return
            # remove, or decrease on the last unit
            if await self.app.push_screen_wait(
                DialogModal(
                    "Do you really want to remove this item from cart?",
                    primary_text="Yes",
                    secondary_text="No",
                    tone="warning",
                )
            ):
                await data.remove_from_cart(pid)
                self.notify("Item removed from cart.", severity="information")
        except Exception as exc:
            self.notify(
                error_message(exc, "Failed to update cart. Please try again."),
                severity="error",
            )

    @on(Button.Pressed, "#btn-checkout")
    @work()
    async def handle_checkout(self) -> None:
        if not self.app.state.user_data.cart_items:
            self.notify("Cart is empty.", severity="warning")
            return

        await self.app.push_screen_wait(CheckoutModal())
