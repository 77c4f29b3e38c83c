from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, MarkdownViewer

from backend.errors import error_message
from utils.pure import format_currency, generate_markdown_table
from views.modal_dialog import DialogModal


class CheckoutModal(ModalScreen[bool]):
    """
    Order summary of the current cart.
    Return True once the order is placed, False otherwise.
    """

    BINDINGS = [("escape", "cancel", "Go Back")]

    def compose(self) -> ComposeResult:
        with Vertical():
            yield MarkdownViewer("", show_table_of_contents=False)
            with Horizontal():
                yield Button("Go Back", id="btn-quit")
                yield Button("Place Order", id="btn-submit", variant="primary")

    async def on_mount(self):
        data = self.app.state.user_data
        headers = ["Product Name", "Unit Price", "Quantity", "Total Price"]
        rows = [
            [
                item.product.name,
                format_currency(item.product.price),
                item.quantity,
                format_currency(item.line_total),
            ]
            for item in data.cart_items
        ]
        md = "### Order Summary\n\n"
        md += generate_markdown_table(headers, rows, ["l", "r", "c", "r"])
        md += f"\n\n**Total:** {format_currency(data.cart_total)}"
        await self.query_one(MarkdownViewer).document.update(md)
        self.query_one("#btn-submit").focus()

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self):
        if not await self.app.push_screen_wait(
            DialogModal(
                "Place order? This cannot be undone.",
                primary_text="Yes",
                secondary_text="No",
                tone="positive",
            )
        ):
            return

        try:
            order = await self.app.state.user_data.checkout()
        except Exception as exc:
            self.notify(
                error_message(exc, "Checkout failed. Please try again."),
                severity="error",
            )
            return

        if order is None:
            self.notify("Please sign in to check out.", severity="error")
            self.dismiss(False)
            return
        self.notify(f"Order placed. Your order number is {order.id}.")
        self.dismiss(True)

    @on(Button.Pressed, "#btn-quit")
    def action_cancel(self):
        self.dismiss(False)
