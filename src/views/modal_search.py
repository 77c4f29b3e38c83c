from typing import List

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, DataTable, Input, Label, ListItem, ListView

from backend import crud
from backend.errors import error_message
from backend.models import Product
from utils.messages import UserDataChangedMessage
from utils.pure import format_currency


class SearchModal(ModalScreen[None]):
    """
    Product search by name. Submitted queries are saved to the signed-in
    user's search history, which is listed while the input is empty.
    """

    BINDINGS = [("escape", "close", "Close")]

    def __init__(self) -> None:
        super().__init__()
        self._results: List[Product] = []

    def compose(self) -> ComposeResult:
        with Vertical(id="div-search"):
            yield Input(placeholder="Search products...", id="input-search")
            yield Label("Recent Searches", id="label-search-heading")
            yield ListView(id="list-history")
            yield DataTable(id="table-search-result")
            with Horizontal(id="hort-search-btns"):
                yield Button("Clear history", id="btn-clear-history", variant="warning")
                yield Button("Close", id="btn-close")

    async def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.add_columns("Product", "Price")
        await self.show_history()
        self.query_one("#input-search").focus()

    async def show_history(self) -> None:
        history = self.app.state.user_data.search_history
        list_history = self.query_one("#list-history", ListView)
        await list_history.clear()
        if history:
            await list_history.extend(
                [ListItem(Label(entry.query), name=entry.query) for entry in history]
            )
        else:
            await list_history.append(ListItem(Label("No recent searches"), disabled=True))

        self.query_one("#label-search-heading", Label).update("Recent Searches")
        list_history.display = True
        self.query_one(DataTable).display = False
        self.query_one("#btn-clear-history").display = bool(history)

    def show_results(self) -> None:
        table = self.query_one(DataTable)
        table.clear()
        for product in self._results:
            table.add_row(product.name, format_currency(product.price))

        heading = "Search Results" if self._results else "No results found"
        self.query_one("#label-search-heading", Label).update(heading)
        self.query_one("#list-history").display = False
        table.display = bool(self._results)
        self.query_one("#btn-clear-history").display = False

    @on(Input.Changed, "#input-search")
    async def handle_query_changed(self, message: Input.Changed) -> None:
        if not message.value.strip():
            await self.show_history()

    @on(Input.Submitted, "#input-search")
    def handle_query_submitted(self, message: Input.Submitted) -> None:
        self.run_search(message.value)

    @on(ListView.Selected, "#list-history")
    def handle_history_selected(self, event: ListView.Selected) -> None:
        query = event.item.name or ""
        self.query_one("#input-search", Input).value = query
        self.run_search(query)

    @work(exclusive=True)
    async def run_search(self, query: str) -> None:
        query = query.strip()
        if not query:
            await self.show_history()
            return

        try:
            await self.app.state.user_data.add_to_search_history(query)
        except Exception as exc:
            # history is a convenience, the search itself still runs
            self.notify(error_message(exc, "Could not save search."), severity="warning")

        try:
            self._results = await crud.search_products(self.app.state.backend, query)
        except Exception as exc:
            self.notify(error_message(exc, "Search failed."), severity="error")
            self._results = []
        self.show_results()

    @on(UserDataChangedMessage)
    async def handle_user_data_changed(self, message: UserDataChangedMessage) -> None:
        if message.affects("search_history") and not self.query_one(
            "#input-search", Input
        ).value.strip():
            await self.show_history()

    @on(Button.Pressed, "#btn-clear-history")
    @work()
    async def handle_clear_history(self) -> None:
        try:
            await self.app.state.user_data.clear_search_history()
        except Exception as exc:
            self.notify(error_message(exc, "Could not clear history."), severity="error")
            return
        await self.show_history()

    @on(Button.Pressed, "#btn-close")
    def action_close(self) -> None:
        self.dismiss(None)
