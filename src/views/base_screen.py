from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, Markdown

from utils.messages import (
    AuthChangedMessage,
    ModeSwitchedMessage,
    UserDataChangedMessage,
    UserLogoutMessage,
)
from utils.pure import format_currency, generate_markdown_table
from views.modal_dialog import DialogModal, QuitDialogModal


class Sidebar(Container):
    def compose(self) -> ComposeResult:
        yield Label("Account", id="label-info-1")
        yield Markdown("", id="md-userinfo")
        yield Button("Sign in", id="btn-signin", variant="primary")
        yield Button("Sign out", id="btn-logout", variant="error")
        yield Label("Menu", id="label-info-2")
        yield ListView(id="list-menu")

    async def on_mount(self):
        list_menu: ListView = self.query_one("#list-menu")
        await list_menu.clear()
        await list_menu.extend(
            [ListItem(Label(v), id="list-menu-item-" + k) for k, v in self.app.MENU.items()]
        )
        self.highlight_item(self.app.current_mode)
        await self.refresh_user_info()

    async def refresh_user_info(self):
        state = self.app.state
        user = state.user if state else None
        signed_in = user is not None

        if signed_in:
            data = state.user_data
            table_rows = [
                ["Email", user.email or "-"],
                ["Cart", f"{data.cart_count} item(s)"],
                ["Cart total", format_currency(data.cart_total)],
                ["Favorites", data.favorites_count],
            ]
            md = generate_markdown_table(["", ""], table_rows, ["l", "l"])
        else:
            md = "_Browsing as guest._ Sign in to keep a cart and favorites."
        await self.query_one(Markdown).update(md)

        self.query_one("#btn-signin").display = not signed_in
        self.query_one("#btn-logout").display = signed_in

    async def on_list_view_selected(self, event: ListView.Selected):
        selected_mode = event.item.id.removeprefix("list-menu-item-")
        self.highlight_item(self.app.current_mode)
        if self.app.current_mode != selected_mode:
            self.app.post_message(ModeSwitchedMessage(self.app.current_mode, selected_mode))
            await self.app.switch_mode(selected_mode)

    @on(Button.Pressed, "#btn-signin")
    @work()
    async def handle_signin(self):
        # imported here, the login screen itself builds on BaseScreen
        from views.scr_login import LoginScreen

        await self.app.push_screen_wait(LoginScreen())

    @on(Button.Pressed, "#btn-logout")
    @work()
    async def handle_logout(self):
        if not await self.app.push_screen_wait(
            DialogModal(
                "Are you sure you want to sign out?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            return

        self.post_message(UserLogoutMessage())

    def highlight_item(self, mode_str: str):
        list_menu = self.query_one("#list-menu")
        for item in list_menu.children:
            item.highlighted = item.id == "list-menu-item-" + str(mode_str)


class BaseScreen(Screen):
    """
    Inherited by all screens, contains common elements like
    headers, footers, sidebar, and keybindings.
    """

    BINDINGS = [
        Binding("ctrl+z", "quit", "Quit App", show=True),
    ]

    def __init__(self):
        super().__init__()

        self.configure()

    def configure(
        self,
        header_sub_title: str = "",
        show_sidebar: bool = True,
    ) -> None:
        """
        configure behavior of the base screen
        """
        self.sub_title = header_sub_title
        for k, v in self.app.MODES.items():
            if isinstance(self, v):
                self.sub_title = self.app.MENU[k]

        self._show_sidebar = show_sidebar

    def compose(self) -> ComposeResult:
        if self._show_sidebar:
            yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    @property
    def signed_in(self) -> bool:
        return self.app.state is not None and self.app.state.user is not None

    async def _refresh_sidebar(self):
        if self._show_sidebar:
            await self.query_one(Sidebar).refresh_user_info()

    @on(AuthChangedMessage)
    async def handle_auth_changed(self):
        await self._refresh_sidebar()

    @on(UserDataChangedMessage)
    async def handle_user_data_changed_sidebar(self):
        await self._refresh_sidebar()

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal())
