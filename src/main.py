from typing import Optional

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from backend.errors import error_message
from utils.config import Settings
from utils.logger import get_logger
from utils.messages import (
    AuthChangedMessage,
    ModeSwitchedMessage,
    QuitRequestedMessage,
    UserDataChangedMessage,
    UserLogoutMessage,
)
from utils.state import AppState
from views.modal_search import SearchModal
from views.scr_applications import ApplicationsScreen
from views.scr_careers import CareersScreen
from views.scr_cart import CartScreen
from views.scr_favorites import FavoritesScreen
from views.scr_shop import ShopScreen

_logger = get_logger(__name__)


class StorefrontApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
        Binding("ctrl+f", "search", "Search", show=True),
    ]

    MODES = {
        "shop": ShopScreen,
        "cart": CartScreen,
        "favorites": FavoritesScreen,
        "careers": CareersScreen,
        "applications": ApplicationsScreen,
    }

    MENU = {
        "shop": "Shop",
        "cart": "Cart",
        "favorites": "Favorites",
        "careers": "Careers",
        "applications": "My Applications",
    }

    CSS_PATH = [
        "styles/index.tcss",
        "styles/login.tcss",
        "styles/shop.tcss",
        "styles/cart.tcss",
        "styles/careers.tcss",
    ]

    TITLE = "JD Group Storefront"

    state: AppState

    def __init__(
        self, settings: Optional[Settings] = None, state: Optional[AppState] = None
    ):
        super().__init__()
        self._settings = settings
        self.state = state
        self._unsubscribes = []

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self.main_flow()

    async def on_unmount(self) -> None:
        for unsubscribe in self._unsubscribes:
            unsubscribe()
        if self.state is not None:
            await self.state.stop()

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    def action_search(self):
        if self.state is not None and not isinstance(self.screen, SearchModal):
            self.push_screen(SearchModal())

    # stores know nothing about Textual; their callbacks become messages
    # on whichever screen is showing
    def _relay_auth(self, user) -> None:
        self.screen.post_message(AuthChangedMessage(user is not None))

    def _relay_user_data(self, kind: str) -> None:
        self.screen.post_message(UserDataChangedMessage(kind))

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        try:
            await self.state.auth.sign_out()
        except Exception as exc:
            self.notify(
                error_message(exc, "Failed to sign out. Please try again."),
                severity="error",
            )
            return
        self.notify("Successfully signed out!")

    @on(ModeSwitchedMessage)
    def handle_mode_switched(self, message: ModeSwitchedMessage):
        _logger.debug(f"Mode {message.old_mode} -> {message.new_mode}")

    @on(QuitRequestedMessage)
    def handle_quit(self):
        self.exit()

    @work
    async def main_flow(self):
        if self.state is None:
            try:
                self.state = await AppState.connect(self._settings or Settings())
            except Exception as exc:
                _logger.error(f"Could not start: {exc!r}")
                self.exit(message=error_message(exc, "Could not start the storefront."))
                return

        self._unsubscribes = [
            self.state.auth.subscribe(self._relay_auth),
            self.state.user_data.subscribe(self._relay_user_data),
        ]
        await self.state.start()
        if self.state.user:
            self.notify(f"Welcome back {self.state.user.email}!")

        self.post_message(ModeSwitchedMessage(self.current_mode, "shop"))
        await self.switch_mode("shop")


def run() -> None:
    StorefrontApp().run()


if __name__ == "__main__":
    run()
