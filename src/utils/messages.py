from textual.message import Message


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    posted by the sidebar once the user confirmed signing out
    """

    bubble = True


class AuthChangedMessage(Message):
    """
    Posted at app level whenever the signed-in user changes (sign in, sign out,
    session restored). Screens refresh their user info on it.
    """

    bubble = True

    def __init__(self, signed_in: bool) -> None:
        super().__init__()
        self.signed_in = signed_in


class UserDataChangedMessage(Message):
    """
    Posted at app level when the user data store changed.
    kind is "favorites", "cart", "search_history" or "all".
    """

    bubble = True

    def __init__(self, kind: str) -> None:
        super().__init__()
        self.kind = kind

    def affects(self, kind: str) -> bool:
        return self.kind in (kind, "all")


class ModeSwitchedMessage(Message):
    """
    fired whenever switch_mode is called
    must be fired from app level
    """

    bubble = True

    def __init__(self, old_mode: str, new_mode: str) -> None:
        super().__init__()
        self.old_mode = old_mode
        self.new_mode = new_mode
