import inspect
from typing import Any, Callable, List


class Observable:
    """Minimal listener list. Listeners may be plain functions or coroutines."""

    def __init__(self) -> None:
        self._listeners: List[Callable[..., Any]] = []

    def subscribe(self, listener: Callable[..., Any]) -> Callable[[], None]:
        """Register a listener; the returned callable removes it again."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _emit(self, *args: Any) -> None:
        for listener in list(self._listeners):
            result = listener(*args)
            if inspect.isawaitable(result):
                await result
