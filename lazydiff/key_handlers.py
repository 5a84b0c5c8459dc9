"""Keyboard dispatch from key tokens to navigation transitions."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from .navigation import SEARCH_TYPING, NavigationController

LINE_STEP = 1
HALF_PAGE_STEP = 10
PAGE_STEP = 20
COLUMN_STEP = 5
WIDE_COLUMN_STEP = 20

ENTER_KEYS = ("ENTER_CR", "ENTER_LF")


@dataclass(frozen=True)
class KeyComboBinding:
    """Mapping from one or more key tokens to a single action callback."""

    combos: tuple[str, ...]
    handler: Callable[[], bool]


class KeyComboRegistry:
    """Small exact-match key-dispatch table."""

    def __init__(self) -> None:
        self._handlers: dict[str, Callable[[], bool]] = {}

    def register_binding(self, binding: KeyComboBinding) -> KeyComboRegistry:
        """Register one binding, overwriting existing handlers for same combos."""
        for combo in binding.combos:
            self._handlers[combo] = binding.handler
        return self

    def register_bindings(self, *bindings: KeyComboBinding) -> KeyComboRegistry:
        for binding in bindings:
            self.register_binding(binding)
        return self

    def dispatch(self, key: str) -> bool | None:
        """Invoke bound handler for ``key``; ``None`` when nothing is bound."""
        handler = self._handlers.get(key)
        if handler is None:
            return None
        return handler()


@dataclass(frozen=True)
class KeyContext:
    """Controller and runtime operations the key handlers may trigger."""

    controller: NavigationController
    reload: Callable[[], bool]
    request_quit: Callable[[], None]


def _is_text_key(key: str) -> bool:
    return len(key) == 1 and key.isprintable()


def search_typing_bindings(context: KeyContext) -> KeyComboRegistry:
    controller = context.controller

    def quit_action() -> bool:
        context.request_quit()
        return True

    return KeyComboRegistry().register_bindings(
        KeyComboBinding(("ESC",), controller.exit_search),
        KeyComboBinding(ENTER_KEYS, controller.confirm_search),
        KeyComboBinding(("BACKSPACE",), controller.backspace),
        KeyComboBinding(("CTRL_C",), quit_action),
    )


def navigation_bindings(context: KeyContext) -> KeyComboRegistry:
    """Bindings shared by browsing and confirmed-search browsing."""
    controller = context.controller

    def quit_or_exit_search() -> bool:
        if controller.state.search_active:
            return controller.exit_search()
        context.request_quit()
        return True

    def quit_action() -> bool:
        context.request_quit()
        return True

    def refresh_action() -> bool:
        controller.refresh_content()
        return True

    def scroll(action: Callable[[int], bool], amount: int) -> Callable[[], bool]:
        return lambda: action(amount)

    return KeyComboRegistry().register_bindings(
        KeyComboBinding(("q", "ESC"), quit_or_exit_search),
        KeyComboBinding(("CTRL_C",), quit_action),
        KeyComboBinding(("/",), controller.enter_search),
        KeyComboBinding(("j", "DOWN"), controller.select_next),
        KeyComboBinding(("k", "UP"), controller.select_previous),
        KeyComboBinding(("g", "HOME"), controller.jump_top),
        KeyComboBinding(("G", "END"), controller.jump_bottom),
        KeyComboBinding(ENTER_KEYS, controller.activate_selection),
        KeyComboBinding((" ",), refresh_action),
        KeyComboBinding(("TAB",), controller.toggle_checked),
        KeyComboBinding(("r",), context.reload),
        KeyComboBinding(("e", "J"), scroll(controller.scroll_down, LINE_STEP)),
        KeyComboBinding(("y", "K"), scroll(controller.scroll_up, LINE_STEP)),
        KeyComboBinding(("d", "PAGE_DOWN", "CTRL_D"), scroll(controller.scroll_down, HALF_PAGE_STEP)),
        KeyComboBinding(("u", "PAGE_UP", "CTRL_U"), scroll(controller.scroll_up, HALF_PAGE_STEP)),
        KeyComboBinding(("f",), scroll(controller.scroll_down, PAGE_STEP)),
        KeyComboBinding(("b",), scroll(controller.scroll_up, PAGE_STEP)),
        KeyComboBinding(("h", "LEFT"), scroll(controller.scroll_left, COLUMN_STEP)),
        KeyComboBinding(("l", "RIGHT"), scroll(controller.scroll_right, COLUMN_STEP)),
        KeyComboBinding(("H",), scroll(controller.scroll_left, WIDE_COLUMN_STEP)),
        KeyComboBinding(("L",), scroll(controller.scroll_right, WIDE_COLUMN_STEP)),
    )


class KeyHandler:
    """Route key tokens to the registry for the controller's current mode."""

    def __init__(self, context: KeyContext) -> None:
        self.context = context
        self._search_typing = search_typing_bindings(context)
        self._navigation = navigation_bindings(context)

    def handle(self, key: str) -> bool:
        """Handle one key and return whether anything visible changed."""
        if not key:
            return False
        controller = self.context.controller
        if controller.mode == SEARCH_TYPING:
            handled = self._search_typing.dispatch(key)
            if handled is not None:
                return handled
            if _is_text_key(key):
                return controller.type_char(key)
            return False
        handled = self._navigation.dispatch(key)
        return bool(handled)
