from enum import Enum

import msgspec
from loguru import logger
from PySide6.QtCore import QObject, Signal

from cubic.models.instance import Instance


class View(str, Enum):
    WELCOME = "welcome"
    INSTANCE = "instance"
    SETTINGS = "settings"


class ViewState(msgspec.Struct, frozen=True):
    """Immutable snapshot of the navigation state."""

    current_view: View = View.WELCOME
    previous_view: View = View.WELCOME
    current_instance: Instance | None = None
    is_add_instance_modal_open: bool = False


class NavigationController(QObject):
    """
    Tracks which view is displayed.

    History is a single slot: every transition overwrites it with the view
    (and selected instance) being left, and go_back restores it without
    consuming it, so a second go_back changes nothing.
    """

    view_changed = Signal(str)
    modal_toggled = Signal(bool)

    def __init__(self) -> None:
        super().__init__()
        self.current_view = View.WELCOME
        self.previous_view = View.WELCOME
        self.current_instance: Instance | None = None
        self.is_add_instance_modal_open = False
        self._previous_instance: Instance | None = None

    def state(self) -> ViewState:
        return ViewState(
            current_view=self.current_view,
            previous_view=self.previous_view,
            current_instance=self.current_instance,
            is_add_instance_modal_open=self.is_add_instance_modal_open,
        )

    def _push(self) -> None:
        self.previous_view = self.current_view
        self._previous_instance = self.current_instance

    def _enter(self, view: View) -> None:
        self.current_view = View(view)
        logger.debug(f"View: {self.previous_view.value} -> {self.current_view.value}")
        self.view_changed.emit(self.current_view.value)

    def set_current_instance(self, instance: Instance) -> None:
        self._push()
        self.current_instance = instance
        self._enter(View.INSTANCE)

    def navigate_to_settings(self) -> None:
        self._push()
        self._enter(View.SETTINGS)

    def navigate_to_welcome(self) -> None:
        self._push()
        self.current_instance = None
        self._enter(View.WELCOME)

    def go_back(self) -> None:
        if (
            self.current_view is self.previous_view
            and self.current_instance is self._previous_instance
        ):
            return
        self.current_instance = self._previous_instance
        self.current_view = self.previous_view
        logger.debug(f"View: back to {self.current_view.value}")
        self.view_changed.emit(self.current_view.value)

    def toggle_add_instance_modal(self) -> None:
        self.set_add_instance_modal_open(not self.is_add_instance_modal_open)

    def set_add_instance_modal_open(self, is_open: bool) -> None:
        if self.is_add_instance_modal_open == is_open:
            return
        self.is_add_instance_modal_open = is_open
        self.modal_toggled.emit(is_open)
