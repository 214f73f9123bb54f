from abc import ABC, abstractmethod
from typing import Optional


class HostUi(ABC):
    """Dialogs and other services which the host editor provides. The show_*_message calls return the chosen
    action (one of the given action strings), or None if the message was dismissed."""

    @abstractmethod
    async def show_error_message(self, msg: str, *actions: str) -> Optional[str]:
        pass

    @abstractmethod
    async def show_warning_message(self, msg: str, *actions: str) -> Optional[str]:
        pass

    @abstractmethod
    async def show_information_message(self, msg: str, *actions: str) -> Optional[str]:
        pass

    @abstractmethod
    async def show_input_box(self, prompt: str, placeholder: Optional[str] = None, value: Optional[str] = None,
                             validate=None) -> Optional[str]:
        """Returns the entered text, or None if cancelled. "validate" (optional) maps text to an error message or None"""
        pass

    @abstractmethod
    async def open_external(self, uri: str) -> bool:
        pass

    @abstractmethod
    async def write_clipboard(self, text: str):
        pass
