"""
Probe - the capability the pipeline needs from a live rendered page.

Every blocking operation takes an explicit timeout. Implementations raise
NavigationInterrupted when the page begins reloading underneath an
operation, SessionLost once the page, context or browser is closed or
crashed, and ProbeError for any other element/page failure; goto raises
NavigationFailed. close() never raises.

Selectors are CSS strings limited to three shapes:
    tag
    tag[attr='value']
    tag[attr*='value' i]
"""
from typing import Any, Callable, List, Optional

from core.models import OptionDescriptor, ResponseInfo


class Probe:
    """Interface implemented by PlaywrightProbe and by test doubles"""

    async def goto(self, url: str, wait_until: str = "networkidle", timeout: int = 30000) -> None:
        raise NotImplementedError

    async def find(self, selector: str) -> Optional[Any]:
        raise NotImplementedError

    async def find_all(self, selector: str) -> List[Any]:
        raise NotImplementedError

    async def read_options(self, handle: Any) -> List[OptionDescriptor]:
        raise NotImplementedError

    async def selected_option(self, handle: Any) -> Optional[OptionDescriptor]:
        raise NotImplementedError

    async def inner_text(self, handle: Any) -> str:
        raise NotImplementedError

    async def get_attribute(self, handle: Any, name: str) -> Optional[str]:
        raise NotImplementedError

    async def same_element(self, handle: Any, other: Any) -> bool:
        """True when both handles point at the same DOM node."""
        raise NotImplementedError

    async def set_value(self, handle: Any, value: str) -> None:
        raise NotImplementedError

    async def dispatch_event(self, handle: Any, event_name: str) -> None:
        raise NotImplementedError

    async def click(self, handle: Any, timeout: int = 5000) -> None:
        raise NotImplementedError

    async def wait_for_network_quiescence(self, timeout: int = 5000) -> bool:
        """Return True once the network is idle, False if the timeout elapsed first."""
        raise NotImplementedError

    async def wait_for_response(self, predicate: Callable[[ResponseInfo], bool],
                                timeout: int = 5000) -> Optional[ResponseInfo]:
        """Return the first matching response, or None on timeout."""
        raise NotImplementedError

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        raise NotImplementedError

    async def close(self) -> None:
        raise NotImplementedError
