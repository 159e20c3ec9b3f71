"""
================================================================================
Playwright Fakes
================================================================================

In-memory stand-ins for the Playwright objects the engine talks to, so the
engine and the control API can be exercised without launching a browser.

    FakePage.elements maps a selector to a FakeElement describing how many
    nodes it matches and their state. FakePage.evaluate_handler answers
    page.evaluate() calls; FakeStoreBridge plays the in-page store bridge.

================================================================================
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from browser_automation.maps.comparison import js_type_of


MAPS_ROOT = Path(__file__).resolve().parent.parent / "tests"

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@dataclass
class FakeElement:
    count: int = 1
    text: str = ""
    attributes: Dict[str, str] = field(default_factory=dict)
    visible: bool = True
    enabled: bool = True


class FakeLocator:
    def __init__(self, page: "FakePage", selector: str):
        self.page = page
        self.selector = selector

    @property
    def first(self) -> "FakeLocator":
        return self

    def _element(self) -> Optional[FakeElement]:
        if self.selector in self.page.broken_selectors:
            raise Exception(f"Unexpected token in selector: {self.selector}\nCall log: ...")
        return self.page.elements.get(self.selector)

    async def count(self) -> int:
        element = self._element()
        return element.count if element else 0

    async def wait_for(self, state: str = "visible", timeout: Optional[float] = None) -> None:
        element = self._element()
        if state == "visible" and (element is None or not element.visible):
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {self.selector}")

    async def _act(self, action: str, *args: Any, timeout: Optional[float] = None) -> None:
        self.page.action_timeouts.append((action, timeout))
        element = self._element()
        if element is None:
            raise PlaywrightTimeoutError(f"Timeout waiting for {self.selector}")
        if not element.enabled:
            raise Exception(f"Element is not enabled: {self.selector}\nCall log: waiting for element")
        self.page.actions.append((action, self.selector, *args))

    async def click(self, timeout: Optional[float] = None, **options: Any) -> None:
        await self._act("click", options, timeout=timeout)

    async def fill(self, value: str, timeout: Optional[float] = None) -> None:
        await self._act("fill", value, timeout=timeout)

    async def clear(self, timeout: Optional[float] = None) -> None:
        await self._act("clear", timeout=timeout)

    async def press_sequentially(self, text: str, delay: float = 0, timeout: Optional[float] = None) -> None:
        await self._act("type", text, timeout=timeout)

    async def hover(self, timeout: Optional[float] = None) -> None:
        await self._act("hover", timeout=timeout)

    async def press(self, key: str, timeout: Optional[float] = None) -> None:
        await self._act("press", key, timeout=timeout)

    async def select_option(self, timeout: Optional[float] = None, **options: Any) -> None:
        await self._act("select", options, timeout=timeout)

    async def set_checked(self, checked: bool, timeout: Optional[float] = None) -> None:
        await self._act("check", checked, timeout=timeout)

    async def text_content(self) -> str:
        return self._element().text

    async def get_attribute(self, name: str) -> Optional[str]:
        return self._element().attributes.get(name)

    async def is_visible(self) -> bool:
        return self._element().visible

    async def is_enabled(self) -> bool:
        return self._element().enabled

    async def screenshot(self, path: str, **options: Any) -> bytes:
        Path(path).write_bytes(PNG_BYTES)
        return PNG_BYTES


class FakeKeyboard:
    def __init__(self, page: "FakePage"):
        self.page = page

    async def press(self, key: str) -> None:
        self.page.actions.append(("keyboard", key))


class FakeResponse:
    def __init__(self, status: int = 200):
        self.status = status


class FakePage:
    def __init__(self, url: str = "about:blank", title: str = ""):
        self.url = url
        self.page_title = title
        self.elements: Dict[str, FakeElement] = {}
        self.broken_selectors: set = set()
        self.actions: List[tuple] = []
        self.action_timeouts: List[tuple] = []
        self.listeners: Dict[str, List[Callable]] = {}
        self.evaluate_handler: Optional[Callable[[str, Any], Any]] = None
        self.viewport_size: Optional[Dict[str, int]] = {"width": 1920, "height": 1080}
        self.keyboard = FakeKeyboard(self)
        self.goto_error: Optional[Exception] = None
        self.history_error: Optional[Exception] = None
        self.closed = False
        self.default_timeout: Optional[float] = None

    def add(self, selector: str, **kwargs: Any) -> FakeElement:
        element = FakeElement(**kwargs)
        self.elements[selector] = element
        return element

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    def get_by_text(self, text: str) -> FakeLocator:
        return FakeLocator(self, f"text={text}")

    def is_closed(self) -> bool:
        return self.closed

    async def close(self) -> None:
        self.closed = True

    def set_default_timeout(self, timeout: float) -> None:
        self.default_timeout = timeout

    def set_default_navigation_timeout(self, timeout: float) -> None:
        pass

    def on(self, event: str, handler: Callable) -> None:
        self.listeners.setdefault(event, []).append(handler)

    def remove_listener(self, event: str, handler: Callable) -> None:
        self.listeners.get(event, []).remove(handler)

    async def goto(self, url: str, wait_until: str = "load", timeout: Optional[float] = None) -> FakeResponse:
        if self.goto_error is not None:
            raise self.goto_error
        self.url = url
        return FakeResponse()

    async def go_back(self, timeout: Optional[float] = None) -> Optional[FakeResponse]:
        if self.history_error is not None:
            raise self.history_error
        return None

    async def reload(self, wait_until: str = "load", timeout: Optional[float] = None) -> FakeResponse:
        if self.history_error is not None:
            raise self.history_error
        return FakeResponse()

    async def title(self) -> str:
        return self.page_title

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        if self.evaluate_handler is None:
            return {}
        return self.evaluate_handler(script, arg)

    async def screenshot(self, path: str, full_page: bool = False, **options: Any) -> bytes:
        Path(path).write_bytes(PNG_BYTES)
        return PNG_BYTES

    async def set_viewport_size(self, size: Dict[str, int]) -> None:
        self.viewport_size = dict(size)

    async def wait_for_selector(self, selector: str, state: str = "visible", timeout: Optional[float] = None) -> None:
        element = self.elements.get(selector)
        present = element is not None and element.count > 0 and element.visible
        if state == "visible" and not present:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")
        if state == "hidden" and present:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector} to be hidden")

    async def wait_for_load_state(self, state: str = "load", timeout: Optional[float] = None) -> None:
        pass

    async def wait_for_url(self, url: str, timeout: Optional[float] = None) -> None:
        if url != self.url:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for URL {url}")

    async def wait_for_function(self, expression: str, timeout: Optional[float] = None) -> None:
        pass


class FakeContext:
    def __init__(self, browser: "FakeBrowser", options: Dict[str, Any]):
        self.browser = browser
        self.options = options
        self.init_scripts: List[str] = []
        self.closed = False

    async def add_init_script(self, script: str) -> None:
        self.init_scripts.append(script)

    async def new_page(self) -> FakePage:
        page = FakePage()
        self.browser.pages.append(page)
        return page

    async def clear_cookies(self) -> None:
        pass

    async def cookies(self) -> List[Dict[str, Any]]:
        return []

    async def close(self) -> None:
        self.closed = True


class FakeBrowser:
    def __init__(self, options: Dict[str, Any]):
        self.options = options
        self.contexts: List[FakeContext] = []
        self.pages: List[FakePage] = []
        self.closed = False
        self.close_error: Optional[Exception] = None

    async def new_context(self, **options: Any) -> FakeContext:
        context = FakeContext(self, options)
        self.contexts.append(context)
        return context

    def is_connected(self) -> bool:
        return not self.closed

    async def close(self) -> None:
        if self.close_error is not None:
            raise self.close_error
        self.closed = True


class FakeBrowserType:
    def __init__(self, playwright: "FakePlaywright", name: str):
        self.playwright = playwright
        self.name = name

    async def launch(self, **options: Any) -> FakeBrowser:
        if self.playwright.launch_error is not None:
            raise self.playwright.launch_error
        browser = FakeBrowser(options)
        self.playwright.browsers.append(browser)
        return browser


class FakePlaywright:
    def __init__(self):
        self.browsers: List[FakeBrowser] = []
        self.launch_error: Optional[Exception] = None
        self.stopped = 0
        self.chromium = FakeBrowserType(self, "chromium")
        self.firefox = FakeBrowserType(self, "firefox")
        self.webkit = FakeBrowserType(self, "webkit")

    @property
    def launch_count(self) -> int:
        return len(self.browsers)

    async def start(self) -> "FakePlaywright":
        return self

    async def stop(self) -> None:
        self.stopped += 1


class FakeStoreBridge:
    """
    Answers the store bridge script the way the in-page function does.

    Usage:
        bridge = FakeStoreBridge({"ui": {"activeTab": "bio"}})
        page.evaluate_handler = bridge
    """

    def __init__(self, state: Any, store_type: str = "redux", accessible: bool = True):
        self.state = state
        self.store_type = store_type
        self.accessible = accessible
        self.calls: List[Dict[str, Any]] = []

    @staticmethod
    def _type_of(value: Any, missing: bool) -> str:
        if missing:
            return "undefined"
        return js_type_of(value)

    def __call__(self, script: str, arg: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(arg)
        if not self.accessible:
            return {"accessible": False}

        access_path = ".".join(arg["accessPaths"][0])
        if arg["mode"] == "probe":
            return {"accessible": True, "accessPath": access_path, "storeType": self.store_type}

        value: Any = self.state
        missing = False
        if arg["mode"] == "query":
            for part in arg["path"]:
                if isinstance(value, dict) and part in value:
                    value = value[part]
                elif isinstance(value, list) and part.isdigit() and int(part) < len(value):
                    value = value[int(part)]
                else:
                    value, missing = None, True
                    break
        return {
            "accessible": True,
            "accessPath": access_path,
            "value": value,
            "valueType": self._type_of(value, missing),
        }


def cv_builder_state() -> Dict[str, Any]:
    return {
        "ui": {"activeTab": "bio"},
        "chat": {"messages": [], "isStreaming": False},
        "bio": {"name": "Ada Lovelace"},
        "auth": {"token": "secret-token"},
    }

