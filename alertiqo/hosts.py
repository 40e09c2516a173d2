"""Host environments: where uncaught errors and page metadata come from.

The client only talks to the small ``HostEnvironment`` surface below:

  NullHost     no global signals, no page metadata (registration is skipped)
  ProcessHost  a plain Python process: sys/threading excepthooks and the
               asyncio loop exception handler
  BrowserHost  a browser ``window`` (Pyodide's ``js.window`` or any object
               with the same shape)
"""

import asyncio
import logging
import sys
import threading
from typing import Any, Callable, Optional, Protocol

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[Any], None]


class HostEnvironment(Protocol):
    supports_signals: bool
    is_browser: bool

    def on_uncaught_exception(self, callback: ErrorCallback) -> None: ...
    def on_unhandled_rejection(self, callback: ErrorCallback) -> None: ...
    def page_url(self) -> Optional[str]: ...
    def user_agent(self) -> Optional[str]: ...


class BrowserError(Exception):
    """A JavaScript error surfaced to Python, keeping the JS stack text."""

    def __init__(self, message: str, stack: Optional[str] = None):
        super().__init__(message)
        self.stack = stack


class NullHost:
    supports_signals = False
    is_browser = False

    def on_uncaught_exception(self, callback: ErrorCallback) -> None:
        pass

    def on_unhandled_rejection(self, callback: ErrorCallback) -> None:
        pass

    def page_url(self) -> Optional[str]:
        return None

    def user_agent(self) -> Optional[str]:
        return None


class ProcessHost:
    """Hooks the interpreter's global error signals.

    Uncaught exceptions arrive through ``sys.excepthook`` (main thread) and
    ``threading.excepthook`` (other threads). Exceptions that nobody
    retrieved from an asyncio task or future are the closest thing Python
    has to an unhandled promise rejection; they arrive through the loop's
    exception handler. Previously installed hooks are always chained.

    Only a loop that is running when the rejection callback is registered
    (or the one passed in) is hooked. Loops started later, such as the one
    ``asyncio.run()`` creates, have to be added with ``watch_loop()``.
    """

    supports_signals = True
    is_browser = False

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop
        self._previous_sys_hook = None
        self._previous_thread_hook = None
        self._sys_hook = None
        self._thread_hook = None
        self._rejection_callback: Optional[ErrorCallback] = None
        # loop -> (handler it had before, handler installed here)
        self._loop_handlers: dict = {}

    def on_uncaught_exception(self, callback: ErrorCallback) -> None:
        previous_sys_hook = sys.excepthook
        previous_thread_hook = threading.excepthook

        def sys_hook(exc_type, exc_value, exc_tb):
            # Ctrl-C is not an application error
            if exc_value is not None and not isinstance(exc_value, KeyboardInterrupt):
                callback(exc_value)
            previous_sys_hook(exc_type, exc_value, exc_tb)

        def thread_hook(args):
            # sys.exit() in a thread is a normal way to end it
            if args.exc_value is not None and not issubclass(args.exc_type, SystemExit):
                callback(args.exc_value)
            previous_thread_hook(args)

        self._previous_sys_hook = previous_sys_hook
        self._previous_thread_hook = previous_thread_hook
        self._sys_hook = sys_hook
        self._thread_hook = thread_hook
        sys.excepthook = sys_hook
        threading.excepthook = thread_hook
        logger.debug("Installed sys and threading excepthooks")

    def on_unhandled_rejection(self, callback: ErrorCallback) -> None:
        self._rejection_callback = callback
        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.debug("No running event loop; call watch_loop() to track one later")
                return
        self.watch_loop(loop)

    def watch_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        """Route *loop*'s unretrieved task/future exceptions to the rejection callback."""
        callback = self._rejection_callback
        if callback is None or loop in self._loop_handlers:
            return

        previous = loop.get_exception_handler()

        def handler(event_loop, context):
            error = context.get("exception")
            callback(error if error is not None else context.get("message", "Unhandled rejection"))
            if previous is not None:
                previous(event_loop, context)
            else:
                event_loop.default_exception_handler(context)

        self._loop_handlers[loop] = (previous, handler)
        loop.set_exception_handler(handler)
        logger.debug("Installed asyncio exception handler on %r", loop)

    def uninstall(self) -> None:
        """Restore the hooks this host replaced.

        A hook that was swapped out again after installation is left alone,
        so whoever installed it later keeps it.
        """
        if self._sys_hook is not None:
            if sys.excepthook is self._sys_hook:
                sys.excepthook = self._previous_sys_hook
            else:
                logger.debug("sys.excepthook was replaced after install, leaving it")
        if self._thread_hook is not None:
            if threading.excepthook is self._thread_hook:
                threading.excepthook = self._previous_thread_hook
            else:
                logger.debug("threading.excepthook was replaced after install, leaving it")
        self._sys_hook = self._thread_hook = None
        self._previous_sys_hook = self._previous_thread_hook = None

        for loop, (previous, handler) in self._loop_handlers.items():
            if not loop.is_closed() and loop.get_exception_handler() is handler:
                loop.set_exception_handler(previous)
        self._loop_handlers.clear()

    def page_url(self) -> Optional[str]:
        return None

    def user_agent(self) -> Optional[str]:
        return None


def _from_js_error(value: Any) -> Any:
    """Wrap a JS Error-like object in BrowserError; leave anything else alone."""
    if value is None or isinstance(value, BaseException):
        return value
    message = getattr(value, "message", None)
    if message is None:
        return value
    stack = getattr(value, "stack", None)
    return BrowserError(str(message), str(stack) if stack else None)


class BrowserHost:
    """Listens on a browser ``window`` for ``error`` and ``unhandledrejection``.

    *proxy* wraps Python callables before they are handed to JavaScript
    (Pyodide needs ``pyodide.ffi.create_proxy`` so the listener is not
    garbage collected). The default passes callables through unchanged.
    """

    supports_signals = True
    is_browser = True

    def __init__(self, window: Any, proxy: Optional[Callable] = None):
        self._window = window
        self._proxy = proxy or (lambda fn: fn)
        self._listeners: list = []

    def _listen(self, event_name: str, listener: Callable) -> None:
        wrapped = self._proxy(listener)
        self._listeners.append((event_name, wrapped))
        self._window.addEventListener(event_name, wrapped)

    def on_uncaught_exception(self, callback: ErrorCallback) -> None:
        def on_error(event):
            error = _from_js_error(getattr(event, "error", None))
            if error is None:
                error = BrowserError(str(getattr(event, "message", "") or ""))
            callback(error)

        self._listen("error", on_error)

    def on_unhandled_rejection(self, callback: ErrorCallback) -> None:
        def on_rejection(event):
            callback(_from_js_error(getattr(event, "reason", None)))

        self._listen("unhandledrejection", on_rejection)

    def uninstall(self) -> None:
        for event_name, wrapped in self._listeners:
            self._window.removeEventListener(event_name, wrapped)
        self._listeners.clear()

    def page_url(self) -> Optional[str]:
        location = getattr(self._window, "location", None)
        href = getattr(location, "href", None)
        return str(href) if href is not None else None

    def user_agent(self) -> Optional[str]:
        navigator = getattr(self._window, "navigator", None)
        ua = getattr(navigator, "userAgent", None)
        return str(ua) if ua is not None else None


def detect_host() -> HostEnvironment:
    """Pick the host for the running interpreter.

    Under Pyodide the page's ``window`` is used; a Pyodide web worker has no
    window and gets a NullHost. Everywhere else the process hooks apply.
    """
    if sys.platform == "emscripten":
        import js
        from pyodide.ffi import create_proxy

        window = getattr(js, "window", None)
        if window is None:
            return NullHost()
        return BrowserHost(window, proxy=create_proxy)
    return ProcessHost()
