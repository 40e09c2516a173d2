"""Alertiqo client: captures errors and messages and ships them to the collector."""

import asyncio
import logging
import threading
import traceback
from dataclasses import replace
from typing import Any, Optional

from alertiqo.breadcrumbs import BreadcrumbBuffer
from alertiqo.config import ClientConfig, DEFAULT_ENVIRONMENT
from alertiqo.hosts import HostEnvironment, detect_host
from alertiqo.models import Breadcrumb, Context, Report, User, now_ms
from alertiqo.stacktrace import parse_location
from alertiqo.transport import HttpTransport
from alertiqo.useragent import SubstringClassifier, UserAgentClassifier

logger = logging.getLogger(__name__)


def _synthesize_stack(headline: str) -> str:
    """Build a traceback-style stack for the caller, leaving out this module's frames."""
    frames = [f for f in traceback.extract_stack() if f.filename != __file__]
    return (
        "Traceback (most recent call last):\n"
        + "".join(traceback.format_list(frames))
        + headline
        + "\n"
    )


def _describe_error(error: Any) -> tuple[str, str]:
    """Coerce anything handed to capture_exception into (message, stack)."""
    if isinstance(error, BaseException):
        message = str(error) or type(error).__name__
        stack = getattr(error, "stack", None)
        if isinstance(stack, str) and stack:
            return message, stack
        if error.__traceback__ is not None:
            return message, "".join(traceback.format_exception(error))
        headline = "".join(traceback.format_exception_only(error)).rstrip("\n")
        return message, _synthesize_stack(headline)

    message = error if isinstance(error, str) else str(error)
    return message, _synthesize_stack(f"Exception: {message}")


class Alertiqo:
    """Error reporting client.

    Capture calls build a ``Report`` on the calling thread and hand it to
    the transport, which sends it in the background. Nothing here raises
    into the host application: send failures are logged and dropped.

    Args:
        config: Client settings.
        host: Source of global error signals and page metadata. Detected
            from the running interpreter when omitted.
        transport: Anything with ``dispatch(payload)`` and ``close()``.
            Defaults to an ``HttpTransport`` for ``config.endpoint``.
        classifier: Browser / OS family detection for the context block.
        parse_stack: When False, exception reports carry no
            file/line/column.
    """

    def __init__(
        self,
        config: ClientConfig,
        host: Optional[HostEnvironment] = None,
        transport=None,
        classifier: Optional[UserAgentClassifier] = None,
        parse_stack: bool = True,
    ):
        # Own copy of the tag map; the caller's dict is never touched.
        self._config = replace(config, tags=dict(config.tags or {}))
        self._host = host if host is not None else detect_host()
        self._transport = (
            transport
            if transport is not None
            else HttpTransport(config.endpoint, config.api_key)
        )
        self._classifier = classifier or SubstringClassifier()
        self._parse_stack = parse_stack
        self._breadcrumbs = BreadcrumbBuffer()
        self._user: Optional[User] = None
        self._initialized = False
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init(self) -> None:
        """Subscribe to the host's uncaught-error signals. Repeat calls are no-ops."""
        with self._lock:
            if self._initialized:
                return
            self._initialized = True

        if not self._host.supports_signals:
            logger.debug("Host has no global error signals, skipping listener registration")
            return

        self._host.on_uncaught_exception(self.capture_exception)
        self._host.on_unhandled_rejection(self.capture_exception)
        logger.info("Alertiqo initialized (environment=%s)", self._environment)

    def watch_loop(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """Report exceptions nobody retrieved from tasks on *loop*.

        Defaults to the running loop. Call it at the top of the coroutine
        passed to ``asyncio.run()`` when ``init()`` ran before the loop
        existed::

            async def main():
                client.watch_loop()
                ...

        Does nothing before ``init()`` or on hosts without loop support.
        """
        watch = getattr(self._host, "watch_loop", None)
        if watch is None or not self._initialized:
            return
        if loop is None:
            loop = asyncio.get_running_loop()
        watch(loop)

    def close(self) -> None:
        """Remove host hooks, wait for in-flight sends, release the HTTP client."""
        uninstall = getattr(self._host, "uninstall", None)
        if uninstall is not None:
            uninstall()
        self._transport.close()

    @property
    def initialized(self) -> bool:
        return self._initialized

    # ------------------------------------------------------------------
    # Capture
    # ------------------------------------------------------------------

    def capture_exception(self, error: Any, additional_data: Optional[dict] = None) -> None:
        """Report an exception, a plain string, or any rejection reason at level "error"."""
        message, stack = _describe_error(error)
        location = parse_location(stack) if self._parse_stack else None

        extra_tags = (additional_data or {}).get("tags") or {}
        report = self._build_report(message, "error", extra_tags=extra_tags)
        report = replace(
            report,
            stack=stack,
            file=location.file if location else None,
            line=location.line if location else None,
            column=location.column if location else None,
        )

        processed = self._apply_before_send(report)
        if processed is None:
            return
        self.send_report(processed)

    def capture_message(self, message: str, level: str = "info") -> None:
        """Report a message. ``before_send`` only applies when ``filter_messages`` is set."""
        report = self._build_report(message, level)
        if self._config.filter_messages:
            report = self._apply_before_send(report)
            if report is None:
                return
        self.send_report(report)

    def send_report(self, report) -> None:
        """Hand a report to the transport without waiting for the outcome."""
        payload = report.to_dict() if isinstance(report, Report) else dict(report)
        try:
            self._transport.dispatch(payload)
        except RuntimeError as exc:
            # Raised by the worker pool once the client is closed.
            logger.warning("Dropping error report, transport unavailable: %s", exc)

    # ------------------------------------------------------------------
    # Breadcrumbs, user and tags
    # ------------------------------------------------------------------

    def add_breadcrumb(
        self,
        message: str,
        category: str,
        level: str = "info",
        data: Optional[dict] = None,
    ) -> None:
        """Record a breadcrumb stamped with the current time."""
        crumb = Breadcrumb(
            message=message,
            category=category,
            level=level,
            data=dict(data) if data is not None else None,
        )
        self._breadcrumbs.add(crumb)

    def set_user(self, user) -> None:
        """Attach a user (User, dict with id/email/username, or None) to later reports."""
        user = User.from_any(user)
        with self._lock:
            self._user = user
            if self._config.user_in_tags:
                self._config.tags["userId"] = (user.id if user else None) or ""
                self._config.tags["userEmail"] = (user.email if user else None) or ""

    def set_tag(self, key: str, value: str) -> None:
        with self._lock:
            self._config.tags[key] = value

    def set_tags(self, tags: dict) -> None:
        with self._lock:
            self._config.tags.update(tags)

    @property
    def tags(self) -> dict:
        with self._lock:
            return dict(self._config.tags)

    @property
    def user(self) -> Optional[User]:
        return self._user

    @property
    def breadcrumbs(self) -> tuple[Breadcrumb, ...]:
        return self._breadcrumbs.snapshot()

    @property
    def config(self) -> ClientConfig:
        return self._config

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @property
    def _environment(self) -> str:
        return self._config.environment or DEFAULT_ENVIRONMENT

    def _build_report(self, message: str, level: str, extra_tags: Optional[dict] = None) -> Report:
        with self._lock:
            tags = {**self._config.tags, **(extra_tags or {})}
            user = self._user
        return Report(
            message=message,
            level=level,
            timestamp=now_ms(),
            environment=self._environment,
            release=self._config.release,
            tags=tags,
            user=user,
            context=self._build_context(),
            breadcrumbs=self._breadcrumbs.snapshot(),
        )

    def _build_context(self) -> Context:
        if not self._host.is_browser:
            return Context()
        user_agent = self._host.user_agent()
        return Context(
            url=self._host.page_url(),
            user_agent=user_agent,
            browser=self._classifier.browser(user_agent or ""),
            os=self._classifier.os(user_agent or ""),
        )

    def _apply_before_send(self, report: Report):
        before_send = self._config.before_send
        if before_send is None:
            return report
        try:
            processed = before_send(report)
        except Exception:
            logger.exception("before_send raised, dropping report")
            return None
        if not processed:
            logger.debug("before_send dropped report: %s", report.message)
            return None
        return processed
