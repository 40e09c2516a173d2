"""Coarse browser / OS family detection from a user-agent string.

Substring sniffing in a fixed priority order, first match wins. This is
deliberately crude; anything implementing ``UserAgentClassifier`` can be
handed to the client instead.
"""

from typing import Protocol

UNKNOWN = "unknown"

# (substring, family) pairs, checked in order
BROWSER_RULES = (
    ("Chrome", "Chrome"),
    ("Firefox", "Firefox"),
    ("Safari", "Safari"),
    ("Edge", "Edge"),
)

OS_RULES = (
    ("Windows", "Windows"),
    ("Mac", "macOS"),
    ("Linux", "Linux"),
    ("Android", "Android"),
    ("iOS", "iOS"),
)


class UserAgentClassifier(Protocol):
    def browser(self, user_agent: str) -> str: ...
    def os(self, user_agent: str) -> str: ...


def _first_match(user_agent: str, rules: tuple[tuple[str, str], ...]) -> str:
    for needle, family in rules:
        if needle in user_agent:
            return family
    return UNKNOWN


class SubstringClassifier:
    """Case-sensitive substring matching against BROWSER_RULES and OS_RULES."""

    def browser(self, user_agent: str) -> str:
        return _first_match(user_agent or "", BROWSER_RULES)

    def os(self, user_agent: str) -> str:
        return _first_match(user_agent or "", OS_RULES)
