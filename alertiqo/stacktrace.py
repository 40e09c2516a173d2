"""Stack trace location extraction: frozen dataclass and compiled regex.

Two frame formats are understood:

  Browser:  ``at render (https://example.com/app.js:10:5)`` or
            ``https://example.com/app.js:10:5``
  Python:   ``File "/srv/app/views.py", line 42, in handler``

Browser stacks list the innermost frame first. Python tracebacks print
the most recent call last, so their frames are walked bottom-up. Either
way the first frame that is not from a browser extension or a vendored
dependency is taken as the origin of the error.
"""

import re
from dataclasses import dataclass
from typing import Optional

BROWSER_FRAME_PATTERN = re.compile(r"^(?:at\s+)?(?:(?:.*\s)?\()?(.+?):(\d+):(\d+)\)?$")

PYTHON_FRAME_PATTERN = re.compile(r'^\s*File "(.+)", line (\d+)')

EXTENSION_PREFIXES = ("chrome-extension://", "moz-extension://")

VENDORED_SEGMENTS = ("node_modules", "site-packages", "dist-packages")


@dataclass(frozen=True)
class Location:
    file: str
    line: int
    column: Optional[int] = None


def is_ignored_path(path: str) -> bool:
    """True for frames from browser extensions or third-party packages."""
    if path.startswith(EXTENSION_PREFIXES):
        return True
    return any(segment in path for segment in VENDORED_SEGMENTS)


def _python_frames(lines: list[str]) -> list[Location]:
    frames = []
    for raw in lines:
        match = PYTHON_FRAME_PATTERN.match(raw)
        if match:
            frames.append(Location(file=match.group(1), line=int(match.group(2))))
    frames.reverse()
    return frames


def _browser_frames(lines: list[str]) -> list[Location]:
    frames = []
    for raw in lines:
        match = BROWSER_FRAME_PATTERN.search(raw)
        if match:
            frames.append(
                Location(
                    file=match.group(1),
                    line=int(match.group(2)),
                    column=int(match.group(3)),
                )
            )
    return frames


def parse_location(stack: Optional[str]) -> Optional[Location]:
    """Return the originating location in *stack*, or None if nothing usable."""
    if not stack:
        return None

    lines = [line.strip() for line in stack.split("\n")]
    frames = _python_frames(lines)
    if not frames:
        frames = _browser_frames(lines)

    for frame in frames:
        if is_ignored_path(frame.file):
            continue
        return frame
    return None
