"""Prefix color allocation for streamed command output.

Each project streaming output during one run gets the next color of the
wheel, so interleaved lines stay distinguishable.  The allocator lives for
one run and is passed to whoever prints; there is no process-wide index.
"""

from __future__ import annotations

COLOR_WHEEL: tuple[str, ...] = ("cyan", "magenta", "blue", "yellow", "green", "red")


class ColorAllocator:
    def __init__(self, colors: tuple[str, ...] = COLOR_WHEEL, *, enabled: bool = True) -> None:
        if not colors:
            msg = "ColorAllocator needs at least one color"
            raise ValueError(msg)
        self._colors = colors
        self._enabled = enabled
        self._index = 0

    def next_color(self) -> str | None:
        """Return the next color, cycling through the wheel.  ``None`` when disabled."""
        if not self._enabled:
            return None
        color = self._colors[self._index % len(self._colors)]
        self._index += 1
        return color
