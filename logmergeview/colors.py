from __future__ import annotations

from collections.abc import Sequence

from .errors import ConfigurationError


def _check_palette(palette: Sequence[str]) -> None:
    if not palette:
        raise ConfigurationError("color palette is not configured (empty or missing)")


def assign_colors(filenames: Sequence[str], palette: Sequence[str]) -> list[str]:
    """
    Assign palette[i % len(palette)] to the i'th file, in selection order.
    """
    _check_palette(palette)
    return [palette[i % len(palette)] for i in range(len(filenames))]


class ColorAssigner:
    """
    Keeps the file -> palette index association fixed (index = position in
    selection order), so that switching palettes (light vs. dark theme) only
    swaps colors, never which file gets which palette slot.
    """
    def __init__(self, filenames: Sequence[str]):
        self.filenames = list(filenames)
        self._index = {}
        for i, fname in enumerate(self.filenames):
            # if the same name is selected twice, its first position wins
            self._index.setdefault(fname, i)

    def index_of(self, filename: str) -> int:
        return self._index[filename]

    def color_for(self, filename: str, palette: Sequence[str]) -> str:
        _check_palette(palette)
        return palette[self._index[filename] % len(palette)]

    def colors(self, palette: Sequence[str]) -> list[str]:
        return assign_colors(self.filenames, palette)
