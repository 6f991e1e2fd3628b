from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from billmanager.pdf.bindings import typst_library
from billmanager.pdf.errors import FontResolutionFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FontSlot:
    family: str
    path: Path | None = None  # None for fonts built into the compiler
    index: int = 0  # face index inside a font collection file


class FontBook:
    """Fonts in the order the compiler numbers them.

    ``collection`` is the compiler's own font set the slots were read from.
    A book built from bare slots has none and compiles against the slot
    directories instead.
    """

    def __init__(self, fonts: Iterable[FontSlot], collection: Any = None) -> None:
        self._fonts = list(fonts)
        self.collection = collection

    def __len__(self) -> int:
        return len(self._fonts)

    def __iter__(self):
        return iter(self._fonts)

    def __getitem__(self, index: int) -> FontSlot:
        if not 0 <= index < len(self._fonts):
            raise FontResolutionFailure(index, len(self._fonts))
        return self._fonts[index]

    def get(self, index: int) -> FontSlot | None:
        try:
            return self[index]
        except FontResolutionFailure:
            return None


def search_fonts(dirs: Iterable[str | Path], *, include_system_fonts: bool = False) -> FontBook:
    """Enumerate fonts in ``dirs`` (and optionally the system) with the compiler's font search."""
    font_paths = [str(d) for d in dirs if Path(d).is_dir()]
    collection = typst_library().Fonts(include_system_fonts=include_system_fonts, font_paths=font_paths)
    slots = [
        FontSlot(
            family=info.family,
            path=Path(info.path) if info.path else None,
            index=info.index,
        )
        for info in collection.fonts()
    ]
    logger.debug(
        "Found %d font faces in %d directories (system fonts %s)",
        len(slots),
        len(font_paths),
        "included" if include_system_fonts else "ignored",
    )
    return FontBook(slots, collection=collection)


def font_roots(fonts: Iterable[FontSlot]) -> list[Path]:
    """Smallest set of directories that together contain every font file."""
    parents = sorted({slot.path.parent for slot in fonts if slot.path is not None})
    roots: list[Path] = []
    for parent in parents:
        if not any(parent.is_relative_to(root) for root in roots):
            roots.append(parent)
    return roots
