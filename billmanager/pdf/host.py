"""File, package, font and date resolution for the embedded Typst compiler."""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from pathlib import Path, PurePosixPath
from typing import Any

from billmanager.pdf.errors import FontResolutionFailure
from billmanager.pdf.fonts import FontBook, FontSlot
from billmanager.pdf.packages import PackageStore

logger = logging.getLogger(__name__)

MAIN_PATH = "main.typ"

_SPEC = r"@([a-z0-9][a-z0-9_-]*)/([A-Za-z0-9][A-Za-z0-9_-]*):(\d+\.\d+\.\d+)"
_SPEC_RE = re.compile(_SPEC)
# String literals and comments in source order, so "//" inside a string is not a comment.
_TOKEN_RE = re.compile(r'"(?:[^"\\\n]|\\.)*"|//[^\n]*|/\*.*?\*/', re.DOTALL)
_IMPORT_RE = re.compile(r'\b(?:import|include)\s+"' + _SPEC + '"')


@dataclass(frozen=True, order=True)
class PackageSpec:
    namespace: str
    name: str
    version: str

    @classmethod
    def parse(cls, text: str) -> PackageSpec:
        match = _SPEC_RE.fullmatch(text.strip())
        if match is None:
            raise ValueError(f"Invalid package spec: {text!r}")
        return cls(*match.groups())

    def __str__(self) -> str:
        return f"@{self.namespace}/{self.name}:{self.version}"


@dataclass(frozen=True)
class FileId:
    path: str
    package: PackageSpec | None = None


def _strip_comments(text: str) -> str:
    return _TOKEN_RE.sub(lambda m: m.group(0) if m.group(0).startswith('"') else " ", text)


def find_package_imports(text: str) -> list[PackageSpec]:
    """Packages named by ``import``/``include`` in a Typst source, in order of first appearance.

    Specs inside comments or in other string data are not imports.
    """
    specs: list[PackageSpec] = []
    for match in _IMPORT_RE.finditer(_strip_comments(text)):
        spec = PackageSpec(*match.groups())
        if spec not in specs:
            specs.append(spec)
    return specs


def _rooted(root: Path, path: str) -> Path:
    """Join a virtual path onto ``root``; paths leaving the root are not found."""
    parts = []
    for part in PurePosixPath(path.replace("\\", "/")).parts:
        if part in ("/", "", "."):
            continue
        if part == "..":
            if not parts:
                raise FileNotFoundError(f"{path} is outside of {root}")
            parts.pop()
            continue
        parts.append(part)
    if not parts:
        raise FileNotFoundError(f"{path} does not name a file")
    return root.joinpath(*parts)


class CompilerHost(ABC):
    @property
    @abstractmethod
    def root(self) -> Path:
        """Directory that non-package paths resolve against."""
        ...

    @abstractmethod
    def main(self) -> FileId: ...

    @abstractmethod
    def source(self, file_id: FileId) -> str:
        """Return the text of a source file."""
        ...

    @abstractmethod
    def file(self, file_id: FileId) -> bytes:
        """Return the raw bytes of any file (images, data, package files)."""
        ...

    @abstractmethod
    def resolve_package(self, spec: PackageSpec) -> Path:
        """Return the local directory holding ``spec``, fetching it if needed."""
        ...

    @abstractmethod
    def font_count(self) -> int: ...

    @abstractmethod
    def font(self, index: int) -> FontSlot | None:
        """Return the font at ``index``, or None when there is no such font."""
        ...

    @abstractmethod
    def today(self) -> date: ...

    @abstractmethod
    def inputs(self) -> dict[str, str]:
        """Values visible to the document as ``sys.inputs``."""
        ...

    def package_cache_dir(self) -> Path | None:
        """Cache root the compiler should read packages from, if not its default."""
        return None

    def font_collection(self) -> Any:
        """The compiler's own font set behind ``font()``, if the host has one."""
        return None


class InvoiceHost(CompilerHost):
    """Host for compiling one invoice. Build a new one per document."""

    def __init__(
        self,
        source_text: str,
        *,
        template_dir: str | Path,
        packages: PackageStore,
        fonts: FontBook,
        today: date,
        inputs: dict[str, str] | None = None,
    ) -> None:
        self._main = FileId(MAIN_PATH)
        self._source_text = source_text
        self._root = Path(template_dir)
        self.packages = packages
        self.fonts = fonts
        self._today = today
        self._inputs = dict(inputs or {})

    @property
    def root(self) -> Path:
        return self._root

    def main(self) -> FileId:
        return self._main

    def _path(self, file_id: FileId) -> Path:
        if file_id.package is not None:
            return _rooted(self.resolve_package(file_id.package), file_id.path)
        return _rooted(self._root, file_id.path)

    def source(self, file_id: FileId) -> str:
        if file_id == self._main:
            return self._source_text
        path = self._path(file_id)
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise FileNotFoundError(str(path)) from exc

    def file(self, file_id: FileId) -> bytes:
        if file_id == self._main:
            return self._source_text.encode("utf-8")
        path = self._path(file_id)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise FileNotFoundError(str(path)) from exc

    def resolve_package(self, spec: PackageSpec) -> Path:
        return self.packages.resolve(spec)

    def package_cache_dir(self) -> Path | None:
        return self.packages.cache_dir

    def font_collection(self) -> Any:
        return self.fonts.collection

    def font_count(self) -> int:
        return len(self.fonts)

    def font(self, index: int) -> FontSlot | None:
        try:
            return self.fonts[index]
        except FontResolutionFailure as exc:
            logger.warning("%s, rendering with fallback glyphs", exc)
            return None

    def today(self) -> date:
        return self._today

    def inputs(self) -> dict[str, str]:
        return {**self._inputs, "today": self._today.isoformat()}
