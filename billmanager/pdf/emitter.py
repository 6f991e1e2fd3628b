from __future__ import annotations

import logging
import re
from datetime import datetime, time, timezone

from billmanager.pdf.bindings import typst_library
from billmanager.pdf.errors import CompileError, Diagnostic
from billmanager.pdf.fonts import font_roots
from billmanager.pdf.host import CompilerHost, PackageSpec, find_package_imports
from billmanager.settings import default_package_cache_dir

logger = logging.getLogger(__name__)

_HEADER_RE = re.compile(r"^(error|warning): (.*)$")
_LOCATION_RE = re.compile(r"^\s*(?:┌─|-->)\s*(\S+)")
_HINT_RE = re.compile(r"^\s*= hint: (.*)$")
_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


def _parse_diagnostics(text: str) -> list[Diagnostic]:
    """Split compiler output into one Diagnostic per error/warning block."""
    blocks: list[dict] = []
    for line in text.splitlines():
        header = _HEADER_RE.match(line.strip())
        if header:
            blocks.append({"severity": header.group(1), "message": header.group(2), "location": None, "hints": []})
            continue
        if not blocks:
            continue
        location = _LOCATION_RE.match(line)
        if location and blocks[-1]["location"] is None:
            blocks[-1]["location"] = location.group(1)
            continue
        hint = _HINT_RE.match(line)
        if hint:
            blocks[-1]["hints"].append(hint.group(1))

    if not blocks:
        return [Diagnostic(message=text.strip() or "unknown error")]
    return [
        Diagnostic(
            message=b["message"],
            severity=b["severity"],
            location=b["location"],
            hints=tuple(b["hints"]),
        )
        for b in blocks
    ]


def diagnostics_from(exc: Exception) -> list[Diagnostic]:
    """Every diagnostic behind a compiler exception.

    The bindings attach the full rendered report as ``diagnostic``; ``message``
    only holds the first headline, so it is used when no report is attached.
    """
    rendered = getattr(exc, "diagnostic", None)
    if isinstance(rendered, str) and rendered.strip():
        return _parse_diagnostics(_ANSI_RE.sub("", rendered))

    message = getattr(exc, "message", None)
    if not isinstance(message, str) or not message:
        return _parse_diagnostics(str(exc))

    diagnostics = _parse_diagnostics(message)
    hints = tuple(getattr(exc, "hints", None) or ())
    trace = list(getattr(exc, "trace", None) or ())
    if len(diagnostics) == 1 and (hints or trace):
        only = diagnostics[0]
        diagnostics = [
            Diagnostic(
                message=only.message,
                severity=only.severity,
                location=only.location or (str(trace[0]) if trace else None),
                hints=only.hints + hints,
            )
        ]
    return diagnostics


def _preload_packages(host: CompilerHost, source: str) -> list[PackageSpec]:
    """Resolve every package the document imports, following package sources."""
    pending = find_package_imports(source)
    resolved: list[PackageSpec] = []
    while pending:
        spec = pending.pop(0)
        if spec in resolved:
            continue
        package_dir = host.resolve_package(spec)
        resolved.append(spec)
        for path in sorted(package_dir.rglob("*.typ")):
            for dependency in find_package_imports(path.read_text(encoding="utf-8", errors="replace")):
                if dependency not in resolved and dependency not in pending:
                    pending.append(dependency)
    return resolved


def compile_to_pdf(host: CompilerHost) -> bytes:
    """Compile the host's main document to PDF.

    Raises:
        PackageUnavailable: An imported package is missing and could not be fetched.
        CompileError: Typst reported errors; all diagnostics are attached.
    """
    source = host.source(host.main())
    packages = _preload_packages(host, source)

    fonts = [slot for slot in (host.font(i) for i in range(host.font_count())) if slot is not None]
    kwargs: dict = {
        "root": str(host.root),
        "sys_inputs": host.inputs(),
        # Drives datetime.today() inside the document.
        "timestamp": datetime.combine(host.today(), time(), tzinfo=timezone.utc),
        "format": "pdf",
    }
    collection = host.font_collection()
    if collection is not None:
        kwargs["font_paths"] = collection
    else:
        kwargs["font_paths"] = [str(path) for path in font_roots(fonts)]
        kwargs["ignore_system_fonts"] = True
    package_cache = host.package_cache_dir()
    if package_cache is not None and package_cache != default_package_cache_dir():
        kwargs["package_cache_path"] = str(package_cache)

    typst = typst_library()
    compile_errors = tuple(filter(None, (getattr(typst, "TypstError", None), RuntimeError)))
    logger.debug(
        "Compiling %s: %d packages, %d fonts, root=%s",
        host.main().path,
        len(packages),
        len(fonts),
        host.root,
    )
    try:
        pdf = typst.compile(source.encode("utf-8"), **kwargs)
    except compile_errors as exc:
        diagnostics = diagnostics_from(exc)
        logger.warning("Typst compilation failed with %d diagnostic(s)", len(diagnostics))
        raise CompileError(diagnostics) from exc

    logger.debug("Compiled %d bytes of PDF", len(pdf))
    return bytes(pdf)
