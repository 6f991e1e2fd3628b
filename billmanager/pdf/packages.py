"""Local cache of Typst packages, filled on demand from the package registry."""

from __future__ import annotations

import io
import logging
import os
import shutil
import tarfile
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

import requests

from billmanager.pdf.errors import PackageUnavailable

if TYPE_CHECKING:
    from billmanager.pdf.host import PackageSpec

logger = logging.getLogger(__name__)

# The public registry only serves this namespace.
REGISTRY_NAMESPACE = "preview"


class PackageStore:
    def __init__(
        self,
        cache_dir: str | Path,
        registry_url: str = "https://packages.typst.org",
        download: bool = True,
        timeout: float = 30.0,
    ) -> None:
        self.cache_dir = Path(cache_dir)
        self.registry_url = registry_url.rstrip("/")
        self.download = download
        self.timeout = timeout

    def package_dir(self, spec: PackageSpec) -> Path:
        return self.cache_dir / spec.namespace / spec.name / spec.version

    def source_url(self, spec: PackageSpec) -> str:
        return f"{self.registry_url}/{spec.namespace}/{spec.name}-{spec.version}.tar.gz"

    def resolve(self, spec: PackageSpec) -> Path:
        """Return the package directory, materializing it first if needed."""
        package_dir = self.package_dir(spec)
        if package_dir.is_dir():
            return package_dir
        return self.materialize(spec)

    def materialize(self, spec: PackageSpec) -> Path:
        package_dir = self.package_dir(spec)
        if package_dir.is_dir():
            return package_dir

        url = self.source_url(spec)
        if not self.download:
            raise PackageUnavailable(spec, url, package_dir, "package downloads are disabled")
        if spec.namespace != REGISTRY_NAMESPACE:
            raise PackageUnavailable(
                spec, url, package_dir, f"namespace '{spec.namespace}' is not served by the registry"
            )

        logger.info("Downloading package %s from %s", spec, url)
        try:
            response = requests.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise PackageUnavailable(spec, url, package_dir, f"download failed: {exc}") from exc

        try:
            package_dir.parent.mkdir(parents=True, exist_ok=True)
            staging = Path(tempfile.mkdtemp(prefix=f".{spec.version}-", dir=package_dir.parent))
        except OSError as exc:
            raise PackageUnavailable(spec, url, package_dir, f"cannot write package: {exc}") from exc
        try:
            try:
                with tarfile.open(fileobj=io.BytesIO(response.content), mode="r:gz") as archive:
                    archive.extractall(staging, filter="data")
            except (tarfile.TarError, OSError) as exc:
                raise PackageUnavailable(spec, url, package_dir, f"invalid package archive: {exc}") from exc
            try:
                self._publish(staging, package_dir)
            except OSError as exc:
                raise PackageUnavailable(spec, url, package_dir, f"cannot write package: {exc}") from exc
        finally:
            if staging.exists():
                shutil.rmtree(staging, ignore_errors=True)

        logger.info("Package %s stored at %s (%d bytes)", spec, package_dir, len(response.content))
        return package_dir

    @staticmethod
    def _publish(staging: Path, package_dir: Path) -> None:
        """Move a fully extracted package into place. Losing a race to another writer is fine."""
        try:
            os.rename(staging, package_dir)
        except OSError:
            if not package_dir.is_dir():
                raise
            logger.debug("Package directory %s appeared concurrently, keeping it", package_dir)
