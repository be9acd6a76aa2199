from __future__ import annotations

import shutil
from pathlib import Path
from typing import Any

import requests

from graffic.core.errors import ValidationError
from graffic.core.logging import get_logger

logger = get_logger(__name__)

DOWNLOAD_TIMEOUT = 30


class StagingStore:
    """
    Host-local holding area for an asset's bytes between `moved` and `uploaded`.
    One file per asset at a path derived from its id.
    """

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def path(self, asset_id: str) -> Path:
        return self.directory / f"{asset_id}.tmp"

    def exists(self, asset_id: str) -> bool:
        return self.path(asset_id).exists()

    def write(self, asset_id: str, source: Any) -> Path:
        """
        Stage `source`: raw bytes, a binary file object, a filesystem path,
        or an http(s) URL which is downloaded.
        """
        self.directory.mkdir(parents=True, exist_ok=True)
        dest = self.path(asset_id)

        if isinstance(source, (bytes, bytearray, memoryview)):
            dest.write_bytes(bytes(source))
        elif hasattr(source, "read"):
            with dest.open("wb") as out:
                shutil.copyfileobj(source, out)
        elif isinstance(source, str) and source.startswith(("http://", "https://")):
            self._download(source, dest)
        elif isinstance(source, (str, Path)):
            src = Path(source)
            if not src.is_file():
                raise ValidationError(f"input file does not exist: {src}")
            shutil.copyfile(src, dest)
        else:
            raise ValidationError(f"unsupported input type: {type(source).__name__}")

        logger.debug("staged %s (%d bytes)", dest, dest.stat().st_size)
        return dest

    def read(self, asset_id: str) -> bytes:
        return self.path(asset_id).read_bytes()

    def delete(self, asset_id: str) -> None:
        # Already-absent files are fine: cleanup may run twice.
        self.path(asset_id).unlink(missing_ok=True)

    def _download(self, url: str, dest: Path) -> None:
        resp = requests.get(url, timeout=DOWNLOAD_TIMEOUT, stream=True)
        resp.raise_for_status()

        with dest.open("wb") as out:
            for chunk in resp.iter_content(chunk_size=8192):
                if chunk:
                    out.write(chunk)
