# SPDX-License-Identifier: Apache-2.0
"""
Archive inspection through the external `dpkg-deb` tool.

The Inspector protocol is the seam between the catalog and the process
runner; tests substitute an object returning canned reports.
"""
from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Protocol

from ..errors import InspectionError
from ..models.archive import ArchiveRecord, Mount

log = logging.getLogger("debinfo.services.inspector")

INFO = "info"
CONTENTS = "contents"
MODES = (INFO, CONTENTS)


class Inspector(Protocol):
    def inspect(self, path: Path, mode: str) -> str:
        """Return the report for `path` in `mode` ("info" or "contents")."""
        ...


class DpkgDebInspector:
    """
    Runs `<tool> --<mode> <path>` and returns its standard output.
    """

    def __init__(self, tool: str = "dpkg-deb", timeout: float = 30.0) -> None:
        self.tool = tool
        self.timeout = timeout

    def available(self) -> bool:
        return shutil.which(self.tool) is not None

    def inspect(self, path: Path, mode: str) -> str:
        if mode not in MODES:
            raise ValueError(f"unsupported inspection mode: {mode!r}")
        cmd = [self.tool, f"--{mode}", str(path)]
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
                check=True,
            )
        except subprocess.TimeoutExpired:
            raise InspectionError(str(path), mode, f"timeout after {self.timeout}s") from None
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or "").strip() or f"exit status {e.returncode}"
            raise InspectionError(str(path), mode, detail) from e
        except OSError as e:
            raise InspectionError(str(path), mode, e) from e
        return proc.stdout


def inspect_archive(inspector: Inspector, mount: Mount, relative_file: str, source_path: Path) -> ArchiveRecord:
    """
    Capture both reports for one archive. The first failure aborts this archive.
    """
    raw_info = inspector.inspect(source_path, INFO)
    raw_contents = inspector.inspect(source_path, CONTENTS)
    log.debug("inspected archive: %s", source_path)
    return ArchiveRecord(
        source_path=source_path,
        relative_file=relative_file,
        mount=mount,
        raw_info=raw_info,
        raw_contents=raw_contents,
    )
