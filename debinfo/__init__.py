# SPDX-License-Identifier: Apache-2.0
"""
debinfo

Browsable, searchable pages for directories of Debian package archives.
Exposes nothing at import-time beyond package markers to keep startup fast.
"""
from __future__ import annotations

__all__ = []
