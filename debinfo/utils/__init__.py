# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations
"""
Utility package for debinfo.
Exports:
- fs: path guards, request path cleanup, local filesystem listing
"""
from . import fs as fs  # re-export
__all__ = ["fs"]
