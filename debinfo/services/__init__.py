# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import logging

__all__ = [
    "inspector",
    "control",
    "render",
    "catalog",
    "search_index",
    "pages",
]

# Lightweight, consistent logger for the service layer
log = logging.getLogger("debinfo.services")
