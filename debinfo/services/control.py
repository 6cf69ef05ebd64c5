# SPDX-License-Identifier: Apache-2.0
"""
Parse the control section of a `dpkg-deb --info` report.

Only what page rendering needs: `Key: value` lines, the maintainer's name
and address, and the one-line summary / long description split.
"""
from __future__ import annotations

import logging
import re
from typing import List

from ..models.control import (
    LONG_DESCRIPTION,
    MAINTAINER_MAIL,
    MAINTAINER_NAME,
    SUMMARY,
    ParsedControl,
    ParseWarning,
)

log = logging.getLogger("debinfo.services.control")

RX_INFO_LINE = re.compile(r"^\s*([-_a-zA-Z0-9]+?):\s*(.+?)\s*$")
RX_INFO_DESC = re.compile(r"^\s*Description:\s*(.+?)$(.+?)\Z", re.MULTILINE | re.DOTALL)
RX_NAME_EMAIL = re.compile(r"^\s*(.+?)\s*<([^>]+?)>\s*$")

PARAGRAPH_SEPARATOR = "."


def parse_info(output: str) -> ParsedControl:
    """
    Build a ParsedControl from the raw --info report.

    A key repeated later in the report keeps its first position in `order`
    but takes the later value.
    """
    parsed = ParsedControl(lines=output.split("\n"))

    for line in parsed.lines:
        m = RX_INFO_LINE.match(line)
        if not m:
            continue
        key, value = m.group(1), m.group(2).strip()
        if key not in parsed.index:
            parsed.order.append(key)
        parsed.index[key] = value

    maintainer = parsed.index.get("Maintainer")
    if maintainer is not None:
        m = RX_NAME_EMAIL.match(maintainer)
        if m:
            parsed.index[MAINTAINER_NAME] = m.group(1)
            parsed.index[MAINTAINER_MAIL] = m.group(2)
        else:
            _warn(parsed, "Maintainer", f"error parsing name and email: {maintainer}")

    m = RX_INFO_DESC.search(output)
    if m:
        parsed.index[SUMMARY] = m.group(1).strip()
        parsed.index[LONG_DESCRIPTION] = m.group(2)
        parsed.paragraphs = long_description_paragraphs(m.group(2))
    else:
        _warn(parsed, "Description", "error parsing long description from dpkg-deb --info output")

    return parsed


def long_description_paragraphs(text: str) -> List[str]:
    """
    Split a Debian long description into paragraphs.

    A line holding only "." separates paragraphs; the other lines of a
    paragraph are joined with single spaces.
    """
    paragraphs: List[str] = []
    current: List[str] = []
    for line in text.split("\n"):
        trimmed = line.strip()
        if trimmed == PARAGRAPH_SEPARATOR:
            paragraphs.append(" ".join(current))
            current = []
        elif trimmed:
            current.append(trimmed)
    if current:
        paragraphs.append(" ".join(current))

    while paragraphs and not paragraphs[0]:
        paragraphs.pop(0)
    while paragraphs and not paragraphs[-1]:
        paragraphs.pop()
    return paragraphs


def _warn(parsed: ParsedControl, field: str, message: str) -> None:
    parsed.warnings.append(ParseWarning(field=field, message=message))
    log.warning("%s (package=%s)", message, parsed.index.get("Package", "?"))
