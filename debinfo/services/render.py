# SPDX-License-Identifier: Apache-2.0
"""
Turn an inspected archive into a structured package page.

The page source is a `+++` front-matter block followed by a JSON array of
typed blocks (header, sidebar with the field table, package summary, and
the two raw reports as code). No I/O happens here.
"""
from __future__ import annotations

import hashlib
import json
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..errors import RenderError
from ..models.archive import ArchiveRecord, PageDocument, utcnow
from ..models.control import MAINTAINER_MAIL, MAINTAINER_NAME, ParsedControl
from .control import parse_info

PAGE_FORMAT = "njn"
MISSING = "(missing)"
CODE_HEADER = "dpkg-deb --info --contents"

Node = Any
FieldRenderer = Callable[[str, ParsedControl], Node]


def escape_text(value: str) -> str:
    """
    Escape text for a double-quoted value: backslashes, quotes, CR and LF.
    """
    return (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\r", "\\r")
        .replace("\n", "\\n")
    )


# ------------------------------ Field table ------------------------------


def _plain(value: str, parsed: ParsedControl) -> Node:
    return value


def _homepage(value: str, parsed: ParsedControl) -> Node:
    return {"type": "a", "href": value, "text": [value], "target": "_blank"}


def _maintainer(value: str, parsed: ParsedControl) -> Node:
    mail = parsed.maintainer_email
    if mail is None:
        return MISSING
    return {"type": "a", "href": f"mailto:{mail}", "text": [parsed.maintainer_name or mail]}


FIELD_RENDERERS: Dict[str, FieldRenderer] = {
    "Homepage": _homepage,
    "Maintainer": _maintainer,
}

EXCLUDED_FIELDS = frozenset({MAINTAINER_NAME, MAINTAINER_MAIL, "Installed-Size"})


def field_rows(parsed: ParsedControl) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    for key, value in parsed.fields:
        if key in EXCLUDED_FIELDS:
            continue
        render = FIELD_RENDERERS.get(key, _plain)
        rows.append(
            {
                "type": "tr",
                "data": [
                    {"type": "td", "text": [{"type": "b", "text": [key]}]},
                    {"type": "td", "text": [render(value, parsed)]},
                ],
            }
        )
    return rows


def field_table(parsed: ParsedControl) -> Dict[str, Any]:
    return {"type": "table", "body": field_rows(parsed)}


# ------------------------------ Page blocks ------------------------------


def description_blocks(parsed: ParsedControl) -> List[Dict[str, Any]]:
    return [{"type": "p", "text": [p]} for p in parsed.paragraphs]


def code_block(report: str) -> Dict[str, Any]:
    return {"type": "code", "code": report.split("\n")}


def page_body(name: str, parsed: ParsedControl, raw_info: str, raw_contents: str) -> List[Dict[str, Any]]:
    return [
        {
            "type": "header",
            "tag": "main-header",
            "profile": "outer--inner",
            "padding": "top",
            "margins": "bottom",
            "content": {"header": [name]},
        },
        {
            "tag": "main-sidebar",
            "type": "sidebar",
            "profile": "full--outer",
            "padding": "none",
            "margins": "bottom",
            "side": "right",
            "sticky": "true",
            "stack": "top",
            "jump-top": "true",
            "jump-link": "true",
            "content": {
                "aside": [
                    {
                        "tag": "deb-fields",
                        "type": "content",
                        "profile": "full--full",
                        "content": {"section": [field_table(parsed)]},
                    }
                ],
                "blocks": [
                    {
                        "type": "content",
                        "tag": "package-summary",
                        "profile": "outer--inner",
                        "padding": "both",
                        "margins": "both",
                        "jump-top": "true",
                        "jump-link": "true",
                        "content": {
                            "header": [parsed.summary],
                            "section": description_blocks(parsed),
                        },
                    },
                    {
                        "type": "content",
                        "tag": "dpkg-deb--info--contents",
                        "profile": "outer--inner",
                        "padding": "both",
                        "margins": "both",
                        "jump-top": "true",
                        "jump-link": "true",
                        "content": {
                            "header": [CODE_HEADER],
                            "section": [code_block(raw_info), code_block(raw_contents)],
                        },
                    },
                ],
            },
        },
    ]


def front_matter(matter: Mapping[str, str]) -> str:
    lines = ["+++"]
    lines.extend(f'"{escape_text(k)}" = "{escape_text(v)}"' for k, v in matter.items())
    lines.append("+++")
    return "\n".join(lines)


def page_source(matter: Mapping[str, str], body: List[Dict[str, Any]]) -> str:
    return front_matter(matter) + "\n" + json.dumps(body, indent=4, ensure_ascii=False)


def split_page_source(source: str) -> tuple[str, str]:
    """Return (front matter text, body text) of a page source."""
    head, sep, rest = source.partition("+++\n")
    if head or not sep:
        raise ValueError("page source must start with a +++ front-matter block")
    matter, sep, body = rest.partition("\n+++\n")
    if not sep:
        raise ValueError("unterminated front-matter block")
    return matter, body


def render_document(
    record: ArchiveRecord,
    language: str = "en",
    context: Optional[Mapping[str, Any]] = None,
    now: Optional[datetime] = None,
) -> PageDocument:
    """
    Render one archive into a PageDocument. Same record, same source.
    """
    name = record.base_name
    url = record.public_url
    parsed = parse_info(record.raw_info)
    matter = {
        "title": name,
        "description": f"Debian package details for {name}",
        "url": url,
        "format": PAGE_FORMAT,
        "language": language,
    }
    created = now or utcnow()
    try:
        body = page_body(name, parsed, record.raw_info, record.raw_contents)
        source = page_source(matter, body)
        # undecodable file names surface here as lone surrogates
        shasum = hashlib.sha256(source.encode("utf-8")).hexdigest()[:10]
        return PageDocument(
            title=matter["title"],
            description=matter["description"],
            url=url,
            language=language,
            source_path=record.source_path,
            body=body,
            source=source,
            shasum=shasum,
            created_at=created,
            updated_at=created,
            context=dict(context or {}),
        )
    except (TypeError, ValueError) as e:
        raise RenderError(str(record.source_path), e) from e
