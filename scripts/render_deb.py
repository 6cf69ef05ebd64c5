#!/usr/bin/env python3
# scripts/render_deb.py
from __future__ import annotations
import argparse, json, os, sys
from pathlib import Path

from debinfo.errors import InspectionError
from debinfo.models.archive import Mount
from debinfo.services.control import parse_info
from debinfo.services.inspector import DpkgDebInspector, inspect_archive
from debinfo.services.pages import page_json
from debinfo.services.render import render_document

def main():
    ap = argparse.ArgumentParser("Inspect one .deb/.udeb and print its package page")
    ap.add_argument("archive", help="Path to a .deb or .udeb file")
    ap.add_argument("--url-prefix", default="", help="Public URL prefix of the page")
    ap.add_argument("--tool", default=os.getenv("INSPECT_TOOL", "dpkg-deb"))
    ap.add_argument("--timeout", type=float, default=float(os.getenv("INSPECT_TIMEOUT", "30")))
    ap.add_argument("--json", action="store_true", help="Print page metadata and blocks as JSON")
    a = ap.parse_args()

    archive = Path(a.archive).resolve()
    if not archive.is_file():
        print(f"❌ Archive not found: {archive}")
        return 2

    mount = Mount(path=archive.parent, url_prefix=a.url_prefix)
    inspector = DpkgDebInspector(tool=a.tool, timeout=a.timeout)
    try:
        record = inspect_archive(inspector, mount, archive.name, archive)
    except InspectionError as e:
        print(f"❌ {e}")
        return 5

    for w in parse_info(record.raw_info).warnings:
        print(f"⚠ {w.field}: {w.message}", file=sys.stderr)

    page = render_document(record)
    if a.json:
        print(json.dumps(page_json(page), indent=2))
    else:
        print(page.source)
    return 0

if __name__ == "__main__":
    sys.exit(main())
