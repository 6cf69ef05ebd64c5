# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

# Synthetic keys written by the parser next to the literal control fields.
MAINTAINER_NAME = "MaintainerName"
MAINTAINER_MAIL = "MaintainerMail"
SUMMARY = "Description"
LONG_DESCRIPTION = "LongDescription"


class ParseWarning(BaseModel):
    """
    Non-fatal parse problem: the named field is left out of the record.
    """
    field: str
    message: str


class ParsedControl(BaseModel):
    """
    Control fields of one `dpkg-deb --info` report.

    `order` keeps each key at the position it was first seen; `index` holds
    the last value seen for it, plus the synthetic keys.
    """
    order: List[str] = Field(default_factory=list)
    index: Dict[str, str] = Field(default_factory=dict)
    lines: List[str] = Field(default_factory=list)
    paragraphs: List[str] = Field(default_factory=list)
    warnings: List[ParseWarning] = Field(default_factory=list)

    @property
    def fields(self) -> List[Tuple[str, str]]:
        return [(key, self.index[key]) for key in self.order if key in self.index]

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.index.get(key, default)

    @property
    def package(self) -> str:
        return self.index.get("Package", "")

    @property
    def version(self) -> str:
        return self.index.get("Version", "")

    @property
    def maintainer_name(self) -> Optional[str]:
        return self.index.get(MAINTAINER_NAME)

    @property
    def maintainer_email(self) -> Optional[str]:
        return self.index.get(MAINTAINER_MAIL)

    @property
    def summary(self) -> str:
        return self.index.get(SUMMARY, "")

    @property
    def long_description(self) -> str:
        return self.index.get(LONG_DESCRIPTION, "")
