"""Caller-facing export models.

Field names are snake_case in Python; the UI posts camelCase, so every model
accepts both spellings and serialises with the camelCase alias.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

Orientation = Literal["portrait", "landscape"]
PageStatus = Literal["ok", "warning", "critical", "info"]
FooterMode = Literal["all", "content_only", "none"]


class _ExportModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class PageSpec(_ExportModel):
    """One exportable unit: an element in the rendered document plus display metadata."""

    element_id: str = Field(min_length=1)
    title: str
    orientation: Orientation = "portrait"
    status: PageStatus | None = None
    threshold: str | None = None
    subtitle: str | None = None


class ExportOptions(_ExportModel):
    """Chrome settings for package exports."""

    show_header: bool = True
    show_footer: bool = True
    header_text: str | None = None
    footer_text: str | None = None
    data_as_of: str | None = None
    include_audit_appendix: bool = False
    footer_mode: FooterMode = "all"

    def footer_on_cover(self) -> bool:
        return self.show_footer and self.footer_mode == "all"

    def footer_on_content(self) -> bool:
        return self.show_footer and self.footer_mode != "none"


class CoverSpec(_ExportModel):
    title: str
    subtitle: str | None = None
    author: str | None = None
    logo_url: str | None = None
    theme_color: str | None = None


class SqlSource(_ExportModel):
    source: str
    sql: str


class AuditMetadata(_ExportModel):
    pack_name: str | None = None
    generated_at: str | None = None
    data_as_of: str | None = None
    sql_sources: list[SqlSource] = Field(default_factory=list)


class RenderSource(_ExportModel):
    """Where the rendered dashboard comes from: a URL to open or raw markup."""

    url: str | None = None
    html: str | None = None

    @model_validator(mode="after")
    def _exactly_one(self) -> RenderSource:
        if bool(self.url) == bool(self.html):
            raise ValueError("Provide exactly one of 'url' or 'html'")
        return self


class PackageExportRequest(_ExportModel):
    source: RenderSource
    filename: str = "report-package"
    pages: list[PageSpec] = Field(default_factory=list)
    cover: CoverSpec | None = None
    options: ExportOptions = Field(default_factory=ExportOptions)
    audit: AuditMetadata | None = None


class SingleExportRequest(_ExportModel):
    source: RenderSource
    element_id: str = Field(min_length=1)
    filename: str = "export"
    orientation: Orientation = "landscape"
