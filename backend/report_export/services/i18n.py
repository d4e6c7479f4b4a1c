"""Translation hook used for every piece of user-visible chrome text."""

from __future__ import annotations

from typing import Protocol

import structlog

logger = structlog.get_logger()


class Translator(Protocol):
    def __call__(self, key: str, fallback: str | None = None, **params: object) -> str: ...


DEFAULT_MESSAGES: dict[str, str] = {
    "reports.generated_on": "Generated on",
    "reports.data_as_of": "Data as of",
    "reports.author_prefix": "Author",
    "reports.audit_appendix_title": "Audit Appendix",
    "reports.pack_name": "Package",
    "reports.pages": "Pages",
    "reports.audit_sql_sources": "SQL Sources",
    "reports.export_failed": "Export failed.",
    "reports.nothing_to_export": "Nothing to export: '{element_id}' is not on the page.",
    "common.no_data": "No data",
}


class MessageCatalog:
    """Dictionary-backed translator.

    Lookup order is catalog, then ``fallback``, then the key itself.
    ``{name}`` placeholders are filled from ``params``.
    """

    def __init__(self, messages: dict[str, str] | None = None, locale: str = "en") -> None:
        self.locale = locale
        self._messages = dict(DEFAULT_MESSAGES)
        if messages:
            self._messages.update(messages)

    def __call__(self, key: str, fallback: str | None = None, **params: object) -> str:
        template = self._messages.get(key)
        if template is None:
            template = fallback if fallback is not None else key
        if not params:
            return template
        try:
            return template.format(**params)
        except (KeyError, IndexError, ValueError):
            logger.warning("Translation interpolation failed", key=key, locale=self.locale)
            return template


default_translator = MessageCatalog()
