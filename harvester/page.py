"""Read-only page handle used by the HTML side of the core.

The core never touches a parser directly; it goes through the small
:class:`PageHandle` capability so the same heuristics can run against any
DOM that supports CSS selectors.  :class:`SoupPage` is the BeautifulSoup
implementation used by the fetcher and the tests.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from bs4 import BeautifulSoup
from bs4.element import Tag


@runtime_checkable
class PageHandle(Protocol):
    """Minimal DOM capability.

    ``root`` scopes a query to an element previously returned by the handle;
    ``None`` means the whole document.
    """

    url: str

    def query(self, selector: str, root: Any = None) -> Any | None: ...

    def query_all(self, selector: str, root: Any = None) -> list[Any]: ...

    def text_content(self, handle: Any) -> str: ...

    def attribute(self, handle: Any, name: str) -> str | None: ...

    def class_list(self, handle: Any) -> frozenset[str]: ...


class SoupPage:
    """:class:`PageHandle` over a parsed BeautifulSoup document."""

    def __init__(self, html: str, url: str = "", parser: str = "html.parser") -> None:
        self.url = url
        self.soup = BeautifulSoup(html or "", parser)

    def _root(self, root: Any) -> Tag:
        return self.soup if root is None else root

    def query(self, selector: str, root: Any = None) -> Tag | None:
        return self._root(root).select_one(selector)

    def query_all(self, selector: str, root: Any = None) -> list[Tag]:
        return list(self._root(root).select(selector))

    def text_content(self, handle: Any) -> str:
        if handle is None:
            return ""
        return handle.get_text()

    def attribute(self, handle: Any, name: str) -> str | None:
        if handle is None:
            return None
        value = handle.get(name)
        # bs4 returns multi-valued attributes (class, rel, …) as lists
        if isinstance(value, list):
            return " ".join(value)
        return value

    def class_list(self, handle: Any) -> frozenset[str]:
        if handle is None:
            return frozenset()
        return frozenset(handle.get("class") or [])
