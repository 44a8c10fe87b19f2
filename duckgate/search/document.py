"""Parsed-document capability used by the page extractors."""

from __future__ import annotations

from typing import Protocol

from bs4 import BeautifulSoup, Tag


class Node(Protocol):
    """An element of a parsed document."""

    def attr(self, name: str, default: str = "") -> str: ...

    def text(self) -> str: ...

    def select(self, selector: str) -> list["Node"]: ...

    def select_one(self, selector: str) -> "Node | None": ...


class Document(Node, Protocol):
    """A parsed HTML document queried with CSS selectors, in document order."""


class SoupNode:
    """``Node`` backed by a BeautifulSoup tag."""

    __slots__ = ("_tag",)

    def __init__(self, tag: Tag):
        self._tag = tag

    def attr(self, name: str, default: str = "") -> str:
        value = self._tag.get(name)
        if value is None:
            return default
        if isinstance(value, list):
            return " ".join(value)
        return str(value)

    def text(self) -> str:
        return " ".join(self._tag.get_text(" ", strip=True).split())

    def select(self, selector: str) -> list[SoupNode]:
        return [SoupNode(tag) for tag in self._tag.select(selector)]

    def select_one(self, selector: str) -> SoupNode | None:
        tag = self._tag.select_one(selector)
        return SoupNode(tag) if tag is not None else None


class SoupDocument(SoupNode):
    """``Document`` backed by BeautifulSoup's ``html.parser``."""

    __slots__ = ()

    def __init__(self, html: str):
        super().__init__(BeautifulSoup(html or "", "html.parser"))


def parse_document(html: str) -> SoupDocument:
    return SoupDocument(html)
