#!/usr/bin/env python3
from typing import Iterator, List, Optional

from bs4 import BeautifulSoup
from bs4.element import Comment, NavigableString, Tag


class StructuredNode:
	"""Minimal queryable document contract used by the page parsers.

	Implementations wrap a concrete HTML tree; parsers only ever talk to this
	interface so they do not depend on a particular parser library.
	"""

	@property
	def tag(self) -> Optional[str]:
		"""Lower-case element name, or None for bare text nodes."""
		raise NotImplementedError

	def select(self, path: str) -> List["StructuredNode"]:
		raise NotImplementedError

	def select_one(self, path: str) -> Optional["StructuredNode"]:
		found = self.select(path)
		return found[0] if found else None

	def text(self) -> str:
		raise NotImplementedError

	def attr(self, name: str) -> Optional[str]:
		raise NotImplementedError

	def following_siblings(self) -> Iterator["StructuredNode"]:
		raise NotImplementedError


class SoupNode(StructuredNode):
	def __init__(self, node) -> None:
		self._node = node

	@classmethod
	def parse(cls, html: str, parser: str = "lxml") -> "SoupNode":
		return cls(BeautifulSoup(html, parser))

	@property
	def tag(self) -> Optional[str]:
		if isinstance(self._node, Tag):
			return self._node.name.lower()
		return None

	def select(self, path: str) -> List[StructuredNode]:
		if not isinstance(self._node, Tag):
			return []
		return [SoupNode(n) for n in self._node.select(path)]

	def text(self) -> str:
		if isinstance(self._node, NavigableString):
			return str(self._node)
		return self._node.get_text()

	def attr(self, name: str) -> Optional[str]:
		if not isinstance(self._node, Tag):
			return None
		value = self._node.get(name)
		# multi-valued attributes (class, rel) come back as lists
		if isinstance(value, list):
			return " ".join(value)
		return value

	def following_siblings(self) -> Iterator[StructuredNode]:
		for sib in self._node.next_siblings:
			if isinstance(sib, Comment):
				continue
			yield SoupNode(sib)
