#!/usr/bin/env python3
import re
import urllib.parse as urlparse
from typing import List, Optional, Set, Tuple

from type_document import SoupNode, StructuredNode
from type_models import MalformedReferenceError, PropertyRecord, StructuralParseError, TypeRecord

INDEX_LINK_SELECTOR = "td.tc a[href]"
TITLE_SELECTOR = "h1.page-title"
SUPERTYPE_HEAD_SELECTOR = "thead.supertype"
SUPERTYPE_BODY_SELECTOR = "tbody.supertype"
SUPERTYPE_NAME_SELECTOR = "th.supertype-name a"
DESCRIPTION_STOP_TAGS = {"div", "table", "h3"}
INSTANCES_HEADING = re.compile(r"instances\s+of", re.IGNORECASE)
TYPE_SEPARATOR = " or "

_WS_RE = re.compile(r"\s+")
# en dash, figure dash, horizontal bar, minus sign and friends
_DASH_RE = re.compile("[‐‑‒–―−﹘﹣－]")


def normalize_text(text: str) -> str:
	if not text:
		return ""
	text = text.replace("—", " - ")
	text = _DASH_RE.sub("-", text)
	return _WS_RE.sub(" ", text).strip()


def is_navigable_link(href: str) -> bool:
	if not href:
		return False
	if href.startswith("mailto:") or href.startswith("tel:"):
		return False
	if href.startswith("javascript:"):
		return False
	return True


def resolve_link(base: str, href: str) -> Optional[str]:
	"""Resolve an href against the page it came from, dropping any fragment.

	Returns None for well-formed links that do not point at an http(s) page.
	"""
	try:
		joined = urlparse.urljoin(base, href.strip())
		parsed = urlparse.urlparse(joined)
		# .port validates the authority section as a side effect
		parsed.port
	except ValueError as exc:
		raise MalformedReferenceError(href, exc) from exc
	if parsed.scheme not in ("http", "https"):
		return None
	if not parsed.netloc:
		raise MalformedReferenceError(href, "http(s) URL without a host")
	return parsed._replace(fragment="").geturl()


def extract_links(html: str, index_url: str) -> Set[str]:
	soup = SoupNode.parse(html, "html5lib")
	links: Set[str] = set()
	for a in soup.select(INDEX_LINK_SELECTOR):
		href = a.attr("href")
		if not is_navigable_link(href):
			continue
		link = resolve_link(index_url, href)
		if link:
			links.add(link)
	return links


def _anchor_texts(node: StructuredNode, path: str) -> List[str]:
	texts = []
	for a in node.select(path):
		t = normalize_text(a.text())
		if t:
			texts.append(t)
	return texts


def parse_ancestors(doc: StructuredNode) -> Tuple[str, ...]:
	title = doc.select_one(TITLE_SELECTOR)
	if title is None:
		raise StructuralParseError("Page has no title heading")
	crumbs = _anchor_texts(title, "a")
	if not crumbs:
		raise StructuralParseError("Title heading has no breadcrumb links")
	return tuple(crumbs)


def parse_description(doc: StructuredNode) -> str:
	title = doc.select_one(TITLE_SELECTOR)
	if title is None:
		return ""
	parts: List[str] = []
	for sib in title.following_siblings():
		if sib.tag in DESCRIPTION_STOP_TAGS:
			break
		parts.append(sib.text())
	return normalize_text(" ".join(parts))


def parse_related_vocabularies(doc: StructuredNode, name: str) -> Tuple[str, ...]:
	seen = set()
	related: List[str] = []
	for head in doc.select(SUPERTYPE_HEAD_SELECTOR):
		for text in _anchor_texts(head, SUPERTYPE_NAME_SELECTOR):
			if text == name or text in seen:
				continue
			seen.add(text)
			related.append(text)
	return tuple(related)


def parse_property_row(row: StructuredNode) -> Optional[PropertyRecord]:
	name_cell = row.select_one("th.prop-nam")
	if name_cell is None:
		return None
	name = normalize_text(name_cell.text())
	if not name:
		return None
	types_cell = row.select_one("td.prop-ect")
	types: Tuple[str, ...] = ()
	if types_cell is not None:
		types = tuple(
			t.strip() for t in normalize_text(types_cell.text()).split(TYPE_SEPARATOR) if t.strip()
		)
	desc_cell = row.select_one("td.prop-desc")
	description = normalize_text(desc_cell.text()) if desc_cell is not None else ""
	return PropertyRecord(name=name, types=types, description=description)


def parse_properties(doc: StructuredNode, name: str) -> Tuple[PropertyRecord, ...]:
	heads = doc.select(SUPERTYPE_HEAD_SELECTOR)
	bodies = doc.select(SUPERTYPE_BODY_SELECTOR)
	if not heads or not bodies:
		return ()
	owners = _anchor_texts(heads[-1], SUPERTYPE_NAME_SELECTOR)
	# the last block belongs to an ancestor when the type declares nothing itself
	if not owners or owners[-1] != name:
		return ()
	props: List[PropertyRecord] = []
	for row in bodies[-1].select("tr"):
		prop = parse_property_row(row)
		if prop is not None:
			props.append(prop)
	return tuple(props)


def parse_instances(doc: StructuredNode) -> Tuple[str, ...]:
	headings = doc.select("h3")
	if not headings or not INSTANCES_HEADING.search(headings[-1].text()):
		return ()
	lists = doc.select("ul")
	if not lists:
		return ()
	return tuple(_anchor_texts(lists[-1], "li a"))


def parse_type_page(html: str) -> TypeRecord:
	doc = SoupNode.parse(html, "lxml")
	ancestors = parse_ancestors(doc)
	name = ancestors[-1]
	return TypeRecord(
		ancestors=ancestors,
		description=parse_description(doc),
		related_vocabularies=parse_related_vocabularies(doc, name),
		properties=parse_properties(doc, name),
		instances=parse_instances(doc),
	)
