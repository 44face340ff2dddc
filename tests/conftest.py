from pathlib import Path

import pytest

from type_models import FetchError

INDEX_URL = "https://schema.org/docs/full.html"

PAGES = {
	INDEX_URL: "index.html",
	"https://schema.org/Thing": "thing.html",
	"https://schema.org/CreativeWork": "creativework.html",
	"https://schema.org/Book": "book.html",
	"https://schema.org/Number": "number.html",
	"https://schema.org/Boolean": "boolean.html",
}


def read_fixture(name: str) -> str:
	p = Path(__file__).parent / "fixtures" / name
	return p.read_text(encoding="utf-8")


class FakeFetcher:
	"""Serves fixture pages by URL and records every request."""

	def __init__(self, pages=None):
		if pages is None:
			pages = {url: read_fixture(name) for url, name in PAGES.items()}
		self.pages = dict(pages)
		self.requested = []

	def __call__(self, url: str) -> str:
		self.requested.append(url)
		if url not in self.pages:
			raise FetchError(url, "HTTP 404")
		return self.pages[url]


@pytest.fixture
def fetcher():
	return FakeFetcher()
