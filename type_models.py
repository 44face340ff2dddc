#!/usr/bin/env python3
import enum
from dataclasses import dataclass, field
from functools import total_ordering
from typing import Optional, Tuple

DATATYPE_ROOT = "DataType"


class CatalogError(Exception):
	"""Base class for every failure that aborts a catalog run."""


class FetchError(CatalogError):
	def __init__(self, url: str, cause: object) -> None:
		self.url = url
		self.cause = cause
		super().__init__(f"Failed to fetch {url}: {cause}")


class MalformedReferenceError(CatalogError):
	def __init__(self, href: str, cause: object) -> None:
		self.href = href
		self.cause = cause
		super().__init__(f"Cannot resolve link {href!r}: {cause}")


class StructuralParseError(CatalogError):
	def __init__(self, message: str, url: Optional[str] = None) -> None:
		self.message = message
		self.url = url
		super().__init__(f"{message} ({url})" if url else message)

	def with_url(self, url: str) -> "StructuralParseError":
		return StructuralParseError(self.message, url)


class Classification(enum.Enum):
	DATATYPE = "datatypes"
	VOCABULARY_TYPE = "vocabularies"


class OutputFormat(enum.Enum):
	JSON = "json"
	YAML = "yaml"


@dataclass(frozen=True)
class PropertyRecord:
	name: str
	types: Tuple[str, ...] = ()
	description: str = ""


@total_ordering
@dataclass(frozen=True, eq=False)
class TypeRecord:
	"""One parsed type page.

	The record's identity is its name, the last entry of the breadcrumb chain.
	Equality, hashing and ordering all go through that name only.
	"""

	ancestors: Tuple[str, ...]
	description: str = ""
	related_vocabularies: Tuple[str, ...] = ()
	properties: Tuple[PropertyRecord, ...] = ()
	instances: Tuple[str, ...] = ()
	name: str = field(init=False)

	def __post_init__(self) -> None:
		if not self.ancestors or not self.ancestors[-1]:
			raise StructuralParseError("Type record needs a non-empty ancestry chain")
		# frozen dataclass: derived field has to be set through object.__setattr__
		object.__setattr__(self, "name", self.ancestors[-1])

	def __eq__(self, other: object) -> bool:
		if not isinstance(other, TypeRecord):
			return NotImplemented
		return self.name == other.name

	def __lt__(self, other: "TypeRecord") -> bool:
		if not isinstance(other, TypeRecord):
			return NotImplemented
		return self.name < other.name

	def __hash__(self) -> int:
		return hash(self.name)


def classify(record: TypeRecord) -> Classification:
	if DATATYPE_ROOT in record.ancestors:
		return Classification.DATATYPE
	return Classification.VOCABULARY_TYPE
