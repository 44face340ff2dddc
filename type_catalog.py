#!/usr/bin/env python3
import argparse
import json
import os
import sys
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import requests
import yaml
from colorama import Fore, Style, init as colorama_init
from dotenv import load_dotenv

from type_models import (
	CatalogError,
	Classification,
	FetchError,
	OutputFormat,
	PropertyRecord,
	StructuralParseError,
	TypeRecord,
	classify,
)
from type_parser import extract_links, parse_type_page

# Colored log lines go to stderr; stdout is reserved for the catalog itself
# Callbacks are per thread so concurrent API jobs only see their own progress
_progress = threading.local()

def get_progress_callback():
	return getattr(_progress, "callback", None)

def set_progress_callback(callback):
	"""Set a callback function to receive progress updates."""
	_progress.callback = callback

def log_info(message: str) -> None:
	print(Fore.CYAN + "[INFO] " + Style.RESET_ALL + f"{message}", file=sys.stderr)
	callback = get_progress_callback()
	if callback:
		callback("info", message)


def log_warn(message: str) -> None:
	print(Fore.YELLOW + "[WARN] " + Style.RESET_ALL + f"{message}", file=sys.stderr)
	callback = get_progress_callback()
	if callback:
		callback("warn", message)


def log_error(message: str) -> None:
	print(Fore.RED + "[ERROR] " + Style.RESET_ALL + f"{message}", file=sys.stderr)
	callback = get_progress_callback()
	if callback:
		callback("error", message)


INDEX_URL_DEFAULT = "https://schema.org/docs/full.html"

USER_AGENT_DEFAULT = (
	"Schema-Type-Catalog/1.0 (+https://github.com/) "
	"Contact: webmaster@example.com"
)

CONFIG_DIR = os.path.expanduser("~/.schema_catalog")
CONFIG_FILE = os.path.join(CONFIG_DIR, "config.json")
PROJECT_CONFIG_FILE = "catalog_config.json"


@dataclass(frozen=True)
class CatalogConfig:
	index_url: str = INDEX_URL_DEFAULT
	output_format: OutputFormat = OutputFormat.JSON
	classification: Classification = Classification.VOCABULARY_TYPE
	timeout: int = 20
	rate_limit: float = 0.0
	user_agent: str = USER_AGENT_DEFAULT


Fetcher = Callable[[str], str]


def fetch_text(
	url: str,
	session: requests.Session,
	timeout: int,
	rate_limit: float,
) -> str:
	try:
		resp = session.get(url, timeout=timeout)
	except requests.RequestException as exc:
		raise FetchError(url, exc) from exc
	finally:
		if rate_limit > 0:
			time.sleep(rate_limit)
	if resp.status_code >= 400:
		raise FetchError(url, f"HTTP {resp.status_code}")
	# Improve encoding handling to avoid garbled characters
	if not resp.encoding or resp.encoding.lower() == "iso-8859-1":
		resp.encoding = resp.apparent_encoding or "utf-8"
	return resp.text


def make_fetcher(config: CatalogConfig, session: Optional[requests.Session] = None) -> Fetcher:
	if session is None:
		session = requests.Session()
	session.headers.update({"User-Agent": config.user_agent})

	def fetch(url: str) -> str:
		return fetch_text(url, session, config.timeout, config.rate_limit)

	return fetch


def dedupe_by_name(pages: Iterable[Tuple[str, TypeRecord]]) -> List[TypeRecord]:
	"""Keep the first record seen for every name; later duplicates are reported and dropped."""
	kept: Dict[str, Tuple[str, TypeRecord]] = {}
	for url, rec in pages:
		if rec.name in kept:
			log_warn(f"Duplicate type {rec.name}: keeping {kept[rec.name][0]}, dropping {url}")
			continue
		kept[rec.name] = (url, rec)
	return [rec for _, rec in kept.values()]


def build_catalog(
	config: CatalogConfig,
	fetch: Optional[Fetcher] = None,
	progress_callback: Optional[Callable[[str, str], None]] = None,
) -> List[TypeRecord]:
	previous = get_progress_callback()
	if progress_callback:
		set_progress_callback(progress_callback)
	try:
		return _build(config, fetch if fetch is not None else make_fetcher(config))
	finally:
		set_progress_callback(previous)


def _build(config: CatalogConfig, fetch: Fetcher) -> List[TypeRecord]:
	log_info(f"Index: {config.index_url}")
	index_html = fetch(config.index_url)
	urls = sorted(extract_links(index_html, config.index_url))
	log_info(f"Found {len(urls)} type pages")

	matched: List[Tuple[str, TypeRecord]] = []
	for i, url in enumerate(urls, 1):
		html = fetch(url)
		try:
			record = parse_type_page(html)
		except StructuralParseError as exc:
			raise exc.with_url(url) from exc
		if classify(record) != config.classification:
			continue
		matched.append((url, record))
		log_info(f"✓ [{i}/{len(urls)}] {record.name}")

	catalog = sorted(dedupe_by_name(matched))
	log_info(f"Catalog holds {len(catalog)} {config.classification.value}")
	return catalog


def record_to_dict(record: TypeRecord) -> Dict[str, Any]:
	d: Dict[str, Any] = {"name": record.name, "description": record.description}
	if len(record.ancestors) > 1:
		d["ancestors"] = list(record.ancestors[:-1])
	if record.related_vocabularies:
		d["vocabularies"] = list(record.related_vocabularies)
	if record.properties:
		d["properties"] = [
			{"name": p.name, "types": list(p.types), "description": p.description}
			for p in record.properties
		]
	if record.instances:
		d["instances"] = list(record.instances)
	return d


def record_from_dict(d: Dict[str, Any]) -> TypeRecord:
	return TypeRecord(
		ancestors=tuple(d.get("ancestors") or ()) + (d["name"],),
		description=d.get("description") or "",
		related_vocabularies=tuple(d.get("vocabularies") or ()),
		properties=tuple(
			PropertyRecord(
				name=p["name"],
				types=tuple(p.get("types") or ()),
				description=p.get("description") or "",
			)
			for p in d.get("properties") or ()
		),
		instances=tuple(d.get("instances") or ()),
	)


def serialize(records: Iterable[TypeRecord], output_format: OutputFormat) -> str:
	data = [record_to_dict(r) for r in records]
	if output_format is OutputFormat.YAML:
		return yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)
	return json.dumps(data, ensure_ascii=False, indent=2) + "\n"


def deserialize(text: str, output_format: OutputFormat) -> List[TypeRecord]:
	if output_format is OutputFormat.YAML:
		data = yaml.safe_load(text)
	else:
		data = json.loads(text)
	return [record_from_dict(d) for d in data or []]


def read_json(path: str) -> Dict:
	try:
		with open(path, "r", encoding="utf-8") as f:
			data = json.load(f)
	except (OSError, ValueError):
		return {}
	return data if isinstance(data, dict) else {}


def resolve_config(args: argparse.Namespace) -> CatalogConfig:
	"""Merge flags, environment and config files into one immutable config.

	Precedence: command line, then environment (``.env`` is loaded first), then
	the project config JSON, then the per-user config JSON, then defaults.
	"""
	project_cfg = read_json(args.config or PROJECT_CONFIG_FILE)
	user_cfg = read_json(CONFIG_FILE)

	def pick(flag, env_name: str, key: str, default):
		if flag is not None:
			return flag
		if os.environ.get(env_name):
			return os.environ[env_name]
		for cfg in (project_cfg, user_cfg):
			if cfg.get(key) is not None:
				return cfg[key]
		return default

	return CatalogConfig(
		index_url=pick(args.index_url, "CATALOG_INDEX_URL", "index_url", INDEX_URL_DEFAULT),
		output_format=OutputFormat(args.format),
		classification=Classification(args.catalog),
		timeout=int(pick(args.timeout, "CATALOG_TIMEOUT", "timeout", 20)),
		rate_limit=float(pick(args.rate_limit, "CATALOG_RATE_LIMIT", "rate_limit", 0.0)),
		user_agent=pick(args.user_agent, "CATALOG_USER_AGENT", "user_agent", USER_AGENT_DEFAULT),
	)


def build_arg_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(description="Extract the schema.org type catalog as JSON or YAML.")
	parser.add_argument(
		"--format", choices=[f.value for f in OutputFormat], default=OutputFormat.JSON.value,
		help="Output encoding (default: json)",
	)
	parser.add_argument(
		"--catalog", choices=[c.value for c in Classification], default=Classification.VOCABULARY_TYPE.value,
		help="Which types to emit (default: vocabularies)",
	)
	parser.add_argument("--index-url", help=f"Type index page (default: {INDEX_URL_DEFAULT})")
	parser.add_argument("--output", help="Write the catalog to this file instead of stdout")
	parser.add_argument("--timeout", type=int, help="Per-request timeout in seconds (default: 20)")
	parser.add_argument("--rate-limit", type=float, help="Seconds to sleep between requests (default: 0)")
	parser.add_argument("--user-agent", help="Custom User-Agent header")
	parser.add_argument("--config", help=f"Path to project config JSON (default: {PROJECT_CONFIG_FILE})")
	return parser


def main(argv: Optional[List[str]] = None) -> int:
	args = build_arg_parser().parse_args(argv)

	colorama_init()
	load_dotenv()
	config = resolve_config(args)

	try:
		catalog = build_catalog(config)
	except CatalogError as exc:
		log_error(str(exc))
		return 1

	text = serialize(catalog, config.output_format)
	if args.output:
		with open(args.output, "w", encoding="utf-8") as f:
			f.write(text)
		log_info(f"Wrote {len(catalog)} records: {args.output}")
	else:
		sys.stdout.write(text)
	return 0


if __name__ == "__main__":
	sys.exit(main())
