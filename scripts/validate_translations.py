#!/usr/bin/env python3
"""Validate translation catalogues against each other and the backend code."""

from __future__ import annotations

import argparse
import ast
import json
import re
import sys
from collections import defaultdict
from pathlib import Path

import yaml

REPO_ROOT = Path(__file__).resolve().parents[1]
TRANSLATIONS_DIR = REPO_ROOT / "src" / "gigtax" / "translations"
BACKEND_DIR = REPO_ROOT / "src" / "gigtax" / "backend"
CONFIG_DATA_DIR = BACKEND_DIR / "config" / "data"

PLACEHOLDER_PATTERN = re.compile(r"{{\s*([a-zA-Z0-9_.-]+)\s*}}")

Catalogues = dict[str, dict[str, dict[str, str]]]


class ValidationError(Exception):
    """Raised when the catalogues cannot be loaded at all."""


def _flatten_messages(tree: dict, prefix: str = "") -> dict[str, str]:
    items: dict[str, str] = {}
    for key, value in tree.items():
        path = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict):
            items.update(_flatten_messages(value, path))
        else:
            items[path] = "" if value is None else str(value)
    return items


def _load_catalogues() -> Catalogues:
    if not TRANSLATIONS_DIR.is_dir():
        raise ValidationError(f"Missing translations directory: {TRANSLATIONS_DIR}")

    catalogues: Catalogues = {}
    for path in sorted(TRANSLATIONS_DIR.glob("*.json")):
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)

        backend = payload.get("backend") if isinstance(payload, dict) else None
        frontend = payload.get("frontend") if isinstance(payload, dict) else None
        if not isinstance(backend, dict) or not isinstance(frontend, dict):
            raise ValidationError(f"Catalogue must define backend/frontend mappings: {path}")

        catalogues[path.stem] = {
            "backend": _flatten_messages(backend),
            "frontend": _flatten_messages(frontend),
        }

    if not catalogues:
        raise ValidationError("No translation catalogues discovered")
    return catalogues


def _placeholder_issues(catalogues: Catalogues) -> list[str]:
    found: dict[tuple[str, str], dict[str, frozenset[str]]] = defaultdict(dict)
    for locale, sections in catalogues.items():
        for section, messages in sections.items():
            for key, message in messages.items():
                found[(section, key)][locale] = frozenset(PLACEHOLDER_PATTERN.findall(message))

    issues: list[str] = []
    for (section, key), by_locale in sorted(found.items()):
        if len(set(by_locale.values())) <= 1:
            continue
        details = ", ".join(
            f"{locale}={{{', '.join(sorted(values))}}}"
            for locale, values in sorted(by_locale.items())
        )
        issues.append(f"{section}:{key} placeholders differ: {details}")
    return issues


def _missing_keys(catalogues: Catalogues, base_locale: str) -> list[str]:
    base = catalogues[base_locale]
    issues: list[str] = []
    for section in ("backend", "frontend"):
        expected = set(base[section])
        for locale, payload in sorted(catalogues.items()):
            missing = expected - set(payload[section])
            if missing:
                issues.append(
                    f"Locale '{locale}' missing {len(missing)} {section} keys: "
                    f"{', '.join(sorted(missing))}"
                )
    return issues


def _backend_usage() -> tuple[set[str], set[str]]:
    """Return literal strings and f-string prefixes found in backend sources."""

    literals: set[str] = set()
    prefixes: set[str] = set()

    for path in BACKEND_DIR.rglob("*.py"):
        try:
            tree = ast.parse(path.read_text(encoding="utf-8"))
        except (OSError, SyntaxError):
            continue

        for node in ast.walk(tree):
            if isinstance(node, ast.Constant) and isinstance(node.value, str):
                literals.add(node.value)
            elif isinstance(node, ast.JoinedStr) and node.values:
                head = node.values[0]
                if isinstance(head, ast.Constant) and isinstance(head.value, str) and head.value:
                    prefixes.add(head.value)

    return literals, prefixes


def _config_usage() -> set[str]:
    used: set[str] = set()

    def traverse(node: object, key_hint: str | None = None) -> None:
        if isinstance(node, dict):
            for key, value in node.items():
                traverse(value, key_hint=str(key))
        elif isinstance(node, list):
            for item in node:
                traverse(item, key_hint=key_hint)
        elif isinstance(node, str) and key_hint and key_hint.endswith("_key"):
            used.add(node)

    for yaml_path in CONFIG_DATA_DIR.glob("*.yaml"):
        with yaml_path.open("r", encoding="utf-8") as handle:
            traverse(yaml.safe_load(handle))
    return used


def _unused_backend_keys(catalogues: Catalogues, base_locale: str) -> list[str]:
    literals, prefixes = _backend_usage()
    used = literals | _config_usage()
    return [
        key
        for key in sorted(catalogues[base_locale]["backend"])
        if key not in used and not any(key.startswith(prefix) for prefix in prefixes)
    ]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--fail-on-unused",
        action="store_true",
        help="Exit with an error if unused backend keys are found",
    )
    args = parser.parse_args(argv)

    try:
        catalogues = _load_catalogues()
    except ValidationError as error:
        print(f"[error] {error}")
        return 1

    base_locale = "en" if "en" in catalogues else sorted(catalogues)[0]
    placeholders = _placeholder_issues(catalogues)
    missing = _missing_keys(catalogues, base_locale)
    unused = _unused_backend_keys(catalogues, base_locale)

    for issue in placeholders:
        print(f"[placeholder] {issue}")
    for issue in missing:
        print(f"[missing] {issue}")
    if unused:
        print("[unused] Backend keys:")
        for key in unused:
            print(f"  - {key}")

    if placeholders or missing or (unused and args.fail_on_unused):
        return 1
    print(f"Validated {len(catalogues)} catalogue(s): {', '.join(sorted(catalogues))}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
