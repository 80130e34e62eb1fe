"""Load API descriptions from a URL, local file, or stdin.

This module handles all I/O for fetching the raw document and converting it
into a Python dictionary. JSON and YAML are both accepted, with the format
guessed from the file extension or ``Content-Type`` and confirmed by parsing.

The two public functions are:

* :func:`load_spec` -- Load and parse a document from any supported source.
* :func:`validate_document` -- Check the structural minimum the generator
  relies on and return the ``openapi`` version string.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

import httpx
import yaml

from apibind.exceptions import SpecParseError

logger = logging.getLogger(__name__)


def load_spec(source: str) -> dict[str, Any]:
    """Load an API description from URL, file path, or stdin ('-').

    Args:
        source: A URL (http/https), file path, or '-' for stdin.

    Returns:
        The parsed document as a dictionary.

    Raises:
        SpecParseError: If the source cannot be loaded or parsed.
    """
    logger.debug("Loading API description from %s", source)
    if source == "-":
        return _load_from_stdin()
    elif source.startswith(("http://", "https://")):
        return _load_from_url(source)
    else:
        return _load_from_file(source)


def _load_from_stdin() -> dict[str, Any]:
    try:
        content = sys.stdin.read()
    except OSError as exc:
        raise SpecParseError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise SpecParseError("No input received from stdin")

    return _parse_content(content, hint="")


def _load_from_url(url: str) -> dict[str, Any]:
    """Fetch the document over HTTP(S).

    Raises:
        SpecParseError: If the URL cannot be fetched or content cannot be parsed.
    """
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SpecParseError(
            f"HTTP {exc.response.status_code} fetching spec from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise SpecParseError(f"Failed to fetch spec from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"

    return _parse_content(response.text, hint=hint)


def _load_from_file(path: str) -> dict[str, Any]:
    """Load the document from a local ``.json``, ``.yaml`` or ``.yml`` file.

    Unknown extensions fall back to content-based detection.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise SpecParseError(f"Spec file not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecParseError(f"Failed to read spec file {path}: {exc}") from exc

    if not content.strip():
        raise SpecParseError(f"Spec file is empty: {path}")

    suffix = file_path.suffix.lower()
    hint = ""
    if suffix == ".json":
        hint = "json"
    elif suffix in (".yaml", ".yml"):
        hint = "yaml"

    return _parse_content(content, hint=hint)


def _parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse content as JSON or YAML.

    Tries JSON first (unless hinted as YAML), then YAML. A ``json`` hint
    disables the YAML fallback.

    Raises:
        SpecParseError: If the content cannot be parsed as either format, or
            does not contain a mapping at the top level.
    """
    json_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            json_error = exc
            if hint == "json":
                raise SpecParseError(f"Invalid JSON: {exc}") from exc
        else:
            return _require_mapping(result)

    try:
        result = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        msg = "Failed to parse spec as JSON or YAML"
        if json_error:
            msg += f"\n  JSON error: {json_error}"
        msg += f"\n  YAML error: {exc}"
        raise SpecParseError(msg) from exc
    return _require_mapping(result)


def _require_mapping(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        kind = type(result).__name__ if result is not None else "empty document"
        raise SpecParseError(f"Spec must be a JSON/YAML object (got {kind})")
    return result


def validate_document(spec: dict[str, Any]) -> str:
    """Check that *spec* has the shape the generator walks.

    The document must declare a ``paths`` mapping; ``components`` and
    ``components.schemas``, when present, must be mappings. Swagger 2.x
    documents are rejected. Beyond that no OpenAPI validation is performed.

    Returns:
        The ``openapi`` version string, or ``"unknown"`` when absent.

    Raises:
        SpecParseError: If the document is a Swagger 2.x document or is
            missing the required mappings.
    """
    if "swagger" in spec:
        raise SpecParseError(
            f"Swagger {spec['swagger']} is not supported. "
            "Only OpenAPI 3.x documents are handled. "
            "Consider converting with https://converter.swagger.io"
        )

    paths = spec.get("paths")
    if not isinstance(paths, dict):
        raise SpecParseError("Missing 'paths' object. Is this an OpenAPI 3.x document?")

    components = spec.get("components", {})
    if not isinstance(components, dict):
        raise SpecParseError("'components' must be an object")
    if not isinstance(components.get("schemas", {}), dict):
        raise SpecParseError("'components.schemas' must be an object")

    version = spec.get("openapi")
    if version is None:
        logger.warning("Document has no 'openapi' field; assuming 3.x")
        return "unknown"

    version_str = str(version)
    if not version_str.startswith("3."):
        logger.warning("Unexpected OpenAPI version %s; continuing", version_str)
    return version_str
