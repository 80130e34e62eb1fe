"""API description parser -- load the document and extract operations.

This sub-package turns a raw API description (JSON or YAML, local file,
remote URL or stdin) into a :class:`~apibind.models.ParsedSpec`.

Typical usage::

    from apibind.parser import extract_spec, load_spec, validate_document

    raw = load_spec("swagger.json")
    version = validate_document(raw)
    parsed = extract_spec(raw, version)

Sub-modules:

* :mod:`~apibind.parser.loader` -- I/O layer (URL, file, stdin), format
  detection and the structural check.
* :mod:`~apibind.parser.refs` -- ``$ref`` following for reusable
  parameters, request bodies and responses.
* :mod:`~apibind.parser.extractor` -- Walks ``paths`` and produces
  :class:`~apibind.models.APIOperation` objects in document order.
"""

from apibind.parser.extractor import extract_spec
from apibind.parser.loader import load_spec, validate_document

__all__ = ["load_spec", "validate_document", "extract_spec"]
