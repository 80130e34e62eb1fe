"""Extract operations from a loaded API description.

This module walks the ``paths`` object of a raw document and builds a
:class:`~apibind.models.ParsedSpec` with one
:class:`~apibind.models.APIOperation` per path + method pair, in document
order.

The single public entry point is :func:`extract_spec`. Internally it
delegates to private helpers that each handle one section:

* ``_extract_info`` -- the ``info`` object (title, version, description).
* ``_extract_operations`` -- the ``paths`` object.
* ``_extract_parameters`` / ``_extract_request_body`` /
  ``_extract_responses`` -- the parts of a single operation.

Component references (``#/components/parameters/...``,
``#/components/requestBodies/...``, ``#/components/responses/...``) are
followed. Schemas are kept as raw dicts, ``$ref`` and all; the schema
registry interprets them.

Parameter merging follows the OpenAPI rules: path-level parameters provide
defaults, and operation-level parameters override them when they share the
same ``name`` and ``in`` values.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from apibind.models import (
    APIInfo,
    APIOperation,
    APIParameter,
    HTTPMethod,
    ParameterLocation,
    ParsedSpec,
    RequestBodyInfo,
    ResponseInfo,
)
from apibind.parser.refs import deref

logger = logging.getLogger(__name__)

_HTTP_METHODS = frozenset(m.value for m in HTTPMethod)


def extract_spec(raw_spec: dict[str, Any], openapi_version: str = "unknown") -> ParsedSpec:
    """Extract a :class:`~apibind.models.ParsedSpec` from a raw document.

    Args:
        raw_spec: The document as returned by
            :func:`~apibind.parser.loader.load_spec`.
        openapi_version: The version string returned by
            :func:`~apibind.parser.loader.validate_document`.

    Returns:
        The parsed operations plus the raw ``components.schemas`` mapping.

    Example::

        raw = load_spec("swagger.json")
        parsed = extract_spec(raw, validate_document(raw))
        for op in parsed.operations:
            print(f"{op.method.value.upper()} {op.path}")
    """
    components = raw_spec.get("components") or {}
    return ParsedSpec(
        info=_extract_info(raw_spec),
        operations=_extract_operations(raw_spec),
        schemas=dict(components.get("schemas") or {}),
        openapi_version=openapi_version,
    )


def _extract_info(spec: dict[str, Any]) -> APIInfo:
    info = spec.get("info") or {}
    return APIInfo(
        title=str(info.get("title", "Untitled API")),
        version=str(info.get("version", "0.0.0")),
        description=info.get("description"),
    )


def _extract_operations(spec: dict[str, Any]) -> list[APIOperation]:
    """Extract all operations from ``paths``, in document order.

    Methods other than GET, POST, PUT, PATCH and DELETE (``head``,
    ``options``, ``trace``) are skipped.
    """
    paths = spec.get("paths") or {}
    operations: list[APIOperation] = []

    for path, path_item in paths.items():
        path_item = deref(path_item, spec)
        if not isinstance(path_item, dict):
            continue

        path_params = [deref(p, spec) for p in path_item.get("parameters") or []]

        for method_str, operation in path_item.items():
            if method_str not in _HTTP_METHODS:
                continue
            if not isinstance(operation, dict):
                continue

            op_params = [deref(p, spec) for p in operation.get("parameters") or []]
            merged_params = _merge_parameters(path_params, op_params)

            operations.append(
                APIOperation(
                    path=path,
                    method=HTTPMethod(method_str),
                    operation_id=operation.get("operationId"),
                    summary=operation.get("summary"),
                    description=operation.get("description"),
                    tags=[str(tag) for tag in operation.get("tags") or []],
                    parameters=_extract_parameters(merged_params),
                    request_body=_extract_request_body(
                        deref(operation.get("requestBody"), spec)
                    ),
                    responses=_extract_responses(operation.get("responses") or {}, spec),
                )
            )

    logger.debug("Extracted %d operation(s) from %d path(s)", len(operations), len(paths))
    return operations


def _merge_parameters(
    path_params: list[dict[str, Any]],
    op_params: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Merge path-level and operation-level parameters.

    Operation-level parameters override path-level parameters with the same
    name and location (``in`` field).
    """
    op_keys = {(param.get("name", ""), param.get("in", "")) for param in op_params}

    merged = [
        param
        for param in path_params
        if (param.get("name", ""), param.get("in", "")) not in op_keys
    ]
    merged.extend(op_params)
    return merged


def _extract_parameters(params_list: list[dict[str, Any]]) -> list[APIParameter]:
    """Convert raw parameter dicts into :class:`~apibind.models.APIParameter` models.

    Only ``path`` and ``query`` parameters take part in generation; header
    and cookie parameters are skipped. Path parameters are always required,
    whatever the document says.
    """
    parameters: list[APIParameter] = []

    for param in params_list:
        if not isinstance(param, dict):
            continue
        try:
            location = ParameterLocation(param.get("in", "query"))
        except ValueError:
            continue

        required = bool(param.get("required", False))
        if location == ParameterLocation.PATH:
            required = True

        schema = param.get("schema")
        parameters.append(
            APIParameter(
                name=str(param.get("name", "")),
                location=location,
                required=required,
                description=param.get("description"),
                schema=schema if isinstance(schema, dict) else None,
            )
        )

    return parameters


def _content_schemas(content: Any) -> dict[str, Optional[dict[str, Any]]]:
    """Map each media type to its schema (``None`` when it declares none)."""
    result: dict[str, Optional[dict[str, Any]]] = {}
    if not isinstance(content, dict):
        return result
    for content_type, media in content.items():
        schema = media.get("schema") if isinstance(media, dict) else None
        result[str(content_type)] = schema if isinstance(schema, dict) else None
    return result


def _extract_request_body(body: Optional[dict[str, Any]]) -> Optional[RequestBodyInfo]:
    if not isinstance(body, dict):
        return None
    return RequestBodyInfo(
        required=bool(body.get("required", False)),
        description=body.get("description"),
        content=_content_schemas(body.get("content")),
    )


def _extract_responses(responses: dict[str, Any], spec: dict[str, Any]) -> list[ResponseInfo]:
    """One :class:`~apibind.models.ResponseInfo` per declared status code."""
    result: list[ResponseInfo] = []
    for status_code, response in responses.items():
        response = deref(response, spec)
        if not isinstance(response, dict):
            continue
        result.append(
            ResponseInfo(
                status_code=str(status_code),
                description=response.get("description"),
                content=_content_schemas(response.get("content")),
            )
        )
    return result
