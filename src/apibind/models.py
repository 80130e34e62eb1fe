"""Canonical Pydantic models shared across apibind modules.

The models fall into two groups:

**Configuration models** -- read from the optional ``apibind.json`` project
file and resolved into the settings for one run:
    :class:`ProfileConfig`, :class:`ProjectConfig`, and
    :class:`ProfileSelection`.

**Parser output models** -- produced by the spec extractor and consumed by
the classifier and emitters:
    :class:`HTTPMethod`, :class:`ParameterLocation`, :class:`APIParameter`,
    :class:`RequestBodyInfo`, :class:`ResponseInfo`, :class:`APIOperation`,
    :class:`APIInfo`, and :class:`ParsedSpec`.

Schemas are kept as raw dicts on these models. They are turned into typed
schema nodes by :class:`~apibind.schema.registry.SchemaRegistry`, which is
the only place ``$ref`` strings are interpreted.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_RUNTIME_MODULE = "@aipt/utils"
"""Module the generated code imports ``apiRequest`` and ``HTTPResponse`` from."""


# --- Configuration ---


class ProfileConfig(BaseModel):
    """A named generation profile: which tags it emits and where it writes.

    Example::

        ProfileConfig(tags=["Auth", "Orders"], output_dir="apps/web/src/lib/apis")
    """

    tags: list[str] = Field(
        default_factory=list, description="Tag allow-list for this profile"
    )
    output_dir: Optional[str] = Field(
        default=None, description="Default output directory for this profile"
    )


class ProjectConfig(BaseModel):
    """Project-level configuration stored in ``apibind.json``.

    Every field is optional. Values here are overridden by environment
    variables and CLI flags; see :func:`~apibind.config.resolve_selection`.
    """

    model_config = ConfigDict(extra="forbid")

    spec: Optional[str] = Field(
        default=None, description="Path, URL, or '-' for the API description"
    )
    default_profile: Optional[str] = Field(
        default=None, description="Profile used when none is given on the command line"
    )
    runtime_module: Optional[str] = Field(
        default=None,
        description="Module the generated code imports apiRequest/HTTPResponse from",
    )
    output_dirs: dict[str, str] = Field(
        default_factory=dict, description="Profile name -> output directory"
    )
    profiles: dict[str, ProfileConfig] = Field(
        default_factory=dict, description="Additional or overriding profiles"
    )


class ProfileSelection(BaseModel):
    """The effective settings for a single generation run.

    Produced by :func:`~apibind.config.resolve_selection`. One run emits
    exactly one profile's artifacts.
    """

    name: str
    allow_list: list[str] = Field(default_factory=list)
    output_dir: Optional[str] = None
    runtime_module: str = DEFAULT_RUNTIME_MODULE

    @property
    def owner_marker(self) -> str:
        """The second-tag value that marks an operation as owned by this profile."""
        return self.name[:1].upper() + self.name[1:]


# --- Parser Output Models ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods the generator emits bindings for.

    Other methods found in a path item (``head``, ``options``, ``trace``)
    are ignored by the extractor.
    """

    GET = "get"
    POST = "post"
    PUT = "put"
    PATCH = "patch"
    DELETE = "delete"

    @property
    def has_body(self) -> bool:
        """Whether requests with this method may carry a body."""
        return self in (HTTPMethod.POST, HTTPMethod.PUT, HTTPMethod.PATCH)


class ParameterLocation(str, enum.Enum):
    """Parameter locations that take part in generation (OpenAPI ``in`` field)."""

    QUERY = "query"
    PATH = "path"


class APIParameter(BaseModel):
    """A single path or query parameter of an operation."""

    name: str
    location: ParameterLocation
    required: bool = False
    description: Optional[str] = None
    schema_: Optional[dict[str, Any]] = Field(default=None, alias="schema")

    model_config = {"populate_by_name": True}


class RequestBodyInfo(BaseModel):
    """Request body metadata, keeping the schema of every declared content type."""

    required: bool = False
    description: Optional[str] = None
    content: dict[str, Optional[dict[str, Any]]] = Field(default_factory=dict)

    @property
    def content_types(self) -> list[str]:
        """Declared media types, in document order."""
        return list(self.content)


class ResponseInfo(BaseModel):
    """Response metadata for a single HTTP status code."""

    status_code: str
    description: Optional[str] = None
    content: dict[str, Optional[dict[str, Any]]] = Field(default_factory=dict)

    @property
    def json_schema(self) -> Optional[dict[str, Any]]:
        """The ``application/json`` schema, if any."""
        return self.content.get("application/json")


class APIOperation(BaseModel):
    """A single parsed API operation (one URL path + HTTP method pair).

    Each operation produces one request function and one query or mutation
    hook in the module of its primary tag.
    """

    path: str
    method: HTTPMethod
    operation_id: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    parameters: list[APIParameter] = Field(default_factory=list)
    request_body: Optional[RequestBodyInfo] = None
    responses: list[ResponseInfo] = Field(default_factory=list)

    @property
    def primary_tag(self) -> str:
        """The grouping key: the first tag, or ``default`` for untagged operations."""
        return self.tags[0] if self.tags else "default"

    @property
    def owner_tag(self) -> Optional[str]:
        """The optional owning-profile marker (second tag)."""
        return self.tags[1] if len(self.tags) > 1 else None

    def response_for(self, status_code: str) -> Optional[ResponseInfo]:
        """Return the response declared for *status_code*, or ``None``."""
        for response in self.responses:
            if response.status_code == status_code:
                return response
        return None


class APIInfo(BaseModel):
    """API metadata extracted from the document's *Info Object*."""

    title: str
    version: str
    description: Optional[str] = None


class ParsedSpec(BaseModel):
    """Parsed representation of an API description.

    Holds the operations (in document order) and the raw
    ``components.schemas`` dictionary that the schema registry is built from.
    """

    info: APIInfo
    operations: list[APIOperation] = Field(default_factory=list)
    schemas: dict[str, Any] = Field(default_factory=dict)
    openapi_version: str = Field(
        default="unknown", description="Original 'openapi' version string"
    )
