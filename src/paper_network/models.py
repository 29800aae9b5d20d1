"""Data models for Paper-Network.

Attributes are snake_case; ``model_dump(by_alias=True)`` produces the camelCase
wire format consumed by the UI and stored in the cache.
"""

from __future__ import annotations

import math
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

ROOT_COLOR = "#ff6b35"
DEFAULT_COLOR = "#1e3a8a"
DEGRADED_COLOR = "#9ca3af"
UNKNOWN_TITLE = "Unknown title"

EdgeType = Literal["reference", "citation"]


class WireModel(BaseModel):
    """Base model accepting both snake_case and camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PaperRef(WireModel):
    """Minimal reference to a paper as listed in another paper's references or citations."""

    id: str
    title: str | None = None
    year: int | None = None
    citation_count: int | None = None


class PaperRecord(WireModel):
    """A fully resolved paper."""

    id: str
    title: str = UNKNOWN_TITLE
    abstract: str | None = None
    year: int | None = None
    citation_count: int = Field(default=0, ge=0)
    authors: list[str] = Field(default_factory=list)
    venue: str | None = None
    url: str | None = None
    pdf_url: str | None = None
    doi: str | None = None
    fields_of_study: list[str] = Field(default_factory=list)
    references: list[PaperRef] = Field(default_factory=list)
    citations: list[PaperRef] = Field(default_factory=list)
    source: str = "semantic_scholar"

    @field_validator("fields_of_study")
    @classmethod
    def _dedupe_fields(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))

    @field_validator("citation_count", mode="before")
    @classmethod
    def _none_is_zero(cls, value: Any) -> Any:
        return 0 if value is None else value


def initial_size(citation_count: int) -> float:
    """Render size before ranking, growing with the citation count."""
    return max(10.0, math.log10(max(citation_count, 0) + 1) * 10)


class NetworkNode(WireModel):
    """A paper in a built network. Mutated in place by the ranker and labeler."""

    id: str
    label: str
    title: str
    abstract: str | None = None
    year: int | None = None
    citation_count: int = 0
    authors: str = ""
    venue: str | None = None
    url: str | None = None
    pdf_url: str | None = None
    fields_of_study: list[str] = Field(default_factory=list)
    is_root: bool = False
    depth: int = 0
    page_rank_score: float = 0.0
    cluster_id: int = 0
    size: float = 10.0
    color: str = DEFAULT_COLOR
    degraded: bool = False

    @classmethod
    def from_record(
        cls,
        record: PaperRecord,
        depth: int = 0,
        is_root: bool = False,
        node_id: str | None = None,
    ) -> NetworkNode:
        """Create a node from a resolved paper.

        ``node_id`` overrides the record id, for papers resolved from a listing
        whose id differs from the provider's canonical one.
        """
        return cls(
            id=node_id or record.id,
            label=record.title or UNKNOWN_TITLE,
            title=record.title,
            abstract=record.abstract,
            year=record.year,
            citation_count=record.citation_count,
            authors=", ".join(record.authors),
            venue=record.venue,
            url=record.url,
            pdf_url=record.pdf_url,
            fields_of_study=list(record.fields_of_study),
            is_root=is_root,
            depth=depth,
            size=initial_size(record.citation_count),
            color=ROOT_COLOR if is_root else DEFAULT_COLOR,
        )

    @classmethod
    def from_ref(cls, ref: PaperRef, depth: int, is_root: bool = False) -> NetworkNode:
        """Create a degraded node from a bare reference whose resolution failed."""
        title = ref.title or UNKNOWN_TITLE
        citation_count = ref.citation_count or 0
        return cls(
            id=ref.id,
            label=title,
            title=title,
            year=ref.year,
            citation_count=citation_count,
            is_root=is_root,
            depth=depth,
            size=initial_size(citation_count),
            color=ROOT_COLOR if is_root else DEGRADED_COLOR,
            degraded=True,
        )


class NetworkEdge(WireModel):
    """A directed edge; ``source`` cites ``target`` for both edge types."""

    source: str = Field(alias="from")
    target: str = Field(alias="to")
    type: EdgeType
    weight: float = Field(default=1.0, gt=0)

    @property
    def key(self) -> tuple[str, str, str]:
        """Dedup key: the ordered (from, to, type) triple."""
        return (self.source, self.target, self.type)


class NetworkResult(WireModel):
    """Nodes and edges of one built network."""

    nodes: list[NetworkNode] = Field(default_factory=list)
    edges: list[NetworkEdge] = Field(default_factory=list)

    def node_ids(self) -> set[str]:
        return {node.id for node in self.nodes}

    def get_node(self, node_id: str) -> NetworkNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    @property
    def root(self) -> NetworkNode | None:
        return next((node for node in self.nodes if node.is_root), None)

    @property
    def stats(self) -> dict[str, int]:
        return {"node_count": len(self.nodes), "edge_count": len(self.edges)}

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase wire format."""
        return self.model_dump(by_alias=True, mode="json")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NetworkResult:
        """Deserialize from the wire format."""
        return cls.model_validate(data)


class NetworkRequest(BaseModel):
    """Parameters of a network build request."""

    paper_id: str
    depth: int = Field(default=1, ge=1)
    max_nodes: int = Field(default=200, ge=1)

    @field_validator("paper_id")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()


class ErrorInfo(BaseModel):
    """Error payload returned at the service boundary."""

    code: str
    message: str


class NetworkResponse(BaseModel):
    """Response of the service boundary."""

    data: NetworkResult | None = None
    cached: bool = False
    warning: str | None = None
    error: ErrorInfo | None = None
    status_code: int = Field(default=200, exclude=True)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the response body."""
        if self.error is not None:
            return {"error": self.error.model_dump()}
        body: dict[str, Any] = {
            "data": self.data.to_dict() if self.data else None,
            "cached": self.cached,
        }
        if self.warning:
            body["warning"] = self.warning
        return body
