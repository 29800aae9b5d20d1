"""Identifier classification for Paper-Network.

An identifier of unknown format is matched against an ordered list of rules.
Each rule pairs a pure predicate with a normalizer; the first matching rule
decides how the identifier is looked up.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from paper_network.errors import InvalidIdentifier
from paper_network.utils import DOI_PREFIXES


class IdentifierKind(str, Enum):
    """Identifier formats understood by the paper source."""

    DOI = "doi"
    ARXIV = "arxiv"
    OPENALEX = "openalex"
    NATIVE = "native"


@dataclass(frozen=True)
class ClassifiedIdentifier:
    """An identifier together with its detected format."""

    kind: IdentifierKind
    value: str  # normalized value, without format prefixes
    raw: str

    @property
    def lookup_id(self) -> str:
        """Identifier in the form the Semantic Scholar paper endpoint expects."""
        if self.kind is IdentifierKind.DOI:
            return f"DOI:{self.value}"
        if self.kind is IdentifierKind.ARXIV:
            return f"ARXIV:{self.value}"
        return self.value


@dataclass(frozen=True)
class IdentifierRule:
    kind: IdentifierKind
    matches: Callable[[str], bool]
    normalize: Callable[[str], str]


_ARXIV_MARKER = re.compile(r"^(?:arxiv:|https?://(?:www\.)?arxiv\.org/(?:abs|pdf)/)", re.IGNORECASE)
_ARXIV_NEW_ID = re.compile(r"^\d{4}\.\d{4,5}(v\d+)?$")
_ARXIV_OLD_ID = re.compile(r"^[a-z][a-z.\-]+/\d{7}(v\d+)?$", re.IGNORECASE)
_OPENALEX_ID = re.compile(r"^(?:https?://openalex\.org/)?(W\d+)$", re.IGNORECASE)
_NATIVE_ID = re.compile(r"^[\w.:/\-]+$")


def _strip_doi_prefix(identifier: str) -> str:
    lowered = identifier.lower()
    for prefix in DOI_PREFIXES:
        if lowered.startswith(prefix):
            return identifier[len(prefix) :]
    return identifier


def is_doi(identifier: str) -> bool:
    return _strip_doi_prefix(identifier).startswith("10.")


def normalize_doi_identifier(identifier: str) -> str:
    return _strip_doi_prefix(identifier).lower()


def _strip_arxiv_marker(identifier: str) -> str:
    value = _ARXIV_MARKER.sub("", identifier)
    if value.lower().endswith(".pdf"):
        value = value[:-4]
    return value


def is_arxiv(identifier: str) -> bool:
    if _ARXIV_MARKER.match(identifier):
        value = _strip_arxiv_marker(identifier)
        return bool(_ARXIV_NEW_ID.match(value) or _ARXIV_OLD_ID.match(value))
    return bool(_ARXIV_NEW_ID.match(identifier))


def normalize_arxiv(identifier: str) -> str:
    return _strip_arxiv_marker(identifier)


def is_openalex(identifier: str) -> bool:
    return bool(_OPENALEX_ID.match(identifier))


def normalize_openalex(identifier: str) -> str:
    match = _OPENALEX_ID.match(identifier)
    return match.group(1).upper() if match else identifier


def is_native(identifier: str) -> bool:
    return bool(_NATIVE_ID.match(identifier))


RULES: tuple[IdentifierRule, ...] = (
    IdentifierRule(IdentifierKind.DOI, is_doi, normalize_doi_identifier),
    IdentifierRule(IdentifierKind.ARXIV, is_arxiv, normalize_arxiv),
    IdentifierRule(IdentifierKind.OPENALEX, is_openalex, normalize_openalex),
    IdentifierRule(IdentifierKind.NATIVE, is_native, str),
)


def classify(identifier: str, rules: tuple[IdentifierRule, ...] = RULES) -> ClassifiedIdentifier:
    """Classify an identifier by the first matching rule.

    Args:
        identifier: DOI, arXiv id, OpenAlex work id or Semantic Scholar id.
        rules: Ordered rules to evaluate.

    Returns:
        The classified identifier.

    Raises:
        InvalidIdentifier: If the identifier is empty or matches no rule.
    """
    cleaned = (identifier or "").strip()
    if not cleaned:
        raise InvalidIdentifier("Paper identifier is empty", identifier=identifier)

    for rule in rules:
        if rule.matches(cleaned):
            return ClassifiedIdentifier(kind=rule.kind, value=rule.normalize(cleaned), raw=cleaned)

    raise InvalidIdentifier(f"Unrecognized paper identifier: {cleaned!r}", identifier=cleaned)
