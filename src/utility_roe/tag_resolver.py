"""Tag resolution: pick the first candidate XBRL tag that has usable data.

Pure lookup with fallback. Candidates are tried in caller priority order
and the first one with a non-empty monetary-unit series wins; later
candidates are never looked at. Period choice happens elsewhere
(see period_selector).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from pydantic import ValidationError

from utility_roe.errors import DecodeError, TagNotFoundError
from utility_roe.models import Observation, TagSeries
from utility_roe.xbrl_mappings import DEFAULT_TAXONOMY, DEFAULT_UNIT, ConceptEntry

log = logging.getLogger(__name__)


def _as_entry(candidate: ConceptEntry | str) -> ConceptEntry:
    """Accept a ConceptEntry, ``"us-gaap:Tag"`` or a bare ``"Tag"``."""
    if isinstance(candidate, ConceptEntry):
        return candidate
    taxonomy, sep, name = candidate.partition(":")
    if not sep:
        taxonomy, name = DEFAULT_TAXONOMY, candidate
    return ConceptEntry(name, name, taxonomy)


def resolve(
    facts_document: Mapping,
    candidates: Sequence[ConceptEntry | str],
    label: str,
    unit: str = DEFAULT_UNIT,
) -> TagSeries:
    """Return the series of the first candidate with a non-empty *unit* list.

    Raises TagNotFoundError naming *label* and every candidate tried.
    """
    entries = [_as_entry(c) for c in candidates]
    facts = facts_document.get("facts")
    if not isinstance(facts, Mapping):
        raise DecodeError("Facts document has no 'facts' object")

    for entry in entries:
        taxonomy = facts.get(entry.taxonomy)
        if not isinstance(taxonomy, Mapping):
            continue
        concept = taxonomy.get(entry.xbrl_concept)
        if not isinstance(concept, Mapping):
            continue
        units = concept.get("units")
        if not isinstance(units, Mapping):
            continue
        raw = units.get(unit)
        if not raw:
            continue

        log.debug("%s resolved to %s (%d observations)", label, entry.qualified_name, len(raw))
        return TagSeries(
            tag=entry.qualified_name,
            unit=unit,
            observations=_decode_observations(raw, unit, entry.qualified_name),
        )

    raise TagNotFoundError(label, [e.xbrl_concept for e in entries])


def _decode_observations(raw: object, unit: str, tag: str) -> list[Observation]:
    if not isinstance(raw, list):
        raise DecodeError(f"{tag} {unit} observations are not a list")
    try:
        return [Observation.model_validate({**item, "unit": unit}) for item in raw]
    except (TypeError, ValidationError) as exc:
        raise DecodeError(f"Malformed {tag} observation: {exc}") from exc
