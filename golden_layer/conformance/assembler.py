"""
Composite entity assembler.

Builds the conformed security from the internal security master, matched
against conformed external (market data) securities through an ordered
identifier cascade.
"""

from typing import Literal

from pydantic import BaseModel

from golden_layer.core.models import ConformedRecord
from golden_layer.observability import metrics
from golden_layer.observability.logger import get_logger

from .entity import StagedRow
from .pipeline import EntityConformancePipeline

logger = get_logger(__name__)

MatchStatus = Literal["MATCHED", "AMBIGUOUS", "UNMATCHED"]
MatchConfidence = Literal["HIGH", "MEDIUM", "LOW"]

MATCH_STATUS_FIELD = "_wso_match_status"
MATCH_KEY_FIELD = "_wso_match_key"
MATCH_CONFIDENCE_FIELD = "_wso_match_confidence"
MATCH_SECURITY_FIELD = "_wso_security_id"
MATCH_FIELDS = [MATCH_STATUS_FIELD, MATCH_KEY_FIELD, MATCH_CONFIDENCE_FIELD, MATCH_SECURITY_FIELD]

IDENTIFIER_FIELDS = ("bank_loan_id", "cusip", "isin", "ticker")

_STATUS_PREFERENCE = {"MATCHED": 0, "AMBIGUOUS": 1, "UNMATCHED": 2}


class MatchLevel(BaseModel):
    """One step of the cascade: identifier fields compared for equality."""

    match_key: str
    fields: tuple[str, ...]
    confidence: MatchConfidence


MATCH_CASCADE = [
    MatchLevel(match_key="BANK_LOAN_ID", fields=("bank_loan_id",), confidence="HIGH"),
    MatchLevel(match_key="CUSIP", fields=("cusip",), confidence="HIGH"),
    MatchLevel(match_key="ISIN", fields=("isin",), confidence="HIGH"),
    MatchLevel(match_key="TICKER_TYPE", fields=("ticker", "security_type"), confidence="MEDIUM"),
]


class MatchCandidate(BaseModel):
    """A possible match of one internal record."""

    status: MatchStatus
    match_key: str | None = None
    confidence: MatchConfidence | None = None
    external: ConformedRecord | None = None

    @property
    def external_key(self) -> str | None:
        if self.status != "MATCHED" or self.external is None:
            return None
        return self.external.enterprise_key


def collapse_candidates(candidates: list[MatchCandidate]) -> MatchCandidate:
    """
    Reduce candidates to one decision, preferring MATCHED over AMBIGUOUS over
    UNMATCHED. The first candidate wins a tie.
    """
    if not candidates:
        return MatchCandidate(status="UNMATCHED")
    return min(candidates, key=lambda c: _STATUS_PREFERENCE[c.status])


class CompositeEntityAssembler(EntityConformancePipeline):
    """
    Conformance pipeline that matches and enriches validated rows.

    Validation (security type in the valid list, parent entity resolved and
    conformed) runs before matching, so unmatched or ambiguous securities
    are still conformed while invalid ones never reach the cascade.

    On MATCHED, external identifiers fill only identifiers that are blank
    internally; business fields always come from the internal record. The
    content hash is recomputed after enrichment so matching changes are
    detected downstream.
    """

    def __init__(self, *args, external_entity: str = "ws_online_security", cascade: list[MatchLevel] | None = None, **kwargs):
        """
        Initialize the assembler.

        Args:
            *args: EntityConformancePipeline positional arguments
            external_entity: Conformed entity type matched against
            cascade: Ordered match levels, defaults to MATCH_CASCADE
            **kwargs: EntityConformancePipeline keyword arguments
        """
        super().__init__(*args, **kwargs)
        self.external_entity = external_entity
        self.cascade = cascade or MATCH_CASCADE

    def _assemble(self, rows: list[StagedRow]) -> list[StagedRow]:
        indexes = self.build_indexes(self.conformed_store.list_records(self.external_entity))

        outcomes: dict[str, int] = {}
        for row in rows:
            decision = collapse_candidates(self.match_candidates(row.values, indexes))
            self._apply(row, decision)
            outcomes[decision.status] = outcomes.get(decision.status, 0) + 1
            metrics.record_match(decision.status, decision.match_key)

        logger.info(
            f"Matched {len(rows)} {self.entity_type} records against {self.external_entity}: {outcomes}",
            extra={"entity": self.entity_type, **{s.lower(): n for s, n in outcomes.items()}},
        )
        return rows

    def build_indexes(self, externals: list[ConformedRecord]) -> dict[str, dict[tuple, list[ConformedRecord]]]:
        """
        Index external records by each level's identifier tuple.

        Records missing any identifier of a level are not indexed for it.
        """
        indexes: dict[str, dict[tuple, list[ConformedRecord]]] = {}
        for level in self.cascade:
            index: dict[tuple, list[ConformedRecord]] = {}
            for external in externals:
                key = tuple(external.attributes.get(f) for f in level.fields)
                if any(part is None for part in key):
                    continue
                index.setdefault(key, []).append(external)
            indexes[level.match_key] = index
        return indexes

    def match_candidates(
        self,
        values: dict,
        indexes: dict[str, dict[tuple, list[ConformedRecord]]],
    ) -> list[MatchCandidate]:
        """
        Candidates from the first cascade level that finds any external record.

        One external record gives a MATCHED candidate; several give one
        AMBIGUOUS candidate each, tagged ``<LEVEL>_AMBIGUOUS`` with LOW
        confidence. No level finding anything gives a single UNMATCHED.
        """
        for level in self.cascade:
            key = tuple(values.get(f) for f in level.fields)
            if any(part is None for part in key):
                continue
            found = indexes.get(level.match_key, {}).get(key, [])
            if len(found) == 1:
                return [MatchCandidate(
                    status="MATCHED",
                    match_key=level.match_key,
                    confidence=level.confidence,
                    external=found[0],
                )]
            if found:
                return [
                    MatchCandidate(
                        status="AMBIGUOUS",
                        match_key=f"{level.match_key}_AMBIGUOUS",
                        confidence="LOW",
                        external=external,
                    )
                    for external in found
                ]
        return [MatchCandidate(status="UNMATCHED")]

    def _apply(self, row: StagedRow, decision: MatchCandidate) -> None:
        if decision.status == "MATCHED" and decision.external is not None:
            for field_name in IDENTIFIER_FIELDS:
                if row.values.get(field_name) is None:
                    row.values[field_name] = decision.external.attributes.get(field_name)

        row.values[MATCH_STATUS_FIELD] = decision.status
        row.values[MATCH_KEY_FIELD] = decision.match_key
        row.values[MATCH_CONFIDENCE_FIELD] = decision.confidence
        row.values[MATCH_SECURITY_FIELD] = decision.external_key
        row.row_hash = self._row_hash(row)
