"""Column mapping engine: turns a header row into a MappingResult."""

import logging
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from ..models.mapping import ColumnMapping, MappingResult, MatchTier
from ..models.schema import TargetField
from .header_matcher import HeaderMatch, HeaderMatcher

logger = logging.getLogger(__name__)

MANUAL_CONFIDENCE = 1.0


class ColumnMapper:
    """
    Maps every column of a header row to at most one target field.

    Supports:
    - Automatic analysis of a header row
    - Conflict resolution when two columns compete for one field
    - Manual reassignment that keeps each field on at most one column
    """

    def __init__(self, matcher: Optional[HeaderMatcher] = None):
        """
        Initialize the mapper.

        Args:
            matcher: Header matcher to use (defaults to one over all target fields)
        """
        self.matcher = matcher or HeaderMatcher()

    def analyze_headers(self, headers: Sequence[str]) -> MappingResult:
        """
        Build a mapping for a header row.

        Every (column, candidate field) pair is ranked by confidence, then
        match tier, then column index, then field declaration order, and
        assigned greedily. A column that loses its best field to a stronger
        column falls back to its next candidate. The outcome depends only
        on the input list.

        Args:
            headers: Header strings in column order

        Returns:
            A MappingResult with one ColumnMapping per column
        """
        pool: List[Tuple[int, HeaderMatch]] = []
        for index, header in enumerate(headers):
            for match in self.matcher.candidates(header):
                pool.append((index, match))

        pool.sort(key=lambda entry: (
            -entry[1].confidence,
            entry[1].tier.rank,
            entry[0],
            entry[1].field.declaration_index,
        ))

        assigned: Dict[int, HeaderMatch] = {}
        claimed = set()
        for index, match in pool:
            if index in assigned or match.field in claimed:
                continue
            assigned[index] = match
            claimed.add(match.field)

        mappings = []
        for index, header in enumerate(headers):
            match = assigned.get(index)
            if match is None:
                mappings.append(ColumnMapping(column_index=index, header=header))
                continue
            mappings.append(ColumnMapping(
                column_index=index,
                header=header,
                field=match.field,
                confidence=match.confidence,
                tier=match.tier,
            ))

        result = MappingResult.from_mappings(mappings)
        logger.info(
            f"Mapped {result.mapped_field_count} of {len(headers)} columns"
            + ("" if result.is_valid else
               f"; missing {sorted(f.value for f in result.missing_required_fields)}")
        )
        return result

    def update_mapping(
        self,
        result: MappingResult,
        column_index: int,
        new_field: Optional[TargetField],
    ) -> MappingResult:
        """
        Reassign one column's target field.

        A field already held by another column is taken from it. Manual
        assignments always carry full confidence.

        Args:
            result: Current mapping
            column_index: Zero-based column to change
            new_field: Field to assign, or None to unmap the column

        Returns:
            A new, fully recomputed MappingResult
        """
        if result.mapping_for_column(column_index) is None:
            logger.warning(f"Ignoring update for unknown column index {column_index}")
            return result

        mappings = []
        for mapping in result.mappings:
            if mapping.column_index == column_index:
                mappings.append(ColumnMapping(
                    column_index=mapping.column_index,
                    header=mapping.header,
                    field=new_field,
                    confidence=MANUAL_CONFIDENCE if new_field else 0.0,
                    tier=MatchTier.MANUAL if new_field else MatchTier.NONE,
                ))
            elif new_field is not None and mapping.field is new_field:
                logger.debug(
                    f"Clearing {new_field.value} from column {mapping.column_index} "
                    f"('{mapping.header}')"
                )
                mappings.append(ColumnMapping(
                    column_index=mapping.column_index,
                    header=mapping.header,
                ))
            else:
                mappings.append(mapping)

        return MappingResult.from_mappings(mappings)

    def apply_overrides(
        self,
        result: MappingResult,
        overrides: Mapping[int, Optional[TargetField]],
    ) -> MappingResult:
        """Apply several manual reassignments in column order."""
        for column_index in sorted(overrides):
            result = self.update_mapping(result, column_index, overrides[column_index])
        return result


_default_mapper: Optional[ColumnMapper] = None


def _mapper() -> ColumnMapper:
    global _default_mapper
    if _default_mapper is None:
        _default_mapper = ColumnMapper()
    return _default_mapper


def analyze_headers(headers: Sequence[str]) -> MappingResult:
    """Analyze a header row with the default mapper."""
    return _mapper().analyze_headers(headers)


def update_mapping(
    result: MappingResult,
    column_index: int,
    new_field: Optional[TargetField],
) -> MappingResult:
    """Reassign one column with the default mapper."""
    return _mapper().update_mapping(result, column_index, new_field)
