"""
読み替え規定の解析

    scan_quotes → tokenize_clause → match_pairs → ScopeResolver → ClauseParser
"""

from .models import (
    BracketKind,
    ClauseCandidate,
    ClauseFailure,
    ClauseLocation,
    ClauseResult,
    Flag,
    ProvisionRef,
    QuoteToken,
    ReasonCode,
    ScopeOrigin,
    ScopeRef,
    SectionRef,
    SubstitutionPair,
)
from .parser import ClauseParser, parse_clause, split_outcomes
from .reference_index import InMemoryReferenceIndex, ReferenceIndex

__all__ = [
    # models
    'BracketKind',
    'ClauseCandidate',
    'ClauseFailure',
    'ClauseLocation',
    'ClauseResult',
    'Flag',
    'ProvisionRef',
    'QuoteToken',
    'ReasonCode',
    'ScopeOrigin',
    'ScopeRef',
    'SectionRef',
    'SubstitutionPair',
    # parser
    'ClauseParser',
    'parse_clause',
    'split_outcomes',
    # reference_index
    'InMemoryReferenceIndex',
    'ReferenceIndex',
]
