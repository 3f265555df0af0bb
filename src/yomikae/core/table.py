"""
表形式の読み替え規定

「次の表の上欄に掲げる規定中同表の中欄に掲げる字句は、それぞれ同表の下欄に
掲げる字句と読み替える」型の条文は、表の各行が一つのペアになる。

    3 列: (スコープ, 置換前, 置換後)。スコープ欄が空なら前の行を継承
    2 列: (置換前, 置換後)
"""
from typing import List, Optional, Sequence
import logging

from .models import (
    ClauseCandidate,
    ClauseParseError,
    ReasonCode,
    ScopeOrigin,
    ScopeRef,
    SubstitutionPair,
)
from ..utils.patterns import TABLE_HEADER_CELL_PATTERN

logger = logging.getLogger(__name__)


def _is_header_row(cells: Sequence[str]) -> bool:
    filled = [cell for cell in cells if cell]
    return bool(filled) and all(TABLE_HEADER_CELL_PATTERN.match(cell) for cell in filled)


def parse_table_clause(candidate: ClauseCandidate) -> List[SubstitutionPair]:
    """
    表の各行からペアを作る

    スコープの start には「本文の後ろに行番号を足した位置」を入れる。
    ScopeResolver はこれで継承元を対応付け、本文中の条番号の言及を基準にできる。

    Raises:
        ClauseParseError: 2 列・3 列以外の表、または空欄のある行（UnsupportedTable）、
            データ行がない表（NoPairsFound）
    """
    pairs: List[SubstitutionPair] = []
    current_scope: Optional[ScopeRef] = None
    base = len(candidate.text)

    for index, row in enumerate(candidate.table or ()):
        cells = [cell.strip() for cell in row]
        if _is_header_row(cells):
            continue

        excerpt = " | ".join(cells)
        if len(cells) == 3:
            scope_text, original, replacement = cells
        elif len(cells) == 2:
            scope_text = ""
            original, replacement = cells
        else:
            raise ClauseParseError(
                ReasonCode.UNSUPPORTED_TABLE,
                f"{len(cells)} 列の表には対応していません",
                excerpt=excerpt,
            )

        if not original or not replacement:
            raise ClauseParseError(
                ReasonCode.UNSUPPORTED_TABLE,
                f"{index + 1} 行目に空欄があります",
                excerpt=excerpt,
            )

        if scope_text:
            scope = ScopeRef(text=scope_text, origin=ScopeOrigin.EXPLICIT, start=base + index)
            current_scope = scope
        elif current_scope is not None:
            scope = current_scope.inherited()
        else:
            scope = None

        pairs.append(SubstitutionPair(original=original, replacement=replacement, scope=scope))

    if not pairs:
        raise ClauseParseError(
            ReasonCode.NO_PAIRS_FOUND,
            "表にデータ行がありません",
            excerpt=candidate.text,
        )

    logger.debug(f"Parsed {len(pairs)} table rows at {candidate.location.label()}")
    return pairs
