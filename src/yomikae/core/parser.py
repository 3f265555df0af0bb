"""
読み替え規定パーサ（結果の集約）

条文候補一つを
    引用スキャナ → トークナイザ → ペア照合 → スコープ解決
の順に処理し、ClauseResult または ClauseFailure を一つ返す。

- 致命的なエラーはどの段階でも ClauseParseError として送出され、ここで
  ClauseFailure に変換される（途中までのペアは捨てる）
- 非致命的な警告はペア・条文の flags に付けて結果に残す
"""
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterable, List, Optional, Sequence, Tuple
import logging

from .matcher import match_pairs
from .models import (
    ClauseCandidate,
    ClauseFailure,
    ClauseOutcome,
    ClauseParseError,
    ClauseResult,
    Flag,
    QuoteToken,
    ReasonCode,
    SubstitutionPair,
)
from .quotes import scan_quotes
from .reference_index import ReferenceIndex
from .scope import ScopeResolver
from .table import parse_table_clause
from .tokenizer import tokenize_clause
from ..config import DEFAULT_WORKERS

logger = logging.getLogger(__name__)


class ClauseParser:
    """
    条文候補の解析器

    状態は参照索引（読み取り専用）だけなので、一つのインスタンスを
    複数スレッドから同時に使ってよい。
    """

    def __init__(self, index: Optional[ReferenceIndex] = None):
        self.index = index
        self.resolver = ScopeResolver(index)

    def parse(self, candidate: ClauseCandidate) -> ClauseOutcome:
        """
        条文候補を一つ解析する

        Args:
            candidate: 条文候補

        Returns:
            成功なら ClauseResult、失敗なら ClauseFailure
        """
        text = candidate.text
        try:
            pairs, quotes, flags = self._extract_pairs(candidate)
            pairs = self.resolver.resolve(candidate, pairs, quotes)
        except ClauseParseError as e:
            logger.warning(f"{candidate.location.law_id} {candidate.location.label()}: {e.reason.value}: {e}")
            return ClauseFailure(
                location=candidate.location,
                excerpt=e.excerpt_from(text),
                reason=e.reason,
                message=str(e),
            )

        return ClauseResult(location=candidate.location, pairs=tuple(pairs), flags=flags)

    def _extract_pairs(
        self, candidate: ClauseCandidate
    ) -> Tuple[List[SubstitutionPair], Sequence[QuoteToken], Tuple[Flag, ...]]:
        if candidate.table is not None:
            return parse_table_clause(candidate), (), ()

        text = candidate.text
        if not text.strip():
            raise ClauseParseError(ReasonCode.NO_PAIRS_FOUND, "条文が空です")

        scan = scan_quotes(text)
        segments = tokenize_clause(text, scan.tokens)
        pairs = match_pairs(segments)

        flags: Tuple[Flag, ...] = ()
        if scan.has_unmatched_closing:
            flags = (Flag.UNMATCHED_CLOSING_BRACKET,)
        return pairs, scan.tokens, flags

    def parse_many(
        self,
        candidates: Iterable[ClauseCandidate],
        workers: int = DEFAULT_WORKERS,
    ) -> List[ClauseOutcome]:
        """
        複数の条文候補を解析し、所在順に並べて返す

        workers > 1 のときはスレッドプールで並列に解析する。
        結果の順序はスケジューリングに依存しない。
        """
        candidates = list(candidates)
        if workers <= 1 or len(candidates) <= 1:
            indexed = list(enumerate(self.parse(candidate) for candidate in candidates))
        else:
            indexed = []
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = {
                    executor.submit(self.parse, candidate): i
                    for i, candidate in enumerate(candidates)
                }
                for future in as_completed(futures):
                    indexed.append((futures[future], future.result()))

        # 同じ所在の候補（本文と表など）は入力順を保つ
        indexed.sort(key=lambda pair: (pair[1].location.sort_key(), pair[0]))
        return [outcome for _, outcome in indexed]


def parse_clause(candidate: ClauseCandidate, index: Optional[ReferenceIndex] = None) -> ClauseOutcome:
    """条文候補を一つ解析する（ClauseParser(index).parse の省略形）"""
    return ClauseParser(index).parse(candidate)


def split_outcomes(outcomes: Iterable[ClauseOutcome]) -> Tuple[List[ClauseResult], List[ClauseFailure]]:
    """解析結果を成功・失敗の二つの列に分ける"""
    results: List[ClauseResult] = []
    failures: List[ClauseFailure] = []
    for outcome in outcomes:
        if isinstance(outcome, ClauseResult):
            results.append(outcome)
        else:
            failures.append(outcome)
    return results, failures
