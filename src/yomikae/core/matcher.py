"""
ペア照合

トークナイザの Segment 列を左から畳み込み、置換前・置換後の字句の組
（SubstitutionPair）を組み立てる。Coordinator / Terminator でグループを閉じる。

グループ内の対応付け:
    置換後が一つ        → 全ての置換前に同じ置換後を対応させる（「とあり」型）
    置換前と置換後が同数 → 位置で対応させる（「それぞれ」型の列挙）
    それ以外            → UnbalancedList

スコープは「直近のスコープ」を持ち回り、スコープ字句のない置換前の字句は
それより前のスコープを継承する（後ろのグループからは継承しない）。
"""
from dataclasses import dataclass, field
from typing import List, Optional, Sequence
import logging

from .models import (
    ClauseParseError,
    ReasonCode,
    ScopeOrigin,
    ScopeRef,
    Segment,
    SegmentKind,
    SubstitutionPair,
)

logger = logging.getLogger(__name__)


@dataclass
class _Original:
    segment: Segment
    scope: Optional[ScopeRef]


@dataclass
class _Group:
    originals: List[_Original] = field(default_factory=list)
    replacements: List[Segment] = field(default_factory=list)
    read_as: Optional[Segment] = None

    @property
    def is_empty(self) -> bool:
        return not self.originals and not self.replacements

    @property
    def start(self) -> int:
        if self.originals:
            first = self.originals[0]
            if first.scope is not None and first.scope.origin == ScopeOrigin.EXPLICIT:
                return min(first.scope.start, first.segment.start)
            return first.segment.start
        if self.replacements:
            return self.replacements[0].start
        return 0

    @property
    def end(self) -> int:
        if self.replacements:
            return self.replacements[-1].end
        if self.read_as is not None:
            return self.read_as.end
        if self.originals:
            return self.originals[-1].segment.end
        return 0


def _close_group(group: _Group) -> List[SubstitutionPair]:
    """グループ内の置換前・置換後を対応付ける"""
    if group.read_as is None or not group.originals or not group.replacements:
        raise ClauseParseError(
            ReasonCode.MISSING_READ_AS_MARKER,
            "置換前の字句に「とあるのは」と置換後の字句が対応していません",
            start=group.start,
            end=group.end,
        )

    originals = group.originals
    replacements = group.replacements
    n, m = len(originals), len(replacements)

    if group.read_as.respectively and n != m:
        raise ClauseParseError(
            ReasonCode.UNBALANCED_LIST,
            f"「それぞれ」の列挙で置換前 {n} 件と置換後 {m} 件が一致しません",
            start=group.start,
            end=group.end,
        )

    pairs: List[SubstitutionPair] = []

    if m == 1:
        replacement = replacements[0]
        for idx, original in enumerate(originals):
            pairs.append(SubstitutionPair(
                original=original.segment.text,
                replacement=replacement.text,
                scope=original.scope,
                ellipsis=idx < n - 1,
                original_quote=original.segment.quote,
                replacement_quote=replacement.quote,
            ))
        return pairs

    if n == m:
        # 列挙の途中にスコープ字句がある場合、どの置換後まで及ぶか決められない
        for original in originals[1:]:
            if original.scope is not None and original.scope.origin == ScopeOrigin.EXPLICIT:
                raise ClauseParseError(
                    ReasonCode.UNBALANCED_LIST,
                    f"列挙の途中にスコープ「{original.scope.text}」があります",
                    start=group.start,
                    end=group.end,
                )
        for original, replacement in zip(originals, replacements):
            pairs.append(SubstitutionPair(
                original=original.segment.text,
                replacement=replacement.text,
                scope=original.scope,
                ellipsis=True,
                original_quote=original.segment.quote,
                replacement_quote=replacement.quote,
            ))
        return pairs

    raise ClauseParseError(
        ReasonCode.UNBALANCED_LIST,
        f"置換前 {n} 件と置換後 {m} 件を対応付けられません",
        start=group.start,
        end=group.end,
    )


def match_pairs(segments: Sequence[Segment]) -> List[SubstitutionPair]:
    """
    Segment 列から SubstitutionPair を組み立てる

    Args:
        segments: tokenize_clause の出力

    Returns:
        条文中の出現順の SubstitutionPair のリスト

    Raises:
        ClauseParseError: 対応付けに失敗した場合、またはペアが一つもない場合
    """
    pairs: List[SubstitutionPair] = []
    current_scope: Optional[ScopeRef] = None
    pending_scope: Optional[ScopeRef] = None
    group = _Group()

    for segment in segments:
        kind = segment.kind

        if kind == SegmentKind.SCOPE_MARKER:
            pending_scope = ScopeRef(text=segment.text, origin=ScopeOrigin.EXPLICIT, start=segment.start)

        elif kind == SegmentKind.ORIGINAL_QUOTE:
            if group.read_as is not None:
                # 前のグループが Coordinator なしに終わっている
                pairs.extend(_close_group(group))
                group = _Group()
            if pending_scope is not None:
                scope = pending_scope
                current_scope = pending_scope
                pending_scope = None
            elif current_scope is not None:
                scope = current_scope.inherited()
            else:
                scope = None
            group.originals.append(_Original(segment=segment, scope=scope))

        elif kind == SegmentKind.READ_AS_MARKER:
            group.read_as = segment

        elif kind == SegmentKind.REPLACEMENT_QUOTE:
            group.replacements.append(segment)

        elif kind in (SegmentKind.COORDINATOR, SegmentKind.TERMINATOR):
            if not group.is_empty:
                pairs.extend(_close_group(group))
            group = _Group()

        # SharedMarker / ListSeparator は並びの区切りで、対応付けには影響しない

    if not group.is_empty:
        pairs.extend(_close_group(group))

    if not pairs:
        raise ClauseParseError(ReasonCode.NO_PAIRS_FOUND, "読み替えの字句の組が見つかりません")

    logger.debug(f"Matched {len(pairs)} pairs")
    return pairs
