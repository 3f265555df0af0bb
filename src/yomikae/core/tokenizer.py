"""
条文トークナイザ

引用スキャナが返した最上位の引用を手がかりに、引用の外側の字句だけを見て
条文を構造語の断片（Segment）に分ける。引用の内側の「とあるのは」等は
構造語として扱わない。

状態遷移:
    NEUTRAL     読み替えの外（定義語の引用などはここで読み捨てる）
    ORIGINALS   「とあり」「、」で置換前の字句を並べている途中
    READ_AS     「とあるのは」の直後
    REPLACEMENTS 置換後の字句を「、」で並べている途中

各引用の直後の字句（ギャップ）で次の状態を決める:
    とあるのは → OriginalQuote + ReadAsMarker
    とあり     → OriginalQuote + SharedMarker
    、 / 及び  → OriginalQuote + ListSeparator（置換前の列挙）
    と読み替え → ReplacementQuote + Terminator
    と（、）   → ReplacementQuote + Coordinator
"""
from enum import Enum
from typing import List, Optional, Sequence
import logging

from .models import (
    ClauseParseError,
    QuoteToken,
    ReasonCode,
    Segment,
    SegmentKind,
)
from ..utils.patterns import (
    FIRST_REFERENCE_PATTERN,
    LEADING_CONNECTIVES_PATTERN,
    LIST_SEPARATORS,
    PAIR_CLOSER,
    READ_AS_MARKER,
    REFERENCE_TAIL_PATTERN,
    RESPECTIVELY,
    SHARED_CONNECTIVES,
    SHARED_MARKER,
    TERMINATOR_PATTERN,
)

logger = logging.getLogger(__name__)

# スコープ字句の末尾（第五条中 / 同項第二号中 / この節中）
SCOPE_SUFFIX = '中'


class _State(Enum):
    NEUTRAL = "neutral"
    ORIGINALS = "originals"
    READ_AS = "read_as"
    REPLACEMENTS = "replacements"


# =============================================================================
# ギャップの判定
# =============================================================================

def _match_prefix(text: str, candidates: Sequence[str]) -> Optional[str]:
    """candidates（長い順）のうち text の先頭に一致する最初のもの"""
    for candidate in candidates:
        if text.startswith(candidate):
            return candidate
    return None


def _is_scope_remainder(text: str) -> bool:
    """区切りの後ろがスコープ字句だけか（「、同項第二号中」の「同項第二号中」）"""
    text = text.strip()
    return text.endswith(SCOPE_SUFFIX) and '。' not in text


def find_scope_marker(region: str, offset: int) -> Optional[Segment]:
    """
    引用直前の字句からスコープ字句を切り出す

    「…準用する。この場合において、同条第一項中」のように、最後の句点より後ろで
    「中」で終わる字句の最後の読点区切りをスコープとする。直前の断片が条・項・号で
    終わる場合は「第一条、第二条中」のように後ろへ延ばす。

    Args:
        region: 直前の引用（または条文先頭）から次の引用までの字句
        offset: region の条文中の開始位置

    Returns:
        ScopeMarker の Segment。スコープ字句がなければ None
    """
    body = region.rstrip()
    if not body.endswith(SCOPE_SUFFIX):
        return None
    body = body[:-len(SCOPE_SUFFIX)]

    base = body.rfind('。') + 1
    pieces = body[base:].split('、')
    scope = pieces[-1]
    idx = len(pieces) - 1
    while (
        idx > 0
        and REFERENCE_TAIL_PATTERN.search(pieces[idx - 1])
        and FIRST_REFERENCE_PATTERN.match(scope)
    ):
        scope = pieces[idx - 1] + '、' + scope
        idx -= 1

    scope = LEADING_CONNECTIVES_PATTERN.sub('', scope).lstrip()
    if not scope:
        return None

    start = offset + len(body) - len(scope)
    return Segment(SegmentKind.SCOPE_MARKER, start, start + len(scope), scope)


def _closer_segment(gap: str, offset: int, has_next: bool) -> Segment:
    """置換後の字句に続く「と…」を Terminator / Coordinator に分類"""
    match = TERMINATOR_PATTERN.match(gap)
    if match:
        return Segment(SegmentKind.TERMINATOR, offset, offset + match.end(), match.group(0))

    closer = PAIR_CLOSER + '、' if gap.startswith(PAIR_CLOSER + '、') else PAIR_CLOSER
    kind = SegmentKind.COORDINATOR if has_next else SegmentKind.TERMINATOR
    return Segment(kind, offset, offset + len(closer), closer)


def _quote_segment(kind: SegmentKind, quote: QuoteToken) -> Segment:
    return Segment(kind, quote.start, quote.end, quote.content, quote=quote)


# =============================================================================
# トークナイザ本体
# =============================================================================

def tokenize_clause(text: str, quotes: Sequence[QuoteToken]) -> List[Segment]:
    """
    条文を構造語の断片に分ける

    Args:
        text: 条文テキスト
        quotes: scan_quotes が返した最上位の引用

    Returns:
        条文中の出現順に並んだ Segment のリスト

    Raises:
        ClauseParseError: 置換前の字句に「とあるのは」と置換後の字句が
            続かない場合（MissingReadAsMarker）
    """
    segments: List[Segment] = []
    pending: List[Segment] = []  # 「とあるのは」で確定するまで保留する置換前の字句
    shared_run = False
    after_coordinator = False  # Coordinator の後は次の置換前の字句が続く
    state = _State.NEUTRAL
    group_start = 0

    first_start = quotes[0].start if quotes else len(text)
    scope_offset, scope_region = 0, text[:first_start]

    for i, quote in enumerate(quotes):
        has_next = i + 1 < len(quotes)
        gap_end = quotes[i + 1].start if has_next else len(text)
        gap = text[quote.end:gap_end]

        # ---------------------------------------------------------------
        # 置換後の字句
        # ---------------------------------------------------------------
        if state in (_State.READ_AS, _State.REPLACEMENTS):
            segments.append(_quote_segment(SegmentKind.REPLACEMENT_QUOTE, quote))

            if has_next and _match_prefix(gap, LIST_SEPARATORS) == gap:
                segments.append(Segment(SegmentKind.LIST_SEPARATOR, quote.end, gap_end, gap))
                state = _State.REPLACEMENTS
                continue

            if gap.startswith(PAIR_CLOSER):
                closer = _closer_segment(gap, quote.end, has_next)
                segments.append(closer)
                state = _State.NEUTRAL
                after_coordinator = closer.kind == SegmentKind.COORDINATOR
                scope_offset, scope_region = closer.end, text[closer.end:gap_end]
                continue

            if not has_next and not gap.strip():
                state = _State.NEUTRAL
                continue

            raise ClauseParseError(
                ReasonCode.MISSING_READ_AS_MARKER,
                "置換後の字句の後に「と」がありません",
                start=group_start,
                end=gap_end,
            )

        # ---------------------------------------------------------------
        # 置換前の字句（候補）
        # ---------------------------------------------------------------
        scope = find_scope_marker(scope_region, scope_offset)
        if not pending:
            group_start = scope.start if scope else quote.start

        if gap.startswith(READ_AS_MARKER):
            rest = gap[len(READ_AS_MARKER):]
            marker_end = quote.end + len(READ_AS_MARKER)
            if scope:
                pending.append(scope)
            pending.append(_quote_segment(SegmentKind.ORIGINAL_QUOTE, quote))
            pending.append(Segment(
                SegmentKind.READ_AS_MARKER,
                quote.end,
                marker_end,
                READ_AS_MARKER,
                respectively=rest.lstrip('、').startswith(RESPECTIVELY),
            ))
            if not has_next or '。' in rest:
                raise ClauseParseError(
                    ReasonCode.MISSING_READ_AS_MARKER,
                    "「とあるのは」の後に置換後の字句がありません",
                    start=group_start,
                    end=gap_end,
                )
            segments.extend(pending)
            pending = []
            shared_run = False
            after_coordinator = False
            state = _State.READ_AS
            continue

        if gap.startswith(SHARED_MARKER):
            connective = _match_prefix(gap[len(SHARED_MARKER):], SHARED_CONNECTIVES) or ''
            marker = SHARED_MARKER + connective
            if scope:
                pending.append(scope)
            pending.append(_quote_segment(SegmentKind.ORIGINAL_QUOTE, quote))
            pending.append(Segment(SegmentKind.SHARED_MARKER, quote.end, quote.end + len(marker), marker))
            if not has_next:
                raise ClauseParseError(
                    ReasonCode.MISSING_READ_AS_MARKER,
                    "「とあり」の後に置換前の字句がありません",
                    start=group_start,
                    end=gap_end,
                )
            shared_run = True
            state = _State.ORIGINALS
            scope_offset = quote.end + len(marker)
            scope_region = text[scope_offset:gap_end]
            continue

        separator = _match_prefix(gap, LIST_SEPARATORS) if has_next else None
        if separator is not None:
            remainder = gap[len(separator):]
            if not remainder or _is_scope_remainder(remainder):
                if scope:
                    pending.append(scope)
                pending.append(_quote_segment(SegmentKind.ORIGINAL_QUOTE, quote))
                pending.append(Segment(
                    SegmentKind.LIST_SEPARATOR,
                    quote.end,
                    quote.end + len(separator),
                    separator,
                ))
                state = _State.ORIGINALS
                scope_offset, scope_region = quote.end + len(separator), remainder
                continue

        # 読み替えに関係しない引用（定義語など）
        if after_coordinator:
            raise ClauseParseError(
                ReasonCode.MISSING_READ_AS_MARKER,
                "「と」で区切った後の字句に「とあるのは」が続きません",
                start=quote.start,
                end=gap_end,
            )
        if shared_run:
            raise ClauseParseError(
                ReasonCode.MISSING_READ_AS_MARKER,
                "「とあり」で始まる列挙が「とあるのは」で終わっていません",
                start=group_start,
                end=quote.end,
            )
        if pending:
            logger.debug(f"Discarding {len(pending)} segments before plain quote at {quote.start}")
        pending = []
        state = _State.NEUTRAL
        scope_offset, scope_region = quote.end, gap

    return segments

