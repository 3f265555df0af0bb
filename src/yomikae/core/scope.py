"""
スコープ解決

ペアに付いたスコープ字句（「同条第一項」「徴収法施行規則第二十七条及び第二十八条」
「この節」など）を構造化した参照に変換し、参照索引で実在を確認する。

- 字句を読めない、または「同条」等の指す先が決まらない → UnparsedScope
- 索引に存在しない → DanglingScope
- 他法令を指す → ExternalScope（索引では確認しない）

いずれも非致命的で、ペア自体は残す。

相対参照の基準:
    同条・同項・同号   直前の参照（同じ並びの前の参照 → 直前のスコープ → 引用外の条番号の言及）
    前条・次条・本条等 条文候補自身の所在
"""
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Sequence, Tuple
import logging

from .models import (
    ClauseCandidate,
    ClauseLocation,
    Flag,
    ProvisionRef,
    QuoteToken,
    Reference,
    ScopeOrigin,
    ScopeRef,
    SectionRef,
    SubstitutionPair,
)
from .reference_index import ReferenceIndex
from ..utils.article_formatter import shift_article_key, to_number_key
from ..utils.numerals import kanji_to_int
from ..utils.patterns import (
    ARTICLE_MENTION_PATTERN,
    ARTICLE_PATTERN,
    FIRST_REFERENCE_PATTERN,
    ITEM_PATTERN,
    LAW_NAME_BREAK_CHARS,
    PARAGRAPH_PATTERN,
    QUALIFIER_PATTERN,
    RANGE_END,
    REFERENCE_SEPARATOR_PATTERN,
    SECTION_SELF_PATTERN,
    SECTION_UNIT_PATTERN,
    SUBITEM_PATTERN,
    SUPPL_PREFIX,
    classify_law_prefix,
    mask_spans,
)

logger = logging.getLogger(__name__)

LEVELS: Tuple[str, ...] = ('article', 'paragraph', 'item')

_SHIFT: Dict[str, int] = {'前': -1, '次': 1}

# (条のキー, 増減, 附則か) -> 隣の条のキー
ArticleShifter = Callable[[str, int, bool], Optional[str]]


def _shift_by_number(key: str, delta: int, suppl: bool = False) -> Optional[str]:
    return shift_article_key(key, delta)


# =============================================================================
# スコープ字句のパース
# =============================================================================

@dataclass(frozen=True)
class ScopeUnit:
    """
    並びの中の一つの参照（未解決）

    *_rel は「同」「前」「次」「本」「この」のいずれか。
    """
    suppl: bool = False
    article: Optional[str] = None
    article_rel: Optional[str] = None
    paragraph: Optional[int] = None
    paragraph_rel: Optional[str] = None
    item: Optional[str] = None
    item_rel: Optional[str] = None
    subitem: Optional[str] = None
    section: Optional[Tuple[Tuple[str, Optional[str]], ...]] = None

    def value(self, level: str):
        return getattr(self, level)

    def rel(self, level: str) -> Optional[str]:
        return getattr(self, f"{level}_rel")

    @property
    def top_level(self) -> Optional[str]:
        for level in LEVELS:
            if self.value(level) is not None or self.rel(level) is not None:
                return level
        return None


@dataclass(frozen=True)
class ParsedScope:
    law_kind: str  # self / same / external
    law_name: Optional[str]
    units: Tuple[ScopeUnit, ...]
    qualifier: str = ""


def _parse_unit(text: str, pos: int) -> Tuple[Optional[ScopeUnit], int]:
    """pos から一つの参照を読む。読めなければ (None, pos)"""
    match = SECTION_UNIT_PATTERN.match(text, pos)
    if match:
        path = []
        while match:
            path.append((match.group(2), to_number_key(match.group(1), match.group(3))))
            pos = match.end()
            match = SECTION_UNIT_PATTERN.match(text, pos)
        return ScopeUnit(section=tuple(path)), pos

    match = SECTION_SELF_PATTERN.match(text, pos)
    if match:
        return ScopeUnit(section=((match.group(1), None),)), match.end()

    start = pos
    fields: Dict[str, object] = {}
    if text.startswith(SUPPL_PREFIX, pos):
        fields['suppl'] = True
        pos += len(SUPPL_PREFIX)

    match = ARTICLE_PATTERN.match(text, pos)
    if match:
        if match.group(1):
            fields['article'] = to_number_key(match.group(1), match.group(2))
        else:
            fields['article_rel'] = match.group(3)
        pos = match.end()

    match = PARAGRAPH_PATTERN.match(text, pos)
    if match:
        if match.group(1):
            fields['paragraph'] = kanji_to_int(match.group(1))
        else:
            fields['paragraph_rel'] = match.group(2)
        pos = match.end()

    match = ITEM_PATTERN.match(text, pos)
    if match:
        if match.group(1):
            fields['item'] = to_number_key(match.group(1), match.group(2))
        else:
            fields['item_rel'] = match.group(3)
        pos = match.end()
        match = SUBITEM_PATTERN.match(text, pos)
        if match:
            fields['subitem'] = match.group(0)
            pos = match.end()

    unit = ScopeUnit(**fields)
    if unit.top_level is None:
        return None, start
    return unit, pos


def parse_scope_text(text: str) -> Optional[ParsedScope]:
    """
    スコープ字句をパースする

    Args:
        text: 「中」を除いたスコープ字句

    Returns:
        ParsedScope。法令名・参照・限定語として読めなければ None

    Examples:
        「第二十七条及び第二十八条」→ units 2 件
        「同条第二項各号列記以外の部分」→ units 1 件, qualifier '各号列記以外の部分'
    """
    text = text.strip()
    first = FIRST_REFERENCE_PATTERN.search(text)
    if not first:
        return None

    law_kind, law_name = classify_law_prefix(text[:first.start()])
    if law_kind == 'invalid':
        return None

    units: List[ScopeUnit] = []
    pos = first.start()
    while True:
        unit, pos = _parse_unit(text, pos)
        if unit is None:
            break
        units.append(unit)
        if text.startswith(RANGE_END, pos):
            pos += len(RANGE_END)
        separator = REFERENCE_SEPARATOR_PATTERN.match(text, pos)
        if not separator:
            break
        following, _ = _parse_unit(text, separator.end())
        if following is None:
            break
        pos = separator.end()

    if not units:
        return None

    qualifier = text[pos:]
    if qualifier and not QUALIFIER_PATTERN.match(qualifier):
        return None

    return ParsedScope(law_kind=law_kind, law_name=law_name, units=tuple(units), qualifier=qualifier)


# =============================================================================
# 相対参照の解決
# =============================================================================

@dataclass(frozen=True)
class ReferenceContext:
    """「同条」等の基準となる直前の参照"""
    ref: ProvisionRef
    law_name: Optional[str] = None


def _relative_value(
    rel: str,
    base: Optional[ProvisionRef],
    level: str,
    shift_article: ArticleShifter = _shift_by_number,
):
    """同・前・次・本・この を基準参照の値に変換"""
    if base is None:
        return None
    value = getattr(base, level)
    if value is None or value == "":
        return None
    if rel not in _SHIFT:
        return value
    if level == 'paragraph':
        shifted = value + _SHIFT[rel]
        return shifted if shifted >= 1 else None
    if level == 'article':
        return shift_article(value, _SHIFT[rel], base.suppl)
    return shift_article_key(value, _SHIFT[rel])


def resolve_unit(
    unit: ScopeUnit,
    previous: Optional[ProvisionRef],
    context: Optional[ProvisionRef],
    own: ProvisionRef,
    shift_article: ArticleShifter = _shift_by_number,
) -> Optional[ProvisionRef]:
    """
    参照一つを解決する

    Args:
        unit: パース済みの参照
        previous: 同じ並びの直前の参照（「第十八条第一項若しくは第二項」の第二項の基準）
        context: 直前のスコープまたは条番号の言及
        own: 条文候補自身の所在
        shift_article: 前条・次条の求め方（索引があれば条の並びを使う）

    Returns:
        ProvisionRef。基準がなく決められない場合は None
    """
    same_base = previous or context
    higher_base = previous or context or own

    def base_for(rel: Optional[str]) -> Optional[ProvisionRef]:
        if rel == '同':
            return same_base
        if rel is None:
            return higher_base
        return own

    top = unit.top_level
    if top is None:
        return None
    top_base = base_for(unit.rel(top))
    if top_base is None:
        return None

    values: Dict[str, object] = {}
    top_index = LEVELS.index(top)
    for index, level in enumerate(LEVELS):
        explicit = unit.value(level)
        rel = unit.rel(level)
        if index < top_index:
            values[level] = getattr(top_base, level)
        elif explicit is not None:
            values[level] = explicit
        elif rel is not None:
            value = _relative_value(rel, base_for(rel), level, shift_article)
            if value is None:
                return None
            values[level] = value
        else:
            values[level] = None

    if not values['article']:
        return None

    suppl = unit.suppl
    if not suppl and (top_index > 0 or unit.rel(top) is not None):
        suppl = top_base.suppl

    return ProvisionRef(
        article=values['article'],
        paragraph=values['paragraph'],
        item=values['item'],
        subitem=unit.subitem,
        suppl=suppl,
    )


def own_reference(location: ClauseLocation) -> ProvisionRef:
    return ProvisionRef(
        article=location.article or None,
        paragraph=location.paragraph,
        item=location.item,
        suppl=location.is_suppl,
    )


def find_mention_context(
    text: str,
    quotes: Sequence[QuoteToken],
    start: int,
    end: int,
) -> Optional[ReferenceContext]:
    """
    text[start:end] の引用外で最後に言及された条番号を返す

    「第百十三条の三十八の規定は、…準用する。この場合において、同条第一項中」の
    「同条」を第百十三条の三十八に結び付けるのに使う。
    """
    if end <= start:
        return None
    masked = mask_spans(text, [(q.start, q.end) for q in quotes])[:end]

    last = None
    for match in ARTICLE_MENTION_PATTERN.finditer(masked, start):
        last = match
    if last is None:
        return None

    ref = ProvisionRef(
        article=to_number_key(last.group(2), last.group(3)),
        paragraph=kanji_to_int(last.group(4)) if last.group(4) else None,
        item=to_number_key(last.group(5), last.group(6)) if last.group(5) else None,
        suppl=bool(last.group(1)),
    )

    # 言及の直前の法令名（民法第五条 等）
    head = masked[:last.start()]
    cut = len(head)
    while cut > 0 and head[cut - 1] not in LAW_NAME_BREAK_CHARS:
        cut -= 1
    law_kind, law_name = classify_law_prefix(head[cut:])
    return ReferenceContext(ref=ref, law_name=law_name if law_kind == 'external' else None)


# =============================================================================
# ScopeResolver
# =============================================================================

def _merge_flags(*groups: Sequence[Flag]) -> Tuple[Flag, ...]:
    merged: List[Flag] = []
    for group in groups:
        for flag in group:
            if flag not in merged:
                merged.append(flag)
    return tuple(merged)


class ScopeResolver:
    """
    ペアのスコープを解決し、参照索引で検証する

    index が None の場合は検証を行わない（パースと相対参照の解決のみ）。
    """

    def __init__(self, index: Optional[ReferenceIndex] = None):
        self.index = index

    def resolve(
        self,
        candidate: ClauseCandidate,
        pairs: Sequence[SubstitutionPair],
        quotes: Sequence[QuoteToken] = (),
    ) -> List[SubstitutionPair]:
        """
        Args:
            candidate: 条文候補
            pairs: match_pairs の出力（スコープは字句のみ）
            quotes: 条文の最上位の引用（条番号の言及を探す範囲から除く）

        Returns:
            スコープを解決し、警告を付けたペアのリスト
        """
        resolved: Dict[Tuple[str, int], Tuple[ScopeRef, Tuple[Flag, ...]]] = {}
        context: Optional[ReferenceContext] = None
        context_end = 0
        results: List[SubstitutionPair] = []

        for pair in pairs:
            scope = pair.scope
            if scope is None:
                results.append(pair)
                continue

            key = (scope.text, scope.start)
            if key not in resolved:
                mention = find_mention_context(candidate.text, quotes, context_end, scope.start)
                ref_scope, flags, new_context = self._resolve_scope(
                    scope, mention or context, candidate.location
                )
                resolved[key] = (ref_scope, flags)
                if new_context is not None:
                    context = new_context
                context_end = max(context_end, scope.start + len(scope.text))

            ref_scope, flags = resolved[key]
            if scope.origin == ScopeOrigin.INHERITED:
                ref_scope = ref_scope.inherited()
            else:
                ref_scope = replace(ref_scope, origin=ScopeOrigin.EXPLICIT)
            results.append(replace(pair, scope=ref_scope, flags=_merge_flags(pair.flags, flags)))

        return results

    def _resolve_scope(
        self,
        scope: ScopeRef,
        context: Optional[ReferenceContext],
        location: ClauseLocation,
    ) -> Tuple[ScopeRef, Tuple[Flag, ...], Optional[ReferenceContext]]:
        parsed = parse_scope_text(scope.text)
        if parsed is None:
            logger.debug(f"Unparsed scope {scope.text!r} at {location.label()}")
            return scope, (Flag.UNPARSED_SCOPE,), None

        resolution = self._resolve_units(parsed, context, location)
        if resolution is None:
            logger.debug(f"Unresolved relative scope {scope.text!r} at {location.label()}")
            return replace(scope, qualifier=parsed.qualifier), (Flag.UNPARSED_SCOPE,), None

        refs, law_name = resolution
        resolved = replace(scope, refs=refs, law_name=law_name, qualifier=parsed.qualifier)

        flags: List[Flag] = []
        if law_name is not None:
            flags.append(Flag.EXTERNAL_SCOPE)
        elif self.index is not None:
            for ref in refs:
                if isinstance(ref, SectionRef) and ref.is_self_relative:
                    continue
                if not self.index.exists(location.law_id, ref):
                    logger.debug(f"Dangling scope {scope.text!r} in {location.law_id}")
                    flags.append(Flag.DANGLING_SCOPE)
                    break

        provisions = [ref for ref in refs if isinstance(ref, ProvisionRef)]
        new_context = ReferenceContext(ref=provisions[-1], law_name=law_name) if provisions else None
        return resolved, tuple(flags), new_context

    def _article_shifter(self, law_id: str) -> ArticleShifter:
        """索引が条の並びを知っていればそれに従い、なければ条番号の増減で前条・次条を求める"""
        def shift(key: str, delta: int, suppl: bool) -> Optional[str]:
            if self.index is not None:
                adjacent = self.index.adjacent_article(law_id, key, delta, suppl)
                if adjacent is not None:
                    return adjacent
            return shift_article_key(key, delta)
        return shift

    def _resolve_units(
        self,
        parsed: ParsedScope,
        context: Optional[ReferenceContext],
        location: ClauseLocation,
    ) -> Optional[Tuple[Tuple[Reference, ...], Optional[str]]]:
        own = own_reference(location)
        shift_article = self._article_shifter(location.law_id)
        context_ref = context.ref if context else None

        law_name = parsed.law_name
        if parsed.law_kind == 'same':
            if context is None or context.law_name is None:
                return None
            law_name = context.law_name
        elif parsed.law_kind == 'self' and context is not None:
            first = parsed.units[0]
            if first.top_level is not None and first.rel(first.top_level) == '同':
                law_name = context.law_name

        refs: List[Reference] = []
        previous: Optional[ProvisionRef] = None
        for unit in parsed.units:
            if unit.section is not None:
                refs.append(SectionRef(path=unit.section))
                continue
            ref = resolve_unit(unit, previous, context_ref, own, shift_article)
            if ref is None:
                return None
            refs.append(ref)
            previous = ref

        return tuple(refs), law_name
