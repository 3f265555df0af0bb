"""
読み替え規定解析のデータモデル

一つの条文候補（ClauseCandidate）を解析すると、成功なら ClauseResult、
失敗なら ClauseFailure が一つ得られる。いずれも解析のたびに新しく作られ、
作成後は変更しない（frozen dataclass）。
"""
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from ..config import EXCERPT_MAX_LENGTH
from ..utils.article_formatter import (
    article_key_to_japanese,
    item_key_to_japanese,
    number_key_sort_key,
)


# =============================================================================
# 列挙型
# =============================================================================

class BracketKind(str, Enum):
    """鉤括弧の種類"""
    SINGLE = "single"  # 「」
    DOUBLE = "double"  # 『』


class ReasonCode(str, Enum):
    """解析失敗の理由（致命的）"""
    UNTERMINATED_QUOTE = "UnterminatedQuote"
    MISSING_READ_AS_MARKER = "MissingReadAsMarker"
    NO_PAIRS_FOUND = "NoPairsFound"
    UNBALANCED_LIST = "UnbalancedList"
    UNSUPPORTED_TABLE = "UnsupportedTable"


class Flag(str, Enum):
    """解析結果に付く警告（非致命的）"""
    UNPARSED_SCOPE = "UnparsedScope"
    DANGLING_SCOPE = "DanglingScope"
    UNMATCHED_CLOSING_BRACKET = "UnmatchedClosingBracket"
    EXTERNAL_SCOPE = "ExternalScope"


class SegmentKind(str, Enum):
    """条文を構造語で区切った断片の種類"""
    SCOPE_MARKER = "ScopeMarker"
    ORIGINAL_QUOTE = "OriginalQuote"
    SHARED_MARKER = "SharedMarker"
    LIST_SEPARATOR = "ListSeparator"
    READ_AS_MARKER = "ReadAsMarker"
    REPLACEMENT_QUOTE = "ReplacementQuote"
    COORDINATOR = "Coordinator"
    TERMINATOR = "Terminator"


class ScopeOrigin(str, Enum):
    EXPLICIT = "explicit"
    INHERITED = "inherited"


# =============================================================================
# 入力
# =============================================================================

@dataclass(frozen=True)
class ClauseLocation:
    """
    条文候補の所在

    article / item は e-Gov の Num 属性と同じ '3_2' 形式のキー。
    本則・附則の外にある条文（Article を持たない法令）は article が空文字。
    """
    law_id: str
    article: str = ""
    paragraph: Optional[int] = None
    item: Optional[str] = None
    law_num: str = ""
    part: str = "main"  # main / suppl
    amend_law_num: Optional[str] = None

    @property
    def is_suppl(self) -> bool:
        return self.part == "suppl"

    def sort_key(self) -> Tuple:
        return (
            self.law_id,
            0 if self.part == "main" else 1,
            self.amend_law_num or "",
            number_key_sort_key(self.article),
            self.paragraph or 0,
            number_key_sort_key(self.item),
        )

    def label(self) -> str:
        """日本語の所在表記（附則第3条の2第1項第2号 等）"""
        parts = []
        if self.amend_law_num:
            parts.append(f"附則（{self.amend_law_num}）")
            parts.append(article_key_to_japanese(self.article))
        else:
            parts.append(article_key_to_japanese(self.article, is_suppl=self.is_suppl))
        if self.paragraph is not None:
            parts.append(f"第{self.paragraph}項")
        if self.item:
            parts.append(item_key_to_japanese(self.item))
        return "".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "law_id": self.law_id,
            "law_num": self.law_num,
            "part": self.part,
            "amend_law_num": self.amend_law_num,
            "article": self.article,
            "paragraph": self.paragraph,
            "item": self.item,
            "label": self.label(),
        }


@dataclass(frozen=True)
class ClauseCandidate:
    """解析対象の条文（表形式の場合は table に行・列の字句を持つ）"""
    location: ClauseLocation
    text: str
    table: Optional[Tuple[Tuple[str, ...], ...]] = None


# =============================================================================
# 中間表現
# =============================================================================

@dataclass(frozen=True)
class QuoteToken:
    """
    鉤括弧で囲まれた引用

    start は開き括弧の位置、end は閉じ括弧の直後の位置。
    depth は 0 が最も外側。入れ子の引用は children に入る。
    """
    start: int
    end: int
    depth: int
    kind: BracketKind
    content: str
    children: Tuple["QuoteToken", ...] = ()


@dataclass(frozen=True)
class QuoteScan:
    tokens: Tuple[QuoteToken, ...]
    unmatched_closings: Tuple[int, ...] = ()

    @property
    def has_unmatched_closing(self) -> bool:
        return bool(self.unmatched_closings)


@dataclass(frozen=True)
class Segment:
    kind: SegmentKind
    start: int
    end: int
    text: str
    quote: Optional[QuoteToken] = None
    respectively: bool = False


# =============================================================================
# スコープ
# =============================================================================

@dataclass(frozen=True)
class ProvisionRef:
    """条・項・号への参照"""
    article: Optional[str] = None
    paragraph: Optional[int] = None
    item: Optional[str] = None
    subitem: Optional[str] = None
    suppl: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "provision",
            "suppl": self.suppl,
            "article": self.article,
            "paragraph": self.paragraph,
            "item": self.item,
            "subitem": self.subitem,
        }


@dataclass(frozen=True)
class SectionRef:
    """
    編・章・節・款・目への参照

    path は外側から順の (階層, 番号キー)。番号が None なら「この節」のような
    当該条文自身の属する単位を指す。
    """
    path: Tuple[Tuple[str, Optional[str]], ...]

    @property
    def is_self_relative(self) -> bool:
        return any(number is None for _, number in self.path)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "section",
            "path": [{"level": level, "number": number} for level, number in self.path],
        }


Reference = Union[ProvisionRef, SectionRef]


@dataclass(frozen=True)
class ScopeRef:
    """
    読み替えの適用範囲

    text は条文中のスコープ字句（「同条第一項」など）。refs 以下は
    ScopeResolver が埋める。start は条文中の位置（表形式では行番号）で、
    継承されたスコープと継承元を対応付けるのに使う。
    """
    text: str
    origin: ScopeOrigin = ScopeOrigin.EXPLICIT
    start: int = -1
    refs: Tuple[Reference, ...] = ()
    law_name: Optional[str] = None
    qualifier: str = ""

    @property
    def is_resolved(self) -> bool:
        return bool(self.refs)

    def inherited(self) -> "ScopeRef":
        return replace(self, origin=ScopeOrigin.INHERITED)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "origin": self.origin.value,
            "law_name": self.law_name,
            "refs": [ref.to_dict() for ref in self.refs],
            "qualifier": self.qualifier,
        }


# =============================================================================
# 出力
# =============================================================================

@dataclass(frozen=True)
class SubstitutionPair:
    original: str
    replacement: str
    scope: Optional[ScopeRef] = None
    ellipsis: bool = False
    flags: Tuple[Flag, ...] = ()
    original_quote: Optional[QuoteToken] = None
    replacement_quote: Optional[QuoteToken] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "original": self.original,
            "replacement": self.replacement,
            "scope": self.scope.to_dict() if self.scope else None,
            "ellipsis": self.ellipsis,
            "flags": [f.value for f in self.flags],
        }


@dataclass(frozen=True)
class ClauseResult:
    location: ClauseLocation
    pairs: Tuple[SubstitutionPair, ...]
    flags: Tuple[Flag, ...] = ()

    def all_flags(self) -> List[Flag]:
        """条文単位の警告と各ペアの警告を重複なく列挙"""
        seen: List[Flag] = list(self.flags)
        for pair in self.pairs:
            for flag in pair.flags:
                if flag not in seen:
                    seen.append(flag)
        return seen

    def to_dict(self) -> Dict[str, Any]:
        return {
            "location": self.location.to_dict(),
            "pairs": [pair.to_dict() for pair in self.pairs],
            "flags": [f.value for f in self.flags],
        }


@dataclass(frozen=True)
class ClauseFailure:
    location: ClauseLocation
    excerpt: str
    reason: ReasonCode
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "location": self.location.to_dict(),
            "reason": self.reason.value,
            "excerpt": self.excerpt,
            "message": self.message,
        }


ClauseOutcome = Union[ClauseResult, ClauseFailure]


# =============================================================================
# 例外
# =============================================================================

class ClauseParseError(Exception):
    """
    解析段階で発生した致命的エラー

    start / end は原因となった範囲。表形式など条文本文に位置を持たない
    場合は excerpt を直接渡す。ClauseFailure への変換は集約段階だけで行う。
    """

    def __init__(
        self,
        reason: ReasonCode,
        message: str,
        start: int = 0,
        end: int = 0,
        excerpt: Optional[str] = None,
    ):
        super().__init__(message)
        self.reason = reason
        self.start = start
        self.end = end
        self.excerpt = excerpt

    def excerpt_from(self, text: str) -> str:
        if self.excerpt is not None:
            return truncate_excerpt(self.excerpt)
        return make_excerpt(text, self.start, self.end)


def truncate_excerpt(excerpt: str, limit: int = EXCERPT_MAX_LENGTH) -> str:
    if len(excerpt) <= limit:
        return excerpt
    return excerpt[:limit] + "…"


def make_excerpt(text: str, start: int, end: int, limit: int = EXCERPT_MAX_LENGTH) -> str:
    """
    text[start:end] を抜粋として返す（limit 文字で打ち切り）

    範囲が空の場合は条文全体を対象にする。
    """
    start = max(0, start)
    end = min(len(text), end)
    if end <= start:
        start, end = 0, len(text)
    return truncate_excerpt(text[start:end].strip(), limit)
