"""
引用スキャナ

条文中の鉤括弧（「」『』）を走査し、引用の範囲を QuoteToken の列として返す。
入れ子の引用は外側の引用の children に入り、最上位の引用同士は重ならない。

- 対応する開き括弧のない閉じ括弧は無視し、警告として位置を記録する
- 閉じられないまま条文が終わる開き括弧は UnterminatedQuote
- 『』が「」の外に単独で現れた場合は通常の引用として扱う（法令文の慣行）
"""
from dataclasses import dataclass, field
from typing import Dict, List
import logging

from .models import (
    BracketKind,
    ClauseParseError,
    QuoteScan,
    QuoteToken,
    ReasonCode,
)

logger = logging.getLogger(__name__)

OPEN_BRACKETS: Dict[str, BracketKind] = {
    '「': BracketKind.SINGLE,
    '『': BracketKind.DOUBLE,
}

CLOSE_BRACKETS: Dict[str, BracketKind] = {
    '」': BracketKind.SINGLE,
    '』': BracketKind.DOUBLE,
}


@dataclass
class _OpenQuote:
    kind: BracketKind
    start: int
    depth: int
    children: List[QuoteToken] = field(default_factory=list)


def scan_quotes(text: str) -> QuoteScan:
    """
    引用を走査する

    Args:
        text: 条文テキスト

    Returns:
        最上位の QuoteToken 列と、対応のない閉じ括弧の位置

    Raises:
        ClauseParseError: 閉じられない開き括弧がある場合（UnterminatedQuote）
    """
    stack: List[_OpenQuote] = []
    tokens: List[QuoteToken] = []
    unmatched: List[int] = []

    for pos, char in enumerate(text):
        if char in OPEN_BRACKETS:
            stack.append(_OpenQuote(kind=OPEN_BRACKETS[char], start=pos, depth=len(stack)))
            continue

        kind = CLOSE_BRACKETS.get(char)
        if kind is None:
            continue

        if not any(opened.kind == kind for opened in stack):
            logger.debug(f"Unmatched closing bracket {char!r} at {pos}")
            unmatched.append(pos)
            continue

        if stack[-1].kind != kind:
            # 内側の括弧が閉じられないまま外側の括弧が閉じられた
            inner = stack[-1]
            raise ClauseParseError(
                ReasonCode.UNTERMINATED_QUOTE,
                f"位置 {inner.start} の開き括弧が閉じられていません",
                start=inner.start,
                end=pos + 1,
            )

        opened = stack.pop()
        token = QuoteToken(
            start=opened.start,
            end=pos + 1,
            depth=opened.depth,
            kind=opened.kind,
            content=text[opened.start + 1:pos],
            children=tuple(opened.children),
        )
        if stack:
            stack[-1].children.append(token)
        else:
            tokens.append(token)

    if stack:
        unclosed = stack[0]
        raise ClauseParseError(
            ReasonCode.UNTERMINATED_QUOTE,
            f"位置 {unclosed.start} の開き括弧が条文の終わりまでに閉じられていません",
            start=unclosed.start,
            end=len(text),
        )

    return QuoteScan(tokens=tuple(tokens), unmatched_closings=tuple(unmatched))
