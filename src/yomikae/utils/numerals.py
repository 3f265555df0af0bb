"""
漢数字ユーティリティ

条文番号に現れる漢数字・算用数字・全角数字を整数に変換する。
"""
from typing import Dict

KANJI_TO_DIGIT: Dict[str, int] = {
    '〇': 0, '零': 0,
    '一': 1, '壱': 1,
    '二': 2, '弐': 2,
    '三': 3, '参': 3,
    '四': 4,
    '五': 5,
    '六': 6,
    '七': 7,
    '八': 8,
    '九': 9,
}

UNIT_MAP: Dict[str, int] = {
    '十': 10,
    '百': 100,
    '千': 1000,
    '万': 10000,
}


def kanji_to_int(text: str) -> int:
    """
    漢数字を整数に変換

    対応形式:
    - 位取り形式: 二十三 → 23, 百二 → 102, 千二百三十四 → 1234
    - 連結形式: 一一 → 11, 八七 → 87
    - 算用数字・全角数字: 23 → 23, ２３ → 23

    Examples:
        >>> kanji_to_int('百十三')
        113
        >>> kanji_to_int('３８')
        38
    """
    if not text:
        return 0
    # str.isdigit は全角数字も True を返し、int() もそのまま受け付ける
    if text.isdigit():
        return int(text)

    if any(c in UNIT_MAP for c in text):
        return _parse_positional_kanji(text)
    return _parse_concatenative_kanji(text)


def _parse_positional_kanji(text: str) -> int:
    """位取り形式の漢数字をパース（二十三 → 23）"""
    total = 0
    current = 0

    for char in text:
        if char in KANJI_TO_DIGIT:
            current = KANJI_TO_DIGIT[char]
        elif char in UNIT_MAP:
            unit = UNIT_MAP[char]
            if current == 0:
                current = 1
            total += current * unit
            current = 0

    total += current
    return total


def _parse_concatenative_kanji(text: str) -> int:
    """連結形式の漢数字をパース（一一 → 11）"""
    result = ''
    for char in text:
        if char in KANJI_TO_DIGIT:
            result += str(KANJI_TO_DIGIT[char])
    return int(result) if result else 0
