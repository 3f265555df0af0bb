"""
条文番号変換ユーティリティ

e-Gov の Num 属性と同じ「主番号_枝番」形式のキーを扱う。
- 第十九条の二 → 19_2
- 19_2 → 第19条の2
"""

from typing import Optional, Tuple

from .numerals import kanji_to_int


def to_number_key(main: str, branches: str = "") -> str:
    """
    漢数字の番号と枝番からキーを作る

    Args:
        main: 主番号（'十九' など）
        branches: 'の二の三' 形式の枝番部分（空文字可）

    Returns:
        '19_2_3' 形式のキー

    Examples:
        >>> to_number_key('十九', 'の二')
        '19_2'
        >>> to_number_key('百十三', 'の三十八')
        '113_38'
    """
    parts = [str(kanji_to_int(main))]
    for branch in branches.split('の'):
        if branch:
            parts.append(str(kanji_to_int(branch)))
    return '_'.join(parts)


def number_key_sort_key(key: Optional[str]) -> Tuple[int, ...]:
    """
    キーのソートキーを生成

    Examples:
        >>> number_key_sort_key('3_2')
        (3, 2)
        >>> number_key_sort_key(None)
        ()
    """
    if not key:
        return ()
    parts = []
    for part in key.split('_'):
        parts.append(int(part) if part.isdigit() else 99999)
    return tuple(parts)


def shift_article_key(key: str, delta: int) -> Optional[str]:
    """
    前条・次条のキーを求める

    枝番付きの条は枝番を増減する（第三条の二の前条は第三条）。
    存在確認は呼び出し側の索引に任せる。

    Examples:
        >>> shift_article_key('5', -1)
        '4'
        >>> shift_article_key('3_2', -1)
        '3'
        >>> shift_article_key('3_3', -1)
        '3_2'
        >>> shift_article_key('1', -1) is None
        True
    """
    parts = [int(p) for p in key.split('_') if p.isdigit()]
    if not parts:
        return None

    if len(parts) > 1:
        parts[-1] += delta
        if parts[-1] <= 1:
            parts = parts[:-1]
    else:
        parts[0] += delta
        if parts[0] < 1:
            return None

    return '_'.join(str(p) for p in parts)


def article_key_to_japanese(key: str, is_suppl: bool = False) -> str:
    """
    条のキーを日本語形式に変換

    Examples:
        >>> article_key_to_japanese('1')
        '第1条'
        >>> article_key_to_japanese('3_2', is_suppl=True)
        '附則第3条の2'
    """
    prefix = '附則' if is_suppl else ''
    if not key:
        return prefix
    main, *subs = key.split('_')
    return prefix + f"第{main}条" + ''.join(f"の{s}" for s in subs)


def item_key_to_japanese(key: str) -> str:
    """
    号のキーを日本語形式に変換

    Examples:
        >>> item_key_to_japanese('2_2')
        '第2号の2'
    """
    main, *subs = key.split('_')
    return f"第{main}号" + ''.join(f"の{s}" for s in subs)
