"""
yomikae ユーティリティモジュール
"""

from .numerals import kanji_to_int
from .article_formatter import (
    to_number_key,
    number_key_sort_key,
    shift_article_key,
    article_key_to_japanese,
    item_key_to_japanese,
)

__all__ = [
    # numerals
    'kanji_to_int',
    # article_formatter
    'to_number_key',
    'number_key_sort_key',
    'shift_article_key',
    'article_key_to_japanese',
    'item_key_to_japanese',
]
