"""
条文参照の索引

ScopeResolver が使う「その条・項・号・章節が実在するか」を答える窓口。
解析中は読み取り専用で、複数スレッドから同時に呼ばれてもよい。
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Set, Tuple
import logging

from .models import ProvisionRef, Reference, SectionRef
from ..utils.article_formatter import number_key_sort_key

logger = logging.getLogger(__name__)

ProvisionKey = Tuple[bool, Optional[str], Optional[int], Optional[str]]
SectionPath = Tuple[Tuple[str, Optional[str]], ...]


class ReferenceIndex(ABC):
    """参照の実在確認インターフェース"""

    @abstractmethod
    def exists(self, law_id: str, ref: Reference) -> bool:
        """law_id の法令に ref の条・項・号・章節があるか"""

    def adjacent_article(self, law_id: str, article: str, delta: int, suppl: bool = False) -> Optional[str]:
        """
        条番号順で article の delta 個隣の条（前条は -1、次条は +1）

        Returns:
            隣の条のキー。索引が条の並びを知らない場合は None
        """
        return None


class InMemoryReferenceIndex(ReferenceIndex):
    """
    法令ごとの条・項・号・章節をメモリに持つ索引

    登録は segmenter.index_law_tree から行い、解析を始める前に済ませる。
    """

    def __init__(self):
        self._provisions: Dict[str, Set[ProvisionKey]] = {}
        self._sections: Dict[str, Set[SectionPath]] = {}
        self._articles: Dict[str, Set[str]] = {}  # 本則の条のキー

    def __contains__(self, law_id: str) -> bool:
        return law_id in self._provisions or law_id in self._sections

    def add_provision(
        self,
        law_id: str,
        article: str,
        paragraph: Optional[int] = None,
        item: Optional[str] = None,
        suppl: bool = False,
    ) -> None:
        keys = self._provisions.setdefault(law_id, set())
        keys.add((suppl, article, None, None))
        if not suppl:
            self._articles.setdefault(law_id, set()).add(article)
        if paragraph is not None:
            keys.add((suppl, article, paragraph, None))
            if item is not None:
                keys.add((suppl, article, paragraph, item))
                # 一項のみの条では「第五条第二号」のように項を省いて号を指す
                if paragraph == 1:
                    keys.add((suppl, article, None, item))

    def add_section(self, law_id: str, path: SectionPath) -> None:
        self._sections.setdefault(law_id, set()).add(tuple(path))

    def exists(self, law_id: str, ref: Reference) -> bool:
        if isinstance(ref, SectionRef):
            return self._section_exists(law_id, ref)
        return self._provision_exists(law_id, ref)

    def _provision_exists(self, law_id: str, ref: ProvisionRef) -> bool:
        keys = self._provisions.get(law_id)
        if not keys:
            logger.debug(f"No provisions indexed for {law_id}")
            return False
        return (ref.suppl, ref.article, ref.paragraph, ref.item) in keys

    def _section_exists(self, law_id: str, ref: SectionRef) -> bool:
        """登録済みの階層パスのいずれかが ref.path で終わるか（第一節のみの指定も許す）"""
        paths = self._sections.get(law_id)
        if not paths:
            return False
        size = len(ref.path)
        return any(path[-size:] == ref.path for path in paths if len(path) >= size)

    def adjacent_article(self, law_id: str, article: str, delta: int, suppl: bool = False) -> Optional[str]:
        """
        本則の条を番号順に並べて隣の条を返す

        第四条の前条は、第三条の二があればそれになる。附則は改正法ごとに
        条番号が重なるので扱わない（None）。
        """
        if suppl:
            return None
        articles = self._articles.get(law_id)
        if not articles or article not in articles:
            return None
        ordered: List[str] = sorted(articles, key=number_key_sort_key)
        position = ordered.index(article) + delta
        if position < 0 or position >= len(ordered):
            return None
        return ordered[position]
