"""
e-Gov 法令ツリーの分割

e-Gov API v2 の JSON ツリー（{"tag", "attr", "children"}）を traverse して
- 読み替え規定を含む項・号（号の細分 Subitem1 以下を含む）を ClauseCandidate として取り出す
- 条・項・号・章節を参照索引に登録する
"""
from dataclasses import replace
from typing import Any, Dict, Iterator, List, Optional, Tuple
import logging

from .models import ClauseCandidate, ClauseLocation
from .reference_index import InMemoryReferenceIndex
from ..utils.patterns import TABLE_TRIGGER, YOMIKAE_TRIGGER

logger = logging.getLogger(__name__)

# 構造ノードのタグと階層名
STRUCTURE_LEVELS: Dict[str, str] = {
    "Part": "編",
    "Chapter": "章",
    "Section": "節",
    "Subsection": "款",
    "Division": "目",
}

# 本文のテキストに含めないタグ（ルビの読み）
SKIP_TEXT_TAGS = ("Rt",)


# =============================================================================
# JSON Tree Traversal Helpers
# =============================================================================

def find_child(node: Dict[str, Any], tag: str) -> Optional[Dict[str, Any]]:
    """指定タグの最初の子要素を取得"""
    if not isinstance(node, dict):
        return None
    for child in node.get("children", []):
        if isinstance(child, dict) and child.get("tag") == tag:
            return child
    return None


def find_children(node: Dict[str, Any], tag: str) -> List[Dict[str, Any]]:
    """指定タグの全子要素を取得"""
    if not isinstance(node, dict):
        return []
    return [
        child for child in node.get("children", [])
        if isinstance(child, dict) and child.get("tag") == tag
    ]


def find_all_recursive(node: Dict[str, Any], tag: str) -> List[Dict[str, Any]]:
    """指定タグの要素を再帰的に全て取得"""
    results = []
    if not isinstance(node, dict):
        return results
    if node.get("tag") == tag:
        results.append(node)
    for child in node.get("children", []):
        if isinstance(child, dict):
            results.extend(find_all_recursive(child, tag))
    return results


def get_text(node: Dict[str, Any]) -> str:
    """ノード内の全テキストを再帰的に取得（ルビの読みは除く）"""
    if isinstance(node, str):
        return node
    if not isinstance(node, dict) or node.get("tag") in SKIP_TEXT_TAGS:
        return ""
    return "".join(get_text(child) for child in node.get("children", []))


def get_attr(node: Dict[str, Any], key: str, default: str = "") -> str:
    """ノードの属性値を取得"""
    if not isinstance(node, dict):
        return default
    return node.get("attr", {}).get(key, default)


def sentence_text(node: Optional[Dict[str, Any]]) -> str:
    """Sentence 要素を連結したテキスト（Sentence がなければノード全体）"""
    if node is None:
        return ""
    sentences = find_all_recursive(node, "Sentence")
    if sentences:
        return "".join(get_text(s) for s in sentences)
    return get_text(node)


def _num_int(value: str, default: Optional[int] = None) -> Optional[int]:
    return int(value) if value.isdigit() else default


# =============================================================================
# 本則・附則
# =============================================================================

def iter_provisions(law_tree: Dict[str, Any]) -> Iterator[Tuple[str, Optional[str], Dict[str, Any]]]:
    """
    本則と各附則を (part, amend_law_num, ノード) で返す

    制定時の附則は AmendLawNum を持たないので amend_law_num は None。
    """
    law_body = find_child(law_tree, "LawBody")
    if law_body is None:
        logger.warning("LawBody not found in law tree")
        return

    main = find_child(law_body, "MainProvision")
    if main is not None:
        yield "main", None, main

    for suppl in find_children(law_body, "SupplProvision"):
        yield "suppl", get_attr(suppl, "AmendLawNum") or None, suppl


# =============================================================================
# 条文候補
# =============================================================================

def table_rows(table_struct: Dict[str, Any]) -> Tuple[Tuple[str, ...], ...]:
    """TableStruct の各行のセルの字句（TableHeaderRow は含めない）"""
    rows = []
    for row in find_all_recursive(table_struct, "TableRow"):
        cells = tuple(sentence_text(column).strip() for column in find_children(row, "TableColumn"))
        if any(cells):
            rows.append(cells)
    return tuple(rows)


def _paragraph_candidates(paragraph: Dict[str, Any], base: ClauseLocation) -> Iterator[ClauseCandidate]:
    location = replace(base, paragraph=_num_int(get_attr(paragraph, "Num"), 1))
    text = sentence_text(find_child(paragraph, "ParagraphSentence"))

    tables: List[Tuple[Tuple[str, ...], ...]] = []
    if TABLE_TRIGGER in text:
        for table_struct in find_children(paragraph, "TableStruct"):
            rows = table_rows(table_struct)
            if rows:
                tables.append(rows)

    # 表形式の導入文（「次の表の…と読み替える」）は引用がなければ表の側で扱う
    if YOMIKAE_TRIGGER in text and (not tables or '「' in text):
        yield ClauseCandidate(location=location, text=text)

    for rows in tables:
        yield ClauseCandidate(location=location, text=text, table=rows)

    for item in find_children(paragraph, "Item"):
        yield from _item_candidates(item, replace(location, item=get_attr(item, "Num") or None), "Item")


def _item_candidates(node: Dict[str, Any], location: ClauseLocation, tag: str) -> Iterator[ClauseCandidate]:
    # 号の細分（イロハ）は所在を持たないので号の所在のまま候補にする
    text = sentence_text(find_child(node, f"{tag}Sentence"))
    if YOMIKAE_TRIGGER in text:
        yield ClauseCandidate(location=location, text=text)

    depth = int(tag[len("Subitem"):]) if tag.startswith("Subitem") else 0
    sub_tag = f"Subitem{depth + 1}"
    for sub in find_children(node, sub_tag):
        yield from _item_candidates(sub, location, sub_tag)


def iter_clause_candidates(law_tree: Dict[str, Any], law_id: str) -> Iterator[ClauseCandidate]:
    """
    法令ツリーから読み替え規定の候補を取り出す

    項・号（号の細分を含む）ごとに、本文に「と読み替え」を含むものを候補とする。
    表を伴う読み替え規定は表ごとに一つの候補になる。

    Args:
        law_tree: law_full_text（ルートは Law 要素）
        law_id: e-Gov 法令ID

    Yields:
        ClauseCandidate
    """
    law_num = get_text(find_child(law_tree, "LawNum")).strip()

    for part, amend_law_num, provision in iter_provisions(law_tree):
        base = ClauseLocation(law_id=law_id, law_num=law_num, part=part, amend_law_num=amend_law_num)

        articles = find_all_recursive(provision, "Article")
        if not articles:
            # 条を持たない附則は項が直下にある
            for paragraph in find_children(provision, "Paragraph"):
                yield from _paragraph_candidates(paragraph, base)
            continue

        for article in articles:
            article_base = replace(base, article=get_attr(article, "Num"))
            for paragraph in find_children(article, "Paragraph"):
                yield from _paragraph_candidates(paragraph, article_base)


# =============================================================================
# 参照索引への登録
# =============================================================================

def _index_sections(
    index: InMemoryReferenceIndex,
    law_id: str,
    node: Dict[str, Any],
    path: Tuple[Tuple[str, Optional[str]], ...],
) -> None:
    for child in node.get("children", []):
        if not isinstance(child, dict):
            continue
        level = STRUCTURE_LEVELS.get(child.get("tag"))
        if level is None:
            continue
        child_path = path + ((level, get_attr(child, "Num") or None),)
        index.add_section(law_id, child_path)
        _index_sections(index, law_id, child, child_path)


def index_law_tree(index: InMemoryReferenceIndex, law_id: str, law_tree: Dict[str, Any]) -> int:
    """
    法令ツリーの条・項・号・章節を索引に登録する

    Returns:
        登録した条の数
    """
    count = 0
    for part, _, provision in iter_provisions(law_tree):
        suppl = part == "suppl"
        for article in find_all_recursive(provision, "Article"):
            num = get_attr(article, "Num")
            index.add_provision(law_id, num, suppl=suppl)
            count += 1
            for paragraph in find_children(article, "Paragraph"):
                paragraph_num = _num_int(get_attr(paragraph, "Num"), 1)
                index.add_provision(law_id, num, paragraph_num, suppl=suppl)
                for item in find_children(paragraph, "Item"):
                    index.add_provision(law_id, num, paragraph_num, get_attr(item, "Num"), suppl=suppl)

        if part == "main":
            _index_sections(index, law_id, provision, ())

    logger.debug(f"Indexed {count} articles for {law_id}")
    return count
