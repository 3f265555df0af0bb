"""
テスト用の e-Gov 法令ツリー（law_full_text 形式）
"""
import pytest


def _node(tag, children=None, **attr):
    return {"tag": tag, "attr": attr, "children": children or []}


def _sentence(*parts):
    return _node("Sentence", list(parts))


def _paragraph(num, *parts, items=None, tables=None):
    children = [_node("ParagraphSentence", [_sentence(*parts)])]
    children.extend(items or [])
    children.extend(tables or [])
    return _node("Paragraph", children, Num=str(num))


def _item(num, text):
    return _node("Item", [_node("ItemSentence", [_sentence(text)])], Num=str(num))


def _table(*rows):
    return _node("TableStruct", [
        _node("Table", [
            _node("TableRow", [_node("TableColumn", [_sentence(cell)]) for cell in row])
            for row in rows
        ])
    ])


@pytest.fixture
def law_tree():
    """
    本則: 第一章第一節に第一条（三項）
    附則（一部改正）: 第一条に表形式の読み替え規定
    """
    article1 = _node("Article", [
        _node("ArticleTitle", ["第一条"]),
        _paragraph(1, "前条中「A」とあるのは「B」と読み替える。"),
        _paragraph(
            2,
            "第一条中「",
            _node("Ruby", ["甲", _node("Rt", ["こう"])]),
            "」とあるのは「乙」と読み替える。",
            items=[_item(1, "第二条中「丙」とあるのは「丁」と読み替える。")],
        ),
        _paragraph(3, "第一条中「甲」とあり、「乙」と読み替える。"),
    ], Num="1")

    suppl_article = _node("Article", [
        _paragraph(
            1,
            "次の表の上欄に掲げる規定中同表の中欄に掲げる字句は、"
            "それぞれ同表の下欄に掲げる字句と読み替えるものとする。",
            tables=[_table(
                ("読み替えられる規定", "読み替えられる字句", "読み替える字句"),
                ("第一条", "甲", "乙"),
                ("", "丙", "丁"),
            )],
        ),
    ], Num="1")

    return _node("Law", [
        _node("LawNum", ["平成十年法律第一号"]),
        _node("LawBody", [
            _node("LawTitle", ["テスト法"]),
            _node("MainProvision", [
                _node("Chapter", [
                    _node("ChapterTitle", ["第一章　総則"]),
                    _node("Section", [
                        _node("SectionTitle", ["第一節　通則"]),
                        article1,
                    ], Num="1"),
                ], Num="1"),
            ]),
            _node("SupplProvision", [suppl_article], AmendLawNum="平成十一年法律第二号"),
        ]),
    ], Era="Heisei", Lang="ja", LawType="Act", Num="1", Year="10")
