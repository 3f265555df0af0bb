"""
Tests for parser.py - 条文単位の解析結果
"""
import pytest
from yomikae.core.models import (
    ClauseCandidate,
    ClauseFailure,
    ClauseLocation,
    ClauseResult,
    Flag,
    ProvisionRef,
    ReasonCode,
    ScopeOrigin,
)
from yomikae.core.parser import ClauseParser, parse_clause, split_outcomes
from yomikae.core.reference_index import InMemoryReferenceIndex

LOCATION = ClauseLocation(law_id="TEST", article="1", paragraph=1)


def parse(text, index=None, location=LOCATION):
    return parse_clause(ClauseCandidate(location=location, text=text), index)


def pair_words(result):
    return [(p.original, p.replacement) for p in result.pairs]


class TestBasicProperties:
    """基本的な性質"""

    def test_single_pair(self):
        result = parse("「A」とあるのは「B」と")
        assert isinstance(result, ClauseResult)
        assert pair_words(result) == [("A", "B")]
        assert result.pairs[0].scope is None
        assert result.all_flags() == []

    def test_unterminated_quote(self):
        result = parse("「A とあるのは「B」と")
        assert isinstance(result, ClauseFailure)
        assert result.reason == ReasonCode.UNTERMINATED_QUOTE
        assert result.location == LOCATION

    def test_coordinated_list(self):
        result = parse("「A」、「C」とあるのは、それぞれ「B」、「D」と")
        assert pair_words(result) == [("A", "B"), ("C", "D")]

    def test_scoped_pair_validated(self):
        index = InMemoryReferenceIndex()
        index.add_provision("TEST", "5")
        text = "第五条中「A」とあるのは「B」と"

        found = parse(text, index)
        assert found.pairs[0].scope.refs == (ProvisionRef(article="5"),)
        assert found.pairs[0].flags == ()

        missing = parse(text, InMemoryReferenceIndex())
        assert pair_words(missing) == [("A", "B")]
        assert missing.pairs[0].flags == (Flag.DANGLING_SCOPE,)

    def test_idempotent(self):
        index = InMemoryReferenceIndex()
        index.add_provision("TEST", "5")
        parser = ClauseParser(index)
        for text in ("第五条中「A」とあるのは「B」と、「C」とあるのは「D」と", "「A とあるのは「B」と"):
            candidate = ClauseCandidate(location=LOCATION, text=text)
            assert parser.parse(candidate) == parser.parse(candidate)
            assert parser.parse(candidate) == parse_clause(candidate, index)

    def test_scope_inheritance_round_trip(self):
        result = parse("第五条中「A」とあるのは「B」と、「C」とあるのは「D」と")
        first, second = result.pairs
        assert second.scope.origin == ScopeOrigin.INHERITED
        assert second.scope.refs == first.scope.refs
        assert second.scope.text == first.scope.text

    @pytest.mark.parametrize("text", ["", "   ", "　\n"])
    def test_empty_clause(self, text):
        result = parse(text)
        assert isinstance(result, ClauseFailure)
        assert result.reason == ReasonCode.NO_PAIRS_FOUND


class TestStatuteClauses:
    """実際の法令の読み替え規定"""

    def test_single_pair_with_item_scope(self):
        text = (
            "この場合において、第八百五十一条第四号中「被後見人を代表する」とあるのは、"
            "「被保佐人を代表し、又は被保佐人がこれをすることに同意する」と読み替えるものとする。"
        )
        result = parse(text)
        assert pair_words(result) == [
            ("被後見人を代表する", "被保佐人を代表し、又は被保佐人がこれをすることに同意する"),
        ]
        assert result.pairs[0].scope.text == "第八百五十一条第四号"
        assert result.pairs[0].scope.refs == (ProvisionRef(article="851", item="4"),)

    @pytest.mark.parametrize("coordinator", ["と、", "と"])
    def test_two_pairs_with_unresolved_same_article(self, coordinator):
        replacement = (
            "平成二十二年度等における子ども手当の支給に関する法律（平成二十二年法律第十九号）"
            "第二十条第一項の規定により適用される児童手当法の一部を改正する法律（平成二十四年法律第二十四号）"
            "附則第十一条の規定によりなおその効力を有するものとされた同法第一条の規定による改正前の"
            "児童手当法（昭和四十六年法律第七十三号）第二十条"
        )
        text = (
            "この場合において、同条中「子ども・子育て支援法（平成二十四年法律第六十五号）第六十九条」"
            f"とあるのは「{replacement}」{coordinator}「子ども・子育て拠出金」とあるのは"
            "「子ども手当拠出金」と読み替えるものとする。"
        )
        result = parse(text)
        assert pair_words(result) == [
            ("子ども・子育て支援法（平成二十四年法律第六十五号）第六十九条", replacement),
            ("子ども・子育て拠出金", "子ども手当拠出金"),
        ]
        # 同条の指す先が条文中にない
        assert all(p.flags == (Flag.UNPARSED_SCOPE,) for p in result.pairs)
        assert result.pairs[1].scope.origin == ScopeOrigin.INHERITED

    def test_shared_replacement(self):
        text = (
            "この場合において、同項中「それぞれ同項各号に定める者」とあり、及び同項第二号中"
            "「その者」とあるのは、「都道府県の教育委員会」と読み替えるものとする。"
        )
        result = parse(text)
        assert pair_words(result) == [
            ("それぞれ同項各号に定める者", "都道府県の教育委員会"),
            ("その者", "都道府県の教育委員会"),
        ]
        assert [p.ellipsis for p in result.pairs] == [True, False]

    def test_external_law_with_nested_quotes(self):
        seibi = (
            "失業保険法及び労働者災害補償保険法の一部を改正する法律及び労働保険の保険料の徴収等に関する法律の"
            "施行に伴う関係法律の整備等に関する法律（昭和四十四年法律第八十五号。以下「整備法」という。）"
        )
        benefit = (
            "第十八条第一項若しくは第二項、第十八条の二第一項若しくは第二項又は第十八条の三第一項若しくは"
            "第二項の規定による保険給付が行なわれることとなつた"
        )
        period = (
            "整備法" + benefit + "日以後の期間（事業の終了する日前に失業保険法及び労働者災害補償保険法の一部を"
            "改正する法律及び労働保険の保険料の徴収等に関する法律の施行に伴う労働省令の整備等に関する省令"
            "（昭和四十七年労働省令第九号。以下「整備省令」という。）第八条の期間が経過するときは、"
            "その経過する日の前日までの期間）"
        )
        business_period = (
            "整備法" + benefit + "日以後のその事業の期間（事業の終了する日前に整備省令第八条の期間が"
            "経過するときは、その経過する日の前日までの期間）"
        )
        text = (
            "この場合において、徴収法施行規則第二十七条及び第二十八条中「保険関係が成立した」とあるのは"
            f"「{seibi}{benefit}」と、「保険関係成立の日」とあるのは「当該保険給付が行なわれることとなつた日」と、"
            f"徴収法施行規則第二十八条第一項中「全期間」とあるのは「{period}」と、"
            "徴収法施行規則第三十二条中「第二十七条から前条まで」とあるのは「第二十七条から第三十条まで」と、"
            "「法第十五条から法第十七条まで」とあるのは「法第十五条及び第十六条」と、"
            f"「その事業の期間」とあるのは「{business_period}」と読み替えるものとする。"
        )
        result = parse(text, InMemoryReferenceIndex())
        assert pair_words(result) == [
            ("保険関係が成立した", seibi + benefit),
            ("保険関係成立の日", "当該保険給付が行なわれることとなつた日"),
            ("全期間", period),
            ("第二十七条から前条まで", "第二十七条から第三十条まで"),
            ("法第十五条から法第十七条まで", "法第十五条及び第十六条"),
            ("その事業の期間", business_period),
        ]
        assert all(p.flags == (Flag.EXTERNAL_SCOPE,) for p in result.pairs)
        assert {p.scope.law_name for p in result.pairs} == {"徴収法施行規則"}
        assert [p.scope.origin for p in result.pairs] == [
            ScopeOrigin.EXPLICIT, ScopeOrigin.INHERITED, ScopeOrigin.EXPLICIT,
            ScopeOrigin.EXPLICIT, ScopeOrigin.INHERITED, ScopeOrigin.INHERITED,
        ]
        assert result.pairs[0].scope.refs == (ProvisionRef(article="27"), ProvisionRef(article="28"))

    def test_same_article_chain(self):
        text = (
            "第百十三条の三十八の規定は、調査員養成研修について準用する。この場合において、"
            "同条第一項中「法第六十九条の三十三第一項」とあるのは「令第三十七条の七第一項」と、"
            "同項第五号中「前条」とあるのは「第百十三条の三十七」と、"
            "同条第二項中「令第三十五条の十六第一項第二号イ」とあるのは「令第三十七条の七第四項第三号イ」と、"
            "同条第三項中「令第三十五条の十六第一項第二号ロ」とあるのは「令第三十七条の七第四項第三号ロ」と、"
            "同条第四項中「令第三十五条の十六第一項第二号ハ」とあるのは「令第三十七条の七第四項第三号ハ」と"
            "「実務研修受講試験の合格年月日並びに研修の受講の開始年月日」とあるのは「研修の受講の開始年月日」"
            "と読み替えるものとする。"
        )
        result = parse(text)
        assert pair_words(result) == [
            ("法第六十九条の三十三第一項", "令第三十七条の七第一項"),
            ("前条", "第百十三条の三十七"),
            ("令第三十五条の十六第一項第二号イ", "令第三十七条の七第四項第三号イ"),
            ("令第三十五条の十六第一項第二号ロ", "令第三十七条の七第四項第三号ロ"),
            ("令第三十五条の十六第一項第二号ハ", "令第三十七条の七第四項第三号ハ"),
            ("実務研修受講試験の合格年月日並びに研修の受講の開始年月日", "研修の受講の開始年月日"),
        ]
        assert [p.scope.refs for p in result.pairs] == [
            (ProvisionRef(article="113_38", paragraph=1),),
            (ProvisionRef(article="113_38", paragraph=1, item="5"),),
            (ProvisionRef(article="113_38", paragraph=2),),
            (ProvisionRef(article="113_38", paragraph=3),),
            (ProvisionRef(article="113_38", paragraph=4),),
            (ProvisionRef(article="113_38", paragraph=4),),
        ]
        assert result.all_flags() == []


class TestFailures:
    """致命的エラーの集約"""

    def test_unmatched_closing_bracket_flag(self):
        result = parse("第五条中A」とあるのは、「A」とあるのは「B」と読み替える。")
        assert isinstance(result, ClauseResult)
        assert result.flags == (Flag.UNMATCHED_CLOSING_BRACKET,)
        assert Flag.UNMATCHED_CLOSING_BRACKET in result.all_flags()

    def test_all_or_nothing(self):
        """途中までのペアは捨てる"""
        result = parse("「A」とあるのは「B」と、「C」、「E」とあるのは、それぞれ「D」と読み替える。")
        assert isinstance(result, ClauseFailure)
        assert result.reason == ReasonCode.UNBALANCED_LIST
        assert result.excerpt.startswith("「C」")

    def test_trailing_group_without_read_as(self):
        """「と、」の後の不完全なグループで先行のペアも捨てる"""
        result = parse("「A」とあるのは「B」と、同条中「C」は「D」と読み替える。")
        assert isinstance(result, ClauseFailure)
        assert result.reason == ReasonCode.MISSING_READ_AS_MARKER
        assert "「C」" in result.excerpt

    def test_excerpt_truncated(self):
        text = "「" + "あ" * 200 + "」とあるのは、次のとおりとする。"
        result = parse(text)
        assert result.reason == ReasonCode.MISSING_READ_AS_MARKER
        assert result.excerpt.endswith("…")
        assert len(result.excerpt) == 81

    def test_failure_to_dict(self):
        record = parse("「A とあるのは「B」と").to_dict()
        assert record["reason"] == "UnterminatedQuote"
        assert record["location"]["label"] == "第1条第1項"


class TestParseMany:
    """複数候補の解析"""

    def _candidates(self):
        texts = {
            "3": "第五条中「A」とあるのは「B」と読み替える。",
            "1": "「A とあるのは「B」と",
            "2": "「C」とあるのは「D」と読み替える。",
            "2_2": "「E」とあるのは「F」と読み替える。",
            "10": "「G」とあるのは「H」と読み替える。",
        }
        return [
            ClauseCandidate(location=ClauseLocation(law_id="TEST", article=article, paragraph=1), text=text)
            for article, text in texts.items()
        ]

    @pytest.mark.parametrize("workers", [1, 4])
    def test_sorted_by_location(self, workers):
        outcomes = ClauseParser().parse_many(self._candidates(), workers=workers)
        assert [o.location.article for o in outcomes] == ["1", "2", "2_2", "3", "10"]

    def test_split_outcomes(self):
        results, failures = split_outcomes(ClauseParser().parse_many(self._candidates(), workers=4))
        assert len(results) == 4
        assert [f.location.article for f in failures] == ["1"]

    def test_parallel_matches_serial(self):
        parser = ClauseParser(InMemoryReferenceIndex())
        assert parser.parse_many(self._candidates(), workers=4) == parser.parse_many(self._candidates(), workers=1)
