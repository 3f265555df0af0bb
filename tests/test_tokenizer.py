"""
Tests for tokenizer.py - 構造語による条文の分割
"""
import pytest
from yomikae.core.models import ClauseParseError, ReasonCode, SegmentKind
from yomikae.core.quotes import scan_quotes
from yomikae.core.tokenizer import find_scope_marker, tokenize_clause

S = SegmentKind


def tokenize(text):
    return tokenize_clause(text, scan_quotes(text).tokens)


def kinds(segments):
    return [segment.kind for segment in segments]


class TestFindScopeMarker:
    """引用直前のスコープ字句"""

    def test_simple(self):
        segment = find_scope_marker("第五条中", 0)
        assert segment.kind == S.SCOPE_MARKER
        assert segment.text == "第五条"
        assert (segment.start, segment.end) == (0, 3)

    def test_cut_at_last_sentence(self):
        region = "前条の規定は、準用する。この場合において、同条第一項中"
        segment = find_scope_marker(region, 10)
        assert segment.text == "同条第一項"
        assert segment.start == 10 + region.index("同条第一項")

    def test_extend_over_reference_list(self):
        """「第一条、第二条中」は一つのスコープ"""
        segment = find_scope_marker("この場合において、第一条、第二条中", 0)
        assert segment.text == "第一条、第二条"

    def test_strip_leading_connective(self):
        segment = find_scope_marker("及び同項第二号中", 0)
        assert segment.text == "同項第二号"

    def test_no_scope_suffix(self):
        assert find_scope_marker("この場合において、", 0) is None
        assert find_scope_marker("", 0) is None


class TestTokenizeClause:
    """Segment 列"""

    def test_single_pair(self):
        segments = tokenize("第五条中「A」とあるのは「B」と読み替える。")
        assert kinds(segments) == [
            S.SCOPE_MARKER, S.ORIGINAL_QUOTE, S.READ_AS_MARKER, S.REPLACEMENT_QUOTE, S.TERMINATOR,
        ]
        assert segments[0].text == "第五条"
        assert segments[1].text == "A"
        assert segments[3].text == "B"
        assert segments[4].text == "と読み替える"

    def test_shared_marker(self):
        """「とあり、及び」で並べた置換前の字句"""
        text = (
            "この場合において、同項中「それぞれ同項各号に定める者」とあり、及び同項第二号中"
            "「その者」とあるのは、「都道府県の教育委員会」と読み替えるものとする。"
        )
        segments = tokenize(text)
        assert kinds(segments) == [
            S.SCOPE_MARKER, S.ORIGINAL_QUOTE, S.SHARED_MARKER,
            S.SCOPE_MARKER, S.ORIGINAL_QUOTE, S.READ_AS_MARKER,
            S.REPLACEMENT_QUOTE, S.TERMINATOR,
        ]
        assert segments[0].text == "同項"
        assert segments[2].text == "とあり、及び"
        assert segments[3].text == "同項第二号"
        assert not segments[5].respectively

    def test_coordinator_with_and_without_comma(self):
        segments = tokenize("「A」とあるのは「B」と、「C」とあるのは「D」と「E」とあるのは「F」と読み替える。")
        coordinators = [s for s in segments if s.kind == S.COORDINATOR]
        assert [s.text for s in coordinators] == ["と、", "と"]
        assert segments[-1].kind == S.TERMINATOR

    def test_respectively(self):
        segments = tokenize("第五条中「A」、「C」とあるのは、それぞれ「B」、「D」と読み替える。")
        assert kinds(segments) == [
            S.SCOPE_MARKER, S.ORIGINAL_QUOTE, S.LIST_SEPARATOR, S.ORIGINAL_QUOTE, S.READ_AS_MARKER,
            S.REPLACEMENT_QUOTE, S.LIST_SEPARATOR, S.REPLACEMENT_QUOTE, S.TERMINATOR,
        ]
        assert segments[4].respectively

    def test_definition_quote_skipped(self):
        """読み替えに関係しない定義語の引用は読み捨てる"""
        text = "この条において「事業者」とは、事業を行う者をいう。第五条中「A」とあるのは「B」と読み替える。"
        segments = tokenize(text)
        assert kinds(segments) == [
            S.SCOPE_MARKER, S.ORIGINAL_QUOTE, S.READ_AS_MARKER, S.REPLACEMENT_QUOTE, S.TERMINATOR,
        ]
        assert segments[0].text == "第五条"
        assert segments[1].text == "A"

    def test_particles_inside_quote_ignored(self):
        segments = tokenize("「AとあるのはB」とあるのは「C」と読み替える。")
        originals = [s for s in segments if s.kind == S.ORIGINAL_QUOTE]
        assert [s.text for s in originals] == ["AとあるのはB"]

    def test_final_pair_without_terminator_text(self):
        segments = tokenize("「A」とあるのは「B」と")
        assert kinds(segments) == [S.ORIGINAL_QUOTE, S.READ_AS_MARKER, S.REPLACEMENT_QUOTE, S.TERMINATOR]
        assert segments[-1].text == "と"


class TestMissingReadAsMarker:
    """置換後の字句に届かない条文"""

    @pytest.mark.parametrize("text", [
        "「A」とあるのは、次のとおりとする。",
        "「A」とあり、「B」という。",
        "「A」とあるのは「B」を、「C」",
        "「A」とあるのは「B」と、「C」と読み替える。",
        "「A」とあるのは「B」と、同条中「C」は「D」と読み替える。",
        "「A」とあるのは「B」と、「C」、「E」は「D」と読み替える。",
    ])
    def test_missing(self, text):
        with pytest.raises(ClauseParseError) as exc_info:
            tokenize(text)
        assert exc_info.value.reason == ReasonCode.MISSING_READ_AS_MARKER
