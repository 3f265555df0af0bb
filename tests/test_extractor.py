"""
Tests for extractor.py - 対象法令の一括抽出
"""
import json
import pytest
import yaml
from yomikae.core.extractor import YomikaeExtractor, load_targets
from yomikae.core.models import Flag, ReasonCode


class TestLoadTargets:

    def test_list(self, tmp_path):
        path = tmp_path / "targets.yaml"
        path.write_text(yaml.dump(["A", "B"]), encoding="utf-8")
        assert load_targets(path) == ["A", "B"]

    def test_targets_key(self, tmp_path):
        path = tmp_path / "targets.yaml"
        path.write_text(
            yaml.dump({"targets": [{"id": "A", "name": "テスト法"}, "B", {"name": "IDなし"}]}, allow_unicode=True),
            encoding="utf-8",
        )
        assert load_targets(path) == ["A", "B"]

    def test_missing_file(self, tmp_path):
        assert load_targets(tmp_path / "none.yaml") == []


class TestYomikaeExtractor:

    @pytest.fixture
    def extractor(self, tmp_path, law_tree):
        laws = tmp_path / "laws"
        laws.mkdir()
        (laws / "TEST.json").write_text(
            json.dumps({"law_info": {}, "law_full_text": law_tree}, ensure_ascii=False),
            encoding="utf-8",
        )
        targets = tmp_path / "targets.yaml"
        targets.write_text(yaml.dump({"targets": [{"id": "TEST"}, "MISSING"]}), encoding="utf-8")
        return YomikaeExtractor(targets, work_dir=laws, workers=2)

    def test_extract(self, extractor):
        outcome = extractor.extract()

        assert len(outcome.results) == 4
        assert len(outcome.failures) == 1
        assert outcome.failures[0].reason == ReasonCode.MISSING_READ_AS_MARKER
        assert outcome.failures[0].location.paragraph == 3

        report = outcome.report
        assert report["total_targets"] == 2
        assert report["success"] == ["TEST"]
        assert [f["id"] for f in report["failed"]] == ["MISSING"]
        assert (report["clauses"], report["parsed"], report["failures"]) == (5, 4, 1)

    def test_scopes_validated_against_law(self, extractor):
        results = extractor.extract().results
        by_position = {(r.location.part, r.location.paragraph, r.location.item): r for r in results}

        # 第一条は実在する
        assert by_position[("main", 2, None)].pairs[0].flags == ()
        # 第二条はない
        assert by_position[("main", 2, "1")].pairs[0].flags == (Flag.DANGLING_SCOPE,)
        # 第一条の前条はない
        assert by_position[("main", 1, None)].pairs[0].flags == (Flag.UNPARSED_SCOPE,)

        table = by_position[("suppl", 1, None)]
        assert [(p.original, p.replacement) for p in table.pairs] == [("甲", "乙"), ("丙", "丁")]
        assert all(p.flags == () for p in table.pairs)

    def test_without_validation(self, tmp_path, law_tree):
        laws = tmp_path / "laws"
        laws.mkdir()
        (laws / "TEST.json").write_text(json.dumps(law_tree, ensure_ascii=False), encoding="utf-8")
        targets = tmp_path / "targets.yaml"
        targets.write_text(yaml.dump(["TEST"]), encoding="utf-8")

        results = YomikaeExtractor(targets, work_dir=laws, validate=False).extract().results
        assert all(Flag.DANGLING_SCOPE not in r.all_flags() for r in results)

    def test_missing_work_dir(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            YomikaeExtractor(tmp_path / "targets.yaml", work_dir=tmp_path / "nowhere")
