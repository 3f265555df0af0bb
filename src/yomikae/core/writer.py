"""
解析結果の出力

json: レコードの配列を一つの JSON として出力
jsonl: 1 行 1 レコード
"""
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence
import json
import logging

from .models import ClauseFailure, ClauseResult

logger = logging.getLogger(__name__)


class OutputFormat(str, Enum):
    """出力形式"""
    JSON = "json"
    JSONL = "jsonl"


def dedupe_failures(failures: Iterable[ClauseFailure]) -> List[ClauseFailure]:
    """所在・理由・抜粋が同じ失敗を最初の一件にまとめる"""
    seen = set()
    unique: List[ClauseFailure] = []
    for failure in failures:
        key = (failure.location, failure.reason, failure.excerpt)
        if key in seen:
            continue
        seen.add(key)
        unique.append(failure)
    return unique


class ResultWriter:
    """
    ClauseResult / ClauseFailure を出力形式に応じて書き出す
    """

    def __init__(self, output_format: OutputFormat = OutputFormat.JSON):
        self.output_format = output_format

    def write_results(self, results: Sequence[ClauseResult], file_path: Path) -> int:
        records = [result.to_dict() for result in results]
        self._write(records, file_path)
        logger.info(f"Wrote {len(records)} results to {file_path}")
        return len(records)

    def write_failures(self, failures: Sequence[ClauseFailure], file_path: Path) -> int:
        unique = dedupe_failures(failures)
        if len(unique) < len(failures):
            logger.debug(f"Dropped {len(failures) - len(unique)} duplicate failures")
        records = [failure.to_dict() for failure in unique]
        self._write(records, file_path)
        logger.info(f"Wrote {len(records)} failures to {file_path}")
        return len(records)

    def _write(self, records: List[Dict[str, Any]], file_path: Path) -> None:
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, "w", encoding="utf-8") as f:
            if self.output_format == OutputFormat.JSONL:
                for record in records:
                    f.write(json.dumps(record, ensure_ascii=False) + "\n")
            else:
                json.dump(records, f, ensure_ascii=False, indent=2)


def write_report(report: Dict[str, Any], file_path: Path) -> None:
    """実行結果のサマリを JSON で出力"""
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with open(file_path, "w", encoding="utf-8") as f:
        json.dump(report, f, indent=2, ensure_ascii=False)
