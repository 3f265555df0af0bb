"""
読み替え規定の一括抽出

targets.yaml に挙げた法令を順に取得し、読み替え規定の候補を解析する。
法令単位でエラーを閉じ込め、一つの法令の失敗で全体を止めない。
"""
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional
import logging

import yaml
from tqdm import tqdm

from .models import ClauseFailure, ClauseResult
from .parser import ClauseParser, split_outcomes
from .reference_index import InMemoryReferenceIndex
from .segmenter import index_law_tree, iter_clause_candidates
from ..config import DEFAULT_WORKERS

logger = logging.getLogger(__name__)


def load_targets(path: Path) -> List[str]:
    """
    対象法令IDを読み込む

    形式:
        - law_id のリスト
        - {"targets": [...]} 形式（要素は law_id か {"id": ..., "name": ...}）
    """
    path = Path(path)
    if not path.exists():
        return []
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if isinstance(data, dict):
        data = data.get("targets") or []
    if not isinstance(data, list):
        return []

    targets = []
    for entry in data:
        if isinstance(entry, dict):
            entry = entry.get("id")
        if entry:
            targets.append(str(entry))
    return targets


@dataclass
class ExtractionOutcome:
    results: List[ClauseResult] = field(default_factory=list)
    failures: List[ClauseFailure] = field(default_factory=list)
    report: Dict[str, Any] = field(default_factory=dict)


class YomikaeExtractor:
    def __init__(
        self,
        targets_path: Path,
        work_dir: Optional[Path] = None,
        workers: int = DEFAULT_WORKERS,
        validate: bool = True,
    ):
        if work_dir is not None:
            from ..client.local import LocalLawSource
            self.source = LocalLawSource(work_dir)
        else:
            from ..client.egov import EGovClient
            self.source = EGovClient()
        self.targets = load_targets(targets_path)
        self.workers = workers
        self.validate = validate
        self.index = InMemoryReferenceIndex()
        self.parser = ClauseParser(self.index if validate else None)

    def extract(self) -> ExtractionOutcome:
        print(f"Processing {len(self.targets)} target laws...")

        outcome = ExtractionOutcome()
        report = {
            "total_targets": len(self.targets),
            "success": [],
            "failed": [],
            "clauses": 0,
            "parsed": 0,
            "failures": 0,
            "timestamp": date.today().isoformat(),
        }

        for law_id in tqdm(self.targets, desc="Processing Laws"):
            try:
                results, failures = self._process_law(law_id)
            except Exception as e:
                logger.error(f"Failed to process {law_id}: {e}")
                report["failed"].append({"id": law_id, "error": str(e)})
                continue

            outcome.results.extend(results)
            outcome.failures.extend(failures)
            report["success"].append(law_id)
            report["clauses"] += len(results) + len(failures)
            report["parsed"] += len(results)
            report["failures"] += len(failures)

        outcome.report = report
        print(f"Parsed {report['parsed']} / {report['clauses']} clauses ({len(report['failed'])} laws failed)")
        return outcome

    def _process_law(self, law_id: str):
        law_tree = self.source.get_law_full_text(law_id)
        if not law_tree:
            raise ValueError("law data not found")

        index_law_tree(self.index, law_id, law_tree)
        candidates = list(iter_clause_candidates(law_tree, law_id))
        logger.info(f"{law_id}: {len(candidates)} yomikae candidates")

        outcomes = self.parser.parse_many(candidates, workers=self.workers)
        return split_outcomes(outcomes)
