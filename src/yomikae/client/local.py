from pathlib import Path
from typing import Dict, Any, Optional
import json
import logging

from .egov import xml_to_tree

logger = logging.getLogger(__name__)


class LocalLawSource:
    """
    Reads law trees from a directory of downloaded statutes.

    Lookup order for a law id:
    1. <law_id>.json  (law_full_text tree, or a v2 API response containing it)
    2. <law_id>*.xml  (e-Gov bulk download naming, e.g. <law_id>_20240401_...xml)
    """

    def __init__(self, work_dir: Path):
        self.work_dir = Path(work_dir)
        if not self.work_dir.is_dir():
            raise FileNotFoundError(f"Law directory not found: {self.work_dir}")

    def get_law_full_text(self, law_id: str) -> Optional[Dict[str, Any]]:
        json_path = self.work_dir / f"{law_id}.json"
        if json_path.exists():
            with open(json_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if isinstance(data, dict) and "law_full_text" in data:
                return data["law_full_text"]
            return data

        xml_paths = sorted(self.work_dir.glob(f"{law_id}*.xml"))
        if xml_paths:
            logger.debug(f"Reading {xml_paths[0]}")
            return xml_to_tree(xml_paths[0].read_text(encoding="utf-8"))

        logger.warning(f"No law file for {law_id} in {self.work_dir}")
        return None
