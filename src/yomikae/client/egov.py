from .base import BaseClient
from ..config import EGOV_API_BASE_URL, EGOV_API_V2_BASE_URL
from typing import Dict, Any, Optional
import logging
import requests

logger = logging.getLogger(__name__)


def xml_to_tree(xml_content: str) -> Optional[Dict[str, Any]]:
    """
    Convert law XML (v1 API response or a downloaded file) to the v2 JSON tree.

    v2 format:
    {
        "tag": "Law",
        "attr": {"Era": "Showa", ...},
        "children": [
            {"tag": "LawNum", "attr": {}, "children": ["昭和三十七年..."]},
            ...
        ]
    }

    Returns:
        Tree rooted at the Law element, or None if the XML has no Law element
    """
    from bs4 import BeautifulSoup

    soup = BeautifulSoup(xml_content, "xml")
    law = soup.find("Law")
    if law is None:
        return None
    return _element_to_node(law)


def _element_to_node(element) -> Dict[str, Any]:
    from bs4 import NavigableString, Tag

    children = []
    for child in element.children:
        if isinstance(child, Tag):
            children.append(_element_to_node(child))
        elif isinstance(child, NavigableString):
            text = str(child)
            # Indentation between elements is not part of the law text
            if text.strip():
                children.append(text)
    return {"tag": element.name, "attr": dict(element.attrs), "children": children}


class EGovClient(BaseClient):
    def __init__(self):
        super().__init__(rate_limit_sec=0.5)
        self.base_url = EGOV_API_BASE_URL
        self.base_url_v2 = EGOV_API_V2_BASE_URL
        # Timeout settings (seconds)
        self.timeout_v2 = 60
        self.timeout_v1 = 180  # longer, used as fallback

    def get_law_full_text(self, law_id: str) -> Optional[Dict[str, Any]]:
        """
        Fetches the law_full_text tree of a law.

        Strategy:
        1. Try v2 API first (JSON tree)
        2. Fall back to v1 API (XML, converted to the same tree)
        3. Raise error if both fail
        """
        tree = self._fetch_law_tree_v2(law_id)

        if tree is None:
            logger.info(f"Falling back to v1 API for {law_id}")
            tree = self._fetch_law_tree_v1(law_id)

        if tree is None:
            raise RuntimeError(f"Failed to fetch law {law_id} from both v1 and v2 APIs")
        return tree

    def _fetch_law_tree_v2(self, law_id: str) -> Optional[Dict[str, Any]]:
        url = f"{self.base_url_v2}/law_data/{law_id}"
        try:
            data = self.request(
                "GET",
                url,
                params={"law_full_text_format": "json"},
                cache_key=f"egov_law_data_v2_{law_id}",
                timeout=self.timeout_v2,
            )
        except requests.RequestException as e:
            logger.warning(f"v2 API error for {law_id}: {e}")
            return None

        law_full_text = data.get("law_full_text") if isinstance(data, dict) else None
        if not law_full_text:
            logger.warning(f"v2 API returned no law_full_text for {law_id}")
            return None
        return law_full_text

    def _fetch_law_tree_v1(self, law_id: str) -> Optional[Dict[str, Any]]:
        url = f"{self.base_url}/lawdata/{law_id}"
        try:
            xml_content = self.request(
                "GET",
                url,
                cache_key=f"egov_law_{law_id}",
                response_type="text",
                timeout=self.timeout_v1,
            )
        except requests.RequestException as e:
            logger.error(f"v1 API error for {law_id}: {e}")
            return None
        return xml_to_tree(xml_content)
