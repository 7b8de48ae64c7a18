# Role: External tool adapter for the spot search backend. Thin HTTP calls (search, get-by-id, reviews) that
# return our pydantic models. Network/HTTP failures become TransientServiceError so the query executor can
# retry them and fall back.

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError as PayloadError

import spot_assistant.config as config
from spot_assistant.core.errors import TransientServiceError
from spot_assistant.models.spot import Review, SearchCriteria, Spot

logger = logging.getLogger(__name__)


class SpotSearchClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = (base_url or config.SPOT_SEARCH_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else config.HTTP_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    def search(self, criteria: SearchCriteria) -> List[Spot]:
        # 1) POST criteria as JSON
        # 2) Accept either a bare list or an envelope ({"spots": [...]})
        # 3) Validate every item into a Spot
        payload = self._request("POST", "/spot/search", json=criteria.model_dump(mode="json"))
        items = self._unwrap(payload, "spots")
        return self._parse_list(Spot, items)

    def get_by_id(self, spot_id: str) -> Optional[Spot]:
        payload = self._request("GET", f"/spot/{spot_id}", allow_not_found=True)
        if payload is None:
            return None
        return self._parse(Spot, payload)

    def get_reviews(self, spot_id: str) -> List[Review]:
        payload = self._request("GET", f"/reviews/spot/{spot_id}")
        return self._parse_list(Review, self._unwrap(payload, "reviews"))

    def recent_reviews(self, limit: int = 20) -> List[Review]:
        payload = self._request("GET", "/reviews/recent", params={"limit": limit})
        return self._parse_list(Review, self._unwrap(payload, "reviews"))

    def _request(
        self,
        method: str,
        path: str,
        allow_not_found: bool = False,
        **kwargs: Any,
    ) -> Any:
        url = f"{self.base_url}{path}"
        try:
            r = self.session.request(method, url, timeout=self.timeout, **kwargs)
            # Key line: a missing entity is a normal answer, not an outage.
            if allow_not_found and r.status_code == 404:
                return None
            r.raise_for_status()
            return r.json()
        except requests.RequestException as e:
            raise TransientServiceError(f"Spot search request failed: {e}", cause=e) from e
        except ValueError as e:
            raise TransientServiceError(f"Spot search returned invalid JSON: {e}", cause=e) from e

    def _unwrap(self, payload: Any, key: str) -> List[Dict[str, Any]]:
        if isinstance(payload, list):
            return payload
        if isinstance(payload, dict):
            items = payload.get(key) or payload.get("items") or []
            if isinstance(items, list):
                return items
        raise TransientServiceError(f"Unexpected spot search payload (expected list of {key})")

    def _parse(self, model: Any, item: Any) -> Any:
        try:
            return model.model_validate(item)
        except PayloadError as e:
            raise TransientServiceError(f"Malformed {model.__name__} from spot search: {e}", cause=e) from e

    def _parse_list(self, model: Any, items: List[Dict[str, Any]]) -> List[Any]:
        parsed = [self._parse(model, item) for item in items]
        logger.debug("Parsed %d %s items", len(parsed), model.__name__)
        return parsed
