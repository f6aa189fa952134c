# activity_app/client/api_client.py
import logging
from typing import Any, Dict, List, Optional

import requests


class FeedApiClient:
    """
    서버 피드 엔드포인트를 호출하는 HTTP 클라이언트.
    fetch_page 는 PaginatedFeed 에 그대로 넘길 수 있는 형태입니다.
    """
    def __init__(
        self, base_url: str, path: str = "/api/feed", access_token: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None, session: Optional[requests.Session] = None,
    ):
        self.url = f"{base_url.rstrip('/')}{path}"
        self.params = dict(params or {})
        self.session = session or requests.Session()
        if access_token:
            self.session.headers["Authorization"] = f"Bearer {access_token}"

    def build_params(self, limit: int, after: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        params = {**self.params, "limit": limit}
        if after and after.get("sortDate") and after.get("id"):
            params["after_sort_date"] = str(after["sortDate"])
            params["after_id"] = str(after["id"])
        return params

    def fetch_page(self, limit: int, after: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        한 페이지를 요청합니다. HTTP 오류는 requests 예외로 그대로 올라갑니다.
        응답이 배열이 아니면 ValueError.
        """
        response = self.session.get(self.url, params=self.build_params(limit, after))
        logging.debug(f"피드 요청: {response.url} -> {response.status_code}")
        response.raise_for_status()

        payload = response.json()
        if not isinstance(payload, list):
            raise ValueError(f"피드 응답이 배열이 아닙니다: {type(payload).__name__}")
        return payload
