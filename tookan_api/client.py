import logging
from http import HTTPStatus

import requests

from tookan_api.config import SyncConfig
from tookan_api.constants import API_SUCCESS_STATUSES, NO_DATA_MARKERS
from tookan_api.exceptions import MalformedResponseError, TransientStatusError
from tookan_api.retry import call_with_retry
from tookan_api.type_defs import JsonObject, JsonValue, RawTask, is_json_object

logger = logging.getLogger(__name__)

_PREVIEW_LIMIT = 200


def _preview_response_body(text: str) -> str:
    if len(text) <= _PREVIEW_LIMIT:
        return text
    return f"{text[:_PREVIEW_LIMIT]}..."


class Client(requests.Session):
    """Tookan v2 API session.

    Every call is a JSON POST whose body carries the API key. Transient
    failures are retried under ``config.fetch_retry``; the session itself
    keeps no per-call state and is safe to reuse across windows.
    """

    def __init__(self, config: SyncConfig):
        super().__init__()
        config.require_credentials()
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self.headers.update({"accept": "application/json", "Content-Type": "application/json"})

    def request(self, method: str, url: str, *args, **kwargs) -> requests.Response:
        return call_with_retry(self.config.fetch_retry, self._send, method, url, *args, **kwargs)

    def _send(self, method: str, url: str, *args, **kwargs) -> requests.Response:
        response = super().request(method, url, *args, **kwargs)

        if response.status_code == HTTPStatus.TOO_MANY_REQUESTS.value:
            logger.info("Rate limit reached. Waiting and retrying...")
            raise TransientStatusError("Rate limit reached")

        if response.status_code >= HTTPStatus.INTERNAL_SERVER_ERROR.value:
            raise TransientStatusError(
                f"Received server error {response.status_code}: {_preview_response_body(response.text)}"
            )

        if response.status_code == HTTPStatus.UNAUTHORIZED.value:
            logger.error("Received authorization error: %s", response.text)
            raise PermissionError("Authorization failed with the provided API key.")

        if response.status_code != HTTPStatus.OK.value:
            raise requests.RequestException(
                f"Received unexpected status code: {response.status_code}. "
                f"Response content: {_preview_response_body(response.text)}"
            )

        return response

    def post_api(self, endpoint: str, payload: JsonObject, timeout: float) -> JsonObject:
        body = {"api_key": self.config.api_key, **payload}
        response = self.post(f"{self.base_url}/{endpoint}", json=body, timeout=timeout)
        try:
            data = response.json()
        except ValueError as error:
            raise MalformedResponseError(
                f"Failed to parse {endpoint} response: {_preview_response_body(response.text)}"
            ) from error
        if not is_json_object(data):
            raise MalformedResponseError(f"Unexpected payload type from {endpoint}: {type(data).__name__}")
        return data

    @staticmethod
    def is_success(data: JsonObject) -> bool:
        return data.get("status") in API_SUCCESS_STATUSES

    @staticmethod
    def is_no_data(data: JsonObject) -> bool:
        message = data.get("message")
        return isinstance(message, str) and any(marker in message.lower() for marker in NO_DATA_MARKERS)

    def fetch_tasks_page(
        self, start_date: str, end_date: str, job_type: int, offset: int, limit: int
    ) -> list[RawTask]:
        data = self.post_api(
            "get_all_tasks",
            {
                "job_type": job_type,
                "job_status": self.config.status_filter,
                "start_date": start_date,
                "end_date": end_date,
                "is_pagination": 1,
                "off_set": offset,
                "limit": limit,
                "custom_fields": 1,
            },
            timeout=self.config.request_timeout_seconds,
        )
        return self._rows(data, "get_all_tasks")

    def fetch_job_details(self, job_ids: list[int]) -> list[RawTask]:
        if not job_ids:
            return []
        data = self.post_api(
            "get_job_details",
            {
                "job_ids": job_ids,
                "include_task_history": 0,
                "job_additional_info": 1,
                "include_job_report": 0,
            },
            timeout=self.config.detail_timeout_seconds,
        )
        return self._rows(data, "get_job_details")

    def _rows(self, data: JsonObject, endpoint: str) -> list[RawTask]:
        if not self.is_success(data):
            if not self.is_no_data(data):
                logger.warning("%s response: %s", endpoint, data.get("message") or "Unknown status")
            return []

        rows: JsonValue = data.get("data")
        if isinstance(rows, dict):
            # get_job_details collapses a single job into an object.
            rows = [rows]
        if not isinstance(rows, list):
            return []
        return [row for row in rows if isinstance(row, dict)]
