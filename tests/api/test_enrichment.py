from __future__ import annotations

import pytest
import requests

from tookan_api import enrichment as enrichment_module
from tookan_api.config import SyncConfig
from tookan_api.enrichment import DetailEnricher, JobDetail, extract_cod_amount, extract_tags, parse_amount


@pytest.fixture(autouse=True)
def _no_delay(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(enrichment_module, "sleep", lambda _seconds: None)


def test_cod_amount_from_labelled_custom_field() -> None:
    job = {"custom_field": [{"label": "Notes", "data": "x"}, {"label": "COD_Amount", "data": "12.50"}]}

    assert extract_cod_amount(job) == 12.5


def test_cod_amount_matches_display_name_with_spaces() -> None:
    job = {"custom_field": [{"label": "f1", "display_name": "Cash needs to be collected", "data": "1,250"}]}

    assert extract_cod_amount(job) == 1250.0


@pytest.mark.parametrize(
    "job",
    [
        {},
        {"custom_field": "oops"},
        {"custom_field": [{"label": "COD_Amount", "data": "n/a"}]},
        {"custom_field": [{"label": "COD_Amount", "data": ""}]},
        {"custom_field": [{"label": "Other", "data": "5"}]},
    ],
)
def test_cod_amount_absent_or_unparseable_is_none(job: dict) -> None:
    assert extract_cod_amount(job) is None


def test_parse_amount_rejects_booleans() -> None:
    assert parse_amount(True) is None
    assert parse_amount(3) == 3.0


def test_extract_tags_joins_lists_and_blanks_to_none() -> None:
    assert extract_tags({"tags": ["vip", "", "fragile"]}) == "vip,fragile"
    assert extract_tags({"tags": " express "}) == "express"
    assert extract_tags({"tags": "  "}) is None
    assert extract_tags({}) is None


class FakeClient:
    def __init__(self, fail_batches: set[int] | None = None):
        self.calls: list[list[int]] = []
        self.fail_batches = fail_batches or set()

    def fetch_job_details(self, job_ids: list[int]):
        self.calls.append(list(job_ids))
        if len(self.calls) in self.fail_batches:
            raise requests.Timeout("slow")
        return [
            {
                "job_id": str(job_id),
                "tags": f"t{job_id}",
                "custom_field": [{"label": "CASH_NEEDS_TO_BE_COLLECTED", "data": job_id}],
            }
            for job_id in job_ids
        ]


def test_fetch_details_splits_sub_batches_and_dedupes() -> None:
    client = FakeClient()
    enricher = DetailEnricher(client, SyncConfig(api_key="key", detail_batch_size=2))  # type: ignore[arg-type]

    details = enricher.fetch_details([1, 2, 2, 3])

    assert client.calls == [[1, 2], [3]]
    assert details[3] == JobDetail(tags="t3", cod_amount=3.0)
    assert set(details) == {1, 2, 3}


def test_failed_sub_batch_is_counted_and_skipped() -> None:
    client = FakeClient(fail_batches={1})
    enricher = DetailEnricher(client, SyncConfig(api_key="key", detail_batch_size=2))  # type: ignore[arg-type]

    details = enricher.fetch_details([1, 2, 3])

    assert set(details) == {3}
    assert enricher.failed_requests == 1


@pytest.mark.parametrize("value", ["NaN", "Infinity", "-inf", float("nan"), float("inf"), 10**400])
def test_parse_amount_rejects_non_finite_values(value: object) -> None:
    assert parse_amount(value) is None
