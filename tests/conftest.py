"""
Shared test fixtures: raw backend records and a fake backend served through
httpx.MockTransport.
"""

import time

import httpx
import pytest

from source_adapter import TransactionSource

BASE_URL = "http://ledger.test/api"


def set_local_timezone(monkeypatch, tz):
    monkeypatch.setenv("TZ", tz)
    time.tzset()


@pytest.fixture(autouse=True)
def utc_local_time(monkeypatch):
    """Run every test with the local clock on UTC; tests may switch it."""
    if not hasattr(time, "tzset"):
        yield
        return
    set_local_timezone(monkeypatch, "UTC")
    yield
    monkeypatch.undo()
    time.tzset()


def sale_json(id, party, amount, date, payment="Credit", company="c1", **extra):
    record = {
        "_id": id,
        "party": party,
        "company": company,
        "totalAmount": amount,
        "paymentMethod": payment,
        "date": date,
    }
    record.update(extra)
    return record


def receipt_json(id, party, amount, date, company="c1", **extra):
    record = {
        "_id": id,
        "party": party,
        "company": company,
        "amount": amount,
        "date": date,
    }
    record.update(extra)
    return record


class FakeBackend:
    """Routes by path (query ignored); records every request it sees."""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def set(self, path, status=200, json=None, text=None, error=None):
        self.routes[path] = (status, json, text, error)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path[len("/api"):]
        if path not in self.routes:
            return httpx.Response(404, json={"message": "not found"})
        status, json, text, error = self.routes[path]
        if error is not None:
            raise error
        if text is not None:
            return httpx.Response(status, text=text)
        return httpx.Response(status, json=json)

    def source(self, token="secret-token"):
        client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        return TransactionSource(BASE_URL, token, client=client)

    def requests_to(self, path):
        return [r for r in self.requests if r.url.path == "/api" + path]


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def parties_json():
    return [
        {"_id": "p1", "name": "Asha Traders", "contactNumber": "9876543210"},
        {"_id": "p2", "name": "Bala Stores"},
        {"_id": "p3", "name": "Chetan & Sons"},
    ]


@pytest.fixture
def sales_json():
    return [
        sale_json("s1", "p1", 1000, "2024-05-01T10:00:00.000Z", payment="Credit"),
        sale_json("s2", {"_id": "p2", "name": "Bala Stores"}, 500, "2024-05-03T09:30:00.000Z", payment="Cash"),
        sale_json("s3", "p1", 250, "2024-06-15T12:00:00.000Z", payment="UPI", company={"_id": "c2"}),
    ]


@pytest.fixture
def receipts_json():
    return [
        receipt_json("r1", "p1", 400, "2024-05-20T15:00:00.000Z", paymentMethod="Bank Transfer", referenceNumber="UTR-77"),
        receipt_json("r2", "p2", 100, "2024-05-21T15:00:00.000Z", company={"id": "c1"}),
    ]


@pytest.fixture
def loaded_backend(backend, parties_json, sales_json, receipts_json):
    backend.set("/parties", json=parties_json)
    backend.set("/sales", json={"data": sales_json})
    backend.set("/receipts", json={"receipts": receipts_json})
    return backend
