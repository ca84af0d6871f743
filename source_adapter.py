"""
HTTP access to parties, sales, receipts and stored balances.

The backend is not consistent about response envelopes: a list may come back
bare or wrapped under ``data``, a resource key (``sales``, ``receipts``,
``parties``) or ``entries``. Each resource declares an ordered list of
extractors and the first one that yields a list wins.
"""
from __future__ import annotations
import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import httpx

from config import dict_to_party, dict_to_receipt, dict_to_sale
from errors import MalformedResponse, SourceUnavailable, ValidationGap
from models import Party, Receipt, Sale, TransactionSet

logger = logging.getLogger("receivables.source")

TokenProvider = Union[str, Callable[[], str]]
Extractor = Callable[[Any], Optional[list]]


class BearerAuth(httpx.Auth):
    """Attach the tenant credential; a callable token is read per request."""

    def __init__(self, token: TokenProvider):
        self._token = token

    def auth_flow(self, request):
        token = self._token() if callable(self._token) else self._token
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        yield request


def bare_list(body: Any) -> Optional[list]:
    return body if isinstance(body, list) else None


def under(key: str) -> Extractor:
    def extract(body: Any) -> Optional[list]:
        if isinstance(body, dict) and isinstance(body.get(key), list):
            return body[key]
        return None
    extract.__name__ = f"under_{key}"
    return extract


SALES_EXTRACTORS: Sequence[Extractor] = (bare_list, under("data"), under("sales"), under("entries"))
RECEIPTS_EXTRACTORS: Sequence[Extractor] = (bare_list, under("data"), under("receipts"), under("entries"))
PARTIES_EXTRACTORS: Sequence[Extractor] = (bare_list, under("parties"), under("data"))


def unwrap(body: Any, extractors: Sequence[Extractor], endpoint: str = "") -> list:
    """First list produced by the extractors, or [] when none matches"""
    for extract in extractors:
        found = extract(body)
        if found is not None:
            return found
    logger.warning(
        "No recognizable list in response, using empty list",
        extra={"endpoint": endpoint, "body_type": type(body).__name__},
    )
    return []


def _decode(records: list, decoder: Callable[[Any], Any], endpoint: str) -> list:
    out = []
    for r in records:
        try:
            out.append(decoder(r))
        except ValidationGap as exc:
            logger.warning(exc.message, extra={"endpoint": endpoint, **exc.details})
    return out


def _company_params(company_id: Optional[str]) -> Dict[str, str]:
    return {"companyId": company_id} if company_id else {}


class TransactionSource:
    """
    Read-only client for the accounting backend.

    ``token`` is injected explicitly: pass the credential itself or a
    zero-argument callable returning it.
    """

    def __init__(
        self,
        base_url: str,
        token: TokenProvider,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._auth = BearerAuth(token)

    async def __aenter__(self) -> "TransactionSource":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _get_json(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.get(url, params=params or None, auth=self._auth)
        except httpx.HTTPError as exc:
            logger.warning("Request failed", extra={"endpoint": path, "error": str(exc)})
            raise SourceUnavailable(path, message=f"{path}: {exc}") from exc

        if not response.is_success:
            logger.warning("Non-success response", extra={"endpoint": path, "status": response.status_code})
            raise SourceUnavailable(path, response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            logger.warning("Response is not JSON", extra={"endpoint": path, "status": response.status_code})
            raise MalformedResponse(path, response.status_code, "body is not JSON") from exc

    async def fetch_parties(self) -> List[Party]:
        body = await self._get_json("/parties")
        return _decode(unwrap(body, PARTIES_EXTRACTORS, "/parties"), dict_to_party, "/parties")

    async def fetch_sales(self, company_id: Optional[str] = None) -> List[Sale]:
        body = await self._get_json("/sales", _company_params(company_id))
        return _decode(unwrap(body, SALES_EXTRACTORS, "/sales"), dict_to_sale, "/sales")

    async def fetch_receipts(self, company_id: Optional[str] = None) -> List[Receipt]:
        body = await self._get_json("/receipts", _company_params(company_id))
        return _decode(unwrap(body, RECEIPTS_EXTRACTORS, "/receipts"), dict_to_receipt, "/receipts")

    async def fetch_transactions(self, company_id: Optional[str] = None) -> TransactionSet:
        """Sales and receipts fetched together; fails if either fetch fails"""
        sales, receipts = await asyncio.gather(
            self.fetch_sales(company_id),
            self.fetch_receipts(company_id),
            return_exceptions=True,
        )
        for result in (sales, receipts):
            if isinstance(result, BaseException):
                raise result
        return TransactionSet(sales=sales, receipts=receipts)

    async def fetch_balances(self, company_id: Optional[str] = None) -> Dict[str, float]:
        """Stored per-party balances; the body must carry a "balances" object"""
        body = await self._get_json("/parties/balances", _company_params(company_id))
        balances = body.get("balances") if isinstance(body, dict) else None
        if not isinstance(balances, dict):
            raise MalformedResponse("/parties/balances", reason='missing "balances" object')
        out = {}
        for party_id, amount in balances.items():
            try:
                out[str(party_id)] = float(amount or 0)
            except (TypeError, ValueError) as exc:
                raise MalformedResponse(
                    "/parties/balances", reason=f"balance for {party_id} is not a number"
                ) from exc
        return out

    async def fetch_transaction_detail(self, transaction_id: str) -> dict:
        """
        Full sale or receipt with its line items. The id does not say which
        kind it is, so sales are tried first and receipts second.
        """
        try:
            body = await self._get_json(f"/sales/{transaction_id}")
            key = "entry"
        except SourceUnavailable:
            body = await self._get_json(f"/receipts/{transaction_id}")
            key = "receipt"
        if isinstance(body, dict) and isinstance(body.get(key), dict):
            return body[key]
        if isinstance(body, dict):
            return body
        raise MalformedResponse(f"/{transaction_id}", reason="transaction detail is not an object")
