"""
Financial Modeling Prep (v3) market-data collaborator.

URL builders and payload parsers are pure and tested offline with small JSON
fixtures; MarketDataClient does the HTTP with requests.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
import logging
import re
from urllib.parse import quote

import requests

from finstation.config.env import MarketConfig, get_market_config
from finstation.errors import APIError, TickerValidationError
from finstation.scenarios.actuals import IncomeRecord

logger = logging.getLogger(__name__)

SERVICE = "FMP"
_TICKER_RE = re.compile(r"^[A-Z]{1,5}$")


def validate_ticker(ticker: str) -> str:
    if not isinstance(ticker, str) or not _TICKER_RE.match(ticker):
        raise TickerValidationError()
    return ticker


def build_income_statement_url(ticker: str, limit: int = 5, cfg: MarketConfig | None = None) -> str:
    cfg = cfg or get_market_config()
    return f"{cfg.base_url}/income-statement/{ticker.upper()}?limit={int(limit)}"


def build_profile_url(ticker: str, cfg: MarketConfig | None = None) -> str:
    cfg = cfg or get_market_config()
    return f"{cfg.base_url}/profile/{ticker.upper()}"


def build_search_url(query: str, limit: int = 10, cfg: MarketConfig | None = None) -> str:
    cfg = cfg or get_market_config()
    return f"{cfg.base_url}/search?query={quote(query)}&limit={int(limit)}"


@dataclass(frozen=True)
class CompanyProfile:
    symbol: str
    company_name: str
    currency: Optional[str] = None
    price: Optional[float] = None
    beta: Optional[float] = None
    market_cap: Optional[float] = None
    sector: Optional[str] = None
    industry: Optional[str] = None
    exchange: Optional[str] = None


@dataclass(frozen=True)
class SearchHit:
    symbol: str
    name: str
    exchange: Optional[str] = None
    currency: Optional[str] = None


def _opt_float(v: Any) -> Optional[float]:
    try:
        return float(v) if v is not None else None
    except (TypeError, ValueError):
        return None


def parse_income_statements(payload: Any) -> List[IncomeRecord]:
    """Parse an income-statement array into records, newest first.

    Rows without a numeric revenue are skipped; missing cost/tax fields
    default to zero.
    """
    out: List[IncomeRecord] = []
    if not isinstance(payload, list):
        return out
    for row in payload:
        if not isinstance(row, dict):
            continue
        revenue = _opt_float(row.get("revenue"))
        if revenue is None:
            continue
        out.append(IncomeRecord(
            revenue=revenue,
            cost_of_revenue=_opt_float(row.get("costOfRevenue")) or 0.0,
            income_before_tax=_opt_float(row.get("incomeBeforeTax")) or 0.0,
            income_tax_expense=_opt_float(row.get("incomeTaxExpense")) or 0.0,
            date=row.get("date"),
        ))
    out.sort(key=lambda r: r.date or "", reverse=True)
    return out


def parse_profile(payload: Any) -> Optional[CompanyProfile]:
    row = payload[0] if isinstance(payload, list) and payload else payload
    if not isinstance(row, dict) or not row.get("symbol"):
        return None
    return CompanyProfile(
        symbol=row["symbol"],
        company_name=row.get("companyName") or row["symbol"],
        currency=row.get("currency"),
        price=_opt_float(row.get("price")),
        beta=_opt_float(row.get("beta")),
        market_cap=_opt_float(row.get("mktCap")),
        sector=row.get("sector"),
        industry=row.get("industry"),
        exchange=row.get("exchangeShortName") or row.get("exchange"),
    )


def parse_search(payload: Any) -> List[SearchHit]:
    out: List[SearchHit] = []
    if not isinstance(payload, list):
        return out
    for row in payload:
        if isinstance(row, dict) and row.get("symbol"):
            out.append(SearchHit(
                symbol=row["symbol"],
                name=row.get("name") or row["symbol"],
                exchange=row.get("exchangeShortName") or row.get("stockExchange"),
                currency=row.get("currency"),
            ))
    return out


class MarketDataClient:
    def __init__(self, cfg: MarketConfig | None = None, session: requests.Session | None = None):
        self.cfg = cfg or get_market_config()
        self.session = session or requests.Session()

    def _get_json(self, url: str) -> Any:
        if not self.cfg.api_key:
            raise APIError("FMP_API_KEY is not configured", service=SERVICE)
        try:
            resp = self.session.get(url, params={"apikey": self.cfg.api_key}, timeout=self.cfg.timeout_sec)
            resp.raise_for_status()
            data = resp.json()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            logger.error("%s request failed (%s): %s", SERVICE, status, url)
            raise APIError(f"{SERVICE} API request failed: {e}", status_code=status, service=SERVICE) from e
        except (requests.RequestException, ValueError) as e:
            logger.error("%s request failed: %s", SERVICE, e)
            raise APIError(f"{SERVICE} API request failed: {e}", service=SERVICE) from e
        if isinstance(data, dict) and data.get("Error Message"):
            raise APIError(str(data["Error Message"]), service=SERVICE)
        return data

    def search(self, query: str, limit: int = 10) -> List[SearchHit]:
        return parse_search(self._get_json(build_search_url(query, limit, self.cfg)))

    def company_profile(self, ticker: str) -> Optional[CompanyProfile]:
        validate_ticker(ticker)
        return parse_profile(self._get_json(build_profile_url(ticker, self.cfg)))

    def income_statements(self, ticker: str, limit: int = 5) -> List[IncomeRecord]:
        validate_ticker(ticker)
        return parse_income_statements(self._get_json(build_income_statement_url(ticker, limit, self.cfg)))

    def latest_two(self, ticker: str) -> Tuple[IncomeRecord, IncomeRecord]:
        """(latest, prior) annual statements, as expected by import_from_actuals."""
        records = self.income_statements(ticker, limit=2)
        if len(records) < 2:
            raise APIError(f"need two annual income statements for {ticker}, got {len(records)}", service=SERVICE)
        return records[0], records[1]
