"""
DataForSEO metrics gateway.

Fetches three independent lookups for a domain from the DataForSEO v3 API and
normalizes each response into a fixed record shape:

    - Domain Rank Overview     -> RankOverview
    - Backlinks Summary        -> Backlinks
    - Historical Rank Overview -> list[HistoricalPoint]

The lookups run concurrently. Each one isolates its own failures (transport
errors, timeouts, non-2xx responses, provider error codes, malformed
envelopes) and resolves to None instead of raising, so the domain score stays
computable when some or all of them fail.

Example:
    >>> async with SeoMetricsGateway() as gateway:
    ...     metrics = await gateway.fetch_all("https://www.example.com/pricing")
    ...     metrics.rank_overview.etv
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Literal, Optional, TypeVar, Union
from urllib.parse import urlsplit

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from tool_intel.config.settings import Settings, get_settings
from tool_intel.models.schemas import (
    POSITION_BUCKETS,
    Backlinks,
    DomainMetrics,
    HistoricalPoint,
    KeywordMovement,
    RankOverview,
)
from tool_intel.utils.errors import (
    STATUS_OK,
    AppTimeoutError,
    CredentialsError,
    ErrorHandler,
    MalformedResponseError,
    NetworkError,
    PaymentRequiredError,
    ProviderError,
    provider_error_for,
)
from tool_intel.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

RANK_OVERVIEW_PATH = "/dataforseo_labs/google/domain_rank_overview/live"
BACKLINKS_SUMMARY_PATH = "/backlinks/summary/live"
HISTORICAL_RANK_PATH = "/dataforseo_labs/google/historical_rank_overview/live"

ERROR_BODY_PREVIEW = 500


# =============================================================================
# Domain Normalization
# =============================================================================

def normalize_domain(domain_or_url: str) -> str:
    """
    Reduce a URL or bare domain to a hostname without a leading ``www.``.

    >>> normalize_domain("https://www.example.com/pricing")
    'example.com'
    """
    value = (domain_or_url or "").strip()
    if "://" in value:
        host = urlsplit(value).hostname or ""
    else:
        host = value.split("/")[0].split("?")[0].split("#")[0]
        host = host.rsplit("@", 1)[-1].split(":")[0]
    host = host.lower().rstrip(".")
    return host[4:] if host.startswith("www.") else host


# =============================================================================
# Response Envelopes
# =============================================================================

@dataclass(frozen=True)
class FlatEnvelope:
    """Payload with the result array at the top level."""
    result: dict[str, Any]
    kind: Literal["flat"] = "flat"


@dataclass(frozen=True)
class TaskEnvelope:
    """Payload with the result nested under ``tasks[0]``."""
    result: dict[str, Any]
    task_id: Optional[str] = None
    kind: Literal["tasks"] = "tasks"


ProviderEnvelope = Union[FlatEnvelope, TaskEnvelope]


def _first_dict(value: Any) -> Optional[dict[str, Any]]:
    if isinstance(value, list) and value and isinstance(value[0], dict):
        return value[0]
    return None


def _has_items(result: Optional[dict[str, Any]]) -> bool:
    if result is None:
        return False
    items = result.get("items")
    return isinstance(items, list) and len(items) > 0


def decode_envelope(payload: Any, require_items: bool = False) -> ProviderEnvelope:
    """
    Decode a DataForSEO response into one canonical envelope.

    Args:
        payload: Parsed JSON response body.
        require_items: Whether the result must carry a non-empty ``items`` list.

    Raises:
        ProviderError: Top-level or task status is not 20000.
        PaymentRequiredError: Status 40200 (subscription needed).
        MalformedResponseError: Neither shape holds a usable result.
    """
    if not isinstance(payload, dict):
        raise MalformedResponseError("Response body is not a JSON object")

    status = payload.get("status_code")
    if status != STATUS_OK:
        raise provider_error_for(status, payload.get("status_message"))

    flat = _first_dict(payload.get("result"))
    if flat is not None and (_has_items(flat) or not require_items):
        return FlatEnvelope(result=flat)

    task = _first_dict(payload.get("tasks"))
    if task is not None:
        task_status = task.get("status_code")
        if task_status != STATUS_OK:
            raise provider_error_for(task_status, task.get("status_message"))
        nested = _first_dict(task.get("result"))
        if nested is not None and (_has_items(nested) or not require_items):
            return TaskEnvelope(result=nested, task_id=task.get("id"))

    raise MalformedResponseError("Response returned no result data")


# =============================================================================
# Record Normalization
# =============================================================================

def _num(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value


def _int(value: Any) -> int:
    return int(_num(value))


def _organic(item: dict[str, Any]) -> dict[str, Any]:
    metrics = item.get("metrics") or {}
    organic = metrics.get("organic") if isinstance(metrics, dict) else None
    return organic if isinstance(organic, dict) else {}


def _buckets(organic: dict[str, Any]) -> dict[str, int]:
    return {label: _int(organic.get(label)) for label in POSITION_BUCKETS}


def _movement(organic: dict[str, Any]) -> KeywordMovement:
    return KeywordMovement(
        is_new=_int(organic.get("is_new")),
        is_up=_int(organic.get("is_up")),
        is_down=_int(organic.get("is_down")),
        is_lost=_int(organic.get("is_lost")),
    )


def parse_rank_overview(envelope: ProviderEnvelope, domain: str) -> RankOverview:
    result = envelope.result
    item = result["items"][0]
    if not isinstance(item, dict):
        raise MalformedResponseError("Rank overview item is not an object")
    organic = _organic(item)
    return RankOverview(
        target=result.get("target") or item.get("target") or domain,
        etv=_num(organic.get("etv")),
        keyword_count=_int(organic.get("count")),
        position_buckets=_buckets(organic),
        keyword_movement=_movement(organic),
        estimated_paid_traffic_cost=_num(organic.get("estimated_paid_traffic_cost")),
    )


def parse_backlinks(envelope: ProviderEnvelope, domain: str) -> Backlinks:
    result = envelope.result
    return Backlinks(
        target=result.get("target") or domain,
        domain_rank=_num(result.get("rank")),
        backlink_count=_int(result.get("backlinks")),
        referring_domains=_int(result.get("referring_domains")),
        referring_main_domains=_int(result.get("referring_main_domains")),
        referring_ips=_int(result.get("referring_ips")),
        referring_subnets=_int(result.get("referring_subnets")),
        backlinks_spam_score=_num(result.get("backlinks_spam_score")) or None,
        target_spam_score=_num(result.get("target_spam_score")) or None,
        first_seen=result.get("first_seen") or None,
    )


def parse_history(envelope: ProviderEnvelope) -> list[HistoricalPoint]:
    now = datetime.now()
    points = []
    for item in envelope.result["items"]:
        if not isinstance(item, dict):
            continue
        organic = _organic(item)
        points.append(HistoricalPoint(
            year=_int(item.get("year")) or now.year,
            month=_int(item.get("month")) or now.month,
            etv=_num(organic.get("etv")),
            keyword_count=_int(organic.get("count")),
            position_buckets=_buckets(organic),
            keyword_movement=_movement(organic),
        ))
    # Oldest first
    points.sort(key=lambda p: p.period)
    return points


# =============================================================================
# Gateway
# =============================================================================

class SeoMetricsGateway:
    """
    Best-effort DataForSEO client.

    Every public fetch method returns None on failure and logs the reason;
    nothing is raised to the caller.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings()
        self._client = client
        self._owns_client = client is None
        self._request_count = 0
        self._error_count = 0
        self._last_error: Optional[str] = None

    @property
    def name(self) -> str:
        return "dataforseo"

    @property
    def is_configured(self) -> bool:
        return self.settings.get_dataforseo_credentials() is not None

    async def connect(self) -> None:
        """Initialize HTTP client."""
        if self._client is None:
            timeout = float(self.settings.request_timeout_seconds)
            self._client = httpx.AsyncClient(
                base_url=self.settings.dataforseo_base_url,
                timeout=httpx.Timeout(timeout, connect=min(10.0, timeout)),
                limits=httpx.Limits(
                    max_keepalive_connections=5,
                    max_connections=10,
                ),
            )
            self._owns_client = True

    async def disconnect(self) -> None:
        """Close HTTP client."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "SeoMetricsGateway":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.disconnect()

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def _url(self, path: str) -> str:
        return f"{self.settings.dataforseo_base_url}{path}"

    async def _post_once(self, path: str, task: dict[str, Any]) -> Any:
        credentials = self.settings.get_dataforseo_credentials()
        if not credentials:
            raise CredentialsError(
                "No DataForSEO credentials; set DATAFORSEO_API_KEY or "
                "DATAFORSEO_USERNAME + DATAFORSEO_PASSWORD"
            )

        if self._client is None:
            await self.connect()

        self._request_count += 1
        try:
            response = await asyncio.wait_for(
                self._client.post(
                    self._url(path),
                    json=[task],
                    headers={
                        "Authorization": f"Basic {credentials}",
                        "Content-Type": "application/json",
                    },
                ),
                timeout=self.settings.request_timeout_seconds,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise AppTimeoutError(
                f"No response within {self.settings.request_timeout_seconds}s"
            ) from e
        except httpx.TransportError as e:
            raise NetworkError(str(e) or e.__class__.__name__) from e

        if not response.is_success:
            raise self._http_error(response)

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Invalid JSON body: {e}") from e

    @staticmethod
    def _http_error(response: httpx.Response) -> ProviderError:
        body = response.text[:ERROR_BODY_PREVIEW]
        status_code = None
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict):
            status_code = data.get("status_code")
            task = _first_dict(data.get("tasks"))
            if status_code == STATUS_OK and task is not None:
                status_code = task.get("status_code")
        return provider_error_for(
            status_code,
            f"HTTP {response.status_code}: {body}",
            http_status=response.status_code,
        )

    async def _post(self, path: str, task: dict[str, Any]) -> Any:
        """POST one task, retrying transport failures up to MAX_RETRIES times."""
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type((NetworkError, AppTimeoutError)),
            stop=stop_after_attempt(self.settings.max_retries + 1),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            reraise=True,
        ):
            with attempt:
                return await self._post_once(path, task)

    async def _guarded(
        self,
        endpoint: str,
        domain: str,
        call: Callable[[], Awaitable[T]],
    ) -> Optional[T]:
        """Run one lookup, converting any failure into None."""
        try:
            return await call()
        except PaymentRequiredError as e:
            self._record_error(e)
            logger.warning(
                "DataForSEO endpoint requires a separate subscription",
                endpoint=endpoint,
                domain=domain,
                payment_required=True,
                status_code=e.status_code,
                http_status=e.http_status,
            )
        except CredentialsError as e:
            self._record_error(e)
            logger.warning("DataForSEO credentials missing", endpoint=endpoint, error=str(e))
        except Exception as e:
            self._record_error(e)
            logger.error(
                "DataForSEO lookup failed",
                endpoint=endpoint,
                domain=domain,
                error_type=ErrorHandler.categorize_error(e),
                error=str(e)[:ERROR_BODY_PREVIEW],
            )
        return None

    def _record_error(self, error: Exception) -> None:
        self._error_count += 1
        self._last_error = str(error)

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    async def fetch_rank_overview(self, domain_or_url: str) -> Optional[RankOverview]:
        """Fetch organic traffic and keyword visibility for a domain."""
        domain = normalize_domain(domain_or_url)

        async def call() -> RankOverview:
            logger.info("Fetching domain rank overview", domain=domain)
            payload = await self._post(RANK_OVERVIEW_PATH, {
                "target": domain,
                "location_code": self.settings.dataforseo_location_code,
                "language_code": self.settings.dataforseo_language_code,
                "limit": 100,
                "ignore_synonyms": False,
            })
            envelope = decode_envelope(payload, require_items=True)
            overview = parse_rank_overview(envelope, domain)
            logger.info(
                "Domain rank overview retrieved",
                domain=domain,
                envelope=envelope.kind,
                organic_etv=overview.etv,
                organic_keywords=overview.keyword_count,
                top_3_keywords=overview.top3,
            )
            return overview

        return await self._guarded("domain_rank_overview", domain, call)

    async def fetch_backlinks(self, domain_or_url: str) -> Optional[Backlinks]:
        """Fetch backlink authority summary for a domain."""
        domain = normalize_domain(domain_or_url)

        async def call() -> Backlinks:
            logger.info("Fetching backlinks summary", domain=domain)
            payload = await self._post(BACKLINKS_SUMMARY_PATH, {
                "target": domain,
                "backlinks_status_type": "live",
                "internal_list_limit": 10,
                "include_subdomains": True,
                "exclude_internal_backlinks": True,
                "include_indirect_links": True,
                "rank_scale": "one_hundred",
            })
            envelope = decode_envelope(payload)
            backlinks = parse_backlinks(envelope, domain)
            logger.info(
                "Backlinks summary retrieved",
                domain=domain,
                envelope=envelope.kind,
                rank=backlinks.domain_rank,
                backlinks=backlinks.backlink_count,
                referring_domains=backlinks.referring_domains,
                spam_score=backlinks.target_spam_score,
            )
            return backlinks

        return await self._guarded("backlinks_summary", domain, call)

    async def fetch_history(self, domain_or_url: str) -> Optional[list[HistoricalPoint]]:
        """Fetch month-by-month rank overview history, oldest first."""
        domain = normalize_domain(domain_or_url)

        async def call() -> list[HistoricalPoint]:
            logger.info("Fetching historical rank overview", domain=domain)
            payload = await self._post(HISTORICAL_RANK_PATH, {
                "target": domain,
                "location_code": self.settings.dataforseo_location_code,
                "language_code": self.settings.dataforseo_language_code,
                "correlate": True,
                "ignore_synonyms": False,
                "include_clickstream_data": False,
            })
            envelope = decode_envelope(payload, require_items=True)
            points = parse_history(envelope)
            if not points:
                raise MalformedResponseError("Historical items held no data points")
            logger.info("Historical rank overview retrieved", domain=domain, months=len(points))
            return points

        return await self._guarded("historical_rank_overview", domain, call)

    async def fetch_all(self, domain_or_url: str) -> DomainMetrics:
        """Run all three lookups concurrently; each group is None on failure."""
        domain = normalize_domain(domain_or_url)
        logger.info("Fetching comprehensive domain data", domain=domain)

        if self._client is None:
            await self.connect()

        rank_overview, backlinks, history = await asyncio.gather(
            self.fetch_rank_overview(domain),
            self.fetch_backlinks(domain),
            self.fetch_history(domain),
        )

        return DomainMetrics(
            domain=domain,
            rank_overview=rank_overview,
            backlinks=backlinks,
            history=history,
        )

    def get_stats(self) -> dict[str, Any]:
        """Get gateway statistics."""
        return {
            "name": self.name,
            "configured": self.is_configured,
            "request_count": self._request_count,
            "error_count": self._error_count,
            "last_error": self._last_error,
        }
