"""TzKT indexer client with a cache-aside layer."""

import random
import time
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import TypeVar

import httpx
import structlog

from bakerpay.services._helpers import to_decimal, to_int
from bakerpay.services.cache import TTLCache
from bakerpay.services.errors import IndexerTransportError
from bakerpay.services.reward_split import build_reward_split, parse_delegator_rewards
from bakerpay.services.schemas.tzkt import (
    BakerRewards,
    CycleInfo,
    DelegatorInfo,
    RewardSplit,
)
from config import get_settings
from db.enums import AccountType

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

T = TypeVar("T")

JsonPayload = dict[str, object] | list[object]


@contextmanager
def _normalising(endpoint: str) -> Iterator[None]:
    """Report a payload field that is not a number as a failed indexer call."""
    try:
        yield
    except (ValueError, TypeError, ArithmeticError) as e:
        raise IndexerTransportError(endpoint, f"malformed payload: {e}") from e


def _parse_time(raw: object) -> datetime | None:
    if not isinstance(raw, str) or not raw:
        return None
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        logger.warning("Unparseable timestamp from TzKT", value=raw)
        return None


class TzKTClient:
    """Read-only client for the TzKT REST API.

    Every lookup except `get_operation` goes through the TTL cache, keyed by
    operation name and parameters. Values handed out are frozen snapshots.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        cache_ttl: float | None = None,
        retry_attempts: int | None = None,
        retry_delay: float | None = None,
        cache: TTLCache | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        settings = get_settings().tzkt
        self.base_url: str = base_url or settings.base_url
        self.timeout: float = timeout or settings.timeout
        self.cache_ttl: float = settings.cache_ttl if cache_ttl is None else cache_ttl
        self.retry_attempts: int = retry_attempts or settings.retry_attempts
        self.retry_delay: float = settings.retry_delay if retry_delay is None else retry_delay
        self._cache: TTLCache = (
            cache if cache is not None else TTLCache(max_entries=settings.cache_max_entries)
        )
        self._http: httpx.Client = http_client or httpx.Client(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "TzKTClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- transport ---------------------------------------------------------

    def _request(self, endpoint: str) -> object:
        try:
            response: httpx.Response = self._http.get(endpoint)
            response.raise_for_status()
            payload: object = response.json()
        except httpx.TimeoutException as e:
            raise IndexerTransportError(endpoint, f"timed out after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            status: int = e.response.status_code
            raise IndexerTransportError(endpoint, f"HTTP {status}", status_code=status) from e
        except httpx.HTTPError as e:
            raise IndexerTransportError(endpoint, str(e) or type(e).__name__) from e
        except ValueError as e:
            raise IndexerTransportError(endpoint, f"invalid JSON body: {e}") from e
        logger.debug("TzKT call ok", endpoint=endpoint)
        return payload

    def _retry_call(self, endpoint: str, func: Callable[[str], T]) -> T:
        for attempt in range(1, self.retry_attempts + 1):
            try:
                return func(endpoint)
            except IndexerTransportError as e:
                client_error: bool = e.status_code is not None and 400 <= e.status_code < 500
                if attempt >= self.retry_attempts or client_error:
                    logger.error(
                        "TzKT call failed",
                        endpoint=endpoint,
                        attempt=attempt,
                        error=e.message,
                    )
                    raise
                logger.warning(
                    "TzKT call failed, retrying",
                    endpoint=endpoint,
                    attempt=attempt,
                    error=e.message,
                )
                time.sleep(self.retry_delay * attempt + random.uniform(0, self.retry_delay))
        raise AssertionError("unreachable")

    def _get(self, endpoint: str) -> object:
        return self._retry_call(endpoint, self._request)

    def _get_object(self, endpoint: str) -> Mapping[str, object]:
        payload: object = self._get(endpoint)
        if not isinstance(payload, Mapping):
            raise IndexerTransportError(endpoint, "expected a JSON object")
        return payload

    # -- lookups -----------------------------------------------------------

    def get_baker_rewards(self, baker_id: str, cycle: int) -> BakerRewards:
        endpoint: str = f"/v1/rewards/split/{baker_id}/{cycle}"

        def _fetch() -> BakerRewards:
            logger.info("Fetching baker rewards", baker=baker_id, cycle=cycle)
            data = self._get_object(endpoint)
            with _normalising(endpoint):
                return BakerRewards.from_payload(data, cycle)

        return self._cache.get_or_fetch(
            f"baker-rewards:{baker_id}:{cycle}", self.cache_ttl, _fetch
        )

    def get_reward_split(self, baker_id: str, cycle: int) -> RewardSplit:
        endpoint: str = f"/v1/rewards/split/{baker_id}/{cycle}"

        def _fetch() -> RewardSplit:
            logger.info("Fetching reward split", baker=baker_id, cycle=cycle)
            data = self._get_object(endpoint)
            with _normalising(endpoint):
                split = build_reward_split(
                    baker_id,
                    cycle,
                    BakerRewards.from_payload(data, cycle),
                    parse_delegator_rewards(data.get("delegators")),
                )
            logger.info(
                "Reward split computed",
                baker=baker_id,
                cycle=cycle,
                total=str(split.total_rewards),
                delegators=len(split.delegators),
            )
            return split

        return self._cache.get_or_fetch(
            f"reward-split:{baker_id}:{cycle}", self.cache_ttl, _fetch
        )

    def get_delegators(self, baker_id: str) -> list[DelegatorInfo]:
        endpoint: str = f"/v1/delegates/{baker_id}/delegators"

        def _fetch() -> tuple[DelegatorInfo, ...]:
            logger.info("Fetching delegators", baker=baker_id)
            data: object = self._get(endpoint)
            if not isinstance(data, list):
                return ()
            with _normalising(endpoint):
                delegators = tuple(
                    DelegatorInfo(
                        address=str(item.get("address") or ""),
                        balance=to_decimal(item.get("balance")),
                        staked_balance=to_decimal(item.get("stakedBalance")),
                        type=str(item.get("type") or AccountType.USER.value),
                    )
                    for item in data
                    if isinstance(item, Mapping)
                )
            logger.info("Found delegators", baker=baker_id, count=len(delegators))
            return delegators

        cached = self._cache.get_or_fetch(f"delegators:{baker_id}", self.cache_ttl, _fetch)
        return list(cached)

    def get_cycle_info(self, cycle: int) -> CycleInfo:
        endpoint: str = f"/v1/cycles/{cycle}"

        def _fetch() -> CycleInfo:
            logger.info("Fetching cycle", cycle=cycle)
            data = self._get_object(endpoint)
            with _normalising(endpoint):
                return CycleInfo(
                    index=to_int(data.get("index")) or cycle,
                    first_level=to_int(data.get("firstLevel")),
                    start_time=_parse_time(data.get("startTime")),
                    end_time=_parse_time(data.get("endTime")),
                    snapshot_level=to_int(data.get("snapshotLevel")),
                    random_seed=str(data.get("randomSeed") or ""),
                    total_bakers=to_int(data.get("totalBakers")),
                    total_delegators=to_int(data.get("totalDelegators")),
                    total_staking=to_decimal(data.get("totalStaking")),
                )

        return self._cache.get_or_fetch(f"cycle:{cycle}", self.cache_ttl, _fetch)

    def get_account_balance(self, address: str) -> Decimal:
        endpoint: str = f"/v1/accounts/{address}"

        def _fetch() -> Decimal:
            logger.info("Fetching balance", address=address)
            data = self._get_object(endpoint)
            with _normalising(endpoint):
                return to_decimal(data.get("balance"))

        return self._cache.get_or_fetch(f"balance:{address}", self.cache_ttl, _fetch)

    def get_operation(self, op_hash: str) -> JsonPayload | None:
        """Raw transaction payload, or None when TzKT does not know the hash.

        Not cached: an operation's status changes until it is final. Transport
        failures other than "not found" raise like every other lookup.
        """
        endpoint: str = f"/v1/operations/transactions/{op_hash}"
        logger.info("Fetching operation", op_hash=op_hash)
        try:
            payload: object = self._get(endpoint)
        except IndexerTransportError as e:
            if e.status_code == 404:
                logger.info("Operation not found", op_hash=op_hash)
                return None
            raise
        if not payload or not isinstance(payload, (dict, list)):
            return None
        return payload

    # -- cache -------------------------------------------------------------

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.info("Cache cleared")

    def cache_size(self) -> int:
        return self._cache.size()
