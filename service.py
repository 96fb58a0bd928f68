import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Tuple

import requests

import config
from errors import UpstreamError, UpstreamSource

logger = logging.getLogger(__name__)


def _get_json(url: str, source: UpstreamSource, timeout: float):
    try:
        r = requests.get(url, timeout=timeout)
        r.raise_for_status()
        return r.json()
    except requests.RequestException as e:
        # Timeout, ConnectionError, HTTPError and invalid JSON all land here
        raise UpstreamError(source, str(e)) from e
    except ValueError as e:
        raise UpstreamError(source, f"invalid JSON: {e}") from e


def fetch_countries(timeout: float = config.UPSTREAM_TIMEOUT) -> List[dict]:
    """Fetches the country list from the countries API.

    Raises UpstreamError tagged with UpstreamSource.COUNTRIES on failure.
    """
    data = _get_json(config.COUNTRIES_API_URL, UpstreamSource.COUNTRIES, timeout)
    if not isinstance(data, list):
        raise UpstreamError(UpstreamSource.COUNTRIES, "payload is not a list")
    return data


def fetch_exchange_rates(timeout: float = config.UPSTREAM_TIMEOUT) -> Dict[str, float]:
    """Fetches USD-based exchange rates and returns the code -> rate mapping."""
    data = _get_json(config.EXCHANGE_RATE_API_URL, UpstreamSource.EXCHANGE_RATES, timeout)
    if not isinstance(data, dict):
        raise UpstreamError(UpstreamSource.EXCHANGE_RATES, "payload is not an object")
    if data.get("result") == "error":
        raise UpstreamError(UpstreamSource.EXCHANGE_RATES, f"api error: {data.get('error-type', 'unknown')}")
    rates = data.get("rates")
    if not isinstance(rates, dict):
        raise UpstreamError(UpstreamSource.EXCHANGE_RATES, "rates missing from payload")
    return rates


def fetch_all(timeout: float = config.UPSTREAM_TIMEOUT) -> Tuple[List[dict], Dict[str, float]]:
    """Fetches both sources concurrently.

    Both requests run to completion before anything is returned; if either
    failed, its UpstreamError is raised (countries first when both fail).
    """
    with ThreadPoolExecutor(max_workers=2) as pool:
        countries_future = pool.submit(fetch_countries, timeout)
        rates_future = pool.submit(fetch_exchange_rates, timeout)
        errors = []
        results = []
        for future in (countries_future, rates_future):
            try:
                results.append(future.result())
            except UpstreamError as e:
                logger.warning("Upstream fetch failed: %s", e)
                errors.append(e)
    if errors:
        raise errors[0]
    countries, rates = results
    logger.info("Fetched %d countries and %d exchange rates", len(countries), len(rates))
    return countries, rates
