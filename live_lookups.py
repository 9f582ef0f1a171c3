#!/usr/bin/env python3
"""Live Lookups — the two network-backed collaborators.

Dictionary: one (word, definition) pair per session from dictionaryapi.dev.
Weather: one Fahrenheit reading per session from open-meteo (no API key).

Both are fetched once, off the event loop, and handed to the session as a
LiveLookup. Failures never raise: they come back as LookupState.FAILED and the
matching rule turns into an auto-passing placeholder.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

import requests

logger = logging.getLogger(__name__)

DICTIONARY_API_URL = "https://api.dictionaryapi.dev/api/v2/entries/en/{word}"
WEATHER_API_URL = "https://api.open-meteo.com/v1/forecast"
DEFAULT_TIMEOUT = 8


class LookupState(Enum):
    PENDING = "pending"
    FAILED = "failed"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class LiveLookup:
    state: LookupState
    value: Any = None
    error: str = ""

    @classmethod
    def pending(cls) -> "LiveLookup":
        return cls(LookupState.PENDING)

    @classmethod
    def failed(cls, error: str) -> "LiveLookup":
        return cls(LookupState.FAILED, error=error)

    @classmethod
    def resolved(cls, value) -> "LiveLookup":
        return cls(LookupState.RESOLVED, value=value)


# ============================================================
# DICTIONARY
# ============================================================

def _first_definition(data) -> str:
    """Pull the first definition of the first meaning out of a dictionaryapi.dev payload."""
    for entry in data:
        for meaning in entry.get("meanings", []):
            for d in meaning.get("definitions", []):
                text = (d.get("definition") or "").strip()
                if text:
                    return text
    raise ValueError("no definition in response")


def fetch_definition(word: str, timeout: float = DEFAULT_TIMEOUT) -> LiveLookup:
    """Look up `word`. Returns resolved (word, definition) or failed."""
    url = DICTIONARY_API_URL.format(word=word)
    try:
        resp = requests.get(url, timeout=timeout)
        if resp.status_code != 200:
            raise RuntimeError(f"dictionary API {resp.status_code}: {resp.reason}")
        definition = _first_definition(resp.json())
    except (requests.RequestException, RuntimeError, ValueError, AttributeError, TypeError) as e:
        logger.warning("Definition lookup for %r failed: %s", word, e)
        return LiveLookup.failed(str(e))

    logger.info("Definition lookup for %r resolved", word)
    return LiveLookup.resolved((word, definition))


# ============================================================
# WEATHER
# ============================================================

def fetch_temperature(latitude: float, longitude: float,
                      timeout: float = DEFAULT_TIMEOUT) -> LiveLookup:
    """Current air temperature (°F) at a coordinate. Returns resolved float or failed."""
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "current": "temperature_2m",
        "temperature_unit": "fahrenheit",
    }
    try:
        resp = requests.get(WEATHER_API_URL, params=params, timeout=timeout)
        if resp.status_code != 200:
            raise RuntimeError(f"weather API {resp.status_code}: {resp.reason}")
        reading = float(resp.json()["current"]["temperature_2m"])
    except (requests.RequestException, RuntimeError, ValueError, KeyError, TypeError) as e:
        logger.warning("Temperature lookup at (%s, %s) failed: %s", latitude, longitude, e)
        return LiveLookup.failed(str(e))

    logger.info("Temperature lookup resolved: %.1f°F", reading)
    return LiveLookup.resolved(reading)
