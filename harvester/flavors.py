"""Named provider flavors.

A flavor tailors how a request is sent and how its response is paged; the
records themselves are always passed through unchanged.
"""

from __future__ import annotations

from typing import Any

from harvester.models import ExtractionRequest

ASHA = "asha"

ASHA_HEADERS: dict[str, str] = {
    "accept": "*/*",
    "accept-language": "en-US,en;q=0.9",
    "content-type": "application/json",
    "origin": "https://find.asha.org",
    "referer": "https://find.asha.org/",
}

ASHA_FIELDS = [
    "date", "clickUri", "syssource", "filetype", "syslanguage",
    "sysindexeddate", "syssize", "provider", "outlookformacuri", "outlookuri",
    "connectortype", "urihash", "collection", "source", "author", "state",
    "ages", "expertise", "language", "objecttype", "permanentid",
]


def asha_default_body() -> dict[str, Any]:
    """Search payload used when an ASHA request does not supply one."""
    return {
        "aq": "@provider==Audiologist",
        "searchHub": "ProFind",
        "locale": "en",
        "firstResult": 0,
        "numberOfResults": 10,
        "excerptLength": 200,
        "fieldsToInclude": list(ASHA_FIELDS),
    }


def apply_flavor(request: ExtractionRequest, explicit_headers: bool = False) -> ExtractionRequest:
    """Fill in flavor defaults on *request*.

    ASHA requests are always POSTed; default headers apply only when the
    caller gave none, and the default body only when it is missing.
    """
    if request.hints.api_flavor != ASHA:
        return request
    changes: dict[str, Any] = {"method": "POST"}
    if not explicit_headers:
        changes["headers"] = {**ASHA_HEADERS, **request.headers}
    if request.body is None:
        changes["body"] = asha_default_body()
    return request.continued(**changes)
