"""
Checker boundary: a target (url + raw markup) goes in, a list of findings comes out.
NuHtmlChecker talks to a W3C Nu HTML checker instance over HTTP.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, List

import requests

from validator_module.core import VALIDATOR_URL, VALIDATOR_TIMEOUT, USER_AGENT, setup_logger
from validator_module.errors import CheckerError
from validator_module.models import CheckTarget, Finding

logger = setup_logger("html_validator.checker")


class Checker(ABC):
    """
    Abstraction for the external markup checker.
    Contractual Requirements for Implementers:
    - MUST NOT mutate the target.
    - MUST raise CheckerError (never return a partial list) when the check did not complete.
    """

    @abstractmethod
    async def check(self, target: CheckTarget) -> List[Finding]:
        pass


class NuHtmlChecker(Checker):
    """
    FLOW: POSTs the raw markup to <validator_url>?out=json -> Classifies transport/HTTP/JSON failures
    as CheckerError -> Maps Nu messages to Findings.
    Nu reports warnings as type=info/subType=warning; they are surfaced as type=warning.
    """

    def __init__(self, validator_url: str = VALIDATOR_URL, timeout: int = VALIDATOR_TIMEOUT,
                 user_agent: str = USER_AGENT, session: requests.Session = None):
        self._validator_url = validator_url
        self._timeout = timeout
        self._user_agent = user_agent
        self._session = session or requests.Session()

    async def check(self, target: CheckTarget) -> List[Finding]:
        payload = await asyncio.to_thread(self._post, target)
        return self._parse(payload, target)

    def _post(self, target: CheckTarget) -> Dict[str, Any]:
        try:
            r = self._session.post(
                self._validator_url,
                params={"out": "json"},
                data=target.content.encode("utf-8"),
                headers={
                    "Content-Type": "text/html; charset=utf-8",
                    "User-Agent": self._user_agent,
                },
                timeout=self._timeout,
            )
        except requests.exceptions.Timeout as e:
            raise CheckerError(f"Checker timed out after {self._timeout}s for {target.url}") from e
        except requests.exceptions.ConnectionError as e:
            raise CheckerError(f"Checker unreachable at {self._validator_url}: {e}") from e
        except requests.exceptions.RequestException as e:
            raise CheckerError(f"Checker request failed for {target.url}: {e}") from e

        if not (200 <= r.status_code < 300):
            raise CheckerError(f"Checker returned HTTP {r.status_code} for {target.url}")

        try:
            payload = r.json()
        except ValueError as e:
            raise CheckerError(f"Checker returned malformed JSON for {target.url}") from e

        if not isinstance(payload, dict) or not isinstance(payload.get("messages"), list):
            raise CheckerError(f"Checker response for {target.url} has no message list")
        return payload

    def _parse(self, payload: Dict[str, Any], target: CheckTarget) -> List[Finding]:
        findings = []
        for raw in payload["messages"]:
            if not isinstance(raw, dict):
                continue
            if raw.get("type") == "non-document-error":
                raise CheckerError(f"Checker could not process {target.url}: {raw.get('message', '')}")
            if raw.get("type") == "info" and raw.get("subType") == "warning":
                raw = dict(raw, type="warning")
            findings.append(Finding.from_raw(raw))

        logger.debug(f"[CHECKER] {len(findings)} message(s) for {target.url}")
        return findings
