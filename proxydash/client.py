#!/usr/bin/env python3
# Copyright 2025 icecake0141
# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# This file was created or modified with the assistance of an AI (Large Language Model).
# Review required for correctness, security, and licensing.

"""
Controller API client for ProxyDash.

A thin wrapper over the proxy controller's HTTP API. Only ``GET /proxies`` is
used. Failures are classified into a small exception hierarchy so the poller
can report them without knowing about ``requests``.
"""

import logging
from typing import Any, Dict
from urllib.parse import urlsplit

import requests

logger = logging.getLogger(__name__)

DEFAULT_CONTROLLER_URL = "http://127.0.0.1:9090"


class ControllerError(Exception):
    """Base class for controller API failures."""


class InvalidControllerUrl(ControllerError):
    """The configured controller URL cannot be used."""


class RequestFailed(ControllerError):
    """The request did not complete (connection error, timeout, ...)."""


class BadResponseEncoding(ControllerError):
    """The response body is not valid JSON."""


class BadResponseFormat(ControllerError):
    """The response JSON does not have the expected shape."""


class FailedResponse(ControllerError):
    """The controller answered with a non-success status code."""

    def __init__(self, status_code: int):
        super().__init__(f"Controller returned HTTP {status_code}")
        self.status_code = status_code


def normalize_controller_url(url: str) -> str:
    """
    Validate a controller base URL and strip any trailing slash.

    Raises:
        InvalidControllerUrl: If the URL is not an absolute http(s) URL.
    """
    parts = urlsplit(url.strip())
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise InvalidControllerUrl(f"Invalid controller URL '{url}'. Expected e.g. {DEFAULT_CONTROLLER_URL}")
    return url.strip().rstrip("/")


class ControllerClient:
    """Client for a Clash-compatible controller."""

    def __init__(self, base_url: str, timeout: float = 3.0, session: Any = None):
        self.base_url = normalize_controller_url(base_url)
        self.timeout = timeout
        self.session = session or requests.Session()

    def get_proxies(self) -> Dict[str, Dict[str, Any]]:
        """
        Fetch the ``name -> record`` mapping of every proxy and group.

        Raises:
            RequestFailed: On connection errors and timeouts.
            FailedResponse: On a non-2xx status.
            BadResponseEncoding: If the body is not JSON.
            BadResponseFormat: If the body has no ``proxies`` mapping.
        """
        url = f"{self.base_url}/proxies"
        logger.debug("GET %s", url)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise RequestFailed(f"Error while requesting {url}: {exc}") from exc

        if not response.ok:
            raise FailedResponse(response.status_code)

        try:
            body = response.json()
        except ValueError as exc:
            raise BadResponseEncoding(f"Broken response from {url}") from exc

        proxies = body.get("proxies") if isinstance(body, dict) else None
        if not isinstance(proxies, dict):
            raise BadResponseFormat(f"Response from {url} has no 'proxies' mapping")
        return proxies

    def close(self) -> None:
        self.session.close()
