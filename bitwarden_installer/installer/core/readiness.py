#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

"""Bounded polling for container and HTTP readiness."""

import time
from dataclasses import dataclass
from typing import Callable

import requests
import urllib3

from bitwarden_installer.bitwarden_constants import BITWARDEN_CONTAINER_NAME_FILTER
from bitwarden_installer.installer.actions.shared import running_container_names
from bitwarden_installer.installer.configs.constants.constants import (
    READINESS_HTTP_TIMEOUT_SEC,
    READINESS_SUCCESS_CODES,
)
from bitwarden_installer.installer.configs.constants.enums import ReadinessResult
from bitwarden_installer.installer.utils.logger_utils import InstallerLogger

urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)


@dataclass(frozen=True)
class ReadinessCheck:
    predicate: Callable[[], bool]
    interval: float
    max_attempts: int
    description: str = "Bitwarden"

    def __post_init__(self):
        if isinstance(self.max_attempts, bool) or not isinstance(self.max_attempts, int) or self.max_attempts < 1:
            raise ValueError(f"max_attempts must be a positive integer, not {self.max_attempts!r}")
        if self.interval < 0:
            raise ValueError(f"interval must not be negative, not {self.interval!r}")


class ReadinessWaiter:
    """Evaluates a check's predicate at most ``max_attempts`` times, sleeping between attempts."""

    def __init__(self, sleep: Callable[[float], None] = time.sleep):
        self.sleep = sleep

    def wait(self, check: ReadinessCheck) -> ReadinessResult:
        for attempt in range(1, check.max_attempts + 1):
            try:
                ready = bool(check.predicate())
            except Exception as e:
                InstallerLogger.debug(f"{check.description} readiness check raised {e}")
                ready = False

            if ready:
                InstallerLogger.info(f"{check.description} ready (attempt {attempt}/{check.max_attempts})")
                return ReadinessResult.READY

            InstallerLogger.info(f"Waiting for {check.description}... (attempt {attempt}/{check.max_attempts})")
            if attempt < check.max_attempts:
                self.sleep(check.interval)

        return ReadinessResult.TIMEOUT


###################################################################################################
# predicates


def containers_running(platform, name_filter: str = BITWARDEN_CONTAINER_NAME_FILTER) -> Callable[[], bool]:
    def _check() -> bool:
        return bool(running_container_names(platform, name_filter))

    return _check


def http_responds(
    url: str,
    success_codes=READINESS_SUCCESS_CODES,
    timeout: float = READINESS_HTTP_TIMEOUT_SEC,
    session=None,
) -> Callable[[], bool]:
    """Any of the success codes counts; certificate verification is off since this probes loopback."""
    http = session or requests

    def _check() -> bool:
        try:
            response = http.get(url, verify=False, timeout=timeout, allow_redirects=False)
        except requests.RequestException as e:
            InstallerLogger.debug(f"{url} not responding: {e}")
            return False
        InstallerLogger.debug(f"{url} returned {response.status_code}")
        return response.status_code in success_codes

    return _check


def all_of(*predicates: Callable[[], bool]) -> Callable[[], bool]:
    def _check() -> bool:
        return all(predicate() for predicate in predicates)

    return _check
