#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

"""Prompt/response script for ``bitwarden.sh install``."""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from bitwarden_installer.installer.configs.constants.constants import (
    DRIVER_COMPLETION_TIMEOUT_SEC,
    DRIVER_FIRST_PROMPT_TIMEOUT_SEC,
    DRIVER_PROMPT_TIMEOUT_SEC,
)
from bitwarden_installer.installer.configs.constants.enums import TlsMode


@dataclass(frozen=True)
class PromptResponseRule:
    """One step of a scripted interactive session.

    ``pattern`` is a regular expression matched against the child's output;
    ``response`` is a ``str.format_map`` template rendered with the
    installation config's template fields, or None to only wait for the text.
    """

    pattern: str
    response: Optional[str]
    description: str
    optional: bool = False
    timeout: float = DRIVER_PROMPT_TIMEOUT_SEC
    repeatable: bool = False
    secret: bool = False


@dataclass(frozen=True)
class InstallScript:
    rules: Tuple[PromptResponseRule, ...]
    progress_rules: Tuple[PromptResponseRule, ...] = ()
    error_signatures: Tuple[str, ...] = ()
    success_pattern: Optional[str] = None
    success_timeout: float = DRIVER_COMPLETION_TIMEOUT_SEC

    def __post_init__(self):
        for rule in self.rules:
            re.compile(rule.pattern)
            if rule.repeatable:
                raise ValueError(f"Ordered rule '{rule.description}' cannot be repeatable")
        for rule in self.progress_rules:
            re.compile(rule.pattern)
        for pattern in self.error_signatures:
            re.compile(pattern)

    def index_of(self, description: str) -> int:
        for i, rule in enumerate(self.rules):
            if rule.description == description:
                return i
        raise KeyError(description)


def _prompt(text: str) -> str:
    return re.escape(text)


# output from bitwarden.sh (and the docker commands it runs) that only reports progress
PROGRESS_RULES = (
    PromptResponseRule(r"Unable to find image", None, "Pulling required Docker images", repeatable=True),
    PromptResponseRule(r"Pulling from bitwarden|Pulling", None, "Pulling Docker images", repeatable=True),
    PromptResponseRule(r"Starting Bitwarden", None, "Starting Bitwarden", repeatable=True),
    PromptResponseRule(r"Installing Docker", None, "Installing Docker", repeatable=True),
    PromptResponseRule(r"Restarting", None, "Restarting services", repeatable=True),
    PromptResponseRule(r"Generating", None, "Generating certificates", repeatable=True),
    PromptResponseRule(r"Downloading", None, "Downloading components", repeatable=True),
    PromptResponseRule(r"Installing", None, "Installing components", repeatable=True),
    PromptResponseRule(r"Configured", None, "Configuration complete", repeatable=True),
)

ERROR_SIGNATURES = (
    r"Error:[^\r\n]*",
    r"ERROR:[^\r\n]*",
    r"Failed:[^\r\n]*",
)

SUCCESS_PATTERN = r"Installation complete"

DEFAULT_DATABASE_NAME = "vault"


def build_install_script(
    config,
    prompt_timeout: float = DRIVER_PROMPT_TIMEOUT_SEC,
    first_prompt_timeout: float = DRIVER_FIRST_PROMPT_TIMEOUT_SEC,
    completion_timeout: float = DRIVER_COMPLETION_TIMEOUT_SEC,
) -> InstallScript:
    """The prompt sequence ``bitwarden.sh install`` presents for this configuration."""
    rules: List[PromptResponseRule] = [
        PromptResponseRule(
            _prompt("Enter the domain name for your Bitwarden instance"),
            "{domain}",
            "domain name",
            timeout=first_prompt_timeout,
        ),
        PromptResponseRule(
            _prompt("Do you want to use Let's Encrypt to generate a free SSL certificate?"),
            "{letsencrypt}",
            "Let's Encrypt",
            timeout=prompt_timeout,
        ),
    ]
    if config.tls_mode == TlsMode.LETS_ENCRYPT:
        rules.append(
            PromptResponseRule(
                _prompt("Enter your email address"),
                "{email}",
                "Let's Encrypt email",
                timeout=prompt_timeout,
            )
        )
    rules.extend(
        [
            # only asked by newer releases of bitwarden.sh
            PromptResponseRule(
                _prompt("Enter the database name for your Bitwarden instance"),
                DEFAULT_DATABASE_NAME,
                "database name",
                optional=True,
                timeout=prompt_timeout,
            ),
            PromptResponseRule(
                _prompt("Enter your installation id"),
                "{installation_id}",
                "installation id",
                timeout=prompt_timeout,
            ),
            PromptResponseRule(
                _prompt("Enter your installation key"),
                "{installation_key}",
                "installation key",
                timeout=prompt_timeout,
                secret=True,
            ),
            PromptResponseRule(
                _prompt("Enter your region (US/EU)"),
                "{region}",
                "region",
                timeout=prompt_timeout,
            ),
        ]
    )
    if config.tls_mode != TlsMode.LETS_ENCRYPT:
        rules.extend(
            [
                PromptResponseRule(
                    _prompt("Do you have a SSL certificate to use?"),
                    "n",
                    "existing SSL certificate",
                    timeout=prompt_timeout,
                ),
                PromptResponseRule(
                    _prompt("Do you want to generate a self-signed SSL certificate?"),
                    "{self_signed}",
                    "self-signed certificate",
                    timeout=prompt_timeout,
                ),
            ]
        )

    return InstallScript(
        rules=tuple(rules),
        progress_rules=PROGRESS_RULES,
        error_signatures=ERROR_SIGNATURES,
        success_pattern=SUCCESS_PATTERN,
        success_timeout=completion_timeout,
    )
