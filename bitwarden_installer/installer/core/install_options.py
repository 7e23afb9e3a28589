#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

import os
from dataclasses import dataclass, field
from typing import Optional

from bitwarden_installer.bitwarden_constants import (
    BITWARDEN_COMPOSE_RELATIVE_PATH,
    BITWARDEN_CONFIG_RELATIVE_PATH,
    BITWARDEN_DATA_DIR_NAME,
    BITWARDEN_ENV_RELATIVE_PATH,
    BITWARDEN_INSTALL_DIR,
    BITWARDEN_INSTALL_LOG_NAME,
    BITWARDEN_SCRIPT_NAME,
    BITWARDEN_SERVICE_USER,
    LOCK_FILE_PATH,
)
from bitwarden_installer.installer.configs.constants.constants import (
    DEFAULT_READINESS_ATTEMPTS,
    DEFAULT_READINESS_INTERVAL_SEC,
    DEFAULT_READINESS_URL,
)
from bitwarden_installer.installer.configs.constants.enums import ControlFlow
from bitwarden_installer.installer.utils.exceptions import InvalidConfigurationError


@dataclass(frozen=True)
class BitwardenPaths:
    """Filesystem locations of a Bitwarden self-host installation rooted at install_dir."""

    install_dir: str = BITWARDEN_INSTALL_DIR

    @property
    def script(self) -> str:
        return os.path.join(self.install_dir, BITWARDEN_SCRIPT_NAME)

    @property
    def data_dir(self) -> str:
        return os.path.join(self.install_dir, BITWARDEN_DATA_DIR_NAME)

    @property
    def compose_file(self) -> str:
        return os.path.join(self.data_dir, BITWARDEN_COMPOSE_RELATIVE_PATH)

    @property
    def compose_dir(self) -> str:
        return os.path.dirname(self.compose_file)

    @property
    def env_file(self) -> str:
        return os.path.join(self.data_dir, BITWARDEN_ENV_RELATIVE_PATH)

    @property
    def config_yml(self) -> str:
        return os.path.join(self.data_dir, BITWARDEN_CONFIG_RELATIVE_PATH)

    @property
    def install_log(self) -> str:
        return os.path.join(self.install_dir, BITWARDEN_INSTALL_LOG_NAME)

    def required_files(self) -> list[str]:
        """Files that must exist after a completed installation."""
        return [self.script, self.compose_file, self.env_file]


@dataclass
class InstallOptions:
    """Run-level choices gathered from the command line."""

    control_flow: ControlFlow = ControlFlow.INSTALL
    paths: BitwardenPaths = field(default_factory=BitwardenPaths)
    service_user: str = BITWARDEN_SERVICE_USER

    # interaction
    non_interactive: bool = False
    assume_yes: bool = False

    # optional host steps
    skip_firewall: bool = False
    skip_os_check: bool = False

    # SMTP configuration: None means ask (or skip when non-interactive)
    configure_smtp: Optional[bool] = None

    # readiness
    readiness_attempts: int = DEFAULT_READINESS_ATTEMPTS
    readiness_interval: float = DEFAULT_READINESS_INTERVAL_SEC
    readiness_url: Optional[str] = DEFAULT_READINESS_URL
    strict_readiness: bool = False

    lock_file: Optional[str] = LOCK_FILE_PATH

    def validate(self) -> None:
        """Reject option values that would only fail once the host has been changed."""
        attempts = self.readiness_attempts
        if isinstance(attempts, bool) or not isinstance(attempts, int) or attempts < 1:
            raise InvalidConfigurationError("readiness_attempts", f"'{attempts}' is not a positive integer")
        if self.readiness_interval < 0:
            raise InvalidConfigurationError("readiness_interval", f"'{self.readiness_interval}' is negative")

    def is_dry_run(self) -> bool:
        return self.control_flow.is_dry_run()

    def would(self, action: str) -> str:
        return self.control_flow.would(action)
