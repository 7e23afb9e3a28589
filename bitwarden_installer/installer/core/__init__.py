#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

"""Core components for the Bitwarden installer.

This package contains the installation state probe, the recovery planner, the
interactive install driver, readiness polling and the orchestrator that ties
them together.
"""

from .install_options import BitwardenPaths, InstallOptions
from .installation_config import InstallationConfig, SmtpSettings, build_installation_config
from .recovery_planner import plan
from .status_probe import StatusProbe

__all__ = [
    "BitwardenPaths",
    "InstallOptions",
    "InstallationConfig",
    "SmtpSettings",
    "build_installation_config",
    "plan",
    "StatusProbe",
]
