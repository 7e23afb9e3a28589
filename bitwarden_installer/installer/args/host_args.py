#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

"""
Host and runtime arguments for the Bitwarden installer
"""

import os

from bitwarden_installer.bitwarden_constants import (
    BITWARDEN_INSTALL_DIR,
    BITWARDEN_SERVICE_USER,
    LOCK_FILE_PATH,
)
from bitwarden_installer.bitwarden_utils import str2bool
from bitwarden_installer.installer.configs.constants.constants import (
    DEFAULT_READINESS_ATTEMPTS,
    DEFAULT_READINESS_INTERVAL_SEC,
    DEFAULT_READINESS_URL,
)


def add_host_args(parser):
    """
    Add host preparation and readiness arguments to the parser

    Args:
        parser: ArgumentParser to add arguments to
    """
    host_arg_group = parser.add_argument_group("Host Options")

    host_arg_group.add_argument(
        "--install-dir",
        dest="installDir",
        metavar="<string>",
        type=str,
        default=os.getenv("BW_INSTALL_DIR", BITWARDEN_INSTALL_DIR),
        help=f"Directory Bitwarden is installed into (default {BITWARDEN_INSTALL_DIR})",
    )
    host_arg_group.add_argument(
        "--service-user",
        dest="serviceUser",
        metavar="<string>",
        type=str,
        default=BITWARDEN_SERVICE_USER,
        help=f"Unprivileged account that owns and runs Bitwarden (default {BITWARDEN_SERVICE_USER})",
    )
    host_arg_group.add_argument(
        "--skip-firewall",
        dest="skipFirewall",
        type=str2bool,
        metavar="true|false",
        nargs="?",
        const=True,
        default=False,
        help="Do not configure ufw",
    )
    host_arg_group.add_argument(
        "--skip-os-check",
        dest="skipOsCheck",
        type=str2bool,
        metavar="true|false",
        nargs="?",
        const=True,
        default=False,
        help="Do not warn about operating systems other than Ubuntu",
    )
    host_arg_group.add_argument(
        "--lock-file",
        dest="lockFile",
        metavar="<string>",
        type=str,
        default=LOCK_FILE_PATH,
        help="Lock file preventing concurrent installer runs (empty to disable)",
    )

    readiness_arg_group = parser.add_argument_group("Readiness Options")
    readiness_arg_group.add_argument(
        "--readiness-attempts",
        dest="readinessAttempts",
        metavar="<integer>",
        type=int,
        default=DEFAULT_READINESS_ATTEMPTS,
        help="Number of times to check whether Bitwarden is up after starting it",
    )
    readiness_arg_group.add_argument(
        "--readiness-interval",
        dest="readinessInterval",
        metavar="<seconds>",
        type=float,
        default=DEFAULT_READINESS_INTERVAL_SEC,
        help="Seconds between readiness checks",
    )
    readiness_arg_group.add_argument(
        "--readiness-url",
        dest="readinessUrl",
        metavar="<string>",
        type=str,
        default=DEFAULT_READINESS_URL,
        help="URL that must answer for Bitwarden to count as ready (empty to check containers only)",
    )
    readiness_arg_group.add_argument(
        "--strict-readiness",
        dest="strictReadiness",
        type=str2bool,
        metavar="true|false",
        nargs="?",
        const=True,
        default=False,
        help="Fail the run if Bitwarden is not ready when the checks are exhausted",
    )
