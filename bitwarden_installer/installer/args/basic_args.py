#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

"""
Basic ungrouped arguments for the Bitwarden installer
"""

from bitwarden_installer.bitwarden_utils import str2bool


def add_basic_args(parser):
    """
    Add basic ungrouped arguments to the parser

    Args:
        parser: ArgumentParser to add arguments to
    """
    basicArgGroup = parser.add_argument_group("Installer Options")

    basicArgGroup.add_argument(
        "--debug",
        "--verbose",
        dest="debug",
        type=str2bool,
        nargs="?",
        metavar="true|false",
        const=True,
        default=False,
        help="Enable debug output including tracebacks",
    )
    basicArgGroup.add_argument(
        "--quiet",
        "--silent",
        action="store_true",
        dest="quiet",
        default=False,
        help="Suppress console logging output during installation",
    )
    # --status and --dry-run are mutually exclusive
    mutex = basicArgGroup.add_mutually_exclusive_group()
    mutex.add_argument(
        "--status",
        dest="status",
        action="store_true",
        default=False,
        help="Report the state of the Bitwarden installation and exit without changing anything",
    )
    mutex.add_argument(
        "--dry-run",
        dest="dryRun",
        action="store_true",
        help="Log planned actions without writing files or making system changes",
    )
    basicArgGroup.add_argument(
        "--log-to-file",
        dest="logToFile",
        metavar="filename",
        nargs="?",
        const="",
        default=None,
        help="Log output to file. If no filename provided, creates timestamped log file.",
    )
    basicArgGroup.add_argument(
        "--yes",
        "-y",
        dest="assumeYes",
        action="store_true",
        default=False,
        help="Answer yes to every confirmation (including a clean reinstall of a broken installation)",
    )
