#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

"""How the installer talks to the operator: text prompts, dialogs, or not at all."""


def add_presentation_args(parser):
    group = parser.add_argument_group(title="Interface Mode")

    exclusive = group.add_mutually_exclusive_group()
    exclusive.add_argument(
        "--tui",
        action="store_true",
        help="Prompt on the terminal (default)",
    )
    exclusive.add_argument(
        "--dui",
        action="store_true",
        help="Prompt with dialog boxes (requires pythondialog and a terminal; falls back to --tui)",
    )
    exclusive.add_argument(
        "--non-interactive",
        dest="non_interactive",
        action="store_true",
        default=False,
        help="Never prompt: every value must come from options, the settings file or the environment",
    )
    group.add_argument(
        "--no-color",
        dest="noColor",
        action="store_true",
        default=False,
        help="Do not colorize log labels",
    )
