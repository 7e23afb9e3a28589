#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

import sys
from datetime import datetime
from typing import Optional

from colorama import init as ColoramaInit, Fore, Style

from bitwarden_installer.installer.configs.constants.enums import InstallerResult

ColoramaInit()


class SkipReasons:
    """Skip reason strings shared by the installer steps."""

    DRY_RUN = "Skipped in dry-run mode"
    USER_OPTION = "Skipped at operator request"


class InstallerLogger:
    """Static, color-coded step logger.

    Every line is ``[timestamp] (LABEL) message`` on stdout, and is appended
    uncolored to the log file when one is set with ``--log-to-file``.
    """

    _console_output_enabled = True
    _main_log_file: Optional[str] = None
    _debug_enabled = False
    _color_enabled = True

    _LABEL_COLORS = {
        "INFO": Fore.GREEN,
        "WARN": Fore.YELLOW,
        "ERROR": Fore.RED,
        "DEBUG": Fore.CYAN,
        "START": Fore.BLUE,
        "SUCCESS": Fore.GREEN,
        "SKIP": Fore.MAGENTA,
        "FAIL": Fore.RED,
    }
    _RESULT_LABELS = {
        InstallerResult.SUCCESS: "SUCCESS",
        InstallerResult.SKIPPED: "SKIP",
        InstallerResult.FAILURE: "FAIL",
    }

    def __init__(self):
        raise NotImplementedError("InstallerLogger is entirely static. Use static methods directly.")

    @classmethod
    def set_console_output(cls, enabled: bool):
        cls._console_output_enabled = enabled

    @classmethod
    def set_log_file(cls, main_log_file: Optional[str]):
        cls._main_log_file = main_log_file

    @classmethod
    def set_debug_enabled(cls, enabled: bool):
        cls._debug_enabled = enabled

    @classmethod
    def set_color_enabled(cls, enabled: bool):
        cls._color_enabled = enabled

    @classmethod
    def is_debug_enabled(cls) -> bool:
        return cls._debug_enabled

    @staticmethod
    def generate_timestamped_filename(base_name: str = "bitwarden_install") -> str:
        return f"{base_name}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    @classmethod
    def _log(cls, label: str, message: str):
        line = f"[{datetime.now().strftime('%Y-%m-%d %H:%M:%S')}]"

        if cls._main_log_file:
            try:
                with open(cls._main_log_file, "a", encoding="utf-8") as f:
                    f.write(f"{line} ({label}) {message}\n")
            except OSError as e:
                print(f"Could not write to log file {cls._main_log_file} ({e}); file logging disabled", file=sys.stderr)
                cls._main_log_file = None

        if cls._console_output_enabled:
            color = cls._LABEL_COLORS.get(label) if cls._color_enabled else None
            tag = f"{color}({label}){Style.RESET_ALL}" if color else f"({label})"
            print(f"{line} {tag} {message}", file=sys.stdout, flush=True)

    @classmethod
    def start(cls, label: str):
        """Mark the beginning of an installer step."""
        cls._log("START", f"[{label}]")

    @classmethod
    def end(cls, label: str, status: InstallerResult, message: Optional[str] = None):
        """Mark the end of an installer step with its result."""
        cls._log(cls._RESULT_LABELS.get(status, "FAIL"), f"[{label}]: {message}" if message else f"[{label}]")

    @classmethod
    def info(cls, message: str):
        cls._log("INFO", message)

    @classmethod
    def warning(cls, message: str):
        cls._log("WARN", message)

    @classmethod
    def error(cls, message: str):
        cls._log("ERROR", message)

    @classmethod
    def debug(cls, message: str):
        """Only emitted with --debug."""
        if cls._debug_enabled:
            cls._log("DEBUG", message)
