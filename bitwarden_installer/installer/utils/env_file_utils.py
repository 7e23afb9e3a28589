#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

"""Idempotent KEY=value updates to Bitwarden's global.override.env."""

from __future__ import annotations

import os
import re
import shutil
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Mapping, Optional

from dotenv import dotenv_values

from bitwarden_installer.installer.configs.constants.enums import ConfigWriteReason
from bitwarden_installer.installer.utils.exceptions import ConfigWriteError
from bitwarden_installer.installer.utils.logger_utils import InstallerLogger


@dataclass
class ApplyResult:
    changed_keys: List[str] = field(default_factory=list)
    backup_path: Optional[str] = None

    @property
    def changed(self) -> bool:
        return bool(self.changed_keys)


def _key_pattern(key: str) -> re.Pattern:
    return re.compile(rf"^\s*(?:export\s+)?{re.escape(key)}\s*=")


def _line_ending(line: str) -> str:
    if line.endswith("\r\n"):
        return "\r\n"
    if line.endswith("\n"):
        return "\n"
    return ""


def update_env_lines(lines: List[str], updates: Mapping[str, str]) -> tuple[List[str], List[str]]:
    """Return (new_lines, changed_keys).

    - The last KEY=... line for each key is replaced in place; earlier duplicates are left alone.
    - A key with no line is appended.
    """
    new_lines = list(lines)
    changed: List[str] = []
    for key, value in updates.items():
        if ("\n" in str(value)) or ("\r" in str(value)) or ("=" in key) or (not key.strip()):
            raise ValueError(f"Cannot write {key!r}: keys and values must be single-line")
        replacement = f"{key}={value}"
        pattern = _key_pattern(key)
        last = None
        for i, line in enumerate(new_lines):
            if pattern.match(line):
                last = i
        if last is not None:
            ending = _line_ending(new_lines[last])
            if new_lines[last].rstrip("\r\n") != replacement:
                new_lines[last] = replacement + (ending or "\n")
                changed.append(key)
        else:
            if new_lines and not _line_ending(new_lines[-1]):
                new_lines[-1] = new_lines[-1] + "\n"
            new_lines.append(replacement + "\n")
            changed.append(key)
    return new_lines, changed


class EnvironmentConfigurer:
    """Applies key/value updates to a settings file, with a timestamped backup before the first change."""

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self.clock = clock

    def apply(self, config_path: str, updates: Mapping[str, str]) -> ApplyResult:
        """Update config_path so each key appears with the given value.

        Raises:
            ConfigWriteError: the file is missing or not writable (nothing is written),
                an update is not a single-line KEY=value, or an I/O error occurred while writing
        """
        self._check_writable(config_path)

        try:
            with open(config_path, "r", encoding="utf-8", newline="") as f:
                original = f.read()
        except OSError as e:
            raise ConfigWriteError(config_path, ConfigWriteReason.IO_ERROR, str(e)) from e

        try:
            new_lines, changed_keys = update_env_lines(original.splitlines(keepends=True), updates)
        except ValueError as e:
            raise ConfigWriteError(config_path, ConfigWriteReason.INVALID_VALUE, str(e)) from e
        content = "".join(new_lines)
        if content == original:
            InstallerLogger.debug(f"{config_path} already up to date")
            return ApplyResult()

        backup_path = self._backup(config_path)
        self._atomic_write(config_path, content)
        InstallerLogger.info(f"Updated {', '.join(changed_keys)} in {config_path} (backup: {backup_path})")
        return ApplyResult(changed_keys=changed_keys, backup_path=backup_path)

    @staticmethod
    def current_values(config_path: str) -> Dict[str, Optional[str]]:
        return dict(dotenv_values(config_path)) if os.path.isfile(config_path) else {}

    def _check_writable(self, config_path: str):
        if not os.path.isfile(config_path):
            raise ConfigWriteError(config_path, ConfigWriteReason.NOT_FOUND)
        directory = os.path.dirname(os.path.abspath(config_path))
        if not os.access(config_path, os.W_OK) or not os.access(directory, os.W_OK):
            raise ConfigWriteError(config_path, ConfigWriteReason.NOT_WRITABLE)

    def _backup(self, config_path: str) -> str:
        base = f"{config_path}.backup.{self.clock().strftime('%Y%m%d_%H%M%S')}"
        backup_path, n = base, 0
        while os.path.exists(backup_path):
            n += 1
            backup_path = f"{base}.{n}"
        try:
            shutil.copy2(config_path, backup_path)
            self._copy_ownership(config_path, backup_path)
        except OSError as e:
            raise ConfigWriteError(config_path, ConfigWriteReason.IO_ERROR, f"backup failed: {e}") from e
        return backup_path

    def _atomic_write(self, config_path: str, content: str):
        directory = os.path.dirname(os.path.abspath(config_path))
        fd, tmp_path = tempfile.mkstemp(prefix=f".{os.path.basename(config_path)}.", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            st = os.stat(config_path)
            os.chmod(tmp_path, st.st_mode & 0o7777)
            self._copy_ownership(config_path, tmp_path)
            os.replace(tmp_path, config_path)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise ConfigWriteError(config_path, ConfigWriteReason.IO_ERROR, str(e)) from e

    @staticmethod
    def _copy_ownership(source: str, target: str):
        st = os.stat(source)
        tst = os.stat(target)
        if (st.st_uid, st.st_gid) != (tst.st_uid, tst.st_gid):
            os.chown(target, st.st_uid, st.st_gid)
