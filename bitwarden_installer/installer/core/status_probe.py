#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

"""Classify the host's Bitwarden installation into an InstallState."""

import errno
import os
import pwd
import stat
from dataclasses import dataclass
from typing import Callable, List, Optional

from bitwarden_installer.bitwarden_constants import BITWARDEN_CONTAINER_NAME_FILTER
from bitwarden_installer.installer.actions.shared import running_container_names
from bitwarden_installer.installer.configs.constants.enums import InstallState
from bitwarden_installer.installer.utils.exceptions import InstallerPermissionError
from bitwarden_installer.installer.utils.logger_utils import InstallerLogger


@dataclass(frozen=True)
class ProbeCheck:
    label: str
    passed: bool
    detail: Optional[str] = None

    def line(self) -> str:
        return f"{'✓' if self.passed else '✗'} {self.label}{f' ({self.detail})' if self.detail else ''}"


class _Corrupted(Exception):
    pass


class _Unreadable(Exception):
    pass


class StatusProbe:
    """Read-only inspection of the service account, install tree and running containers.

    The checks run in a fixed order and stop at the first absence, so the
    result is always the most "upstream" state that applies. Filesystem errors
    other than "not found", and paths of the wrong kind, yield CORRUPTED.
    Without root a permission error says nothing about the tree, so the state
    is left undetermined instead.
    """

    def __init__(
        self,
        paths,
        platform,
        service_user: str,
        name_filter: str = BITWARDEN_CONTAINER_NAME_FILTER,
        user_lookup: Callable = pwd.getpwnam,
        geteuid: Callable[[], int] = os.geteuid,
    ):
        self.paths = paths
        self.platform = platform
        self.service_user = service_user
        self.name_filter = name_filter
        self.user_lookup = user_lookup
        self.geteuid = geteuid

    def probe(self) -> InstallState:
        state, checks = self._evaluate()
        if state is None:
            raise InstallerPermissionError(f"{checks[-1].label} cannot be inspected without root; re-run with sudo")
        return state

    def describe(self) -> List[str]:
        """Report lines for each check performed, followed by the resulting state."""
        state, checks = self._evaluate()
        lines = [check.line() for check in checks]
        if state is None:
            return lines + ["State: undetermined (re-run as root to inspect the installation)"]
        return lines + [f"State: {state.name} ({state.value})"]

    def _evaluate(self):
        checks: List[ProbeCheck] = []
        try:
            checks.append(ProbeCheck(f"User {self.service_user} exists", self._account_exists()))

            if not self._exists(self.paths.install_dir, stat.S_ISDIR, checks, "Install directory"):
                return InstallState.NOT_INSTALLED, checks
            if not self._exists(self.paths.script, stat.S_ISREG, checks, "Installer script"):
                return InstallState.SCRIPT_MISSING, checks
            if not self._exists(self.paths.data_dir, stat.S_ISDIR, checks, "Data directory"):
                return InstallState.DATA_INCOMPLETE, checks

            names = running_container_names(self.platform, self.name_filter)
            if names is None:
                InstallerLogger.warning("Could not query Docker for running containers; treating them as stopped")
            running = bool(names)
            checks.append(ProbeCheck("Containers running", running, ", ".join(names) if names else None))
            return (InstallState.INSTALLED_RUNNING if running else InstallState.INSTALLED_STOPPED), checks

        except _Unreadable:
            return None, checks
        except _Corrupted:
            return InstallState.CORRUPTED, checks
        except Exception as e:
            InstallerLogger.error(f"Unexpected error while inspecting the installation: {e}")
            checks.append(ProbeCheck("Inspection completed", False, str(e)))
            return InstallState.CORRUPTED, checks

    def _account_exists(self) -> bool:
        try:
            self.user_lookup(self.service_user)
            return True
        except KeyError:
            return False

    def _exists(self, path: str, kind: Callable[[int], bool], checks: List[ProbeCheck], label: str) -> bool:
        try:
            st = os.stat(path)
        except OSError as e:
            if e.errno == errno.ENOENT:
                checks.append(ProbeCheck(f"{label} {path}", False, "not found"))
                return False
            if e.errno in (errno.EACCES, errno.EPERM) and self.geteuid() != 0:
                checks.append(ProbeCheck(f"{label} {path}", False, "permission denied"))
                raise _Unreadable() from e
            checks.append(ProbeCheck(f"{label} {path}", False, e.strerror or str(e)))
            raise _Corrupted() from e
        if not kind(st.st_mode):
            checks.append(ProbeCheck(f"{label} {path}", False, "unexpected file type"))
            raise _Corrupted()
        checks.append(ProbeCheck(f"{label} {path}", True))
        return True
