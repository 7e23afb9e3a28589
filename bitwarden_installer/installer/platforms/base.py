#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

"""Base installer class for platform-specific Bitwarden host provisioning."""

import abc
import os
import pwd
import subprocess
import time
from typing import List, Optional, Tuple

from bitwarden_installer.bitwarden_utils import command_args
from bitwarden_installer.installer.configs.constants.enums import ControlFlow
from bitwarden_installer.installer.utils.logger_utils import InstallerLogger


class BaseInstaller(abc.ABC):
    """Abstract base class for platform-specific host operations.

    Every method that changes the host goes through ``run_mutating`` (or checks
    ``is_dry_run`` itself) so a dry run logs what would happen instead.
    """

    def __init__(
        self,
        ui,
        debug: bool = False,
        control_flow: ControlFlow | None = None,
    ):
        """Initialize the base installer.

        Args:
            ui: User interface implementation for user interactions
            debug: Enable debug output
            control_flow: Dry run, install or status-only behavior
        """
        self.ui = ui
        self.debug = debug
        self.control_flow: ControlFlow = control_flow or ControlFlow.INSTALL

    def is_dry_run(self) -> bool:
        return self.control_flow.is_dry_run()

    def run_process(
        self,
        command: List[str],
        privileged: bool = False,
        stdin: Optional[str] = None,
        retry: int = 0,
        retry_sleep_sec: int = 5,
        stderr: bool = True,
        cwd: Optional[str] = None,
    ) -> Tuple[int, List[str]]:
        """Run a command, capturing its output lines; a nonzero exit is retried ``retry`` times."""
        argv = self._argv(command, privileged)
        shown = " ".join(argv)
        retcode, output = -1, []

        for attempt in range(1, retry + 2):
            output = []
            try:
                process = subprocess.run(
                    argv,
                    input=stdin or None,
                    capture_output=True,
                    check=False,
                    text=True,
                    errors="ignore",
                    cwd=cwd,
                )
                retcode = process.returncode
                output = (process.stdout or "").splitlines()
                if stderr:
                    output += (process.stderr or "").splitlines()
            except FileNotFoundError:
                InstallerLogger.debug(f"{argv[0]} is not installed")
                return 127, [f"{argv[0]}: command not found"]
            except OSError as e:
                retcode, output = 1, [f"{shown}: {e}"]

            if retcode == 0:
                break
            if attempt <= retry:
                InstallerLogger.warning(f"{shown} failed (attempt {attempt}/{retry + 1}); retrying in {retry_sleep_sec}s")
                time.sleep(retry_sleep_sec)

        if self.debug:
            InstallerLogger.debug(f"{shown} returned {retcode}: {output}")

        return retcode, output

    def run_process_streaming(self, command: List[str], privileged: bool = False, cwd: Optional[str] = None) -> int:
        """Run a command with its output going straight to the terminal (long apt operations)."""
        argv = self._argv(command, privileged)
        InstallerLogger.debug(f"Running {' '.join(argv)}")
        try:
            return subprocess.run(argv, check=False, cwd=cwd).returncode
        except OSError as e:
            InstallerLogger.error(f"Could not run {' '.join(argv)}: {e}")
            return 127 if isinstance(e, FileNotFoundError) else 1

    @staticmethod
    def _argv(command, privileged: bool) -> List[str]:
        argv = command_args(command)
        return ["sudo"] + argv if (privileged and os.geteuid() != 0) else argv

    def run_mutating(self, description: str, command: List[str], **kwargs) -> Tuple[int, List[str]]:
        """Run a host-changing command, or only log it during a dry run."""
        if self.is_dry_run():
            InstallerLogger.info(self.control_flow.would(f"{description} ({' '.join(command_args(command))})"))
            return 0, []
        return self.run_process(command, **kwargs)

    def user_command(self, user: str, command: List[str]) -> List[str]:
        """Wrap a command so it runs as the given account."""
        return ["sudo", "-u", user, "--"] + list(command)

    def run_as_user(self, user: str, command: List[str], **kwargs) -> Tuple[int, List[str]]:
        return self.run_process(self.user_command(user, command), **kwargs)

    def user_exists(self, user: str) -> bool:
        try:
            pwd.getpwnam(user)
            return True
        except KeyError:
            return False

    def is_docker_installed(self) -> bool:
        """Return True if Docker CLI and daemon are accessible."""
        err, _ = self.run_process(["docker", "info"], stderr=False)
        return err == 0

    @abc.abstractmethod
    def check_os_release(self) -> bool:
        """Return True if the host OS is supported or the operator chose to continue anyway."""
        raise NotImplementedError

    @abc.abstractmethod
    def update_system(self) -> bool:
        """Refresh package lists, upgrade installed packages, and install prerequisites."""
        raise NotImplementedError

    @abc.abstractmethod
    def install_docker(self) -> bool:
        """Install the Docker engine when it is not already working."""
        raise NotImplementedError

    @abc.abstractmethod
    def install_docker_compose(self) -> bool:
        """One repair attempt to make ``docker compose`` (or ``docker-compose``) available."""
        raise NotImplementedError

    @abc.abstractmethod
    def fix_docker_socket(self) -> bool:
        """One repair attempt to make the Docker socket usable by the service account."""
        raise NotImplementedError

    @abc.abstractmethod
    def ensure_service_account(self, user: str) -> bool:
        """Create the service account if needed and add it to the docker group."""
        raise NotImplementedError

    @abc.abstractmethod
    def prepare_install_dir(self, path: str, user: str) -> bool:
        """Create the install directory, private to and owned by the service account."""
        raise NotImplementedError

    @abc.abstractmethod
    def remove_install_dir(self, path: str) -> bool:
        raise NotImplementedError

    @abc.abstractmethod
    def configure_firewall(self, ports) -> bool:
        """Allow the given ports through the host firewall and enable it."""
        raise NotImplementedError
