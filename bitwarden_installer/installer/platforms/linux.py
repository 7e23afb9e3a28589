#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

"""Linux-specific (Ubuntu, apt-based) host provisioning for Bitwarden."""

import os
import pathlib
import shutil
import time
from typing import List, Optional

from bitwarden_installer.bitwarden_common import DownloadToFile, is_supported_ubuntu, read_os_release
from bitwarden_installer.bitwarden_constants import (
    DOCKER_CLI_PLUGINS_DIR,
    DOCKER_COMPOSE_STANDALONE_PATHS,
    DOCKER_GROUP,
    DOCKER_SOCKET_PATH,
    PLATFORM_LINUX,
    SUPPORTED_UBUNTU_RELEASES,
)
from bitwarden_installer.bitwarden_utils import temporary_filename, which, which_path
from bitwarden_installer.installer.actions.shared import discover_compose_command
from bitwarden_installer.installer.configs.constants.constants import (
    COMPOSE_PLUGIN_PACKAGE,
    COMPOSE_STANDALONE_BIN,
    COMPOSE_STANDALONE_PACKAGE,
    DOCKER_APT_GPG_URL,
    DOCKER_APT_KEYRING,
    DOCKER_APT_REPO_URL,
    DOCKER_APT_SOURCES_LIST,
    DOCKER_BIN,
    DOCKER_CONFLICTING_PACKAGES,
    DOCKER_PACKAGES,
    DOCKER_RESTART_SETTLE_SEC,
    PREREQUISITE_PACKAGES,
)
from bitwarden_installer.installer.utils.logger_utils import InstallerLogger

from .base import BaseInstaller


class LinuxInstaller(BaseInstaller):
    """Linux-specific Bitwarden host provisioning."""

    def __init__(self, ui, debug: bool = False, control_flow=None, root_dir: Optional[str] = None):
        super().__init__(ui, debug, control_flow)

        self.os_release = read_os_release(root_dir)
        self.install_package_cmd = ['apt-get', 'install', '-y', '-qq']
        self.update_repo_cmd = ['apt-get', 'update', '-y', '-qq']
        if which('apt-get'):
            os.environ["DEBIAN_FRONTEND"] = "noninteractive"

        InstallerLogger.debug(
            f"{PLATFORM_LINUX} installer initialized for {self.os_release.distro} {self.os_release.codename} {self.os_release.release}"
        )

    def check_os_release(self) -> bool:
        if is_supported_ubuntu(self.os_release):
            InstallerLogger.info(f"Detected {self.os_release.pretty_name or self.os_release.distro + ' ' + str(self.os_release.release)}")
            return True
        InstallerLogger.warning(
            f"This installer is designed for Ubuntu {'/'.join(SUPPORTED_UBUNTU_RELEASES)}. "
            f"Current version: {self.os_release.pretty_name or self.os_release.distro}"
        )
        return self.ui.ask_yes_no("Do you want to continue anyway?", default=False)

    def package_is_installed(self, package_name: str) -> bool:
        err, _ = self.run_process(['dpkg', '-s', package_name], stderr=False)
        return err == 0

    def install_package(self, packages: List[str]) -> bool:
        """Install packages using apt-get."""
        packages_to_install = [p for p in packages if not self.package_is_installed(p)]
        if not packages_to_install:
            InstallerLogger.debug(f"All packages already installed: {packages}")
            return True

        err, out = self.run_mutating(
            f"install packages {packages_to_install}",
            self.install_package_cmd + packages_to_install,
        )
        if err != 0:
            InstallerLogger.error(f"Failed to install packages {packages_to_install}: {out}")
            return False
        InstallerLogger.debug(f"Successfully installed packages: {packages_to_install}")
        return True

    def update_system(self) -> bool:
        err, out = self.run_mutating("update package lists", self.update_repo_cmd, retry=1)
        if err != 0:
            InstallerLogger.error(f"Failed to update package lists: {out}")
            return False

        if self.is_dry_run():
            InstallerLogger.info(self.control_flow.would("upgrade installed packages"))
        elif self.run_process_streaming(['apt-get', 'upgrade', '-y']) != 0:
            InstallerLogger.warning("Upgrading installed packages failed; continuing")

        return self.install_package(PREREQUISITE_PACKAGES)

    def install_docker(self) -> bool:
        """Install Docker from the official apt repository."""
        if self.is_docker_installed():
            InstallerLogger.info("Docker is already installed and responding")
            return True

        # distribution packages that conflict with docker-ce
        if conflicting := [p for p in DOCKER_CONFLICTING_PACKAGES if self.package_is_installed(p)]:
            err, out = self.run_mutating(
                f"remove conflicting packages {conflicting}",
                ['apt-get', 'remove', '-y', '-qq'] + conflicting,
            )
            if err != 0:
                InstallerLogger.warning(f"Removing {conflicting} failed: {out}")

        if not self._setup_docker_apt_repo():
            InstallerLogger.error("Failed to set up the Docker apt repository")
            return False

        InstallerLogger.info(f"Installing Docker packages: {DOCKER_PACKAGES}")
        if not self.install_package(DOCKER_PACKAGES):
            InstallerLogger.error("Docker package installation failed")
            return False

        self._configure_docker_service()

        if self.is_dry_run():
            return True

        err, out = self.run_process([DOCKER_BIN, "info"], retry=6, retry_sleep_sec=5, stderr=False)
        if err != 0:
            InstallerLogger.error(f"Docker installation verification failed: {out}")
            return False
        InstallerLogger.info("Docker Engine installed successfully")
        return True

    def _setup_docker_apt_repo(self) -> bool:
        """Add Docker's signing key and apt source for this Ubuntu release."""
        codename = self.os_release.codename
        if not codename:
            InstallerLogger.error("Cannot determine the distribution codename for the Docker repository")
            return False

        if self.is_dry_run():
            InstallerLogger.info(self.control_flow.would(f"add the Docker apt repository for {codename}"))
            return True

        err = 1
        try:
            pathlib.Path(os.path.dirname(DOCKER_APT_KEYRING)).mkdir(mode=0o755, parents=True, exist_ok=True)
            with temporary_filename('.gpg') as armored_gpg_filename:
                if DownloadToFile(DOCKER_APT_GPG_URL, armored_gpg_filename, debug=self.debug):
                    if os.path.isfile(DOCKER_APT_KEYRING):
                        os.unlink(DOCKER_APT_KEYRING)
                    err, out = self.run_process(
                        ["gpg", "--dearmor", "--output", DOCKER_APT_KEYRING, armored_gpg_filename],
                        stderr=False,
                    )
                    if err != 0:
                        InstallerLogger.error(f"Failed to import the Docker signing key: {out}")

            if (err == 0) and os.path.isfile(DOCKER_APT_KEYRING):
                os.chmod(DOCKER_APT_KEYRING, 0o644)
                _, arch_out = self.run_process(['dpkg', '--print-architecture'], stderr=False)
                arch = arch_out[0].strip() if arch_out else 'amd64'
                with open(DOCKER_APT_SOURCES_LIST, 'w') as repo_list_file:
                    repo_list_file.write(
                        f"deb [arch={arch} signed-by={DOCKER_APT_KEYRING}] {DOCKER_APT_REPO_URL} {codename} stable\n"
                    )
                up_err, out = self.run_process(self.update_repo_cmd)
                if up_err != 0:
                    InstallerLogger.warning(f"Failed to update package lists: {out}")

        except OSError as e:
            InstallerLogger.error(f"Failed to setup Docker APT repository: {e}")
            err = 1

        return err == 0

    def _configure_docker_service(self):
        """Start and enable the Docker service on systemd systems."""
        if not which('systemctl'):
            return
        err, out = self.run_mutating("start the Docker service", ["systemctl", "start", "docker"])
        if err == 0:
            err, out = self.run_mutating("enable the Docker service", ["systemctl", "enable", "docker"])
            if err != 0:
                InstallerLogger.error(f"Enabling Docker service failed: {out}")
        else:
            InstallerLogger.error(f"Starting Docker service failed: {out}")

    def install_docker_compose(self) -> bool:
        """Install the compose plugin, then fall back to standalone docker-compose plus a cli-plugin link."""
        if self.is_dry_run():
            InstallerLogger.info(self.control_flow.would(f"install {COMPOSE_PLUGIN_PACKAGE}"))
            return True

        InstallerLogger.info(f"Installing {COMPOSE_PLUGIN_PACKAGE}...")
        self.run_process(self.update_repo_cmd)
        if self.install_package([COMPOSE_PLUGIN_PACKAGE]) and discover_compose_command(DOCKER_BIN, self):
            return True

        InstallerLogger.warning("Docker Compose plugin still not working, installing standalone docker-compose")
        self.install_package([COMPOSE_STANDALONE_PACKAGE])

        if standalone := self._find_standalone_compose():
            plugin_path = os.path.join(DOCKER_CLI_PLUGINS_DIR, COMPOSE_STANDALONE_BIN)
            try:
                os.chmod(standalone, 0o755)
                pathlib.Path(DOCKER_CLI_PLUGINS_DIR).mkdir(parents=True, exist_ok=True)
                if os.path.lexists(plugin_path):
                    os.unlink(plugin_path)
                os.symlink(standalone, plugin_path)
                InstallerLogger.info(f"Linked {standalone} to {plugin_path}")
            except OSError as e:
                InstallerLogger.error(f"Setting up the Docker Compose plugin link failed: {e}")

        return discover_compose_command(DOCKER_BIN, self) is not None

    def _find_standalone_compose(self) -> Optional[str]:
        if found := which_path(COMPOSE_STANDALONE_BIN):
            return found
        for candidate in DOCKER_COMPOSE_STANDALONE_PATHS:
            if os.path.isfile(candidate):
                return candidate
        return None

    def fix_docker_socket(self) -> bool:
        if not os.path.exists(DOCKER_SOCKET_PATH):
            InstallerLogger.error(f"Docker socket {DOCKER_SOCKET_PATH} not found. Is Docker properly installed?")
            return False

        InstallerLogger.info("Setting Docker socket permissions...")
        err, out = self.run_mutating("open Docker socket permissions", ["chmod", "666", DOCKER_SOCKET_PATH])
        if err != 0:
            InstallerLogger.error(f"Changing Docker socket permissions failed: {out}")
            return False
        self.run_mutating("set Docker socket group", ["chgrp", DOCKER_GROUP, DOCKER_SOCKET_PATH])

        InstallerLogger.info("Restarting Docker service to apply permission changes...")
        err, out = self.run_mutating("restart the Docker service", ["systemctl", "restart", "docker.service"])
        if err != 0:
            InstallerLogger.warning(f"Restarting Docker failed: {out}")
        if not self.is_dry_run():
            time.sleep(DOCKER_RESTART_SETTLE_SEC)
        return True

    def ensure_service_account(self, user: str) -> bool:
        if self.user_exists(user):
            InstallerLogger.info(f"User {user} already exists")
        else:
            err, out = self.run_mutating(
                f"create user {user}",
                ["useradd", "--create-home", "--shell", "/bin/bash", user],
            )
            if err != 0:
                InstallerLogger.error(f"Creating user {user} failed: {out}")
                return False
            InstallerLogger.info(f"Created user {user}")

        # groupadd fails harmlessly when the group already exists
        self.run_mutating(f"create group {DOCKER_GROUP}", ["groupadd", "-f", DOCKER_GROUP])
        err, out = self.run_mutating(f"add {user} to the {DOCKER_GROUP} group", ["usermod", "-aG", DOCKER_GROUP, user])
        if err != 0:
            InstallerLogger.error(f'Adding {user} to "{DOCKER_GROUP}" group failed: {out}')
            return False
        return True

    def prepare_install_dir(self, path: str, user: str) -> bool:
        if self.is_dry_run():
            InstallerLogger.info(self.control_flow.would(f"create {path} (mode 0700, owned by {user})"))
            return True
        try:
            pathlib.Path(path).mkdir(parents=True, exist_ok=True)
            os.chmod(path, 0o700)
            shutil.chown(path, user=user, group=user)
        except (OSError, LookupError) as e:
            InstallerLogger.error(f"Preparing {path} failed: {e}")
            return False
        return True

    def remove_install_dir(self, path: str) -> bool:
        if not os.path.lexists(path):
            return True
        if self.is_dry_run():
            InstallerLogger.info(self.control_flow.would(f"remove {path}"))
            return True
        try:
            if os.path.isdir(path) and not os.path.islink(path):
                shutil.rmtree(path)
            else:
                os.unlink(path)
        except OSError as e:
            InstallerLogger.error(f"Removing {path} failed: {e}")
            return False
        return True

    def configure_firewall(self, ports) -> bool:
        if not which('ufw'):
            InstallerLogger.warning("UFW firewall not found. Please manually configure firewall to allow ports 80 and 443")
            return True
        for port in ports:
            err, out = self.run_mutating(f"allow {port} through the firewall", ["ufw", "allow", port])
            if err != 0:
                InstallerLogger.error(f"Allowing {port} failed: {out}")
                return False
        err, out = self.run_mutating("enable the firewall", ["ufw", "--force", "enable"])
        if err != 0:
            InstallerLogger.error(f"Enabling the firewall failed: {out}")
            return False
        InstallerLogger.info(f"Firewall configured to allow {', '.join(ports)}")
        return True
