#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

"""
Workload actions shared by the orchestrator's recovery paths.
"""

import os
import shutil
from typing import List, Optional, Tuple

from bitwarden_installer.bitwarden_common import DownloadToFile, GetConfiguredUrl
from bitwarden_installer.bitwarden_constants import BITWARDEN_CONTAINER_NAME_FILTER, BITWARDEN_SCRIPT_URL
from bitwarden_installer.installer.configs.constants.constants import (
    BITWARDEN_CMD_START,
    BITWARDEN_CMD_STOP,
    COMPOSE_DETACH_FLAG,
    COMPOSE_LOGS_SUBCOMMAND,
    COMPOSE_STANDALONE_BIN,
    COMPOSE_SUBCOMMAND,
    COMPOSE_UP_SUBCOMMAND,
    COMPOSE_VERSION_ARG,
    CONTAINER_LOG_TAIL_LINES,
    DOCKER_BIN,
)
from bitwarden_installer.installer.configs.constants.enums import InstallerResult
from bitwarden_installer.installer.utils.exceptions import MissingDependencyError
from bitwarden_installer.installer.utils.logger_utils import InstallerLogger


def discover_compose_command(runtime_bin: str, platform) -> Optional[List]:
    """
    Return a working compose invocation list for the given runtime.
    """
    candidates = [[runtime_bin, COMPOSE_SUBCOMMAND]]
    if runtime_bin == DOCKER_BIN:
        candidates.append([COMPOSE_STANDALONE_BIN])
    for cmd in candidates:
        rc, _ = platform.run_process(cmd + [COMPOSE_VERSION_ARG], stderr=False)
        if rc == 0:
            return cmd
    return None


def ensure_compose_command(platform) -> List[str]:
    """Discover compose, giving the platform one repair attempt before failing."""
    if cmd := discover_compose_command(DOCKER_BIN, platform):
        InstallerLogger.info(f"Docker Compose is available ({' '.join(cmd)})")
        return cmd

    InstallerLogger.warning("Docker Compose is not available! Attempting to install it...")
    if platform.install_docker_compose():
        if platform.is_dry_run():
            return [DOCKER_BIN, COMPOSE_SUBCOMMAND]
        if cmd := discover_compose_command(DOCKER_BIN, platform):
            InstallerLogger.info(f"Docker Compose successfully installed ({' '.join(cmd)})")
            return cmd

    raise MissingDependencyError(
        "docker compose",
        "Failed to install Docker Compose. Install Docker and Docker Compose manually, then re-run the installer.",
    )


def ensure_docker_access(platform, user: str) -> None:
    """Verify the service account can reach the Docker daemon, repairing socket permissions once."""
    rc, _ = platform.run_as_user(user, [DOCKER_BIN, "ps"], stderr=False)
    if rc == 0:
        InstallerLogger.info(f"User {user} has access to Docker")
        return

    if platform.is_dry_run():
        InstallerLogger.info(platform.control_flow.would(f"repair Docker socket permissions for {user}"))
        return

    InstallerLogger.warning(f"The {user} user cannot access Docker")
    if platform.fix_docker_socket():
        rc, _ = platform.run_as_user(user, [DOCKER_BIN, "ps"], stderr=False)
        if rc == 0:
            InstallerLogger.info("Docker access fixed successfully")
            return

    raise MissingDependencyError(
        "docker socket access",
        f"The {user} user still cannot access Docker. Log out and back in (or restart the system), then re-run the installer.",
    )


def running_container_names(platform, name_filter: str = BITWARDEN_CONTAINER_NAME_FILTER) -> Optional[List[str]]:
    """Names of running containers matching the filter, or None if docker could not be queried."""
    rc, out = platform.run_process(
        [DOCKER_BIN, "ps", "--filter", f"name={name_filter}", "--format", "{{.Names}}"],
        stderr=False,
    )
    if rc != 0:
        return None
    return [line.strip() for line in out if name_filter in line]


def download_installer_script(paths, platform, user: str) -> InstallerResult:
    """Fetch bitwarden.sh into the install directory, executable by the service account only."""
    if os.path.isfile(paths.script):
        InstallerLogger.info(f"{paths.script} already present")
        return InstallerResult.SKIPPED

    if platform.is_dry_run():
        InstallerLogger.info(platform.control_flow.would(f"download {BITWARDEN_SCRIPT_URL} to {paths.script}"))
        return InstallerResult.SKIPPED

    try:
        if not DownloadToFile(BITWARDEN_SCRIPT_URL, paths.script, debug=platform.debug):
            InstallerLogger.error(f"Downloading {BITWARDEN_SCRIPT_URL} failed")
            return InstallerResult.FAILURE
        os.chmod(paths.script, 0o700)
        shutil.chown(paths.script, user=user, group=user)
    except Exception as e:
        InstallerLogger.error(f"Downloading {BITWARDEN_SCRIPT_URL} failed: {e}")
        return InstallerResult.FAILURE

    InstallerLogger.info(f"Downloaded {paths.script}")
    return InstallerResult.SUCCESS


def start_workload(paths, platform, user: str, compose_cmd: Optional[List[str]] = None) -> InstallerResult:
    """Start Bitwarden with bitwarden.sh, falling back to compose in bwdata/docker."""
    if os.path.isfile(paths.script):
        InstallerLogger.info("Running bitwarden.sh start...")
        if platform.is_dry_run():
            InstallerLogger.info(platform.control_flow.would(f"run {paths.script} {BITWARDEN_CMD_START} as {user}"))
            return InstallerResult.SKIPPED
        rc, out = platform.run_as_user(user, [paths.script, BITWARDEN_CMD_START], cwd=paths.install_dir)
        if rc == 0:
            return InstallerResult.SUCCESS
        InstallerLogger.error(f"Failed to start Bitwarden with bitwarden.sh: {out[-5:] if out else ''}")

    if os.path.isfile(paths.compose_file):
        InstallerLogger.warning("Trying alternative start method with docker compose...")
        cmd = (compose_cmd or [DOCKER_BIN, COMPOSE_SUBCOMMAND]) + [COMPOSE_UP_SUBCOMMAND, COMPOSE_DETACH_FLAG]
        if platform.is_dry_run():
            InstallerLogger.info(platform.control_flow.would(f"run {' '.join(cmd)} in {paths.compose_dir} as {user}"))
            return InstallerResult.SKIPPED
        rc, out = platform.run_as_user(user, cmd, cwd=paths.compose_dir)
        if rc == 0:
            return InstallerResult.SUCCESS
        InstallerLogger.error(f"docker compose up failed: {out[-5:] if out else ''}")
        return InstallerResult.FAILURE

    InstallerLogger.error("Cannot start Bitwarden - missing required files")
    return InstallerResult.FAILURE


def log_workload_diagnostics(paths, platform, user: str, compose_cmd: Optional[List[str]] = None) -> None:
    """Log every Bitwarden container's status and the recent compose logs after a failed start or wait."""
    if platform.is_dry_run():
        return

    _, out = platform.run_process(
        [DOCKER_BIN, "ps", "-a", "--filter", f"name={BITWARDEN_CONTAINER_NAME_FILTER}", "--format", "{{.Names}}\t{{.Status}}"],
        stderr=True,
    )
    InstallerLogger.info("Container status:")
    for line in out or ["(no Bitwarden containers found)"]:
        InstallerLogger.info(f"  {line}")

    if not os.path.isfile(paths.compose_file):
        return
    cmd = (compose_cmd or [DOCKER_BIN, COMPOSE_SUBCOMMAND]) + [COMPOSE_LOGS_SUBCOMMAND, "--tail", str(CONTAINER_LOG_TAIL_LINES)]
    _, out = platform.run_as_user(user, cmd, cwd=paths.compose_dir)
    InstallerLogger.info(f"Recent container logs ({' '.join(cmd)}):")
    for line in out:
        InstallerLogger.info(f"  {line}")


def stop_workload(paths, platform, user: str) -> None:
    """Best-effort stop of running Bitwarden containers; failures are only logged."""
    names = running_container_names(platform)
    if not names or not os.path.isfile(paths.script):
        return
    InstallerLogger.info("Stopping Bitwarden containers...")
    if platform.is_dry_run():
        InstallerLogger.info(platform.control_flow.would(f"run {paths.script} {BITWARDEN_CMD_STOP} as {user}"))
        return
    rc, out = platform.run_as_user(user, [paths.script, BITWARDEN_CMD_STOP], cwd=paths.install_dir)
    if rc != 0:
        InstallerLogger.warning(f"bitwarden.sh stop returned {rc}: {out[-5:] if out else ''}")


def clean_installation(paths, platform, user: str) -> bool:
    """Stop containers and remove the install directory. The service account is kept."""
    InstallerLogger.info("Cleaning up partial installation...")
    stop_workload(paths, platform, user)
    if not platform.remove_install_dir(paths.install_dir):
        return False
    InstallerLogger.info(f"Cleanup completed. User {user} preserved.")
    return True


def verify_required_files(paths) -> Tuple[List[str], List[str]]:
    """Split the required installation files into (present, missing)."""
    present, missing = [], []
    for path in paths.required_files():
        (present if os.path.isfile(path) else missing).append(path)
    return present, missing


def configured_access_url(paths, fallback_domain: Optional[str] = None) -> Optional[str]:
    """The URL Bitwarden was configured with, falling back to https://<domain>."""
    if url := GetConfiguredUrl(paths.config_yml):
        return url
    return f"https://{fallback_domain}" if fallback_domain else None
