#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

"""Top-level state machine: Probe -> Plan -> Execute -> Configure -> AwaitReadiness -> Report."""

import os
from typing import Callable, List, Optional, Tuple

from bitwarden_installer.bitwarden_constants import (
    BITWARDEN_CONTAINER_NAME_FILTER,
    FIREWALL_ALLOWED_PORTS,
)
from bitwarden_installer.installer.actions.shared import (
    clean_installation,
    configured_access_url,
    download_installer_script,
    ensure_compose_command,
    ensure_docker_access,
    log_workload_diagnostics,
    start_workload,
    verify_required_files,
)
from bitwarden_installer.installer.configs.constants.constants import (
    BITWARDEN_CMD_INSTALL,
    BITWARDEN_CMD_START,
    INSTALL_LOG_TAIL_LINES,
)
from bitwarden_installer.installer.configs.constants.enums import (
    ExitCode,
    InstallerResult,
    InstallState,
    ReadinessResult,
    RecoveryAction,
)
from bitwarden_installer.installer.core.install_script import build_install_script
from bitwarden_installer.installer.core.readiness import (
    ReadinessCheck,
    all_of,
    containers_running,
    http_responds,
)
from bitwarden_installer.installer.core.recovery_planner import plan
from bitwarden_installer.installer.core.run_control import CancellationToken, host_lock
from bitwarden_installer.installer.utils.exceptions import (
    CorruptedStateError,
    InstallerError,
    InstallerPermissionError,
    MissingDependencyError,
    ReadinessTimeoutError,
    UserDeclinedError,
    WorkloadStartError,
)
from bitwarden_installer.installer.utils.logger_utils import InstallerLogger, SkipReasons


class _Interrupted(Exception):
    pass


class Orchestrator:
    """Runs one pass of the installer state machine and returns the process exit code.

    Every run starts again at Probe, so an interrupted or failed run is resumed
    simply by running the installer again; nothing is rolled back.
    """

    def __init__(
        self,
        options,
        platform,
        ui,
        probe,
        driver,
        configurer,
        waiter,
        config_provider: Callable,
        cancellation: Optional[CancellationToken] = None,
        geteuid: Callable[[], int] = os.geteuid,
    ):
        self.options = options
        self.platform = platform
        self.ui = ui
        self.probe = probe
        self.driver = driver
        self.configurer = configurer
        self.waiter = waiter
        self.config_provider = config_provider
        self.cancellation = cancellation or CancellationToken()
        self.geteuid = geteuid

        self.config = None
        self.compose_cmd: Optional[List[str]] = None
        self.completed_steps: List[str] = []

    @property
    def paths(self):
        return self.options.paths

    @property
    def user(self) -> str:
        return self.options.service_user

    def run(self) -> ExitCode:
        try:
            with host_lock(self.options.lock_file):
                return self._run()
        except _Interrupted:
            InstallerLogger.error("Installation interrupted, re-run to resume")
            return ExitCode.INTERRUPTED
        except KeyboardInterrupt:
            InstallerLogger.error("Installation aborted, re-run to resume")
            return ExitCode.INTERRUPTED
        except InstallerError as e:
            InstallerLogger.error(str(e))
            return e.exit_code
        finally:
            self.cancellation.restore()

    def _run(self) -> ExitCode:
        self.options.validate()
        self._check_privileges()

        cleaned = False
        while True:
            state = self.probe.probe()
            action = plan(state)
            InstallerLogger.info(f"Installation state: {state.value}; action: {action.value}")

            if action != RecoveryAction.OFFER_CLEAN_REINSTALL:
                break
            if cleaned:
                raise CorruptedStateError(
                    f"Installation still {state.value} after cleanup; manual intervention required"
                )
            if not self._offer_clean_reinstall(state):
                InstallerLogger.info("Clean reinstall declined; nothing changed")
                return ExitCode.USER_DECLINED
            cleaned = True
            if self.options.is_dry_run():
                # nothing was removed, so probing again would find the same tree
                action = RecoveryAction.FRESH_INSTALL
                InstallerLogger.info(self.options.would(f"continue with a {action.value}"))
                break

        if action == RecoveryAction.ALREADY_RUNNING:
            InstallerLogger.info("Bitwarden is already installed and running!")
            self._report()
            return ExitCode.SUCCESS

        if action == RecoveryAction.START_EXISTING:
            steps = self._start_existing_steps()
        elif action == RecoveryAction.RESUME_INSTALL:
            steps = self._resume_steps()
        else:
            steps = self._fresh_install_steps()

        for label, step in steps:
            if step not in self._prompting_steps():
                self.cancellation.install()
            self._checkpoint()
            InstallerLogger.start(label)
            try:
                result, message = step()
            except InstallerError as e:
                InstallerLogger.end(label, InstallerResult.FAILURE, type(e).__name__)
                raise
            InstallerLogger.end(label, result, message)
            self.completed_steps.append(label)

        self._checkpoint()
        self._report()
        return ExitCode.SUCCESS

    ###############################################################################################
    # step sequences

    def _fresh_install_steps(self) -> List[Tuple[str, Callable]]:
        steps = []
        if not self.options.skip_os_check:
            steps.append(("Checking operating system", self._step_check_os))
        steps += [
            ("Collecting installation information", self._step_collect_config),
            ("Updating system packages", self._step_update_system),
            ("Installing Docker", self._step_install_docker),
            ("Checking Docker Compose", self._step_compose),
            ("Setting up service account", self._step_service_account),
            ("Verifying Docker access", self._step_docker_access),
            ("Configuring firewall", self._step_firewall),
            ("Downloading bitwarden.sh", self._step_download_script),
        ]
        return steps + self._installer_steps()

    def _resume_steps(self) -> List[Tuple[str, Callable]]:
        return [
            ("Collecting installation information", self._step_collect_config),
            ("Checking Docker Compose", self._step_compose),
            ("Verifying Docker access", self._step_docker_access),
        ] + self._installer_steps()

    def _installer_steps(self) -> List[Tuple[str, Callable]]:
        return [
            ("Running Bitwarden installer", self._step_run_installer),
            ("Configuring environment", self._step_configure_environment),
            ("Starting Bitwarden", self._step_start),
            ("Waiting for Bitwarden", self._step_await_readiness),
            ("Verifying installation files", self._step_verify_files),
        ]

    def _start_existing_steps(self) -> List[Tuple[str, Callable]]:
        return [
            ("Checking Docker Compose", self._step_compose),
            ("Starting Bitwarden", self._step_start),
            ("Waiting for Bitwarden", self._step_await_readiness),
        ]

    def _prompting_steps(self) -> Tuple[Callable, ...]:
        """Steps before any host change; Ctrl-C there aborts at once instead of waiting for the step."""
        return (self._step_check_os, self._step_collect_config)

    ###############################################################################################
    # steps; each returns (InstallerResult, message) or raises InstallerError

    def _step_check_os(self):
        if not self.platform.check_os_release():
            raise UserDeclinedError("Unsupported operating system; installation cancelled")
        return InstallerResult.SUCCESS, None

    def _step_collect_config(self):
        self.config = self.config_provider()
        self.ui.show_summary("BITWARDEN INSTALLATION", self.config.summary())
        return InstallerResult.SUCCESS, None

    def _step_update_system(self):
        if not self.platform.update_system():
            raise MissingDependencyError("system packages", "Updating system packages failed")
        return InstallerResult.SUCCESS, None

    def _step_install_docker(self):
        if not self.platform.install_docker():
            raise MissingDependencyError("docker", "Docker installation failed; install Docker manually and re-run")
        return InstallerResult.SUCCESS, None

    def _step_compose(self):
        self.compose_cmd = ensure_compose_command(self.platform)
        return InstallerResult.SUCCESS, " ".join(self.compose_cmd)

    def _step_service_account(self):
        if not self.platform.ensure_service_account(self.user):
            raise InstallerPermissionError(f"Could not set up the {self.user} account")
        if not self.platform.prepare_install_dir(self.paths.install_dir, self.user):
            raise InstallerPermissionError(f"Could not prepare {self.paths.install_dir}")
        return InstallerResult.SUCCESS, None

    def _step_docker_access(self):
        ensure_docker_access(self.platform, self.user)
        return InstallerResult.SUCCESS, None

    def _step_firewall(self):
        if self.options.skip_firewall:
            return InstallerResult.SKIPPED, SkipReasons.USER_OPTION
        if not self.platform.configure_firewall(FIREWALL_ALLOWED_PORTS):
            raise MissingDependencyError("ufw", "Firewall configuration failed")
        return InstallerResult.SUCCESS, None

    def _step_download_script(self):
        result = download_installer_script(self.paths, self.platform, self.user)
        if result == InstallerResult.FAILURE:
            raise MissingDependencyError("bitwarden.sh", "Could not download bitwarden.sh")
        return result, None

    def _step_run_installer(self):
        command = self.platform.user_command(self.user, [self.paths.script, BITWARDEN_CMD_INSTALL])
        if self.options.is_dry_run():
            InstallerLogger.info(self.options.would(f"run {' '.join(command)} in {self.paths.install_dir}"))
            return InstallerResult.SKIPPED, SkipReasons.DRY_RUN

        InstallerLogger.info("Starting Bitwarden installation - this may take 10-20 minutes...")
        result = self.driver.run(command, build_install_script(self.config), self.config, cwd=self.paths.install_dir)
        if not result.success:
            InstallerLogger.error(f"Last {INSTALL_LOG_TAIL_LINES} lines of the installer output:")
            for line in result.transcript.splitlines()[-INSTALL_LOG_TAIL_LINES:]:
                InstallerLogger.error(f"  {line}")
            InstallerLogger.info(f"Check installation log: {self.paths.install_log}")
            raise result.error
        return InstallerResult.SUCCESS, None

    def _step_configure_environment(self):
        updates = self.config.env_updates() if self.config else {}
        if not updates:
            InstallerLogger.info(f"SMTP can be configured later by editing {self.paths.env_file}")
            return InstallerResult.SKIPPED, "SMTP not configured"
        if self.options.is_dry_run():
            InstallerLogger.info(self.options.would(f"update {', '.join(updates)} in {self.paths.env_file}"))
            return InstallerResult.SKIPPED, SkipReasons.DRY_RUN
        result = self.configurer.apply(self.paths.env_file, updates)
        if not result.changed:
            return InstallerResult.SKIPPED, "already configured"
        return InstallerResult.SUCCESS, f"{len(result.changed_keys)} setting(s) updated"

    def _step_start(self):
        if self.options.is_dry_run() and not os.path.isfile(self.paths.script):
            InstallerLogger.info(self.options.would(f"start Bitwarden with {self.paths.script} {BITWARDEN_CMD_START}"))
            return InstallerResult.SKIPPED, SkipReasons.DRY_RUN
        result = start_workload(self.paths, self.platform, self.user, self.compose_cmd)
        if result == InstallerResult.FAILURE:
            log_workload_diagnostics(self.paths, self.platform, self.user, self.compose_cmd)
            raise WorkloadStartError("Failed to start Bitwarden containers")
        return result, None

    def _step_await_readiness(self):
        if self.options.is_dry_run():
            InstallerLogger.info(self.options.would("wait for Bitwarden containers to respond"))
            return InstallerResult.SKIPPED, SkipReasons.DRY_RUN

        check = self._readiness_check()
        if self.waiter.wait(check) == ReadinessResult.READY:
            return InstallerResult.SUCCESS, None
        log_workload_diagnostics(self.paths, self.platform, self.user, self.compose_cmd)
        if self.options.strict_readiness:
            raise ReadinessTimeoutError(check.description, check.max_attempts)
        InstallerLogger.warning("Bitwarden is not responding yet; it may take several more minutes to fully initialize")
        return InstallerResult.FAILURE, "not ready yet (non-fatal)"

    def _readiness_check(self) -> ReadinessCheck:
        predicate = containers_running(self.platform, BITWARDEN_CONTAINER_NAME_FILTER)
        description = "Bitwarden containers"
        if self.options.readiness_url:
            predicate = all_of(predicate, http_responds(self.options.readiness_url))
            description = f"Bitwarden containers and {self.options.readiness_url}"
        return ReadinessCheck(
            predicate=predicate,
            interval=self.options.readiness_interval,
            max_attempts=self.options.readiness_attempts,
            description=description,
        )

    def _step_verify_files(self):
        if self.options.is_dry_run():
            return InstallerResult.SKIPPED, SkipReasons.DRY_RUN
        present, missing = verify_required_files(self.paths)
        for path in present:
            InstallerLogger.info(f"✓ File exists: {path}")
        for path in missing:
            InstallerLogger.error(f"Missing file: {path}")
        if missing:
            InstallerLogger.warning("Some required files are missing. Installation may be incomplete.")
            return InstallerResult.FAILURE, f"{len(missing)} file(s) missing"
        return InstallerResult.SUCCESS, "All required files are present"

    ###############################################################################################

    def _check_privileges(self):
        if self.options.is_dry_run():
            return
        if self.geteuid() != 0:
            raise InstallerPermissionError("This installer must be run as root (e.g. with sudo); re-run it with privileges")

    def _checkpoint(self):
        if self.cancellation.requested:
            raise _Interrupted()

    def _offer_clean_reinstall(self, state: InstallState) -> bool:
        InstallerLogger.warning(f"Installation appears to be {state.value}. A clean reinstall is recommended.")
        if not self.ui.ask_yes_no(
            f"Remove {self.paths.install_dir} and start a fresh installation? (the {self.user} user is kept)",
            default=False,
        ):
            return False
        self.cancellation.install()
        if not clean_installation(self.paths, self.platform, self.user):
            raise CorruptedStateError(f"Could not remove {self.paths.install_dir}; remove it manually and re-run")
        self._checkpoint()
        self.cancellation.restore()
        return True

    def _report(self):
        url = configured_access_url(self.paths, self.config.domain if self.config else None)
        lines = []
        if url:
            lines.append(f"Bitwarden should now be accessible at: {url}")
        lines += [
            "Important next steps:",
            "1. Test the installation by visiting your domain in a web browser",
            "2. Register a new account (you'll need SMTP configured for email verification)",
            f"3. Set up regular backups of your {self.paths.data_dir} directory",
            "4. Keep your system updated with regular updates",
            f"Useful commands (run from {self.paths.install_dir}):",
            f"  sudo -u {self.user} ./bitwarden.sh start    - Start Bitwarden",
            f"  sudo -u {self.user} ./bitwarden.sh stop     - Stop Bitwarden",
            f"  sudo -u {self.user} ./bitwarden.sh restart  - Restart Bitwarden",
            f"  sudo -u {self.user} ./bitwarden.sh update   - Update Bitwarden",
        ]
        for line in lines:
            InstallerLogger.info(line)
