#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

"""Exceptions raised by the Bitwarden installer.

Each carries the process exit code the orchestrator reports when it ends a run.
"""

from typing import Optional

from bitwarden_installer.installer.configs.constants.enums import ConfigWriteReason, ExitCode


class InstallerError(Exception):
    """Base class for installer errors."""

    exit_code = ExitCode.FAILURE


class InstallerPermissionError(InstallerError):
    """Raised when the installer lacks the privileges it needs."""

    exit_code = ExitCode.PERMISSION_DENIED


class MissingDependencyError(InstallerError):
    """Raised when a required host dependency is unavailable and could not be repaired."""

    exit_code = ExitCode.DEPENDENCY_MISSING

    def __init__(self, dependency: str, message: Optional[str] = None):
        super().__init__(message or f"Required dependency '{dependency}' is not available.")
        self.dependency = dependency


class InvalidConfigurationError(InstallerError):
    """Raised when the installation parameters fail validation."""

    exit_code = ExitCode.INVALID_CONFIGURATION

    def __init__(self, field: str, message: str):
        super().__init__(f"Invalid value for '{field}': {message}")
        self.field = field


class ConfigWriteError(InstallerError):
    """Raised when the persisted settings file cannot be updated."""

    exit_code = ExitCode.CONFIG_WRITE_FAILED

    def __init__(self, path: str, reason: ConfigWriteReason, detail: Optional[str] = None):
        message = f"Cannot update {path}: {reason.value}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)
        self.path = path
        self.reason = reason


class ReadinessTimeoutError(InstallerError):
    """Raised only when readiness is required and the bounded wait ran out."""

    exit_code = ExitCode.TIMEOUT

    def __init__(self, description: str, attempts: int):
        super().__init__(f"{description} not ready after {attempts} attempt(s)")
        self.description = description
        self.attempts = attempts


class UserDeclinedError(InstallerError):
    """Raised when the operator answers no to a confirmation the run cannot continue without."""

    exit_code = ExitCode.USER_DECLINED


class CorruptedStateError(InstallerError):
    """Raised when the installation state still needs manual intervention."""

    exit_code = ExitCode.CORRUPTED_STATE


###################################################################################################
# interactive installer driver failures


class DriverError(InstallerError):
    """Base class for failures of the scripted bitwarden.sh session."""

    exit_code = ExitCode.INSTALLER_FAILED


class SpawnFailed(DriverError):
    def __init__(self, command: str, detail: str):
        super().__init__(f"Could not start '{command}': {detail}")
        self.command = command


class PromptTimeout(DriverError):
    """No expected output arrived before the active rule's deadline.

    ``rule_index`` equal to the number of rules means the wait for the final
    success message timed out.
    """

    exit_code = ExitCode.TIMEOUT

    def __init__(self, rule_index: int, description: str, timeout: float):
        super().__init__(f"Timed out after {timeout:g}s waiting for {description} (rule {rule_index})")
        self.rule_index = rule_index
        self.description = description
        self.timeout = timeout


class UnexpectedExit(DriverError):
    def __init__(self, rule_index: int, description: str, exit_status: Optional[int] = None):
        super().__init__(
            f"Installer exited (status {exit_status}) before answering {description} (rule {rule_index})"
        )
        self.rule_index = rule_index
        self.description = description
        self.exit_status = exit_status


class ArtifactMissing(DriverError):
    def __init__(self, artifact_path: str):
        super().__init__(f"Expected installation artifact {artifact_path} was not created")
        self.artifact_path = artifact_path


class ConcurrentRunError(InstallerError):
    """Raised when another installer run holds the host lock."""

    exit_code = ExitCode.ALREADY_RUNNING_ELSEWHERE

    def __init__(self, lock_path: str):
        super().__init__(f"Another installer run holds {lock_path}; wait for it to finish and re-run")
        self.lock_path = lock_path


class WorkloadStartError(InstallerError):
    """Raised when neither bitwarden.sh start nor docker compose up could start the containers."""

    exit_code = ExitCode.START_FAILED
