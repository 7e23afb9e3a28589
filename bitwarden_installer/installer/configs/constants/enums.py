#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.


from enum import Enum, IntEnum, auto


# Used primarily for getting status from discrete steps during the installer and subsequently logging
class InstallerResult(Enum):
    """Return status for an installation step."""

    SUCCESS = auto()
    FAILURE = auto()
    SKIPPED = auto()


# top-level control flow for the installer
class ControlFlow(Enum):
    """High-level control over what the installer should do.

    - DRYRUN: log intended actions; make no changes (no file writes, no installs)
    - INSTALL: perform installation, recovery and configuration steps
    - STATUS: report the detected installation state and exit
    """

    DRYRUN = auto()
    INSTALL = auto()
    STATUS = auto()

    def is_dry_run(self) -> bool:
        return self is ControlFlow.DRYRUN

    def is_status_only(self) -> bool:
        return self is ControlFlow.STATUS

    # logging helpers
    def log_prefix(self) -> str:
        """prefix to use for 'would do' messages in dry-run"""
        return "Dry run: " if self is ControlFlow.DRYRUN else ""

    def would(self, action: str) -> str:
        """formats an action string appropriately for the current mode"""
        return ("Dry run: would " + action) if self is ControlFlow.DRYRUN else action


#####################################################
# Installation state machine
#####################################################


class InstallState(Enum):
    """Point-in-time condition of the host with respect to the Bitwarden installation.

    Always derived from the filesystem and process table, never stored.
    """

    NOT_INSTALLED = "not installed"
    SCRIPT_MISSING = "installer script missing"
    DATA_INCOMPLETE = "data directory incomplete"
    INSTALLED_STOPPED = "installed, containers stopped"
    INSTALLED_RUNNING = "installed and running"
    CORRUPTED = "corrupted, needs manual intervention"


class RecoveryAction(Enum):
    FRESH_INSTALL = "fresh install"
    START_EXISTING = "start existing installation"
    RESUME_INSTALL = "resume installation"
    OFFER_CLEAN_REINSTALL = "offer clean reinstall"
    ALREADY_RUNNING = "already running"


class ReadinessResult(Enum):
    READY = auto()
    TIMEOUT = auto()


#####################################################
# Bitwarden installation options
#####################################################


class TlsMode(Enum):
    LETS_ENCRYPT = "letsencrypt"
    SELF_SIGNED = "self-signed"
    NONE = "none"


class Region(Enum):
    US = "US"
    EU = "EU"


class ConfigWriteReason(Enum):
    NOT_FOUND = "not found"
    NOT_WRITABLE = "not writable"
    IO_ERROR = "I/O error"
    INVALID_VALUE = "invalid value"


#####################################################
# Process exit codes
#####################################################


class ExitCode(IntEnum):
    SUCCESS = 0
    FAILURE = 1
    USER_DECLINED = 2
    DEPENDENCY_MISSING = 3
    TIMEOUT = 4
    CORRUPTED_STATE = 5
    PERMISSION_DENIED = 6
    CONFIG_WRITE_FAILED = 7
    INSTALLER_FAILED = 8
    INVALID_CONFIGURATION = 9
    ALREADY_RUNNING_ELSEWHERE = 10
    START_FAILED = 11
    INTERRUPTED = 130
