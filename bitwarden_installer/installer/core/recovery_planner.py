#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

from bitwarden_installer.installer.configs.constants.enums import InstallState, RecoveryAction

RECOVERY_TABLE = {
    InstallState.NOT_INSTALLED: RecoveryAction.FRESH_INSTALL,
    InstallState.INSTALLED_RUNNING: RecoveryAction.ALREADY_RUNNING,
    InstallState.INSTALLED_STOPPED: RecoveryAction.START_EXISTING,
    InstallState.DATA_INCOMPLETE: RecoveryAction.RESUME_INSTALL,
    InstallState.SCRIPT_MISSING: RecoveryAction.OFFER_CLEAN_REINSTALL,
    InstallState.CORRUPTED: RecoveryAction.OFFER_CLEAN_REINSTALL,
}

_unmapped = set(InstallState) - set(RECOVERY_TABLE)
if _unmapped:
    raise RuntimeError(f"No recovery action for {sorted(s.name for s in _unmapped)}")


def plan(state: InstallState) -> RecoveryAction:
    """Map an installation state to the action that moves it toward INSTALLED_RUNNING."""
    return RECOVERY_TABLE[state]
