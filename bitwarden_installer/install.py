#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

"""
Bitwarden self-host installer.

Prepares an Ubuntu host (Docker, Docker Compose, a dedicated service account
and firewall), runs the interactive bitwarden.sh installer unattended, and
recovers from partial installations left by earlier runs. Running it again is
always safe: the state of the host is inspected first and only the missing
steps are performed.
"""

import argparse
import os
import sys

from bitwarden_installer.bitwarden_common import DialogAvailable, DialogInit, UserInterfaceMode
from bitwarden_installer.bitwarden_constants import PresentationMode
from bitwarden_installer.bitwarden_utils import mask_secrets
from bitwarden_installer.installer.args.basic_args import add_basic_args
from bitwarden_installer.installer.args.bitwarden_args import add_bitwarden_args
from bitwarden_installer.installer.args.host_args import add_host_args
from bitwarden_installer.installer.args.presentation_args import add_presentation_args
from bitwarden_installer.installer.configs.constants.enums import ControlFlow, ExitCode, InstallerResult
from bitwarden_installer.installer.core.install_options import BitwardenPaths, InstallOptions
from bitwarden_installer.installer.core.installation_config import build_installation_config
from bitwarden_installer.installer.core.interactive_driver import InteractiveInstallDriver
from bitwarden_installer.installer.core.orchestrator import Orchestrator
from bitwarden_installer.installer.core.readiness import ReadinessWaiter
from bitwarden_installer.installer.core.run_control import CancellationToken
from bitwarden_installer.installer.core.status_probe import StatusProbe
from bitwarden_installer.installer.platforms import get_platform_installer
from bitwarden_installer.installer.ui.tui.tui_installer_ui import TUIInstallerUI
from bitwarden_installer.installer.utils.env_file_utils import EnvironmentConfigurer
from bitwarden_installer.installer.utils.logger_utils import InstallerLogger


def build_arg_parser(parser: argparse.ArgumentParser) -> None:
    """Add arguments specific to the installer itself"""
    add_basic_args(parser)
    add_presentation_args(parser)
    add_host_args(parser)
    add_bitwarden_args(parser)


def determine_presentation_mode(parsed_args: argparse.Namespace) -> PresentationMode:
    """Determine which interface mode to use based on args and environment."""

    def check_for_python_dialog():
        if not (sys.stdin.isatty() and sys.stdout.isatty()):
            return None
        DialogInit()
        return PresentationMode.MODE_DUI if DialogAvailable() else None

    if parsed_args.non_interactive:
        return PresentationMode.MODE_SILENT
    if parsed_args.tui:
        return PresentationMode.MODE_TUI
    if parsed_args.dui:
        if dui_mode := check_for_python_dialog():
            return dui_mode
        InstallerLogger.warning("python dialogs is not available; falling back to text prompts")
    return PresentationMode.MODE_TUI


def create_ui_implementation(presentation_mode: PresentationMode, assume_yes: bool = False) -> TUIInstallerUI:
    if presentation_mode == PresentationMode.MODE_DUI:
        return TUIInstallerUI(UserInterfaceMode.InteractionDialog, assume_yes=assume_yes)
    elif presentation_mode == PresentationMode.MODE_SILENT:
        return TUIInstallerUI(UserInterfaceMode.InteractionInput, non_interactive=True, assume_yes=assume_yes)
    else:
        return TUIInstallerUI(UserInterfaceMode.InteractionInput, assume_yes=assume_yes)


# command-line values that must not reach the console or the log file
SECRET_ARGUMENT_DESTS = ("installationKey", "smtpPassword")


def loggable_arguments(argv, parsed_args: argparse.Namespace) -> str:
    return mask_secrets(" ".join(argv), [getattr(parsed_args, dest, None) for dest in SECRET_ARGUMENT_DESTS])


def build_install_options(parsed_args: argparse.Namespace, control_flow: ControlFlow) -> InstallOptions:
    return InstallOptions(
        control_flow=control_flow,
        paths=BitwardenPaths(install_dir=os.path.abspath(parsed_args.installDir)),
        service_user=parsed_args.serviceUser,
        non_interactive=parsed_args.non_interactive,
        assume_yes=parsed_args.assumeYes,
        skip_firewall=parsed_args.skipFirewall,
        skip_os_check=parsed_args.skipOsCheck,
        configure_smtp=parsed_args.configureSmtp,
        readiness_attempts=parsed_args.readinessAttempts,
        readiness_interval=parsed_args.readinessInterval,
        readiness_url=parsed_args.readinessUrl or None,
        strict_readiness=parsed_args.strictReadiness,
        lock_file=parsed_args.lockFile or None,
    )


def main():
    try:
        parser = argparse.ArgumentParser(description="Bitwarden Self-Host Installer", conflict_handler="resolve")
        build_arg_parser(parser)
    except Exception as e:
        InstallerLogger.error(f"Failed to build installer specific argument parser: {e}")
        sys.exit(ExitCode.FAILURE)

    parsed_args = parser.parse_args()

    if parsed_args.status:
        control_flow = ControlFlow.STATUS
    elif parsed_args.dryRun:
        control_flow = ControlFlow.DRYRUN
    else:
        control_flow = ControlFlow.INSTALL

    if parsed_args.quiet:
        InstallerLogger.set_console_output(False)
    if parsed_args.debug:
        InstallerLogger.set_debug_enabled(True)
    if parsed_args.noColor:
        InstallerLogger.set_color_enabled(False)

    if parsed_args.logToFile is not None:
        if parsed_args.logToFile == "":
            log_filename = InstallerLogger.generate_timestamped_filename()
            InstallerLogger.info(f"No log filename specified, using: {log_filename}")
        else:
            log_filename = parsed_args.logToFile
        InstallerLogger.set_log_file(log_filename)
        InstallerLogger.info(f"Logging to file: {log_filename}")

    InstallerLogger.debug(f"Arguments: {loggable_arguments(sys.argv[1:], parsed_args)}")

    try:
        presentation_mode = determine_presentation_mode(parsed_args)
        ui_impl = create_ui_implementation(presentation_mode, parsed_args.assumeYes)
        InstallerLogger.debug(f"Using {presentation_mode.name}")
    except Exception as e:
        InstallerLogger.error(f"Failed to create UI implementation: {e}")
        sys.exit(ExitCode.FAILURE)

    try:
        options = build_install_options(parsed_args, control_flow)
        platform = get_platform_installer(ui_impl, parsed_args.debug, control_flow=control_flow)
    except NotImplementedError as e:
        InstallerLogger.error(str(e))
        sys.exit(ExitCode.DEPENDENCY_MISSING)

    probe = StatusProbe(options.paths, platform, options.service_user)

    if control_flow.is_status_only():
        InstallerLogger.start("Checking Bitwarden installation")
        for line in probe.describe():
            InstallerLogger.info(line)
        InstallerLogger.end("Checking Bitwarden installation", InstallerResult.SUCCESS)
        sys.exit(ExitCode.SUCCESS)

    cancellation = CancellationToken()
    orchestrator = Orchestrator(
        options=options,
        platform=platform,
        ui=ui_impl,
        probe=probe,
        driver=InteractiveInstallDriver(
            artifact_path=options.paths.compose_file,
            transcript_path=options.paths.install_log,
            cancel_requested=cancellation,
        ),
        configurer=EnvironmentConfigurer(),
        waiter=ReadinessWaiter(),
        config_provider=lambda: build_installation_config(
            parsed_args,
            ui_impl,
            non_interactive=options.non_interactive,
            configure_smtp=options.configure_smtp,
        ),
        cancellation=cancellation,
    )

    exit_code = orchestrator.run()
    if exit_code == ExitCode.SUCCESS:
        InstallerLogger.info("Bitwarden installation completed successfully!")
    else:
        InstallerLogger.error(f"Installer finished with {exit_code.name} ({int(exit_code)})")
    sys.exit(int(exit_code))


if __name__ == "__main__":
    main()
