#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

"""Test framework infrastructure for the Bitwarden installer."""

import os
import shutil
import sys
import tempfile
import unittest
from typing import Any, Dict, List, Optional

# Add the project root directory to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..", "..", "..")))

from bitwarden_installer.bitwarden_common import UserInterfaceMode
from bitwarden_installer.installer.configs.constants.enums import ControlFlow, TlsMode
from bitwarden_installer.installer.core.install_options import BitwardenPaths, InstallOptions
from bitwarden_installer.installer.core.installation_config import InstallationConfig, SmtpSettings
from bitwarden_installer.installer.core.interactive_driver import DriverResult
from bitwarden_installer.installer.platforms.base import BaseInstaller
from bitwarden_installer.installer.utils.logger_utils import InstallerLogger


class MockUI:
    """Mock UI implementation for testing."""

    def __init__(self, responses: Dict[str, Any] = None):
        self.ui_mode = UserInterfaceMode.InteractionInput
        self.responses = responses or {}
        self.called_methods = []

    def ask_yes_no(self, prompt: str, default: bool = True) -> bool:
        self.called_methods.append(("ask_yes_no", prompt, default))
        return self.responses.get(prompt, default)

    def ask_string(self, prompt: str, default: str = "") -> Optional[str]:
        self.called_methods.append(("ask_string", prompt, default))
        return self.responses.get(prompt, default)

    def ask_password(self, prompt: str) -> Optional[str]:
        self.called_methods.append(("ask_password", prompt))
        return self.responses.get(prompt)

    def display_message(self, message: str):
        self.called_methods.append(("display_message", message))

    def display_error(self, message: str):
        self.called_methods.append(("display_error", message))

    def show_summary(self, title: str, items: Dict[str, str]):
        self.called_methods.append(("show_summary", title, dict(items)))

    def prompts(self, method: str) -> List[str]:
        return [call[1] for call in self.called_methods if call[0] == method]


class MockPlatform(BaseInstaller):
    """Mock platform installer recording every command and host operation.

    ``container_states`` is consumed one entry per ``docker ps --filter`` query
    (a list of running container names, or None for a failed query); once it
    is exhausted the last entry keeps being returned.
    """

    def __init__(self, ui: MockUI = None, control_flow: ControlFlow = ControlFlow.INSTALL):
        super().__init__(ui or MockUI(), debug=False, control_flow=control_flow)

        self.run_process_results = {}
        self.executed_commands: List[str] = []
        self.operations: List[str] = []
        self.container_states: List[Optional[List[str]]] = [[]]
        self.compose_available = True
        self.operation_results: Dict[str, bool] = {}

    def run_process(
        self,
        command,
        privileged=False,
        stdin=None,
        retry=0,
        retry_sleep_sec=5,
        stderr=True,
        cwd=None,
    ):
        cmd_str = " ".join(command) if isinstance(command, list) else command
        self.executed_commands.append(cmd_str)

        if cmd_str in self.run_process_results:
            return self.run_process_results[cmd_str]

        if cmd_str.startswith("docker ps --filter"):
            names = self.container_states.pop(0) if len(self.container_states) > 1 else self.container_states[0]
            return (1, ["Cannot connect to the Docker daemon"]) if names is None else (0, list(names))
        elif cmd_str in ("docker compose version", "docker-compose version"):
            return (0, ["Docker Compose version v2.24.0"]) if self.compose_available else (1, ["not found"])

        return (0, [])

    def set_command_result(self, command: str, return_code: int, output: list):
        self.run_process_results[command] = (return_code, output)

    def commands_matching(self, fragment: str) -> List[str]:
        return [c for c in self.executed_commands if fragment in c]

    def _record(self, operation: str) -> bool:
        self.operations.append(operation)
        return self.operation_results.get(operation, True)

    def check_os_release(self) -> bool:
        return self._record("check_os_release")

    def update_system(self) -> bool:
        return self._record("update_system")

    def install_docker(self) -> bool:
        return self._record("install_docker")

    def install_docker_compose(self) -> bool:
        result = self._record("install_docker_compose")
        if result:
            self.compose_available = True
        return result

    def fix_docker_socket(self) -> bool:
        return self._record("fix_docker_socket")

    def ensure_service_account(self, user: str) -> bool:
        return self._record("ensure_service_account")

    def prepare_install_dir(self, path: str, user: str) -> bool:
        os.makedirs(path, exist_ok=True)
        return self._record("prepare_install_dir")

    def remove_install_dir(self, path: str) -> bool:
        if self.operation_results.get("remove_install_dir", True) and not self.is_dry_run():
            shutil.rmtree(path, ignore_errors=True)
        return self._record("remove_install_dir")

    def configure_firewall(self, ports) -> bool:
        return self._record("configure_firewall")


class MockDriver:
    """Stands in for the interactive driver; a successful run lays down the installer output."""

    def __init__(self, paths: BitwardenPaths, error=None, env_content: str = "globalSettings__baseServiceUri__vault=https://bitwarden.example.com\n"):
        self.paths = paths
        self.error = error
        self.env_content = env_content
        self.calls = []

    def run(self, command, script, config, cwd=None, env=None):
        self.calls.append((list(command), script, config, cwd))
        if self.error is not None:
            return DriverResult(False, self.error, "transcript", [])
        os.makedirs(os.path.dirname(self.paths.compose_file), exist_ok=True)
        os.makedirs(os.path.dirname(self.paths.env_file), exist_ok=True)
        with open(self.paths.compose_file, "w") as f:
            f.write("services: {}\n")
        with open(self.paths.env_file, "w") as f:
            f.write(self.env_content)
        return DriverResult(True, None, "Installation complete", [])


class FakeSleep:
    def __init__(self):
        self.calls: List[float] = []

    def __call__(self, seconds: float):
        self.calls.append(seconds)


class BaseInstallerTest(unittest.TestCase):
    """Base test class with common setup for installer tests."""

    def setUp(self):
        InstallerLogger.set_console_output(False)
        self.temp_dir = tempfile.mkdtemp()
        self.install_dir = os.path.join(self.temp_dir, "bitwarden")
        self.paths = BitwardenPaths(install_dir=self.install_dir)
        self.mock_ui = MockUI()
        self.mock_platform = MockPlatform(self.mock_ui)

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)
        InstallerLogger.set_console_output(True)

    def create_test_options(self, **overrides) -> InstallOptions:
        values = dict(
            control_flow=ControlFlow.INSTALL,
            paths=self.paths,
            service_user="bitwarden",
            readiness_attempts=3,
            readiness_interval=0.5,
            readiness_url=None,
            lock_file=os.path.join(self.temp_dir, "installer.lock"),
        )
        values.update(overrides)
        return InstallOptions(**values)

    def create_test_config(self, smtp: bool = False, tls_mode: TlsMode = TlsMode.SELF_SIGNED) -> InstallationConfig:
        return InstallationConfig(
            domain="bitwarden.example.com",
            tls_mode=tls_mode,
            installation_id="11111111-2222-3333-4444-555555555555",
            installation_key="s3cr3tInstallKey",
            email="admin@example.com",
            smtp=(
                SmtpSettings(
                    host="smtp.example.com",
                    port=587,
                    ssl=True,
                    username="mailer",
                    password="m@ilpass",
                    admin_email="admin@example.com",
                )
                if smtp
                else None
            ),
        )

    def make_installed_tree(self, with_script: bool = True, with_data: bool = True):
        os.makedirs(self.install_dir, exist_ok=True)
        if with_script:
            with open(self.paths.script, "w") as f:
                f.write("#!/bin/sh\n")
        if with_data:
            os.makedirs(os.path.dirname(self.paths.compose_file), exist_ok=True)
            os.makedirs(os.path.dirname(self.paths.env_file), exist_ok=True)
            with open(self.paths.compose_file, "w") as f:
                f.write("services: {}\n")
            with open(self.paths.env_file, "w") as f:
                f.write("globalSettings__baseServiceUri__vault=https://bitwarden.example.com\n")
