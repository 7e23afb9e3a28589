#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

"""Unit tests for shared installer actions."""

import os
import sys
import unittest
from unittest.mock import patch

# Add the project root directory to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..", "..", "..")))

from bitwarden_installer.installer.actions import shared as shared_actions
from bitwarden_installer.installer.configs.constants.enums import InstallerResult
from bitwarden_installer.installer.tests.mock.test_framework import BaseInstallerTest
from bitwarden_installer.installer.utils.exceptions import MissingDependencyError


class TestDockerAccess(BaseInstallerTest):
    def test_access_ok(self):
        shared_actions.ensure_docker_access(self.mock_platform, "bitwarden")
        self.assertNotIn("fix_docker_socket", self.mock_platform.operations)

    def test_socket_repaired_once(self):
        results = [(1, ["permission denied"]), (0, [])]
        with patch.object(self.mock_platform, "run_as_user", side_effect=lambda *a, **k: results.pop(0)):
            shared_actions.ensure_docker_access(self.mock_platform, "bitwarden")
        self.assertEqual(self.mock_platform.operations, ["fix_docker_socket"])

    def test_still_denied_after_repair(self):
        self.mock_platform.set_command_result("sudo -u bitwarden -- docker ps", 1, ["permission denied"])
        with self.assertRaises(MissingDependencyError):
            shared_actions.ensure_docker_access(self.mock_platform, "bitwarden")
        self.assertEqual(self.mock_platform.operations, ["fix_docker_socket"])


class TestWorkload(BaseInstallerTest):
    def test_start_uses_installer_script(self):
        self.make_installed_tree()
        result = shared_actions.start_workload(self.paths, self.mock_platform, "bitwarden")
        self.assertEqual(result, InstallerResult.SUCCESS)
        self.assertEqual(
            self.mock_platform.executed_commands, [f"sudo -u bitwarden -- {self.paths.script} start"]
        )

    def test_start_falls_back_to_compose(self):
        self.make_installed_tree()
        self.mock_platform.set_command_result(f"sudo -u bitwarden -- {self.paths.script} start", 1, ["boom"])
        result = shared_actions.start_workload(
            self.paths, self.mock_platform, "bitwarden", compose_cmd=["docker-compose"]
        )
        self.assertEqual(result, InstallerResult.SUCCESS)
        self.assertEqual(self.mock_platform.executed_commands[-1], "sudo -u bitwarden -- docker-compose up -d")

    def test_start_without_files_fails(self):
        result = shared_actions.start_workload(self.paths, self.mock_platform, "bitwarden")
        self.assertEqual(result, InstallerResult.FAILURE)

    def test_running_container_names(self):
        self.mock_platform.container_states = [["bitwarden-nginx", "bitwarden-mssql"]]
        self.assertEqual(
            shared_actions.running_container_names(self.mock_platform), ["bitwarden-nginx", "bitwarden-mssql"]
        )
        self.mock_platform.container_states = [None]
        self.assertIsNone(shared_actions.running_container_names(self.mock_platform))

    def test_clean_installation_stops_and_removes(self):
        self.make_installed_tree()
        self.mock_platform.container_states = [["bitwarden-nginx"]]
        self.assertTrue(shared_actions.clean_installation(self.paths, self.mock_platform, "bitwarden"))
        self.assertIn(f"sudo -u bitwarden -- {self.paths.script} stop", self.mock_platform.executed_commands)
        self.assertFalse(os.path.exists(self.install_dir))
        self.assertNotIn("ensure_service_account", self.mock_platform.operations)

    def test_verify_required_files(self):
        self.make_installed_tree(with_data=False)
        present, missing = shared_actions.verify_required_files(self.paths)
        self.assertEqual(present, [self.paths.script])
        self.assertEqual(missing, [self.paths.compose_file, self.paths.env_file])

    def test_access_url_from_config_yml(self):
        self.make_installed_tree()
        with open(self.paths.config_yml, "w") as f:
            f.write("url: https://vault.example.com:8443\n")
        self.assertEqual(shared_actions.configured_access_url(self.paths, "ignored.example.com"), "https://vault.example.com:8443")

    def test_access_url_falls_back_to_domain(self):
        self.assertEqual(shared_actions.configured_access_url(self.paths, "vault.example.com"), "https://vault.example.com")
        self.assertIsNone(shared_actions.configured_access_url(self.paths))


class TestDownloadScript(BaseInstallerTest):
    def test_present_script_not_downloaded(self):
        self.make_installed_tree(with_data=False)
        with patch.object(shared_actions, "DownloadToFile") as download:
            result = shared_actions.download_installer_script(self.paths, self.mock_platform, "bitwarden")
        self.assertEqual(result, InstallerResult.SKIPPED)
        download.assert_not_called()

    def test_failed_download(self):
        os.makedirs(self.install_dir)
        with patch.object(shared_actions, "DownloadToFile", return_value=False):
            result = shared_actions.download_installer_script(self.paths, self.mock_platform, "bitwarden")
        self.assertEqual(result, InstallerResult.FAILURE)


if __name__ == "__main__":
    unittest.main()
