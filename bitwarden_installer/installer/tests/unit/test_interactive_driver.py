#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

"""Drive a scripted stand-in for bitwarden.sh through a real pty."""

import os
import shutil
import sys
import tempfile
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..", "..", "..")))

from bitwarden_installer.installer.configs.constants.enums import TlsMode
from bitwarden_installer.installer.core.install_script import build_install_script
from bitwarden_installer.installer.core.installation_config import InstallationConfig
from bitwarden_installer.installer.core.interactive_driver import InteractiveInstallDriver
from bitwarden_installer.installer.utils.exceptions import ArtifactMissing, PromptTimeout, UnexpectedExit
from bitwarden_installer.installer.utils.logger_utils import InstallerLogger

FIXTURE = os.path.join(os.path.dirname(os.path.abspath(__file__)), "fixtures", "fake_bitwarden_install.py")


class TestInteractiveInstallDriver(unittest.TestCase):
    def setUp(self):
        InstallerLogger.set_console_output(False)
        self.temp_dir = tempfile.mkdtemp()
        self.answers = os.path.join(self.temp_dir, "answers.txt")
        self.artifact = os.path.join(self.temp_dir, "docker-compose.yml")
        self.transcript = os.path.join(self.temp_dir, "install_log.txt")
        self.config = InstallationConfig(
            domain="bitwarden.example.com",
            tls_mode=TlsMode.SELF_SIGNED,
            installation_id="11111111-2222-3333-4444-555555555555",
            installation_key="s3cr3tInstallKey",
        )
        self.driver = InteractiveInstallDriver(self.artifact, transcript_path=self.transcript)

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)
        InstallerLogger.set_console_output(True)

    def _script(self, prompt_timeout=15):
        return build_install_script(
            self.config, prompt_timeout=prompt_timeout, first_prompt_timeout=15, completion_timeout=15
        )

    def _answers(self):
        with open(self.answers) as f:
            return f.read().splitlines()

    def test_answers_every_prompt_in_order(self):
        result = self.driver.run([sys.executable, FIXTURE, self.answers, self.artifact], self._script(), self.config)

        self.assertTrue(result.success, result.error)
        self.assertIsNone(result.error)
        self.assertEqual(
            self._answers(),
            [
                "bitwarden.example.com",
                "n",
                "vault",
                "11111111-2222-3333-4444-555555555555",
                "s3cr3tInstallKey",
                "US",
                "n",
                "y",
            ],
        )
        self.assertIn("********", result.responses)
        self.assertNotIn("s3cr3tInstallKey", result.responses)

    def test_lets_encrypt_answers_the_email_prompt(self):
        self.config = InstallationConfig(
            domain="bitwarden.example.com",
            tls_mode=TlsMode.LETS_ENCRYPT,
            installation_id="11111111-2222-3333-4444-555555555555",
            installation_key="s3cr3tInstallKey",
            email="admin@example.com",
        )
        result = self.driver.run([sys.executable, FIXTURE, self.answers, self.artifact], self._script(), self.config)

        self.assertTrue(result.success, result.error)
        self.assertEqual(
            self._answers(),
            [
                "bitwarden.example.com",
                "y",
                "admin@example.com",
                "vault",
                "11111111-2222-3333-4444-555555555555",
                "s3cr3tInstallKey",
                "US",
            ],
        )

    def test_transcript_is_written_with_secrets_masked(self):

        result = self.driver.run([sys.executable, FIXTURE, self.answers, self.artifact], self._script(), self.config)

        self.assertTrue(result.success, result.error)
        self.assertNotIn("s3cr3tInstallKey", result.transcript)
        with open(self.transcript) as f:
            written = f.read()
        self.assertIn("Installation complete", written)
        self.assertNotIn("s3cr3tInstallKey", written)

    def test_withheld_prompt_times_out_on_that_rule(self):
        script = self._script(prompt_timeout=1)
        result = self.driver.run(
            [sys.executable, FIXTURE, self.answers, self.artifact, "hang-at-id"], script, self.config
        )

        self.assertFalse(result.success)
        self.assertIsInstance(result.error, PromptTimeout)
        self.assertEqual(result.error.rule_index, script.index_of("installation id"))
        self.assertEqual(self._answers(), ["bitwarden.example.com", "n", "vault"])

    def test_early_exit_reports_outstanding_rule(self):
        script = self._script()
        result = self.driver.run(
            [sys.executable, FIXTURE, self.answers, self.artifact, "exit-at-id"], script, self.config
        )

        self.assertFalse(result.success)
        self.assertIsInstance(result.error, UnexpectedExit)
        self.assertEqual(result.error.rule_index, script.index_of("installation id"))

    def test_missing_artifact_fails_completed_session(self):
        result = self.driver.run([sys.executable, FIXTURE, self.answers, ""], self._script(), self.config)

        self.assertFalse(result.success)
        self.assertIsInstance(result.error, ArtifactMissing)
        self.assertEqual(result.error.artifact_path, self.artifact)


if __name__ == "__main__":
    unittest.main()
