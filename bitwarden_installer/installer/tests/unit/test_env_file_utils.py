#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

"""Convergent KEY=value updates to global.override.env."""

import glob
import os
import shutil
import stat
import tempfile
import unittest
from datetime import datetime

from bitwarden_installer.installer.configs.constants.enums import ConfigWriteReason
from bitwarden_installer.installer.utils.env_file_utils import EnvironmentConfigurer, update_env_lines
from bitwarden_installer.installer.utils.exceptions import ConfigWriteError
from bitwarden_installer.installer.utils.logger_utils import InstallerLogger


class TestUpdateEnvLines(unittest.TestCase):
    def test_replaces_existing_and_appends_missing(self):
        lines, changed = update_env_lines(["A=1\n", "B=2\n"], {"B": "3", "C": "4"})
        self.assertEqual(lines, ["A=1\n", "B=3\n", "C=4\n"])
        self.assertEqual(changed, ["B", "C"])

    def test_last_duplicate_wins(self):
        lines, changed = update_env_lines(["A=1\n", "# comment\n", "A=2\n"], {"A": "9"})
        self.assertEqual(lines, ["A=1\n", "# comment\n", "A=9\n"])
        self.assertEqual(changed, ["A"])

    def test_unchanged_value_reports_nothing(self):
        lines, changed = update_env_lines(["A=1\n"], {"A": "1"})
        self.assertEqual(lines, ["A=1\n"])
        self.assertEqual(changed, [])

    def test_missing_trailing_newline_is_repaired_before_append(self):
        lines, _ = update_env_lines(["A=1"], {"B": "2"})
        self.assertEqual("".join(lines), "A=1\nB=2\n")

    def test_multiline_value_rejected(self):
        with self.assertRaises(ValueError):
            update_env_lines([], {"A": "1\n2"})


class TestEnvironmentConfigurer(unittest.TestCase):
    def setUp(self):
        InstallerLogger.set_console_output(False)
        self.temp_dir = tempfile.mkdtemp()
        self.env_file = os.path.join(self.temp_dir, "global.override.env")
        with open(self.env_file, "w") as f:
            f.write("globalSettings__mail__smtp__host=old.example.com\nadminSettings__admins=\n")
        os.chmod(self.env_file, 0o600)
        self.configurer = EnvironmentConfigurer(clock=lambda: datetime(2025, 1, 2, 3, 4, 5))

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)
        InstallerLogger.set_console_output(True)

    def _read(self):
        with open(self.env_file) as f:
            return f.read()

    def _backups(self):
        return sorted(glob.glob(self.env_file + ".backup.*"))

    def test_apply_updates_and_backs_up_once(self):
        updates = {"globalSettings__mail__smtp__host": "smtp.example.com", "adminSettings__admins": "a@example.com"}
        result = self.configurer.apply(self.env_file, updates)

        self.assertTrue(result.changed)
        self.assertEqual(result.backup_path, self.env_file + ".backup.20250102_030405")
        self.assertEqual(
            self._read(), "globalSettings__mail__smtp__host=smtp.example.com\nadminSettings__admins=a@example.com\n"
        )
        self.assertEqual(self._backups(), [result.backup_path])
        with open(result.backup_path) as f:
            self.assertIn("old.example.com", f.read())

    def test_apply_converges(self):
        updates = {"globalSettings__mail__smtp__host": "smtp.example.com"}
        self.configurer.apply(self.env_file, updates)
        content = self._read()

        second = self.configurer.apply(self.env_file, updates)

        self.assertFalse(second.changed)
        self.assertIsNone(second.backup_path)
        self.assertEqual(self._read(), content)
        self.assertEqual(len(self._backups()), 1)

    def test_backup_name_collision_gets_suffix(self):
        self.configurer.apply(self.env_file, {"A": "1"})
        result = self.configurer.apply(self.env_file, {"A": "2"})
        self.assertEqual(result.backup_path, self.env_file + ".backup.20250102_030405.1")

    def test_permissions_are_preserved(self):
        self.configurer.apply(self.env_file, {"A": "1"})
        self.assertEqual(stat.S_IMODE(os.stat(self.env_file).st_mode), 0o600)

    def test_missing_file_is_not_created(self):
        missing = os.path.join(self.temp_dir, "nope.env")
        with self.assertRaises(ConfigWriteError) as ctx:
            self.configurer.apply(missing, {"A": "1"})
        self.assertEqual(ctx.exception.reason, ConfigWriteReason.NOT_FOUND)
        self.assertFalse(os.path.exists(missing))

    def test_multiline_value_is_a_write_error_and_file_untouched(self):
        before = self._read()
        with self.assertRaises(ConfigWriteError) as ctx:
            self.configurer.apply(self.env_file, {"globalSettings__mail__smtp__password": "pa\nss"})
        self.assertEqual(ctx.exception.reason, ConfigWriteReason.INVALID_VALUE)
        self.assertEqual(self._read(), before)
        self.assertEqual(self._backups(), [])

    def test_current_values(self):

        values = EnvironmentConfigurer.current_values(self.env_file)
        self.assertEqual(values["globalSettings__mail__smtp__host"], "old.example.com")
        self.assertEqual(EnvironmentConfigurer.current_values(os.path.join(self.temp_dir, "nope.env")), {})


if __name__ == "__main__":
    unittest.main()
