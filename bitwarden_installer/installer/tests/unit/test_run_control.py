#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

import os
import shutil
import signal
import tempfile
import unittest

from bitwarden_installer.installer.core.run_control import CancellationToken, host_lock
from bitwarden_installer.installer.utils.exceptions import ConcurrentRunError
from bitwarden_installer.installer.utils.logger_utils import InstallerLogger


class TestHostLock(unittest.TestCase):
    def setUp(self):
        InstallerLogger.set_console_output(False)
        self.temp_dir = tempfile.mkdtemp()
        self.lock_path = os.path.join(self.temp_dir, "installer.lock")

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)
        InstallerLogger.set_console_output(True)

    def test_second_holder_is_refused(self):
        with host_lock(self.lock_path):
            with self.assertRaises(ConcurrentRunError):
                with host_lock(self.lock_path):
                    pass

    def test_lock_is_released_on_exit(self):
        with host_lock(self.lock_path):
            pass
        with host_lock(self.lock_path) as held:
            self.assertIsNotNone(held)
        self.assertTrue(os.path.exists(self.lock_path))

    def test_no_lock_file(self):
        with host_lock(None) as held:
            self.assertIsNone(held)


class TestCancellationToken(unittest.TestCase):
    def setUp(self):
        InstallerLogger.set_console_output(False)
        self.original = signal.getsignal(signal.SIGTERM)

    def tearDown(self):
        signal.signal(signal.SIGTERM, self.original)
        InstallerLogger.set_console_output(True)

    def test_first_signal_requests_cancellation(self):
        token = CancellationToken()
        token.install()
        try:
            self.assertFalse(token())
            os.kill(os.getpid(), signal.SIGTERM)
            self.assertTrue(token())
        finally:
            token.restore()
        self.assertEqual(signal.getsignal(signal.SIGTERM), self.original)

    def test_second_signal_aborts(self):
        token = CancellationToken()
        token.install()
        try:
            os.kill(os.getpid(), signal.SIGTERM)
            with self.assertRaises(KeyboardInterrupt):
                os.kill(os.getpid(), signal.SIGTERM)
        finally:
            token.restore()


if __name__ == "__main__":
    unittest.main()
