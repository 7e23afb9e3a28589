#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

import unittest
from unittest.mock import MagicMock

import requests

from bitwarden_installer.installer.configs.constants.enums import ReadinessResult
from bitwarden_installer.installer.core.readiness import (
    ReadinessCheck,
    ReadinessWaiter,
    all_of,
    http_responds,
)
from bitwarden_installer.installer.utils.logger_utils import InstallerLogger


class _CountingPredicate:
    def __init__(self, results):
        self.results = list(results)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class TestReadinessWaiter(unittest.TestCase):
    def setUp(self):
        InstallerLogger.set_console_output(False)
        self.sleeps = []
        self.waiter = ReadinessWaiter(sleep=self.sleeps.append)

    def tearDown(self):
        InstallerLogger.set_console_output(True)

    def test_never_ready_evaluates_exactly_max_attempts(self):
        predicate = _CountingPredicate([False, False, False, True])
        result = self.waiter.wait(ReadinessCheck(predicate, interval=2.0, max_attempts=3))
        self.assertEqual(result, ReadinessResult.TIMEOUT)
        self.assertEqual(predicate.calls, 3)
        self.assertEqual(self.sleeps, [2.0, 2.0])

    def test_ready_on_second_attempt(self):
        predicate = _CountingPredicate([False, True])
        result = self.waiter.wait(ReadinessCheck(predicate, interval=1.0, max_attempts=5))
        self.assertEqual(result, ReadinessResult.READY)
        self.assertEqual(predicate.calls, 2)
        self.assertEqual(self.sleeps, [1.0])

    def test_ready_immediately_never_sleeps(self):
        result = self.waiter.wait(ReadinessCheck(lambda: True, interval=1.0, max_attempts=1))
        self.assertEqual(result, ReadinessResult.READY)
        self.assertEqual(self.sleeps, [])

    def test_predicate_error_counts_as_not_ready(self):
        predicate = _CountingPredicate([RuntimeError("boom"), True])
        result = self.waiter.wait(ReadinessCheck(predicate, interval=0, max_attempts=2))
        self.assertEqual(result, ReadinessResult.READY)

    def test_invalid_attempts_rejected(self):
        for attempts in (0, -1, 1.5, True):
            with self.assertRaises(ValueError):
                ReadinessCheck(lambda: True, interval=1.0, max_attempts=attempts)


class TestReadinessPredicates(unittest.TestCase):
    def setUp(self):
        InstallerLogger.set_console_output(False)

    def tearDown(self):
        InstallerLogger.set_console_output(True)

    def test_http_success_and_redirect_codes(self):
        session = MagicMock()
        for code, expected in ((200, True), (302, True), (502, False)):
            session.get.return_value = MagicMock(status_code=code)
            self.assertEqual(http_responds("https://localhost", session=session)(), expected, code)
        self.assertFalse(session.get.call_args.kwargs["verify"])

    def test_http_connection_error_is_not_ready(self):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("refused")
        self.assertFalse(http_responds("https://localhost", session=session)())

    def test_all_of_short_circuits(self):
        second = MagicMock(return_value=True)
        self.assertFalse(all_of(lambda: False, second)())
        second.assert_not_called()
        self.assertTrue(all_of(lambda: True, second)())


if __name__ == "__main__":
    unittest.main()
