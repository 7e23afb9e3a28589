#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

"""Single-run host lock and SIGINT/SIGTERM handling for the orchestrator."""

import contextlib
import fcntl
import os
import signal
from typing import Optional

from bitwarden_installer.installer.utils.exceptions import ConcurrentRunError
from bitwarden_installer.installer.utils.logger_utils import InstallerLogger


@contextlib.contextmanager
def host_lock(lock_filename: Optional[str]):
    """Hold an exclusive advisory lock for the duration of the run.

    The lock file itself is left in place; only the flock matters.
    """
    if not lock_filename:
        yield None
        return

    try:
        os.makedirs(os.path.dirname(lock_filename) or ".", exist_ok=True)
        lock_file = open(lock_filename, 'a')
    except OSError as e:
        InstallerLogger.warning(f"Could not open lock file {lock_filename} ({e}); continuing without it")
        yield None
        return

    with lock_file:
        try:
            fcntl.flock(lock_file, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError as e:
            raise ConcurrentRunError(lock_filename) from e
        try:
            yield lock_file
        finally:
            fcntl.flock(lock_file, fcntl.LOCK_UN)


class CancellationToken:
    """Records SIGINT/SIGTERM so the orchestrator can stop between steps.

    The first signal only sets ``requested``. A second signal restores the
    previous handlers and raises KeyboardInterrupt in the interrupted frame.
    """

    SIGNALS = (signal.SIGINT, signal.SIGTERM)

    def __init__(self):
        self.requested = False
        self._previous = {}

    def __call__(self) -> bool:
        return self.requested

    def install(self):
        if self._previous:
            return
        for signum in self.SIGNALS:
            self._previous[signum] = signal.signal(signum, self._handle)

    def restore(self):
        for signum, handler in self._previous.items():
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)
        self._previous = {}

    def _handle(self, signum, frame):
        if self.requested:
            self.restore()
            raise KeyboardInterrupt()
        self.requested = True
        InstallerLogger.warning(
            f"Received {signal.Signals(signum).name}; stopping after the current step (send again to abort now)"
        )
