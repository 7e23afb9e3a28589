#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

"""Drive the interactive ``bitwarden.sh install`` session without a human at the keyboard."""

import os
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import pexpect

from bitwarden_installer.bitwarden_utils import EscapeAnsi, mask_secrets
from bitwarden_installer.installer.configs.constants.constants import (
    DRIVER_EXIT_GRACE_SEC,
    DRIVER_TERMINAL_DIMENSIONS,
)
from bitwarden_installer.installer.utils.exceptions import (
    ArtifactMissing,
    DriverError,
    PromptTimeout,
    SpawnFailed,
    UnexpectedExit,
)
from bitwarden_installer.installer.utils.logger_utils import InstallerLogger


@dataclass
class DriverResult:
    success: bool
    error: Optional[DriverError] = None
    transcript: str = ""
    responses: List[str] = field(default_factory=list)


class _TranscriptCollector:
    """File-like sink for pexpect's logfile_read."""

    def __init__(self):
        self.chunks: List[str] = []

    def write(self, data):
        self.chunks.append(data)

    def flush(self):
        pass

    def text(self) -> str:
        return "".join(self.chunks)


class ProcessSession:
    """Owns one spawned child on its own pty; the child is always reaped on exit."""

    def __init__(self, command: List[str], cwd: Optional[str] = None, spawn=pexpect.spawn, env=None):
        self.command = list(command)
        self.cwd = cwd
        self.spawn = spawn
        self.env = env
        self.child = None
        self.transcript = _TranscriptCollector()
        self.exit_status: Optional[int] = None

    def __enter__(self):
        try:
            self.child = self.spawn(
                self.command[0],
                self.command[1:],
                cwd=self.cwd,
                env=self.env,
                encoding="utf-8",
                codec_errors="replace",
                timeout=None,
                dimensions=DRIVER_TERMINAL_DIMENSIONS,
            )
        except (pexpect.ExceptionPexpect, OSError) as e:
            raise SpawnFailed(" ".join(self.command), str(e)) from e
        self.child.logfile_read = self.transcript
        return self

    def __exit__(self, exc_type, exc_value, tb):
        self.close()
        return False

    def close(self):
        if self.child is None:
            return
        try:
            self.child.close(force=True)
        except pexpect.ExceptionPexpect as e:
            InstallerLogger.warning(f"Could not terminate {self.command[0]}: {e}")
        self.exit_status = self.child.exitstatus if self.child.exitstatus is not None else self.child.signalstatus
        self.child = None


class InteractiveInstallDriver:
    """Answers the installer's prompts in order, then checks for the completion artifact.

    The candidate patterns at any point are: optional rules from the cursor up
    to and including the next mandatory rule, progress rules, error
    signatures, the success pattern, EOF and TIMEOUT. Only a missed deadline
    or a premature exit aborts the loop; error signatures are logged.
    """

    def __init__(
        self,
        artifact_path: str,
        transcript_path: Optional[str] = None,
        cancel_requested: Optional[Callable[[], bool]] = None,
        spawn=pexpect.spawn,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.artifact_path = artifact_path
        self.transcript_path = transcript_path
        self.cancel_requested = cancel_requested
        self.spawn = spawn
        self.clock = clock

    def run(self, command: List[str], script, config, cwd: Optional[str] = None, env=None) -> DriverResult:
        secrets = config.secrets()
        responses: List[str] = []
        error: Optional[DriverError] = None
        session = ProcessSession(command, cwd=cwd, spawn=self.spawn, env=env)

        try:
            with session:
                self._converse(session, script, config, responses)
        except DriverError as e:
            error = e
        finally:
            transcript = mask_secrets(session.transcript.text(), secrets)
            self._write_transcript(transcript)

        if error is None:
            error = self._check_artifact()

        if error is not None:
            InstallerLogger.error(str(error))
            return DriverResult(False, error, transcript, responses)
        return DriverResult(True, None, transcript, responses)

    def _converse(self, session: ProcessSession, script, config, responses: List[str]):
        fields = config.template_fields()
        rules = script.rules
        cursor = 0
        active, deadline = self._activate(script, cursor)
        last_progress = None
        cancel_noted = False

        while True:
            if (not cancel_noted) and self.cancel_requested and self.cancel_requested():
                InstallerLogger.warning(
                    "Interrupt received; letting bitwarden.sh finish this step (interrupt again to abort)"
                )
                cancel_noted = True

            window = self._window(rules, cursor)
            patterns = [rules[i].pattern for i in window]
            progress_base = len(patterns)
            patterns += [r.pattern for r in script.progress_rules]
            error_base = len(patterns)
            patterns += list(script.error_signatures)
            error_end = len(patterns)
            success_index = len(patterns) if script.success_pattern else None
            if script.success_pattern:
                patterns.append(script.success_pattern)
            eof_index = len(patterns)
            patterns += [pexpect.EOF, pexpect.TIMEOUT]

            remaining = deadline - self.clock()
            if remaining <= 0:
                raise self._timeout(script, active)

            index = session.child.expect(patterns, timeout=remaining)

            if index < progress_base:
                rule_index = window[index]
                rule = rules[rule_index]
                rendered = rule.response.format_map(fields) if rule.response is not None else None
                if rendered is not None:
                    session.child.sendline(rendered)
                responses.append("********" if (rule.secret and rendered) else (rendered or ""))
                InstallerLogger.info(f"Answered {rule.description} prompt")
                cursor = rule_index + 1
                active, deadline = self._activate(script, cursor)

            elif index < error_base:
                progress = script.progress_rules[index - progress_base]
                if progress.description != last_progress:
                    InstallerLogger.info(f"Installation progress: {progress.description}...")
                    last_progress = progress.description

            elif index < error_end:
                matched = session.child.after if isinstance(session.child.after, str) else ""
                InstallerLogger.error(f"Installer reported: {EscapeAnsi(matched).strip()}")

            elif index == success_index:
                if self._mandatory_outstanding(rules, cursor) is not None:
                    InstallerLogger.warning("Installer reported completion before every prompt was answered")
                InstallerLogger.info("Installation complete!")
                session.child.expect([pexpect.EOF, pexpect.TIMEOUT], timeout=DRIVER_EXIT_GRACE_SEC)
                return

            elif index == eof_index:
                outstanding = self._mandatory_outstanding(rules, cursor)
                if outstanding is not None:
                    session.close()
                    raise UnexpectedExit(outstanding, rules[outstanding].description, session.exit_status)
                InstallerLogger.info("Installation process ended")
                return

            # TIMEOUT: the deadline check at the top of the loop decides

    def _window(self, rules, cursor: int) -> List[int]:
        """Rule indices that may match next: optional rules through the next mandatory one."""
        window = []
        for i in range(cursor, len(rules)):
            window.append(i)
            if not rules[i].optional:
                break
        return window

    def _mandatory_outstanding(self, rules, cursor: int) -> Optional[int]:
        for i in range(cursor, len(rules)):
            if not rules[i].optional:
                return i
        return None

    def _activate(self, script, cursor: int):
        """The rule whose deadline governs from this cursor, and that deadline."""
        active = self._mandatory_outstanding(script.rules, cursor)
        if active is None:
            return len(script.rules), self.clock() + script.success_timeout
        return active, self.clock() + script.rules[active].timeout

    def _timeout(self, script, active: int) -> PromptTimeout:
        if active >= len(script.rules):
            return PromptTimeout(active, "installation to complete", script.success_timeout)
        rule = script.rules[active]
        return PromptTimeout(active, f"the {rule.description} prompt", rule.timeout)

    def _check_artifact(self) -> Optional[DriverError]:
        if not os.path.isfile(self.artifact_path):
            return ArtifactMissing(self.artifact_path)
        if os.path.getsize(self.artifact_path) == 0:
            InstallerLogger.warning(f"{self.artifact_path} exists but is empty - installation may be incomplete")
        return None

    def _write_transcript(self, transcript: str):
        if not self.transcript_path:
            return
        try:
            with open(self.transcript_path, "w", encoding="utf-8") as f:
                f.write(transcript)
            InstallerLogger.info(f"Installer transcript written to {self.transcript_path}")
        except OSError as e:
            InstallerLogger.warning(f"Could not write installer transcript to {self.transcript_path}: {e}")
