#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

"""Terminal (and dialog) UI implementation for the installer."""

from typing import Optional

from bitwarden_installer.bitwarden_common import (
    AskForPassword,
    AskForString,
    DialogCanceledException,
    DisplayMessage,
    UserInputDefaultsBehavior,
    UserInterfaceMode,
    YesOrNo,
)
from bitwarden_installer.installer.ui.shared.installer_ui import InstallerUI
from bitwarden_installer.installer.utils.logger_utils import InstallerLogger


class TUIInstallerUI(InstallerUI):
    """Prompts through bitwarden_common, as text or as dialog boxes.

    With ``non_interactive`` every question takes its default without prompting;
    with ``assume_yes`` yes/no questions are answered yes. Cancelling a dialog
    counts as "no" (or no answer).
    """

    def __init__(
        self,
        ui_mode: UserInterfaceMode = UserInterfaceMode.InteractionInput,
        non_interactive: bool = False,
        assume_yes: bool = False,
    ):
        super().__init__(ui_mode)
        self.non_interactive = non_interactive
        self.assume_yes = assume_yes

    def _default_behavior(self) -> UserInputDefaultsBehavior:
        if self.non_interactive:
            return UserInputDefaultsBehavior.DefaultsAccept | UserInputDefaultsBehavior.DefaultsNonInteractive
        return UserInputDefaultsBehavior.DefaultsPrompt | UserInputDefaultsBehavior.DefaultsAccept

    def ask_yes_no(self, message: str, default: bool = True) -> bool:
        if self.assume_yes:
            InstallerLogger.info(f"{message} yes (--yes)")
            return True
        if self.non_interactive:
            InstallerLogger.info(f"{message} {'yes' if default else 'no'} (non-interactive)")
            return default
        try:
            return YesOrNo(message, default=default, defaultBehavior=self._default_behavior(), uiMode=self.ui_mode)
        except DialogCanceledException:
            return False

    def ask_string(self, prompt: str, default: str = "") -> Optional[str]:
        if self.non_interactive:
            return default or None
        try:
            reply = AskForString(
                prompt, default=default or None, defaultBehavior=self._default_behavior(), uiMode=self.ui_mode
            )
        except DialogCanceledException:
            return None
        return reply or None

    def ask_password(self, prompt: str) -> Optional[str]:
        if self.non_interactive:
            return None
        try:
            return AskForPassword(prompt, uiMode=self.ui_mode) or None
        except DialogCanceledException:
            return None

    def display_message(self, message: str) -> None:
        if self.non_interactive:
            for line in str(message).splitlines():
                InstallerLogger.info(line)
            return
        try:
            DisplayMessage(message, defaultBehavior=self._default_behavior(), uiMode=self.ui_mode)
        except DialogCanceledException:
            pass

    def display_error(self, message: str) -> None:
        InstallerLogger.error(message)
