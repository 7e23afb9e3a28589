#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

"""Operator interaction surface used by the orchestrator and configuration collection."""

from abc import ABC, abstractmethod
from typing import Dict, Optional

from bitwarden_installer.bitwarden_common import UserInterfaceMode

SUMMARY_WIDTH = 60


class InstallerUI(ABC):
    """Questions and messages the installer needs; nothing else about presentation leaks out.

    Implementations must return ``None`` from ``ask_string``/``ask_password``
    when no answer can be obtained, so callers can fall back to their own
    defaults or raise InvalidConfigurationError.
    """

    def __init__(self, ui_mode: UserInterfaceMode = UserInterfaceMode.InteractionInput):
        self.ui_mode = ui_mode

    @abstractmethod
    def ask_yes_no(self, message: str, default: bool = True) -> bool:
        """Confirmation gate; ``default`` is what an empty answer (or no operator) means."""

    @abstractmethod
    def ask_string(self, prompt: str, default: str = "") -> Optional[str]:
        pass

    @abstractmethod
    def ask_password(self, prompt: str) -> Optional[str]:
        """Like ask_string, without echoing the reply."""

    @abstractmethod
    def display_message(self, message: str) -> None:
        pass

    @abstractmethod
    def display_error(self, message: str) -> None:
        pass

    def show_summary(self, title: str, items: Dict[str, str]) -> None:
        rule = "=" * SUMMARY_WIDTH
        body = [f"{label:<30}: {value}" for label, value in items.items()]
        self.display_message("\n".join([rule, title, rule, *body, rule]))
