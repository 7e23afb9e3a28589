#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

"""UI abstraction layer for the Bitwarden installer."""

from .shared.installer_ui import InstallerUI
from .tui.tui_installer_ui import TUIInstallerUI

__all__ = ["InstallerUI", "TUIInstallerUI"]
