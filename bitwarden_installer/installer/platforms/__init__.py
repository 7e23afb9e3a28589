#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

"""Platform-specific host provisioning for the Bitwarden installer."""

from bitwarden_installer.bitwarden_common import get_platform_name

from .base import BaseInstaller
from .linux import LinuxInstaller


def get_platform_installer(ui, debug: bool = False, control_flow=None) -> BaseInstaller:
    """Determine the current host platform and return the matching installer."""

    platform_name = get_platform_name()

    if platform_name == "linux":
        return LinuxInstaller(ui, debug, control_flow=control_flow)
    else:
        raise NotImplementedError(
            f"Platform '{platform_name}' is not supported. Bitwarden self-host installation requires Ubuntu Linux."
        )


__all__ = [
    "BaseInstaller",
    "LinuxInstaller",
    "get_platform_installer",
]
