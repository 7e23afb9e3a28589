#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

import getpass
import json
import os
import shutil
import sys

from collections import namedtuple
from enum import IntFlag, auto
from pathlib import Path
from typing import Optional

import distro
import requests
from ruamel.yaml import YAML

from bitwarden_installer.bitwarden_constants import (
    PLATFORM_LINUX_UBUNTU,
    SUPPORTED_UBUNTU_RELEASES,
    SettingsFileFormat,
)
from bitwarden_installer.bitwarden_utils import (
    eprint,
    sizeof_fmt,
    str2bool,
    temporary_filename,
)

Dialog = None
MainDialog = None


###################################################################################################
# pythondialog is an optional extra; without it only plain input prompts are offered
def DialogInit():
    global Dialog
    global MainDialog
    try:
        if not Dialog:
            from dialog import Dialog

        if not MainDialog:
            MainDialog = Dialog(dialog='dialog', autowidgetsize=True)
    except ImportError:
        Dialog = None
        MainDialog = None


def DialogAvailable() -> bool:
    return MainDialog is not None


def _dialog_box(text) -> dict:
    lines = str(text).splitlines() or [""]
    return {
        'height': min(30, 6 + len(lines)),
        'width': min(140, max(50, max(len(line) for line in lines) + 4)),
    }


class UserInputDefaultsBehavior(IntFlag):
    DefaultsPrompt = auto()
    DefaultsAccept = auto()
    DefaultsNonInteractive = auto()


class UserInterfaceMode(IntFlag):
    InteractionDialog = auto()
    InteractionInput = auto()


class DialogCanceledException(Exception):
    pass


def _silent(defaultBehavior) -> bool:
    return bool(
        (defaultBehavior & UserInputDefaultsBehavior.DefaultsAccept)
        and (defaultBehavior & UserInputDefaultsBehavior.DefaultsNonInteractive)
    )


def _use_dialog(uiMode) -> bool:
    return bool(uiMode & UserInterfaceMode.InteractionDialog) and (MainDialog is not None)


###################################################################################################
# get interactive user response to Y/N question
def YesOrNo(
    question,
    default=None,
    defaultBehavior=UserInputDefaultsBehavior.DefaultsPrompt,
    uiMode=UserInterfaceMode.InteractionDialog | UserInterfaceMode.InteractionInput,
):
    defaultYes = (default is not None) and str2bool(default)

    if (default is not None) and _silent(defaultBehavior):
        return defaultYes

    if _use_dialog(uiMode):
        code = MainDialog.yesno(str(question), defaultno=not defaultYes, **_dialog_box(question))
        if code == Dialog.ESC:
            raise DialogCanceledException(question)
        return code == Dialog.OK

    if not (uiMode & UserInterfaceMode.InteractionInput):
        raise RuntimeError("No user interfaces available")

    hint = 'y / n'
    if (default is not None) and (defaultBehavior & UserInputDefaultsBehavior.DefaultsPrompt):
        hint = 'Y / n' if defaultYes else 'y / N'
    while True:
        reply = str(input(f"\n{question} ({hint}): ")).strip().lower()
        if not reply:
            if (default is not None) and (defaultBehavior & UserInputDefaultsBehavior.DefaultsAccept):
                return defaultYes
            continue
        try:
            return str2bool(reply)
        except ValueError:
            eprint("Please answer yes or no")


###################################################################################################
# get interactive user response; with secret=True the reply is not echoed
def AskForString(
    question,
    default=None,
    defaultBehavior=UserInputDefaultsBehavior.DefaultsPrompt,
    uiMode=UserInterfaceMode.InteractionDialog | UserInterfaceMode.InteractionInput,
    secret=False,
):
    if (default is not None) and _silent(defaultBehavior):
        return default

    showDefault = (default is not None) and (not secret) and (defaultBehavior & UserInputDefaultsBehavior.DefaultsPrompt)

    if _use_dialog(uiMode):
        if secret:
            code, reply = MainDialog.passwordbox(str(question), insecure=True, **_dialog_box(question))
        else:
            code, reply = MainDialog.inputbox(str(question), init=default if showDefault else "", **_dialog_box(question))
        if code in (Dialog.CANCEL, Dialog.ESC):
            raise DialogCanceledException(question)

    elif uiMode & UserInterfaceMode.InteractionInput:
        if secret:
            reply = getpass.getpass(prompt=f"{question}: ")
        else:
            reply = str(input(f"\n{question}{f' ({default})' if showDefault else ''}: "))

    else:
        raise RuntimeError("No user interfaces available")

    if not secret:
        reply = reply.strip()
    if (not reply) and (default is not None) and (defaultBehavior & UserInputDefaultsBehavior.DefaultsAccept):
        reply = default
    return reply


def AskForPassword(
    prompt,
    default=None,
    defaultBehavior=UserInputDefaultsBehavior.DefaultsPrompt,
    uiMode=UserInterfaceMode.InteractionDialog | UserInterfaceMode.InteractionInput,
):
    return AskForString(prompt, default=default, defaultBehavior=defaultBehavior, uiMode=uiMode, secret=True)


###################################################################################################
def DisplayMessage(
    message,
    defaultBehavior=UserInputDefaultsBehavior.DefaultsPrompt,
    uiMode=UserInterfaceMode.InteractionDialog | UserInterfaceMode.InteractionInput,
):
    if _use_dialog(uiMode) and not _silent(defaultBehavior):
        code = MainDialog.msgbox(str(message), no_collapse=True, **_dialog_box(message))
        if code in (Dialog.CANCEL, Dialog.ESC):
            raise DialogCanceledException(message)
    else:
        print(f"{message}")
    return True


###################################################################################################
def LoadYaml(inputFileName):
    if not (inputFileName and os.path.isfile(inputFileName)):
        return None
    with open(inputFileName, 'r') as f:
        return YAML(typ='safe', pure=True).load(f)


# settings files may be YAML or JSON; the extension decides, otherwise the content does
def LoadYamlOrJson(inputFileName):
    if not (inputFileName and os.path.isfile(inputFileName)):
        return {}, SettingsFileFormat.UNKNOWN

    extension = Path(inputFileName).suffix.lower()
    if extension == ".json":
        with open(inputFileName, "r") as f:
            result = json.load(f)
        return (result, SettingsFileFormat.JSON) if result else ({}, SettingsFileFormat.UNKNOWN)

    if extension not in (".yml", ".yaml"):
        with open(inputFileName, "r") as f:
            content = f.read().strip()
        if content.startswith("{"):
            return json.loads(content), SettingsFileFormat.JSON

    result = LoadYaml(inputFileName)
    return (result, SettingsFileFormat.YAML) if result else ({}, SettingsFileFormat.UNKNOWN)


###################################################################################################
# fetch into a temporary file beside the destination, only replacing it with a non-empty download
def DownloadToFile(url, local_filename, debug=False, timeout=60):
    with temporary_filename(dir=os.path.dirname(os.path.abspath(local_filename))) as tmp_filename:
        r = requests.get(url, stream=True, allow_redirects=True, timeout=timeout)
        r.raise_for_status()
        with open(tmp_filename, 'wb') as f:
            for chunk in r.iter_content(chunk_size=8192):
                f.write(chunk)
        if os.path.getsize(tmp_filename) > 0:
            shutil.move(tmp_filename, local_filename)
    size = os.path.getsize(local_filename) if os.path.isfile(local_filename) else 0
    if debug:
        eprint(f"Downloaded {url} to {local_filename} ({sizeof_fmt(size)})")
    return size > 0


###################################################################################################
# the public URL Bitwarden was configured with, from bwdata/config.yml
def GetConfiguredUrl(config_yml_path) -> Optional[str]:
    try:
        data = LoadYaml(config_yml_path)
    except Exception as e:
        eprint(f'Error reading {config_yml_path}: {e}')
        return None
    if isinstance(data, dict) and data.get('url'):
        return str(data['url'])
    return None


###################################################################################################
def get_platform_name() -> str:
    if sys.platform.startswith("linux"):
        return "linux"
    return "macos" if sys.platform == "darwin" else sys.platform


OsRelease = namedtuple('OsRelease', ['distro', 'codename', 'release', 'pretty_name'])


def read_os_release(root_dir=None) -> OsRelease:
    """Identify the running distribution with the distro library; unknown fields are None.

    ``root_dir`` reads the os-release and *-release files of another filesystem tree instead of /.
    """
    info = distro.LinuxDistribution(root_dir=root_dir) if root_dir else distro
    return OsRelease(
        distro=info.id() or get_platform_name(),
        codename=info.codename().lower() or None,
        release=info.version() or None,
        pretty_name=info.name(pretty=True) or None,
    )


def is_supported_ubuntu(os_release: OsRelease) -> bool:
    return (os_release.distro == PLATFORM_LINUX_UBUNTU) and (os_release.release in SUPPORTED_UBUNTU_RELEASES)
