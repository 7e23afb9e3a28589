#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

import contextlib
import os
import re
import sys

from collections.abc import Iterable
from datetime import datetime
from shutil import which as sh_which
from tempfile import NamedTemporaryFile
from typing import List, Optional

_ANSI_ESCAPE = re.compile(r"(?:\x1B[@-_]|[\x80-\x9F])[0-?]*[ -/]*[@-~]")


###################################################################################################
# print to stderr, optionally prefixed with a timestamp
def eprint(*args, timestamp=False, flush=False, **kwargs):
    if timestamp:
        args = (datetime.now().strftime("%Y-%m-%d %H:%M:%S"),) + args
    print(*args, file=sys.stderr, **kwargs)
    if flush:
        sys.stderr.flush()


###################################################################################################
def EscapeAnsi(line):
    return _ANSI_ESCAPE.sub("", line)


###################################################################################################
# replace every occurrence of any of the given secret strings with a fixed mask
def mask_secrets(text: str, secrets: Iterable, mask: str = "********") -> str:
    if not text:
        return text
    # longest first so a secret containing another secret is masked whole
    for secret in sorted({s for s in secrets if s}, key=len, reverse=True):
        text = text.replace(secret, mask)
    return text


###################################################################################################
# a command given as a string or an arbitrarily nested list, as a flat argv list
def command_args(command) -> List[str]:
    if isinstance(command, (str, bytes)) or not isinstance(command, Iterable):
        return [str(command)]
    args = []
    for part in command:
        args.extend(command_args(part))
    return args


###################################################################################################
# human-readable size
def sizeof_fmt(num, suffix="B"):
    for unit in ("", "Ki", "Mi", "Gi", "Ti"):
        if abs(num) < 1024.0:
            return f"{num:3.1f}{unit}{suffix}"
        num /= 1024.0
    return f"{num:.1f}Pi{suffix}"


###################################################################################################
def str2bool(v):
    if isinstance(v, bool):
        return v
    if isinstance(v, str):
        if v.lower() in ("yes", "true", "t", "y", "1"):
            return True
        if v.lower() in ("no", "false", "f", "n", "0", ""):
            return False
    elif not v:
        return False
    raise ValueError("Boolean value expected")


# the spelling global.override.env uses for booleans
def bool_to_str(v):
    if isinstance(v, bool):
        return "true" if v else "false"
    return str(v)


###################################################################################################
# a temporary file name which is removed (if it still exists) when the context exits
@contextlib.contextmanager
def temporary_filename(suffix=None, dir=None):
    with NamedTemporaryFile(suffix=suffix, dir=dir, delete=False) as f:
        tmp_name = f.name
    try:
        yield tmp_name
    finally:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)


###################################################################################################
# is the command available and executable on the PATH?
def which(cmd, debug=False):
    result = which_path(cmd) is not None
    if debug:
        eprint(f"which {cmd} returned {result}")
    return result


def which_path(cmd) -> Optional[str]:
    return sh_which(cmd)
