#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

from enum import Enum, auto


###################################################################################################
PLATFORM_LINUX = "Linux"
PLATFORM_LINUX_UBUNTU = "ubuntu"

# releases the upstream self-host guide is written against
SUPPORTED_UBUNTU_RELEASES = ("24.02", "24.04")

###################################################################################################
# Bitwarden self-host layout
BITWARDEN_SERVICE_USER = "bitwarden"
BITWARDEN_INSTALL_DIR = "/opt/bitwarden"
BITWARDEN_SCRIPT_NAME = "bitwarden.sh"
BITWARDEN_DATA_DIR_NAME = "bwdata"
BITWARDEN_COMPOSE_RELATIVE_PATH = "docker/docker-compose.yml"
BITWARDEN_ENV_RELATIVE_PATH = "env/global.override.env"
BITWARDEN_CONFIG_RELATIVE_PATH = "config.yml"
BITWARDEN_INSTALL_LOG_NAME = "install_log.txt"
BITWARDEN_CONTAINER_NAME_FILTER = "bitwarden"
BITWARDEN_SCRIPT_URL = "https://func.bitwarden.com/api/dl/?app=self-host&platform=linux"
BITWARDEN_HOST_URL = "https://bitwarden.com/host"

###################################################################################################
# docker bits
DOCKER_GROUP = "docker"
DOCKER_SOCKET_PATH = "/var/run/docker.sock"
DOCKER_CLI_PLUGINS_DIR = "/usr/lib/docker/cli-plugins"
DOCKER_COMPOSE_STANDALONE_PATHS = ("/usr/local/bin/docker-compose", "/usr/bin/docker-compose")

###################################################################################################
# ports opened in the host firewall
FIREWALL_ALLOWED_PORTS = ("22/tcp", "80/tcp", "443/tcp")

###################################################################################################
LOCK_FILE_PATH = "/var/lock/bitwarden-installer.lock"


###################################################################################################
# Constants for run modes
class PresentationMode(Enum):
    MODE_TUI = auto()  # Text-based User Interface
    MODE_DUI = auto()  # Dialogs
    MODE_SILENT = auto()  # Silent mode


class SettingsFileFormat(Enum):
    JSON = "JSON"
    YAML = "YAML"
    UNKNOWN = "UNKNOWN"
