#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

"""Installer-wide constants for command lines, timeouts and readiness."""

# docker / compose invocations
DOCKER_BIN = "docker"
COMPOSE_SUBCOMMAND = "compose"
COMPOSE_STANDALONE_BIN = "docker-compose"
COMPOSE_VERSION_ARG = "version"
COMPOSE_UP_SUBCOMMAND = "up"
COMPOSE_DETACH_FLAG = "-d"
COMPOSE_LOGS_SUBCOMMAND = "logs"
COMPOSE_PLUGIN_PACKAGE = "docker-compose-plugin"
COMPOSE_STANDALONE_PACKAGE = "docker-compose"

# bitwarden.sh subcommands
BITWARDEN_CMD_INSTALL = "install"
BITWARDEN_CMD_START = "start"
BITWARDEN_CMD_STOP = "stop"

# apt packages installed before Docker
PREREQUISITE_PACKAGES = [
    "curl",
    "wget",
    "apt-transport-https",
    "ca-certificates",
    "gnupg",
    "lsb-release",
]
DOCKER_PACKAGES = [
    "docker-ce",
    "docker-ce-cli",
    "containerd.io",
    "docker-buildx-plugin",
    "docker-compose-plugin",
]
DOCKER_CONFLICTING_PACKAGES = ["docker", "docker-engine", "docker.io", "containerd", "runc"]
DOCKER_APT_KEYRING = "/etc/apt/keyrings/docker.gpg"
DOCKER_APT_SOURCES_LIST = "/etc/apt/sources.list.d/docker.list"
DOCKER_APT_GPG_URL = "https://download.docker.com/linux/ubuntu/gpg"
DOCKER_APT_REPO_URL = "https://download.docker.com/linux/ubuntu"

# interactive installer timing (seconds)
# the first prompt waits behind the initial image pulls
DRIVER_FIRST_PROMPT_TIMEOUT_SEC = 900
DRIVER_PROMPT_TIMEOUT_SEC = 300
DRIVER_COMPLETION_TIMEOUT_SEC = 1800
DRIVER_EXIT_GRACE_SEC = 60
DRIVER_TERMINAL_DIMENSIONS = (50, 200)

# lines of output shown when an install, start or readiness wait fails
INSTALL_LOG_TAIL_LINES = 20
CONTAINER_LOG_TAIL_LINES = 50

# readiness polling
DEFAULT_READINESS_ATTEMPTS = 30
DEFAULT_READINESS_INTERVAL_SEC = 10.0
DEFAULT_READINESS_URL = "https://localhost"
READINESS_HTTP_TIMEOUT_SEC = 10
READINESS_SUCCESS_CODES = range(200, 400)

# docker daemon settle time after a socket permission repair
DOCKER_RESTART_SETTLE_SEC = 5
