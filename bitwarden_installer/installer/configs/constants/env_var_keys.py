#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

# keys written to bwdata/env/global.override.env
KEY_ENV_SMTP_HOST = "globalSettings__mail__smtp__host"
KEY_ENV_SMTP_PORT = "globalSettings__mail__smtp__port"
KEY_ENV_SMTP_SSL = "globalSettings__mail__smtp__ssl"
KEY_ENV_SMTP_USERNAME = "globalSettings__mail__smtp__username"
KEY_ENV_SMTP_PASSWORD = "globalSettings__mail__smtp__password"
KEY_ENV_ADMINS = "adminSettings__admins"

# process environment variables that may carry secrets instead of the command line
ENV_INSTALLATION_KEY = "BW_INSTALLATION_KEY"
ENV_SMTP_PASSWORD = "BW_SMTP_PASSWORD"
