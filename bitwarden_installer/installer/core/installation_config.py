#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

"""User-supplied parameters for one Bitwarden installation.

``InstallationConfig`` is built once per run by ``build_installation_config``
from (in order of precedence) command-line arguments, secret environment
variables, an optional YAML/JSON settings file and interactive prompts. It is
validated on construction and never changed afterwards.
"""

import os
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from bitwarden_installer.bitwarden_common import LoadYamlOrJson
from bitwarden_installer.bitwarden_constants import BITWARDEN_HOST_URL, SettingsFileFormat
from bitwarden_installer.bitwarden_utils import bool_to_str, str2bool
from bitwarden_installer.installer.configs.constants.enums import Region, TlsMode
from bitwarden_installer.installer.configs.constants.env_var_keys import (
    ENV_INSTALLATION_KEY,
    ENV_SMTP_PASSWORD,
    KEY_ENV_ADMINS,
    KEY_ENV_SMTP_HOST,
    KEY_ENV_SMTP_PASSWORD,
    KEY_ENV_SMTP_PORT,
    KEY_ENV_SMTP_SSL,
    KEY_ENV_SMTP_USERNAME,
)
from bitwarden_installer.installer.utils.exceptions import InvalidConfigurationError
from bitwarden_installer.installer.utils.logger_utils import InstallerLogger

_DOMAIN_PATTERN = re.compile(r"^(?=.{1,253}$)([A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?)(\.[A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?)*$")
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+$")


def parse_region(value) -> Region:
    """Parse a region, defaulting to US (with a warning) on anything unrecognized."""
    if isinstance(value, Region):
        return value
    try:
        return Region(str(value or "").strip().upper())
    except ValueError:
        InstallerLogger.warning(f"Invalid region '{value}', defaulting to {Region.US.value}")
        return Region.US


def parse_tls_mode(value) -> TlsMode:
    if isinstance(value, TlsMode):
        return value
    normalized = str(value or "").strip().lower().replace("_", "-")
    aliases = {
        "letsencrypt": TlsMode.LETS_ENCRYPT,
        "lets-encrypt": TlsMode.LETS_ENCRYPT,
        "self-signed": TlsMode.SELF_SIGNED,
        "selfsigned": TlsMode.SELF_SIGNED,
        "none": TlsMode.NONE,
    }
    if normalized in aliases:
        return aliases[normalized]
    raise InvalidConfigurationError("tls_mode", f"'{value}' is not one of {', '.join(m.value for m in TlsMode)}")


@dataclass(frozen=True)
class SmtpSettings:
    host: str
    port: int
    ssl: bool
    username: str
    password: str
    admin_email: Optional[str] = None

    def __post_init__(self):
        if not self.host:
            raise InvalidConfigurationError("smtp.host", "is required")
        if not isinstance(self.port, int) or isinstance(self.port, bool) or not (0 < self.port < 65536):
            raise InvalidConfigurationError("smtp.port", f"'{self.port}' is not a valid port")
        if self.admin_email and not _EMAIL_PATTERN.match(self.admin_email):
            raise InvalidConfigurationError("smtp.admin_email", f"'{self.admin_email}' is not an email address")
        for name in ("host", "username", "password", "admin_email"):
            if any(c in str(getattr(self, name) or "") for c in "\r\n"):
                raise InvalidConfigurationError(f"smtp.{name}", "must be a single line")


@dataclass(frozen=True)
class InstallationConfig:
    domain: str
    tls_mode: TlsMode
    installation_id: str
    installation_key: str
    region: Region = Region.US
    email: Optional[str] = None
    smtp: Optional[SmtpSettings] = None

    def __post_init__(self):
        if not self.domain:
            raise InvalidConfigurationError("domain", "is required")
        if not _DOMAIN_PATTERN.match(self.domain):
            raise InvalidConfigurationError("domain", f"'{self.domain}' is not a valid host name")
        if not isinstance(self.tls_mode, TlsMode):
            raise InvalidConfigurationError("tls_mode", f"'{self.tls_mode}' is not a TLS mode")
        if not isinstance(self.region, Region):
            raise InvalidConfigurationError("region", f"'{self.region}' is not a region")
        if self.tls_mode == TlsMode.LETS_ENCRYPT and not self.email:
            raise InvalidConfigurationError("email", "is required for Let's Encrypt")
        if self.email and not _EMAIL_PATTERN.match(self.email):
            raise InvalidConfigurationError("email", f"'{self.email}' is not an email address")
        if not self.installation_id:
            raise InvalidConfigurationError("installation_id", f"is required (get one at {BITWARDEN_HOST_URL})")
        if not self.installation_key:
            raise InvalidConfigurationError("installation_key", f"is required (get one at {BITWARDEN_HOST_URL})")

    def template_fields(self) -> Dict[str, str]:
        """Values available to prompt response templates."""
        return {
            "domain": self.domain,
            "email": self.email or "",
            "installation_id": self.installation_id,
            "installation_key": self.installation_key,
            "region": self.region.value,
            "letsencrypt": "y" if self.tls_mode == TlsMode.LETS_ENCRYPT else "n",
            "self_signed": "y" if self.tls_mode == TlsMode.SELF_SIGNED else "n",
        }

    def secrets(self) -> list:
        """Values that must never appear in logs or transcripts."""
        result = [self.installation_key]
        if self.smtp:
            result.append(self.smtp.password)
        return result

    def env_updates(self) -> Dict[str, str]:
        """global.override.env keys for SMTP and admin settings (empty without SMTP)."""
        if not self.smtp:
            return {}
        updates = {
            KEY_ENV_SMTP_HOST: self.smtp.host,
            KEY_ENV_SMTP_PORT: str(self.smtp.port),
            KEY_ENV_SMTP_SSL: bool_to_str(self.smtp.ssl),
            KEY_ENV_SMTP_USERNAME: self.smtp.username,
            KEY_ENV_SMTP_PASSWORD: self.smtp.password,
        }
        if self.smtp.admin_email:
            updates[KEY_ENV_ADMINS] = self.smtp.admin_email
        return updates

    def summary(self) -> Dict[str, str]:
        """Non-secret values for display."""
        result = {
            "Domain": self.domain,
            "TLS": self.tls_mode.value,
            "Region": self.region.value,
            "Installation ID": self.installation_id,
        }
        if self.email:
            result["Email"] = self.email
        if self.smtp:
            result["SMTP"] = f"{self.smtp.username}@{self.smtp.host}:{self.smtp.port} (ssl={bool_to_str(self.smtp.ssl)})"
        return result


###################################################################################################
# collection


def load_settings_file(path: Optional[str]) -> Dict[str, Any]:
    """Read a YAML or JSON settings file into a flat dict ("smtp" may be a nested mapping)."""
    if not path:
        return {}
    if not os.path.isfile(path):
        raise InvalidConfigurationError("settings_file", f"{path} does not exist")
    try:
        data, fmt = LoadYamlOrJson(path)
    except Exception as e:
        raise InvalidConfigurationError("settings_file", f"{path} could not be parsed: {e}") from e
    if fmt == SettingsFileFormat.UNKNOWN or not isinstance(data, dict):
        raise InvalidConfigurationError("settings_file", f"{path} is not a YAML or JSON mapping")
    return {str(k).replace("-", "_"): v for k, v in data.items()}


def _first(*values):
    for v in values:
        if v is not None and v != "":
            return v
    return None


def build_installation_config(args, ui, non_interactive: bool = False, configure_smtp: Optional[bool] = None) -> InstallationConfig:
    """Collect and validate the installation parameters.

    Raises:
        InvalidConfigurationError: a value is missing (non-interactive) or invalid
    """
    settings = load_settings_file(getattr(args, "settingsFile", None))
    smtp_settings = settings.get("smtp") if isinstance(settings.get("smtp"), dict) else {}

    def _value(arg_name: str, settings_name: str, env_name: Optional[str] = None):
        return _first(
            getattr(args, arg_name, None),
            os.getenv(env_name) if env_name else None,
            settings.get(settings_name),
        )

    def _require(field: str, value, prompt: str, secret: bool = False, default: Optional[str] = None):
        if value is not None and value != "":
            return value
        if non_interactive:
            if default is not None:
                return default
            raise InvalidConfigurationError(field, "is required in non-interactive mode")
        answer = ui.ask_password(prompt) if secret else ui.ask_string(prompt, default=default or "")
        if not answer:
            raise InvalidConfigurationError(field, "is required")
        return answer.strip()

    domain = _require("domain", _value("domain", "domain"), "Enter your domain name (e.g., bitwarden.example.com)")

    tls_value = _value("tlsMode", "tls_mode")
    if tls_value is None:
        if non_interactive:
            tls_mode = TlsMode.SELF_SIGNED
        elif ui.ask_yes_no("Use Let's Encrypt for SSL certificate?", default=True):
            tls_mode = TlsMode.LETS_ENCRYPT
        else:
            tls_mode = (
                TlsMode.SELF_SIGNED
                if ui.ask_yes_no("Generate a self-signed SSL certificate?", default=True)
                else TlsMode.NONE
            )
    else:
        tls_mode = parse_tls_mode(tls_value)

    email = _value("email", "email")
    if tls_mode == TlsMode.LETS_ENCRYPT:
        email = _require("email", email, "Enter email for Let's Encrypt notifications")

    if not non_interactive:
        ui.display_message(
            f"You need to get your Installation ID and Key from {BITWARDEN_HOST_URL}\n"
            "Use a valid email address to retrieve these values."
        )
    installation_id = _require("installation_id", _value("installationId", "installation_id"), "Enter your Installation ID")
    installation_key = _require(
        "installation_key",
        _value("installationKey", "installation_key", ENV_INSTALLATION_KEY),
        "Enter your Installation Key",
        secret=True,
    )

    region_value = _value("region", "region")
    if region_value is None and not non_interactive:
        region_value = ui.ask_string("Enter your region (US/EU)", default=Region.US.value)
    region = parse_region(region_value or Region.US.value)

    smtp = None
    smtp_host = _first(getattr(args, "smtpHost", None), smtp_settings.get("host"))
    wants_smtp = configure_smtp
    if wants_smtp is None:
        if smtp_host:
            wants_smtp = True
        elif non_interactive:
            wants_smtp = False
        else:
            wants_smtp = ui.ask_yes_no("Configure SMTP settings now?", default=False)
    if wants_smtp:
        smtp = build_smtp_settings(args, ui, smtp_settings, non_interactive, _require)

    return InstallationConfig(
        domain=str(domain).strip().lower(),
        tls_mode=tls_mode,
        email=str(email).strip() if email else None,
        installation_id=str(installation_id).strip(),
        installation_key=str(installation_key).strip(),
        region=region,
        smtp=smtp,
    )


def build_smtp_settings(args, ui, smtp_settings: Dict[str, Any], non_interactive: bool, require) -> SmtpSettings:
    host = require("smtp.host", _first(getattr(args, "smtpHost", None), smtp_settings.get("host")), "SMTP Host")
    port_value = require(
        "smtp.port", _first(getattr(args, "smtpPort", None), smtp_settings.get("port")), "SMTP Port", default="587"
    )
    try:
        port = int(port_value)
    except (TypeError, ValueError) as e:
        raise InvalidConfigurationError("smtp.port", f"'{port_value}' is not a number") from e

    ssl_value = _first(getattr(args, "smtpSsl", None), smtp_settings.get("ssl"))
    if ssl_value is None:
        ssl = True if non_interactive else ui.ask_yes_no("Use SSL for SMTP?", default=True)
    else:
        try:
            ssl = str2bool(ssl_value)
        except ValueError as e:
            raise InvalidConfigurationError("smtp.ssl", f"'{ssl_value}' is not true or false") from e

    username = require(
        "smtp.username", _first(getattr(args, "smtpUsername", None), smtp_settings.get("username")), "SMTP Username"
    )
    password = require(
        "smtp.password",
        _first(getattr(args, "smtpPassword", None), os.getenv(ENV_SMTP_PASSWORD), smtp_settings.get("password")),
        "SMTP Password",
        secret=True,
    )
    admin_email = _first(getattr(args, "adminEmail", None), smtp_settings.get("admin_email"))
    if admin_email is None and not non_interactive:
        admin_email = ui.ask_string("Admin email address (optional)", default="") or None

    return SmtpSettings(
        host=str(host).strip(),
        port=port,
        ssl=ssl,
        username=str(username).strip(),
        password=str(password),
        admin_email=str(admin_email).strip() if admin_email else None,
    )
