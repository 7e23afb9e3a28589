#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

"""
Installation parameter arguments for the Bitwarden installer

Values not given here are taken from the environment or the settings file, and
are otherwise prompted for.
"""

from bitwarden_installer.bitwarden_utils import str2bool


def add_bitwarden_args(parser):
    """
    Add installation parameter arguments to the parser

    Args:
        parser: ArgumentParser to add arguments to
    """
    install_arg_group = parser.add_argument_group("Installation Parameters")

    install_arg_group.add_argument(
        "--settings-file",
        "-s",
        dest="settingsFile",
        metavar="<string>",
        type=str,
        default=None,
        help="YAML or JSON file providing installation parameters",
    )
    install_arg_group.add_argument(
        "--domain",
        dest="domain",
        metavar="<string>",
        type=str,
        default=None,
        help="Domain name Bitwarden is served on (e.g., bitwarden.example.com)",
    )
    install_arg_group.add_argument(
        "--tls",
        "--tls-mode",
        dest="tlsMode",
        metavar="letsencrypt|self-signed|none",
        type=str,
        default=None,
        help="How the TLS certificate is provided",
    )
    install_arg_group.add_argument(
        "--email",
        dest="email",
        metavar="<string>",
        type=str,
        default=None,
        help="Email address for Let's Encrypt notifications",
    )
    install_arg_group.add_argument(
        "--installation-id",
        dest="installationId",
        metavar="<string>",
        type=str,
        default=None,
        help="Installation ID from https://bitwarden.com/host",
    )
    install_arg_group.add_argument(
        "--installation-key",
        dest="installationKey",
        metavar="<string>",
        type=str,
        default=None,
        help="Installation key from https://bitwarden.com/host (or set BW_INSTALLATION_KEY)",
    )
    install_arg_group.add_argument(
        "--region",
        dest="region",
        metavar="US|EU",
        type=str,
        default=None,
        help="Bitwarden cloud region the installation ID belongs to",
    )

    smtp_arg_group = parser.add_argument_group("SMTP Options")
    smtp_arg_group.add_argument(
        "--configure-smtp",
        dest="configureSmtp",
        type=str2bool,
        metavar="true|false",
        nargs="?",
        const=True,
        default=None,
        help="Write SMTP settings to the Bitwarden environment (prompted for if not specified)",
    )
    smtp_arg_group.add_argument(
        "--smtp-host",
        dest="smtpHost",
        metavar="<string>",
        type=str,
        default=None,
        help="SMTP server host name",
    )
    smtp_arg_group.add_argument(
        "--smtp-port",
        dest="smtpPort",
        metavar="<integer>",
        type=int,
        default=None,
        help="SMTP server port (default 587)",
    )
    smtp_arg_group.add_argument(
        "--smtp-ssl",
        dest="smtpSsl",
        type=str2bool,
        metavar="true|false",
        nargs="?",
        const=True,
        default=None,
        help="Use SSL for SMTP",
    )
    smtp_arg_group.add_argument(
        "--smtp-username",
        dest="smtpUsername",
        metavar="<string>",
        type=str,
        default=None,
        help="SMTP user name",
    )
    smtp_arg_group.add_argument(
        "--smtp-password",
        dest="smtpPassword",
        metavar="<string>",
        type=str,
        default=None,
        help="SMTP password (or set BW_SMTP_PASSWORD)",
    )
    smtp_arg_group.add_argument(
        "--admin-email",
        dest="adminEmail",
        metavar="<string>",
        type=str,
        default=None,
        help="Email address granted access to the Bitwarden admin portal",
    )
