#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (c) 2025 Battelle Energy Alliance, LLC.  All rights reserved.

import re
import unittest

from bitwarden_installer.installer.configs.constants.enums import Region, TlsMode
from bitwarden_installer.installer.core.install_script import (
    InstallScript,
    PromptResponseRule,
    build_install_script,
)
from bitwarden_installer.installer.core.installation_config import InstallationConfig


def _config(tls_mode, email=None, region=Region.US):
    return InstallationConfig(
        domain="vault.example.org",
        tls_mode=tls_mode,
        installation_id="abc-123",
        installation_key="key-456",
        region=region,
        email=email,
    )


class TestInstallScript(unittest.TestCase):
    def test_lets_encrypt_sequence(self):
        script = build_install_script(_config(TlsMode.LETS_ENCRYPT, email="ops@example.org"))
        self.assertEqual(
            [r.description for r in script.rules],
            [
                "domain name",
                "Let's Encrypt",
                "Let's Encrypt email",
                "database name",
                "installation id",
                "installation key",
                "region",
            ],
        )

    def test_self_signed_sequence_declines_existing_certificate(self):
        config = _config(TlsMode.SELF_SIGNED)
        script = build_install_script(config)
        descriptions = [r.description for r in script.rules]
        self.assertNotIn("Let's Encrypt email", descriptions)
        self.assertEqual(descriptions[-2:], ["existing SSL certificate", "self-signed certificate"])

        fields = config.template_fields()
        rendered = [r.response.format_map(fields) for r in script.rules]
        self.assertEqual(rendered[1], "n")
        self.assertEqual(rendered[-2:], ["n", "y"])

    def test_no_tls_answers_no_to_self_signed(self):
        config = _config(TlsMode.NONE, region=Region.EU)
        script = build_install_script(config)
        fields = config.template_fields()
        self.assertEqual(script.rules[script.index_of("self-signed certificate")].response.format_map(fields), "n")
        self.assertEqual(script.rules[script.index_of("region")].response.format_map(fields), "EU")

    def test_only_database_rule_is_optional_and_key_is_secret(self):
        script = build_install_script(_config(TlsMode.SELF_SIGNED))
        self.assertEqual([r.description for r in script.rules if r.optional], ["database name"])
        self.assertEqual([r.description for r in script.rules if r.secret], ["installation key"])

    def test_prompt_patterns_match_installer_text(self):
        script = build_install_script(_config(TlsMode.LETS_ENCRYPT, email="ops@example.org"))
        text = "(!) Do you want to use Let's Encrypt to generate a free SSL certificate? (y/n): "
        self.assertTrue(re.search(script.rules[script.index_of("Let's Encrypt")].pattern, text))
        for text in (
            "(!) Enter your email address (Let's Encrypt): ",
            "(!) Enter your email address (Let's Encrypt will send you certificate expiration reminders): ",
        ):
            self.assertTrue(re.search(script.rules[script.index_of("Let's Encrypt email")].pattern, text), text)

    def test_repeatable_ordered_rule_is_rejected(self):
        with self.assertRaises(ValueError):
            InstallScript(rules=(PromptResponseRule("x", "y", "x", repeatable=True),))

    def test_index_of_unknown_rule(self):
        with self.assertRaises(KeyError):
            build_install_script(_config(TlsMode.NONE)).index_of("nonexistent")


if __name__ == "__main__":
    unittest.main()
