# PATH: tests/unit/test_config.py
"""
Unit tests for configuration loading.
"""

import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from config import CONFIG_DIR, get_protocol, load_protocols, load_yaml, parse_protocols
from config.settings import QuoterSettings, load_quoter_settings, resolve_env
from core.constants import DEFAULT_MAX_SUB_PLAN_DEPTH, ProtocolFamily, ProtocolKind
from core.exceptions import CommandError, ErrorCode


class TestConfigLoading(unittest.TestCase):
    """Tests for config loading functions."""

    def test_config_dir_exists(self):
        """Config directory exists."""
        self.assertTrue(CONFIG_DIR.exists())

    def test_load_protocols(self):
        """Every command family is configured."""
        protocols = load_protocols()

        self.assertEqual(set(protocols), {family.value for family in ProtocolFamily})
        self.assertEqual(protocols[ProtocolFamily.UNISWAP_V2].kind, ProtocolKind.CONSTANT_PRODUCT)
        self.assertEqual(protocols[ProtocolFamily.UNISWAP_V4].kind, ProtocolKind.SINGLETON_MANAGER)
        self.assertIsNone(protocols[ProtocolFamily.UNISWAP_V4].init_code_hash)

    def test_addresses_checksummed(self):
        """Lowercase addresses in YAML come back checksummed."""
        protocols = parse_protocols({
            "test_v3": {
                "id": 1,
                "kind": "concentrated_liquidity",
                "factory": "0x1f98431c8ad98523631ae4a59f267346ea31f984",
                "init_code_hash": "0x" + "00" * 32,
            }
        })

        self.assertEqual(protocols[1].factory, "0x1F98431c8aD98523631AE4a59f267346ea31F984")
        self.assertEqual(protocols[1].name, "test_v3")
        self.assertIsNone(protocols[1].quoter)

    def test_unknown_kind(self):
        """Unknown kind raises ValueError."""
        with self.assertRaises(ValueError):
            parse_protocols({"x": {"id": 9, "kind": "orderbook", "factory": "0x" + "11" * 20}})

    def test_family_id_out_of_range(self):
        """Family ids must sit in the core or integration range."""
        entry = {"kind": "concentrated_liquidity", "factory": "0x" + "11" * 20}

        for family in (0x80, 0xFF, -1):
            with self.assertRaises(ValueError):
                parse_protocols({"x": {"id": family, **entry}})

        self.assertIn(0x7F, parse_protocols({"x": {"id": 0x7F, **entry}}))

    def test_get_protocol_unknown(self):
        """Unknown family raises UNKNOWN_PROTOCOL."""
        with self.assertRaises(CommandError) as ctx:
            get_protocol({}, ProtocolFamily.SUSHISWAP_V3)

        self.assertEqual(ctx.exception.code, ErrorCode.UNKNOWN_PROTOCOL)
        self.assertIn("SUSHISWAP_V3", ctx.exception.message)

    def test_load_yaml_missing(self):
        """Missing file raises FileNotFoundError."""
        with self.assertRaises(FileNotFoundError):
            load_yaml("does_not_exist.yaml")


class TestQuoterSettings(unittest.TestCase):
    """Tests for quoter.yaml."""

    def _write(self, text: str) -> Path:
        handle = tempfile.NamedTemporaryFile("w", suffix=".yaml", delete=False, encoding="utf-8")
        handle.write(text)
        handle.close()
        self.addCleanup(os.unlink, handle.name)
        return Path(handle.name)

    def test_defaults_when_missing(self):
        settings = load_quoter_settings(Path("/nonexistent/quoter.yaml"))

        self.assertEqual(settings, QuoterSettings())
        self.assertEqual(settings.max_sub_plan_depth, DEFAULT_MAX_SUB_PLAN_DEPTH)

    def test_bundled_settings(self):
        settings = load_quoter_settings()

        self.assertEqual(settings.max_sub_plan_depth, 8)
        self.assertEqual(settings.chain_id, 1)
        self.assertIn("https://ethereum-rpc.publicnode.com", settings.rpc_urls)

    def test_custom_file(self):
        path = self._write(
            "max_sub_plan_depth: 2\n"
            "rpc:\n"
            "  chain_id: 10\n"
            "  timeout_seconds: 3\n"
            "  urls: [\"https://rpc.example\"]\n"
        )

        settings = load_quoter_settings(path)

        self.assertEqual(settings.max_sub_plan_depth, 2)
        self.assertEqual(settings.chain_id, 10)
        self.assertEqual(settings.rpc_timeout_seconds, 3)
        self.assertEqual(settings.rpc_urls, ["https://rpc.example"])

    def test_negative_depth(self):
        path = self._write("max_sub_plan_depth: -1\n")

        with self.assertRaises(ValueError):
            load_quoter_settings(path)

    def test_api_key_substitution(self):
        with patch.dict(os.environ, {"RPC_API_KEY": "secret"}):
            self.assertEqual(resolve_env("https://x/${RPC_API_KEY}"), "https://x/secret")

    def test_url_without_key_dropped(self):
        with patch.dict(os.environ, {"RPC_API_KEY": ""}):
            self.assertIsNone(resolve_env("https://x/${RPC_API_KEY}"))
            self.assertEqual(resolve_env("https://plain"), "https://plain")


if __name__ == "__main__":
    unittest.main()
