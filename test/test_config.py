# Unit tests for the config file and provider helpers
import os
import stat
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import utils.config as config
from utils.providers import ProviderError, create_client, get_api_call_params, get_model_for_task


class ConfigTestCase(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        config_dir = Path(self.tmp.name) / ".studymap"
        self.patches = [
            patch.object(config, "CONFIG_DIR", config_dir),
            patch.object(config, "CONFIG_FILE", config_dir / ".env.json"),
            patch.dict(os.environ, {}, clear=False),
        ]
        for p in self.patches:
            p.start()
        for var in config.API_KEY_ENV_VARS.values():
            os.environ.pop(var, None)

    def tearDown(self):
        for p in reversed(self.patches):
            p.stop()
        self.tmp.cleanup()


class TestConfig(ConfigTestCase):
    def test_api_key_round_trip(self):
        self.assertIsNone(config.load_api_key("openai"))
        config.save_api_key("sk-test", "openai")
        self.assertEqual(config.load_api_key("openai"), "sk-test")
        self.assertEqual(config.get_current_provider(), "openai")
        mode = stat.S_IMODE(config.CONFIG_FILE.stat().st_mode)
        self.assertEqual(mode, 0o600)

        config.remove_api_key("openai")
        self.assertIsNone(config.load_api_key("openai"))

    def test_env_fallback(self):
        os.environ["OPENROUTER_API_KEY"] = "sk-or-env"
        self.assertEqual(config.load_api_key("openrouter"), "sk-or-env")

    def test_switch_provider(self):
        config.set_current_provider("openrouter")
        self.assertEqual(config.get_current_provider(), "openrouter")
        with self.assertRaises(ValueError):
            config.set_current_provider("acme")

    def test_unreadable_config_is_ignored(self):
        config.ensure_config_directory()
        config.CONFIG_FILE.write_text("{broken")
        self.assertEqual(config.load_config(), {})


class TestProviders(ConfigTestCase):
    def test_models_per_task(self):
        self.assertEqual(get_model_for_task("chat", "openai"), "gpt-4o-mini")
        self.assertEqual(get_model_for_task("document", "openrouter"), "google/gemini-2.0-flash-001")
        with self.assertRaises(ProviderError):
            get_model_for_task("base_url", "openrouter")
        with self.assertRaises(ProviderError):
            get_model_for_task("deep_research", "openai")

    def test_create_client_needs_key(self):
        with self.assertRaises(ProviderError):
            create_client("openai")

    def test_openrouter_client(self):
        config.save_api_key("sk-or-test", "openrouter")
        client = create_client("openrouter")
        self.assertEqual(str(client.base_url).rstrip("/"), "https://openrouter.ai/api/v1")
        self.assertEqual(client.api_key, "sk-or-test")

    def test_api_call_params_skip_none(self):
        params = get_api_call_params("gpt-4o-mini", [], temperature=0.2, response_format={"type": "json_object"})
        self.assertEqual(params, {
            "model": "gpt-4o-mini",
            "messages": [],
            "temperature": 0.2,
            "response_format": {"type": "json_object"},
        })


if __name__ == "__main__":
    unittest.main()
