import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest import mock


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from app.config import GatewayConfig, load_config, load_env_file

REMOTE_ENV = {
    "REGISTRAR_API_URL": "https://records.example.test/api/",
    "APPER_PROJECT_ID": "proj-1",
    "APPER_PUBLIC_KEY": "pk-123",
}


class TestLoadConfig(unittest.TestCase):
    def test_defaults_to_memory(self) -> None:
        config = load_config({})
        self.assertEqual(config, GatewayConfig())
        self.assertFalse(config.remote_ready)

    def test_remote_when_credentials_present(self) -> None:
        config = load_config(REMOTE_ENV)
        self.assertEqual(config.backend, "remote")
        self.assertEqual(config.api_url, "https://records.example.test/api")
        self.assertTrue(config.remote_ready)

    def test_explicit_memory_wins(self) -> None:
        self.assertEqual(load_config({**REMOTE_ENV, "REGISTRAR_BACKEND": "memory"}).backend, "memory")

    def test_remote_without_credentials(self) -> None:
        with self.assertRaises(RuntimeError):
            load_config({"REGISTRAR_BACKEND": "remote"})

    def test_unknown_backend(self) -> None:
        with self.assertRaises(RuntimeError):
            load_config({"REGISTRAR_BACKEND": "sqlite"})

    def test_numbers(self) -> None:
        config = load_config(
            {
                "REGISTRAR_PAGE_SIZE": "25",
                "REGISTRAR_HTTP_TIMEOUT": "2.5",
                "REGISTRAR_FETCH_LIMIT": "200",
                "REGISTRAR_SLOW_MS": "50",
                "REGISTRAR_LOG_LEVEL": "debug",
            }
        )
        self.assertEqual(config.page_size, 25)
        self.assertEqual(config.timeout, 2.5)
        self.assertEqual(config.fetch_limit, 200)
        self.assertEqual(config.slow_ms, 50.0)
        self.assertEqual(config.log_level, "DEBUG")
        for bad in ("ten", "0", "-3"):
            with self.assertRaises(RuntimeError):
                load_config({"REGISTRAR_PAGE_SIZE": bad})


class TestEnvFile(unittest.TestCase):
    def test_env_file_does_not_override_process_env(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / ".env"
            path.write_text(
                "# local settings\nREGISTRAR_PAGE_SIZE=25\nREGISTRAR_BACKEND='memory'\nnot a pair\n",
                encoding="utf-8",
            )
            with mock.patch.dict(os.environ, {"REGISTRAR_PAGE_SIZE": "5"}, clear=False):
                os.environ.pop("REGISTRAR_BACKEND", None)
                load_env_file(path)
                self.assertEqual(os.environ["REGISTRAR_PAGE_SIZE"], "5")
                self.assertEqual(os.environ["REGISTRAR_BACKEND"], "memory")

    def test_missing_file_is_ignored(self) -> None:
        load_env_file(Path("/nonexistent/registrar/.env"))


if __name__ == "__main__":
    unittest.main()
