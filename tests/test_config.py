import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from pydantic import ValidationError

from little_wars.config import BetConfig, PathsConfig, PROJECT_ROOT, load_config


class TestLoadConfig(unittest.TestCase):

    def test_default_path_comes_from_paths_config(self):
        self.assertEqual(PathsConfig().get_config_path(), PROJECT_ROOT / "config.json")

    def test_config_file_env_selects_the_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "override.json"
            path.write_text(json.dumps({"game": {"starting_balance": 50}}), encoding="utf-8")
            with patch.dict(os.environ, {"CONFIG_FILE": str(path)}):
                config = load_config()

        self.assertEqual(config.game.starting_balance, 50)

    def test_bet_step_must_be_positive(self):
        with self.assertRaises(ValidationError):
            BetConfig(step=0)


if __name__ == "__main__":
    unittest.main()
