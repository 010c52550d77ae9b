from pathlib import Path
from tempfile import TemporaryDirectory
import unittest

from botqueue.config import load_config
from botqueue.simulation import DEFAULT_STEPS, Step


class ConfigTest(unittest.TestCase):
    def test_load_config(self) -> None:
        with TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            config_path = root / "botqueue.yaml"
            config_path.write_text(
                """
paths:
  report: "./out/result.txt"
  log: "./botqueue.log"
processing:
  duration_seconds: 4
simulation:
  steps:
    - add_worker
    - action: submit
      priority: high
    - action: wait
      seconds: 5
    - remove_worker
""".strip(),
                encoding="utf-8",
            )
            config = load_config(config_path)
            self.assertEqual(config.processing.duration_seconds, 4)
            self.assertEqual(config.paths.report.resolve(), (root / "out" / "result.txt").resolve())
            assert config.paths.log is not None
            self.assertEqual(config.paths.log.name, "botqueue.log")
            self.assertFalse(config.simulation.realtime)
            self.assertEqual(
                config.simulation.steps,
                (
                    Step("add_worker"),
                    Step("submit", priority=True),
                    Step("wait", seconds=5),
                    Step("remove_worker"),
                ),
            )

    def test_defaults_without_config_file(self) -> None:
        config = load_config(None)
        self.assertEqual(config.processing.duration_seconds, 10)
        self.assertEqual(config.simulation.steps, DEFAULT_STEPS)
        self.assertEqual(config.paths.report.name, "result.txt")
        self.assertIsNone(config.paths.log)

    def test_realtime_flag(self) -> None:
        with TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "botqueue.yaml"
            config_path.write_text("simulation:\n  realtime: true\n", encoding="utf-8")
            self.assertTrue(load_config(config_path).simulation.realtime)

    def test_invalid_values_rejected(self) -> None:
        cases = [
            "processing:\n  duration_seconds: 0\n",
            "simulation:\n  steps:\n    - action: launch\n",
            "simulation:\n  steps:\n    - action: wait\n",
            "simulation:\n  steps:\n    - action: submit\n      priority: urgent\n",
            "simulation:\n  steps: add_worker\n",
            "simulation:\n  realtime: \"false\"\n",
            "simulation:\n  realtime: 1\n",
            "- just\n- a\n- list\n",
        ]
        with TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "botqueue.yaml"
            for text in cases:
                with self.subTest(text=text):
                    config_path.write_text(text, encoding="utf-8")
                    with self.assertRaises(ValueError):
                        load_config(config_path)


if __name__ == "__main__":
    unittest.main()
