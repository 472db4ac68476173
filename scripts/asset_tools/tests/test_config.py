"""
Tests for configuration loading, environment overrides and validation.
"""

import os
import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from ..config import PipelineConfig, DEFAULT_CANVAS_SIZES
from ..processing.quantizer import DEFAULT_GRADIENT


TOML_CONFIG = """
[canvas]
player = [640, 640]
station = "2048x1024"
background = "#000000"

[style]
default = "pixelate"

[pixelate]
width = 48

[quantize]
sample_count = 6
brightness_offset = 0.1
gradient = ["#000000", "#ffffff"]

[keying]
enabled = true
color = "0,255,0"
tolerance = 0.2
mode = "global"

[output]
dir = "out"
compression_level = 9

[logging]
level = "debug"
"""


class TestPipelineConfig(unittest.TestCase):
    """Test cases for PipelineConfig."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def write(self, name: str, content: str) -> Path:
        path = Path(self.temp_dir) / name
        path.write_text(content)
        return path

    def test_defaults(self):
        config = PipelineConfig()
        self.assertEqual(config.canvas_sizes, DEFAULT_CANVAS_SIZES)
        self.assertEqual(config.background_color, (1.0, 1.0, 1.0, 1.0))
        self.assertEqual(config.pixelate_width, 32)
        self.assertEqual(config.quantize_sample_count, 8)
        self.assertEqual(config.key_color, (1.0, 0.0, 1.0, 1.0))
        self.assertEqual(config.key_tolerance, 0.1)
        self.assertEqual(config.gradient, DEFAULT_GRADIENT)
        self.assertEqual(config.validate(), [])

    def test_instances_do_not_share_state(self):
        a = PipelineConfig()
        b = PipelineConfig()
        a.canvas_sizes["player"] = (1, 1)
        self.assertEqual(b.canvas_sizes["player"], (512, 512))

    def test_from_toml(self):
        config = PipelineConfig.from_file(self.write("asset_tools.toml", TOML_CONFIG))

        self.assertEqual(config.canvas_sizes["player"], (640, 640))
        self.assertEqual(config.canvas_sizes["station"], (2048, 1024))
        self.assertEqual(config.canvas_sizes["goal"], (256, 256))
        self.assertEqual(config.background_color, (0.0, 0.0, 0.0, 1.0))
        self.assertEqual(config.default_style, "pixelate")
        self.assertEqual(config.pixelate_width, 48)
        self.assertEqual(config.quantize_sample_count, 6)
        self.assertEqual(config.quantize_brightness_offset, 0.1)
        self.assertEqual(config.gradient, [(0.0, 0.0, 0.0, 1.0), (1.0, 1.0, 1.0, 1.0)])
        self.assertTrue(config.key_enabled)
        self.assertEqual(config.key_color, (0.0, 1.0, 0.0, 1.0))
        self.assertEqual(config.key_tolerance, 0.2)
        self.assertEqual(config.key_mode, "global")
        self.assertEqual(config.output_dir, "out")
        self.assertEqual(config.compression_level, 9)
        self.assertEqual(config.log_level, "DEBUG")
        self.assertEqual(config.validate(), [])

    def test_from_json(self):
        data = {
            "canvas": {"resource": [128, 128]},
            "keying": {"enabled": False},
        }
        config = PipelineConfig.from_file(self.write("asset_tools.json", json.dumps(data)))

        self.assertEqual(config.canvas_size("resource"), (128, 128))
        self.assertFalse(config.key_enabled)
        self.assertEqual(config.default_style, "none")

    def test_keying_table_without_enabled_stays_off(self):
        path = self.write("asset_tools.toml", '[keying]\ncolor = "#00ff00"\n')
        config = PipelineConfig.from_file(path)
        self.assertFalse(config.key_enabled)
        self.assertEqual(config.key_color, (0.0, 1.0, 0.0, 1.0))

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            PipelineConfig.from_file(Path(self.temp_dir) / "missing.toml")

    def test_unsupported_format(self):
        with self.assertRaises(ValueError):
            PipelineConfig.from_file(self.write("asset_tools.yaml", "style: none"))

    def test_canvas_size_lookup(self):
        config = PipelineConfig()
        self.assertEqual(config.canvas_size("Station"), (1024, 1024))
        with self.assertRaises(KeyError):
            config.canvas_size("vehicle")

    @patch.dict(os.environ, {
        "ASSET_TOOLS_PLAYER_SIZE": "300x200",
        "ASSET_TOOLS_STYLE": "Quantize",
        "ASSET_TOOLS_SAMPLE_COUNT": "12",
        "ASSET_TOOLS_BRIGHTNESS_OFFSET": "-0.2",
        "ASSET_TOOLS_KEY_ENABLED": "yes",
        "ASSET_TOOLS_KEY_COLOR": "#00ff00",
        "ASSET_TOOLS_KEY_ALL_CORNERS": "false",
        "ASSET_TOOLS_OUTPUT_DIR": "/tmp/assets",
        "ASSET_TOOLS_LOG_LEVEL": "warning",
    })
    def test_env_overrides(self):
        config = PipelineConfig.from_env()

        self.assertEqual(config.canvas_sizes["player"], (300, 200))
        self.assertEqual(config.default_style, "quantize")
        self.assertEqual(config.quantize_sample_count, 12)
        self.assertEqual(config.quantize_brightness_offset, -0.2)
        self.assertTrue(config.key_enabled)
        self.assertEqual(config.key_color, (0.0, 1.0, 0.0, 1.0))
        self.assertFalse(config.key_all_corners)
        self.assertEqual(config.output_dir, "/tmp/assets")
        self.assertEqual(config.log_level, "WARNING")

    @patch.dict(os.environ, {"ASSET_TOOLS_PIXELATE_WIDTH": "64"})
    def test_env_overrides_file(self):
        config = PipelineConfig.from_file(self.write("asset_tools.toml", TOML_CONFIG))
        config = PipelineConfig._apply_env_overrides(config)
        self.assertEqual(config.pixelate_width, 64)
        self.assertEqual(config.quantize_sample_count, 6)

    def test_validate_reports_errors(self):
        config = PipelineConfig(
            default_style="sepia",
            pixelate_width=4,
            quantize_sample_count=40,
            quantize_brightness_offset=0.9,
            gradient=[],
            key_tolerance=-1.0,
            key_mode="chroma",
            compression_level=12,
            log_level="LOUD",
        )
        config.canvas_sizes["goal"] = (0, 256)

        errors = config.validate()
        self.assertEqual(len(errors), 10)
        self.assertTrue(any("default_style" in e for e in errors))
        self.assertTrue(any("goal" in e for e in errors))
        self.assertTrue(any("gradient" in e for e in errors))


if __name__ == '__main__':
    unittest.main()
