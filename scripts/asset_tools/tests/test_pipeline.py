"""
Tests for the asset pipeline coordinator.
"""

import logging
import unittest
import numpy as np
import pytest

from ..config import PipelineConfig
from ..pipeline import (
    AssetPipeline, AssetClass, Style, PipelineStep, PipelineOptions, UnknownAssetClassError
)
from ..processing.buffer import (
    PixelBuffer, Rect, InvalidTargetSizeError, InvalidCanvasSizeError, EmptyGradientError
)
from ..processing.keyer import KeyingConfig, KeyMode
from ..processing.quantizer import QuantizeConfig


RED = (1.0, 0.0, 0.0, 1.0)
WHITE = (1.0, 1.0, 1.0, 1.0)
MAGENTA = (1.0, 0.0, 1.0, 1.0)
BLUE = (0.0, 0.0, 1.0, 1.0)


class TestAssetClass(unittest.TestCase):

    def test_parse(self):
        self.assertIs(AssetClass.parse("Station"), AssetClass.STATION)
        self.assertIs(AssetClass.parse(" goal "), AssetClass.GOAL)
        self.assertIs(AssetClass.parse(AssetClass.PLAYER), AssetClass.PLAYER)

    def test_parse_unknown(self):
        with self.assertRaises(UnknownAssetClassError) as ctx:
            AssetClass.parse("vehicle")
        self.assertEqual(ctx.exception.name, "vehicle")

    def test_label(self):
        self.assertEqual(AssetClass.RESOURCE.label, "Resource")


class TestAssetPipeline(unittest.TestCase):
    """Test cases for AssetPipeline."""

    def setUp(self):
        self.pipeline = AssetPipeline(PipelineConfig())

    def test_canvas_sizes(self):
        self.assertEqual(self.pipeline.canvas_size("player"), (512, 512))
        self.assertEqual(self.pipeline.canvas_size("resource"), (256, 256))
        self.assertEqual(self.pipeline.canvas_size("station"), (1024, 1024))
        self.assertEqual(self.pipeline.canvas_size("goal"), (256, 256))

    def test_plan_order(self):
        options = PipelineOptions(
            crop=Rect(0, 0, 4, 4),
            style=Style.QUANTIZE,
            keying=KeyingConfig(),
        )
        self.assertEqual(self.pipeline.plan(options), [
            PipelineStep.CROP, PipelineStep.QUANTIZE, PipelineStep.KEY, PipelineStep.CANVAS
        ])

    def test_plan_minimal(self):
        self.assertEqual(self.pipeline.plan(PipelineOptions()), [PipelineStep.CANVAS])
        self.assertEqual(self.pipeline.plan(PipelineOptions(finalize=False)), [])

    def test_red_square_pixelated_onto_resource_canvas(self):
        source = PixelBuffer.filled(100, 100, RED)
        options = PipelineOptions(style=Style.PIXELATE, pixelate_width=10)

        result = self.pipeline.run(source, AssetClass.RESOURCE, options)

        self.assertEqual(result.size, (256, 256))
        self.assertTrue(np.all(result.buffer.pixels == RED))
        self.assertEqual(result.executed_steps, [PipelineStep.PIXELATE, PipelineStep.CANVAS])
        self.assertEqual(result.steps[0].size, (10, 10))

    def test_output_matches_class_canvas(self):
        source = PixelBuffer.filled(30, 20, RED)
        for name in ("player", "resource", "goal"):
            result = self.pipeline.run(source, name)
            self.assertEqual(result.size, self.pipeline.canvas_size(name))
            self.assertTrue(np.all(result.buffer.pixels[..., 3] == 1.0))

    def test_crop_then_canvas(self):
        pixels = np.empty((20, 20, 4))
        pixels[:, :] = WHITE
        pixels[5:10, 5:10] = RED
        options = PipelineOptions(crop=Rect(5, 5, 5, 5))

        result = self.pipeline.run(PixelBuffer(pixels), "goal", options)
        self.assertTrue(np.all(result.buffer.pixels == RED))

    def test_keyed_background_becomes_canvas_color(self):
        pixels = np.empty((10, 10, 4))
        pixels[:, :] = MAGENTA
        pixels[3:7, 3:7] = BLUE
        options = PipelineOptions(keying=KeyingConfig())

        result = self.pipeline.run(PixelBuffer(pixels), "resource", options)

        self.assertEqual(result.buffer.get_pixel(0, 0), WHITE)
        self.assertEqual(result.buffer.get_pixel(255, 255), WHITE)
        self.assertEqual(result.buffer.get_pixel(128, 128), BLUE)

    def test_preview_skips_canvas(self):
        source = PixelBuffer.filled(40, 20, RED)
        options = PipelineOptions(style=Style.PIXELATE, pixelate_width=8, finalize=False)

        result = self.pipeline.run(source, "player", options)
        self.assertEqual(result.size, (8, 4))

    def test_no_stages_returns_equal_buffer(self):
        source = PixelBuffer.filled(3, 3, RED)
        result = self.pipeline.run(source, "player", PipelineOptions(finalize=False))
        self.assertEqual(result.buffer, source)
        self.assertEqual(result.steps, [])

    def test_source_is_not_modified(self):
        source = PixelBuffer.filled(10, 10, MAGENTA)
        before = source.copy_pixels()
        self.pipeline.run(source, "goal", PipelineOptions(keying=KeyingConfig(mode=KeyMode.GLOBAL)))
        np.testing.assert_array_equal(source.pixels, before)

    def test_first_error_propagates(self):
        source = PixelBuffer.filled(10, 10, RED)

        with self.assertRaises(InvalidTargetSizeError):
            self.pipeline.run(source, "goal", PipelineOptions(style=Style.PIXELATE, pixelate_width=0))

        with self.assertRaises(EmptyGradientError):
            options = PipelineOptions(style=Style.QUANTIZE, quantize=QuantizeConfig(gradient=[]))
            self.pipeline.run(source, "goal", options)

    def test_invalid_configured_canvas(self):
        config = PipelineConfig()
        config.canvas_sizes["goal"] = (0, 256)
        with self.assertRaises(InvalidCanvasSizeError):
            AssetPipeline(config).run(PixelBuffer.filled(2, 2, RED), "goal")

    def test_unknown_asset_class(self):
        with self.assertRaises(UnknownAssetClassError):
            self.pipeline.run(PixelBuffer.filled(2, 2, RED), "vehicle")


class TestPipelineOptions:
    """Test PipelineOptions built from configuration."""

    def test_from_default_config(self):
        options = PipelineOptions.from_config(PipelineConfig())
        assert options.style is Style.NONE
        assert options.pixelate_width == 32
        assert options.keying is None
        assert options.quantize.sample_count == 8

    def test_from_config_with_keying(self):
        config = PipelineConfig(key_enabled=True, key_tolerance=0.25, key_mode="global",
                                default_style="quantize", quantize_sample_count=4)
        options = PipelineOptions.from_config(config)
        assert options.style is Style.QUANTIZE
        assert options.quantize.sample_count == 4
        assert options.keying.tolerance == 0.25
        assert options.keying.mode is KeyMode.GLOBAL

    def test_invalid_style_and_key_mode_messages(self):
        with pytest.raises(ValueError, match="Valid styles: none, pixelate, quantize"):
            PipelineOptions.from_config(PipelineConfig(default_style="sepia"))
        with pytest.raises(ValueError, match="Valid modes: global, flood_fill"):
            PipelineOptions.from_config(PipelineConfig(key_enabled=True, key_mode="chroma"))

    def test_style_parse(self):
        assert Style.parse(" Pixelate ") is Style.PIXELATE
        assert Style.parse(Style.QUANTIZE) is Style.QUANTIZE

    def test_overrides(self):
        options = PipelineOptions.from_config(PipelineConfig(), style=Style.PIXELATE, finalize=False)
        assert options.style is Style.PIXELATE
        assert options.finalize is False

    def test_unknown_override(self):
        with pytest.raises(TypeError):
            PipelineOptions.from_config(PipelineConfig(), colour="red")

    def test_run_logs_progress(self, caplog):
        pipeline = AssetPipeline(PipelineConfig())
        with caplog.at_level(logging.INFO, logger="asset_tools"):
            pipeline.run(PixelBuffer.filled(4, 4, RED), "goal")
        assert "Processing Goal asset 4x4" in caplog.text
        assert "Finished Goal asset: 256x256" in caplog.text


if __name__ == '__main__':
    unittest.main()
