"""
Asset pipeline coordinator that chains the pixel buffer stages for an asset class.
Stages run in a fixed order: crop, pixelate or quantize, key out, resize to canvas.
"""

import time
import logging
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple, Union
from dataclasses import dataclass, field

from .config import PipelineConfig
from .processing.buffer import PixelBuffer, Rect, ProcessingError
from .processing.cropper import crop
from .processing.pixelator import pixelate
from .processing.keyer import KeyMode, KeyingConfig, FloodFillKeyer
from .processing.quantizer import QuantizeConfig, PaletteQuantizer
from .processing.canvas import WHITE, resize_to_canvas


class AssetClass(Enum):
    """Kinds of game asset, each with its own canvas size."""
    PLAYER = "player"
    RESOURCE = "resource"
    STATION = "station"
    GOAL = "goal"

    @classmethod
    def parse(cls, value: Union["AssetClass", str]) -> "AssetClass":
        """
        Resolve an AssetClass from itself or a case-insensitive name.

        Raises:
            UnknownAssetClassError: If the name is not a known asset class
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnknownAssetClassError(str(value))

    @property
    def label(self) -> str:
        """Display name, also used as the output sub-folder."""
        return self.value.capitalize()


class Style(Enum):
    """Alternate looks; at most one is applied per run."""
    NONE = "none"
    PIXELATE = "pixelate"
    QUANTIZE = "quantize"

    @classmethod
    def parse(cls, value: Union["Style", str]) -> "Style":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(s.value for s in cls)
            raise ValueError(f"Unknown style '{value}'. Valid styles: {valid}")


class PipelineStep(Enum):
    """Enumeration of pipeline steps."""
    CROP = "crop"
    PIXELATE = "pixelate"
    QUANTIZE = "quantize"
    KEY = "key"
    CANVAS = "canvas"


class UnknownAssetClassError(ProcessingError):
    """Raised when an asset class name is not recognised."""

    def __init__(self, name: str):
        valid = ", ".join(a.label for a in AssetClass)
        super().__init__(f"Unknown asset class '{name}'. Valid classes: {valid}")
        self.name = name


@dataclass
class PipelineOptions:
    """Per-run options selecting which stages are active."""
    crop: Optional[Rect] = None
    style: Style = Style.NONE
    pixelate_width: int = 32
    quantize: QuantizeConfig = field(default_factory=QuantizeConfig)
    keying: Optional[KeyingConfig] = None
    background: Tuple[float, ...] = WHITE
    finalize: bool = True  # False skips the canvas stage, e.g. for previews

    @classmethod
    def from_config(cls, config: PipelineConfig, **overrides) -> "PipelineOptions":
        """Build options from pipeline configuration, then apply keyword overrides."""
        keying = None
        if config.key_enabled:
            keying = KeyingConfig(
                target_color=config.key_color,
                tolerance=config.key_tolerance,
                mode=KeyMode.parse(config.key_mode),
                all_corners=config.key_all_corners,
            )

        options = cls(
            style=Style.parse(config.default_style),
            pixelate_width=config.pixelate_width,
            quantize=QuantizeConfig(
                gradient=list(config.gradient),
                sample_count=config.quantize_sample_count,
                brightness_offset=config.quantize_brightness_offset,
            ),
            keying=keying,
            background=config.background_color,
        )

        for name, value in overrides.items():
            if not hasattr(options, name):
                raise TypeError(f"Unknown pipeline option: {name}")
            setattr(options, name, value)

        return options


@dataclass
class StepResult:
    """Result of a pipeline step execution."""
    step: PipelineStep
    duration: float
    size: Tuple[int, int]
    message: str = ""


@dataclass
class PipelineResult:
    """Output of one pipeline run."""
    buffer: PixelBuffer
    asset_class: AssetClass
    steps: List[StepResult] = field(default_factory=list)

    @property
    def size(self) -> Tuple[int, int]:
        return self.buffer.size

    @property
    def executed_steps(self) -> List[PipelineStep]:
        return [result.step for result in self.steps]

    @property
    def total_duration(self) -> float:
        return sum(result.duration for result in self.steps)


class AssetPipeline:
    """
    Stateless coordinator for the image processing stages.

    Each call to ``run`` works on its own buffers; nothing is kept on the
    instance between runs apart from configuration. Stage errors are not
    caught: the first one propagates unchanged and no partial result is
    returned.
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        """
        Initialize the asset pipeline.

        Args:
            config: Pipeline configuration (defaults with environment overrides if omitted)
        """
        self.config = config or PipelineConfig.default()
        self.logger = self._setup_logging()

    def _setup_logging(self) -> logging.Logger:
        """Set up logging for the pipeline."""
        logger = logging.getLogger("asset_tools")
        logger.setLevel(getattr(logging, self.config.log_level, logging.INFO))

        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            logger.addHandler(handler)

        return logger

    def canvas_size(self, asset_class: Union[AssetClass, str]) -> Tuple[int, int]:
        """Canvas (width, height) for an asset class."""
        return self.config.canvas_size(AssetClass.parse(asset_class).value)

    def default_options(self, **overrides) -> PipelineOptions:
        return PipelineOptions.from_config(self.config, **overrides)

    def plan(self, options: PipelineOptions) -> List[PipelineStep]:
        """
        Ordered list of steps a run with ``options`` will execute.

        Args:
            options: Run options

        Returns:
            Active steps in execution order
        """
        steps = []
        if options.crop is not None:
            steps.append(PipelineStep.CROP)
        if options.style is Style.PIXELATE:
            steps.append(PipelineStep.PIXELATE)
        elif options.style is Style.QUANTIZE:
            steps.append(PipelineStep.QUANTIZE)
        if options.keying is not None:
            steps.append(PipelineStep.KEY)
        if options.finalize:
            steps.append(PipelineStep.CANVAS)
        return steps

    def run(self, source: PixelBuffer,
            asset_class: Union[AssetClass, str],
            options: Optional[PipelineOptions] = None) -> PipelineResult:
        """
        Run the active stages on a source buffer.

        Args:
            source: Decoded source image
            asset_class: Asset class selecting the canvas size
            options: Run options (built from configuration if omitted)

        Returns:
            PipelineResult with the final buffer and per-step timings

        Raises:
            ProcessingError: The first stage error, unchanged
        """
        asset_class = AssetClass.parse(asset_class)
        options = options or self.default_options()
        canvas_width, canvas_height = self.canvas_size(asset_class)

        handlers: Dict[PipelineStep, Callable[[PixelBuffer], PixelBuffer]] = {
            PipelineStep.CROP: lambda buffer: crop(buffer, options.crop),
            PipelineStep.PIXELATE: lambda buffer: pixelate(buffer, options.pixelate_width),
            PipelineStep.QUANTIZE: PaletteQuantizer(options.quantize).quantize,
            PipelineStep.KEY: lambda buffer: FloodFillKeyer(options.keying).key_out(buffer),
            PipelineStep.CANVAS: lambda buffer: resize_to_canvas(
                buffer, canvas_width, canvas_height, options.background
            ),
        }

        self.logger.info(
            f"Processing {asset_class.label} asset {source.width}x{source.height} "
            f"(style: {options.style.value})"
        )

        buffer = source
        results: List[StepResult] = []
        for step in self.plan(options):
            buffer, result = self._execute_step(step, handlers[step], buffer)
            results.append(result)

        self.logger.info(
            f"Finished {asset_class.label} asset: {buffer.width}x{buffer.height} "
            f"in {sum(r.duration for r in results):.3f}s"
        )
        return PipelineResult(buffer=buffer, asset_class=asset_class, steps=results)

    def _execute_step(self, step: PipelineStep,
                      handler: Callable[[PixelBuffer], PixelBuffer],
                      buffer: PixelBuffer) -> Tuple[PixelBuffer, StepResult]:
        """Execute a single step with timing; errors propagate to the caller."""
        self.logger.debug(f"Executing step: {step.value}")
        start_time = time.perf_counter()

        output = handler(buffer)

        duration = time.perf_counter() - start_time
        result = StepResult(
            step=step,
            duration=duration,
            size=output.size,
            message=f"{buffer.width}x{buffer.height} -> {output.width}x{output.height}",
        )
        self.logger.debug(f"Step {step.value} completed in {duration:.3f}s ({result.message})")
        return output, result
