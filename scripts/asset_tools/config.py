"""
Configuration management for the asset tools.
Supports TOML and JSON configuration files with environment variable overrides and validation.
"""

import os
import json
from dataclasses import dataclass, field

# Handle tomllib import for different Python versions
try:
    import tomllib  # Python 3.11+
except ImportError:
    try:
        import tomli as tomllib  # Python < 3.11 with tomli package
    except ImportError:
        tomllib = None
from typing import Dict, List, Any, Union, Tuple
from pathlib import Path

from .processing.quantizer import DEFAULT_GRADIENT
from .utils.color import parse_color


ENV_PREFIX = "ASSET_TOOLS_"

# Canvas size per asset class, as in the crop tool's category table
DEFAULT_CANVAS_SIZES: Dict[str, Tuple[int, int]] = {
    "player": (512, 512),
    "resource": (256, 256),
    "station": (1024, 1024),
    "goal": (256, 256),
}

VALID_STYLES = ("none", "pixelate", "quantize")
VALID_KEY_MODES = ("global", "flood_fill")
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

# Ranges offered by the original tool sliders
PIXELATE_WIDTH_RANGE = (8, 4096)
SAMPLE_COUNT_RANGE = (2, 32)
BRIGHTNESS_OFFSET_RANGE = (-0.5, 0.5)


def _parse_size(value: Any) -> Tuple[int, int]:
    """Parse ``[w, h]`` or ``"WxH"`` into a size tuple."""
    if isinstance(value, str):
        parts = value.lower().replace("×", "x").split("x")
        if len(parts) != 2:
            raise ValueError(f"Invalid size: {value!r}")
        return (int(parts[0]), int(parts[1]))
    width, height = value
    return (int(width), int(height))


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class PipelineConfig:
    """Main configuration class for the asset tools."""

    # Canvas settings
    canvas_sizes: Dict[str, Tuple[int, int]] = field(default_factory=lambda: dict(DEFAULT_CANVAS_SIZES))
    background_color: Tuple[float, float, float, float] = (1.0, 1.0, 1.0, 1.0)

    # Style settings
    default_style: str = "none"
    pixelate_width: int = 32
    quantize_sample_count: int = 8
    quantize_brightness_offset: float = 0.0
    gradient: List[Tuple[float, float, float, float]] = field(default_factory=lambda: list(DEFAULT_GRADIENT))

    # Keying settings
    key_enabled: bool = False
    key_color: Tuple[float, float, float, float] = (1.0, 0.0, 1.0, 1.0)
    key_tolerance: float = 0.1
    key_mode: str = "flood_fill"
    key_all_corners: bool = True

    # Output settings
    output_dir: str = "Assets/Asset Tools Outputs"
    compression_level: int = 6

    # Logging
    log_level: str = "INFO"

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "PipelineConfig":
        """Load configuration from TOML or JSON file."""
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        if config_path.suffix.lower() == '.toml':
            return cls._from_toml(config_path)
        elif config_path.suffix.lower() == '.json':
            return cls._from_json(config_path)
        else:
            raise ValueError(f"Unsupported configuration format: {config_path.suffix}")

    @classmethod
    def _from_toml(cls, config_path: Path) -> "PipelineConfig":
        """Load configuration from TOML file."""
        if tomllib is None:
            raise ImportError("TOML support not available. Install tomli package for Python < 3.11")

        with open(config_path, 'rb') as f:
            data = tomllib.load(f)
        return cls._from_dict(data)

    @classmethod
    def _from_json(cls, config_path: Path) -> "PipelineConfig":
        """Load configuration from JSON file."""
        with open(config_path, 'r') as f:
            data = json.load(f)
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "PipelineConfig":
        """Create configuration from dictionary."""
        config_data = {}

        # Handle canvas settings
        if 'canvas' in data:
            canvas = dict(data['canvas'])
            if 'background' in canvas:
                config_data['background_color'] = parse_color(canvas.pop('background'))
            sizes = dict(DEFAULT_CANVAS_SIZES)
            for name, size in canvas.items():
                sizes[name.lower()] = _parse_size(size)
            config_data['canvas_sizes'] = sizes

        # Handle style settings
        if 'style' in data:
            config_data['default_style'] = str(data['style'].get('default', 'none')).lower()

        if 'pixelate' in data:
            config_data['pixelate_width'] = int(data['pixelate'].get('width', 32))

        if 'quantize' in data:
            quantize = data['quantize']
            config_data['quantize_sample_count'] = int(quantize.get('sample_count', 8))
            config_data['quantize_brightness_offset'] = float(quantize.get('brightness_offset', 0.0))
            if 'gradient' in quantize:
                config_data['gradient'] = [parse_color(stop) for stop in quantize['gradient']]

        # Handle keying settings
        if 'keying' in data:
            keying = data['keying']
            config_data['key_enabled'] = bool(keying.get('enabled', False))
            if 'color' in keying:
                config_data['key_color'] = parse_color(keying['color'])
            config_data['key_tolerance'] = float(keying.get('tolerance', 0.1))
            config_data['key_mode'] = str(keying.get('mode', 'flood_fill')).lower()
            config_data['key_all_corners'] = bool(keying.get('all_corners', True))

        # Handle output settings
        if 'output' in data:
            output = data['output']
            config_data['output_dir'] = output.get('dir', 'Assets/Asset Tools Outputs')
            config_data['compression_level'] = int(output.get('compression_level', 6))

        if 'logging' in data:
            config_data['log_level'] = str(data['logging'].get('level', 'INFO')).upper()

        return cls(**config_data)

    @classmethod
    def default(cls) -> "PipelineConfig":
        """Create default configuration with environment variable overrides."""
        config = cls()

        # Apply environment variable overrides
        config = cls._apply_env_overrides(config)

        return config

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Create configuration from environment variables only."""
        config = cls()
        return cls._apply_env_overrides(config)

    @classmethod
    def _apply_env_overrides(cls, config: "PipelineConfig") -> "PipelineConfig":
        """Apply environment variable overrides to configuration."""

        # Canvas settings
        for name in list(config.canvas_sizes):
            value = os.getenv(f'{ENV_PREFIX}{name.upper()}_SIZE')
            if value:
                config.canvas_sizes[name] = _parse_size(value)

        if os.getenv(f'{ENV_PREFIX}BACKGROUND'):
            config.background_color = parse_color(os.getenv(f'{ENV_PREFIX}BACKGROUND', 'white'))

        # Style settings
        if os.getenv(f'{ENV_PREFIX}STYLE'):
            config.default_style = os.getenv(f'{ENV_PREFIX}STYLE', 'none').lower()

        if os.getenv(f'{ENV_PREFIX}PIXELATE_WIDTH'):
            config.pixelate_width = int(os.getenv(f'{ENV_PREFIX}PIXELATE_WIDTH', '32'))

        if os.getenv(f'{ENV_PREFIX}SAMPLE_COUNT'):
            config.quantize_sample_count = int(os.getenv(f'{ENV_PREFIX}SAMPLE_COUNT', '8'))

        if os.getenv(f'{ENV_PREFIX}BRIGHTNESS_OFFSET'):
            config.quantize_brightness_offset = float(os.getenv(f'{ENV_PREFIX}BRIGHTNESS_OFFSET', '0'))

        # Keying settings
        if os.getenv(f'{ENV_PREFIX}KEY_ENABLED'):
            config.key_enabled = _parse_bool(os.getenv(f'{ENV_PREFIX}KEY_ENABLED', 'false'))

        if os.getenv(f'{ENV_PREFIX}KEY_COLOR'):
            config.key_color = parse_color(os.getenv(f'{ENV_PREFIX}KEY_COLOR', 'magenta'))

        if os.getenv(f'{ENV_PREFIX}KEY_TOLERANCE'):
            config.key_tolerance = float(os.getenv(f'{ENV_PREFIX}KEY_TOLERANCE', '0.1'))

        if os.getenv(f'{ENV_PREFIX}KEY_MODE'):
            config.key_mode = os.getenv(f'{ENV_PREFIX}KEY_MODE', 'flood_fill').lower()

        if os.getenv(f'{ENV_PREFIX}KEY_ALL_CORNERS'):
            config.key_all_corners = _parse_bool(os.getenv(f'{ENV_PREFIX}KEY_ALL_CORNERS', 'true'))

        # Output settings
        if os.getenv(f'{ENV_PREFIX}OUTPUT_DIR'):
            config.output_dir = os.getenv(f'{ENV_PREFIX}OUTPUT_DIR', 'Assets/Asset Tools Outputs')

        if os.getenv(f'{ENV_PREFIX}COMPRESSION_LEVEL'):
            config.compression_level = int(os.getenv(f'{ENV_PREFIX}COMPRESSION_LEVEL', '6'))

        if os.getenv(f'{ENV_PREFIX}LOG_LEVEL'):
            config.log_level = os.getenv(f'{ENV_PREFIX}LOG_LEVEL', 'INFO').upper()

        return config

    def canvas_size(self, asset_class: str) -> Tuple[int, int]:
        """Canvas (width, height) for an asset class name."""
        key = asset_class.lower()
        if key not in self.canvas_sizes:
            raise KeyError(f"No canvas size configured for asset class '{asset_class}'")
        return self.canvas_sizes[key]

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        # Validate canvas sizes
        for name, (width, height) in self.canvas_sizes.items():
            if name not in DEFAULT_CANVAS_SIZES:
                errors.append(f"unknown asset class in canvas sizes: {name}")
            if width <= 0 or height <= 0:
                errors.append(f"canvas size for {name} must have positive dimensions")

        # Validate style settings
        if self.default_style not in VALID_STYLES:
            errors.append(f"default_style must be one of {', '.join(VALID_STYLES)}")

        low, high = PIXELATE_WIDTH_RANGE
        if not low <= self.pixelate_width <= high:
            errors.append(f"pixelate_width must be between {low} and {high}")

        low, high = SAMPLE_COUNT_RANGE
        if not low <= self.quantize_sample_count <= high:
            errors.append(f"quantize_sample_count must be between {low} and {high}")

        low, high = BRIGHTNESS_OFFSET_RANGE
        if not low <= self.quantize_brightness_offset <= high:
            errors.append(f"quantize_brightness_offset must be between {low} and {high}")

        if not self.gradient:
            errors.append("gradient must contain at least one color stop")

        # Validate keying settings
        if not 0 <= self.key_tolerance <= 1:
            errors.append("key_tolerance must be between 0 and 1")

        if self.key_mode not in VALID_KEY_MODES:
            errors.append(f"key_mode must be one of {', '.join(VALID_KEY_MODES)}")

        # Validate output settings
        if not 0 <= self.compression_level <= 9:
            errors.append("compression_level must be between 0 and 9")

        if self.log_level not in VALID_LOG_LEVELS:
            errors.append(f"log_level must be one of {', '.join(VALID_LOG_LEVELS)}")

        return errors
