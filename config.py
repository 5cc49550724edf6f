"""
Configuration management for the page audit service.
Centralizes capture, layout and server settings read from the environment.
"""

import logging
import os
import sys
from pathlib import Path

import yaml
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration class."""

    # Server Configuration
    SERVER_PORT = int(os.getenv('SERVER_PORT', 3000))
    SERVER_HOST = os.getenv('SERVER_HOST', 'localhost')

    # Capture Strategy: "local" (headless browser) or "remote" (screenshot provider)
    CAPTURE_STRATEGY = os.getenv('CAPTURE_STRATEGY', 'local').lower()
    BROWSER_ENV = os.getenv('BROWSER_ENV', 'development').lower()

    # Viewport and raster output
    VIEWPORT_WIDTH = int(os.getenv('VIEWPORT_WIDTH', 1280))
    VIEWPORT_HEIGHT = int(os.getenv('VIEWPORT_HEIGHT', 800))
    JPEG_QUALITY = int(os.getenv('JPEG_QUALITY', 80))

    # Timing
    NAVIGATION_TIMEOUT_MS = int(os.getenv('NAVIGATION_TIMEOUT_MS', 60000))
    PIPELINE_DEADLINE_S = float(os.getenv('PIPELINE_DEADLINE_S', 60))
    SCROLL_STEP_PX = int(os.getenv('SCROLL_STEP_PX', 100))
    SCROLL_INTERVAL_MS = int(os.getenv('SCROLL_INTERVAL_MS', 100))
    SCROLL_MAX_STEPS = int(os.getenv('SCROLL_MAX_STEPS', 500))
    SETTLE_DELAY_MS = int(os.getenv('SETTLE_DELAY_MS', 1000))
    SCROLL_RESET_DELAY_MS = int(os.getenv('SCROLL_RESET_DELAY_MS', 500))
    PAINT_DELAY_MS = int(os.getenv('PAINT_DELAY_MS', 200))

    # Document layout
    CHUNK_HEIGHT = int(os.getenv('CHUNK_HEIGHT', 1200))
    DISPLAY_WIDTH = float(os.getenv('DISPLAY_WIDTH', 600))

    # Remote screenshot provider
    PROVIDER_ENDPOINT = os.getenv('PROVIDER_ENDPOINT', '')
    PROVIDER_API_KEY = os.getenv('PROVIDER_API_KEY', '')
    PROVIDER_SETTLE_DELAY_MS = int(os.getenv('PROVIDER_SETTLE_DELAY_MS', 1000))

    # File Paths
    BASE_DIR = Path(__file__).parent
    CAPTURE_OPTIONS_PATH = Path(os.getenv(
        'CAPTURE_OPTIONS_PATH', str(BASE_DIR / 'screenshot_capture' / 'config.yaml')
    ))

    # Development Configuration
    DEBUG = os.getenv('DEBUG', 'false').lower() == 'true'
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    @classmethod
    def load_capture_options(cls) -> dict:
        """Load browser launch args and provider options from the YAML file."""
        if not cls.CAPTURE_OPTIONS_PATH.exists():
            raise FileNotFoundError(f"Capture options file not found at {cls.CAPTURE_OPTIONS_PATH}")
        with open(cls.CAPTURE_OPTIONS_PATH, 'r') as f:
            return yaml.safe_load(f) or {}

    @classmethod
    def validate_config(cls):
        """Validate configuration values."""
        errors = []

        if cls.CAPTURE_STRATEGY not in ('local', 'remote'):
            errors.append(f"Unknown capture strategy: {cls.CAPTURE_STRATEGY}")

        if cls.CAPTURE_STRATEGY == 'remote' and not cls.PROVIDER_ENDPOINT:
            errors.append("PROVIDER_ENDPOINT must be set for the remote capture strategy")

        if cls.VIEWPORT_WIDTH <= 0 or cls.VIEWPORT_HEIGHT <= 0:
            errors.append("Viewport dimensions must be positive")

        if cls.CHUNK_HEIGHT <= 0:
            errors.append("Chunk height must be positive")

        if cls.DISPLAY_WIDTH <= 0:
            errors.append("Display width must be positive")

        if cls.PIPELINE_DEADLINE_S <= 0:
            errors.append("Pipeline deadline must be positive")

        if cls.SCROLL_STEP_PX <= 0 or cls.SCROLL_MAX_STEPS <= 0:
            errors.append("Scroll step and max steps must be positive")

        if not 1 <= cls.JPEG_QUALITY <= 100:
            errors.append("JPEG quality must be between 1 and 100")

        if cls.SERVER_PORT <= 0 or cls.SERVER_PORT > 65535:
            errors.append("Server port must be between 1 and 65535")

        if errors:
            raise ValueError(f"Configuration errors: {'; '.join(errors)}")

        return True


def resolve_log_level(config=Config, level: str = None) -> int:
    """DEBUG forces debug output; otherwise use the explicit level or LOG_LEVEL."""
    if config.DEBUG:
        return logging.DEBUG
    level_name = (level or config.LOG_LEVEL).upper()
    return getattr(logging, level_name, logging.INFO)


def configure_logging(level: str = None, config=Config):
    """Route progress logging to stderr at the configured level."""
    logging.basicConfig(
        level=resolve_log_level(config, level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


# Create global config instance
config = Config()
