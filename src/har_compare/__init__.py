"""Multi-region HAR performance comparison."""

from har_compare.analyzer import HarAnalyzer, HarCapture, analyze_har_files
from har_compare.config import AnalysisConfig, load_config
from har_compare.errors import ConfigError, HarCompareError, HarParseError

__version__ = "0.1.0"

__all__ = [
    "AnalysisConfig",
    "ConfigError",
    "HarAnalyzer",
    "HarCapture",
    "HarCompareError",
    "HarParseError",
    "analyze_har_files",
    "load_config",
]
