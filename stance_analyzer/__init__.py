"""Comment Stance Analyzer: agree / disagree / neutral breakdown of video comments."""

__version__ = "0.1.0"
