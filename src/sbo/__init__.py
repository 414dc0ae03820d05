"""Static Build Orchestrator - build codec libraries and a static FFmpeg."""

__version__ = "0.1.0"
