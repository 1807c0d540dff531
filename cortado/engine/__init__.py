"""Processing engine

This package provides:
- The Engine interface the pipeline drives (storage, exec, events)
- A local ffmpeg implementation backed by a working directory
- EngineInvoker, which owns the engine lifecycle and one run at a time
"""

from .base import Engine, EngineResources, LOG_EVENT, PROGRESS_EVENT
from .local import FFmpegEngine, load_engine_resources
from .invoker import EngineInvoker, EngineLifecycle

__all__ = [
    'Engine',
    'EngineResources',
    'LOG_EVENT',
    'PROGRESS_EVENT',
    'FFmpegEngine',
    'load_engine_resources',
    'EngineInvoker',
    'EngineLifecycle',
]
