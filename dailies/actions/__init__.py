"""Action-Pipeline: Registry, Executor und Processor."""

from dailies.actions.executor import (
    ActionExecutionResult,
    ActionPipelineExecutor,
    PipelineResult,
)
from dailies.actions.political import PoliticalContentAnalyzer
from dailies.actions.processors import register_default_processors
from dailies.actions.registry import ProcessorRegistry

__all__ = [
    "ActionExecutionResult",
    "ActionPipelineExecutor",
    "PipelineResult",
    "PoliticalContentAnalyzer",
    "ProcessorRegistry",
    "register_default_processors",
]
