from .context import CycleContext, PipelineComponents
from .run import run_cycle

__all__ = ["CycleContext", "PipelineComponents", "run_cycle"]
