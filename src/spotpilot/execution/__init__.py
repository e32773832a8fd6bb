from .router import ExecutionLayer, Fill, PaperExecutor

__all__ = ["ExecutionLayer", "Fill", "PaperExecutor"]
