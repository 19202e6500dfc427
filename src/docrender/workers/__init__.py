from .pool import RenderWorkerPool

__all__ = ["RenderWorkerPool"]
