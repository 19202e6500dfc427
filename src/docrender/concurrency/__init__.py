from .async_once import AsyncOnce, AsyncOnceError
from .async_utils import AsyncSemaphore, maybe_await

__all__ = [
    "AsyncOnce",
    "AsyncOnceError",
    "AsyncSemaphore",
    "maybe_await",
]
