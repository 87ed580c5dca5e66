"""Transport domain - flight pickup generation, transport groups and allocations"""

from .router import router

__all__ = ["router"]
