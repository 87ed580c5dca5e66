"""Travel domain - guest flight details and travel-agent CSV exchange"""

from .router import router

__all__ = ["router"]
