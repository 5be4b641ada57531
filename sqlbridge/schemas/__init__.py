from sqlbridge.schemas.response import ArrowData, ArrowResponse

__all__ = ["ArrowData", "ArrowResponse"]
