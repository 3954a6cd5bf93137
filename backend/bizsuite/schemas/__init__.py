"""BizSuite Schemas

Pydantic schemas for request/response validation.
"""

from bizsuite.schemas.common import PaginatedResponse, MessageResponse

__all__ = ["PaginatedResponse", "MessageResponse"]
