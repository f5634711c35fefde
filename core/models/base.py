# =============================================================================
# core/models/base.py - Shared Model Configuration
# =============================================================================
# The front-end reads camelCase JSON (teacherName, isRead, ...) while the
# database and Python code use snake_case. CamelModel serializes with
# camelCase aliases and still accepts snake_case field names.
# =============================================================================

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
    )
