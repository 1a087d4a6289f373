"""Base schema class with factory helpers for API payload conversion."""

from typing import Any, Self

from pydantic import BaseModel, ConfigDict


class SchemaBase(BaseModel):
    """Base class for provider-neutral schemas."""

    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
    )

    @classmethod
    def from_api(cls, obj: Any) -> Self:
        """
        Factory method to create a schema instance from an API payload.

        Accepts plain dicts, objects with attributes, or other pydantic
        models (githubkit parsed data), which are dumped first.

        Args:
            obj: API payload

        Returns:
            Pydantic schema instance
        """
        if isinstance(obj, BaseModel):
            obj = obj.model_dump()
        return cls.model_validate(obj)

    @classmethod
    def from_api_list(cls, objs: list[Any]) -> list[Self]:
        """
        Factory method to create schema instances from a list of API payloads.

        Args:
            objs: List of API payloads

        Returns:
            List of Pydantic schema instances
        """
        return [cls.from_api(obj) for obj in objs]
