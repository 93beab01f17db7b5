from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire and in the store."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageResponse(BaseModel):
    message: str


def reject_explicit_nulls(model: BaseModel, fields: tuple[str, ...]) -> None:
    """Raise if a non-nullable field was sent with an explicit null."""
    for name in fields:
        if name in model.model_fields_set and getattr(model, name) is None:
            raise ValueError(f"{to_camel(name)} cannot be null")


def reject_blank(model: BaseModel, fields: tuple[str, ...]) -> None:
    """Raise if a required text field was sent empty (after sanitising)."""
    for name in fields:
        if name in model.model_fields_set and getattr(model, name) == "":
            raise ValueError(f"{to_camel(name)} cannot be empty")
