"""Typed audit actions.

An application declares its closed set of audit actions once, as pydantic
models pairing a literal `type` with a payload model:

    class UserCreatedPayload(BaseModel):
        user_id: str
        email: str

    class UserCreated(AuditableAction[UserCreatedPayload]):
        type: Literal["user.created"] = "user.created"

    registry = AuditActionRegistry.from_actions(UserCreated, UserUpdated)

The registry maps each type to its payload schema so auditors can validate
payloads at runtime.
"""

from collections.abc import Iterator, Mapping
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict

from chronicle.audit.errors import UnknownAuditTypeError

TPayload = TypeVar("TPayload")


class AuditableAction(BaseModel, Generic[TPayload]):
    """A `{type, payload}` pair from an application's action union."""

    model_config = ConfigDict(frozen=True)

    type: str
    payload: TPayload


class AuditActionRegistry(Mapping[str, type[BaseModel]]):
    """Runtime schema map from audit type to payload model."""

    def __init__(self, schemas: Mapping[str, type[BaseModel]]) -> None:
        self._schemas = dict(schemas)

    @classmethod
    def from_actions(cls, *actions: type[AuditableAction[Any]]) -> "AuditActionRegistry":
        """Build a registry from AuditableAction subclasses.

        Each subclass must give `type` a default (its literal) and
        parametrize `payload` with a pydantic model.

        Raises:
            ValueError: If a subclass has no type default or a type repeats
        """
        schemas: dict[str, type[BaseModel]] = {}
        for action in actions:
            audit_type = action.model_fields["type"].default
            if not isinstance(audit_type, str):
                raise ValueError(f"{action.__name__} must declare a default type")
            if audit_type in schemas:
                raise ValueError(f"Duplicate audit type: {audit_type!r}")
            payload_model = action.model_fields["payload"].annotation
            if not (isinstance(payload_model, type) and issubclass(payload_model, BaseModel)):
                raise ValueError(f"{action.__name__} payload must be a pydantic model")
            schemas[audit_type] = payload_model
        return cls(schemas)

    def __getitem__(self, audit_type: str) -> type[BaseModel]:
        try:
            return self._schemas[audit_type]
        except KeyError:
            raise UnknownAuditTypeError(audit_type) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._schemas)

    def __len__(self) -> int:
        return len(self._schemas)

    def types(self) -> list[str]:
        """Registered audit types in declaration order."""
        return list(self._schemas)

    def validate(self, audit_type: str, payload: Any) -> dict[str, Any]:
        """Validate a payload against its type's schema.

        Returns:
            The payload as a JSON-compatible dict

        Raises:
            UnknownAuditTypeError: If the type is not registered
            pydantic.ValidationError: If the payload does not match
        """
        model = self[audit_type]
        instance = payload if isinstance(payload, model) else model.model_validate(payload)
        return instance.model_dump(mode="json")
