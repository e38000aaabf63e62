"""Declarative audits derived from a handler's response.

A handler declares which audits its result produces instead of calling the
Auditor imperatively:

    audits = [
        MappedAudit(
            type="user.created",
            payload=lambda user: {"user_id": user.id, "email": user.email},
            entity_id=lambda user: user.id,
            table="users",
        ),
        MappedAudit(
            type="user.promoted",
            payload=lambda user: {"user_id": user.id},
            when=lambda user: user.is_admin,
        ),
    ]

    apply_mapped_audits(auditor, audits, user)
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from chronicle.audit.auditor import Auditor
from chronicle.audit.models import AuditOptions, EntityId
from chronicle.observability.logging import get_logger

logger = get_logger(__name__)

TResponse = TypeVar("TResponse")


@dataclass(frozen=True)
class MappedAudit(Generic[TResponse]):
    """An audit produced from a handler response.

    Attributes:
        type: Audit type to record
        payload: Extracts the payload from the response
        when: Records the audit only when it returns True
        entity_id: Extracts the affected entity id from the response
        table: Table the entity belongs to
    """

    type: str
    payload: Callable[[TResponse], Any]
    when: Callable[[TResponse], bool] | None = None
    entity_id: Callable[[TResponse], EntityId] | None = None
    table: str | None = None

    def applies_to(self, response: TResponse) -> bool:
        return self.when is None or bool(self.when(response))

    def options_for(self, response: TResponse) -> AuditOptions:
        return AuditOptions(
            table=self.table,
            entity_id=self.entity_id(response) if self.entity_id is not None else None,
        )


def apply_mapped_audits(
    auditor: Auditor[Any],
    audits: Iterable[MappedAudit[TResponse]],
    response: TResponse,
) -> int:
    """Record every mapped audit whose condition holds for the response.

    Audits are recorded in declaration order. Nothing is flushed, and an
    exception from an extractor or condition propagates to the caller.

    Returns:
        Number of audits recorded
    """
    recorded = 0
    for mapped in audits:
        if not mapped.applies_to(response):
            continue
        auditor.audit(mapped.type, mapped.payload(response), mapped.options_for(response))
        recorded += 1

    if recorded:
        logger.debug("mapped_audits_applied", recorded=recorded)
    return recorded
