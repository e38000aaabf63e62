"""In-memory filter, sort and pagination for audit records.

Backends that cannot push predicates down to a query engine (cache and
in-memory storage) run every query through `run_query`. The semantics
mirror the SQL the relational backend generates, so the same records and
query give the same result set and order on every backend.
"""

from collections.abc import Iterable

from chronicle.audit.models import AuditQuery, AuditRecord, canonical_entity_id


def matches(record: AuditRecord, query: AuditQuery) -> bool:
    """Return True if a record satisfies every filter in the query."""
    if query.type is not None:
        if isinstance(query.type, list):
            if record.type not in query.type:
                return False
        elif record.type != query.type:
            return False

    if query.entity_id is not None:
        if canonical_entity_id(record.entity_id) != canonical_entity_id(query.entity_id):
            return False

    if query.table is not None and record.table != query.table:
        return False

    if query.actor_id is not None:
        actor_id = record.actor.id if record.actor is not None else None
        if actor_id != query.actor_id:
            return False

    if query.from_ is not None and record.timestamp < query.from_:
        return False

    if query.to is not None and record.timestamp > query.to:
        return False

    return True


def filter_records(records: Iterable[AuditRecord], query: AuditQuery) -> list[AuditRecord]:
    return [record for record in records if matches(record, query)]


def sort_records(records: list[AuditRecord], query: AuditQuery) -> list[AuditRecord]:
    """Order records by `order_by`; the sort is stable so ties keep storage order."""
    reverse = query.order_direction == "desc"
    if query.order_by == "type":
        return sorted(records, key=lambda r: r.type, reverse=reverse)
    return sorted(records, key=lambda r: r.timestamp, reverse=reverse)


def paginate(records: list[AuditRecord], query: AuditQuery) -> list[AuditRecord]:
    # OFFSET applies before LIMIT, as in SQL
    start = query.offset or 0
    if query.limit is None:
        return records[start:]
    return records[start:start + query.limit]


def run_query(records: Iterable[AuditRecord], query: AuditQuery) -> list[AuditRecord]:
    """Filter, order and paginate records."""
    return paginate(sort_records(filter_records(records, query), query), query)


def count_matching(records: Iterable[AuditRecord], query: AuditQuery) -> int:
    return sum(1 for record in records if matches(record, query))
