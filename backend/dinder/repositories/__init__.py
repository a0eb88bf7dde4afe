"""Store mappers for sessions, participants, selections and results.

Each module turns Redis primitives into domain records and back. Business
rules (capacity, idempotency, completion) live in ``dinder.services``.
"""
