"""
SOQL checks applied to the caller-supplied activity query.

Month batching relies on records arriving in ascending ActivityDate
order, so a query that does not guarantee it is rejected up front.
"""

import re

from .errors import ValidationError

_ORDER_BY = re.compile(r'\border\s+by\s+', re.IGNORECASE)
_CLAUSE_END = re.compile(r'\b(limit|offset|for|update|with)\b', re.IGNORECASE)


def first_sort_key(query: str) -> tuple[str, str] | None:
    """
    Return (field, direction) of the outermost ORDER BY's first key.

    Direction defaults to ``ASC`` as in SOQL. Returns None when the
    query has no ORDER BY clause.
    """
    matches = list(_ORDER_BY.finditer(query))
    if not matches:
        return None

    clause = query[matches[-1].end():]
    end = _CLAUSE_END.search(clause)
    if end:
        clause = clause[: end.start()]

    first = clause.split(',')[0].split()
    if not first:
        return None

    field = first[0]
    direction = first[1].upper() if len(first) > 1 and first[1].upper() in ('ASC', 'DESC') else 'ASC'
    return field, direction


def ensure_ascending_order(query: str, field: str = 'ActivityDate') -> None:
    """
    Raise ValidationError unless the query sorts by ``field`` ascending first.

    Qualified names such as ``Task.ActivityDate`` are accepted.
    """
    sort_key = first_sort_key(query)
    if sort_key is None:
        raise ValidationError(
            f'queryText must include ORDER BY {field} ASC',
            context={'query': query[:200]},
        )

    sort_field, direction = sort_key
    if sort_field.split('.')[-1].lower() != field.lower() or direction != 'ASC':
        raise ValidationError(
            f'queryText must sort by {field} ascending first',
            context={'order_by': f'{sort_field} {direction}'},
        )
