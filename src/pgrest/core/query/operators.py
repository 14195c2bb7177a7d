# src/pgrest/core/query/operators.py

# Maps mongo-style filter operators to SQL comparison operators.
# For example, `{"age": {"$gte": 18}}` renders as `"age" >= $1`.
COMPARISON_OPERATORS = {
    '$eq': '=',       # Equal
    '$ne': '<>',      # Not Equal
    '$gt': '>',       # Greater Than
    '$gte': '>=',     # Greater Than or Equal
    '$lt': '<',       # Less Than
    '$lte': '<=',     # Less Than or Equal
}

# Pattern operators; the operand is a partial string, not a full field value.
PATTERN_OPERATORS = {
    '$like': 'LIKE',
    '$ilike': 'ILIKE',        # case-insensitive
    '$nlike': 'NOT LIKE',
    '$nilike': 'NOT ILIKE',
}

# Operators that expect a list of values.
LIST_OPERATORS = {'$in': False, '$nin': True}  # value: negated

# Operators taking a boolean flag rather than a field value.
NULL_OPERATORS = {'$null': False, '$notNull': True}  # value: negated when flag is true

# Logical operators, usable at the top level or within a field.
LOGICAL_OPERATORS = {'$or': 'OR', '$and': 'AND'}

# Keys whose values are never validated against the field type.
UNVALIDATED_OPERATORS = set(PATTERN_OPERATORS) | set(NULL_OPERATORS)
