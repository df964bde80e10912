"""Property-based tests for query string translation."""

from hypothesis import given
from hypothesis import strategies as st

from tourapi.services.api_features import OPERATOR_MAP, RESERVED_PARAMS, parse_filter, parse_sort

# Strategies for generating query parameters
field_names = st.text(alphabet=st.characters(categories=("Ll", "Lu")), min_size=1, max_size=12)
values = st.text(alphabet=st.characters(categories=("L", "N")), max_size=10)
operators = st.sampled_from(sorted(OPERATOR_MAP))


@given(
    plain=st.dictionaries(field_names, values, max_size=8),
    ranged=st.dictionaries(st.tuples(field_names, operators), values, max_size=8),
    reserved=st.dictionaries(st.sampled_from(sorted(RESERVED_PARAMS)), values),
)
def test_one_clause_per_non_reserved_key(plain, ranged, reserved):
    """Each non-reserved key becomes exactly one clause, ranged iff bracketed."""
    params = dict(reserved)
    params.update({key: value for key, value in plain.items() if key not in RESERVED_PARAMS})
    params.update({f"{field}[{op}]": value for (field, op), value in ranged.items()})

    clauses = parse_filter(params)

    expected = len(params) - len(reserved)
    assert len(clauses) == expected
    for clause in clauses:
        assert (clause.operator in OPERATOR_MAP) == (f"{clause.field}[{clause.operator}]" in params)


@given(st.lists(st.tuples(field_names, st.booleans()), min_size=1, max_size=6))
def test_sort_keys_keep_priority_and_direction(keys):
    """Sort strings round-trip into ordered (field, descending) pairs."""
    raw = ",".join(("-" if descending else "") + field for field, descending in keys)
    assert parse_sort(raw) == keys
