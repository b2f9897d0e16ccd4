# tests/test_type_predicates.py
"""
Tests for the type classifier and structure walker.
"""

import logging

import pytest
from unittest.mock import MagicMock

from tsanalysis_shims.type_flags import ObjectFlags, TypeFlags
from tsanalysis_shims.type_predicates import (
    BigIntLiteralType,
    TemplateLiteralType,
    TypeClassifier,
    TypeReference,
    TypeSystemAccessor,
    as_bigint_literal_type,
    as_template_literal_type,
    as_type_reference,
    get_type_flags,
    is_nullable_type,
    is_type_any_array_type,
    is_type_any_type,
    is_type_array_type_or_union_of_array_types,
    is_type_bigint_literal_type,
    is_type_flag_set,
    is_type_never_type,
    is_type_reference_type,
    is_type_template_literal_type,
    is_type_unknown_array_type,
    is_type_unknown_type,
    logging_sink,
    type_is_or_has_base_type,
    union_type_parts,
)
from tests.conftest import make_array, make_type, make_union


NULLABLE_MEMBERS = [
    TypeFlags.Any,
    TypeFlags.Unknown,
    TypeFlags.Null,
    TypeFlags.Undefined,
    TypeFlags.Void,
]

NON_NULLABLE_MEMBERS = [
    TypeFlags.String,
    TypeFlags.Number,
    TypeFlags.Boolean,
    TypeFlags.Never,
    TypeFlags.Object,
    TypeFlags.BigIntLiteral,
    TypeFlags.TemplateLiteral,
    TypeFlags.TypeParameter,
]


class TestUnionDecomposition:

    def test_non_union_is_singleton(self, string_type):
        assert union_type_parts(string_type) == [string_type]

    def test_union_parts_in_order(self, string_type, any_type):
        union = make_union(string_type, any_type)
        assert union_type_parts(union) == [string_type, any_type]

    def test_decomposition_is_idempotent(self, string_type):
        parts = union_type_parts(string_type)
        assert union_type_parts(parts[0]) == parts

    def test_effective_flags_combine_parts(self, string_type):
        union = make_union(string_type, make_type(TypeFlags.Undefined))
        assert get_type_flags(union) == TypeFlags.String | TypeFlags.Undefined

    def test_receiver_accepts_any(self, any_type):
        assert not is_type_flag_set(any_type, TypeFlags.String)
        assert is_type_flag_set(any_type, TypeFlags.String, is_receiver=True)


class TestFlagClassifier:

    @pytest.mark.parametrize("flag", NULLABLE_MEMBERS)
    def test_nullable_members(self, flag):
        assert is_nullable_type(make_type(flag))

    @pytest.mark.parametrize("flag", NON_NULLABLE_MEMBERS)
    def test_non_nullable_members(self, flag):
        assert not is_nullable_type(make_type(flag))

    def test_nullable_with_extra_flags(self):
        assert is_nullable_type(make_type(TypeFlags.Null | TypeFlags.Object))

    def test_optional_string_is_nullable(self, string_type):
        assert is_nullable_type(make_union(string_type, make_type(TypeFlags.Undefined)))

    def test_never(self, string_type):
        assert is_type_never_type(make_type(TypeFlags.Never))
        assert not is_type_never_type(string_type)

    def test_unknown(self, unknown_type, any_type):
        assert is_type_unknown_type(unknown_type)
        assert not is_type_unknown_type(any_type)

    def test_any(self, any_type, unknown_type):
        assert is_type_any_type(any_type)
        assert not is_type_any_type(unknown_type)

    def test_bigint_literal(self):
        lit = make_type(
            TypeFlags.BigIntLiteral,
            value={"negative": False, "base10Value": "10"},
        )
        assert is_type_bigint_literal_type(lit)
        assert not is_type_bigint_literal_type(make_type(TypeFlags.BigInt))

    def test_template_literal(self):
        tpl = make_type(TypeFlags.TemplateLiteral, texts=["a-", ""])
        assert is_type_template_literal_type(tpl)
        assert not is_type_template_literal_type(make_type(TypeFlags.StringLiteral))


class TestErrorAnySink:

    def test_error_any_is_still_any(self):
        seen = []
        clf = TypeClassifier(sink=seen.append)
        error_any = make_type(TypeFlags.Any, intrinsic_name="error")
        assert clf.is_type_any_type(error_any)
        assert seen == ['Found an "error" any type']

    def test_explicit_any_reports_nothing(self, any_type):
        seen = []
        clf = TypeClassifier(sink=seen.append)
        assert clf.is_type_any_type(any_type)
        assert seen == []

    def test_default_sink_is_silent(self):
        error_any = make_type(TypeFlags.Any, intrinsic_name="error")
        assert TypeClassifier().is_type_any_type(error_any)

    def test_logging_sink(self, caplog):
        logger = logging.getLogger("tsanalysis_shims.test")
        clf = TypeClassifier(sink=logging_sink(logger))
        with caplog.at_level(logging.DEBUG, logger="tsanalysis_shims.test"):
            clf.is_type_any_type(make_type(TypeFlags.Any, intrinsic_name="error"))
        assert 'Found an "error" any type' in caplog.text


class TestTypeReference:

    def test_object_reference(self):
        ref = make_type(TypeFlags.Object, object_flags=ObjectFlags.Reference)
        assert is_type_reference_type(ref)

    def test_object_without_reference_bit(self):
        iface = make_type(TypeFlags.Object, object_flags=ObjectFlags.Interface)
        assert not is_type_reference_type(iface)

    def test_non_qualifying_flags_short_circuit(self):
        # object_flags would say Reference, but it is undefined for strings.
        odd = MagicMock()
        odd.flags = TypeFlags.String
        type(odd).object_flags = property(
            lambda self: pytest.fail("object_flags must not be read")
        )
        assert not is_type_reference_type(odd)

    def test_missing_object_flags(self):
        assert not is_type_reference_type(make_type(TypeFlags.Object))

    def test_narrowed_view(self, string_type):
        ref = make_type(TypeFlags.Object, object_flags=ObjectFlags.Reference)
        view = as_type_reference(ref)
        assert isinstance(view, TypeReference)
        assert view.handle is ref
        assert view.object_flags & ObjectFlags.Reference
        assert as_type_reference(string_type) is None


class TestNarrowedLiterals:

    def test_bigint_view(self):
        value = {"negative": True, "base10Value": "42"}
        lit = make_type(TypeFlags.BigIntLiteral, value=value)
        view = as_bigint_literal_type(lit)
        assert isinstance(view, BigIntLiteralType)
        assert view.value == value

    def test_template_view(self, string_type):
        tpl = make_type(
            TypeFlags.TemplateLiteral, texts=["id-", ""], types=[string_type]
        )
        view = as_template_literal_type(tpl)
        assert isinstance(view, TemplateLiteralType)
        assert list(view.texts) == ["id-", ""]
        assert list(view.types) == [string_type]

    def test_no_view_when_predicate_fails(self, string_type):
        assert as_bigint_literal_type(string_type) is None
        assert as_template_literal_type(string_type) is None


class TestArrayPredicates:

    def test_accessor_protocol(self, checker):
        assert isinstance(checker, TypeSystemAccessor)

    def test_any_array(self, checker, any_type, string_type):
        assert is_type_any_array_type(make_array(any_type), checker)
        assert not is_type_any_array_type(make_array(string_type), checker)
        assert not is_type_any_array_type(any_type, checker)

    def test_unknown_array(self, checker, unknown_type, any_type):
        assert is_type_unknown_array_type(make_array(unknown_type), checker)
        assert not is_type_unknown_array_type(make_array(any_type), checker)

    def test_only_first_argument_examined(self, any_type, string_type):
        accessor = MagicMock()
        accessor.is_array_type.return_value = True
        accessor.get_type_arguments.return_value = [string_type, any_type]
        assert not is_type_any_array_type(MagicMock(), accessor)
        accessor.get_type_arguments.return_value = [any_type, string_type]
        assert is_type_any_array_type(MagicMock(), accessor)

    def test_array_without_arguments(self):
        accessor = MagicMock()
        accessor.is_array_type.return_value = True
        accessor.get_type_arguments.return_value = []
        assert not is_type_unknown_array_type(MagicMock(), accessor)

    def test_single_array(self, checker, string_type):
        assert is_type_array_type_or_union_of_array_types(
            make_array(string_type), checker
        )

    def test_union_of_three_arrays(self, checker, string_type, any_type, unknown_type):
        union = make_union(
            make_array(string_type), make_array(any_type), make_array(unknown_type)
        )
        assert is_type_array_type_or_union_of_array_types(union, checker)

    def test_union_with_non_array_member(self, checker, string_type, any_type):
        union = make_union(make_array(string_type), string_type, make_array(any_type))
        assert not is_type_array_type_or_union_of_array_types(union, checker)

    def test_non_array(self, checker, string_type):
        assert not is_type_array_type_or_union_of_array_types(string_type, checker)

    def test_empty_union_is_vacuously_true(self, checker):
        assert is_type_array_type_or_union_of_array_types(make_union(), checker)


class TestBaseTypes:

    def test_same_type(self):
        base = make_type(TypeFlags.Object, name="Base")
        assert type_is_or_has_base_type(base, base)

    def test_derived_through_base_chain(self):
        base = make_type(TypeFlags.Object, name="Base")
        mixin = make_type(TypeFlags.Object, name="Mixin")
        derived = make_type(TypeFlags.Object, name="Derived", base_types=[mixin, base])
        assert type_is_or_has_base_type(derived, base)
        assert not type_is_or_has_base_type(base, derived)

    def test_name_based_comparison(self):
        error_a = make_type(TypeFlags.Object, name="Error")
        error_b = make_type(TypeFlags.Object, name="Error")
        custom = make_type(TypeFlags.Object, name="HttpError", base_types=[error_a])
        assert type_is_or_has_base_type(custom, error_b)

    def test_missing_symbols(self, string_type):
        base = make_type(TypeFlags.Object, name="Base")
        anonymous = make_type(TypeFlags.Object, base_types=[base])
        assert not type_is_or_has_base_type(anonymous, base)
        assert not type_is_or_has_base_type(base, string_type)

    def test_no_base_types(self):
        thing = make_type(TypeFlags.Object, name="Thing")
        other = make_type(TypeFlags.Object, name="Other")
        assert not type_is_or_has_base_type(thing, other)

    def test_host_style_getters(self):
        base_symbol = MagicMock()
        base_symbol.name = "Base"
        parent = MagicMock()
        parent.get_symbol.return_value = base_symbol
        base = MagicMock()
        base.get_symbol.return_value = base_symbol
        derived_symbol = MagicMock()
        derived_symbol.name = "Derived"
        derived = MagicMock()
        derived.get_symbol.return_value = derived_symbol
        derived.get_base_types.return_value = [base]
        assert type_is_or_has_base_type(derived, parent)
