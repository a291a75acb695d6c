import numbers
from typing import Any, Optional

import pytest
from closura.closura_types import (
    ANY, Variant, STEP, VARARGS_PENALTY,
    type_of, types_of, is_compatible, type_distance, parameter_distance,
    is_valid_variant, normalize_annotation, signature_of,
)


class Animal: pass
class Dog(Animal): pass
class Puppy(Dog): pass


def _body(*args):
    return args


# --- Runtime types ---

def test_type_of_none_has_no_type():
    assert type_of(None) is None
    assert type_of(3) is int
    assert types_of([1, "a", None]) == (int, str, None)


# --- Compatibility ---

@pytest.mark.parametrize(
    "param,arg,coerce,expected",
    [
        (int, int, False, True),
        (Animal, Dog, False, True),
        (Dog, Animal, False, False),
        (ANY, str, False, True),
        (Dog, None, False, True),
        (int, bool, False, True),
        (numbers.Integral, int, False, True),
        (float, int, False, False),
        (float, int, True, True),
        (complex, float, True, True),
        (int, float, True, False),
        (str, int, True, False),
    ],
)
def test_is_compatible(param, arg, coerce, expected):
    assert is_compatible(param, arg, coerce) is expected


# --- Distance ---

def test_type_distance_follows_the_mro():
    assert type_distance(Dog, Dog) == 0
    assert type_distance(Dog, Puppy) == STEP
    assert type_distance(Animal, Puppy) == 2 * STEP
    assert type_distance(ANY, Puppy) == 3 * STEP


def test_virtual_base_and_widening_rank_between_real_bases_and_object():
    virtual = type_distance(numbers.Integral, int)
    widened = type_distance(float, int)
    anything = type_distance(ANY, int)
    assert 0 < virtual < widened < anything


def test_none_argument_prefers_the_most_general_parameter():
    assert type_distance(ANY, None) == 0
    assert type_distance(Animal, None) < type_distance(Dog, None) < type_distance(Puppy, None)


def test_parameter_distance_sums_slots_and_penalizes_varargs():
    fixed = Variant("f", (Animal, ANY), _body)
    assert parameter_distance(fixed, (Dog, int)) == STEP + STEP
    variadic = Variant("v", (Animal, ANY), _body, varargs=True)
    assert parameter_distance(variadic, (Dog, int, int)) == VARARGS_PENALTY + STEP + 2 * STEP


# --- Structural validity ---

def test_fixed_variant_needs_matching_count_and_types():
    v = Variant("f", (int, str), _body)
    assert is_valid_variant(v, (int, str))
    assert not is_valid_variant(v, (int,))
    assert not is_valid_variant(v, (str, str))
    assert is_valid_variant(v, (None, None))


def test_unary_variant_tolerates_zero_arguments():
    assert is_valid_variant(Variant("f", (int,), _body), ())
    assert not is_valid_variant(Variant("f", (int, int), _body), ())


def test_variadic_variant_checks_fixed_slots_and_tail_elements():
    v = Variant("v", (int, str), _body, varargs=True)
    assert is_valid_variant(v, (int,))
    assert is_valid_variant(v, (int, str, str))
    assert not is_valid_variant(v, (int, str, int))
    assert not is_valid_variant(v, ())


def test_optional_parameters_widen_the_accepted_count():
    v = Variant("f", (int, int, int), _body, optional=2)
    assert is_valid_variant(v, (int,))
    assert is_valid_variant(v, (int, int, int))
    assert not is_valid_variant(v, (int, int, int, int))


# --- Signatures ---

@pytest.mark.parametrize(
    "annotation,expected",
    [
        (Any, ANY),
        (int, int),
        (Optional[Dog], Dog),
        (int | None, int),
        (int | str, ANY),
        (list[int], list),
    ],
)
def test_normalize_annotation(annotation, expected):
    assert normalize_annotation(annotation) is expected


def test_signature_of_method_skips_receiver():
    class Host:
        def m(self, a: int, b, c: str = "x", *rest: float, flag=False):
            return a

    v = signature_of(Host.m, declaring_type=Host)
    assert v.name == "m"
    assert v.param_types == (int, ANY, str, float)
    assert v.varargs is True
    assert v.optional == 1
    assert v.fixed_types == (int, ANY, str)
    assert v.element_type is float
    assert v.declaring_type is Host


def test_signature_of_plain_function_keeps_first_parameter():
    def f(x: int):
        return x
    v = signature_of(f, skip_first=False)
    assert v.param_types == (int,)
    assert v.body is f


def test_signature_of_uninspectable_callable_is_variadic_any(monkeypatch):
    import inspect

    def boom(fn):
        raise ValueError("no signature")

    monkeypatch.setattr(inspect, "signature", boom)
    v = signature_of(len, name="len")
    assert v.param_types == (ANY,)
    assert v.varargs is True
