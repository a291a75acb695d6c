from closura import (
    Variant, Closure, Scope, ClosuraError, MissingMethod, MissingProperty, AmbiguousOverload,
    InvalidReceiver, InitializationFailure, ConfigError,
)


class Dog: pass


class Handler(Closure):
    pass


def _body(*args):
    return args


def test_missing_method_message_and_fields():
    err = MissingMethod("greet", Scope, (int, None))
    assert str(err) == "No signature of method: Scope.greet() is applicable for argument types: [int, null]"
    assert err.method == "greet"
    assert err.receiver_type is Scope
    assert err.arg_types == (int, None)
    assert err.sender is None
    assert isinstance(err, ClosuraError)


def test_missing_method_names_sender():
    sender = Handler(Scope())
    err = MissingMethod("do_call", Handler, (), sender)
    assert str(err).endswith("[] (called from closure Handler)")
    assert err.sender is sender


def test_ambiguous_overload_lists_candidates():
    left = Variant("left", (Dog, object), _body)
    right = Variant("right", (object, Dog), _body)
    err = AmbiguousOverload("do_call", Handler, (Dog, Dog), [left, right])
    assert str(err) == (
        "Ambiguous method overloading for method Handler#do_call.\n"
        "Cannot resolve which method to invoke for [Dog, Dog] due to overlapping prototypes between:"
        "\n\tleft(Dog, object)\n\tright(object, Dog)"
    )
    assert err.signatures == [left, right]
    assert isinstance(err, TypeError)


def test_other_errors():
    assert str(MissingProperty("x", Dog)) == "No such property: x for class: Dog"
    assert str(InvalidReceiver("run")) == "Cannot invoke method: run on null object"
    assert str(InvalidReceiver(None)) == "Cannot invoke method: <unknown> on null object"
    assert str(InitializationFailure(Handler)) == "Should have an invocation adapter for Handler"
    assert isinstance(InitializationFailure(Handler), RuntimeError)
    err = ConfigError("bad <value> & more")
    assert str(err) == "Invalid configuration: bad <value> & more"
    assert err.context == {"message": "bad <value> & more"}
