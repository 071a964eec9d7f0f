import math
from unittest.mock import AsyncMock, MagicMock

import anyio
import pytest

from fieldbind import (
    CollectingSink,
    Constraint,
    Definition,
    DiagnosticKind,
    FieldNotFoundError,
    Unset,
)


def _definition(sink=None, **validators):
    def configure(define, validate):
        define("a.b", type=int, required=True)
        define("a.c", type=int)
        define("d", type=float)
        for name, fn in validators.items():
            validate(name, fn)

    return Definition(sink=sink).configure(configure)


class TestStructure:
    def test_fields_follow_definition_order(self, address_definition):
        model = address_definition.model()
        assert [f.name for f in model.fields] == [
            "name",
            "age",
            "address.city",
            "address.zip",
        ]
        assert len(model) == 4
        assert "address.city" in model
        assert "address" not in model

    def test_validator_names(self, address_definition):
        assert address_definition.model().validator_names == ["adult"]

    def test_get_returns_coerced_value(self, address_definition):
        model = address_definition.model()
        model.field("age").set_value("30")
        assert model.get("age") == 30

    def test_get_unknown_field(self, address_definition):
        model = address_definition.model()
        with pytest.raises(FieldNotFoundError):
            model.get("address")
        with pytest.raises(KeyError):
            model.get("nope")

    def test_dirty_when_any_field_dirty(self, address_definition):
        model = address_definition.model()
        assert model.dirty is False
        model.field("name").set_value("Ada")
        assert model.dirty is True


class TestPlainObj:
    def test_shared_prefix_is_merged(self):
        model = _definition().model()
        model.field("a.b").set_value(1)
        model.field("a.c").set_value(2)
        model.field("d").set_value("0.5")

        assert model.plain_obj() == {"a": {"b": 1, "c": 2}, "d": 0.5}

    def test_unset_values_are_none(self):
        model = _definition().model()
        assert model.plain_obj() == {"a": {"b": None, "c": None}, "d": None}

    def test_fresh_tree_on_every_call(self):
        model = _definition().model()
        model.field("a.b").set_value(1)

        first = model.plain_obj()
        first["a"]["b"] = 99
        first["extra"] = True

        assert model.plain_obj() == {"a": {"b": 1, "c": None}, "d": None}
        assert model.get("a.b") == 1

    def test_key_order_follows_fields(self):
        model = _definition().model()
        assert list(model.plain_obj()) == ["a", "d"]
        assert list(model.plain_obj()["a"]) == ["b", "c"]


class TestSubscriptions:
    def test_field_change_notifies_model(self, address_definition):
        model = address_definition.model()
        listener = MagicMock()
        assert model.subscribe(listener) is model

        model.field("name").set_value("Ada")

        listener.assert_called_once_with(model)

    @pytest.mark.parametrize("toggle", [True, False])
    def test_set_valid_and_invalid(self, address_definition, toggle):
        model = address_definition.model()
        listener = MagicMock()
        model.subscribe(listener)

        model.set_valid(toggle)
        assert (model.valid, model.invalid) == (toggle, not toggle)
        model.set_invalid(toggle)
        assert (model.valid, model.invalid) == (not toggle, toggle)
        assert listener.call_count == 2

    def test_prune_resets_every_field(self, address_definition):
        model = address_definition.model()
        for f in model:
            f.set_value("x")
            f.set_invalid(True)

        model.prune()

        assert all(f.valid is None and f.invalid is None for f in model)
        assert all(f.raw_value == "x" for f in model)


class TestValidate:
    @pytest.mark.anyio
    async def test_invalid_field_skips_cross_field_validators(self, sink):
        rule = AsyncMock(return_value=True)
        model = _definition(sink, rule=rule).model()

        assert await model.validate() is False
        assert model.valid is False
        assert model.invalid is True
        assert model.field("a.b").invalid_reason == "required"
        rule.assert_not_awaited()

    @pytest.mark.anyio
    async def test_all_valid(self):
        rule = AsyncMock(return_value=True)
        model = _definition(rule=rule).model()
        model.field("a.b").set_value(1)

        assert await model.validate() is True
        assert model.valid is True
        assert model.invalid is False
        rule.assert_awaited_once_with(model)

    @pytest.mark.anyio
    async def test_scoped_run_selects_one_validator(self, sink):
        rule_x = AsyncMock(return_value=False)
        rule_y = AsyncMock(return_value=True)
        model = _definition(sink, ruleX=rule_x, ruleY=rule_y).model()
        model.field("a.b").set_value(1)

        assert await model.validate("ruleX") is False
        assert model.invalid is True
        rule_x.assert_awaited_once_with(model)
        rule_y.assert_not_awaited()

        (event,) = sink.of_kind(DiagnosticKind.VALIDATOR_FAILED)
        assert event.subject == "ruleX"

    @pytest.mark.anyio
    async def test_scoped_run_skips_field_phase(self):
        model = _definition(ruleY=AsyncMock(return_value=True)).model()

        assert await model.validate("ruleY") is True
        assert model.field("a.b").valid is None

    @pytest.mark.anyio
    async def test_unknown_name_selects_nothing(self):
        rule = AsyncMock(return_value=False)
        model = _definition(rule=rule).model()

        assert await model.validate("missing") is True
        rule.assert_not_awaited()

    @pytest.mark.anyio
    async def test_sync_validators_are_supported(self):
        model = _definition(positive=lambda m: m.get("a.b") > 0).model()
        model.field("a.b").set_value("-3")

        assert await model.validate() is False
        assert model.field("a.b").valid is True

    @pytest.mark.anyio
    async def test_every_failing_validator_is_reported(self, sink):
        model = _definition(
            sink,
            first=AsyncMock(return_value=False),
            second=AsyncMock(return_value=False),
            third=AsyncMock(return_value=True),
        ).model()
        model.field("a.b").set_value(1)

        assert await model.validate() is False
        subjects = {e.subject for e in sink.of_kind(DiagnosticKind.VALIDATOR_FAILED)}
        assert subjects == {"first", "second"}

    @pytest.mark.anyio
    async def test_validator_errors_propagate(self):
        model = _definition(broken=AsyncMock(side_effect=ValueError("bad"))).model()
        model.field("a.b").set_value(1)

        with pytest.raises(ValueError, match="bad"):
            await model.validate()

    @pytest.mark.anyio
    async def test_fields_validate_concurrently(self):
        gate = anyio.Event()

        async def wait_for_gate(value):
            await gate.wait()
            return True

        async def open_gate(value):
            gate.set()
            return True

        def configure(define, validate):
            define("waits", extra_validation=wait_for_gate)
            define("opens", extra_validation=open_gate)

        model = Definition().configure(configure).model()
        model.field("waits").set_value("x")
        model.field("opens").set_value("y")

        with anyio.fail_after(1):
            assert await model.validate() is True

    @pytest.mark.anyio
    async def test_validators_run_concurrently(self):
        gate = anyio.Event()

        async def wait_for_gate(model):
            await gate.wait()
            return True

        async def open_gate(model):
            gate.set()
            return True

        model = Definition().configure(
            lambda define, validate: (
                validate("waits", wait_for_gate),
                validate("opens", open_gate),
            )
        ).model()

        with anyio.fail_after(1):
            assert await model.validate() is True

    @pytest.mark.anyio
    async def test_field_errors_do_not_abort_the_pass(self, sink):
        def configure(define, validate):
            define("flaky", extra_validation=AsyncMock(side_effect=OSError()))
            define("fine", required=True)

        model = Definition(sink=sink).configure(configure).model()
        model.field("flaky").set_value("x")
        model.field("fine").set_value("y")

        assert await model.validate() is False
        assert model.field("flaky").invalid_reason == "unknown error"
        assert model.field("fine").valid is True


class TestLoadAndClear:
    def test_load_nested(self, address_definition):
        model = address_definition.model()
        model.load({"name": "Ada", "address": {"city": "Lyon"}})

        assert model.get("name") == "Ada"
        assert model.get("address.city") == "Lyon"
        assert model.field("address.zip").value is Unset
        assert model.field("address.zip").dirty is None

    def test_load_dotted_keys(self, address_definition):
        model = address_definition.model()
        assert model.load({"age": "40", "address.zip": "69001"}) is model
        assert model.plain_obj()["address"]["zip"] == "69001"
        assert model.get("age") == 40

    def test_dotted_key_wins(self, address_definition):
        model = address_definition.model()
        model.load({"address.city": "Paris", "address": {"city": "Lyon"}})
        assert model.get("address.city") == "Paris"

    def test_load_reports_ignored_keys(self, address_definition, sink):
        model = address_definition.model()
        model.load({"name": "Ada", "nickname": "A", "address.country": "FR"})

        (event,) = sink.of_kind(DiagnosticKind.LOAD_IGNORED)
        assert event.details["keys"] == ["address.country", "nickname"]

    def test_load_keeps_other_values(self, address_definition):
        model = address_definition.model()
        model.field("name").set_value("Ada")
        model.load({"age": 3})
        assert model.get("name") == "Ada"

    @pytest.mark.anyio
    async def test_clear(self, address_definition):
        model = address_definition.model()
        model.load({"name": "Ada"})
        await model.validate()
        listener = MagicMock()
        model.subscribe(listener)

        model.clear()

        assert model.valid is None
        assert model.invalid is None
        assert all(f.value is Unset and f.dirty is None for f in model)
        assert listener.call_count == len(model) + 1

    def test_load_reports_non_string_keys(self, address_definition, sink):
        model = address_definition.model()
        model.load({"name": "Ada", 1: "x"})

        assert model.get("name") == "Ada"
        (event,) = sink.of_kind(DiagnosticKind.LOAD_IGNORED)
        assert event.details["keys"] == ["1"]


class TestBlankNumbers:
    @pytest.mark.anyio
    async def test_blank_optional_int_field(self, address_definition):
        model = address_definition.model()
        model.load({"name": "Ada", "address": {"city": "Lyon"}})
        model.field("age").set_value("")

        assert model.plain_obj()["age"] == 0
        assert await model.validate() is False
        assert model.field("age").valid is True
        assert model.invalid is True

    @pytest.mark.anyio
    async def test_blank_then_filled(self, address_definition):
        model = address_definition.model()
        model.load({"name": "Ada", "age": "", "address.city": "Lyon"})
        assert await model.validate("adult") is False

        model.field("age").set_value("21")
        assert await model.validate() is True
        assert model.plain_obj()["age"] == 21


class TestSinkInjection:
    @pytest.mark.anyio
    async def test_empty_sink_reaches_fields(self):
        empty = CollectingSink()
        model = Definition(sink=empty).configure(
            lambda define, validate: define("a", required=True)
        ).model()

        await model.validate()

        assert [e.kind for e in empty.events] == [DiagnosticKind.FIELD_INVALID]


class TestIndependence:
    def test_models_do_not_share_fields(self, address_definition):
        first = address_definition.model()
        second = address_definition.model()

        first.field("name").set_value("Ada")

        assert second.field("name").value is Unset
        assert first.field("name") is not second.field("name")

    def test_models_share_constraints(self, address_definition):
        first = address_definition.model()
        second = address_definition.model()
        assert first.field("age").constraint is second.field("age").constraint

    @pytest.mark.anyio
    async def test_validation_state_is_per_model(self, address_definition):
        first = address_definition.model()
        second = address_definition.model()

        await first.validate()

        assert first.valid is False
        assert second.valid is None
        assert second.field("name").invalid is None

    def test_nan_number(self):
        model = _definition().model()
        model.field("d").set_value("n/a")
        assert math.isnan(model.get("d"))
