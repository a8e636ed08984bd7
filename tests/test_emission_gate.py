from decimal import Decimal

from cost_estimator import INSUFFICIENT_DEPTH, Filled
from emission_gate import Emission, EmissionGate


def test_initial_na_is_silent():
    gate = EmissionGate("S")
    assert gate.maybe_emit(INSUFFICIENT_DEPTH, 1) is None
    assert gate.is_na


def test_emits_on_change_and_suppresses_repeats():
    gate = EmissionGate("B")
    assert gate.maybe_emit(Filled(Decimal("20.00")), 1) == Emission(1, "B", Decimal("20.00"))
    assert gate.maybe_emit(Filled(Decimal("20.00")), 2) is None
    assert gate.maybe_emit(Filled(Decimal("21.50")), 3) == Emission(3, "B", Decimal("21.50"))


def test_na_emitted_once_on_transition():
    gate = EmissionGate("S")
    gate.maybe_emit(Filled(Decimal("5")), 1)
    assert gate.maybe_emit(INSUFFICIENT_DEPTH, 2) == Emission(2, "S", None)
    assert gate.maybe_emit(INSUFFICIENT_DEPTH, 3) is None


def test_leaving_na_always_emits_even_with_same_value():
    gate = EmissionGate("S")
    gate.maybe_emit(Filled(Decimal("5")), 1)
    gate.maybe_emit(INSUFFICIENT_DEPTH, 2)
    assert gate.maybe_emit(Filled(Decimal("5")), 3) == Emission(3, "S", Decimal("5"))
    assert not gate.is_na
    assert gate.last_value == Decimal("5")


def test_emission_format():
    assert Emission(28800758, "S", Decimal("8832.56")).format() == "28800758 S 8832.56"
    assert Emission(2, "B", Decimal("20")).format() == "2 B 20.00"
    assert Emission(3, "S", None).format() == "3 S NA"
    assert Emission(3, "S", None).to_dict() == {"timestamp": 3, "label": "S", "value": None}
