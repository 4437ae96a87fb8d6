import pytest

from factories import employee, overhead_type, snapshot
from ratehub.models.entities import (
    EmployeeActiveOverride,
    OverheadAllocationOverride,
    OverheadTypeActiveOverride,
    PricingView,
    SettingOverride,
)
from ratehub.services.effective_service import build_effective_dataset, resolve, resolve_active, resolve_share


@pytest.mark.parametrize("base", [True, False])
def test_resolve_active_without_override(base):
    assert resolve_active(base, None) == (base, False)


@pytest.mark.parametrize("base", [True, False])
@pytest.mark.parametrize("override", [True, False])
def test_resolve_active_with_override(base, override):
    assert resolve_active(base, override) == (override, override != base)


def test_resolve_keeps_falsy_overrides():
    assert resolve(0.5, 0.0) == 0.0
    assert resolve("base", None) == "base"


def test_resolve_share_defaults_to_zero():
    assert resolve_share(None, None) == 0.0
    assert resolve_share(0.4, None) == 0.4
    assert resolve_share(None, 0.3) == 0.3


def _scenario_snapshot():
    return snapshot(
        employees=[employee("dev-1", shares={"office": 0.6}), employee("dev-2", shares={"office": 0.4})],
        overhead_types=[overhead_type("office", 1200), overhead_type("travel", 600)],
        views=[PricingView(id="lean", name="Lean"), PricingView(id="other", name="Other")],
        employee_active_overrides=[
            EmployeeActiveOverride(view_id="lean", employee_id="dev-2", is_active=False),
            EmployeeActiveOverride(view_id="other", employee_id="dev-1", is_active=False),
        ],
        overhead_type_active_overrides=[
            OverheadTypeActiveOverride(view_id="lean", overhead_type_id="travel", is_active=False),
        ],
        setting_overrides=[
            SettingOverride(view_id="lean", key="margin", value="0.3"),
            SettingOverride(view_id="lean", key="exchange_ratio", value="4"),
        ],
        allocation_overrides=[
            OverheadAllocationOverride(view_id="lean", employee_id="dev-1", overhead_type_id="office", share=1.0),
            OverheadAllocationOverride(view_id="lean", employee_id="dev-1", overhead_type_id="travel", share=0.5),
        ],
    )


def test_base_dataset_ignores_every_override():
    dataset = build_effective_dataset(_scenario_snapshot())

    assert [e.id for e in dataset.active_employees] == ["dev-1", "dev-2"]
    assert [t.id for t in dataset.active_overhead_types] == ["office", "travel"]
    assert dataset.settings["margin"] == 0.2
    assert "exchange_ratio" not in dataset.settings
    assert dataset.employees[0].shares == {"office": 0.6}


def test_scenario_overrides_apply_only_to_their_view():
    dataset = build_effective_dataset(_scenario_snapshot(), "lean")

    assert [e.id for e in dataset.active_employees] == ["dev-1"]
    assert dataset.employees[1].is_overridden
    assert not dataset.employees[0].is_overridden
    assert [t.id for t in dataset.active_overhead_types] == ["office"]
    assert dataset.settings["margin"] == 0.3
    assert dataset.settings["exchange_ratio"] == 4.0
    assert dataset.employees[0].shares == {"office": 1.0, "travel": 0.5}


def test_override_matching_base_is_not_flagged():
    snap = snapshot(
        employees=[employee("dev-1")],
        employee_active_overrides=[EmployeeActiveOverride(view_id="s", employee_id="dev-1", is_active=True)],
    )
    dataset = build_effective_dataset(snap, "s")
    assert dataset.employees[0].is_active
    assert not dataset.employees[0].is_overridden


def test_last_override_row_wins():
    snap = snapshot(
        employees=[employee("dev-1")],
        setting_overrides=[
            SettingOverride(view_id="s", key="risk", value="0.2"),
            SettingOverride(view_id="s", key="risk", value="0.4"),
        ],
    )
    assert build_effective_dataset(snap, "s").settings["risk"] == 0.4


def test_malformed_settings_are_recorded():
    values = {"margin": "abc", "risk": "0.1", "flag": "maybe"}
    snap = snapshot(setting_values=values)
    snap = snap.model_copy(update={"settings": [s.model_copy(update={"value_type": "boolean"}) if s.key == "flag" else s for s in snap.settings]})

    dataset = build_effective_dataset(snap)

    assert dataset.settings["margin"] == 0.0
    assert dataset.settings["flag"] == 0.0
    assert dataset.malformed_settings == ["margin", "flag"]


def test_partly_numeric_setting_parses_but_is_flagged():
    dataset = build_effective_dataset(snapshot(setting_values={"margin": "0.25abc", "risk": "0.1"}))

    assert dataset.settings["margin"] == 0.25
    assert dataset.malformed_settings == ["margin"]
