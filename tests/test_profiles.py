"""Tests for the design rule presets."""

import pytest

from tapeplace.dfm.profiles import DEFAULT_RULES, DRCRules, get_rules, list_rules


class TestPresets:
    """Tests for the rule registry."""

    def test_list_rules_sorted(self):
        assert list_rules() == ["default", "fine_nozzle", "wide_tape"]

    def test_default_values(self):
        rules = get_rules("default")
        assert rules.min_spacing == 1.0
        assert rules.min_wall == 0.8
        assert rules.nozzle_width == 0.4
        assert rules.layer_height == 0.2
        assert rules.min_bend_radius == 2.0
        assert rules.min_pad_clearance == 0.5

    @pytest.mark.parametrize("name,spacing,wall,nozzle,bend", [
        ("fine_nozzle", 0.6, 0.5, 0.25, 1.5),
        ("wide_tape", 2.0, 1.2, 0.6, 5.0),
    ])
    def test_preset_values(self, name, spacing, wall, nozzle, bend):
        rules = get_rules(name)
        assert rules.name == name
        assert rules.min_spacing == spacing
        assert rules.min_wall == wall
        assert rules.nozzle_width == nozzle
        assert rules.min_bend_radius == bend

    def test_get_rules_returns_copy(self):
        """Editing a fetched rule set leaves the registry alone."""
        rules = get_rules("default")
        rules.min_spacing = 42.0
        assert get_rules("default").min_spacing == 1.0
        assert DEFAULT_RULES.min_spacing == 1.0

    def test_unknown_rule_set(self):
        with pytest.raises(ValueError, match="Unknown DRC rule set"):
            get_rules("laser_cut")


class TestDRCRules:
    """Tests for the rule checks and serialization."""

    def test_validators(self):
        rules = DRCRules()
        assert rules.validate_spacing(1.0)
        assert not rules.validate_spacing(0.99)
        assert rules.validate_wall(0.8)
        assert not rules.validate_wall(0.5)

    def test_endpoint_exemption_off_by_default(self):
        assert all(not get_rules(name).exempt_route_endpoints for name in list_rules())

    def test_from_dict_keeps_flags_boolean(self):
        rules = DRCRules.from_dict({"exempt_route_endpoints": True, "min_wall": 1})
        assert rules.exempt_route_endpoints is True
        assert rules.min_wall == 1.0

    def test_from_dict_ignores_unknown_keys(self):
        rules = DRCRules.from_dict({"name": "mine", "min_spacing": "1.5", "laser_power": 80})
        assert rules.name == "mine"
        assert rules.min_spacing == 1.5
        assert rules.min_wall == 0.8

    def test_dict_round_trip(self):
        rules = get_rules("fine_nozzle")
        assert DRCRules.from_dict(rules.to_dict()) == rules
