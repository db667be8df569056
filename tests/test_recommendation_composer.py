"""
Tests for the Recommendation Composer: unit conversion, costs, secondary
fertilizer choice, soil diagnosis and input re-validation.
"""
import json

import pytest

from agricure.services.fallback_selector import FertilizerChoice
from agricure.services.recommendation_composer import (
    FarmProfile,
    ValidationError,
    compose,
    convert_to_hectares,
    convert_from_hectares,
    format_currency,
    select_secondary_fertilizer,
    validate_inputs,
)
from agricure.services.recommendation_rules import RecommendationConfig
from agricure.services.soil_health_scorer import SensorReading


@pytest.fixture
def reading():
    return SensorReading(
        nitrogen=85,
        phosphorus=65,
        potassium=58,
        ph=5.2,
        soil_moisture=28,
        ambient_temperature=24,
        humidity=58,
    )


@pytest.fixture
def farm():
    return FarmProfile(field_name="North Plot", field_size=2, size_unit="hectares", crop_type="Wheat")


@pytest.fixture
def dap():
    return FertilizerChoice("DAP", 92.0, "fallback")


class TestUnitConversion:

    def test_acres_round_trip(self):
        hectares = convert_to_hectares(5.5, "acres")
        assert hectares == pytest.approx(2.225773)
        assert convert_from_hectares(hectares, "acres") == pytest.approx(5.5, abs=1e-6)

    def test_bigha(self):
        assert convert_to_hectares(10, "bigha") == pytest.approx(1.338)

    def test_hectares_and_aliases(self):
        assert convert_to_hectares(2, "hectares") == 2
        assert convert_to_hectares(2, "ha") == 2
        assert convert_to_hectares(2, "Acre") == pytest.approx(0.809372)

    def test_unknown_unit_treated_as_hectares(self):
        assert convert_to_hectares(3, "furlong") == 3
        assert convert_to_hectares(3, None) == 3

    def test_custom_table(self):
        assert convert_to_hectares(10, "acres", {"acres": 0.4}) == pytest.approx(4.0)


class TestCurrency:

    @pytest.mark.parametrize("amount,expected", [
        (0, "₹0"),
        (999, "₹999"),
        (1000, "₹1,000"),
        (17000, "₹17,000"),
        (123456, "₹1,23,456"),
        (12345678, "₹1,23,45,678"),
    ])
    def test_indian_grouping(self, amount, expected):
        assert format_currency(amount) == expected

    def test_custom_symbol(self):
        assert format_currency(2500, "Rs ") == "Rs 2,500"


class TestCompose:

    def test_quantities_and_costs_for_two_hectares(self, farm, reading, dap):
        rec = compose(farm, reading, dap)

        assert rec.crop_name == "Wheat"
        assert rec.field_size_hectares == 2
        assert rec.primary_fertilizer.name == "DAP"
        assert rec.primary_fertilizer.amount_kg == 200
        assert rec.primary_fertilizer.amount == "200 kg"
        assert rec.primary_fertilizer.npk == "18-46-0"

        cost = rec.cost_estimate
        assert (cost.primary, cost.secondary, cost.organic) == (8000, 5000, 4000)
        assert cost.total == 17000
        assert cost.currency == "INR"
        assert cost.formatted["total"] == "₹17,000"

    def test_total_is_sum_of_rounded_parts(self, reading, dap):
        farm = FarmProfile(field_size=5.5, size_unit="acres", crop_type=1)
        rec = compose(farm, reading, dap)
        cost = rec.cost_estimate

        assert rec.primary_fertilizer.amount_kg == 223
        assert (cost.primary, cost.secondary, cost.organic) == (8903, 5564, 4452)
        assert cost.total == cost.primary + cost.secondary + cost.organic == 18919

    def test_organic_options_scale_with_area(self, farm, reading, dap):
        rec = compose(farm, reading, dap)
        amounts = {o.name: o.amount_kg for o in rec.organic_options}
        assert amounts == {"Vermicompost": 2000, "Neem Cake": 400, "Bone Meal": 300}

    def test_timing(self, farm, reading, dap):
        rec = compose(farm, reading, dap)
        assert set(rec.application_timing) == {"primary", "secondary", "organic"}

    def test_unknown_ml_fertilizer_gets_generic_reason(self, farm, reading):
        rec = compose(farm, reading, FertilizerChoice("SuperGrow", 81.0, "ml"))
        assert rec.primary_fertilizer.reason == "ML model recommends this fertilizer for Wheat"
        assert rec.primary_fertilizer.npk is None
        assert rec.ml_prediction.source == "ml"

    def test_unknown_crop_name(self, reading, dap):
        rec = compose(FarmProfile(crop_type="Tomato"), reading, dap)
        assert rec.crop_name == "Unknown"

    def test_custom_config(self, reading, dap):
        config = RecommendationConfig(primary_cost_per_ha=5000.0, currency_symbol="Rs ")
        rec = compose(FarmProfile(field_size=1), reading, dap, config=config)
        assert rec.cost_estimate.primary == 5000
        assert rec.cost_estimate.formatted["primary"] == "Rs 5,000"

    def test_to_dict_is_json_serializable(self, farm, reading, dap):
        data = compose(farm, reading, dap).to_dict()
        encoded = json.loads(json.dumps(data))
        assert encoded["soil_health"]["category"] == "Good"
        assert encoded["ml_prediction"]["fertilizer"] == "DAP"
        assert encoded["cost_estimate"]["total"] == 17000


class TestSecondaryAndSoilCondition:

    def test_potassium_deficiency(self, farm, reading, dap):
        rec = compose(farm, reading, dap)
        assert rec.secondary_fertilizer.name == "Potassium sulfate"
        assert rec.secondary_fertilizer.amount_kg == 80

    def test_phosphorus_deficiency_takes_priority(self):
        assert select_secondary_fertilizer(["Phosphorus", "Potassium"]) == "DAP"
        assert select_secondary_fertilizer(["Nitrogen"]) == "Organic Compost"
        assert select_secondary_fertilizer([]) == "Organic Compost"

    def test_acidic_dry_field_advice(self, farm, reading, dap):
        condition = compose(farm, reading, dap).soil_condition
        assert condition.ph_status == "Acidic"
        assert condition.moisture_status == "Low"
        assert condition.nutrient_deficiency == ["Potassium"]
        assert "Adjust soil pH using lime" in condition.recommendations
        assert "Increase irrigation frequency" in condition.recommendations
        assert "Address Potassium deficiency" in condition.recommendations

    def test_alkaline_wet_field_advice(self, farm, dap):
        wet = SensorReading(
            nitrogen=100, phosphorus=40, potassium=200, ph=8.2,
            soil_moisture=90, ambient_temperature=25, humidity=60,
        )
        rec = compose(farm, wet, dap)
        assert "Adjust soil pH using sulfur" in rec.soil_condition.recommendations
        assert "Improve drainage" in rec.soil_condition.recommendations
        assert "Nutrient levels are adequate" in rec.soil_condition.recommendations
        assert rec.secondary_fertilizer.name == "Organic Compost"
        assert rec.secondary_fertilizer.amount_kg == 2000


class TestValidation:

    def test_numeric_strings_accepted(self, reading):
        field_size, cleaned = validate_inputs(FarmProfile(field_size="2.5"), reading)
        assert field_size == 2.5
        assert cleaned.nitrogen == 85.0

    @pytest.mark.parametrize("field_size", ["abc", None, float("nan"), 0, -1])
    def test_bad_field_size(self, reading, dap, field_size):
        with pytest.raises(ValidationError) as exc_info:
            compose(FarmProfile(field_size=field_size), reading, dap)
        assert any("field_size" in error for error in exc_info.value.errors)

    @pytest.mark.parametrize("field_size", [1e306, 1.7e308, 1_000_001])
    def test_oversized_field_rejected(self, reading, dap, field_size):
        with pytest.raises(ValidationError) as exc_info:
            compose(FarmProfile(field_size=field_size, crop_type=1), reading, dap)
        assert any("at most" in error for error in exc_info.value.errors)

    def test_largest_field_is_priced(self, reading, dap):
        rec = compose(FarmProfile(field_size=1_000_000, crop_type=1), reading, dap)
        assert rec.cost_estimate.total == 8_500_000_000

    def test_conversion_overflow_rejected(self, reading, dap):
        farm = FarmProfile(field_size=100, size_unit="hectares")
        with pytest.raises(ValidationError) as exc_info:
            compose(farm, reading, dap, unit_conversion={"hectares": 1e305})
        assert "too large to price" in exc_info.value.errors[0]

    def test_validated_types(self, reading):
        field_size, cleaned = validate_inputs(FarmProfile(field_size=3), reading)
        assert isinstance(field_size, float)
        assert isinstance(cleaned, SensorReading)

    def test_nan_nitrogen_rejected(self, farm, reading, dap):
        bad = SensorReading(
            nitrogen=float("nan"), phosphorus=65, potassium=58, ph=5.2,
            soil_moisture=28, ambient_temperature=24, humidity=58,
        )
        with pytest.raises(ValidationError):
            compose(farm, bad, dap)

    def test_all_errors_reported(self, reading):
        bad = SensorReading(
            nitrogen="abc", phosphorus=65, potassium=58, ph=None,
            soil_moisture=28, ambient_temperature=24, humidity=float("inf"),
        )
        with pytest.raises(ValidationError) as exc_info:
            validate_inputs(FarmProfile(field_size=1), bad)

        errors = exc_info.value.errors
        assert len(errors) == 3
        assert str(exc_info.value).startswith("Please check your inputs: ")
