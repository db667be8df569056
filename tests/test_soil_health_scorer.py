"""
Tests for the Soil Health Scorer.

Covers the weighted index, category boundaries, per-parameter status and the
deficiency list, which is independent of the overall index.
"""
import dataclasses

import pytest

from agricure.services.soil_health_scorer import (
    SensorReading,
    SoilHealthCategory,
    ParameterStatus,
    score,
    classify_score,
    display_label,
    round_half_up,
    get_ph_status,
    get_moisture_status,
    get_deficient_nutrients,
)


@pytest.fixture
def example_reading():
    """Acidic field with low moisture status and a potassium deficiency."""
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
def ideal_reading():
    return SensorReading(
        nitrogen=120,
        phosphorus=200,
        potassium=200,
        ph=6.75,
        soil_moisture=30,
        ambient_temperature=25,
        humidity=60,
    )


class TestOverallScore:

    def test_example_reading(self, example_reading):
        result = score(example_reading)

        expected = 100 * (
            0.20 * 1.0
            + 0.15 * (65 / 110)
            + 0.15 * (58 / 110)
            + 0.15 * (1 - 1.55 / 1.75)
            + 0.15 * 0.9
            + 0.10 * 0.9
            + 0.10 * 0.9
        )
        assert result.overall_score == round_half_up(expected)
        assert result.overall_score == 70
        assert result.category == SoilHealthCategory.GOOD
        assert result.parameter_scores["ph"] == 11

    def test_ideal_reading_scores_100(self, ideal_reading):
        result = score(ideal_reading)
        assert result.overall_score == 100
        assert result.category == SoilHealthCategory.EXCELLENT
        assert result.deficient_nutrients == []

    def test_all_zero_reading(self):
        reading = SensorReading(0, 0, 0, 0, 0, 0, 0)
        result = score(reading)
        assert result.overall_score == 0
        assert result.category == SoilHealthCategory.POOR
        assert result.display_label == "Very Poor"

    @pytest.mark.parametrize("value", [-1e9, -1.0, 1e9, 1e300])
    def test_extreme_readings_stay_in_range(self, value):
        reading = SensorReading(value, value, value, value, value, value, value)
        result = score(reading)
        assert 0 <= result.overall_score <= 100
        for parameter_score in result.parameter_scores.values():
            assert 0 <= parameter_score <= 100

    def test_deterministic(self, example_reading):
        assert score(example_reading) == score(example_reading)

    def test_result_is_immutable(self, example_reading):
        result = score(example_reading)
        with pytest.raises(dataclasses.FrozenInstanceError):
            result.overall_score = 99


class TestCategories:

    @pytest.mark.parametrize("overall,expected", [
        (100, "Excellent"),
        (80, "Excellent"),
        (79, "Good"),
        (60, "Good"),
        (59, "Moderate"),
        (40, "Moderate"),
        (39, "Poor"),
        (0, "Poor"),
    ])
    def test_boundaries(self, overall, expected):
        assert classify_score(overall).value == expected

    def test_very_poor_is_display_only(self):
        assert classify_score(19) == SoilHealthCategory.POOR
        assert display_label(19) == "Very Poor"
        assert display_label(20) == "Poor"
        assert display_label(39) == "Poor"
        assert display_label(85) == "Excellent"

    def test_round_half_up(self):
        assert round_half_up(79.5) == 80
        assert round_half_up(60.49) == 60
        assert round_half_up(0.5) == 1


class TestParameterStatus:

    def test_example_statuses(self, example_reading):
        status = score(example_reading).parameter_status
        assert status["ph"] == ParameterStatus.LOW
        assert status["soil_moisture"] == ParameterStatus.LOW
        assert status["potassium"] == ParameterStatus.LOW
        assert status["nitrogen"] == ParameterStatus.OPTIMAL
        assert status["phosphorus"] == ParameterStatus.OPTIMAL
        assert status["temperature"] == ParameterStatus.OPTIMAL
        assert status["humidity"] == ParameterStatus.OPTIMAL

    def test_ph_wording(self):
        assert get_ph_status(5.9) == "Acidic"
        assert get_ph_status(6.0) == "Optimal"
        assert get_ph_status(7.5) == "Optimal"
        assert get_ph_status(7.6) == "Alkaline"

    def test_moisture_wording(self):
        assert get_moisture_status(39.9) == "Low"
        assert get_moisture_status(40) == "Optimal"
        assert get_moisture_status(80) == "Optimal"
        assert get_moisture_status(80.1) == "High"

    def test_deficiency_thresholds(self):
        assert get_deficient_nutrients(29, 14, 119) == ["Nitrogen", "Phosphorus", "Potassium"]
        assert get_deficient_nutrients(30, 15, 120) == []

    def test_high_index_can_carry_deficiency(self, ideal_reading):
        """K at 115 mg/kg sits on the normalizer plateau but below the 120 flag."""
        reading = dataclasses.replace(ideal_reading, potassium=115)
        result = score(reading)
        assert result.overall_score == 100
        assert result.deficient_nutrients == ["Potassium"]
        assert result.parameter_status["potassium"] == ParameterStatus.LOW


class TestSerialization:

    def test_to_dict_uses_plain_values(self, example_reading):
        data = score(example_reading).to_dict()
        assert data["category"] == "Good"
        assert data["display_label"] == "Good"
        assert data["parameter_status"]["ph"] == "Low"
        assert data["deficient_nutrients"] == ["Potassium"]
        assert data["recommendation"]

    def test_sensor_channels(self, example_reading):
        channels = example_reading.sensor_channels()
        assert channels["ambient_temperature"] == 24
        assert channels["soil_temperature"] is None
