"""Tests for measurement/settings.py - MeasurementConfig and override merging."""

import pytest
from pydantic import ValidationError

from measurement.settings import MeasurementConfig


class TestValidation:
    def test_hr_range_must_be_ordered(self):
        with pytest.raises(ValidationError):
            MeasurementConfig(min_hr=120, max_hr=90)

    def test_calibration_shorter_than_measurement(self):
        with pytest.raises(ValidationError):
            MeasurementConfig(measurement_duration_ms=8_000, calibration_ms=8_000)


class TestMerged:
    def test_no_overrides_returns_same_config(self):
        base = MeasurementConfig(min_hr=45)
        assert base.merged(None) is base

    def test_only_set_fields_replace_the_base(self):
        base = MeasurementConfig(measurement_duration_ms=20_000, min_hr=45, age=60)
        merged = base.merged(MeasurementConfig(max_hr=180))

        assert merged.max_hr == 180
        assert merged.min_hr == 45
        assert merged.measurement_duration_ms == 20_000
        assert merged.age == 60

    def test_merged_config_is_checked_as_a_whole(self):
        base = MeasurementConfig(measurement_duration_ms=8_000, calibration_ms=2_000)
        with pytest.raises(ValidationError):
            base.merged(MeasurementConfig(calibration_ms=10_000))
