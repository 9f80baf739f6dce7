import pytest
import yaml

from gpscorrelate.core.config import Config, CorrelationConfig, create_default_config
from gpscorrelate.utils.time_utils import TimeZoneOffset


def test_correlation_defaults():
    config = CorrelationConfig()

    assert config.interpolate
    assert not config.between_segments
    assert config.max_gap_seconds == 0
    assert config.auto_timezone
    assert config.timezone_offset is None


def test_invalid_timezone_is_rejected():
    with pytest.raises(ValueError):
        CorrelationConfig(timezone="+25")


def test_with_timezone_returns_pinned_copy():
    config = CorrelationConfig(max_gap_seconds=30)
    pinned = config.with_timezone(TimeZoneOffset(-3, -30))

    assert config.auto_timezone
    assert not pinned.auto_timezone
    assert pinned.timezone_offset == (-3, -30)
    assert pinned.max_gap_seconds == 30


def test_yaml_round_trip(tmp_path):
    path = tmp_path / "config.yaml"
    config = Config(
        correlation=CorrelationConfig(interpolate=False, max_gap_seconds=120, timezone="+10:00"),
        workers=4,
        log_level="INFO",
    )
    config.output.datum = "NAD27"
    config.to_yaml(str(path))

    loaded = Config.from_yaml(str(path))

    assert loaded.correlation == config.correlation
    assert loaded.output.datum == "NAD27"
    assert loaded.workers == 4
    assert loaded.log_level == "INFO"


def test_from_yaml_partial_file(tmp_path):
    path = tmp_path / "partial.yaml"
    path.write_text("correlation:\n  timezone: '-5'\n  between_segments: true\n")

    config = Config.from_yaml(str(path))

    assert config.correlation.timezone_offset == (-5, 0)
    assert config.correlation.between_segments
    assert config.output.write_exif


def test_from_yaml_empty_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")

    assert Config.from_yaml(str(path)) == Config()


@pytest.mark.parametrize("text, message", [
    ("correlation:\n  feather: 5\n", "feather"),
    ("correlation: [\n", "Invalid YAML"),
    ("correlation:\n  - 5\n", "correlation"),
    ("- just a list\n", "mapping"),
    ("retries: 3\n", "retries"),
])
def test_from_yaml_rejects_bad_files(tmp_path, text, message):
    path = tmp_path / "bad.yaml"
    path.write_text(text)

    with pytest.raises(ValueError, match=message):
        Config.from_yaml(str(path))


@pytest.mark.parametrize("changes", [
    {"workers": 0},
    {"log_level": "LOUD"},
])
def test_validate_rejects(changes):
    config = Config(**changes)

    with pytest.raises(ValueError):
        config.validate()


def test_validate_rejects_empty_datum():
    config = Config()
    config.output.datum = "  "

    with pytest.raises(ValueError):
        config.validate()


def test_create_default_config(tmp_path):
    path = tmp_path / "default.yaml"
    config = create_default_config(str(path))

    data = yaml.safe_load(path.read_text())
    assert data["correlation"]["timezone"] == "auto"
    assert data["output"]["datum"] == "WGS-84"
    assert config.validate()
