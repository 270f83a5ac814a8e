"""Tests for the YAML configuration layer."""

import yaml

from globe_tracker.config_manager import ConfigManager


class TestConfigManager:

    def test_defaults_without_file(self, tmp_path):
        cm = ConfigManager(str(tmp_path / "missing.yaml"))
        assert cm.get('tle_group') == "stations"
        assert cm.get('transition_ms') == 1000
        assert cm.get('selection') == []
        assert cm.get('nope', 42) == 42

    def test_file_overrides_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("tle_group: weather\nfps: 60\nselection: [25544, 33591]\n")
        cm = ConfigManager(str(path))
        assert cm.get('tle_group') == "weather"
        assert cm.get('fps') == 60
        assert cm.get('selection') == [25544, 33591]
        assert cm.get('web_port') == 8080

    def test_invalid_yaml_keeps_defaults(self, tmp_path, caplog):
        path = tmp_path / "config.yaml"
        path.write_text("tle_group: [unclosed\n")
        cm = ConfigManager(str(path))
        assert cm.get('tle_group') == "stations"
        assert "Error loading config" in caplog.text

    def test_non_mapping_ignored(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")
        assert ConfigManager(str(path)).get('fps') == 30

    def test_save_round_trip(self, tmp_path):
        path = tmp_path / "config.yaml"
        cm = ConfigManager(str(path))
        assert cm.save({'real_time': True, 'selection': [25544]}) is True

        with open(path) as f:
            assert yaml.safe_load(f)['real_time'] is True
        reloaded = ConfigManager(str(path))
        assert reloaded.get('selection') == [25544]
        assert reloaded.get('tle_group') == "stations"

    def test_save_failure_reported(self, tmp_path):
        cm = ConfigManager(str(tmp_path / "no" / "such" / "dir.yaml"))
        assert cm.save({'fps': 10}) is False
