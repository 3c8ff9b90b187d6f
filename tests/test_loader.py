"""Tests for deal file loading and discovery."""

from decimal import Decimal

import pytest
import yaml

from pitisplit.loader import (
    find_deals_location,
    load_deal_from_file,
    load_deals_file,
    load_deals_from_directory,
    load_deals_from_path,
)


def write_yaml(path, data):
    with open(path, "w") as f:
        yaml.dump(data, f)
    return path


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Clear discovery env vars and run from an empty directory."""
    monkeypatch.delenv("PITISPLIT_DIR", raising=False)
    monkeypatch.delenv("PITISPLIT_FILE", raising=False)
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    return workdir


class TestLoadDealFromFile:
    """Tests for loading individual deal files."""

    def test_load_valid_deal_file(self, temp_deal_dir, sample_deal_dict):
        """Test loading a valid deal file."""
        deal_path = write_yaml(temp_deal_dir / "maple-duplex.yaml", sample_deal_dict)

        deal = load_deal_from_file(deal_path)

        assert deal is not None
        assert deal.id == "maple-duplex"
        assert deal.source_file == deal_path
        assert deal.can_auto_split is True

    def test_filename_id_mismatch_returns_none(self, temp_deal_dir, sample_deal_dict, caplog):
        """A deal whose id disagrees with its file name is skipped with a rename hint."""
        deal_path = write_yaml(temp_deal_dir / "wrong-name.yaml", sample_deal_dict)

        assert load_deal_from_file(deal_path) is None
        assert "rename it to maple-duplex.yaml" in caplog.text

    def test_id_taken_from_filename(self, temp_deal_dir, sample_deal_dict):
        """Deal files may leave out the id; the file name supplies it."""
        del sample_deal_dict["id"]
        deal_path = write_yaml(temp_deal_dir / "maple-duplex.yaml", sample_deal_dict)

        deal = load_deal_from_file(deal_path)

        assert deal is not None
        assert deal.id == "maple-duplex"
        assert deal.nickname == "Maple Duplex"

    def test_non_mapping_returns_none(self, temp_deal_dir):
        deal_path = temp_deal_dir / "maple-duplex.yaml"
        deal_path.write_text("- just\n- a list\n")

        assert load_deal_from_file(deal_path) is None

    def test_invalid_yaml_returns_none(self, temp_deal_dir):
        deal_path = temp_deal_dir / "invalid.yaml"
        deal_path.write_text("invalid: yaml: content: [")

        assert load_deal_from_file(deal_path) is None

    def test_empty_file_returns_none(self, temp_deal_dir):
        deal_path = temp_deal_dir / "empty.yaml"
        deal_path.write_text("")

        assert load_deal_from_file(deal_path) is None

    def test_invalid_deal_data_returns_none(self, temp_deal_dir, sample_deal_dict):
        """Test that schema violations are logged, not raised."""
        sample_deal_dict["loan_term_months"] = 0
        deal_path = write_yaml(temp_deal_dir / "maple-duplex.yaml", sample_deal_dict)

        assert load_deal_from_file(deal_path) is None


class TestLoadDealsFromDirectory:
    """Tests for directory mode."""

    def test_load_directory_with_config(self, temp_deal_dir, sample_deal_dict):
        write_yaml(
            temp_deal_dir / "_config.yaml",
            {"default_cash_account": "Assets:Bank:Operating", "reconciliation_tolerance": "0.05"},
        )
        write_yaml(temp_deal_dir / "maple-duplex.yaml", sample_deal_dict)
        write_yaml(temp_deal_dir / "oak-flip.yaml", {"id": "oak-flip", "type": "flip"})

        deal_file = load_deals_from_directory(temp_deal_dir)

        assert [d.id for d in deal_file.deals] == ["maple-duplex", "oak-flip"]
        assert deal_file.config.default_cash_account == "Assets:Bank:Operating"
        assert deal_file.config.reconciliation_tolerance == Decimal("0.05")

    def test_directory_without_config_uses_defaults(self, temp_deal_dir, sample_deal_dict):
        write_yaml(temp_deal_dir / "maple-duplex.yaml", sample_deal_dict)

        deal_file = load_deals_from_directory(temp_deal_dir)

        assert len(deal_file.deals) == 1
        assert deal_file.config.default_cash_account == "Assets:Bank:Checking"

    def test_invalid_config_falls_back_to_defaults(self, temp_deal_dir, sample_deal_dict):
        write_yaml(temp_deal_dir / "_config.yaml", {"reconciliation_tolerance": "-1"})
        write_yaml(temp_deal_dir / "maple-duplex.yaml", sample_deal_dict)

        deal_file = load_deals_from_directory(temp_deal_dir)

        assert deal_file.config.reconciliation_tolerance == Decimal("0.02")
        assert len(deal_file.deals) == 1

    def test_skips_hidden_and_invalid_files(self, temp_deal_dir, sample_deal_dict):
        write_yaml(temp_deal_dir / "maple-duplex.yaml", sample_deal_dict)
        write_yaml(temp_deal_dir / ".draft.yaml", {"id": ".draft"})
        (temp_deal_dir / "broken.yaml").write_text("id: [")
        (temp_deal_dir / "notes.txt").write_text("not a deal")

        deal_file = load_deals_from_directory(temp_deal_dir)

        assert [d.id for d in deal_file.deals] == ["maple-duplex"]

    def test_empty_directory(self, temp_deal_dir):
        deal_file = load_deals_from_directory(temp_deal_dir)

        assert deal_file.deals == []


class TestLoadDealsFile:
    """Tests for single-file mode."""

    def test_load_deals_file(self, deals_yaml_file):
        deal_file = load_deals_file(deals_yaml_file)

        assert [d.id for d in deal_file.deals] == ["maple-duplex", "oak-flip"]
        assert deal_file.config.default_cash_account == "Assets:Bank:Operating"
        assert all(d.source_file == deals_yaml_file for d in deal_file.deals)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "deals.yaml"
        path.write_text("")

        deal_file = load_deals_file(path)

        assert deal_file.deals == []

    def test_deals_key_commented_out(self, tmp_path):
        path = tmp_path / "deals.yaml"
        path.write_text("version: '1.0'\ndeals:\n#  - id: maple-duplex\n")

        deal_file = load_deals_file(path)

        assert deal_file.deals == []

    def test_invalid_yaml_raises(self, tmp_path):
        path = tmp_path / "deals.yaml"
        path.write_text("deals: [")

        with pytest.raises(yaml.YAMLError):
            load_deals_file(path)

    def test_duplicate_ids_resolve_to_first(self, tmp_path, sample_deal_dict, caplog):
        second = dict(sample_deal_dict, nickname="Maple Duplex (refi)")
        path = write_yaml(tmp_path / "deals.yaml", {"deals": [sample_deal_dict, second]})

        deal_file = load_deals_file(path)

        assert deal_file.duplicate_ids() == ["maple-duplex"]
        assert deal_file.get_deal("maple-duplex").nickname == "Maple Duplex"
        assert "repeats deal ids maple-duplex" in caplog.text

    def test_non_mapping_file_raises(self, tmp_path):
        path = tmp_path / "deals.yaml"
        path.write_text("- maple-duplex\n")

        with pytest.raises(ValueError, match="expected a mapping"):
            load_deals_file(path)

    def test_invalid_deal_raises(self, tmp_path, sample_deal_dict):
        """Unlike directory mode, one bad deal fails the whole file."""
        sample_deal_dict["interest_rate"] = -1
        path = write_yaml(tmp_path / "deals.yaml", {"deals": [sample_deal_dict]})

        with pytest.raises(ValueError):
            load_deals_file(path)


class TestFindDealsLocation:
    """Tests for deal location discovery."""

    def test_nothing_found(self, clean_env):
        assert find_deals_location() is None

    def test_env_dir(self, clean_env, monkeypatch, temp_deal_dir):
        monkeypatch.setenv("PITISPLIT_DIR", str(temp_deal_dir))

        assert find_deals_location() == ("dir", temp_deal_dir)

    def test_env_file(self, clean_env, monkeypatch, deals_yaml_file):
        monkeypatch.setenv("PITISPLIT_FILE", str(deals_yaml_file))

        assert find_deals_location() == ("file", deals_yaml_file)

    def test_env_dir_takes_priority(self, clean_env, monkeypatch, temp_deal_dir, deals_yaml_file):
        monkeypatch.setenv("PITISPLIT_DIR", str(temp_deal_dir))
        monkeypatch.setenv("PITISPLIT_FILE", str(deals_yaml_file))

        assert find_deals_location()[0] == "dir"

    def test_nonexistent_env_dir_is_skipped(self, clean_env, monkeypatch, tmp_path):
        monkeypatch.setenv("PITISPLIT_DIR", str(tmp_path / "nonexistent"))

        assert find_deals_location() is None

    def test_cwd_directory(self, clean_env):
        (clean_env / "deals").mkdir()

        mode, path = find_deals_location()

        assert mode == "dir"
        assert path.name == "deals"

    def test_cwd_file(self, clean_env):
        (clean_env / "deals.yaml").write_text("deals: []\n")

        mode, path = find_deals_location()

        assert mode == "file"
        assert path.name == "deals.yaml"

    def test_cwd_directory_beats_file(self, clean_env):
        (clean_env / "deals").mkdir()
        (clean_env / "deals.yaml").write_text("deals: []\n")

        assert find_deals_location()[0] == "dir"


class TestLoadDealsFromPath:
    """Tests for the load entry point."""

    def test_explicit_file(self, deals_yaml_file):
        deal_file = load_deals_from_path(deals_yaml_file)

        assert len(deal_file.deals) == 2

    def test_explicit_directory(self, temp_deal_dir, sample_deal_dict):
        write_yaml(temp_deal_dir / "maple-duplex.yaml", sample_deal_dict)

        deal_file = load_deals_from_path(temp_deal_dir)

        assert deal_file.get_deal("maple-duplex") is not None

    def test_missing_path(self, tmp_path):
        assert load_deals_from_path(tmp_path / "nope.yaml") is None

    def test_discovery(self, clean_env, monkeypatch, deals_yaml_file):
        monkeypatch.setenv("PITISPLIT_FILE", str(deals_yaml_file))

        deal_file = load_deals_from_path()

        assert deal_file.get_deal("oak-flip") is not None

    def test_discovery_finds_nothing(self, clean_env):
        assert load_deals_from_path() is None
