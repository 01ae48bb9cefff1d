"""Tests for the kptedit command-line interface."""

import logging
import tempfile
from pathlib import Path

import pytest

from kptedit.cli.main import build_parser, main, parse_key_values
from kptedit.kpt.api import KPTFILE_NAME, Function
from kptedit.kpt.kptfile import Kptfile

SAMPLE_KPTFILE = """apiVersion: kpt.dev/v1
kind: Kptfile
metadata:
  name: payments
  labels:
    old: label
"""


@pytest.fixture
def package_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        (Path(tmpdir) / KPTFILE_NAME).write_text(SAMPLE_KPTFILE)
        yield tmpdir


def read_kptfile(package_dir: str) -> Kptfile:
    return Kptfile.from_string((Path(package_dir) / KPTFILE_NAME).read_text())


class TestParseKeyValues:
    """Tests for parse_key_values()."""

    def test_parse(self):
        """Test parsing KEY=VALUE pairs."""
        assert parse_key_values(["a=1", "b=x=y", "c="]) == {"a": "1", "b": "x=y", "c": ""}

    def test_invalid(self):
        """Test that pairs without "=" are rejected."""
        with pytest.raises(ValueError):
            parse_key_values(["novalue"])


class TestParser:
    """Tests for argument parsing."""

    def test_rejects_unknown_status(self):
        """Test that only valid condition statuses are accepted."""
        parser = build_parser()

        with pytest.raises(SystemExit):
            parser.parse_args(["set-condition", "pkg", "--type", "Ready", "--status", "Maybe"])

    def test_no_command(self, capsys):
        """Test that running without a command prints help and fails."""
        assert main([]) == 1
        assert "kptedit" in capsys.readouterr().out

    @pytest.mark.parametrize("flags, level", [(["-v"], logging.INFO), ([], logging.WARNING)])
    def test_log_level(self, package_dir, monkeypatch, flags, level):
        """Test that -v turns on INFO logging and the default is WARNING."""
        levels = []
        monkeypatch.setattr(
            logging, "basicConfig", lambda **kwargs: levels.append(kwargs["level"])
        )

        assert main(["show", package_dir] + flags) == 0
        assert levels == [level]


class TestCommands:
    """Tests for CLI commands."""

    def test_show(self, package_dir, capsys):
        """Test printing the Kptfile."""
        assert main(["show", package_dir]) == 0
        assert capsys.readouterr().out == SAMPLE_KPTFILE

    def test_set_condition(self, package_dir):
        """Test setting a condition."""
        rc = main([
            "set-condition", package_dir,
            "--type", "Ready", "--status", "True", "--reason", "Rendered",
        ])

        assert rc == 0
        kf = read_kptfile(package_dir)
        assert kf.is_status_condition_true("Ready")
        assert kf.get_typed_condition("Ready").reason == "Rendered"

    def test_set_default_condition(self, package_dir):
        """Test that --default doesn't overwrite an existing condition."""
        main(["set-condition", package_dir, "--type", "Ready", "--status", "True"])
        main(["set-condition", package_dir, "--type", "Ready", "--status", "False", "--default"])

        assert read_kptfile(package_dir).is_status_condition_true("Ready")

    def test_delete_condition(self, package_dir):
        """Test deleting a condition."""
        main(["set-condition", package_dir, "--type", "Ready", "--status", "True"])

        assert main(["delete-condition", package_dir, "--type", "Ready"]) == 0
        assert read_kptfile(package_dir).get_condition("Ready") is None

    def test_ensure_gates(self, package_dir):
        """Test adding readiness gates without duplicates."""
        main(["ensure-gates", package_dir, "Rendered", "Approved"])
        main(["ensure-gates", package_dir, "Rendered"])

        gates = read_kptfile(package_dir).readiness_gates()
        assert [g.get_string("conditionType") for g in gates] == ["Rendered", "Approved"]

    def test_upsert_function(self, package_dir):
        """Test adding and then updating a mutator."""
        main([
            "upsert-function", package_dir,
            "--image", "set-labels:v0.1", "--name", "set-labels", "--config", "app=payments",
        ])
        main(["upsert-function", package_dir, "--image", "set-labels:v0.2", "--name", "set-labels"])

        fns = read_kptfile(package_dir).pipeline_functions("mutators")
        assert len(fns) == 1
        assert fns[0].as_typed(Function) == Function(name="set-labels", image="set-labels:v0.2")

    def test_upsert_validator(self, package_dir):
        """Test adding a validator."""
        rc = main([
            "upsert-function", package_dir,
            "--image", "kubeval:v0.3", "--section", "validators", "--position", "0",
        ])

        assert rc == 0
        assert len(read_kptfile(package_dir).pipeline_functions("validators")) == 1

    def test_set_labels(self, package_dir):
        """Test replacing labels."""
        assert main(["set-labels", package_dir, "team=payments"]) == 0
        assert read_kptfile(package_dir).obj.get_labels() == {"team": "payments"}

    def test_set_annotations(self, package_dir):
        """Test replacing annotations."""
        assert main(["set-annotations", package_dir, "owner=platform"]) == 0
        assert read_kptfile(package_dir).obj.get_annotations() == {"owner": "platform"}

    def test_missing_kptfile(self, capsys):
        """Test that a directory without Kptfile fails with an error."""
        with tempfile.TemporaryDirectory() as tmpdir:
            rc = main(["set-labels", tmpdir, "a=b"])

        assert rc == 1
        assert "missing from the package" in capsys.readouterr().err

    def test_bad_key_value(self, package_dir, capsys):
        """Test that malformed labels fail with an error."""
        assert main(["set-labels", package_dir, "oops"]) == 1
        assert "expected KEY=VALUE" in capsys.readouterr().err
