"""Tests for the Kptfile object: constructors, serialization and decoding."""

import pytest

from kptedit.core.errors import DecodeError, EmptyKptfileError, KptfileNotFoundError
from kptedit.core.yaml_object import read_objects_from_string
from kptedit.kpt.api import KPTFILE_NAME, Condition, ConditionStatus, Function
from kptedit.kpt.kptfile import Kptfile, decode_kptfile, get_root_kptfile, new_kptfile

SAMPLE_KPTFILE = """apiVersion: kpt.dev/v1
kind: Kptfile
metadata:
  name: payments
  annotations:
    config.kubernetes.io/local-config: "true"
info:
  description: Payments service package
  readinessGates:
  - conditionType: Rendered
pipeline:
  mutators:
  - image: gcr.io/kpt-fn/set-namespace:v0.4
    configMap:
      namespace: payments
status:
  conditions:
  - type: Rendered
    status: "True"
    reason: RenderSucceeded
"""

DEPLOYMENT = """apiVersion: apps/v1
kind: Deployment
metadata:
  name: payments-api
"""


class TestFromPackage:
    """Tests for Kptfile.from_package()."""

    def test_from_package(self):
        """Test loading the Kptfile from package resources."""
        kf = Kptfile.from_package({KPTFILE_NAME: SAMPLE_KPTFILE, "deployment.yaml": DEPLOYMENT})

        assert kf.name == "payments"
        assert kf.is_status_condition_true("Rendered")

    def test_missing_file(self):
        """Test that a package without Kptfile is reported."""
        with pytest.raises(KptfileNotFoundError, match="missing from the package"):
            Kptfile.from_package({"deployment.yaml": DEPLOYMENT})

    def test_unparseable_file(self):
        """Test that invalid YAML is reported as a DecodeError."""
        with pytest.raises(DecodeError, match="couldn't parse file"):
            Kptfile.from_package({KPTFILE_NAME: "apiVersion: [unclosed\n"})

    def test_file_without_kptfile_object(self):
        """Test that a Kptfile holding another kind is reported."""
        with pytest.raises(KptfileNotFoundError):
            Kptfile.from_package({KPTFILE_NAME: DEPLOYMENT})


class TestFromObjectList:
    """Tests for Kptfile.from_object_list() and get_root_kptfile()."""

    def test_finds_kptfile_among_objects(self):
        """Test that the Kptfile is found in a mixed object list."""
        objs = read_objects_from_string(DEPLOYMENT + "---\n" + SAMPLE_KPTFILE)

        kf = Kptfile.from_object_list(objs)

        assert kf.name == "payments"

    def test_skips_nested_package_kptfile(self):
        """Test that a subpackage Kptfile is not taken as the root."""
        nested = (
            "apiVersion: kpt.dev/v1\nkind: Kptfile\nmetadata:\n  name: sub\n"
            "  annotations:\n    internal.config.kubernetes.io/path: sub/Kptfile\n"
        )
        root = (
            "apiVersion: kpt.dev/v1\nkind: Kptfile\nmetadata:\n  name: root\n"
            "  annotations:\n    internal.config.kubernetes.io/path: Kptfile\n"
        )
        objs = read_objects_from_string(nested + "---\n" + root)

        assert get_root_kptfile(objs).name == "root"

    def test_missing(self):
        """Test that a list without a Kptfile is reported."""
        objs = read_objects_from_string(DEPLOYMENT)

        with pytest.raises(KptfileNotFoundError):
            Kptfile.from_object_list(objs)


class TestFromString:
    """Tests for Kptfile.from_string()."""

    def test_from_string(self):
        """Test parsing a Kptfile from text."""
        kf = Kptfile.from_string(SAMPLE_KPTFILE)

        assert kf.name == "payments"

    def test_wrong_kind(self):
        """Test that other resource types are rejected."""
        with pytest.raises(DecodeError, match="string is not Kptfile"):
            Kptfile.from_string(DEPLOYMENT)

    def test_multiple_documents(self):
        """Test that a multi-document string is rejected."""
        with pytest.raises(DecodeError):
            Kptfile.from_string(SAMPLE_KPTFILE + "---\n" + DEPLOYMENT)


class TestSerialization:
    """Tests for write_to_package(), to_string() and str()."""

    def test_round_trip_unchanged(self):
        """Test that an unmodified Kptfile serializes back to the same text."""
        kf = Kptfile.from_string(SAMPLE_KPTFILE)

        assert kf.to_string() == SAMPLE_KPTFILE
        assert str(kf) == SAMPLE_KPTFILE

    def test_write_to_package(self):
        """Test writing edits back into the package resources."""
        resources = {KPTFILE_NAME: SAMPLE_KPTFILE, "deployment.yaml": DEPLOYMENT}
        kf = Kptfile.from_package(resources)
        kf.set_typed_condition(Condition(type="Ready", status=ConditionStatus.TRUE))

        kf.write_to_package(resources)

        assert "type: Ready" in resources[KPTFILE_NAME]
        assert resources["deployment.yaml"] == DEPLOYMENT
        assert Kptfile.from_package(resources).is_status_condition_true("Ready")

    def test_status_written_as_string(self):
        """Test that condition statuses are written as quoted strings."""
        kf = new_kptfile("pkg")
        kf.set_typed_condition(Condition(type="Ready", status=ConditionStatus.FALSE))

        reloaded = Kptfile.from_string(kf.to_string())

        assert reloaded.get_condition("Ready").node["status"] == "False"

    def test_empty_kptfile(self):
        """Test that an empty Kptfile can't be written or serialized."""
        kf = Kptfile()

        assert kf.is_empty
        assert str(kf) == ""
        with pytest.raises(EmptyKptfileError):
            kf.to_string()
        with pytest.raises(EmptyKptfileError):
            kf.write_to_package({})
        with pytest.raises(EmptyKptfileError):
            kf.conditions()

    def test_status_section(self):
        """Test that status() adds the section on demand."""
        kf = new_kptfile("pkg")

        kf.status()

        assert "status: {}" in kf.to_string()


class TestDecodeKptfile:
    """Tests for decode_kptfile()."""

    def test_decode(self):
        """Test strict typed decoding of a valid Kptfile."""
        doc = decode_kptfile(SAMPLE_KPTFILE)

        assert doc.api_version == "kpt.dev/v1"
        assert doc.kind == "Kptfile"
        assert doc.name == "payments"
        assert doc.info["description"] == "Payments service package"
        assert [g.condition_type for g in doc.readiness_gates] == ["Rendered"]
        assert doc.pipeline.mutators == [
            Function(
                image="gcr.io/kpt-fn/set-namespace:v0.4",
                config_map={"namespace": "payments"},
            )
        ]
        assert doc.conditions == [
            Condition(type="Rendered", status="True", reason="RenderSucceeded")
        ]

    def test_unknown_field(self):
        """Test that unknown top-level fields are rejected."""
        with pytest.raises(DecodeError, match="invalid 'v1' Kptfile"):
            decode_kptfile(SAMPLE_KPTFILE + "spec:\n  replicas: 3\n")

    def test_unknown_pipeline_field(self):
        """Test that unknown pipeline sections are rejected."""
        with pytest.raises(DecodeError, match="invalid 'v1' Kptfile"):
            decode_kptfile(
                "apiVersion: kpt.dev/v1\nkind: Kptfile\npipeline:\n  generators: []\n"
            )

    @pytest.mark.parametrize(
        "text, field",
        [
            (SAMPLE_KPTFILE + "  bogus: 1\n", "status.bogus"),
            (
                SAMPLE_KPTFILE.replace(
                    "      namespace: payments\n", "      namespace: payments\n    bogus: 1\n"
                ),
                "function.bogus",
            ),
            (
                SAMPLE_KPTFILE.replace(
                    "  description: Payments service package\n",
                    "  description: Payments service package\n  bogus: 1\n",
                ),
                "info.bogus",
            ),
            (SAMPLE_KPTFILE + "    bogus: x\n", "condition.bogus"),
            (
                SAMPLE_KPTFILE.replace(
                    "  - conditionType: Rendered\n",
                    "  - conditionType: Rendered\n    bogus: x\n",
                ),
                "readinessGate.bogus",
            ),
        ],
    )
    def test_unknown_nested_field(self, text, field):
        """Test that unknown fields are rejected below the top level too."""
        with pytest.raises(DecodeError, match=f"invalid 'v1' Kptfile: unknown field.*{field}"):
            decode_kptfile(text)

    def test_editing_keeps_unknown_function_fields(self):
        """Test that the editing path still carries unknown function fields."""
        kf = Kptfile.from_string(
            SAMPLE_KPTFILE.replace(
                "      namespace: payments\n", "      namespace: payments\n    tag: keep\n"
            )
        )

        kf.upsert_mutator_functions([Function(name="set-labels", image="set-labels:v0.2")], -1)

        assert "tag: keep" in kf.to_string()

    def test_invalid_yaml(self):
        """Test that malformed YAML is rejected."""
        with pytest.raises(DecodeError, match="invalid 'v1' Kptfile"):
            decode_kptfile("kind: [Kptfile\n")

    def test_empty(self):
        """Test that an empty string is rejected."""
        with pytest.raises(DecodeError, match="invalid 'v1' Kptfile"):
            decode_kptfile("")

    def test_to_typed(self):
        """Test decoding the current state of an edited Kptfile."""
        kf = Kptfile.from_string(SAMPLE_KPTFILE)
        kf.upsert_validator_functions([Function(name="kubeval", image="kubeval:v0.3")], -1)

        doc = kf.to_typed()

        assert doc.pipeline.validators == [Function(name="kubeval", image="kubeval:v0.3")]


class TestNewKptfile:
    """Tests for new_kptfile()."""

    def test_new_kptfile(self):
        """Test creating a minimal Kptfile."""
        kf = new_kptfile("pkg", labels={"team": "payments"})

        text = kf.to_string()

        assert text.startswith("apiVersion: kpt.dev/v1\nkind: Kptfile\n")
        assert Kptfile.from_string(text).obj.get_labels() == {"team": "payments"}
