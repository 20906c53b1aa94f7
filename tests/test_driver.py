"""Tests for the driver shim and the command-line front end."""

import unittest

import cv2
import numpy as np
import pytest

from fpenroll.cli import main
from fpenroll.driver import EnrollDriver, EnrollResult, build_backend, resolve_backend, status_for
from fpenroll.models import EnrollmentOutcome, Template
from tests.fakes import (
    AttemptDistanceComparator, ScriptedCapture, ScriptedExtractor, SequenceComparator,
    assert_resources_accounted
)


class TestStatusMapping(unittest.TestCase):

    def test_outcome_kinds(self):
        self.assertIs(status_for(EnrollmentOutcome.completed(Template())), EnrollResult.COMPLETE)
        self.assertIs(status_for(EnrollmentOutcome.retry()), EnrollResult.RETRY)
        self.assertIs(status_for(EnrollmentOutcome.failed()), EnrollResult.ERROR)

    def test_framework_values(self):
        self.assertEqual(int(EnrollResult.COMPLETE), 1)
        self.assertEqual(int(EnrollResult.RETRY), 100)
        self.assertEqual(int(EnrollResult.ERROR), -1)

    def test_verification_codes_never_produced(self):
        self.assertEqual((int(EnrollResult.FAIL), int(EnrollResult.PASS)), (2, 3))
        outcomes = [EnrollmentOutcome.completed(Template()), EnrollmentOutcome.retry(), EnrollmentOutcome.failed()]
        produced = {status_for(outcome) for outcome in outcomes}
        self.assertNotIn(EnrollResult.FAIL, produced)
        self.assertNotIn(EnrollResult.PASS, produced)


class TestEnrollDriver(unittest.TestCase):

    def test_single_stage_enrollment(self):
        capture = ScriptedCapture(["ok"] * 3)
        extractor = ScriptedExtractor()

        with EnrollDriver(capture, extractor, SequenceComparator()) as driver:
            response = driver.enroll(0)

        self.assertEqual(EnrollDriver.NR_ENROLL_STAGES, 1)
        self.assertIs(response.status, EnrollResult.COMPLETE)
        self.assertIs(response.template, extractor.templates[0])
        self.assertIs(response.image, capture.samples[0])
        self.assertEqual((capture.opened, capture.closed), (1, 1))
        assert_resources_accounted(response.outcome, capture, extractor)

    def test_without_image(self):
        capture = ScriptedCapture(["ok"] * 3)
        extractor = ScriptedExtractor()
        driver = EnrollDriver(capture, extractor, SequenceComparator())

        response = driver.enroll(want_image=False)

        self.assertIsNone(response.image)
        assert_resources_accounted(response.outcome, capture, extractor)

    def test_stage_out_of_range(self):
        driver = EnrollDriver(ScriptedCapture([]), ScriptedExtractor(), SequenceComparator())
        with self.assertRaises(ValueError):
            driver.enroll(1)


class TestResolveBackend(unittest.TestCase):

    def test_resolves_attribute(self):
        self.assertIs(resolve_backend("tests.fakes:AttemptDistanceComparator"), AttemptDistanceComparator)

    def test_builds_instance(self):
        self.assertIsInstance(build_backend("tests.fakes:AttemptDistanceComparator"), AttemptDistanceComparator)

    def test_malformed_reference(self):
        for reference in ("tests.fakes", ":Thing", "tests.fakes:"):
            with self.assertRaises(ValueError):
                resolve_backend(reference)

    def test_missing_attribute(self):
        with self.assertRaises(AttributeError):
            resolve_backend("tests.fakes:DoesNotExist")


def _write_swipes(directory, count):
    for index in range(count):
        cv2.imwrite(str(directory / f"swipe_{index}.png"), np.full((20, 16), 40 * index, dtype=np.uint8))


BACKENDS = [
    "--extractor", "tests.fakes:PixelMeanExtractor",
    "--comparator", "tests.fakes:AttemptDistanceComparator",
]


def test_cli_completes_and_saves_image(tmp_path, capsys):
    swipes = tmp_path / "swipes"
    swipes.mkdir()
    _write_swipes(swipes, 3)
    output = tmp_path / "winner.png"

    code = main(["enroll", str(swipes), *BACKENDS, "--save-image", str(output)])

    assert code == 0
    assert output.exists()
    out = capsys.readouterr().out
    assert "Result: COMPLETED" in out
    assert "Winner: sample 1" in out


def test_cli_retry_with_too_few_swipes(tmp_path, capsys):
    _write_swipes(tmp_path, 2)

    code = main(["enroll", str(tmp_path / "swipe_0.png"), str(tmp_path / "swipe_1.png"), *BACKENDS, "--quiet"])

    assert code == 1
    assert "Result: RETRY" in capsys.readouterr().out


def test_cli_failed_without_readable_swipes(tmp_path):
    code = main(["enroll", str(tmp_path / "missing.png"), *BACKENDS, "-q"])
    assert code == 2


def test_cli_requires_command(capsys):
    assert main([]) == 2


def test_cli_requires_backends():
    with pytest.raises(SystemExit):
        main(["enroll", "swipe.png"])


@pytest.mark.parametrize("option, value, field", [
    ("--max-attempts", "0", "max_attempts"),
    ("--min-features", "-1", "min_features"),
    ("--threshold", "-5", "match_threshold"),
])
def test_cli_rejects_invalid_limits(option, value, field, capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["enroll", "swipe.png", *BACKENDS, option, value])

    assert excinfo.value.code == 2
    assert f"{field} must be" in capsys.readouterr().err
