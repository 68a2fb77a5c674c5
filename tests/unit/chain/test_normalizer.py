"""
Unit tests for chain normalization and validation.
"""

import copy
import json

import pytest

from mcp_httpcraft.chain import ChainOutcome, ChainStepResult, normalize_chain, validate_chain
from mcp_httpcraft.decoding import decode
from mcp_httpcraft.errors import MalformedChainWarning


@pytest.mark.unit
class TestDirectChain:
    def test_failed_step_payload_is_consistent(self):
        payload = {
            "steps": [
                {"name": "a", "success": True},
                {"name": "b", "success": False, "error": "x"},
            ],
            "failedStep": 1,
        }

        outcome = normalize_chain(payload, 250)
        report = validate_chain(outcome)

        assert isinstance(report, MalformedChainWarning)
        assert report.valid
        assert report.errors == ()
        assert outcome.failed_step_index == 1
        assert outcome.success is False
        assert [step.name for step in outcome.steps] == ["a", "b"]

    def test_defaults(self):
        outcome = normalize_chain({"steps": [{}, {}]}, 99)

        assert [step.name for step in outcome.steps] == ["step-1", "step-2"]
        assert all(step.success is True for step in outcome.steps)
        assert outcome.success is True
        assert outcome.failed_step_index is None
        assert outcome.total_duration == 99

    def test_success_derived_from_nested_response_status(self):
        payload = {
            "steps": [
                {"name": "login", "response": {"statusCode": 200, "body": {"token": "t"}}},
                {"name": "fetch", "response": {"statusCode": 404}, "error": "Not found"},
            ]
        }

        outcome = normalize_chain(payload, 10)

        assert outcome.steps[0].success is True
        assert outcome.steps[0].response.data == {"token": "t"}
        assert outcome.steps[1].success is False
        assert outcome.success is False
        assert outcome.failed_step_index == 1
        assert validate_chain(outcome).valid

    def test_step_level_status_code(self):
        outcome = normalize_chain({"steps": [{"statusCode": 503, "error": "down"}]}, 0)

        assert outcome.steps[0].success is False

    def test_payload_success_and_duration_win(self):
        payload = {
            "success": True,
            "totalDuration": 1234,
            "steps": [{"name": "a", "success": True}],
        }

        outcome = normalize_chain(payload, 5)

        assert outcome.success is True
        assert outcome.total_duration == 1234

    def test_failed_step_index_alias(self):
        payload = {
            "steps": [{"name": "a", "success": False, "error": "e"}],
            "success": False,
            "failedStepIndex": 0,
        }

        assert normalize_chain(payload, 0).failed_step_index == 0

    def test_wrapped_chain(self):
        payload = {"chain": {"steps": [{"name": "only", "success": True}]}}

        outcome = normalize_chain(payload, 42)

        assert [step.name for step in outcome.steps] == ["only"]
        assert outcome.total_duration == 42

    def test_decoded_response_payload(self):
        decoded = decode('{"statusCode": 200, "data": {"steps": [{"name": "a", "success": true}]}}')

        outcome = normalize_chain(decoded, 7)

        assert [step.name for step in outcome.steps] == ["a"]

    def test_null_and_empty_names_get_defaults(self):
        payload = {"steps": [{"name": None, "success": True}, {"name": "", "success": True}]}

        outcome = normalize_chain(payload, 0)

        assert [step.name for step in outcome.steps] == ["step-1", "step-2"]
        assert validate_chain(outcome).errors == ()

    def test_flat_step_is_its_own_response(self):
        outcome = normalize_chain(
            {"steps": [{"name": "a", "statusCode": 201, "body": {"id": 1}}]}, 5
        )

        step = outcome.steps[0]
        assert step.response.status_code == 201
        assert step.response.data == {"id": 1}
        assert step.status_code == 201
        assert step.success is True

    @pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity", "1e400"])
    def test_non_finite_step_status_is_ignored(self, literal):
        payload = json.loads(
            f'{{"steps": [{{"name": "a", "statusCode": {literal}}}], "totalDuration": {literal}}}'
        )

        outcome = normalize_chain(payload, 12)

        assert outcome.steps[0].success is True
        assert outcome.steps[0].status_code is None
        assert outcome.total_duration == 12
        assert validate_chain(outcome).valid

    def test_deeply_nested_wrappers(self):
        payload = {"steps": [{"name": "deep", "success": True}]}
        for _ in range(10000):
            payload = {"chain": payload}

        outcome = normalize_chain(payload, 3)

        assert [step.name for step in outcome.steps] == ["deep"]
        assert outcome.total_duration == 3

    def test_wrapper_around_nothing_is_a_single_step(self):
        outcome = normalize_chain({"chain": {"chain": None}}, 0)

        assert outcome.steps[0].name == "single-request"
        assert outcome.success is True


@pytest.mark.unit
@pytest.mark.parametrize(
    "payload",
    [
        {"steps": [{"name": "a", "success": True}, {"name": "b", "statusCode": 500}]},
        {"chain": {"steps": [{"response": {"status": "success", "data": [1]}}]}},
        {"statusCode": 204},
        {"status": "error", "error": "nope"},
        [1, 2, 3],
        "plain text",
    ],
)
def test_normalize_is_repeatable(payload):
    before = copy.deepcopy(payload)

    first = normalize_chain(payload, 10)
    second = normalize_chain(payload, 10)

    assert first == second
    assert payload == before


@pytest.mark.unit
class TestSingleStep:
    def test_plain_response(self):
        payload = {"statusCode": 200, "body": "ok"}

        outcome = normalize_chain(payload, 15)

        assert len(outcome.steps) == 1
        step = outcome.steps[0]
        assert step.name == "single-request"
        assert step.success is True
        assert step.response.status_code == 200
        assert outcome.total_duration == 15
        assert validate_chain(outcome).valid

    def test_explicit_failure(self):
        outcome = normalize_chain({"success": False, "error": "boom"}, 0)

        assert outcome.success is False
        assert outcome.failed_step_index == 0
        assert outcome.steps[0].error == "boom"
        assert validate_chain(outcome).valid

    def test_steps_not_a_list_degrades_to_single_step(self):
        outcome = normalize_chain({"steps": "nope"}, 0)

        assert len(outcome.steps) == 1
        assert outcome.steps[0].name == "single-request"

    @pytest.mark.parametrize("payload", [None, "text", 42, [1, 2]])
    def test_non_mapping_payloads(self, payload):
        outcome = normalize_chain(payload, 0)

        assert outcome.steps[0].name == "single-request"
        assert outcome.success is True


@pytest.mark.unit
class TestValidateChain:
    def test_steps_must_be_an_array(self):
        outcome = ChainOutcome(steps="oops", success=True)

        assert validate_chain(outcome).errors == ("Steps must be an array",)

    def test_step_problems(self):
        payload = {
            "steps": [
                {"name": 5, "success": True},
                {"name": "b", "success": "yes"},
                {"name": "c", "success": False},
            ],
            "failedStep": 0,
            "totalDuration": -1,
        }

        report = validate_chain(normalize_chain(payload, 0))

        assert report.errors == (
            "Step 0 missing name",
            "Step 1 success must be boolean",
            "Failed step 2 should have error message",
            "Failed step index points to successful step",
            "Total duration must be a non-negative number",
        )

    def test_failed_step_index_out_of_range(self):
        outcome = ChainOutcome(
            steps=(ChainStepResult(name="a", success=True),),
            success=False,
            failed_step_index=3,
            total_duration=0,
        )

        assert validate_chain(outcome).errors == ("Failed step index out of range",)

    def test_validate_does_not_mutate(self):
        outcome = normalize_chain({"steps": [{"name": 5, "success": True}]}, 0)
        steps_before = outcome.steps

        validate_chain(outcome)

        assert outcome.steps is steps_before
        assert outcome.steps[0].name == 5
