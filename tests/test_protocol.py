"""Tests for refactor protocol payload parsing and the channel dispatch."""

import pytest

from renamepad.analysis.protocol import (
    AvailabilityUpdate,
    ProtocolError,
    RefactorResult,
    VariablePositions,
    finish_refactoring_params,
)
from renamepad.analysis.types import RENAME_VARIABLE, AvailabilityFlags, Identifier, OccurrencePosition


class TestVariablePositions:
    def test_parse(self):
        parsed = VariablePositions.from_params(
            {
                "primaryPosition": {"row": 2, "column": 4},
                "length": 3,
                "secondaryPositions": [{"row": 5, "column": 10}],
                "session": 7,
            }
        )
        assert parsed.primary == OccurrencePosition(2, 4)
        assert parsed.secondaries == (OccurrencePosition(5, 10),)
        assert parsed.length == 3
        assert parsed.session == 7

    def test_primary_is_removed_from_secondaries(self):
        parsed = VariablePositions(
            primary=OccurrencePosition(1, 1),
            length=2,
            secondaries=(OccurrencePosition(1, 1), OccurrencePosition(3, 0)),
        )
        assert parsed.occurrence_set().secondaries == (OccurrencePosition(3, 0),)

    def test_session_is_optional(self):
        parsed = VariablePositions.from_params({"primaryPosition": {"row": 0, "column": 0}, "length": 1})
        assert parsed.session is None
        assert parsed.secondaries == ()

    @pytest.mark.parametrize(
        "params",
        [
            None,
            [],
            {"length": 3},
            {"primaryPosition": {"row": 0}, "length": 3},
            {"primaryPosition": {"row": 0, "column": 0}, "length": "3"},
            {"primaryPosition": {"row": 0, "column": 0}, "length": True},
            {"primaryPosition": {"row": -1, "column": 0}, "length": 3},
            {"primaryPosition": {"row": 0, "column": 0}, "length": 3, "secondaryPositions": "x"},
            {"primaryPosition": {"row": 0, "column": 0}, "length": 3, "session": "a"},
        ],
    )
    def test_malformed(self, params):
        with pytest.raises(ProtocolError):
            VariablePositions.from_params(params)


class TestRefactorResult:
    def test_parse(self):
        result = RefactorResult.from_params({"success": False, "detail": "clash", "session": 2})
        assert result == RefactorResult(success=False, detail="clash", session=2)

    def test_detail_defaults_to_empty(self):
        assert RefactorResult.from_params({"success": True}).detail == ""

    def test_success_must_be_boolean(self):
        with pytest.raises(ProtocolError):
            RefactorResult.from_params({"success": 1})


class TestAvailability:
    def test_object_and_bare_list_forms(self):
        assert AvailabilityUpdate.from_params({"names": [RENAME_VARIABLE]}).names == frozenset({RENAME_VARIABLE})
        assert AvailabilityUpdate.from_params([RENAME_VARIABLE, ""]).names == frozenset({RENAME_VARIABLE})

    def test_flags(self):
        assert AvailabilityFlags.from_names([RENAME_VARIABLE]).rename_variable
        assert not AvailabilityFlags.from_names(["extractMethod"]).rename_variable

    def test_rejects_non_list(self):
        with pytest.raises(ProtocolError):
            AvailabilityUpdate.from_params({"names": "renameVariable"})


def test_finish_params_shape():
    params = finish_refactoring_params(Identifier(row=2, start_column=4, text="foo"), "xyz", 3)
    assert params == {
        "oldIdentifier": {"row": 2, "column": 4, "text": "foo"},
        "newName": "xyz",
        "session": 3,
    }


class TestChannelDispatch:
    def test_signals_per_message_kind(self, fake_channel):
        received = []
        fake_channel.refactorResultReceived.connect(received.append)

        assert fake_channel.inject("refactorResult", {"success": True})
        assert received == [RefactorResult(success=True)]

    def test_unknown_method_is_ignored(self, fake_channel):
        assert not fake_channel.dispatch_message({"method": "somethingElse", "params": {}})

    def test_malformed_payload_reports_status(self, fake_channel):
        messages = []
        fake_channel.statusMessage.connect(messages.append)

        assert not fake_channel.inject("refactorResult", {"success": "yes"})
        assert len(messages) == 1

    def test_outbound_helpers(self, fake_channel):
        fake_channel.fetch_variable_positions(OccurrencePosition(1, 2), session=4)
        fake_channel.start_refactoring(session=4)
        fake_channel.cancel_refactoring(session=4)

        assert fake_channel.sent == [
            ("fetchVariablePositions", {"row": 1, "column": 2, "session": 4}),
            ("startRefactoring", {"session": 4}),
            ("cancelRefactoring", {"session": 4}),
        ]
