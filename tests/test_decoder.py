"""Tests for decoding planner output into actions."""

import json

import pytest

from phonepilot.errors import MalformedResponseError
from phonepilot.models import (
    Click,
    Error,
    GoBack,
    GoHome,
    LongClick,
    OpenApp,
    OpenRecents,
    Scroll,
    ScrollDirection,
    Speak,
    TaskComplete,
    TypeText,
    Wait,
)
from phonepilot.planner.decoder import decode_actions, decode_plan

FULL_PAYLOAD = {
    "thinking": "Open WhatsApp and send the message.",
    "actions": [
        {"type": "open_app", "params": {"package": "com.whatsapp"}},
        {"type": "wait", "params": {"ms": 1500}},
        {"type": "click", "params": {"element_id": "search"}},
        {"type": "type_text", "params": {"text": "Mom", "element_id": "search_box"}},
        {"type": "long_click", "params": {"x": 10, "y": 20}},
        {"type": "scroll", "params": {"direction": "up"}},
        {"type": "back"},
        {"type": "home"},
        {"type": "recents"},
        {"type": "speak", "params": {"message": "Sent!"}},
        {"type": "complete"},
    ],
}


def test_decode_full_payload_preserves_order_and_types():
    plan = decode_plan(json.dumps(FULL_PAYLOAD))
    assert plan.thinking == "Open WhatsApp and send the message."
    assert plan.warnings == []
    assert plan.actions == [
        OpenApp(package_name="com.whatsapp"),
        Wait(milliseconds=1500),
        Click(element_id="search"),
        TypeText(text="Mom", element_id="search_box"),
        LongClick(x=10, y=20),
        Scroll(direction=ScrollDirection.UP),
        GoBack(),
        GoHome(),
        OpenRecents(),
        Speak(message="Sent!"),
        TaskComplete(),
    ]


@pytest.mark.parametrize(
    "wrapped",
    [
        "```json\n{payload}\n```",
        "```\n{payload}\n```",
        "  \n```json{payload}```  \n",
        "\n\n{payload}\n",
        "{payload}\n```",
        "```json\n{payload}",
    ],
)
def test_fenced_payload_decodes_like_unfenced(wrapped):
    payload = json.dumps(FULL_PAYLOAD)
    assert decode_actions(wrapped.replace("{payload}", payload)) == decode_actions(payload)


def test_type_is_case_insensitive():
    actions = decode_actions('{"actions": [{"type": "CLICK", "params": {"x": 1, "y": 2}}, {"type": "Complete"}]}')
    assert actions == [Click(x=1, y=2), TaskComplete()]


def test_unknown_type_is_dropped_and_decoding_continues():
    raw = json.dumps(
        {
            "actions": [
                {"type": "click", "params": {"element_id": "a"}},
                {"type": "teleport", "params": {"where": "moon"}},
                {"type": "complete"},
            ]
        }
    )
    plan = decode_plan(raw)
    assert plan.actions == [Click(element_id="a"), TaskComplete()]
    assert len(plan.warnings) == 1
    assert "teleport" in plan.warnings[0]


@pytest.mark.parametrize(
    "item",
    [
        {"type": "type_text", "params": {"element_id": "field"}},
        {"type": "open_app", "params": {}},
        {"type": "open_app"},
        {"type": "speak", "params": {"msg": "wrong key"}},
        {"params": {"x": 1}},
        "click",
        {"type": 5},
    ],
)
def test_item_missing_required_field_is_dropped(item):
    raw = json.dumps({"actions": [{"type": "back"}, item, {"type": "home"}]})
    plan = decode_plan(raw)
    assert plan.actions == [GoBack(), GoHome()]
    assert len(plan.warnings) == 1


def test_click_without_target_is_still_constructed():
    actions = decode_actions('{"actions": [{"type": "click"}, {"type": "long_click", "params": {"x": 5}}]}')
    assert actions == [Click(), LongClick(x=5)]


def test_non_numeric_coordinates_are_ignored():
    actions = decode_actions('{"actions": [{"type": "click", "params": {"x": "10", "y": true}}]}')
    assert actions == [Click()]


def test_element_id_is_stringified():
    actions = decode_actions('{"actions": [{"type": "click", "params": {"element_id": 42}}]}')
    assert actions == [Click(element_id="42")]


def test_defaults_for_optional_params():
    raw = json.dumps(
        {
            "actions": [
                {"type": "scroll"},
                {"type": "scroll", "params": {"direction": "sideways"}},
                {"type": "scroll", "params": {"direction": "LEFT"}},
                {"type": "wait"},
                {"type": "wait", "params": {"ms": "soon"}},
                {"type": "error"},
                {"type": "error", "params": {"message": "No such contact"}},
            ]
        }
    )
    assert decode_actions(raw) == [
        Scroll(direction=ScrollDirection.DOWN),
        Scroll(direction=ScrollDirection.DOWN),
        Scroll(direction=ScrollDirection.LEFT),
        Wait(milliseconds=1000),
        Wait(milliseconds=1000),
        Error(message="Unknown error"),
        Error(message="No such contact"),
    ]


@pytest.mark.parametrize("number", ["1e400", "-1e400", "NaN", "Infinity"])
def test_non_finite_numbers_are_treated_as_absent(number):
    raw = (
        '{"actions": ['
        f'{{"type": "wait", "params": {{"ms": {number}}}}}, '
        f'{{"type": "click", "params": {{"x": {number}, "y": 5}}}}, '
        '{"type": "complete"}]}'
    )
    plan = decode_plan(raw)
    assert plan.actions == [Wait(milliseconds=1000), Click(y=5), TaskComplete()]
    assert plan.warnings == []


def test_explicit_empty_error_message_is_kept():
    actions = decode_actions('{"actions": [{"type": "error", "params": {"message": ""}}]}')
    assert actions == [Error(message="")]


def test_float_wait_is_truncated():
    assert decode_actions('{"actions": [{"type": "wait", "params": {"ms": 250.7}}]}') == [Wait(milliseconds=250)]


def test_never_returns_more_items_than_present():
    items = [{"type": t} for t in ["back", "nope", "home", "open_app", "complete"]]
    actions = decode_actions(json.dumps({"actions": items}))
    assert len(actions) <= len(items)
    assert actions == [GoBack(), GoHome(), TaskComplete()]


def test_thinking_is_optional():
    plan = decode_plan('{"actions": [{"type": "complete"}]}')
    assert plan.thinking is None
    assert plan.actions == [TaskComplete()]


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "I will open WhatsApp for you.",
        '{"thinking": "cut off", "actions": [',
        "[]",
        '{"thinking": "no actions key"}',
        '{"actions": {"type": "click"}}',
    ],
)
def test_structural_failure_raises_malformed(raw):
    with pytest.raises(MalformedResponseError):
        decode_actions(raw)
