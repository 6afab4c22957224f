import pytest

from aiva.ai.parser import extract_generated_text, parse_technique, strip_assistant_prefix
from aiva.core.exceptions import ParsingError
from aiva.core.models import DEFAULT_TECHNIQUE_TITLE, Technique


def test_title_and_description_split_on_first_newline():
    t = parse_technique("Pomodoro Technique\nWork in 25-minute blocks.\nTake breaks.")

    assert t == Technique("Pomodoro Technique", "Work in 25-minute blocks.\nTake breaks.")


@pytest.mark.parametrize(
    "text, title, description",
    [
        ("  Body Doubling  \n  Work near someone.  ", "Body Doubling", "Work near someone."),
        ("Only a title", "Only a title", ""),
        ("\nDescription without a title", DEFAULT_TECHNIQUE_TITLE, "Description without a title"),
        ("   \n", DEFAULT_TECHNIQUE_TITLE, ""),
        ("", DEFAULT_TECHNIQUE_TITLE, ""),
    ],
)
def test_parse_edge_cases(text, title, description):
    t = parse_technique(text)
    assert (t.title, t.description) == (title, description)


@pytest.mark.parametrize("value", [None, 42, ["list"], {"generated_text": "x"}])
def test_non_text_yields_default(value):
    assert parse_technique(value) == Technique(DEFAULT_TECHNIQUE_TITLE, "")


# ---------------------------------------------------------------- extraction
@pytest.mark.parametrize(
    "response, expected",
    [
        ("plain", "plain"),
        ([{"generated_text": "from list"}], "from list"),
        ({"generated_text": "from dict"}, "from dict"),
        ({"generated_text": None}, ""),
        ([], ""),
        ({"choices": [{"message": {"role": "assistant", "content": "chat"}}]}, "chat"),
        ({"choices": [{"text": "completion"}]}, "completion"),
    ],
)
def test_extract_generated_text_shapes(response, expected):
    assert extract_generated_text(response) == expected


@pytest.mark.parametrize("response", [None, 3.14, {"unexpected": True}, {"choices": []}])
def test_extract_unknown_shape_raises(response):
    with pytest.raises(ParsingError):
        extract_generated_text(response)


def test_strip_assistant_prefix_keeps_last_reply():
    raw = "User: hi\nAssistant: hello\nUser: how?\nAssistant:  Like this. "
    assert strip_assistant_prefix(raw) == "Like this."


def test_strip_assistant_prefix_without_marker_is_identity():
    assert strip_assistant_prefix("  untouched ") == "  untouched "
