from loco_assistant.text import (
    as_bool,
    as_positive_int,
    as_string,
    as_string_list,
    assistant_conversation_id,
    direct_conversation_id,
    extract_strings,
    to_minor,
    tokenize,
)


def test_tokenize_drops_short_words_stop_words_and_punctuation() -> None:
    assert tokenize("I want THIS: strength-training, with a coach!") == [
        "want",
        "strengthtraining",
        "coach",
    ]


def test_tokenize_keeps_duplicates_and_digits() -> None:
    assert tokenize("run 5km run") == ["run", "5km", "run"]


def test_argument_coercion() -> None:
    assert as_string("  hi ") == "hi"
    assert as_string("   ") is None
    assert as_string(3) is None
    assert as_string_list(["a", " ", 4, " b "]) == ["a", "b"]
    assert as_string_list("a") == []
    assert as_bool("TRUE") is True
    assert as_bool("false", True) is False
    assert as_bool("yes", True) is True
    assert as_positive_int(7.9, 1) == 7
    assert as_positive_int("12abc", 1) == 12
    assert as_positive_int(0, 5) == 5
    assert as_positive_int(True, 5) == 5
    assert as_positive_int(float("inf"), 5) == 5


def test_to_minor_rounds_half_up_and_rejects_garbage() -> None:
    assert to_minor("49.99") == 4999
    assert to_minor("10.005") == 1001
    assert to_minor(12) == 1200
    assert to_minor("abc") == 0
    assert to_minor(None) == 0
    assert to_minor("NaN") == 0


def test_to_minor_out_of_range_amount_is_zero() -> None:
    assert to_minor("1e30") == 0
    assert to_minor(1e300) == 0
    assert to_minor("-1e40") == 0


def test_extract_strings_is_depth_limited() -> None:
    assert extract_strings(["a", {"b": ["c"]}, 3]) == ["a", "c"]
    assert extract_strings([[[[["deep"]]]]]) == []


def test_direct_conversation_id_is_order_independent() -> None:
    assert direct_conversation_id("u2", "t1") == direct_conversation_id("t1", "u2") == "t1-u2"


def test_assistant_conversation_id_keeps_prefix_first() -> None:
    assert assistant_conversation_id("a1") == "bot-a1"
    assert assistant_conversation_id("9f3c") == "bot-9f3c"
