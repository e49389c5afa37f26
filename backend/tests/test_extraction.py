import json
import time

from quizhub.extraction import extract_string_list, iter_question_objects, normalize, repair_trailing_commas


def _question(text, answer="a"):
    return {"question": text, "options": ["a", "b", "c", "d"], "answer": answer}


def test_normalize_collapses_whitespace_and_control_characters():
    assert normalize("  one\r\n\ttwo\x00\x07  three \n") == "one two three"
    assert normalize(None) == ""


def test_repair_trailing_commas():
    assert repair_trailing_commas('{"a": [1, 2, ], "b": 3, }') == '{"a": [1, 2], "b": 3}'


def test_object_with_trailing_comma_is_recovered_from_noise():
    raw = 'noise{ "question":"Q1","options":["a","b","c","d"],"answer":"a",}noise'
    assert list(iter_question_objects(raw)) == [_question("Q1")]


def test_objects_inside_a_json_array_with_prose_and_fences():
    payload = json.dumps([_question("Q1"), _question("Q2", answer="c")], indent=2)
    raw = f"Sure! Here is your quiz:\n```json\n{payload}\n```\nGood luck!"
    assert list(iter_question_objects(raw)) == [_question("Q1"), _question("Q2", answer="c")]


def test_line_breaks_inside_strings_are_tolerated():
    raw = '[{"question": "What is\n2 + 2?", "options": ["1", "2", "3", "4"], "answer": "4"}]'
    assert list(iter_question_objects(raw)) == [
        {"question": "What is 2 + 2?", "options": ["1", "2", "3", "4"], "answer": "4"}
    ]


def test_one_malformed_candidate_does_not_spoil_the_batch():
    raw = (
        '{"question":"Q1,"options":["a","b","c","d"],"answer":"a"} '
        '{"question":"Q2","options":["a","b","c","d"],"answer":"b"}'
    )
    assert list(iter_question_objects(raw)) == [_question("Q2", answer="b")]


def test_truncated_trailing_object_is_dropped():
    raw = json.dumps([_question("Q1")])[:-1] + ', {"question": "Q2", "options": ["a", "b"'
    assert list(iter_question_objects(raw)) == [_question("Q1")]


def test_braces_and_escaped_quotes_inside_strings():
    obj = {"question": 'Which set is {1, 2}? Say "yes" or {no}', "options": ["a", "b", "c", "d"], "answer": "a"}
    raw = "prefix " + json.dumps(obj) + " suffix"
    assert list(iter_question_objects(raw)) == [obj]


def test_objects_nested_in_a_wrapper_object():
    raw = json.dumps({"questions": [_question("Q1"), _question("Q2")]})
    assert [q["question"] for q in iter_question_objects(raw)] == ["Q1", "Q2"]


def test_keys_must_appear_in_order():
    raw = '{"answer": "a", "options": ["a","b","c","d"], "question": "Q"} {"note": "ignore me"}'
    assert list(iter_question_objects(raw)) == []


def test_extraction_is_lazy():
    raw = json.dumps([_question(f"Q{i}") for i in range(3)])
    found = iter_question_objects(raw)
    assert next(found)["question"] == "Q0"
    assert next(found)["question"] == "Q1"


def test_extract_string_list_from_noisy_text():
    raw = 'Here you go:\n["Fractions", " Decimals ", "", 7, "Ratios",]\nEnjoy'
    assert extract_string_list(raw) == ["Fractions", "Decimals", "Ratios"]


def test_extract_string_list_skips_empty_and_invalid_arrays():
    raw = 'bad [1, 2 ] then [oops] then ["Algebra"]'
    assert extract_string_list(raw) == ["Algebra"]


def test_extract_string_list_without_array():
    assert extract_string_list("I cannot help with that.") == []
    assert extract_string_list("") == []


def test_dangling_openers_do_not_trigger_rescans():
    started = time.perf_counter()
    assert list(iter_question_objects("{" * 20000)) == []
    assert extract_string_list("[" * 20000) == []
    assert list(iter_question_objects('{"x' * 10000)) == []
    assert time.perf_counter() - started < 5.0


def test_question_after_a_long_unbalanced_prefix():
    raw = "{" * 5000 + json.dumps(_question("Q1")) + ' {"question": "Q2", "options": ['
    assert list(iter_question_objects(raw)) == [_question("Q1")]


def test_malformed_candidate_followed_by_unclosed_text():
    raw = '{"question":"Q1,"options":["a"] ' + json.dumps(_question("Q2")) + ' {"oops'
    assert list(iter_question_objects(raw)) == [_question("Q2")]
