"""Tests for compare_agent/models.py and compare_agent/comparison.py."""

from dataclasses import FrozenInstanceError

import pytest

from compare_agent.comparison import create_comparison
from compare_agent.errors import ValidationError
from compare_agent.models import Comparison, Question, Response, WordAnalysis


def test_question_from_file_fields():
    q = Question.from_file("/data/inbox/notes.md", "What is YAML?")
    assert q.file_path == "/data/inbox/notes.md"
    assert q.file_name == "notes.md"
    assert q.content == "What is YAML?"
    assert q.id
    assert q.created_at.tzinfo is not None


def test_question_ids_are_unique():
    a = Question.from_file("a.txt", "x")
    b = Question.from_file("a.txt", "x")
    assert a.id != b.id


@pytest.mark.parametrize("path,content", [("", "content"), ("a.txt", ""), ("a.txt", "   \n")])
def test_question_from_file_rejects_blank(path, content):
    with pytest.raises(ValidationError):
        Question.from_file(path, content)


def test_question_is_immutable(sample_question):
    with pytest.raises(FrozenInstanceError):
        sample_question.content = "changed"  # type: ignore[misc]


def test_response_optional_fields_default_to_none():
    r = Response.create("gemini-2.5-flash", "gemini", "Some answer.")
    assert r.token_count is None
    assert r.estimated_cost is None


def test_response_allows_empty_text():
    r = Response.create("gpt-4o-mini", "openai", "")
    assert r.response_text == ""


@pytest.mark.parametrize("model,provider", [("", "openai"), ("  ", "openai"), ("gpt", ""), ("gpt", " ")])
def test_response_rejects_blank_names(model, provider):
    with pytest.raises(ValidationError):
        Response.create(model, provider, "text")


def test_comparison_requires_two_responses(sample_question, sample_responses):
    analysis = WordAnalysis(shared_words=(), unique_words_by_model={})
    with pytest.raises(ValidationError):
        Comparison(question=sample_question, responses=(sample_responses[0],), analysis=analysis)


@pytest.mark.parametrize("count", [0, 1])
def test_create_comparison_rejects_too_few(sample_question, sample_responses, count):
    with pytest.raises(ValidationError, match="at least 2"):
        create_comparison(sample_question, sample_responses[:count])


def test_create_comparison_builds_analysis(sample_question, sample_responses):
    comparison = create_comparison(sample_question, sample_responses)
    assert comparison.question is sample_question
    assert comparison.responses == tuple(sample_responses)
    assert comparison.analysis.shared_words == ("sat", "the")
    assert comparison.analysis.unique_words_by_model == {
        "model-a": ("cat", "mat"),
        "model-b": ("dog", "rug"),
    }


def test_create_comparison_assigns_fresh_ids(sample_question, sample_responses):
    first = create_comparison(sample_question, sample_responses)
    second = create_comparison(sample_question, sample_responses)
    assert first.id != second.id
    assert first.compared_at.tzinfo is not None


def test_create_comparison_does_not_mutate_inputs(sample_question, sample_responses):
    before = list(sample_responses)
    create_comparison(sample_question, sample_responses)
    assert sample_responses == before


def test_create_comparison_keeps_response_order(sample_question):
    responses = [Response.create(f"model-{i}", f"p{i}", f"word{i} shared") for i in "cba"]
    comparison = create_comparison(sample_question, responses)
    assert [r.model_name for r in comparison.responses] == ["model-c", "model-b", "model-a"]


def test_unique_words_mapping_is_read_only(sample_comparison):
    with pytest.raises(TypeError):
        sample_comparison.analysis.unique_words_by_model["model-a"] = ("changed",)  # type: ignore[index]
    assert sample_comparison.analysis.unique_words_by_model["model-a"] == ("cat", "mat")


def test_word_analysis_copies_caller_dict():
    source = {"a": ["x", "y"], "b": []}
    analysis = WordAnalysis(shared_words=[], unique_words_by_model=source)
    source["a"].append("z")
    source["c"] = ["w"]
    assert dict(analysis.unique_words_by_model) == {"a": ("x", "y"), "b": ()}
    assert analysis.shared_words == ()


def test_comparison_is_hashable(sample_comparison):
    assert hash(sample_comparison) == hash(sample_comparison)
    assert sample_comparison in {sample_comparison}


def test_direct_construction_is_validated():
    with pytest.raises(ValidationError):
        Response(model_name="", provider="openai", response_text="text")
    with pytest.raises(ValidationError):
        Question(file_path="a.txt", file_name="a.txt", content="  ")
