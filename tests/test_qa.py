import math

import pytest

from paperplain.exceptions import AnswerFailedError, LLMRequestError
from paperplain.models import Paper, SourceType
from paperplain.qa import Answerer, find_supporting_sources, score_candidate, tokenize


class FakeChatClient:
    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    def complete(self, system_prompt, user_prompt, temperature, max_tokens):
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


ABSTRACT = (
    "We study protein folding with a graph neural network. "
    "The network predicts contact maps from sequence alone."
)

SUMMARY = """**The Problem:**
Predicting protein folding is expensive. Labs need faster tools.

**The Method:**
They train a graph neural network on contact maps. The network predicts contact maps from sequence alone.

**Key Terms:**
• **Contact map**: Which residues touch"""


def test_tokenize_drops_short_tokens():
    assert tokenize("Is a GNN-based model OK?") == ["gnn-based", "model"]


def test_score_candidate_damps_long_text():
    question = {"protein", "folding"}

    short = score_candidate(question, "protein folding")
    long_text = " ".join(["protein", "folding"] + ["filler"] * 98)

    assert short == pytest.approx(2 / 8)
    assert score_candidate(question, long_text) == pytest.approx(2 / math.sqrt(100))
    assert score_candidate(question, "") == 0.0


def test_find_supporting_sources_limits_and_truncates():
    long_sentence = "Protein folding " + "matters a great deal " * 30 + "."
    summary = "\n\n".join(
        [
            "Protein folding is hard.",
            "Protein folding is slow.",
            "Protein folding is costly.",
            "Protein folding is studied.",
            long_sentence,
        ]
    )

    sources = find_supporting_sources("Why is protein folding hard?", ABSTRACT, summary)

    assert 0 < len(sources) <= 3
    for source in sources:
        assert len(source.text) <= 221
    texts = [source.text.lower() for source in sources]
    assert len(texts) == len(set(texts))


def test_find_supporting_sources_dedupes_repeated_text():
    sources = find_supporting_sources(
        "What do contact maps predict from sequence?", ABSTRACT, SUMMARY
    )

    texts = [source.text for source in sources]
    assert texts.count("The network predicts contact maps from sequence alone.") == 1
    assert all(source.label in {"Abstract", "Summary"} for source in sources)


def test_long_source_gets_ellipsis():
    abstract = "protein " * 100
    sources = find_supporting_sources("protein", abstract, "")

    assert sources[0].label == "Abstract"
    assert sources[0].text.endswith("…")
    assert len(sources[0].text) <= 221


def test_no_usable_question_tokens_returns_no_sources():
    assert find_supporting_sources("? ? ?", ABSTRACT, SUMMARY) == []
    assert find_supporting_sources("is it ok", ABSTRACT, SUMMARY) == []


def test_answer_uses_qa_parameters_and_attaches_sources():
    chat = FakeChatClient(["They use a graph neural network."])
    paper = Paper(
        title="Folding with GNNs",
        authors="Ada Lovelace",
        abstract=ABSTRACT,
        source_type=SourceType.ARXIV,
        summary=SUMMARY,
    )

    exchange = Answerer(chat_client=chat).answer("  What network do they use?  ", paper)

    assert exchange.question == "What network do they use?"
    assert exchange.answer == "They use a graph neural network."
    assert 0 < len(exchange.sources) <= 3
    call = chat.calls[0]
    assert call["temperature"] == 0.2
    assert call["max_tokens"] == 400
    assert "Folding with GNNs" in call["user_prompt"]
    assert "What network do they use?" in call["user_prompt"]
    assert exchange.to_dict()["sources"][0]["label"] in {"Abstract", "Summary"}


def test_answer_without_summary_still_works():
    chat = FakeChatClient(["Not stated."])
    paper = Paper(title="T", authors="A", abstract="", source_type=SourceType.MANUAL)

    exchange = Answerer(chat_client=chat).answer("What dataset?", paper)

    assert exchange.sources == []
    assert "Summary: \n" in chat.calls[0]["user_prompt"]


def test_blank_question_is_rejected():
    with pytest.raises(ValueError):
        Answerer(chat_client=FakeChatClient([])).answer("   ", None)


def test_llm_failure_raises_answer_failed():
    chat = FakeChatClient([LLMRequestError("boom")])
    paper = Paper(title="T", authors="A", abstract=ABSTRACT, source_type=SourceType.MANUAL)

    with pytest.raises(AnswerFailedError, match="Failed to answer question"):
        Answerer(chat_client=chat).answer("What?", paper)
