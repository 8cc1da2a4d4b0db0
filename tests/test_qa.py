from __future__ import annotations

import pytest

from docqa.errors import InvalidArgument, NotFound, PreconditionFailed
from docqa.ingest import create_embeddings
from docqa.models import ProviderResult
from docqa.qa import UNAVAILABLE_ANSWER, answer_question, answer_question_multi
from docqa.snippets import ELLIPSIS, build_snippet

from conftest import FakeChat, make_document


def test_answers_from_top_chunks(runtime, chat: FakeChat) -> None:
    runtime.documents.save(make_document())
    assert create_embeddings(runtime, "doc-1", "alice") >= 1

    result = answer_question(runtime, "doc-1", "Are fish mammals?", "alice")

    assert result.answer == "fake answer"
    assert result.document_ids == ["doc-1"]
    assert result.document_names == ["animals.pdf"]
    assert result.question == "Are fish mammals?"
    chunk_texts = [c.text for c in runtime.chunks.chunks_for("doc-1")]
    assert result.source_snippet in chunk_texts
    assert result.source_snippet in chat.last_prompt
    assert "Question: Are fish mammals?" in chat.last_prompt
    _, temperature = chat.calls[-1]
    assert temperature == pytest.approx(0.1)


def test_top_chunk_snippet_is_truncated(runtime) -> None:
    long_sentence = "Mammals " + "really " * 60 + "are warm blooded."
    runtime.documents.save(make_document(raw_text=long_sentence))
    create_embeddings(runtime, "doc-1", "alice")

    result = answer_question(runtime, "doc-1", "warm blooded?", "alice")
    assert result.source_snippet.endswith(ELLIPSIS)
    assert len(result.source_snippet) == 300 + len(ELLIPSIS)


def test_without_chunks_uses_full_text_and_lexical_snippet(runtime, chat: FakeChat) -> None:
    document = make_document()
    runtime.documents.save(document)
    assert runtime.chunks.count_for("doc-1") == 0

    result = answer_question(runtime, "doc-1", "Are dogs mammals?", "alice")

    assert result.answer == "fake answer"
    assert result.source_snippet == build_snippet(document.raw_text, "Are dogs mammals?")
    assert document.raw_text in chat.last_prompt


def test_full_text_context_is_capped(runtime, chat: FakeChat) -> None:
    runtime.documents.save(make_document(raw_text="start " + "filler " * 2000 + "TAILMARK"))
    answer_question(runtime, "doc-1", "what is at the end?", "alice")
    assert "TAILMARK" not in chat.last_prompt


@pytest.mark.parametrize("question", ["", "   ", None])
def test_blank_question_rejected(runtime, question) -> None:
    runtime.documents.save(make_document())
    with pytest.raises(InvalidArgument):
        answer_question(runtime, "doc-1", question, "alice")


def test_unknown_or_foreign_document(runtime) -> None:
    runtime.documents.save(make_document(user_id="bob"))
    with pytest.raises(NotFound):
        answer_question(runtime, "doc-1", "question?", "alice")
    with pytest.raises(NotFound):
        answer_question(runtime, "nope", "question?", "alice")


def test_text_not_extracted(runtime) -> None:
    runtime.documents.save(make_document(raw_text=None))
    with pytest.raises(PreconditionFailed):
        answer_question(runtime, "doc-1", "question?", "alice")


@pytest.mark.parametrize(
    "failure",
    [
        ProviderResult.unavailable("HTTP 429", status_code=429),
        ProviderResult.unavailable("ConnectError: refused"),
        ProviderResult.invalid("missing or empty 'choices'"),
    ],
)
def test_provider_failure_degrades(runtime, chat: FakeChat, failure) -> None:
    chat.result = failure
    runtime.documents.save(make_document())
    result = answer_question(runtime, "doc-1", "Are cats mammals?", "alice")
    assert result.answer == UNAVAILABLE_ANSWER
    assert result.source_snippet


def test_multi_document_answer(runtime, chat: FakeChat) -> None:
    runtime.documents.save(make_document("doc-1", raw_text="Cats purr when happy."))
    runtime.documents.save(make_document("doc-2", raw_text="Dogs bark at strangers.", name=None))

    result = answer_question_multi(runtime, ["doc-1", "doc-2"], "Which animals purr?", "alice")

    assert result.document_ids == ["doc-1", "doc-2"]
    assert result.document_names == ["animals.pdf", "Document #doc-2"]
    assert result.answer == "fake answer"
    assert result.source_snippet == "Cats purr when happy."
    assert "Document 1: animals.pdf" in chat.last_prompt
    assert "Document 2: Document #doc-2" in chat.last_prompt
    assert "Dogs bark at strangers." in chat.last_prompt


def test_multi_document_validation(runtime) -> None:
    runtime.documents.save(make_document("doc-1"))
    runtime.documents.save(make_document("doc-2", raw_text=None))
    with pytest.raises(InvalidArgument):
        answer_question_multi(runtime, [], "question?", "alice")
    with pytest.raises(InvalidArgument):
        answer_question_multi(runtime, ["doc-1"], " ", "alice")
    with pytest.raises(PreconditionFailed):
        answer_question_multi(runtime, ["doc-1", "doc-2"], "question?", "alice")
    with pytest.raises(NotFound):
        answer_question_multi(runtime, ["doc-1", "missing"], "question?", "alice")
