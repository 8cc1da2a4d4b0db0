from __future__ import annotations

from pathlib import Path

import typer

from docqa.catalog import document_text, list_documents, search_documents
from docqa.config import ConfigError, Settings, load_settings, mask_secret
from docqa.errors import DocQAError
from docqa.ingest import create_embeddings, extract_text, get_chunk_count, register_upload
from docqa.logging_utils import configure_logging
from docqa.models import QaResult
from docqa.qa import answer_question, answer_question_multi
from docqa.runtime import Runtime, build_runtime
from docqa.summaries import latest_summary, summarize

app = typer.Typer(add_completion=False, help="Document Q&A CLI")

DATA_DIR_OPTION = typer.Option(Path("data"), "--data-dir", help="Directory for uploads, documents and chunks.")
USER_OPTION = typer.Option("local", "--user-id", "-u", help="Owner of the documents being accessed.")


def _runtime(data_dir: Path) -> Runtime:
    settings = load_settings(data_dir=data_dir)
    configure_logging(settings.log_level)
    return build_runtime(settings)


def _fail(command: str, exc: Exception) -> typer.Exit:
    typer.echo(f"{command} failed: {exc}")
    return typer.Exit(code=1)


def _print_result(result: QaResult) -> None:
    typer.echo(result.answer)
    typer.echo("")
    typer.echo("Source:")
    typer.echo(result.source_snippet or "- None")
    if len(result.document_names) > 1:
        typer.echo("")
        typer.echo("Documents: " + ", ".join(result.document_names))


@app.command()
def upload(
    path: Path = typer.Argument(..., help="PDF file to upload."),
    extract: bool = typer.Option(True, "--extract/--no-extract", help="Extract text right after upload."),
    data_dir: Path = DATA_DIR_OPTION,
    user_id: str = USER_OPTION,
) -> None:
    """Register a PDF and (by default) extract its text and embeddings."""
    try:
        runtime = _runtime(data_dir)
        document = register_upload(runtime, path, user_id)
        if extract:
            document = extract_text(runtime, document.id, user_id)
            chunk_count = get_chunk_count(runtime, document.id, user_id)
    except (ConfigError, DocQAError) as exc:
        raise _fail("Upload", exc)

    typer.echo(f"document_id={document.id}")
    typer.echo(f"status={document.status.value}")
    if extract:
        typer.echo(f"chunks={chunk_count}")


@app.command()
def extract(
    document_id: str = typer.Argument(...),
    data_dir: Path = DATA_DIR_OPTION,
    user_id: str = USER_OPTION,
) -> None:
    """Extract text from an uploaded PDF and rebuild its embeddings."""
    try:
        runtime = _runtime(data_dir)
        document = extract_text(runtime, document_id, user_id)
        chunk_count = get_chunk_count(runtime, document.id, user_id)
    except (ConfigError, DocQAError) as exc:
        raise _fail("Extract", exc)

    typer.echo(f"status={document.status.value}")
    typer.echo(f"characters={len(document.raw_text or '')}")
    typer.echo(f"chunks={chunk_count}")


@app.command()
def embed(
    document_id: str = typer.Argument(...),
    data_dir: Path = DATA_DIR_OPTION,
    user_id: str = USER_OPTION,
) -> None:
    """Re-chunk and re-embed a document's extracted text."""
    try:
        count = create_embeddings(_runtime(data_dir), document_id, user_id)
    except (ConfigError, DocQAError) as exc:
        raise _fail("Embed", exc)
    typer.echo(f"chunks={count}")


@app.command()
def chunks(
    document_id: str = typer.Argument(...),
    data_dir: Path = DATA_DIR_OPTION,
    user_id: str = USER_OPTION,
) -> None:
    """Show how many chunks are stored for a document."""
    try:
        count = get_chunk_count(_runtime(data_dir), document_id, user_id)
    except (ConfigError, DocQAError) as exc:
        raise _fail("Chunks", exc)
    typer.echo(f"chunks={count}")


@app.command()
def ask(
    document_id: str = typer.Argument(...),
    question: str = typer.Option(..., "--question", "-q", help="Question to ask about the document."),
    data_dir: Path = DATA_DIR_OPTION,
    user_id: str = USER_OPTION,
) -> None:
    """Answer a question from one document."""
    try:
        result = answer_question(_runtime(data_dir), document_id, question, user_id)
    except (ConfigError, DocQAError) as exc:
        raise _fail("Ask", exc)
    _print_result(result)


@app.command("ask-multi")
def ask_multi(
    document_ids: list[str] = typer.Argument(..., help="Documents to answer from."),
    question: str = typer.Option(..., "--question", "-q", help="Question to ask across the documents."),
    data_dir: Path = DATA_DIR_OPTION,
    user_id: str = USER_OPTION,
) -> None:
    """Answer a question from several documents at once."""
    try:
        result = answer_question_multi(_runtime(data_dir), document_ids, question, user_id)
    except (ConfigError, DocQAError) as exc:
        raise _fail("Ask", exc)
    _print_result(result)


@app.command("summarize")
def summarize_command(
    document_id: str = typer.Argument(...),
    data_dir: Path = DATA_DIR_OPTION,
    user_id: str = USER_OPTION,
) -> None:
    """Summarize a document and store the summary."""
    try:
        text = summarize(_runtime(data_dir), document_id, user_id)
    except (ConfigError, DocQAError) as exc:
        raise _fail("Summarize", exc)
    typer.echo(text)


@app.command()
def summary(
    document_id: str = typer.Argument(...),
    data_dir: Path = DATA_DIR_OPTION,
    user_id: str = USER_OPTION,
) -> None:
    """Print the most recent stored summary of a document."""
    try:
        latest = latest_summary(_runtime(data_dir), document_id, user_id)
    except (ConfigError, DocQAError) as exc:
        raise _fail("Summary", exc)
    typer.echo(f"created_at={latest.created_at.isoformat()}")
    typer.echo(latest.summary_text)


@app.command("list")
def list_command(
    data_dir: Path = DATA_DIR_OPTION,
    user_id: str = USER_OPTION,
) -> None:
    """List the user's documents."""
    try:
        documents = list_documents(_runtime(data_dir), user_id)
    except (ConfigError, DocQAError) as exc:
        raise _fail("List", exc)
    if not documents:
        typer.echo("- None")
    for document in documents:
        typer.echo(f"{document.id} {document.status.value} {document.display_name}")


@app.command("text")
def text_command(
    document_id: str = typer.Argument(...),
    data_dir: Path = DATA_DIR_OPTION,
    user_id: str = USER_OPTION,
) -> None:
    """Print a document's extracted text."""
    try:
        text = document_text(_runtime(data_dir), document_id, user_id)
    except (ConfigError, DocQAError) as exc:
        raise _fail("Text", exc)
    typer.echo(text)


@app.command()
def search(
    query: str = typer.Argument(..., help="Text to look for in extracted documents."),
    data_dir: Path = DATA_DIR_OPTION,
    user_id: str = USER_OPTION,
) -> None:
    """Find the user's documents containing ``query``."""
    try:
        results = search_documents(_runtime(data_dir), query, user_id)
    except (ConfigError, DocQAError) as exc:
        raise _fail("Search", exc)
    if not results:
        typer.echo("- None")
    for result in results:
        typer.echo(f"{result.document_id} {result.document_name}")
        typer.echo(f"  {result.snippet}")


@app.command()
def repl(
    document_id: str = typer.Argument(...),
    data_dir: Path = DATA_DIR_OPTION,
    user_id: str = USER_OPTION,
) -> None:
    """Interactive Q&A loop over one document."""
    try:
        runtime = _runtime(data_dir)
    except ConfigError as exc:
        typer.echo(f"Configuration error: {exc}")
        raise typer.Exit(code=1)

    typer.echo("Document Q&A REPL. Type 'exit' or 'quit' to stop.")
    while True:
        question = typer.prompt("Question").strip()
        if question.lower() in {"exit", "quit"}:
            break
        if not question:
            continue
        try:
            result = answer_question(runtime, document_id, question, user_id)
        except DocQAError as exc:
            typer.echo(f"Error: {exc}")
            continue
        _print_result(result)
        typer.echo("")


def _doctor_lines(settings: Settings) -> list[str]:
    return [
        f"data_dir={settings.data_dir} exists={settings.data_dir.exists()}",
        f"embedding_api_key={mask_secret(settings.embedding_api_key)}",
        f"embedding_model={settings.embedding_model} dimension={settings.embedding_dimension}",
        f"llm_api_key={mask_secret(settings.llm_api_key)}",
        f"llm_model={settings.llm_model}",
        f"chunk_size={settings.chunk_size} top_k={settings.top_k}",
    ]


@app.command()
def doctor(data_dir: Path = DATA_DIR_OPTION) -> None:
    """Check configuration and storage paths."""
    try:
        settings = load_settings(data_dir=data_dir)
        if not settings.data_dir.exists():
            raise ConfigError(f"data_dir does not exist: {settings.data_dir}")
    except ConfigError as exc:
        raise _fail("Doctor", exc)

    typer.echo("Doctor checks passed")
    for line in _doctor_lines(settings):
        typer.echo(line)
    if not settings.embedding_api_key:
        typer.echo("warning: embeddings will use the deterministic fallback")
    if not settings.llm_api_key:
        typer.echo("warning: answers and summaries will use fallbacks")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
