"""Command-line interface for Lectio.

Responsibilities:
- Expose user-facing commands for section listing, generation, merging and dubbing.
- Convert CLI arguments into `LectioConfig` and wire pipeline collaborators.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
import threading
from typing import Annotated, Any

import typer

from .audio.assembler import AudioAssembler
from .cli_rendering import (
    echo_batch_summary,
    echo_section_list,
    echo_section_result,
    echo_voice_list,
    exit_with_command_error,
    format_duration,
)
from .cli_runtime import require_api_key, resolve_credential_sources
from .config import ConfigLoader, LectioConfig
from .credentials import create_credential_store
from .errors import PipelineStageError
from .io.document_loader import DocumentLoader, LoadedDocument
from .io.sinks import FileAudioSink
from .models.datatypes import BatchReport, Section
from .parsing import normalize_optional_string
from .pipeline.batch import BatchCoordinator
from .pipeline.dubbing import DubbingWorkflow
from .pipeline.orchestrator import GenerationOrchestrator
from .pipeline.repository import SectionRepository
from .provider_factory import ProviderFactory
from .telemetry.logger import RunLogger
from .text.chunking import SubChunker
from .text.section_selection import format_section_selection, parse_section_selection
from .text.segmenter import DocumentSegmenter
from .tts.voices import SUPPORTED_LANGUAGES, default_voice, find_voice, voices_for_language

app = typer.Typer(
    name="lectio",
    no_args_is_help=True,
    help="Lectio: long-document narration with Gemini speech.",
)

_BATCH_JOIN_POLL_SECONDS = 0.2


def _load_yaml_config(config_path: Path | None) -> LectioConfig:
    """Load YAML config when requested, else environment config; map failures to stage errors."""

    if config_path is None:
        try:
            return ConfigLoader.from_env()
        except ValueError as exc:
            raise PipelineStageError(
                stage="config",
                detail=f"Invalid environment configuration: {exc}",
                hint="Fix or unset the offending `LECTIO_*` variable and rerun.",
            ) from exc

    if not config_path.exists():
        raise PipelineStageError(
            stage="config",
            detail=f"Config file not found: `{config_path}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        )
    try:
        return ConfigLoader.from_yaml(config_path)
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Invalid config file `{config_path}`: {exc}",
            hint="Fix config schema/values and rerun.",
        ) from exc


def _resolve_command_config(config_file: Path | None, **overrides: Any) -> LectioConfig:
    """Resolve effective command config from file/env defaults and explicit CLI overrides."""

    base_config = _load_yaml_config(config_file)
    explicit = {key: value for key, value in overrides.items() if value is not None}
    config = replace(base_config, **explicit)
    try:
        config.validate()
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=str(exc),
            hint="Run `lectio voices` to list voices; pitch is -2..2 and speed 0.5..2.",
        ) from exc
    return config


def _load_document(path: Path) -> LoadedDocument:
    """Load an input document and map failures to stage errors."""

    try:
        return DocumentLoader().load(path)
    except RuntimeError as exc:
        raise PipelineStageError(
            stage="load",
            detail=str(exc),
            hint="Provide an existing `.txt`, `.md` or text-based `.pdf` document.",
        ) from exc


def _load_sections(document: LoadedDocument, config: LectioConfig) -> SectionRepository:
    """Segment a loaded document into a fresh repository."""

    repository = SectionRepository(
        segmenter=DocumentSegmenter(long_audio_threshold_chars=config.long_audio_threshold_chars)
    )
    repository.load_text(document.text, document.title)
    return repository


def _select_sections(repository: SectionRepository, selection: str | None) -> list[Section]:
    """Resolve a 1-based selection expression into sections."""

    try:
        indices = parse_section_selection(
            selection,
            [section.index for section in repository.sections()],
        )
    except ValueError as exc:
        raise PipelineStageError(
            stage="selection",
            detail=str(exc),
            hint="Run `lectio sections <document>` to list section numbers.",
        ) from exc
    return [repository.by_index(index) for index in indices]


def _run_batch_interruptibly(
    batch: BatchCoordinator,
    section_ids: list[str],
    config: LectioConfig,
    api_key: str,
) -> BatchReport:
    """Run a batch in a worker thread so Ctrl+C can cancel the active section."""

    outcome: dict[str, Any] = {}

    def _worker() -> None:
        try:
            outcome["report"] = batch.run(section_ids, config.voice_parameters(), api_key)
        except Exception as exc:
            outcome["error"] = exc

    worker = threading.Thread(target=_worker, name="lectio-batch", daemon=True)
    worker.start()
    try:
        while worker.is_alive():
            worker.join(_BATCH_JOIN_POLL_SECONDS)
    except KeyboardInterrupt:
        typer.echo("Interrupted: cancelling the active section and stopping the batch.")
        batch.stop(cancel_active=True)
        worker.join()

    if "error" in outcome:
        raise outcome["error"]
    return outcome["report"]


LanguageOption = Annotated[
    str | None,
    typer.Option("--language", help=f"Narration language: {', '.join(SUPPORTED_LANGUAGES)}."),
]
ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", help="Path to YAML config file with command defaults."),
]
ApiKeyOption = Annotated[
    str | None,
    typer.Option(
        "--api-key",
        help="Gemini API key override. Prefer `--prompt-api-key` to avoid shell history.",
    ),
]
PromptApiKeyOption = Annotated[
    bool,
    typer.Option("--prompt-api-key", help="Prompt for API key with hidden input (never echoed)."),
]
StoreApiKeyOption = Annotated[
    bool,
    typer.Option(
        "--store-api-key/--no-store-api-key",
        help="Persist a CLI-entered API key to secure credential storage.",
    ),
]


@app.command("sections")
def sections_command(
    document: Annotated[Path, typer.Argument(help="Path to a .txt, .md or .pdf document.")],
    config_file: ConfigOption = None,
) -> None:
    """List the sections a document is split into."""

    try:
        config = _resolve_command_config(config_file)
        loaded = _load_document(document)
        repository = _load_sections(loaded, config)
    except Exception as exc:
        exit_with_command_error("sections", exc)

    sections = repository.sections()
    typer.echo(f"Sections: {len(sections)}")
    echo_section_list(sections)


@app.command("generate")
def generate_command(
    document: Annotated[Path, typer.Argument(help="Path to a .txt, .md or .pdf document.")],
    sections: Annotated[
        str | None,
        typer.Option(
            "--sections",
            help="1-based section selection: `5`, `1,3,7`, `2-4`, or mixed `1,3-5`.",
        ),
    ] = None,
    voice: Annotated[
        str | None,
        typer.Option("--voice", help="Voice id, narrator name, or Gemini voice name."),
    ] = None,
    language: LanguageOption = None,
    pitch: Annotated[float | None, typer.Option("--pitch", help="Relative pitch, -2 to 2.")] = None,
    speed: Annotated[float | None, typer.Option("--speed", help="Speaking rate, 0.5 to 2.")] = None,
    dialogue_mode: Annotated[
        bool | None,
        typer.Option("--dialogue/--no-dialogue", help="Speak each line as a separate chunk."),
    ] = None,
    auto_optimize: Annotated[
        bool | None,
        typer.Option("--optimize/--no-optimize", help="Rewrite text for narration before speech."),
    ] = None,
    paid_tier: Annotated[
        bool | None,
        typer.Option("--paid-tier/--free-tier", help="Use the short throttle of paid API keys."),
    ] = None,
    merge_output: Annotated[
        bool | None,
        typer.Option("--merge/--no-merge", help="Also write one merged file of all sections."),
    ] = None,
    continue_on_error: Annotated[
        bool | None,
        typer.Option(
            "--continue-on-error/--stop-on-error",
            help="Keep generating later sections after a failed one.",
        ),
    ] = None,
    out: Annotated[
        Path | None,
        typer.Option("--out", help="Output directory (overrides config file value)."),
    ] = None,
    config_file: ConfigOption = None,
    api_key: ApiKeyOption = None,
    prompt_api_key: PromptApiKeyOption = False,
    store_api_key: StoreApiKeyOption = True,
    verbose: Annotated[bool, typer.Option("--verbose", help="Log per-chunk progress.")] = False,
) -> None:
    """Generate narration audio for selected sections of a document."""

    try:
        config = _resolve_command_config(
            config_file,
            voice=normalize_optional_string(voice),
            language=normalize_optional_string(language),
            pitch=pitch,
            speed=speed,
            dialogue_mode=dialogue_mode,
            auto_optimize=auto_optimize,
            paid_tier=paid_tier,
            merge_output=merge_output,
            continue_on_error=continue_on_error,
            output_dir=out,
        )
        sources = resolve_credential_sources(
            api_key=api_key,
            prompt_api_key=prompt_api_key,
            store_api_key=store_api_key,
            credential_store_factory=create_credential_store,
        )
        resolved_api_key = require_api_key(sources, config.api_key)
        loaded = _load_document(document)
        repository = _load_sections(loaded, config)
        selected = _select_sections(repository, sections)

        logger = RunLogger(level="DEBUG" if verbose else "INFO")
        sink = FileAudioSink(config.output_dir)
        orchestrator = GenerationOrchestrator(
            repository,
            ProviderFactory.create_speech_synthesizer(config, logger=logger),
            optimizer=ProviderFactory.create_text_optimizer(config),
            chunker=SubChunker(max_chars=config.max_chars_per_chunk),
            timings=config.generation_timings(),
            sink=sink,
            logger=logger,
        )
        batch = BatchCoordinator(
            orchestrator,
            continue_on_error=config.continue_on_error,
            logger=logger,
        )
        typer.echo(
            f"Generating {len(selected)} section(s): "
            f"{format_section_selection(section.index for section in selected)}"
        )
        report = _run_batch_interruptibly(
            batch,
            [section.id for section in selected],
            config,
            resolved_api_key,
        )

        merged_path = None
        if config.merge_output and len(report.completed) >= 2:
            merged = batch.merge_all(report.completed)
            merged_path = sink.deliver(merged, f"{loaded.title} complete")
    except Exception as exc:
        exit_with_command_error("generate", exc)

    for section in selected:
        echo_section_result(repository.get(section.id))
    echo_batch_summary(report)
    if merged_path is not None:
        typer.echo(f"Merged audio: {merged_path}")
    if report.failed:
        raise typer.Exit(code=1)


@app.command("merge")
def merge_command(
    inputs: Annotated[list[Path], typer.Argument(help="WAV files to merge, in order.")],
    out: Annotated[Path, typer.Option("--out", help="Merged WAV output path.")] = Path(
        "merged.wav"
    ),
) -> None:
    """Merge previously generated WAV files into one file."""

    try:
        if len(inputs) < 2:
            raise PipelineStageError(
                stage="merge",
                detail="At least two WAV files are required to merge.",
                hint="Pass two or more generated `.wav` files.",
            )
        assembler = AudioAssembler()
        try:
            merged = assembler.merge_containers(path.read_bytes() for path in inputs)
        except (OSError, ValueError) as exc:
            raise PipelineStageError(
                stage="merge",
                detail=str(exc),
                hint="Merge only WAV files produced with the same audio format.",
            ) from exc
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_bytes(merged)
    except Exception as exc:
        exit_with_command_error("merge", exc)

    typer.echo(f"Merged audio: {out} ({format_duration(assembler.duration_seconds(merged))})")


@app.command("voices")
def voices_command(language: LanguageOption = None) -> None:
    """List the narrator voices available per language."""

    languages = (language.strip().lower(),) if language else SUPPORTED_LANGUAGES
    try:
        catalogs = [(code, voices_for_language(code)) for code in languages]
    except ValueError as exc:
        exit_with_command_error("voices", exc)

    for code, voices in catalogs:
        typer.echo(f"[{code}] default: {default_voice(code).id}")
        echo_voice_list(voices)


@app.command("credentials")
def credentials_command(
    set_api_key: Annotated[
        bool,
        typer.Option(
            "--set-api-key",
            help="Prompt for API key with hidden input and store it securely.",
        ),
    ] = False,
    clear_api_key: Annotated[
        bool,
        typer.Option(
            "--clear-api-key",
            help="Clear stored API key from secure credential storage.",
        ),
    ] = False,
) -> None:
    """Manage the securely stored Gemini API key."""

    if set_api_key and clear_api_key:
        exit_with_command_error(
            "credentials",
            PipelineStageError(
                stage="credentials",
                detail="`--set-api-key` and `--clear-api-key` cannot be used together.",
                hint="Run one credentials action per command invocation.",
            ),
        )

    credential_store = create_credential_store()
    if set_api_key:
        prompted_api_key = normalize_optional_string(
            typer.prompt(
                "Gemini API key (hidden input)",
                default="",
                hide_input=True,
                show_default=False,
            )
        )
        if prompted_api_key is None:
            exit_with_command_error(
                "credentials",
                PipelineStageError(
                    stage="credentials",
                    detail="No API key entered.",
                    hint="Provide a non-empty API key when using `--set-api-key`.",
                ),
            )
        try:
            credential_store.set_api_key(prompted_api_key)
        except Exception as exc:
            exit_with_command_error(
                "credentials",
                PipelineStageError(
                    stage="credentials",
                    detail=f"Failed to store API key securely: {exc}",
                    hint="Install and configure a keyring backend and retry.",
                ),
            )
        typer.echo("API key stored in secure credential storage.")
        return

    if clear_api_key:
        removed = credential_store.clear_api_key()
        if removed:
            typer.echo("Stored API key cleared from secure credential storage.")
        else:
            typer.echo("No stored API key found in secure credential storage.")
        return

    availability = "available" if credential_store.is_available() else "unavailable"
    status = "present" if credential_store.get_api_key() is not None else "not set"
    typer.echo(f"Secure credential storage: {availability}")
    typer.echo(f"Stored Gemini API key: {status}")


@app.command("dub")
def dub_command(
    audio: Annotated[Path, typer.Argument(help="Recorded speech (.wav, .mp3, .ogg, .m4a, .aac).")],
    voice: Annotated[
        str | None,
        typer.Option("--voice", help="Voice id, narrator name, or Gemini voice name."),
    ] = None,
    language: LanguageOption = None,
    out: Annotated[
        Path | None,
        typer.Option("--out", help="Output directory (overrides config file value)."),
    ] = None,
    config_file: ConfigOption = None,
    api_key: ApiKeyOption = None,
    prompt_api_key: PromptApiKeyOption = False,
    store_api_key: StoreApiKeyOption = True,
) -> None:
    """Transcribe, translate and re-voice recorded speech."""

    try:
        config = _resolve_command_config(
            config_file,
            voice=normalize_optional_string(voice),
            language=normalize_optional_string(language),
            output_dir=out,
        )
        sources = resolve_credential_sources(
            api_key=api_key,
            prompt_api_key=prompt_api_key,
            store_api_key=store_api_key,
            credential_store_factory=create_credential_store,
        )
        resolved_api_key = require_api_key(sources, config.api_key)
        try:
            payload = audio.read_bytes()
        except OSError as exc:
            raise PipelineStageError(
                stage="load",
                detail=f"Could not read audio file {audio}: {exc}",
                hint="Provide an existing audio file.",
            ) from exc

        logger = RunLogger()
        target_voice = (
            find_voice(config.voice, config.language)
            if config.voice is not None
            else default_voice(config.language)
        )
        workflow = DubbingWorkflow(
            ProviderFactory.create_transcriber(config),
            ProviderFactory.create_speech_synthesizer(config, logger=logger),
            logger=logger,
        )
        try:
            result = workflow.run(
                payload,
                audio.name,
                target_voice,
                resolved_api_key,
                target_language=config.language,
            )
        except ValueError as exc:
            raise PipelineStageError(
                stage="dub",
                detail=str(exc),
                hint="Convert long recordings to WAV so they can be split automatically.",
            ) from exc

        config.output_dir.mkdir(parents=True, exist_ok=True)
        (config.output_dir / f"{audio.stem}_transcription.txt").write_text(
            result.transcription, encoding="utf-8"
        )
        (config.output_dir / f"{audio.stem}_translation.txt").write_text(
            result.translation, encoding="utf-8"
        )
        dubbed_path = (
            FileAudioSink(config.output_dir).deliver(result.audio, f"{audio.stem} dubbed")
            if result.audio is not None
            else None
        )
    except Exception as exc:
        exit_with_command_error("dub", exc)

    for segment in result.failed_segments:
        typer.secho(f"Segment {segment.index} failed: {segment.error}", fg=typer.colors.YELLOW, err=True)
    typer.echo(f"Transcription: {config.output_dir / f'{audio.stem}_transcription.txt'}")
    typer.echo(f"Translation: {config.output_dir / f'{audio.stem}_translation.txt'}")
    if dubbed_path is None:
        exit_with_command_error(
            "dub",
            PipelineStageError(
                stage="tts",
                detail="No segment could be dubbed.",
                hint="Check the segment errors above and retry.",
            ),
        )
    typer.echo(f"Dubbed audio: {dubbed_path}")


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()
