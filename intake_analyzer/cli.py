"""CLI interface for document analysis"""
import asyncio
import json
import logging
import mimetypes
import time
from pathlib import Path
from typing import Dict, List, Optional

import click

from .analyzer import DocumentAnalyzer
from .config import ai_configured, configure_logging
from .errors import AnalysisError
from .llm_client import LLMClient, OpenAIBackend
from .models import AnalysisRequest

SUPPORTED_SUFFIXES = {'.pdf', '.txt', '.png', '.jpg', '.jpeg', '.gif', '.webp'}


def collect_files(paths: List[Path]) -> List[Path]:
    """Expand folders into the supported documents they contain"""
    files = []
    for path in paths:
        if path.is_dir():
            files.extend(sorted(p for p in path.iterdir() if p.suffix.lower() in SUPPORTED_SUFFIXES))
        else:
            files.append(path)
    return files


def analyze_file(analyzer: DocumentAnalyzer,
                 file_path: Path,
                 file_type: Optional[str],
                 model: str,
                 depth: str,
                 output_dir: Optional[Path] = None) -> Dict:
    """Analyze a single file and return the JSON-ready result"""
    file_bytes = file_path.read_bytes()
    mime_type = file_type or mimetypes.guess_type(file_path.name)[0] or 'text/plain'

    click.echo(f"Processing: {file_path.name} ({mime_type})")

    request = AnalysisRequest(
        file_bytes=file_bytes,
        file_name=file_path.name,
        declared_mime_type=mime_type,
        model_preference=model,
        analysis_depth=depth,
    )

    start_ts = time.perf_counter()
    outcome = asyncio.run(analyzer.analyze(request))
    elapsed_s = time.perf_counter() - start_ts

    record = outcome.record
    result = {
        'analysis': record.model_dump(mode='json', by_alias=True, exclude={'diagnostics'}),
        'debug': record.diagnostics.model_dump(mode='json', by_alias=True),
    }

    if output_dir:
        output_path = output_dir / f"{file_path.stem}_analysis.json"
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(result, f, indent=2, ensure_ascii=False)
        click.echo(f"  Results saved to: {output_path}")

    click.echo(f"  Time: {elapsed_s:.2f}s | Method: {record.diagnostics.analysis_method} "
               f"| Type: {record.document_type} | Urgency: {record.urgency_level.value}")
    return result


@click.command()
@click.argument('paths', nargs=-1, required=True,
                type=click.Path(exists=True, path_type=Path))
@click.option('--file-type', '-t',
              help='MIME type for every file (default: guessed from the file name)')
@click.option('--model', '-m', type=click.Choice(['flash', 'pro']), default='flash',
              show_default=True, help='Model tier for AI analysis')
@click.option('--depth', '-d', type=click.Choice(['standard', 'detailed']), default='standard',
              show_default=True, help='Analysis depth for AI analysis')
@click.option('--no-ai', is_flag=True,
              help='Skip the AI tier even if OPENAI_API_KEY is set')
@click.option('--output-dir', '-o',
              type=click.Path(file_okay=False, path_type=Path),
              help='Directory to save analysis results')
@click.option('--verbose', '-v', is_flag=True,
              help='Verbose output')
def main(paths, file_type: str, model: str, depth: str, no_ai: bool,
         output_dir: Path, verbose: bool):
    """
    Analyze legal documents (PDF, text or images) and print a summary.

    PATHS: Files or folders to analyze

    Examples:

    \b
    # Deterministic analysis of a folder of letters
    intake-analyze letters/ --no-ai --output-dir results

    \b
    # AI-first analysis of a scanned letter
    intake-analyze scan.png --model pro --depth detailed
    """
    configure_logging('DEBUG' if verbose else 'WARNING')

    llm_client = None
    if not no_ai and ai_configured():
        llm_client = LLMClient(OpenAIBackend())
    analyzer = DocumentAnalyzer(llm_client=llm_client)

    if output_dir:
        output_dir.mkdir(parents=True, exist_ok=True)

    files = collect_files(list(paths))
    if not files:
        click.echo("No supported documents found", err=True)
        return

    click.echo(f"Found {len(files)} document(s)")

    all_results = {}
    for file_path in files:
        try:
            result = analyze_file(analyzer, file_path, file_type, model, depth, output_dir)
        except AnalysisError as e:
            click.echo(f"  {e.error_type}: {e.message}", err=True)
            if e.hint:
                click.echo(f"  Hint: {e.hint}", err=True)
            continue
        except (OSError, ValueError) as e:
            click.echo(f"  Error processing {file_path.name}: {e}", err=True)
            if verbose:
                logging.getLogger(__name__).exception("Failed to analyze %s", file_path)
            continue

        all_results[file_path.name] = result
        if verbose:
            click.echo("  Extracted fields:")
            for field, extracted in result['analysis']['extractedFields'].items():
                click.echo(f"    {field}: {extracted['value']} ({extracted['confidence']:.2f})")

    click.echo(f"\nAnalyzed {len(all_results)} document(s) successfully")

    if output_dir and all_results:
        combined_path = output_dir / "all_results.json"
        with open(combined_path, 'w', encoding='utf-8') as f:
            json.dump(all_results, f, indent=2, ensure_ascii=False)
        click.echo(f"Combined results saved to: {combined_path}")


if __name__ == '__main__':
    main()
