"""
Flutter Grader: Automated grading of Flutter assignments with toolchain checks + LLM

Usage:
  main.py evaluate <repo_url> [--config=PATH] [--output=PATH] [--verbose]
  main.py serve [--config=PATH] [--host=HOST] [--port=PORT] [--verbose]
  main.py (-h | --help)

Options:
  --config=PATH  Path to YAML configuration file.
  --output=PATH  Write the JSON evaluation response to this file.
  --host=HOST    Address the service binds to.
  --port=PORT    Port the service listens on.
  --verbose      Enable debug logging.
  -h --help      Show this screen.
"""

import sys
from pathlib import Path

from docopt import docopt

from flutter_grader.config_loader import GraderConfig, load_config
from flutter_grader.errors import GradingError
from flutter_grader.logging import configure_logging
from flutter_grader.models import EvaluationResponse
from flutter_grader.pipeline import GradingPipeline


def save_response(output_path: Path, response: EvaluationResponse) -> None:
    """
    Save an evaluation response as camelCase JSON.

    Args:
        output_path: Destination file.
        response: EvaluationResponse to save.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(response.model_dump_json(indent=2, by_alias=True))
    print(f"  Saved evaluation to {output_path}")


def print_evaluation_summary(repo_url: str, response: EvaluationResponse) -> None:
    """
    Print a summary of the evaluation to console.

    Args:
        repo_url: Repository that was graded.
        response: EvaluationResponse to summarize.
    """
    print(f"\n  {'='*50}")
    print(f"  Repository: {repo_url}")
    print(f"  Total Score: {response.total_score}/{response.max_score}")
    print(f"  {'='*50}")

    for check in response.checks:
        status = "+" if check.passed else "-"
        print(f"  [{status}] {check.name} ({check.score} pts): {check.message}")

    quality = response.details.quality_evaluation
    if quality:
        for strength in quality.strengths:
            print(f"    strength: {strength}")
        for weakness in quality.weaknesses:
            print(f"    weakness: {weakness}")
        if quality.recommendation:
            print(f"    recommendation: {quality.recommendation}")

    print(f"\n  {response.feedback}\n")


def run_evaluation(repo_url: str, config: GraderConfig, output_path: Path | None = None) -> int:
    """
    Grade one repository and report the result.

    Args:
        repo_url: Repository URL to grade.
        config: Loaded grader configuration.
        output_path: Optional file for the JSON response.

    Returns:
        Exit code (0 for a completed evaluation, 1 for an error).
    """
    pipeline = GradingPipeline.from_config(config)
    try:
        response = pipeline.evaluate(repo_url)
    except GradingError as e:
        print(f"Error ({e.status_code}): {e.message}")
        return 1

    print_evaluation_summary(repo_url, response)
    if output_path:
        save_response(output_path, response)
    return 0


def main(argv: list[str] | None = None) -> int:
    """
    Main CLI entrypoint.

    Returns:
        Exit code (0 for success, 1 for error).
    """
    arguments = docopt(__doc__, argv=argv)

    config = GraderConfig()
    if arguments["--config"]:
        config_path = Path(arguments["--config"])
        try:
            config = load_config(config_path)
            print(f"Loaded configuration from {config_path}")
        except Exception as e:
            print(f"Error loading config: {e}")
            return 1

    verbose = arguments["--verbose"] or config.verbose
    configure_logging(verbose=verbose)

    if arguments["serve"]:
        from flutter_grader.service import run_service

        host = arguments["--host"] or config.host
        try:
            port = int(arguments["--port"] or config.port)
        except ValueError:
            print(f"Error: invalid port {arguments['--port']!r}")
            return 1
        run_service(lambda: GradingPipeline.from_config(config), host=host, port=port)
        return 0

    output = Path(arguments["--output"]) if arguments["--output"] else None
    try:
        return run_evaluation(arguments["<repo_url>"], config, output)
    except KeyboardInterrupt:
        print("\nEvaluation interrupted by user.")
        return 1


if __name__ == "__main__":
    sys.exit(main())
