#!/usr/bin/env python3
"""Command-line interface for ESL essay grading."""

import argparse
import json
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))


def _load_app_config(args, require_file=True):
    from esl_grader.config import Config, load_config
    from esl_grader.utils.logging import setup_logging

    try:
        app_config = load_config(args.config)
    except FileNotFoundError:
        if require_file:
            print(f"Error: {args.config} not found")
            print("Copy config.json.sample to config.json and configure your providers")
            sys.exit(1)
        app_config = Config()
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    setup_logging(args.log_level or app_config.log_level, app_config.log_json)
    return app_config


def _create_grader(args):
    from esl_grader.grading import EssayGrader
    from esl_grader.errors import RubricError

    app_config = _load_app_config(args)
    if getattr(args, "workers", None):
        app_config.grading.batch_workers = args.workers
    try:
        return EssayGrader.from_config(app_config)
    except (FileNotFoundError, ValueError, RubricError) as e:
        print(f"Error: Could not set up grader: {e}")
        sys.exit(1)


def _write_json(data, output):
    text = json.dumps(data, indent=2, ensure_ascii=False)
    if output:
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text + "\n", encoding="utf-8")
        print(f"Output written to: {output}")
    else:
        print(text)


def _print_summary(result):
    print("=" * 60)
    for name, score in result.scores.items():
        print(f"  {name:<12} {score.points:>3} / {score.out_of}")
    print(f"  {'total':<12} {result.total.points:>3} / {result.total.out_of}")
    print(f"  Inline issues: {len(result.inline_issues)}")
    print("=" * 60)


def cmd_grade(args):
    """Grade a single essay file."""
    from esl_grader.errors import GradingError
    from esl_grader.llm import LLMError

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: Input file not found: {args.input}")
        sys.exit(1)
    essay_text = input_path.read_text(encoding="utf-8")

    grader = _create_grader(args)
    try:
        result = grader.grade(
            essay_text,
            args.profile,
            assignment_prompt=args.prompt or "",
            student_nickname=args.nickname,
            temperature=args.temperature,
        )
    except (GradingError, LLMError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    if args.output:
        _print_summary(result)
    _write_json(result.to_dict(), args.output)


def cmd_batch(args):
    """Grade every .txt essay in a directory."""
    from esl_grader.grading import GradingRequest

    input_dir = Path(args.input_dir)
    if not input_dir.is_dir():
        print(f"Error: Input directory not found: {args.input_dir}")
        sys.exit(1)

    essay_files = sorted(input_dir.glob("*.txt"))
    if not essay_files:
        print(f"No .txt essays found in {args.input_dir}")
        return

    grader = _create_grader(args)
    requests = [
        GradingRequest(
            essay_text=path.read_text(encoding="utf-8"),
            profile_id=args.profile,
            assignment_prompt=args.prompt or "",
            temperature=args.temperature,
            label=path.stem,
        )
        for path in essay_files
    ]

    output_dir = Path(args.output_dir) if args.output_dir else input_dir / "graded"
    output_dir.mkdir(parents=True, exist_ok=True)

    def on_result(outcome):
        label = outcome.request.label
        if outcome.ok:
            out_path = output_dir / f"{label}.json"
            out_path.write_text(
                json.dumps(outcome.result.to_dict(), indent=2, ensure_ascii=False) + "\n",
                encoding="utf-8",
            )
            total = outcome.result.total
            print(f"  [ok]     {label}: {total.points}/{total.out_of}")
        else:
            print(f"  [failed] {label}: {outcome.error}")

    print(f"Grading {len(requests)} essays...")
    outcomes = grader.grade_batch(requests, on_result=on_result)
    failed = [o for o in outcomes if not o.ok]
    print(f"\nDone: {len(outcomes) - len(failed)} graded, {len(failed)} failed")
    print(f"Results written to: {output_dir}")
    if failed:
        sys.exit(2)


def cmd_profiles(args):
    """List available class profiles."""
    from esl_grader.profiles import ProfileStore

    app_config = _load_app_config(args, require_file=False)
    try:
        store = ProfileStore.from_file(app_config.grading.profiles_path)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    if not len(store):
        print("No class profiles found.")
        return

    print("Available class profiles:")
    for profile in store.profiles():
        print(
            f"  {profile.id}: {profile.name} ({profile.cefr_level}, "
            f"{len(profile.vocabulary)} vocabulary items, temperature={profile.temperature:+g})"
        )


def cmd_detect(args):
    """Run local detectors and matchers on an essay without calling an LLM."""
    from esl_grader.detection import run_detectors
    from esl_grader.errors import ProfileNotFoundError
    from esl_grader.grading.reconciler import count_words, issues_to_dicts
    from esl_grader.lexical import TransitionMatcher, class_vocabulary_used
    from esl_grader.profiles import ProfileStore

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: Input file not found: {args.input}")
        sys.exit(1)
    essay_text = input_path.read_text(encoding="utf-8")

    vocabulary = ()
    if args.profile:
        app_config = _load_app_config(args, require_file=False)
        try:
            store = ProfileStore.from_file(app_config.grading.profiles_path)
            vocabulary = store.find(args.profile).vocabulary
        except (FileNotFoundError, ValueError, ProfileNotFoundError) as e:
            print(f"Error: {e}")
            sys.exit(1)

    report = {
        "word_count": count_words(essay_text),
        "transition_words_found": TransitionMatcher().found_terms(essay_text),
        "class_vocabulary_used": class_vocabulary_used(essay_text, vocabulary),
        "inline_issues": issues_to_dicts(run_detectors(essay_text)),
    }
    _write_json(report, args.output)


def main():
    parser = argparse.ArgumentParser(
        description="ESL Essay Grader - Grade student essays with an LLM and local error detection"
    )
    parser.add_argument(
        "--config",
        default="config.json",
        help="Configuration file (default: config.json)"
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override log level from config (DEBUG, INFO, WARNING)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Grade command
    grade_parser = subparsers.add_parser(
        "grade",
        help="Grade a single essay"
    )
    grade_parser.add_argument(
        "--input", "-i",
        required=True,
        help="Essay text file"
    )
    grade_parser.add_argument(
        "--profile", "-p",
        required=True,
        help="Class profile id"
    )
    grade_parser.add_argument(
        "--prompt",
        help="Assignment prompt the essay answers"
    )
    grade_parser.add_argument(
        "--nickname", "-n",
        help="Student nickname for personalized feedback"
    )
    grade_parser.add_argument(
        "--temperature", "-t",
        type=float,
        default=None,
        help="Grade temperature from -5 (harsher) to +5 (kinder) (default: profile setting)"
    )
    grade_parser.add_argument(
        "--output", "-o",
        help="Output JSON file (prints to stdout if not specified)"
    )
    grade_parser.set_defaults(func=cmd_grade)

    # Batch command
    batch_parser = subparsers.add_parser(
        "batch",
        help="Grade every .txt essay in a directory"
    )
    batch_parser.add_argument(
        "--input-dir", "-d",
        required=True,
        help="Directory of essay .txt files"
    )
    batch_parser.add_argument(
        "--profile", "-p",
        required=True,
        help="Class profile id"
    )
    batch_parser.add_argument(
        "--prompt",
        help="Assignment prompt the essays answer"
    )
    batch_parser.add_argument(
        "--temperature", "-t",
        type=float,
        default=None,
        help="Grade temperature from -5 to +5 (default: profile setting)"
    )
    batch_parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Concurrent LLM calls (default: grading.batch_workers from config)"
    )
    batch_parser.add_argument(
        "--output-dir", "-o",
        help="Directory for graded JSON files (default: <input-dir>/graded)"
    )
    batch_parser.set_defaults(func=cmd_batch)

    # Profiles command
    profiles_parser = subparsers.add_parser(
        "profiles",
        help="List available class profiles"
    )
    profiles_parser.set_defaults(func=cmd_profiles)

    # Detect command
    detect_parser = subparsers.add_parser(
        "detect",
        help="Run local error detection only (no LLM call)"
    )
    detect_parser.add_argument(
        "--input", "-i",
        required=True,
        help="Essay text file"
    )
    detect_parser.add_argument(
        "--profile", "-p",
        help="Class profile id for vocabulary matching"
    )
    detect_parser.add_argument(
        "--output", "-o",
        help="Output JSON file (prints to stdout if not specified)"
    )
    detect_parser.set_defaults(func=cmd_detect)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
