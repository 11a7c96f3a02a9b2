#!/usr/bin/env python3
"""
ibvault Command Line Interface

Usage:
    ibvault questions
    ibvault classify A1 ... A10 [--format json|yaml] [--scores]
    ibvault export A1 ... A10 [-o FILE] [--output-dir DIR] [--timestamp ISO]
    ibvault verify FILE [--format text|json]
    ibvault inspect FILE

Exit codes for verify: 0 valid, 1 invalid, 2 no payload or unreadable file.
"""

import argparse
import json
import logging
import sys

import yaml

from ibvault.classifier import classify, score_candidates
from ibvault.config import load_settings
from ibvault.errors import VaultError
from ibvault.export import make_vault_image, write_vault_image
from ibvault.logging_config import configure_logging
from ibvault.payload import analysis_to_dict
from ibvault.pngmeta import crc_ok, extract_text_chunks, is_png, iter_chunks
from ibvault.questionnaire import ANSWER_COUNT, CIVIC_FOUNDATIONS
from ibvault.verification import VerdictStatus, verify_file


logger = logging.getLogger(__name__)

EXIT_CODES = {
    VerdictStatus.OK: 0,
    VerdictStatus.INVALID: 1,
    VerdictStatus.NO_PAYLOAD: 2,
}


def _dump(data, fmt: str) -> str:
    if fmt == "yaml":
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    return json.dumps(data, indent=2, ensure_ascii=False)


def _read_bytes(path: str) -> bytes:
    with open(path, "rb") as fh:
        return fh.read()


def cmd_questions(args, settings):
    """Print the questionnaire."""
    print(f"{CIVIC_FOUNDATIONS.name} ({ANSWER_COUNT} questions, scale 1-10)")
    for q in CIVIC_FOUNDATIONS.questions:
        print(f"{q.id:>2}. {q.text}")
    return 0


def cmd_classify(args, settings):
    """Classify answers and print the analysis."""
    analysis = classify(args.answers)
    result = analysis_to_dict(analysis)
    if args.scores:
        result["scores"] = score_candidates(args.answers)
    print(_dump(result, args.format), end="" if args.format == "yaml" else "\n")
    return 0


def cmd_export(args, settings):
    """Export a vault image with the embedded, checksummed payload."""
    image = make_vault_image(args.answers, settings=settings, timestamp=args.timestamp)
    path = write_vault_image(image, output_dir=args.output_dir or settings.output_dir, path=args.output)
    print(f"Orientation: {image.payload.orientation}")
    print(f"Checksum: {image.payload.checksum}")
    print(f"Vault image saved to: {path}")
    return 0


def cmd_verify(args, settings):
    """Verify a vault image."""
    verdict = verify_file(args.file)

    if args.format == "json":
        print(json.dumps(verdict.to_dict(), indent=2, ensure_ascii=False))
        return EXIT_CODES[verdict.status]

    if verdict.status is VerdictStatus.OK:
        payload = verdict.payload
        print("✓ Valid (Consistent)")
        print("This result matches the V1 scoring logic and appears unaltered.")
        print(f"  Orientation: {payload['analysis']['orientation']}")
        print(f"  Questionnaire: {payload['questionnaire']} (v{payload['version']})")
        print(f"  Timestamp: {payload.get('timestamp')}")
        if verdict.checksum_present:
            print(f"  Checksum: matches ({payload['checksum_sha256'][:12]}…)")
        else:
            print("  Checksum: (not present)")
        print("Note: verification confirms internal consistency only. "
              "It does not verify identity, citizenship, or intent.")
    elif verdict.status is VerdictStatus.NO_PAYLOAD:
        print("✗ Unverifiable")
        print(verdict.reasons[0])
    else:
        print("✗ Invalid or Altered")
        print(f"Detected: {', '.join(c.value for c in verdict.failed_checks)}")
        for reason in verdict.reasons:
            print(f"  - {reason}")
        print("It may have been altered, corrupted, or fabricated.")
    return EXIT_CODES[verdict.status]


def cmd_inspect(args, settings):
    """List chunks and tEXt entries of a PNG."""
    data = _read_bytes(args.file)
    if not is_png(data):
        print(f"{args.file}: not a PNG file", file=sys.stderr)
        return 2
    for chunk in iter_chunks(data):
        status = "ok" if crc_ok(chunk) else "BAD CRC"
        print(f"{chunk.offset:>10}  {chunk.type_name}  {chunk.length:>10}  {status}")
    for entry in extract_text_chunks(data):
        preview = entry.value if len(entry.value) <= 60 else entry.value[:57] + "..."
        print(f"tEXt {entry.key}: {preview}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ibvault",
        description="Civic Foundations result vault CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  ibvault questions
  ibvault classify 9 3 4 9 9 6 8 6 9 9 --scores
  ibvault export 9 3 4 9 9 6 8 6 9 9 -o result.png
  ibvault verify result.png
  ibvault inspect result.png
        """
    )
    parser.add_argument("--config", help="YAML settings file (default: $IBVAULT_CONFIG)")
    parser.add_argument("--log-level", type=str.upper,
                        choices=("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"), help="Override log level")
    parser.add_argument("--json-logs", action="store_true", help="Structured JSON log lines")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("questions", help="Show the questionnaire")

    classify_parser = subparsers.add_parser("classify", help="Classify answers")
    classify_parser.add_argument("answers", nargs=ANSWER_COUNT, help="Ten answers on the 1-10 scale")
    classify_parser.add_argument("--format", choices=("json", "yaml"), default="json")
    classify_parser.add_argument("--scores", action="store_true", help="Include candidate scores")

    export_parser = subparsers.add_parser("export", help="Export a vault image")
    export_parser.add_argument("answers", nargs=ANSWER_COUNT, help="Ten answers on the 1-10 scale")
    export_parser.add_argument("-o", "--output", help="Output file path")
    export_parser.add_argument("--output-dir", help="Directory for the generated file name")
    export_parser.add_argument("--timestamp", help="Fixed ISO-8601 timestamp")

    verify_parser = subparsers.add_parser("verify", help="Verify a vault image")
    verify_parser.add_argument("file", help="PNG file")
    verify_parser.add_argument("--format", choices=("text", "json"), default="text")

    inspect_parser = subparsers.add_parser("inspect", help="List PNG chunks and tEXt entries")
    inspect_parser.add_argument("file", help="PNG file")

    return parser


COMMANDS = {
    "questions": cmd_questions,
    "classify": cmd_classify,
    "export": cmd_export,
    "verify": cmd_verify,
    "inspect": cmd_inspect,
}


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.config)
    except VaultError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    configure_logging(
        level=args.log_level or settings.log_level,
        json_format=args.json_logs or settings.json_logs,
    )

    handler = COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        return 0

    try:
        return handler(args, settings)
    except (VaultError, OSError) as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
