"""CLI entrypoints for depmap commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .config import ConfigError, DepmapConfig, load_config
from .errors import MalformedPayload
from .export import module_graph_to_dict
from .logging import configure_logging, get_logger, summarize_diagnostics
from .orchestrator import Resolver


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="depmap",
        description="Resolve a build tool dependency map into an IDE module graph.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve_parser = subparsers.add_parser(
        "resolve",
        help="Resolve a dependency map JSON document into modules.",
    )
    _add_verbose_option(resolve_parser, suppress_default=True)
    resolve_parser.add_argument(
        "payload",
        help="Path to the dependency map produced by the build tool, or '-' for stdin.",
    )
    resolve_parser.add_argument(
        "--work-dir",
        default=None,
        help="Directory the build tool ran in (defaults to the configuration root).",
    )
    resolve_parser.add_argument(
        "--preview",
        action="store_true",
        default=None,
        help="Preview mode: do not warn about libraries without resolved jars.",
    )
    resolve_parser.add_argument(
        "--config",
        default=None,
        help="Path to .depmap.yml or the directory containing it (defaults to the work dir).",
    )
    resolve_parser.add_argument(
        "--output",
        "-o",
        default=None,
        help="Write the module graph to this file instead of stdout.",
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service exposing /resolve.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for depmap commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "resolve":
        work_dir = Path(args.work_dir).expanduser().resolve() if args.work_dir else None
        config_location = Path(args.config) if args.config else (work_dir or Path.cwd())
        try:
            config = load_config(config_location)
        except ConfigError as exc:
            parser.exit(1, f"{exc}\n")
        configure_logging(
            verbose=bool(args.verbose) or config.logging.verbose,
            log_file=config.logging.file,
        )
        _run_resolve(parser, args, config, work_dir)
    elif args.command == "serve":
        configure_logging(verbose=bool(args.verbose))
        try:
            from .service import run_service
        except ModuleNotFoundError as exc:
            parser.exit(1, f"Service mode needs the 'service' extra: {exc}\n")
        try:
            run_service(host=args.host, port=args.port)
        except RuntimeError as exc:
            parser.exit(1, f"{exc}\n")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_resolve(
    parser: argparse.ArgumentParser,
    args: argparse.Namespace,
    config: DepmapConfig,
    work_dir: Path | None,
) -> None:
    try:
        text = _read_payload(args.payload)
    except OSError as exc:
        parser.exit(1, f"Cannot read dependency map: {exc}\n")

    resolver = Resolver.from_config(config, work_dir=work_dir, preview=args.preview)
    try:
        result = resolver.resolve(text)
    except MalformedPayload as exc:
        parser.exit(1, f"depmap resolve failed: {exc}\nRun with --verbose for more details.\n")

    summary = summarize_diagnostics(result.diagnostics)
    if summary:
        get_logger("cli").warning("Resolved with %s", summary)

    rendered = json.dumps(module_graph_to_dict(result), indent=2)
    if args.output:
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(rendered + "\n", encoding="utf-8")
        print(f"Module graph with {len(result.graph)} modules written to {_relativize(output)}")
    else:
        print(rendered)


def _read_payload(location: str) -> str:
    if location == "-":
        return sys.stdin.read()
    return Path(location).read_text(encoding="utf-8")


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
