#!/usr/bin/env python3
"""
Request Body Scanner v1.0
=========================
Documents API request bodies from the validation rules Python handlers
declare, using static analysis only (the scanned code is never executed).

Features:
  - Validated request classes (``request: StoreUserRequest``)
  - Inline validate calls (``request.validate({...})``)
  - Nested objects/arrays, enums, bounds and file uploads
  - Route discovery from ``@app.post(...)`` style decorators
  - OpenAPI 3.0 ``paths`` output as JSON or YAML

Usage: python main.py [OPTIONS] <file.py> [handler]
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from dotenv import load_dotenv
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from body_scanner import (
    FailurePolicy,
    HandlerNotFoundError,
    Operation,
    RequestBodySynthesizer,
    RouteInfo,
    SynthesisConfig,
    __version__,
)
from body_scanner.request_body import WARNING_PREFIX

load_dotenv()
console = Console(stderr=True)


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================
def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """Configure structured logging for the scanner."""
    logger = logging.getLogger("body_scanner")
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Clear existing handlers
    logger.handlers.clear()

    # Console handler with structured format
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)  # Only warnings and errors to console
    console_formatter = logging.Formatter(
        '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    # File handler if specified
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter(
            '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}',
            datefmt='%Y-%m-%dT%H:%M:%S'
        )
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    return logger


# =============================================================================
# SYNTHESIS
# =============================================================================
def synthesize(
    routes: List[RouteInfo],
    config: SynthesisConfig,
    policy: Optional[FailurePolicy] = None,
) -> List[Tuple[RouteInfo, Operation]]:
    synthesizer = RequestBodySynthesizer(config, failure_policy=policy)
    results = []
    for route in routes:
        operation = Operation(method=route.http_method, path=route.path)
        synthesizer.handle(operation, route)
        results.append((route, operation))
    return results


def build_paths(results: List[Tuple[RouteInfo, Operation]]) -> Dict[str, Any]:
    """OpenAPI ``paths`` object; handlers without a route path are keyed by name."""
    paths: Dict[str, Dict[str, Any]] = {}
    for route, operation in results:
        key = route.path or f"/{route.handler_name}"
        paths.setdefault(key, {})[operation.method.lower()] = operation.to_dict()
    return paths


# =============================================================================
# OUTPUT FORMATTERS
# =============================================================================
def make_table(results: List[Tuple[RouteInfo, Operation]]) -> Table:
    t = Table(title=" Request Bodies", box=box.ROUNDED, header_style="bold magenta")
    t.add_column("#", style="dim", width=4)
    t.add_column("Method", width=8)
    t.add_column("Path", max_width=40)
    t.add_column("Handler", style="cyan", max_width=40)
    t.add_column("Media Type", width=22)
    t.add_column("Title", style="green")
    t.add_column("Params", justify="right", width=6)

    for i, (route, op) in enumerate(results, 1):
        media_type, title, count = "-", "-", len(op.parameters)
        if op.request_body is not None:
            for media_type, schema in op.request_body.content.items():
                title = schema.title or "-"
                count = len(getattr(schema.type, "properties", {}))
        if WARNING_PREFIX in op.description:
            media_type = "[red]failed[/red]"
        t.add_row(str(i), op.method, route.path or "-", route.handler_name, media_type, title, str(count))

    return t


def make_summary(results: List[Tuple[RouteInfo, Operation]]) -> Panel:
    with_body = sum(1 for _, op in results if op.request_body is not None)
    with_query = sum(1 for _, op in results if op.parameters)
    failed = sum(1 for _, op in results if WARNING_PREFIX in op.description)

    txt = f"""
[bold]Handlers:[/bold] {len(results)}
[bold]Request bodies:[/bold] {with_body}
[bold]Query parameter sets:[/bold] {with_query}
[bold]Failed:[/bold] {failed}
"""
    return Panel(txt, title=" Analysis Results", border_style="cyan")


def render(paths: Dict[str, Any], fmt: str) -> str:
    if fmt == "yaml":
        return yaml.safe_dump({"paths": paths}, sort_keys=False, allow_unicode=True)
    return json.dumps({"paths": paths}, indent=2, ensure_ascii=False)


# =============================================================================
# MAIN
# =============================================================================
def load_routes(args: argparse.Namespace) -> List[RouteInfo]:
    if args.handler:
        return [RouteInfo.from_file(
            args.target,
            args.handler,
            http_method=args.method,
            path=args.path or "",
            include_files=args.include,
        )]

    source = Path(args.target).read_text(encoding="utf-8")
    extra = [Path(p).read_text(encoding="utf-8") for p in args.include]
    return list(RouteInfo.discover(source, file_path=args.target, extra_sources=extra))


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description=f"Request Body Scanner v{__version__}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py app/users.py                           # All decorated routes
  python main.py app/users.py UserController.store -m POST
  python main.py app/users.py create_user --include app/requests.py
  python main.py app/users.py --format yaml -o paths.yaml
  BODY_SCANNER_DISALLOW_REQUEST_BODY=GET,DELETE python main.py app/users.py
        """
    )

    parser.add_argument("target", help="Python source file to analyse")
    parser.add_argument("handler", nargs="?", help="Handler to document (Class.method or function)")

    route_group = parser.add_argument_group("Route Options")
    route_group.add_argument("-m", "--method", help="HTTP method (default: from decorator, else GET)")
    route_group.add_argument("--path", help="Route path for the handler")
    route_group.add_argument("--include", metavar="FILE", action="append", default=[],
                             help="Extra source file defining request classes (repeatable)")

    output_group = parser.add_argument_group("Output Options")
    output_group.add_argument("-o", "--output", help="Write the paths object to FILE")
    output_group.add_argument("--format", choices=["json", "yaml"], default="json",
                              help="Output format (default: json)")

    config_group = parser.add_argument_group("Configuration")
    config_group.add_argument("--config", metavar="FILE", help="Configuration file (JSON/YAML)")
    config_group.add_argument("--strict", action="store_true",
                              help="Fail on the first handler that cannot be documented")

    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    parser.add_argument("--log-file", help="Write JSON logs to file")
    parser.add_argument("--quiet", "-q", action="store_true", help="Minimal output")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args(argv)
    setup_logging(args.log_level, args.log_file)

    if not Path(args.target).is_file():
        console.print(f"[red]Error: {args.target} not found[/red]")
        return 1

    config = SynthesisConfig.from_file(args.config) if args.config else SynthesisConfig.from_env()
    policy = FailurePolicy.RAISE if args.strict else None

    try:
        routes = load_routes(args)
        results = synthesize(routes, config, policy)
    except SyntaxError as e:
        console.print(f"[red]Error: cannot parse {e.filename or args.target}: {e.msg} (line {e.lineno})[/red]")
        return 1
    except HandlerNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    if not results:
        console.print("[yellow]No route handlers found. Pass a handler name to document it directly.[/yellow]")
        return 0

    if not args.quiet:
        console.print(make_table(results))
        console.print(make_summary(results))

    output = render(build_paths(results), args.format)
    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        if not args.quiet:
            console.print(f"\n[green] Paths exported: {args.output}[/green]")
    else:
        print(output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
