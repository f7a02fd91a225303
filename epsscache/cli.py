"""CLI wiring that looks up EPSS scores and emits NDJSON records."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence, TextIO

from .client import EPSSClient
from .clients import HTTPTransport
from .errors import EPSSError, InvalidCVE, ScoreNotFound
from .logging_config import configure_logging
from .results import ResultsFormatter, to_ndjson_line
from .utils import env

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


class CLIApp:
    """Command-line front end for an :class:`EPSSClient`."""

    def __init__(
        self,
        client: EPSSClient,
        *,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
    ) -> None:
        self._client = client
        self._formatter = ResultsFormatter()
        self._stdout = stdout or sys.stdout
        self._stderr = stderr or sys.stderr

    def show_scores(self, cves: Sequence[str]) -> int:
        """Print one record per CVE; report missing ones on stderr."""
        missing = 0
        for cve in cves:
            try:
                score = self._client.get_score(cve)
            except ScoreNotFound as error:
                missing += 1
                print(error, file=self._stderr)
                continue
            self._emit(self._formatter.format_score(score))
        return EXIT_FAILURE if missing else EXIT_OK

    def show_all(
        self,
        *,
        min_epss: float = 0.0,
        limit: Optional[int] = None,
    ) -> int:
        records = self._formatter.format_scores(
            self._client.get_all_scores(),
            min_epss=min_epss,
            limit=limit,
        )
        for record in records:
            self._emit(record)
        return EXIT_OK

    def show_metadata(self) -> int:
        self._client.ensure_fresh()
        self._emit(self._formatter.format_snapshot(self._client.snapshot))
        return EXIT_OK

    def run(self, args: argparse.Namespace) -> int:
        """Dispatch the parsed sub-command."""
        try:
            if args.command == "score":
                return self.show_scores(args.cves)
            if args.command == "all":
                return self.show_all(min_epss=args.min_epss, limit=args.limit)
            return self.show_metadata()
        except InvalidCVE as error:
            print(f"Invalid input: {error}", file=self._stderr)
            return EXIT_USAGE
        except EPSSError as error:
            logger.error("EPSS lookup failed: %s", error)
            print(f"Error: {error}", file=self._stderr)
            return EXIT_FAILURE

    def _emit(self, record: dict) -> None:
        print(to_ndjson_line(record), file=self._stdout)


def _positive_float(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError as error:
        raise argparse.ArgumentTypeError(f"not a number: {raw}") from error
    if not value > 0:
        raise argparse.ArgumentTypeError(f"must be positive: {raw}")
    return value


def _probability(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError as error:
        raise argparse.ArgumentTypeError(f"not a number: {raw}") from error
    if not 0.0 <= value <= 1.0:
        raise argparse.ArgumentTypeError(f"must be within [0, 1]: {raw}")
    return value


def build_arg_parser() -> argparse.ArgumentParser:
    argument_parser = argparse.ArgumentParser(
        prog="epss-cache",
        description="Look up EPSS exploit prediction scores by CVE.",
    )
    argument_parser.add_argument(
        "--url",
        help="Dataset URL (defaults to EPSS_DATA_URL or the FIRST feed).",
    )
    argument_parser.add_argument(
        "--timeout",
        type=_positive_float,
        help="Download timeout in seconds (defaults to EPSS_HTTP_TIMEOUT).",
    )

    subparsers = argument_parser.add_subparsers(dest="command", required=True)

    score_parser = subparsers.add_parser(
        "score",
        help="Print scores for specific CVEs.",
    )
    score_parser.add_argument("cves", nargs="+", metavar="CVE")

    all_parser = subparsers.add_parser(
        "all",
        help="Print every score, highest EPSS first.",
    )
    all_parser.add_argument(
        "--min-epss",
        type=_probability,
        default=0.0,
        help="Only include scores at or above this EPSS value.",
    )
    all_parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum number of records to print.",
    )

    subparsers.add_parser(
        "metadata",
        help="Print the dataset model version and score date.",
    )
    return argument_parser


def build_client(args: argparse.Namespace) -> EPSSClient:
    """Combine command-line overrides with environment configuration."""
    env.load_dotenv()
    timeout = args.timeout
    if timeout is None:
        timeout = env.http_timeout_from_env()
    transport = (
        HTTPTransport(timeout=timeout)
        if timeout is not None
        else HTTPTransport()
    )
    return EPSSClient(
        data_url=args.url or env.data_url_from_env(),
        transport=transport,
        update_interval=env.update_interval_from_env(),
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    configure_logging()
    argument_parser = build_arg_parser()
    parsed_args = argument_parser.parse_args(argv)

    app = CLIApp(build_client(parsed_args))
    return app.run(parsed_args)


if __name__ == "__main__":
    sys.exit(main())
