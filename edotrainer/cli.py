"""Command line helpers for inspecting how just ratios land in an EDO."""
from __future__ import annotations

import logging
import logging.config
from argparse import ArgumentParser, Namespace
from typing import List, Optional

from .catalog import DEFAULT_THRESHOLD, default_chords_text, default_intervals_text, map_ratios_to_steps
from .config import parse_edo
from .errors import ValidationError
from .theory import format_cents

logger = logging.getLogger(__name__)


LOGGING_CONFIG = {
	"version": 1,
	"disable_existing_loggers": True,
	"formatters": {
		"standard": {
			"format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
			"datefmt": "%H:%M:%S",
		},
	},
	"handlers": {
		"default": {
			"level": "DEBUG",
			"formatter": "standard",
			"class": "logging.StreamHandler",
			"stream": "ext://sys.stderr",
		},
	},
	"loggers": {
		"edotrainer": {"handlers": ["default"], "level": "DEBUG", "propagate": False},
	},
}


def get_parser() -> ArgumentParser:
	parser = ArgumentParser(prog="edotrainer", description="Microtonal ear training helpers.")
	parser.add_argument("-v", "--verbose", action="store_true", help="Show logs")
	sub = parser.add_subparsers(dest="command", required=True)

	defaults = sub.add_parser("defaults", help="Print default intervals and chords for an EDO")
	defaults.add_argument("edo", help="Divisions of the octave (1-127)")

	mapping = sub.add_parser("map", help="Show the nearest steps for just ratios")
	mapping.add_argument("edo", help="Divisions of the octave (1-127)")
	mapping.add_argument("ratios", nargs="+", help="Ratios such as 3/2")
	mapping.add_argument("-t", "--threshold", type=float, default=DEFAULT_THRESHOLD, help="Max error in percent of a step")
	return parser


def print_defaults(edo: int) -> None:
	print(f"# Intervals ({edo}-EDO)")
	print(default_intervals_text(edo))
	print()
	print(f"# Chords ({edo}-EDO)")
	print(default_chords_text(edo))


def print_mapping(edo: int, ratios: List[str], threshold: float) -> None:
	mappings = map_ratios_to_steps(edo, ratios, threshold)
	print(f"{'ratio':>8} {'steps':>6} {'cents':>9} {'error':>7}")
	for m in mappings:
		print(f"{m.ratio_str:>8} {m.steps:>6} {format_cents(edo, m.steps):>9} {m.error:>6.1f}%")
	dropped = len(ratios) - len(mappings)
	if dropped:
		print(f"({dropped} ratio(s) skipped: unparseable or error >= {threshold:g}%)")


def top_level(args: Namespace) -> int:
	if args.verbose:
		logging.config.dictConfig(LOGGING_CONFIG)
	try:
		edo = parse_edo(args.edo)
	except ValidationError as e:
		print(e)
		return 2
	if args.command == "defaults":
		print_defaults(edo)
	else:
		print_mapping(edo, args.ratios, args.threshold)
	return 0


def main(cli_args: Optional[List[str]] = None) -> int:
	parser = get_parser()
	args = parser.parse_args(cli_args)
	return top_level(args)


if __name__ == "__main__":
	raise SystemExit(main())
