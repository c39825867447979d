import argparse
import logging
import sys
import typing

import polyphon.composition
import polyphon.config
import polyphon.errors


logger = logging.getLogger(__name__)


def build_parser () -> argparse.ArgumentParser:

	parser = argparse.ArgumentParser(prog="polyphon", description="Generate a multi-track MIDI file from a seed and a configuration.")

	parser.add_argument("-c", "--config", help="YAML (or JSON) configuration file")
	parser.add_argument("-o", "--output", help="Output MIDI path (default: polyphon_<seed>.mid)")
	parser.add_argument("-s", "--seed", type=int, help="Seed; overrides the configuration file")
	parser.add_argument("--write-default-config", metavar="PATH", help="Write the default configuration to PATH and exit")
	parser.add_argument("-v", "--verbose", action="store_true", help="Log debug detail")

	return parser


def main (argv: typing.Optional[typing.List[str]] = None) -> int:

	"""
	Main entry point for the polyphon command.
	"""

	args = build_parser().parse_args(argv)

	logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s %(name)s: %(message)s")

	try:

		if args.write_default_config:
			polyphon.config.save_config(polyphon.config.default_config(), args.write_default_config)
			return 0

		if args.config:
			config = polyphon.config.load_config(args.config)
		else:
			config = polyphon.config.default_config()

		if args.seed is not None:
			config.seed = args.seed

		composition = polyphon.composition.Composition(config)
		composition.save(args.output or f"polyphon_{composition.seed}.mid")

	except polyphon.errors.PolyphonError as exc:
		logger.error(f"{type(exc).__name__}: {exc}")
		return 1

	return 0


if __name__ == "__main__":
	sys.exit(main())
