"""Scale interval registry.

Every scale is stored as semitone offsets from its tonic, strictly increasing
and inside one octave. Mode names accepted throughout the package are the keys
of :data:`MODE_ALIASES` plus anything added with :func:`register_scale`.
"""

import typing

import polyphon.errors


SCALE_DEFINITIONS: typing.Dict[str, typing.List[int]] = {
	"major_ionian": [0, 2, 4, 5, 7, 9, 11],
	"dorian_mode": [0, 2, 3, 5, 7, 9, 10],
	"phrygian_mode": [0, 1, 3, 5, 7, 8, 10],
	"lydian": [0, 2, 4, 6, 7, 9, 11],
	"mixolydian": [0, 2, 4, 5, 7, 9, 10],
	"natural_minor": [0, 2, 3, 5, 7, 8, 10],
	"locrian_mode": [0, 1, 3, 5, 6, 8, 10],
	"harmonic_minor": [0, 2, 3, 5, 7, 8, 11],
	"melodic_minor": [0, 2, 3, 5, 7, 9, 11],
	"major_pentatonic": [0, 2, 4, 7, 9],
	"minor_pentatonic": [0, 3, 5, 7, 10],
	"blues_scale": [0, 3, 5, 6, 7, 10],
	"whole_tone": [0, 2, 4, 6, 8, 10],
}


# Mode names used in configuration, mapped to registry keys.
MODE_ALIASES: typing.Dict[str, str] = {
	"ionian": "major_ionian",
	"major": "major_ionian",
	"dorian": "dorian_mode",
	"phrygian": "phrygian_mode",
	"lydian": "lydian",
	"mixolydian": "mixolydian",
	"aeolian": "natural_minor",
	"minor": "natural_minor",
	"natural_minor": "natural_minor",
	"locrian": "locrian_mode",
	"harmonic_minor": "harmonic_minor",
	"melodic_minor": "melodic_minor",
	"major_pentatonic": "major_pentatonic",
	"minor_pentatonic": "minor_pentatonic",
	"blues": "blues_scale",
	"whole_tone": "whole_tone",
}


def validate_offsets (offsets: typing.Sequence[int]) -> None:

	"""Raise ConfigurationError unless offsets start at 0, strictly increase, and stay below 12."""

	if not offsets:
		raise polyphon.errors.ConfigurationError("Scale must contain at least one note")

	if offsets[0] != 0:
		raise polyphon.errors.ConfigurationError(f"Scale offsets must start at 0, got {list(offsets)}")

	for previous, current in zip(offsets, offsets[1:]):
		if current <= previous:
			raise polyphon.errors.ConfigurationError(f"Scale offsets must be strictly increasing, got {list(offsets)}")

	if offsets[-1] >= 12:
		raise polyphon.errors.ConfigurationError(f"Scale offsets must lie within one octave, got {list(offsets)}")


def register_scale (name: str, offsets: typing.Sequence[int]) -> None:

	"""Add a custom scale so it can be used as a mode name.

	Example:
		```python
		register_scale("hirajoshi", [0, 2, 3, 7, 8])
		Scale.from_key("D", "hirajoshi")
		```
	"""

	validate_offsets(offsets)

	SCALE_DEFINITIONS[name] = list(offsets)
	MODE_ALIASES[name] = name


def get_scale_offsets (mode: str) -> typing.List[int]:

	"""Return the offsets for a mode name (a copy, safe to modify)."""

	key = MODE_ALIASES.get(mode, mode)

	if key not in SCALE_DEFINITIONS:
		raise polyphon.errors.ConfigurationError(f"Unknown mode '{mode}'. Available: {sorted(MODE_ALIASES)}")

	return list(SCALE_DEFINITIONS[key])


def scale_pitch_classes (key_pc: int, mode: str = "ionian") -> typing.List[int]:

	"""
	Return the pitch classes (0–11) that belong to a key and mode, in scale order.

	Example:
		```python
		scale_pitch_classes(9, "aeolian")  # → [9, 11, 0, 2, 4, 5, 7]
		```
	"""

	return [(key_pc + i) % 12 for i in get_scale_offsets(mode)]
