"""MIDI velocity constants.

Velocity is the MIDI attack strength (0-127). Named dynamics follow the usual
printed markings, from pianissimo to fortissimo.
"""

import typing


DEFAULT_VELOCITY = 100
DEFAULT_CHORD_VELOCITY = 80

MIN_VELOCITY = 1				# 0 would read as a note-off
MAX_VELOCITY = 127

DYNAMICS: typing.Dict[str, int] = {
	"pp": 16,
	"p": 32,
	"mp": 48,
	"mf": 64,
	"f": 80,
	"ff": 112,
}

DYNAMIC_ALIASES: typing.Dict[str, str] = {
	"pianissimo": "pp",
	"piano": "p",
	"mezzo_piano": "mp",
	"mezzo_forte": "mf",
	"forte": "f",
	"fortissimo": "ff",
}


def dynamic_to_velocity (value: typing.Union[str, int]) -> int:

	"""Return a MIDI velocity for a dynamic marking or a raw velocity value.

	Example:
		```python
		dynamic_to_velocity("mf")         # 64
		dynamic_to_velocity("fortissimo") # 112
		dynamic_to_velocity(90)           # 90
		```
	"""

	if isinstance(value, bool):
		raise ValueError(f"Not a velocity: {value!r}")

	if isinstance(value, int):
		velocity = value

	else:
		name = value.strip().lower()
		name = DYNAMIC_ALIASES.get(name, name)

		if name not in DYNAMICS:
			raise ValueError(f"Unknown dynamic: {value!r}. Available: {sorted(DYNAMICS)}")

		velocity = DYNAMICS[name]

	if velocity < MIN_VELOCITY or velocity > MAX_VELOCITY:
		raise ValueError(f"Velocity must be between {MIN_VELOCITY} and {MAX_VELOCITY}, got {velocity}")

	return velocity
