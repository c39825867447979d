"""General MIDI percussion notes used by the drum strategy.

Drum tracks are written on MIDI channel 10 (index 9), where every note
number selects an instrument instead of a pitch. Only the kit pieces the
drum generator knows how to place are listed here; config files refer to
them by name (``"kick"``, ``"snare"``, ...).
"""

import typing


DRUM_CHANNEL = 9

KICK = 36
SIDE_STICK = 37
SNARE = 38
HAND_CLAP = 39
HI_HAT_CLOSED = 42
HI_HAT_PEDAL = 44
LOW_TOM = 45
HI_HAT_OPEN = 46
HIGH_TOM = 50
CRASH = 49
RIDE = 51
TAMBOURINE = 54
COWBELL = 56
SHAKER = 82


GM_DRUM_MAP: typing.Dict[str, int] = {
	"kick": KICK,
	"side_stick": SIDE_STICK,
	"snare": SNARE,
	"hand_clap": HAND_CLAP,
	"hi_hat_closed": HI_HAT_CLOSED,
	"hi_hat_pedal": HI_HAT_PEDAL,
	"low_tom": LOW_TOM,
	"hi_hat_open": HI_HAT_OPEN,
	"high_tom": HIGH_TOM,
	"crash": CRASH,
	"ride": RIDE,
	"tambourine": TAMBOURINE,
	"cowbell": COWBELL,
	"shaker": SHAKER,
}


def drum_pitch (name: typing.Union[str, int]) -> int:

	"""Resolve a kit piece name (or a raw note number) to a MIDI note."""

	if isinstance(name, int):
		if name < 0 or name > 127:
			raise ValueError(f"Drum note must be between 0 and 127, got {name}")
		return name

	if name not in GM_DRUM_MAP:
		raise ValueError(f"Unknown drum name: {name!r}. Available: {sorted(GM_DRUM_MAP)}")

	return GM_DRUM_MAP[name]
