"""Run configuration: defaults, dictionary conversion and YAML files.

A configuration file is a YAML mapping. Every key is optional:

```yaml
seed: 42
tempo_bpm: 120
target_duration_seconds: 30
key: C
mode: major              # or scale: [0, 2, 3, 7, 8] for a custom scale
ppq: 480
beats_per_bar: 4
beats_per_chord: 4
progression: [tonic, subdominant, dominant, tonic]
harmony: true            # false (or a scale without seven notes) for scale-only generation
include_sevenths: false
voice_leading: true
humanize_timing: 0.02
humanize_velocity: 6
swing: 0.0
syncopation: 0.0
parallel: false
roles:
  - name: melody
    strategy: melody
    range: [60, 84]
    velocity: [mp, f]
    channel: 0
    durations: {quarter: 0.4, eighth: 0.3, dotted_eighth: 0.1, rest: 0.2}
  - name: drums
    strategy: drums
    channel: 9
    drums:
      - {pitch: kick, min_distance: 3, density: 0.15, anchor_every: 8}
```

JSON is a subset of YAML, so JSON files load too.
"""

import dataclasses
import fractions
import logging
import os
import typing

import yaml

import polyphon.constants.durations
import polyphon.constants.gm_drums
import polyphon.constants.ticks
import polyphon.constants.velocity
import polyphon.errors
import polyphon.melody
import polyphon.progression
import polyphon.roles


logger = logging.getLogger(__name__)


def _default_roles () -> typing.List[polyphon.roles.InstrumentRole]:

	return polyphon.roles.default_roles()


# Expected types of the scalar options, checked before any value is compared.
_FIELD_TYPES: typing.Dict[str, typing.Tuple[type, ...]] = {
	"seed": (int,),
	"tempo_bpm": (int, float),
	"target_duration_seconds": (int, float),
	"key": (str,),
	"mode": (str,),
	"ppq": (int,),
	"beats_per_bar": (int,),
	"include_sevenths": (bool,),
	"voice_leading": (bool,),
	"humanize_timing": (int, float),
	"humanize_velocity": (int,),
	"swing": (int, float),
	"syncopation": (int, float),
	"parallel": (bool,),
	"harmony": (bool,),
}


@dataclasses.dataclass
class GenerationConfig:

	"""
	Everything one generation run needs.

	A ``seed`` of None means "pick one": :class:`~polyphon.composition.Composition`
	draws a fresh seed and logs it so the run can be repeated.
	"""

	seed: typing.Optional[int] = None
	tempo_bpm: float = 120
	target_duration_seconds: float = 30
	key: str = "C"
	mode: str = "major"
	scale: typing.Optional[typing.List[int]] = None
	ppq: int = polyphon.constants.ticks.DEFAULT_PPQ
	beats_per_bar: int = 4
	beats_per_chord: typing.Any = 4
	progression: typing.Optional[typing.List[str]] = None
	include_sevenths: bool = False
	voice_leading: bool = True
	humanize_timing: float = 0.02
	humanize_velocity: int = 6
	swing: float = 0.0
	syncopation: float = 0.0
	harmony: bool = True
	parallel: bool = False
	roles: typing.List[polyphon.roles.InstrumentRole] = dataclasses.field(default_factory=_default_roles)

	def validate (self) -> None:

		"""
		Check every scalar option.

		Raises:
			ConfigurationError: On the first invalid value.
		"""

		for name, kinds in _FIELD_TYPES.items():
			value = getattr(self, name)
			if name == "seed" and value is None:
				continue
			# bool is an int subclass, so flags and numbers are told apart explicitly.
			if kinds == (bool,):
				valid = isinstance(value, bool)
			else:
				valid = isinstance(value, kinds) and not isinstance(value, bool)
			if not valid:
				expected = " or ".join(kind.__name__ for kind in kinds)
				raise polyphon.errors.ConfigurationError(f"{name} must be {expected}, got {value!r}")

		if self.tempo_bpm <= 0:
			raise polyphon.errors.ConfigurationError(f"tempo_bpm must be positive, got {self.tempo_bpm}")

		if self.target_duration_seconds <= 0:
			raise polyphon.errors.ConfigurationError(f"target_duration_seconds must be positive, got {self.target_duration_seconds}")

		if not 0 < self.ppq <= polyphon.constants.ticks.MAX_PPQ:
			raise polyphon.errors.ConfigurationError(f"ppq must be between 1 and {polyphon.constants.ticks.MAX_PPQ}, got {self.ppq}")

		if self.beats_per_bar <= 0:
			raise polyphon.errors.ConfigurationError(f"beats_per_bar must be positive, got {self.beats_per_bar}")

		self.chord_length()

		if self.humanize_timing < 0 or self.humanize_velocity < 0:
			raise polyphon.errors.ConfigurationError("Humanize amounts cannot be negative")

		for name in ("swing", "syncopation"):
			value = getattr(self, name)
			if not 0.0 <= value <= 1.0:
				raise polyphon.errors.ConfigurationError(f"{name} must be between 0 and 1, got {value}")

		if self.scale is not None and (not isinstance(self.scale, list) or not all(isinstance(o, int) and not isinstance(o, bool) for o in self.scale)):
			raise polyphon.errors.ConfigurationError(f"scale must be a list of semitone offsets, got {self.scale!r}")

		if self.progression is not None:
			if not isinstance(self.progression, list):
				raise polyphon.errors.ConfigurationError(f"progression must be a list of function names, got {self.progression!r}")
			if not self.progression:
				raise polyphon.errors.ConfigurationError("progression cannot be an empty list")
			for function in self.progression:
				if not isinstance(function, str):
					raise polyphon.errors.ConfigurationError(f"Progression entries must be function names, got {function!r}")
				polyphon.progression.parse_function(function)

		if not self.roles:
			raise polyphon.errors.ConfigurationError("At least one role is required")

		names = [role.name for role in self.roles]

		if len(set(names)) != len(names):
			raise polyphon.errors.ConfigurationError(f"Role names must be unique, got {names}")


	def chord_length (self) -> fractions.Fraction:

		"""``beats_per_chord`` as exact beats."""

		try:
			return polyphon.constants.durations.parse_duration(self.beats_per_chord)
		except ValueError as exc:
			raise polyphon.errors.ConfigurationError(f"beats_per_chord: {exc}") from exc


	@classmethod
	def from_dict (cls, data: typing.Optional[typing.Mapping[str, typing.Any]]) -> "GenerationConfig":

		"""Build a configuration from a plain mapping; missing keys take defaults."""

		data = dict(data or {})
		fields = {f.name for f in dataclasses.fields(cls)}
		unknown = sorted(set(data) - fields)

		if unknown:
			raise polyphon.errors.ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")

		roles = data.pop("roles", None)
		config = cls(**data)

		if roles is not None:
			if not isinstance(roles, list):
				raise polyphon.errors.ConfigurationError("roles must be a list")
			config.roles = [role_from_dict(entry) for entry in roles]

		config.validate()

		return config


	def to_dict (self) -> typing.Dict[str, typing.Any]:

		"""Plain, YAML-safe mapping that :meth:`from_dict` reads back."""

		data: typing.Dict[str, typing.Any] = {}

		for f in dataclasses.fields(self):
			if f.name == "roles":
				continue
			data[f.name] = getattr(self, f.name)

		if data["scale"] is None:
			del data["scale"]

		if isinstance(data["beats_per_chord"], fractions.Fraction):
			data["beats_per_chord"] = str(data["beats_per_chord"])

		data["roles"] = [role_to_dict(role) for role in self.roles]

		return data


def _pair (value: typing.Any, label: str) -> typing.Tuple[typing.Any, typing.Any]:

	if not isinstance(value, (list, tuple)) or len(value) != 2:
		raise polyphon.errors.ConfigurationError(f"{label} must be a [low, high] pair, got {value!r}")

	return value[0], value[1]


def _velocity_pair (value: typing.Any, label: str) -> typing.Tuple[int, int]:

	low, high = _pair(value, label)

	try:
		return polyphon.constants.velocity.dynamic_to_velocity(low), polyphon.constants.velocity.dynamic_to_velocity(high)
	except ValueError as exc:
		raise polyphon.errors.ConfigurationError(f"{label}: {exc}") from exc


def _drum_voice_from_dict (data: typing.Mapping[str, typing.Any]) -> polyphon.roles.DrumVoice:

	data = dict(data)

	try:
		pitch = polyphon.constants.gm_drums.drum_pitch(data.pop("pitch"))
	except KeyError:
		raise polyphon.errors.ConfigurationError("Every drum voice needs a pitch") from None
	except ValueError as exc:
		raise polyphon.errors.ConfigurationError(str(exc)) from exc

	kwargs: typing.Dict[str, typing.Any] = {"pitch": pitch}

	if "velocity" in data:
		kwargs["velocity_low"], kwargs["velocity_high"] = _velocity_pair(data.pop("velocity"), "drum velocity")

	for name in ("min_distance", "density", "anchor_every", "anchor_offset"):
		if name in data:
			kwargs[name] = data.pop(name)

	if data:
		raise polyphon.errors.ConfigurationError(f"Unknown drum voice keys: {', '.join(sorted(data))}")

	return polyphon.roles.DrumVoice(**kwargs)


def role_from_dict (data: typing.Mapping[str, typing.Any]) -> polyphon.roles.InstrumentRole:

	"""Build an :class:`~polyphon.roles.InstrumentRole` from its configuration entry."""

	data = dict(data)

	if "name" not in data or "strategy" not in data:
		raise polyphon.errors.ConfigurationError(f"Each role needs a name and a strategy, got {sorted(data)}")

	name = data.pop("name")

	try:
		strategy = polyphon.roles.Strategy(str(data.pop("strategy")).lower())
	except ValueError:
		available = [s.value for s in polyphon.roles.Strategy]
		raise polyphon.errors.ConfigurationError(f"Unknown strategy for role {name!r}. Available: {available}") from None

	kwargs: typing.Dict[str, typing.Any] = {"name": name, "strategy": strategy}

	if "range" in data:
		kwargs["low"], kwargs["high"] = _pair(data.pop("range"), f"{name} range")

	if "velocity" in data:
		kwargs["velocity_low"], kwargs["velocity_high"] = _velocity_pair(data.pop("velocity"), f"{name} velocity")

	if "degree_mode" in data:
		mode = str(data.pop("degree_mode")).lower()
		try:
			kwargs["degree_mode"] = polyphon.melody.DegreeMode(mode)
		except ValueError:
			raise polyphon.errors.ConfigurationError(f"Unknown degree_mode {mode!r} for role {name!r}") from None

	if "grid" in data:
		try:
			kwargs["grid"] = polyphon.constants.durations.parse_duration(data.pop("grid"))
		except ValueError as exc:
			raise polyphon.errors.ConfigurationError(f"{name} grid: {exc}") from exc

	if "drums" in data:
		kwargs["drum_voices"] = tuple(_drum_voice_from_dict(voice) for voice in data.pop("drums"))

	for key in ("channel", "durations", "max_step", "humanize"):
		if key in data:
			kwargs[key] = data.pop(key)

	if data:
		raise polyphon.errors.ConfigurationError(f"Unknown keys for role {name!r}: {', '.join(sorted(data))}")

	role = polyphon.roles.InstrumentRole(**kwargs)

	# Parse the duration table now so a bad table fails at load time.
	if role.strategy is not polyphon.roles.Strategy.DRUMS:
		role.duration_table()

	return role


def _plain (value: typing.Any) -> typing.Any:

	if isinstance(value, fractions.Fraction):
		return int(value) if value.denominator == 1 else str(value)

	return value


def role_to_dict (role: polyphon.roles.InstrumentRole) -> typing.Dict[str, typing.Any]:

	data: typing.Dict[str, typing.Any] = {
		"name": role.name,
		"strategy": role.strategy.value,
		"range": [role.low, role.high],
		"velocity": [role.velocity_low, role.velocity_high],
		"channel": role.channel,
	}

	if role.durations is not None:
		data["durations"] = {_plain(key): weight for key, weight in role.durations.items()}

	if role.strategy is polyphon.roles.Strategy.MELODY:
		data["degree_mode"] = role.degree_mode.value
		data["max_step"] = role.max_step

	if role.strategy is polyphon.roles.Strategy.DRUMS:
		data["grid"] = _plain(role.grid)
		data["drums"] = [
			{
				"pitch": voice.pitch,
				"min_distance": voice.min_distance,
				"density": voice.density,
				"anchor_every": voice.anchor_every,
				"anchor_offset": voice.anchor_offset,
				"velocity": [voice.velocity_low, voice.velocity_high],
			}
			for voice in role.drum_voices
		]

	if not role.humanize:
		data["humanize"] = False

	return data


def default_config () -> GenerationConfig:

	return GenerationConfig()


def load_config (path: str) -> GenerationConfig:

	"""
	Load a configuration file.

	Raises:
		ConfigurationError: If the file is missing, is not a mapping, or holds
			invalid values.
	"""

	if not os.path.exists(path):
		raise polyphon.errors.ConfigurationError(f"Config file {path} not found")

	with open(path, 'r') as f:
		try:
			data = yaml.safe_load(f)
		except yaml.YAMLError as exc:
			raise polyphon.errors.ConfigurationError(f"Could not parse {path}: {exc}") from exc

	if data is None:
		logger.warning(f"Config file {path} is empty. Using defaults.")
		data = {}

	if not isinstance(data, dict):
		raise polyphon.errors.ConfigurationError(f"Config file {path} must contain a mapping")

	return GenerationConfig.from_dict(data)


def save_config (config: GenerationConfig, path: str) -> None:

	"""Write ``config`` as YAML."""

	with open(path, 'w') as f:
		yaml.safe_dump(config.to_dict(), f, sort_keys=False)

	logger.info(f"Wrote configuration to {path}")
