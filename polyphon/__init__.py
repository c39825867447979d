"""
Polyphon - seeded, multi-track algorithmic composition to Standard MIDI Files.

Polyphon writes a complete short piece from a handful of settings (key,
mode, tempo, length in seconds and a list of instrument roles) and saves it
as a type 1 MIDI file. The same seed and settings always produce the same
bytes.

How a piece is built:

- **Harmony first.** A chord progression is drawn from harmonic functions
  (tonic, subdominant, dominant), either cycling a fixed grammar or walking
  a Markov model, with recently used roots made less likely.
- **Rhythm to an exact length.** Each role fills a beat budget from a
  weighted duration table (rests included) and never runs past it. Optional
  swing and syncopation passes keep the total unchanged.
- **Melody inside the harmony.** Scale-degree steps come from a Markov
  model or a smooth noise contour; notes on strong beats snap to chord
  tones, and everything is kept inside the role's pitch range.
- **Instrument strategies.** Melody, bass (roots and fifths), voice-led
  block chords, arpeggios, and drums spaced by Poisson-disk sampling on a
  beat grid.
- **Humanized, never reordered.** Timing and velocity jitter is bounded so
  notes stay in order and inside the budget.
- **Tick-exact export.** Beat fractions are rounded once to the PPQ grid
  and written with mido.

Minimal example:

    ```python
    import polyphon

    config = polyphon.GenerationConfig(seed=42, key="D", mode="dorian", target_duration_seconds=20)
    polyphon.Composition(config).save("dorian.mid")
    ```

From the command line: ``polyphon --seed 42 --output piece.mid``.

Package-level exports: ``Composition``, ``GenerationConfig``, ``InstrumentRole``,
``Strategy``, ``register_scale``.
"""

import polyphon.composition
import polyphon.config
import polyphon.intervals
import polyphon.roles


Composition = polyphon.composition.Composition
GenerationConfig = polyphon.config.GenerationConfig
InstrumentRole = polyphon.roles.InstrumentRole
Strategy = polyphon.roles.Strategy
register_scale = polyphon.intervals.register_scale
