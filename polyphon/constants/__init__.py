"""Constants for polyphon.

- ``polyphon.constants.durations`` - Beat durations (exact fractions), dotted and triplet helpers
- ``polyphon.constants.ticks`` - Export resolution (PPQ) and tick helpers
- ``polyphon.constants.velocity`` - MIDI velocity constants and named dynamics
- ``polyphon.constants.gm_drums`` - General MIDI percussion note numbers
"""
