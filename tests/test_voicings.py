import polyphon.chords
import polyphon.voicings


C_MAJOR = polyphon.chords.Chord(root_pc=0, quality="major")
F_MAJOR = polyphon.chords.Chord(root_pc=5, quality="major")
G7 = polyphon.chords.Chord(root_pc=7, quality="dominant_7th")


def test_root_position_identity () -> None:

	"""Inversion 0 should return a copy of the original intervals."""

	assert polyphon.voicings.invert_chord([0, 4, 7], 0) == [0, 4, 7]


def test_first_inversion_triad () -> None:

	# E is bass (interval 4 becomes 0), G above (+3), C above (+8)
	assert polyphon.voicings.invert_chord([0, 4, 7], 1) == [0, 3, 8]


def test_third_inversion_seventh () -> None:

	# [10, 12, 16, 19] -> re-zeroed: [0, 2, 6, 9]
	assert polyphon.voicings.invert_chord([0, 4, 7, 10], 3) == [0, 2, 6, 9]


def test_candidates_fit_the_range () -> None:

	candidates = polyphon.voicings.candidate_voicings(G7, 48, 72)

	assert candidates
	for voicing in candidates:
		assert all(48 <= p <= 72 for p in voicing)
		assert {p % 12 for p in voicing} == G7.pitch_classes()


def test_first_chord_is_root_position_near_centre () -> None:

	assert polyphon.voicings.voice_chord(C_MAJOR, 48, 72) == [60, 64, 67]


def test_voice_leading_keeps_common_tone () -> None:

	"""C major to F major should keep C in place and move the others by step."""

	voicing = polyphon.voicings.voice_chord(F_MAJOR, 48, 72, previous=[60, 64, 67])

	assert voicing == [60, 65, 69]


def test_narrow_range_falls_back_to_single_tones () -> None:

	voicing = polyphon.voicings.voice_chord(C_MAJOR, 60, 64)

	assert all(60 <= p <= 64 for p in voicing)
	assert voicing == sorted(set(voicing))


def test_voice_leading_state_without_smoothing () -> None:

	"""With smoothing off every chord is voiced fresh, in root position."""

	state = polyphon.voicings.VoiceLeadingState(48, 72, smooth=False)
	state.next(C_MAJOR)

	assert state.next(F_MAJOR)[0] % 12 == 5


def test_voice_leading_state_moves_less_than_fresh_voicing () -> None:

	smooth = polyphon.voicings.VoiceLeadingState(48, 72)
	fresh = polyphon.voicings.VoiceLeadingState(48, 72, smooth=False)
	progression = [C_MAJOR, F_MAJOR, G7, C_MAJOR, F_MAJOR]

	def movement (state: polyphon.voicings.VoiceLeadingState) -> int:
		previous = state.next(progression[0])
		total = 0
		for chord in progression[1:]:
			current = state.next(chord)
			total += sum(min(abs(t - p) for p in previous) for t in current)
			previous = current
		return total

	assert movement(smooth) <= movement(fresh)
