TOLERANCE = 0.1  # +-10% of the template's own value
EPSILON = 1e-6
CLOSE_THRESHOLD = 0.7


def clamp01(value):
    return max(0.0, min(1.0, value))


def _component_score(player_value, template_value):
    tolerance = max(abs(template_value) * TOLERANCE, EPSILON)
    return 1.0 - clamp01(abs(player_value - template_value) / tolerance)


def match_score(player, template):
    """Similarity of ``player`` to ``template`` in [0, 1].

    A different wave kind never partially matches. Frequency and amplitude
    each score 1 at an exact match, falling linearly to 0 at 10% of the
    template's value, and are weighted equally. Phase is not scored.
    """
    if player.kind != template.kind:
        return 0.0

    freq_score = _component_score(player.frequency, template.frequency)
    amp_score = _component_score(player.amplitude, template.amplitude)
    return (freq_score + amp_score) / 2.0


def match_label(score):
    return f"Match: {score * 100.0:.1f}%"


def match_band(score, threshold=0.9):
    if score >= threshold:
        return "locked"
    if score >= CLOSE_THRESHOLD:
        return "close"
    return "far"
