"""
Unit tests for reply normalization and the under-detailed check.
"""

import pytest

from sahayak.core.normalizer import count_bullets, looks_underdetailed, normalize_reply

pytestmark = pytest.mark.unit


DETAILED_REPLY = "\n".join(
    [
        "- Irrigate the field early in the morning so the roots absorb water before the heat.",
        "- Apply a balanced fertilizer after soil testing and follow the label instructions.",
        "- Scout the crop twice a week for aphids and remove badly affected leaves quickly.",
        "- Confirm any spray schedule with your local agriculture officer before use.",
    ]
)


class TestNormalizeReply:
    def test_strips_emphasis_and_breaks_after_second_sentence(self):
        assert normalize_reply("**Tip** one. Two __here__. Three now.") == (
            "Tip one. Two here.\n\nThree now."
        )

    def test_inline_bullets_move_to_own_lines(self):
        assert normalize_reply("Do this: - water early - add mulch") == (
            "Do this:\n- water early\n- add mulch"
        )

    def test_whitespace_before_newline_removed(self):
        assert normalize_reply("line one   \nline two") == "line one\nline two"

    def test_existing_paragraph_break_is_kept(self):
        text = "One. Two. Three.\n\nFour."
        assert normalize_reply(text) == text

    def test_two_sentences_are_not_split(self):
        assert normalize_reply("One. Two.") == "One. Two."

    def test_danda_terminates_sentences(self):
        assert normalize_reply("पहला वाक्य। दूसरा वाक्य। तीसरा वाक्य।") == (
            "पहला वाक्य। दूसरा वाक्य।\n\nतीसरा वाक्य।"
        )

    def test_none_is_empty(self):
        assert normalize_reply(None) == ""


class TestUnderdetailed:
    def test_short_text(self):
        assert looks_underdetailed("- Water early.\n- Mulch.\n- Scout.")

    def test_long_text_with_bullets(self):
        assert count_bullets(DETAILED_REPLY) == 4
        assert not looks_underdetailed(DETAILED_REPLY)

    def test_long_text_with_few_bullets(self):
        text = "Water the field early. " * 12 + "\n- one\n- two"
        assert len(text) >= 220
        assert looks_underdetailed(text)

    def test_empty(self):
        assert looks_underdetailed("")
