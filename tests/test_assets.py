import logging
from unittest.mock import MagicMock, call

import pytest

from assets import SIGNATURE_LABEL, embed_image, embed_signature
from drawing import PdfCanvas
from models import SignatureSettings

from conftest import PNG_DATA_URL


class TestEmbedImage:
    @pytest.mark.parametrize("data", ["not-an-image", "", None, 42, "http://example.com/logo.png"])
    def test_non_image_data_leaves_canvas_untouched(self, data):
        canvas = MagicMock()
        assert embed_image(canvas, data, 10, 10, 20, 20) is False
        assert canvas.method_calls == []

    def test_draws_image_data_url(self):
        canvas = MagicMock()
        assert embed_image(canvas, PNG_DATA_URL, 10, 12, 20, 22) is True
        canvas.image.assert_called_once_with(PNG_DATA_URL, 10, 12, 20, 22)

    def test_drawing_failure_is_logged_and_swallowed(self, caplog):
        canvas = MagicMock()
        canvas.image.side_effect = OSError("cannot identify image file")
        with caplog.at_level(logging.WARNING, logger="assets"):
            assert embed_image(canvas, "data:image/png;base64,AAAA", 0, 0, 10, 10, role="signature") is False
        assert "Could not add signature to PDF" in caplog.text

    def test_corrupt_image_on_real_canvas(self):
        canvas = PdfCanvas()
        assert embed_image(canvas, "data:image/png;base64,!!!!", 10, 10, 20, 20) is False
        assert canvas.output().startswith(b"%PDF")


class TestEmbedSignature:
    def test_missing_or_none_settings_draw_nothing(self):
        canvas = MagicMock()
        embed_signature(canvas, None, 210, 200)
        embed_signature(canvas, SignatureSettings(type="none"), 210, 200)
        assert canvas.method_calls == []

    @pytest.mark.parametrize("font, family", [
        ("cursive", "times"),
        ("handwritten", "times"),
        ("formal", "times"),
        ("modern", "helvetica"),
        ("gothic", "times"),
        (None, "times"),
    ])
    def test_text_signature_font(self, font, family):
        canvas = MagicMock()
        embed_signature(canvas, SignatureSettings(type="text", text="R. Kumar", font=font), 210, 200)
        canvas.set_font.assert_any_call(family=family, style="italic", size=16)
        canvas.text.assert_any_call("R. Kumar", 140, 215)

    def test_label_and_rule_are_right_anchored(self):
        canvas = MagicMock()
        embed_signature(canvas, SignatureSettings(type="text", text="R. Kumar"), 210, 200)
        canvas.text.assert_any_call(SIGNATURE_LABEL, 140, 200)
        canvas.line.assert_called_once_with(140, 225, 190, 225)

    def test_image_signature_delegates_to_embed_image(self):
        canvas = MagicMock()
        embed_signature(canvas, SignatureSettings(type="image", image=PNG_DATA_URL), 210, 200)
        assert canvas.image.call_args == call(PNG_DATA_URL, 140, 203, 50, 20)
        canvas.line.assert_called_once()

    def test_broken_image_signature_keeps_label_and_rule(self):
        canvas = MagicMock()
        embed_signature(canvas, SignatureSettings(type="image", image="garbage"), 210, 200)
        canvas.image.assert_not_called()
        canvas.text.assert_called_once_with(SIGNATURE_LABEL, 140, 200)
        canvas.line.assert_called_once()
