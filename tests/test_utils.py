import pytest
from unittest.mock import patch, mock_open

from replymux.utils import (
    create_image_content, create_message, create_text_content, encode_bytes, encode_image_file,
    has_image_content,
)


class TestUtils:

    def test_create_text_content(self):
        content = create_text_content("Hello")
        assert content == {"type": "text", "text": "Hello"}

    def test_create_image_content(self):
        content = create_image_content("SGVsbG8=", "image/png")
        assert content == {"type": "image", "media_type": "image/png", "data": "SGVsbG8="}

    def test_create_message_text(self):
        msg = create_message("user", "Hello world")
        assert msg == {"role": "user", "content": "Hello world"}

    def test_create_message_multimodal(self):
        content = [
            "Look at this",
            create_image_content("AQID", "image/jpeg"),
        ]
        msg = create_message("user", content)
        assert msg["role"] == "user"
        assert len(msg["content"]) == 2
        assert msg["content"][0] == {"type": "text", "text": "Look at this"}
        assert msg["content"][1]["type"] == "image"

    def test_encode_bytes(self):
        assert encode_bytes(b"\x01\x02\x03") == "AQID"

    @patch("pathlib.Path.exists")
    @patch("builtins.open", new_callable=mock_open, read_data=b"image data")
    def test_encode_image_file(self, mock_file, mock_exists):
        mock_exists.return_value = True

        b64_data, mime_type = encode_image_file("test.jpg")

        assert mime_type == "image/jpeg"
        # "image data" in base64 is "aW1hZ2UgZGF0YQ=="
        assert b64_data == "aW1hZ2UgZGF0YQ=="

    @patch("pathlib.Path.exists")
    @patch("builtins.open", new_callable=mock_open, read_data=b"png")
    def test_encode_image_file_png(self, mock_file, mock_exists):
        mock_exists.return_value = True
        _, mime_type = encode_image_file("diagram.PNG")
        assert mime_type == "image/png"

    def test_encode_image_file_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Image file not found"):
            encode_image_file(tmp_path / "nope.jpg")

    def test_has_image_content(self, conversation, image_conversation):
        assert has_image_content(image_conversation) is True
        assert has_image_content(conversation) is False
        assert has_image_content([]) is False

    def test_has_image_content_text_only_parts(self):
        messages = [create_message("user", ["just", "text"])]
        assert has_image_content(messages) is False
