"""Unit tests for log_redaction module — provider keys and personal data stripped from logs."""
import logging

from newsight.log_redaction import RedactionFilter, configure_logging, redact_dict, redact_string


class TestRedactString:
    def test_openai_key(self):
        raw = "using key sk-abcdefghijklmnopqrstuvwxyz012345"
        assert "[REDACTED:openai_key]" in redact_string(raw)
        assert "sk-abc" not in redact_string(raw)

    def test_openai_project_key(self):
        assert "[REDACTED:openai_key]" in redact_string("sk-proj-abcdefghij_klmnopqrstuv")

    def test_elevenlabs_key(self):
        raw = "sk_0123456789abcdef0123456789abcdef"
        assert redact_string(raw) == "[REDACTED:elevenlabs_key]"

    def test_header_assignment(self):
        result = redact_string("xi-api-key: abcdef0123456789abcdef")
        assert result == "xi-api-key: [REDACTED]"

    def test_bearer_token(self):
        raw = "Bearer eyJhbGciOiJSUzI1NiIsInR5cCI6IkpXVCJ9.payload.sig"
        result = redact_string(raw)
        assert "Bearer [REDACTED]" in result
        assert "eyJ" not in result

    def test_email_address(self):
        assert "[REDACTED:email]" in redact_string("note from user@example.com")

    def test_no_false_positive_on_clean(self):
        clean = "transition OK  session=abc  IDLE → AWAITING_SYNTHESIS"
        assert redact_string(clean) == clean

    def test_non_string_passthrough(self):
        assert redact_string(12345) == 12345  # type: ignore
        assert redact_string(None) is None  # type: ignore


class TestRedactDict:
    def test_sensitive_key_redacted(self):
        data = {"voice_id": "abc", "xi-api-key": "s3cret", "api_key": "abc"}
        result = redact_dict(data)
        assert result["xi-api-key"] == "[REDACTED]"
        assert result["api_key"] == "[REDACTED]"
        assert result["voice_id"] == "abc"

    def test_nested_dict(self):
        data = {"headers": {"Authorization": "Bearer x", "Accept": "audio/mpeg"}}
        result = redact_dict(data)
        assert result["headers"]["Authorization"] == "[REDACTED]"
        assert result["headers"]["Accept"] == "audio/mpeg"

    def test_list_of_dicts(self):
        data = {"items": [{"secret": "x"}, {"note": "hello user@test.com"}]}
        result = redact_dict(data)
        assert result["items"][0]["secret"] == "[REDACTED]"
        assert "[REDACTED:email]" in result["items"][1]["note"]


class TestRedactionFilter:
    def test_args_rendered_then_redacted(self):
        record = logging.LogRecord(
            "newsight.test", logging.INFO, __file__, 1,
            "speech_client: key=%s", ("sk_0123456789abcdef0123456789abcdef",), None,
        )
        assert RedactionFilter().filter(record) is True
        assert record.getMessage() == "speech_client: key=[REDACTED:elevenlabs_key]"
        assert record.args is None

    def test_configure_logging_is_idempotent(self):
        root = configure_logging("debug")
        configure_logging("INFO")
        handlers = [h for h in root.handlers if getattr(h, "_newsight", False)]
        assert len(handlers) == 1
        assert root.level == logging.INFO
