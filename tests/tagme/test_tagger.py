"""Tests for the TagMe tagging stage."""
import logging

import httpx
import pytest

from pulse.tagme import Tagger
from pulse.tagme.config import TagMeConfig
from pulse.tagme.operator import apply_tagger
from pulse.tagme.tagger import PLUGIN_NAME, TagMeTagger, is_supported_language
from pulse.tagme.types import AnnotationResponse, Message, Tag

TAGGER_LOGGER = "pulse.tagme.tagger"


class TestContract:
    """Plugin contract."""

    def test_satisfies_protocol(self, tagger):
        assert isinstance(tagger, Tagger)

    def test_name(self, tagger):
        assert tagger.name == PLUGIN_NAME == "tagme"

    def test_default_config_has_no_threshold(self, tagger):
        assert tagger.default_config() == TagMeConfig()
        assert tagger.default_config().min_confidence is None


class TestLanguageGate:
    """Only Italian and English reach the service."""

    @pytest.mark.parametrize("language", ["en", "EN", "it", "IT", "En", "iT"])
    def test_supported_languages_call_service(self, tagger, fake_tagme, language):
        tagger.process("some text", language)
        assert len(fake_tagme.requests) == 1

    @pytest.mark.parametrize("language", [None, "", "FR", "fr", "de", "english", " en", 7])
    def test_unsupported_languages_skip_service(self, tagger, fake_tagme, caplog, language):
        fake_tagme.annotations = [("Rome", 0.9)]
        with caplog.at_level(logging.WARNING, logger=TAGGER_LOGGER):
            assert tagger.process("some text", language) == []
        assert fake_tagme.requests == []
        assert caplog.records == []

    def test_is_supported_language(self):
        assert is_supported_language("it")
        assert not is_supported_language("es")
        assert not is_supported_language(None)


class TestScenarios:
    """End-to-end behaviour of process()."""

    def test_threshold_filters(self, tagger, fake_tagme):
        fake_tagme.annotations = [("Rome", 0.2), ("Italy", 0.05)]
        result = tagger.process("Rome is in Italy", "EN", TagMeConfig(min_confidence=0.1))
        assert result == [Tag(text="Rome", sources={"tagme"})]

    def test_unsupported_language(self, tagger, fake_tagme):
        fake_tagme.annotations = [("Paris", 0.9)]
        assert tagger.process("Paris est en France", "FR", TagMeConfig()) == []
        assert fake_tagme.requests == []

    def test_transport_fault_logs_once(self, tagger, fake_tagme, caplog):
        fake_tagme.fault = httpx.ConnectError("connection refused")
        with caplog.at_level(logging.ERROR, logger=TAGGER_LOGGER):
            assert tagger.process("Rome", "en") == []
        errors = [r for r in caplog.records if r.name == TAGGER_LOGGER]
        assert len(errors) == 1
        assert "https://tagme.test/tagme/tag" in errors[0].getMessage()
        assert "ConnectError" in errors[0].getMessage()

    def test_no_threshold_keeps_everything(self, tagger, fake_tagme):
        fake_tagme.annotations = [("Rome", 0.9), ("Italy", 0.01)]
        result = tagger.process("Rome is in Italy", "it")
        assert result == [Tag("Rome", {"tagme"}), Tag("Italy", {"tagme"})]

    def test_boundary_inclusive(self, tagger, fake_tagme):
        fake_tagme.annotations = [("Rome", 0.1), ("Italy", 0.0999)]
        result = tagger.process("x", "en", TagMeConfig.from_json({"minRho": 0.1}))
        assert [t.text for t in result] == ["Rome"]

    def test_none_text_sent_as_empty(self, tagger, fake_tagme):
        assert tagger.process(None, "en") == []
        assert fake_tagme.form().get("text", "") == ""

    def test_deterministic(self, tagger, fake_tagme):
        fake_tagme.annotations = [("B", 0.5), ("A", 0.5), ("B", 0.5)]
        first = tagger.process("x", "en")
        second = tagger.process("x", "en")
        assert first == second
        assert [t.text for t in first] == ["B", "A", "B"]


class TestFailureIsolation:
    """Failures degrade to no tags and never leak to the caller."""

    def test_status_error_logs_url_and_status(self, tagger, fake_tagme, caplog):
        fake_tagme.status_code = 401
        with caplog.at_level(logging.ERROR, logger=TAGGER_LOGGER):
            assert tagger.process("Rome", "en") == []
        message = caplog.records[-1].getMessage()
        assert "https://tagme.test/tagme/tag" in message
        assert "401: Unauthorized" in message
        assert "\n" not in message

    def test_decode_error(self, tagger, fake_tagme, caplog):
        fake_tagme.body = b"not json at all"
        with caplog.at_level(logging.ERROR, logger=TAGGER_LOGGER):
            assert tagger.process("Rome", "en") == []
        assert len(caplog.records) == 1
        assert "unexpected payload" in caplog.records[0].getMessage()

    def test_repeated_failures_are_independent(self, tagger, fake_tagme, caplog):
        fake_tagme.fault = httpx.ConnectError("down")
        with caplog.at_level(logging.ERROR, logger=TAGGER_LOGGER):
            assert tagger.process("a", "en") == []
            assert tagger.process("b", "en") == []
        assert len(fake_tagme.requests) == 2
        assert len(caplog.records) == 2

    def test_recovers_after_failure(self, tagger, fake_tagme):
        fake_tagme.fault = httpx.ConnectError("down")
        assert tagger.process("a", "en") == []
        fake_tagme.fault = None
        fake_tagme.annotations = [("Rome", 0.5)]
        assert tagger.process("a", "en") == [Tag("Rome", {"tagme"})]

    def test_unexpected_fault_is_logged_with_traceback(self, caplog):
        class ExplodingClient:
            url = "https://tagme.test/tagme/tag"

            def tag(self, text, language):
                raise RuntimeError("bug in client")

        tagger = TagMeTagger(ExplodingClient())
        with caplog.at_level(logging.ERROR, logger=TAGGER_LOGGER):
            assert tagger.process("Rome", "en") == []
        assert len(caplog.records) == 1
        assert caplog.records[0].exc_info is not None

    def test_fault_in_mapping_yields_no_partial_tags(self, caplog):
        class BadResponseClient:
            def tag(self, text, language):
                return AnnotationResponse(annotations=("not a candidate",))

        tagger = TagMeTagger(BadResponseClient())
        with caplog.at_level(logging.ERROR, logger=TAGGER_LOGGER):
            assert tagger.process("Rome", "en", TagMeConfig(min_confidence=0.1)) == []
        assert len(caplog.records) == 1


class TestAttachTags:
    """Attaching tags to a message."""

    def test_appends_without_touching_existing_tags(self, tagger, fake_tagme):
        fake_tagme.annotations = [("Rome", 0.5)]
        existing = Tag("Capital", {"manual"})
        message = Message(text="Rome", language="en", tags=[existing])
        result = apply_tagger(tagger, message, TagMeConfig())
        assert result is message
        assert message.tags == [existing, Tag("Rome", {"tagme"})]
        assert existing.sources == {"manual"}

    def test_failure_leaves_message_unchanged(self, tagger, fake_tagme):
        fake_tagme.status_code = 500
        message = Message(text="Rome", language="en")
        apply_tagger(tagger, message)
        assert message.tags == []
