from pathlib import Path

import pytest

from locres.classes import LanguageInfo, ResourceEntry, ResourceFile
from locres.errors import TranslationError
from locres.translation import (
    TranslationProvider,
    TranslationRequest,
    apply_translations,
    build_translation_requests,
)


class UpperCaseProvider(TranslationProvider):
    def translate(self, request: TranslationRequest) -> str:
        if request.context == "Broken":
            raise TranslationError("quota exceeded")
        return request.source_text.upper()


@pytest.fixture
def files():
    source = ResourceFile(
        LanguageInfo("", Path("S.resx"), "S", display_name=None, is_default=True),
        [
            ResourceEntry("Hello", "Hello"),
            ResourceEntry("Done", "Done"),
            ResourceEntry("Blank", ""),
            ResourceEntry("Broken", "Broken"),
            ResourceEntry("New", "New"),
        ],
    )
    target = ResourceFile(
        LanguageInfo("fr", Path("S.fr.resx"), "S", display_name="French"),
        [
            ResourceEntry("Hello", ""),
            ResourceEntry("Done", "Fait"),
            ResourceEntry("Broken", " "),
        ],
    )
    return source, target


class TestTranslationRequest:
    """Construction-time validation."""

    def test_valid_request(self):
        request = TranslationRequest("Hello", "fr", "French", context="Greeting")
        assert request.source_language is None
        assert request.context == "Greeting"

    @pytest.mark.parametrize("source_text, target", [("", "fr"), ("Hello", "")])
    def test_required_fields(self, source_text, target):
        with pytest.raises(ValueError):
            TranslationRequest(source_text, target, "French")

    def test_is_immutable(self):
        request = TranslationRequest("Hello", "fr", "French")
        with pytest.raises(AttributeError):
            request.source_text = "Bye"


class TestTranslationWorkflow:
    """Building requests for untranslated keys and applying provider results."""

    def test_requests_for_untranslated_keys(self, files):
        source, target = files
        requests = build_translation_requests(source, target)
        assert [request.context for request in requests] == ["Hello", "Broken", "New"]
        assert requests[0].target_language == "fr"
        assert requests[0].target_language_name == "French"
        assert requests[0].source_language is None

    def test_apply_collects_failures(self, files):
        source, target = files
        result = apply_translations(target, UpperCaseProvider(), build_translation_requests(source, target))

        assert result.translated == ["Hello", "New"]
        assert [failure.key for failure in result.failures] == ["Broken"]
        assert target.get("Hello").value == "HELLO"
        assert target.get("New").value == "NEW"
        assert target.get("Broken").value == " "
        assert target.get("Done").value == "Fait"
