import pytest

from locres import factory
from locres.backends.jsonfile import JsonBackend
from locres.backends.phrases import PhrasesBackend
from locres.backends.resx import ResxBackend
from locres.errors import NotFoundError, UnsupportedFormatError


class TestBackendFactory:
    """Resolving backends by name and by folder contents."""

    def test_available_backends(self):
        assert factory.get_available_backends() == ["phrases", "resx", "json"]

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("resx", ResxBackend),
            ("XML", ResxBackend),
            ("json", JsonBackend),
            ("JsonLocalization", JsonBackend),
            ("sourcemod", PhrasesBackend),
        ],
    )
    def test_get_backend_by_name_or_alias(self, name, expected):
        assert isinstance(factory.get_backend(name), expected)
        assert factory.is_backend_available(name)

    def test_unknown_backend(self):
        assert not factory.is_backend_available("po")
        with pytest.raises(UnsupportedFormatError):
            factory.get_backend("po")

    def test_unsupported_format_is_a_not_found_error(self):
        with pytest.raises(NotFoundError):
            factory.get_backend("po")

    def test_options_are_passed_to_backend(self):
        backend = factory.get_backend("json", {"json": {"indent": 4}})
        assert backend.options == {"indent": 4}

    def test_register_duplicate_name_fails(self):
        with pytest.raises(ValueError):
            factory.register_backend(
                factory.BackendDescriptor("resx", ResxBackend, ResxBackend.can_handle)
            )

    def test_resolve_from_path(self, tmp_path):
        (tmp_path / "Strings.resx").write_text("<root/>", "utf-8")
        assert isinstance(factory.resolve_from_path(tmp_path), ResxBackend)

    def test_resolve_is_deterministic_for_mixed_folders(self, tmp_path):
        (tmp_path / "Strings.json").write_text("{}", "utf-8")
        (tmp_path / "Strings.resx").write_text("<root/>", "utf-8")
        resolved = {type(factory.resolve_from_path(tmp_path)) for _ in range(5)}
        assert resolved == {ResxBackend}

    def test_resolve_falls_back_to_configured_default(self, tmp_path):
        assert isinstance(factory.resolve_from_path(tmp_path), ResxBackend)
        assert isinstance(factory.resolve_from_path(tmp_path, {"default": "json"}), JsonBackend)

    def test_resolve_json_ignores_manifests(self, tmp_path):
        (tmp_path / "package.json").write_text("{}", "utf-8")
        assert isinstance(factory.resolve_from_path(tmp_path, {"default": "resx"}), ResxBackend)
