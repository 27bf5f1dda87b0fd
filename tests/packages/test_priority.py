"""
Tests for method resolution.
"""

from devstrap.config.catalog import BackendMapping, GithubSource
from devstrap.core.platform import Capabilities, Manager
from devstrap.packages.methods import InstallMethod, priority
from devstrap.packages.priority import available_methods, is_available, resolve_method

RIPGREP = BackendMapping(
    id="ripgrep",
    name="ripgrep",
    cargo="ripgrep",
    github=GithubSource("BurntSushi/ripgrep"),
    executable="rg",
)


class TestResolveMethod:
    """Tests for resolve_method()."""

    def test_default_manager_beats_cargo(self, brew_caps):
        """Test cargo and brew both available on a brew host picks brew."""
        mapping = BackendMapping(id="bat", name="bat", cargo="bat")
        assert resolve_method(mapping, brew_caps) == InstallMethod.system(Manager.BREW)

    def test_cargo_beats_non_default_system(self, brew_caps):
        """Test a language manager beats an OS manager that is not the default."""
        mapping = BackendMapping(id="x", apt="x", cargo="x")
        caps = Capabilities(
            os="linux",
            distro="fedora",
            default_manager=Manager.DNF,
            available_managers=frozenset({Manager.DNF, Manager.APT, Manager.CARGO}),
        )
        assert resolve_method(mapping, caps) == InstallMethod.language(Manager.CARGO)

    def test_source_release_fallback(self, bare_caps):
        """Test a host with no managers falls back to the source release."""
        assert resolve_method(RIPGREP, bare_caps) == InstallMethod.source_release()

    def test_none_when_no_backend(self, bare_caps):
        """Test no declared method is available."""
        mapping = BackendMapping(id="tldr", npm="tldr")
        assert resolve_method(mapping, bare_caps) is None

    def test_tie_keeps_declaration_order(self):
        """Test equal-priority methods resolve in declaration order."""
        caps = Capabilities(
            os="linux",
            distro="unknown",
            available_managers=frozenset({Manager.APT, Manager.PACMAN}),
        )
        mapping = BackendMapping(id="x", name="x")
        assert resolve_method(mapping, caps) == InstallMethod.system(Manager.APT)

    def test_maximality(self, brew_caps, apt_caps, bare_caps):
        """Test the result outranks every other available method."""
        for caps in (brew_caps, apt_caps, bare_caps):
            chosen = resolve_method(RIPGREP, caps)
            for method in RIPGREP.candidates():
                if is_available(method, caps):
                    assert priority(chosen, caps.default_manager) >= priority(
                        method, caps.default_manager
                    )


class TestAvailability:
    """Tests for availability predicates."""

    def test_source_release_always_available(self, bare_caps):
        """Test source releases need no manager."""
        assert is_available(InstallMethod.source_release(), bare_caps)

    def test_language_needs_manager(self, apt_caps):
        """Test language methods need their executable."""
        assert is_available(InstallMethod.language(Manager.CARGO), apt_caps)
        assert not is_available(InstallMethod.language(Manager.NPM), apt_caps)

    def test_available_methods_sorted(self, apt_caps):
        """Test ranking on an APT host."""
        names = [m.name for m in available_methods(RIPGREP, apt_caps)]
        assert names == ["apt", "cargo", "github"]
