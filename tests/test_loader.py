"""Tests for resolving module and connection names."""

import textwrap

import pytest

from switchboard.core.exceptions import PluginResolutionError
from switchboard.core.loader import PluginResolver
from switchboard.core.modules import SwitchboardModule

from tests.support import sample_connection
from tests.support.sample_module import SampleModule


MODULE_SOURCE = textwrap.dedent(
    """
    from switchboard import SwitchboardModule


    class DiskModule(SwitchboardModule):
        name = "disk"


    module = DiskModule()
    """
)


def write_plugin(root, path, name, source):
    directory = root / path
    directory.mkdir(parents=True, exist_ok=True)
    (directory / f"{name}.py").write_text(source)


def test_registered_class_is_instantiated(tmp_path):
    resolver = PluginResolver(tmp_path)
    resolver.register("test", SampleModule)

    module = resolver.resolve_module("test")

    assert isinstance(module, SampleModule)
    assert module.name == "test"
    assert resolver.resolve_module("test") is not module


def test_registered_instance_is_returned(tmp_path):
    instance = SampleModule()
    resolver = PluginResolver(tmp_path)
    resolver.register("test", instance)

    assert resolver.resolve_module("test") is instance


def test_registered_target_wins_over_path(tmp_path):
    resolver = PluginResolver(tmp_path)
    resolver.register("test", SampleModule)

    assert isinstance(resolver.resolve_module("test", path="nowhere"), SampleModule)


def test_module_from_file_path(tmp_path):
    write_plugin(tmp_path, "modules", "disk", MODULE_SOURCE)
    resolver = PluginResolver(tmp_path)

    module = resolver.resolve_module("disk", path="modules")
    assert module.name == "disk"


def test_module_from_package_path(tmp_path):
    package = tmp_path / "plugins" / "pkg-module"
    package.mkdir(parents=True)
    (package / "__init__.py").write_text(MODULE_SOURCE)

    module = PluginResolver(tmp_path).resolve_module("pkg-module", path="plugins")
    assert isinstance(module, SwitchboardModule)


def test_module_from_scope():
    resolver = PluginResolver()
    module = resolver.resolve_module("sample_module", scope="tests.support")

    assert isinstance(module, SampleModule)


def test_connection_factory_from_scope():
    factory = PluginResolver().resolve_connection_factory("sample_connection", scope="tests.support")
    assert factory is sample_connection.create_connection


def test_missing_file_path(tmp_path):
    with pytest.raises(PluginResolutionError):
        PluginResolver(tmp_path).resolve_module("ghost", path="modules")


def test_missing_import():
    with pytest.raises(PluginResolutionError):
        PluginResolver().resolve_module("ghost-module", scope="tests.support")


def test_file_without_module_attribute(tmp_path):
    write_plugin(tmp_path, "modules", "empty", "VALUE = 1\n")

    with pytest.raises(PluginResolutionError):
        PluginResolver(tmp_path).resolve_module("empty", path="modules")


def test_file_that_fails_to_import(tmp_path):
    write_plugin(tmp_path, "modules", "broken", "raise RuntimeError('bad plugin')\n")

    with pytest.raises(PluginResolutionError):
        PluginResolver(tmp_path).resolve_module("broken", path="modules")


def test_path_and_scope_are_exclusive(tmp_path):
    with pytest.raises(PluginResolutionError):
        PluginResolver(tmp_path).resolve("disk", path="modules", scope="acme")


def test_connection_without_factory(tmp_path):
    write_plugin(tmp_path, "connections", "nofactory", "VALUE = 1\n")

    with pytest.raises(PluginResolutionError):
        PluginResolver(tmp_path).resolve_connection_factory("nofactory", path="connections")
