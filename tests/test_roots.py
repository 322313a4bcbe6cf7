from pathlib import Path

import pytest

from dust_env.config import EnvironmentConfig, HOME_PROPERTY, ROOT_PROPERTY
from dust_env.errors import RootNotFound
from dust_env.resources.locator import ResourceLoader
from dust_env.roots import RootLocator


@pytest.fixture
def empty_cwd(tmp_path: Path) -> Path:
    cwd = tmp_path / "nowhere" / "deep"
    cwd.mkdir(parents=True)
    return cwd


def locator_for(config, cwd, roots=()):
    return RootLocator(config, ResourceLoader(roots), cwd=cwd)


def test_root_from_property(empty_cwd):
    config = EnvironmentConfig(properties={ROOT_PROPERTY: "/opt/Dynamo"}, environ={"DUST_ROOT": "/other"})
    assert locator_for(config, empty_cwd).locate_root() == Path("/opt/Dynamo")


def test_root_from_environment_is_memoized(empty_cwd):
    environ = {"DUST_ROOT": "/env/Dynamo"}
    config = EnvironmentConfig(environ=environ)
    locator = locator_for(config, empty_cwd)

    assert locator.locate_root() == Path("/env/Dynamo")
    assert config.get(ROOT_PROPERTY) == "/env/Dynamo"

    environ.clear()
    assert locator.locate_root() == Path("/env/Dynamo")


def test_root_from_home_environment(empty_cwd):
    config = EnvironmentConfig(environ={"DUST_HOME": " /env/Dynamo/home "})

    root = locator_for(config, empty_cwd).locate_root()

    assert root == Path("/env/Dynamo/home/..")
    assert config.get(ROOT_PROPERTY) == "/env/Dynamo/home/.."
    assert config.get(HOME_PROPERTY) == " /env/Dynamo/home "


def test_root_from_home_property(empty_cwd):
    config = EnvironmentConfig(properties={HOME_PROPERTY: "/prop/home"}, environ={"DUST_HOME": "/env/home"})
    assert locator_for(config, empty_cwd).locate_root() == Path("/prop/home/..")


def test_root_env_wins_over_home(empty_cwd):
    config = EnvironmentConfig(environ={"DUST_ROOT": "/root-env", "DUST_HOME": "/home-env"})
    assert locator_for(config, empty_cwd).locate_root() == Path("/root-env")


def test_root_from_parent_walk(tmp_path: Path):
    (tmp_path / "Dynamo" / "home" / "localconfig").mkdir(parents=True)
    cwd = tmp_path / "project" / "module" / "src"
    cwd.mkdir(parents=True)
    config = EnvironmentConfig(environ={})

    root = locator_for(config, cwd).locate_root()

    assert root == tmp_path / "Dynamo"
    assert config.get(ROOT_PROPERTY) is None


def test_parent_walk_takes_nearest_ancestor(tmp_path: Path):
    (tmp_path / "Dynamo" / "home" / "localconfig").mkdir(parents=True)
    inner = tmp_path / "work"
    (inner / "Dynamo" / "home" / "localconfig").mkdir(parents=True)
    cwd = inner / "src"
    cwd.mkdir()

    assert locator_for(EnvironmentConfig(environ={}), cwd).locate_root() == inner / "Dynamo"


def test_root_from_marker_resource_archive(tmp_path: Path, empty_cwd, make_archive):
    install = tmp_path / "install"
    (install / "DAS" / "taglib" / "dspjspTaglib" / "1.0").mkdir(parents=True)
    lib = install / "DAS" / "lib"
    lib.mkdir(parents=True)
    archive = make_archive("classes.jar", {"atg/nucleus/Nucleus.class": b"\xca\xfe"})
    target = lib / "classes.jar"
    archive.rename(target)

    root = locator_for(EnvironmentConfig(environ={}), empty_cwd, [target]).locate_root()

    assert root == install.resolve()


def test_marker_resource_in_plain_directory_is_ignored(tmp_path: Path, empty_cwd):
    classes = tmp_path / "classes"
    (classes / "atg" / "nucleus").mkdir(parents=True)
    (classes / "atg" / "nucleus" / "Nucleus.class").write_bytes(b"\xca\xfe")
    (tmp_path / "DAS" / "taglib" / "dspjspTaglib" / "1.0").mkdir(parents=True)

    with pytest.raises(RootNotFound):
        locator_for(EnvironmentConfig(environ={}), empty_cwd, [classes]).locate_root()


def test_root_not_found(empty_cwd):
    with pytest.raises(RootNotFound) as exc_info:
        locator_for(EnvironmentConfig(environ={}), empty_cwd).locate_root()

    assert exc_info.value.details["tried"] == [
        "property", "root_env", "home", "parent_walk", "marker_resource"
    ]
