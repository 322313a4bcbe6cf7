from importlib.metadata import entry_points
from pathlib import Path


def plugin_args() -> list[str]:
    """Load the plugin explicitly unless the installed entry point already does."""
    if any(ep.value == "dust_env.pytest_plugin" for ep in entry_points(group="pytest11")):
        return []
    return ["-p", "dust_env.pytest_plugin"]


def test_dust_environment_fixture(pytester):
    """Environments launched through the fixture are torn down after each test"""
    pytester.makepyfile(
        """
        from pathlib import Path

        from dust_env.config import EnvironmentConfig

        CONTAINERS = []
        WORK_DIRS = []


        class Container:
            def __init__(self):
                self.running = set()
                self.stopped = []

            def start(self, configpath, entry_point):
                handle = len(self.running) + 1
                self.running.add(handle)
                return handle

            def stop(self, handle):
                self.running.discard(handle)
                self.stopped.append(handle)

            def is_running(self, handle):
                return handle in self.running


        def test_launch(dust_environment, tmp_path):
            root = tmp_path / "Dynamo"
            (root / "M1" / "config").mkdir(parents=True)
            container = Container()
            config = EnvironmentConfig(properties={"dust.root": str(root)}, environ={})

            env = dust_environment(container, ["M1"], "/test/Init", config=config)

            assert env.configpath.as_list()[0] == str(root / "M1" / "config")
            assert env.work_dir.root.is_dir()
            CONTAINERS.append(container)
            WORK_DIRS.append(env.work_dir.root)


        def test_previous_environment_was_torn_down():
            assert CONTAINERS[0].stopped == [1]
            assert not WORK_DIRS[0].exists()


        def test_schedule_on_session_finalizer(dust_finalizer):
            target = Path("scheduled")
            target.mkdir()
            dust_finalizer.schedule(target.absolute())
            Path("scheduled.txt").write_text(str(target.absolute()))
        """
    )

    result = pytester.runpytest(*plugin_args())

    result.assert_outcomes(passed=3)
    scheduled = Path((pytester.path / "scheduled.txt").read_text())
    assert not scheduled.exists()


def test_dust_environment_shares_extracted_configuration(pytester):
    """Archive-backed test configuration is unpacked once per session"""
    pytester.makeconftest(
        """
        import zipfile

        import pytest

        from dust_env.config import EnvironmentConfig
        from dust_env.resources.extractor import ArchiveResourceExtractor
        from dust_env.resources.locator import ResourceLoader


        @pytest.fixture(scope="session")
        def dust_config(tmp_path_factory):
            root = tmp_path_factory.mktemp("install") / "Dynamo"
            (root / "M1" / "config").mkdir(parents=True)
            return EnvironmentConfig(properties={"dust.root": str(root)}, environ={})


        @pytest.fixture(scope="session")
        def dust_loader(tmp_path_factory):
            archive = tmp_path_factory.mktemp("jars") / "tests.jar"
            with zipfile.ZipFile(archive, "w") as zf:
                zf.writestr("data/config/Service.properties", "enabled=true\\n")
            return ResourceLoader([archive])


        @pytest.fixture(scope="session")
        def extract_root(tmp_path_factory):
            return tmp_path_factory.mktemp("extracted")


        @pytest.fixture(scope="session")
        def dust_extractor(dust_finalizer, extract_root):
            return ArchiveResourceExtractor(dust_finalizer, temp_root=extract_root)
        """
    )
    pytester.makepyfile(
        """
        from pathlib import Path

        ENTRIES = []


        class Container:
            def __init__(self):
                self.running = set()

            def start(self, configpath, entry_point):
                self.running.add(1)
                return 1

            def stop(self, handle):
                self.running.discard(handle)

            def is_running(self, handle):
                return handle in self.running


        def test_two_launches(dust_environment, extract_root):
            first = dust_environment(Container(), ["M1"], "/test/Init")
            second = dust_environment(Container(), ["M1"], "/test/Init")

            entry = first.configpath.as_list()[-1]
            assert second.configpath.as_list()[-1] == entry
            assert Path(entry).parts[-2:] == ("data", "config")
            assert (Path(entry) / "Service.properties").read_text() == "enabled=true\\n"
            ENTRIES.append(entry)


        def test_later_launch(dust_environment, extract_root):
            env = dust_environment(Container(), ["M1"], "/test/Init")

            assert env.configpath.as_list()[-1] == ENTRIES[0]
            assert len(list(extract_root.iterdir())) == 1
        """
    )

    result = pytester.runpytest(*plugin_args())

    result.assert_outcomes(passed=2)
