import pytest

from pride import config
from pride.errors import PrideException
from pride.vcs import GitVcs, SvnVcs, Vcs, VcsManager


@pytest.fixture
def commands(monkeypatch):
    calls = []

    def _process_run(args, cwd=None, **kwargs):
        calls.append(([str(arg) for arg in args], cwd))
        return ""

    monkeypatch.setattr("pride.utils.process_run", _process_run)
    return calls


def test_get_vcs_resolves_known_types():
    manager = VcsManager()

    assert isinstance(manager.get_vcs("git", {}), GitVcs)
    assert isinstance(manager.get_vcs("svn", {}), SvnVcs)
    assert manager.types == ["git", "svn"]


def test_get_vcs_caches_instances():
    manager = VcsManager()

    assert manager.get_vcs("git", {}) is manager.get_vcs("git", {})


def test_get_vcs_unknown_type():
    with pytest.raises(PrideException, match="hg"):
        VcsManager().get_vcs("hg", {})


def test_register_custom_backend():
    class HgVcs(Vcs):
        type = "hg"

    manager = VcsManager()
    manager.register("hg", HgVcs)

    assert manager.get_vcs("hg", {}).type == "hg"


def test_git_checkout_and_update(tmp_path, commands):
    git = GitVcs(config.load(tmp_path / "missing.toml"))
    target = tmp_path / "app"

    git.checkout("https://example.com/app.git", target)
    git.update(target)

    assert commands == [
        (["git", "clone", "https://example.com/app.git", str(target)], None),
        (["git", "pull", "--ff-only"], target),
    ]


def test_svn_uses_configured_executable(tmp_path, commands):
    configuration = config.load(
        tmp_path / "missing.toml",
        overrides={"vcs": {"svn": {"executable": "/usr/local/bin/svn"}}},
    )
    svn = SvnVcs(configuration)

    svn.update(tmp_path)

    assert commands == [(["/usr/local/bin/svn", "update"], tmp_path)]
