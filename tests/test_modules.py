import pytest

from conftest import make_module
from pride import modules
from pride.errors import InvalidModuleError, NotFoundError, PrideException
from pride.modules import Module
from pride.vcs import GitVcs, SvnVcs


@pytest.fixture
def resolver(vcs_manager):
    return lambda vcs_type: vcs_manager.get_vcs(vcs_type, {})


@pytest.mark.parametrize("line", ["#comment", "", "   ", "  # indented comment"])
def test_parse_line_ignores_blank_and_comment_lines(line):
    assert modules.parse_line(line) is None


@pytest.mark.parametrize(
    "line, expected",
    [
        ("git|app", ("git", "app")),
        ("svn|lib", ("svn", "lib")),
        ("  svn|lib  ", ("svn", "lib")),
        ("app", ("git", "app")),
        ("|app", ("git", "app")),
        ("a|b|app", ("a|b", "app")),
    ],
)
def test_parse_line(line, expected):
    assert modules.parse_line(line) == expected


def test_load_ignores_comments_and_blank_lines(tmp_path, resolver):
    make_module(tmp_path, "app")
    modules_file = tmp_path / "modules"
    modules_file.write_text("#comment\n\n   \ngit|app\n")

    loaded = modules.load(tmp_path, modules_file, resolver)

    assert list(loaded) == ["app"]
    assert isinstance(loaded["app"].vcs, GitVcs)


def test_load_defaults_legacy_lines_to_git(tmp_path, resolver):
    make_module(tmp_path, "legacy")
    modules_file = tmp_path / "modules"
    modules_file.write_text("legacy\n")

    loaded = modules.load(tmp_path, modules_file, resolver)

    assert loaded["legacy"].vcs.type == "git"


def test_load_is_sorted_by_name(tmp_path, resolver):
    for name in ["zeta", "alpha", "mid"]:
        make_module(tmp_path, name)
    modules_file = tmp_path / "modules"
    modules_file.write_text("git|zeta\nsvn|alpha\nmid\n")

    loaded = modules.load(tmp_path, modules_file, resolver)

    assert list(loaded) == ["alpha", "mid", "zeta"]
    assert [m.name for m in loaded.values()] == ["alpha", "mid", "zeta"]


def test_load_duplicate_name_last_entry_wins(tmp_path, resolver):
    make_module(tmp_path, "app")
    modules_file = tmp_path / "modules"
    modules_file.write_text("git|app\nsvn|app\n")

    loaded = modules.load(tmp_path, modules_file, resolver)

    assert len(loaded) == 1
    assert isinstance(loaded["app"].vcs, SvnVcs)


def test_load_missing_modules_file(tmp_path, resolver):
    with pytest.raises(NotFoundError):
        modules.load(tmp_path, tmp_path / "modules", resolver)


def test_load_missing_module_directory(tmp_path, resolver):
    modules_file = tmp_path / "modules"
    modules_file.write_text("git|ghost\n")

    with pytest.raises(InvalidModuleError, match="ghost"):
        modules.load(tmp_path, modules_file, resolver)


def test_load_module_directory_without_build_file(tmp_path, resolver):
    (tmp_path / "nobuild").mkdir()
    modules_file = tmp_path / "modules"
    modules_file.write_text("git|nobuild\n")

    with pytest.raises(InvalidModuleError, match="No module found"):
        modules.load(tmp_path, modules_file, resolver)


def test_load_unknown_vcs_type(tmp_path, resolver):
    make_module(tmp_path, "app")
    modules_file = tmp_path / "modules"
    modules_file.write_text("hg|app\n")

    with pytest.raises(PrideException, match="hg"):
        modules.load(tmp_path, modules_file, resolver)


def test_save_writes_typed_lines_in_name_order(tmp_path, vcs_manager):
    modules_file = tmp_path / "modules"
    git = vcs_manager.get_vcs("git", {})
    svn = vcs_manager.get_vcs("svn", {})

    modules.save(modules_file, [Module("zeta", git), Module("alpha", svn)])

    assert modules_file.read_text() == "svn|alpha\ngit|zeta\n"


def test_save_then_load_normalizes_legacy_lines(tmp_path, resolver):
    for name in ["app", "lib"]:
        make_module(tmp_path, name)
    modules_file = tmp_path / "modules"
    modules_file.write_text("# my modules\nlib\n\nsvn|app\n")

    loaded = modules.load(tmp_path, modules_file, resolver)
    modules.save(modules_file, loaded.values())
    reloaded = modules.load(tmp_path, modules_file, resolver)

    assert modules_file.read_text() == "svn|app\ngit|lib\n"
    assert {name: m.vcs.type for name, m in reloaded.items()} == {
        name: m.vcs.type for name, m in loaded.items()
    }


def test_is_valid_module_directory(tmp_path):
    assert modules.is_valid_module_directory(make_module(tmp_path, "app"))
    assert not modules.is_valid_module_directory(make_module(tmp_path, ".hidden"))
    (tmp_path / "empty").mkdir()
    assert not modules.is_valid_module_directory(tmp_path / "empty")
    assert not modules.is_valid_module_directory(tmp_path / "missing")


def test_is_valid_module_directory_with_dangling_build_link(tmp_path):
    module_dir = tmp_path / "linked"
    module_dir.mkdir()
    (module_dir / "build.gradle").symlink_to(tmp_path / "gone.gradle")

    assert modules.is_valid_module_directory(module_dir)
