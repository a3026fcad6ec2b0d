import pytest


@pytest.fixture
def tree(tmp_path):
    """Small project: text, binary, nested and filtered files."""
    (tmp_path / "a.txt").write_text("hello", encoding="utf-8")
    (tmp_path / "b.bin").write_bytes(b"\x00\x01\x02")
    (tmp_path / "notes.md").write_text("# notes", encoding="utf-8")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "c.txt").write_text("nested\n", encoding="utf-8")
    return tmp_path


@pytest.fixture
def clipboard(monkeypatch):
    """Capture pyperclip writes and skip the hold delay."""
    import listclip.output as output

    copied = []
    monkeypatch.setattr(output.pyperclip, "copy", copied.append)
    monkeypatch.setattr(output.time, "sleep", lambda _s: None)
    return copied


@pytest.fixture(autouse=True)
def home(tmp_path_factory, monkeypatch):
    """Keep the user's global git excludes out of every walk."""
    path = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(path))
    monkeypatch.setenv("USERPROFILE", str(path))
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    return path
