from __future__ import annotations

from pathlib import Path

from autostrm.models.entities import DuplicateHandling, MediaItem, OrganizerConfig
from autostrm.services.duplicates import resolve_duplicate
from autostrm.services.filesystem import LocalFilesystem
from autostrm.services.organizer import organize_batch


def _config(tmp_path: Path, **overrides) -> OrganizerConfig:
    opts = {"base_path": tmp_path / "strm", "enable_parent_folders": False}
    opts.update(overrides)
    return OrganizerConfig(**opts)


def _item(name: str = "Amazing Film (2003) 1080p.mkv", url: str = "http://media.example/1") -> MediaItem:
    return MediaItem(url=url, name=name)


def _strm_files(root: Path) -> list[Path]:
    return sorted(root.rglob("*.strm"))


def test_resolve_duplicate_policies(tmp_path):
    (tmp_path / "a.strm").write_text("x", encoding="utf-8")
    assert resolve_duplicate(tmp_path, "new.strm", DuplicateHandling.SKIP) == "new.strm"
    assert resolve_duplicate(tmp_path, "a.strm", DuplicateHandling.OVERWRITE) == "a.strm"
    assert resolve_duplicate(tmp_path, "a.strm", DuplicateHandling.SKIP) is None
    (tmp_path / "a_1.strm").write_text("x", encoding="utf-8")
    assert resolve_duplicate(tmp_path, "a.strm", DuplicateHandling.CREATE_VERSIONS) == "a_2.strm"


def test_batch_writes_url_into_strm_file(tmp_path):
    out = organize_batch([_item()], _config(tmp_path))

    target = tmp_path / "strm" / "Movies" / "A-C" / "Amazing Film (2003).strm"
    assert out["ok"] is True
    assert out["created"] == 1
    assert out["items"][0]["media_type"] == "movie"
    assert target.read_text(encoding="utf-8") == "http://media.example/1"


def test_skip_policy_writes_once(tmp_path):
    config = _config(tmp_path, duplicate_handling=DuplicateHandling.SKIP)
    organize_batch([_item(url="http://first")], config)
    out = organize_batch([_item(url="http://second")], config)

    files = _strm_files(tmp_path)
    assert out["skipped"] == 1
    assert len(files) == 1
    assert files[0].read_text(encoding="utf-8") == "http://first"


def test_create_versions_policy_numbers_copies(tmp_path):
    config = _config(tmp_path, duplicate_handling=DuplicateHandling.CREATE_VERSIONS)
    for _ in range(3):
        organize_batch([_item()], config)

    names = [p.name for p in _strm_files(tmp_path)]
    assert names == [
        "Amazing Film (2003).strm",
        "Amazing Film (2003)_1.strm",
        "Amazing Film (2003)_2.strm",
    ]


def test_overwrite_policy_keeps_latest_url(tmp_path):
    config = _config(tmp_path, duplicate_handling=DuplicateHandling.OVERWRITE)
    organize_batch([_item(url="http://first")], config)
    out = organize_batch([_item(url="http://second")], config)

    files = _strm_files(tmp_path)
    assert out["overwritten"] == 1
    assert len(files) == 1
    assert files[0].read_text(encoding="utf-8") == "http://second"


def test_path_escape_is_fatal_for_item_only(tmp_path):
    config = _config(tmp_path)
    out = organize_batch([_item(name="../../etc/evil.mkv"), _item(name="Delta Force (1986).mkv")], config)

    assert out["ok"] is False
    assert out["failed"] == 1
    assert out["created"] == 1
    assert out["items"][0]["status"] == "failed"
    assert "traversal" in out["items"][0]["error"]
    assert [p.name for p in _strm_files(tmp_path)] == ["Delta Force (1986).strm"]
    assert not (tmp_path / "etc").exists()


def test_write_failure_does_not_abort_batch(tmp_path):
    class FlakyFilesystem(LocalFilesystem):
        def write_text(self, path, content):
            if "Broken" in Path(path).name:
                raise OSError("disk full")
            super().write_text(path, content)

    out = organize_batch(
        [_item(name="Broken Arrow (1996).mkv"), _item(name="Alpha Dog (2006).mkv")],
        _config(tmp_path),
        fs=FlakyFilesystem(),
    )

    assert out["failed"] == 1
    assert out["created"] == 1
    assert out["items"][0]["error"] == "disk full"
    assert (tmp_path / "strm" / "Movies" / "A-C" / "Alpha Dog (2006).strm").exists()


def test_empty_url_is_reported_as_failure(tmp_path):
    out = organize_batch([_item(url="  ")], _config(tmp_path))
    assert out["failed"] == 1
    assert _strm_files(tmp_path) == []


def test_later_items_see_earlier_writes(tmp_path):
    config = _config(tmp_path, max_entries_per_directory=1)
    out = organize_batch([_item(name="Alpha (2001).mkv"), _item(name="Bravo (2002).mkv")], config)

    first, second = (Path(row["path"]) for row in out["items"])
    assert first.parent.name == "A-C"
    assert second.parent.name.startswith("movie_")
    assert second.parent.parent.name == "A-C"


def test_series_items_grouped_under_one_folder(tmp_path):
    config = _config(tmp_path)
    organize_batch([_item(name="the.office.S01E01.mkv"), _item(name="The Office S01E02.mkv")], config)

    series = [p.name for p in (tmp_path / "strm" / "TV Shows").iterdir()]
    assert series == ["The Office"]
    assert len(_strm_files(tmp_path / "strm" / "TV Shows" / "The Office" / "Season 01")) == 2


def test_split_threshold_tracks_writes_through_symlinked_base(tmp_path):
    real = tmp_path / "real"
    real.mkdir()
    link = tmp_path / "link"
    link.symlink_to(real, target_is_directory=True)

    config = OrganizerConfig(base_path=link, enable_parent_folders=False, max_entries_per_directory=1)
    out = organize_batch([_item(name="Alpha (2001).mkv"), _item(name="Bravo (2002).mkv")], config)

    parents = [Path(row["path"]).parent.name for row in out["items"]]
    assert parents[0] == "A-C"
    assert parents[1].startswith("movie_")


def test_split_threshold_tracks_writes_with_relative_base(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    config = OrganizerConfig(base_path=Path("strm"), enable_parent_folders=False, max_entries_per_directory=1)
    out = organize_batch([_item(name="Alpha (2001).mkv"), _item(name="Bravo (2002).mkv")], config)

    parents = [Path(row["path"]).parent.name for row in out["items"]]
    assert parents[0] == "A-C"
    assert parents[1].startswith("movie_")
    assert len(_strm_files(tmp_path / "strm")) == 2
