import pytest

from seqtagfinder.config import discover_bam_files


def _touch(path):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("stub")
    return path


def test_directory_lists_bams_sorted_and_skips_tagged(tmp_path):
    _touch(tmp_path / "b.bam")
    _touch(tmp_path / "a.BAM")
    _touch(tmp_path / "a.tagged.bam")
    _touch(tmp_path / "notes.txt")
    _touch(tmp_path / "sub" / "c.bam")

    found = discover_bam_files([tmp_path])
    assert [p.name for p in found] == ["a.BAM", "b.bam"]


def test_recursive_search(tmp_path):
    _touch(tmp_path / "a.bam")
    _touch(tmp_path / "sub" / "c.bam")

    found = discover_bam_files([tmp_path], recursive=True)
    assert sorted(p.name for p in found) == ["a.bam", "c.bam"]


def test_files_kept_in_order_without_duplicates(tmp_path):
    a = _touch(tmp_path / "a.bam")
    b = _touch(tmp_path / "b.tagged.bam")

    found = discover_bam_files([b, a, tmp_path / "a.bam"])
    assert found == [b, a]


def test_missing_path_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        discover_bam_files([tmp_path / "missing.bam"])


def test_empty_directory_returns_nothing(tmp_path):
    assert discover_bam_files([tmp_path]) == []
