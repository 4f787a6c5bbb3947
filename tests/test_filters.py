"""Tests for upload filters."""

import os

import pytest

from filesync.filters import normalize_extensions, qualifies, skip_reason


ALLOW = ["xls", "xlsx", "csv"]


class TestNormalizeExtensions:
    """Tests for normalize_extensions."""

    def test_lowercase_and_dots(self):
        assert normalize_extensions(["XLS", ".csv", "..Txt"]) == ["xls", "csv", "txt"]

    def test_dedupe(self):
        assert normalize_extensions(["xls", "XLS", ".xls"]) == ["xls"]

    def test_empty_means_none(self):
        assert normalize_extensions([]) is None
        assert normalize_extensions(["", " "]) is None
        assert normalize_extensions(None) is None


class TestSkipReason:
    """Tests for skip_reason and qualifies."""

    def test_allowed_extension(self, tmp_path):
        f = tmp_path / "report.xls"
        f.write_text("data")
        assert skip_reason(f, ALLOW) is None
        assert qualifies(f, ALLOW)

    def test_extension_case_insensitive(self, tmp_path):
        f = tmp_path / "Report.XLS"
        f.write_text("data")
        assert qualifies(f, ALLOW)

    def test_extension_not_allowed(self, tmp_path):
        f = tmp_path / "image.png"
        f.write_text("data")
        assert skip_reason(f, ALLOW) == "extension 'png' not allowed"

    def test_no_extension(self, tmp_path):
        f = tmp_path / "README"
        f.write_text("data")
        assert skip_reason(f, ALLOW) == "no extension"

    def test_directory_with_extension(self, tmp_path):
        d = tmp_path / "archive.xls"
        d.mkdir()
        assert skip_reason(d, ALLOW) == "not a regular file"

    def test_deleted_file(self, tmp_path):
        assert skip_reason(tmp_path / "gone.xls", ALLOW) == "not a regular file"

    def test_no_allow_list_accepts_any_extension(self, tmp_path):
        f = tmp_path / "image.png"
        f.write_text("data")
        assert qualifies(f, None)
        assert qualifies(f, [])

    def test_no_allow_list_still_requires_file(self, tmp_path):
        assert not qualifies(tmp_path, None)

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks not supported")
    def test_symlink_to_directory(self, tmp_path):
        target = tmp_path / "real"
        target.mkdir()
        link = tmp_path / "link.xls"
        link.symlink_to(target, target_is_directory=True)
        assert skip_reason(link, ALLOW) == "not a regular file"

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks not supported")
    def test_symlink_to_file(self, tmp_path):
        target = tmp_path / "real.xls"
        target.write_text("data")
        link = tmp_path / "link.xls"
        link.symlink_to(target)
        assert qualifies(link, ALLOW)
