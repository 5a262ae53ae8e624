"""
Tests for the directory backed file store.
"""
import pytest

from core.exceptions import RemoteConnectionError, RemoteStoreError
from transport.local import LocalFileStore


@pytest.fixture
def root(tmp_path):
    root = tmp_path / "remote"
    (root / "data" / "files" / "csv").mkdir(parents=True)
    (root / "data" / "files" / "csv" / "a.csv").write_text("ACTIVITY_ID\n1\n", encoding="utf-8")
    (root / "data" / "files" / "csv" / "a.csv.start").write_text("", encoding="utf-8")
    return root


def test_list_download_remove(root, tmp_path):
    local = tmp_path / "a.csv"
    with LocalFileStore(str(root)) as store:
        assert sorted(store.list("/data/files/csv")) == ["a.csv", "a.csv.start"]
        store.download("/data/files/csv/a.csv", str(local))
        store.remove("/data/files/csv/a.csv.start")
        assert store.list("/data/files/csv") == ["a.csv"]

    assert local.read_text(encoding="utf-8") == "ACTIVITY_ID\n1\n"


def test_upload_creates_directories(root, tmp_path):
    report = tmp_path / "report.txt"
    report.write_text("failed", encoding="utf-8")

    with LocalFileStore(str(root)) as store:
        store.upload(str(report), "/data/files/batch_processed/a.csv")

    assert (root / "data" / "files" / "batch_processed" / "a.csv").read_text(encoding="utf-8") == "failed"


def test_missing_root_fails_to_connect(tmp_path):
    with pytest.raises(RemoteConnectionError):
        LocalFileStore(str(tmp_path / "missing")).connect()


def test_operations_require_open_store(root):
    store = LocalFileStore(str(root))
    with pytest.raises(RemoteStoreError):
        store.list("/data/files/csv")


def test_missing_file_raises_store_error(root, tmp_path):
    with LocalFileStore(str(root)) as store:
        with pytest.raises(RemoteStoreError):
            store.download("/data/files/csv/nope.csv", str(tmp_path / "nope.csv"))
        with pytest.raises(RemoteStoreError):
            store.remove("/data/files/csv/nope.csv.start")


def test_paths_cannot_escape_root(root, tmp_path):
    with LocalFileStore(str(root)) as store:
        with pytest.raises(RemoteStoreError):
            store.download("../../etc/passwd", str(tmp_path / "x"))


def test_root_from_settings(settings, tmp_path):
    store = LocalFileStore(settings=settings)
    assert store.root == tmp_path / "remote"
