import pytest

from app.services.storage import LocalImageStore


def test_unique_name_is_timestamp_prefixed():
    name = LocalImageStore.unique_name("spot.jpg")
    stamp, _, rest = name.partition("-")
    assert stamp.isdigit() and len(stamp) >= 13
    assert rest == "spot.jpg"


@pytest.mark.parametrize(
    "original, expected",
    [
        ("../../etc/passwd", "passwd"),
        ("C:\\Users\\me\\car.png", "car.png"),
        ("", "image"),
        (None, "image"),
    ],
)
def test_unique_name_keeps_only_basename(original, expected):
    assert LocalImageStore.unique_name(original).split("-", 1)[1] == expected


def test_save_writes_under_base_dir(tmp_path):
    store = LocalImageStore(str(tmp_path / "up"), url_prefix="/uploads/")

    url = store.save(original_name="a.jpg", data=b"123")

    assert url.startswith("/uploads/")
    path = store.resolve_path(url)
    assert path.parent == tmp_path / "up"
    assert path.read_bytes() == b"123"


def test_resolve_path_rejects_foreign_urls(tmp_path):
    store = LocalImageStore(str(tmp_path))
    with pytest.raises(ValueError):
        store.resolve_path("/static/a.jpg")


def test_delete_removes_file_and_ignores_missing(tmp_path):
    store = LocalImageStore(str(tmp_path))
    url = store.save(original_name="a.jpg", data=b"123")

    store.delete(url)
    store.delete(url)

    assert list(tmp_path.iterdir()) == []
