"""Tests for cache keys and the file-based cache store."""
import tarfile

from cementci.cache import CacheKeyDeriver, CacheStore


def test_derive_key_is_deterministic(module):
    """Same revision and qualifier always give the same key."""
    a = CacheKeyDeriver("3f2a9c1d", module)
    b = CacheKeyDeriver("3f2a9c1d", module)

    assert a.derive_key() == a.derive_key() == b.derive_key()
    assert a.derive_key("nuget") == b.derive_key("nuget")


def test_different_revisions_give_different_keys(module):
    revisions = ["a", "b", "ab", "ba", "0" * 40, "0" * 39 + "1", "refs/heads/x", "", " ", "ä"]
    keys = {CacheKeyDeriver(r, module).derive_key() for r in revisions}
    assert len(keys) == len(revisions)


def test_qualifier_selects_isolated_channel(module):
    keys = CacheKeyDeriver("3f2a9c1d", module)

    assert keys.derive_key() != keys.derive_key("nuget")
    assert keys.derive_key().startswith("tests-default-")
    assert keys.derive_key("nuget").startswith("tests-nuget-")


def test_qualifier_cannot_collide_with_default_channel(module):
    """A qualifier literally named 'default' still hashes differently."""
    keys = CacheKeyDeriver("3f2a9c1d", module)
    assert keys.derive_key("default") != keys.derive_key()


def test_cache_paths_are_fixed(tmp_path, module):
    keys = CacheKeyDeriver("3f2a9c1d", module, home=tmp_path / "home")

    assert keys.cache_paths() == [
        f"{module.as_posix()}/*/bin",
        f"{module.as_posix()}/*/obj",
        (tmp_path / "home" / ".nuget" / "packages").as_posix(),
    ]
    assert CacheKeyDeriver("other", module, home=tmp_path / "home").cache_paths() == keys.cache_paths()


def test_save_then_restore_brings_files_back(store, make_keys, module, tmp_path):
    keys = make_keys()
    dll = module / "Sample" / "bin" / "Release" / "Sample.dll"
    dll.parent.mkdir(parents=True)
    dll.write_bytes(b"MZ")
    nupkg = tmp_path / "home" / ".nuget" / "packages" / "dep" / "1.0.0" / "dep.nupkg"
    nupkg.parent.mkdir(parents=True)
    nupkg.write_text("pkg")

    saved = store.save(keys.cache_paths(), keys.derive_key())
    assert saved.saved
    assert saved.files == 2

    dll.unlink()
    nupkg.unlink()

    hit = store.restore(keys.cache_paths(), keys.derive_key())
    assert hit.hit
    assert dll.read_bytes() == b"MZ"
    assert nupkg.read_text() == "pkg"


def test_restore_miss_is_not_an_error(store, make_keys):
    keys = make_keys()
    hit = store.restore(keys.cache_paths(), keys.derive_key())

    assert not hit.hit
    assert hit.reason == "cache miss"


def test_restore_other_channel_misses(store, make_keys, module):
    (module / "Sample" / "obj").mkdir(parents=True)
    (module / "Sample" / "obj" / "project.assets.json").write_text("{}")
    keys = make_keys()
    store.save(keys.cache_paths(), keys.derive_key())

    assert not store.restore(keys.cache_paths(), keys.derive_key("nuget")).hit


def test_entries_are_write_once(store, make_keys, module):
    f = module / "Sample" / "bin" / "a.txt"
    f.parent.mkdir(parents=True)
    f.write_text("first")
    keys = make_keys()
    assert store.save(keys.cache_paths(), keys.derive_key()).saved

    f.write_text("second")
    again = store.save(keys.cache_paths(), keys.derive_key())
    assert not again.saved

    store.restore(keys.cache_paths(), keys.derive_key())
    assert f.read_text() == "first"


def test_save_with_nothing_to_cache(store, make_keys):
    keys = make_keys()
    saved = store.save(keys.cache_paths(), keys.derive_key())

    assert saved.saved
    assert saved.files == 0
    assert store.artifact_path(keys.derive_key()).exists()


def test_corrupt_archive_is_a_miss(store, make_keys, module):
    (module / "Sample" / "bin").mkdir(parents=True)
    (module / "Sample" / "bin" / "a.txt").write_text("x")
    keys = make_keys()
    key = keys.derive_key()
    store.save(keys.cache_paths(), key)
    store.artifact_path(key).write_bytes(b"not a tarball")

    hit = store.restore(keys.cache_paths(), key)
    assert not hit.hit
    assert "restore failed" in hit.reason


def test_archive_holds_relative_names(store, make_keys, module):
    (module / "Sample" / "bin").mkdir(parents=True)
    (module / "Sample" / "bin" / "a.txt").write_text("x")
    keys = make_keys()
    store.save(keys.cache_paths(), keys.derive_key())

    with tarfile.open(store.artifact_path(keys.derive_key()), "r:gz") as tar:
        names = tar.getnames()
    assert len(names) == 1
    assert not names[0].startswith("/")
    assert names[0].endswith("Sample/bin/a.txt")
