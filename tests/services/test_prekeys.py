"""Tests for prekey bundle storage and one-time key consumption."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from whisper_relay.core.errors import KeyBundleNotFoundError, OneTimeKeysExhaustedError
from whisper_relay.services.prekeys import KeyBundle, OneTimePreKey, PreKeyStore


def _bundle(count: int) -> KeyBundle:
    keys = [OneTimePreKey(key_id=i, public_key=f"pub-{i}") for i in range(count)]
    return KeyBundle.build("identity", "signed", keys)


def test_fetch_unknown_user_is_not_found() -> None:
    store = PreKeyStore()
    with pytest.raises(KeyBundleNotFoundError):
        store.fetch_and_consume_one("ghost")
    assert store.remaining("ghost") is None


def test_each_key_issued_once_then_exhausted() -> None:
    store = PreKeyStore()
    store.upload("bob", _bundle(5))

    issued = [store.fetch_and_consume_one("bob") for _ in range(5)]

    ids = [consumed.one_time_key.key_id for consumed in issued]
    assert sorted(ids) == [0, 1, 2, 3, 4]
    assert all(c.identity_key == "identity" and c.signed_pre_key == "signed" for c in issued)
    with pytest.raises(OneTimeKeysExhaustedError):
        store.fetch_and_consume_one("bob")
    assert store.remaining("bob") == 0


def test_upload_replaces_bundle_wholesale() -> None:
    store = PreKeyStore()
    store.upload("bob", _bundle(3))
    store.fetch_and_consume_one("bob")

    replacement = KeyBundle.build("identity-2", "signed-2", [OneTimePreKey(key_id="x", public_key="X")])
    store.upload("bob", replacement)

    consumed = store.fetch_and_consume_one("bob")
    assert consumed.identity_key == "identity-2"
    assert consumed.one_time_key == OneTimePreKey(key_id="x", public_key="X")
    assert store.count() == 1


def test_duplicate_ids_collapse_last_wins() -> None:
    bundle = KeyBundle.build(
        "identity",
        "signed",
        [OneTimePreKey(key_id=1, public_key="A"), OneTimePreKey(key_id=1, public_key="B")],
    )
    assert bundle.one_time_pre_keys == {1: "B"}


def test_empty_pool_is_exhausted_not_missing() -> None:
    store = PreKeyStore()
    store.upload("bob", _bundle(0))
    with pytest.raises(OneTimeKeysExhaustedError):
        store.fetch_and_consume_one("bob")


def test_concurrent_fetches_never_share_a_key() -> None:
    store = PreKeyStore()
    store.upload("bob", _bundle(200))

    def fetch() -> object:
        try:
            return store.fetch_and_consume_one("bob").one_time_key.key_id
        except OneTimeKeysExhaustedError:
            return None

    with ThreadPoolExecutor(max_workers=16) as pool:
        results = list(pool.map(lambda _: fetch(), range(250)))

    issued = [key_id for key_id in results if key_id is not None]
    assert len(issued) == 200
    assert len(set(issued)) == 200
    assert results.count(None) == 50
