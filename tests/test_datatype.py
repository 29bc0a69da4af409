from __future__ import annotations

import copy
import threading

from vcardkit.datatype import VCardDataType
from vcardkit.version import VCardVersion


def test_get_well_known_ignores_case():
    assert VCardDataType.get("tExT") is VCardDataType.TEXT
    assert VCardDataType.get("CONTENT-ID") is VCardDataType.CONTENT_ID


def test_get_runtime_is_stable():
    test = VCardDataType.get("test")
    assert VCardDataType.get("tEsT") is test
    assert VCardDataType.get("TEST") is test


def test_find():
    assert VCardDataType.find("tExT") is VCardDataType.TEXT


def test_find_ignores_runtime_types():
    VCardDataType.get("test")
    assert VCardDataType.find("test") is None


def test_all():
    test = VCardDataType.get("test")
    all_types = VCardDataType.all()
    assert len(all_types) == 15
    assert test not in all_types
    for dt in (
        VCardDataType.BINARY,
        VCardDataType.BOOLEAN,
        VCardDataType.CONTENT_ID,
        VCardDataType.DATE,
        VCardDataType.DATE_TIME,
        VCardDataType.DATE_AND_OR_TIME,
        VCardDataType.FLOAT,
        VCardDataType.INTEGER,
        VCardDataType.LANGUAGE_TAG,
        VCardDataType.TEXT,
        VCardDataType.TIME,
        VCardDataType.TIMESTAMP,
        VCardDataType.URI,
        VCardDataType.URL,
        VCardDataType.UTC_OFFSET,
    ):
        assert dt in all_types


def test_supported_versions():
    assert VCardDataType.CONTENT_ID.supported_versions == (VCardVersion.V2_1,)
    assert VCardDataType.TEXT.supported_versions == tuple(VCardVersion)
    assert VCardDataType.get("test").supported_versions == tuple(VCardVersion)


def test_is_supported_by():
    assert VCardDataType.CONTENT_ID.is_supported_by(VCardVersion.V2_1)
    assert not VCardDataType.CONTENT_ID.is_supported_by(VCardVersion.V3_0)
    assert not VCardDataType.CONTENT_ID.is_supported_by(VCardVersion.V4_0)

    test = VCardDataType.get("test")
    for version in VCardVersion:
        assert VCardDataType.TEXT.is_supported_by(version)
        assert test.is_supported_by(version)


def test_copy_keeps_identity():
    assert copy.deepcopy(VCardDataType.URI) is VCardDataType.URI
    assert copy.copy(VCardDataType.get("test")) is VCardDataType.get("test")


def test_concurrent_get_returns_one_instance():
    found: list[VCardDataType] = []
    lock = threading.Lock()

    def worker(name: str) -> None:
        dt = VCardDataType.get(name)
        with lock:
            found.append(dt)

    names = ["x-concurrent", "X-CONCURRENT", "X-Concurrent"] * 10
    threads = [threading.Thread(target=worker, args=(n,)) for n in names]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(found) == len(names)
    assert all(dt is found[0] for dt in found)
    assert VCardDataType.find("x-concurrent") is None
