"""Tests for the reference cache and certificate verification."""

import pytest

from conftest import encode_png

from card_forensics.authenticity import NO_REFERENCE_WARNING
from card_forensics.errors import InvalidInputError, ReferenceFetchError
from card_forensics.imaging import ImageStandardizer
from card_forensics.references import ReferenceCache, ReferenceRecord, verify_certificate
from card_forensics.types import Verdict


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class StubProvider:
    """Records lookups and serves fixed records."""

    def __init__(self, records=None, error=None):
        self.records = records or {}
        self.error = error
        self.calls = []

    def fetch(self, certificate_id):
        self.calls.append(certificate_id)
        if self.error is not None:
            raise self.error
        return self.records.get(certificate_id, ReferenceRecord(certificate_id))


@pytest.fixture()
def standardizer():
    return ImageStandardizer(width=64, height=48)


def test_cache_populates_on_miss():
    provider = StubProvider({"123": ReferenceRecord("123", grade="10", name="Charizard")})
    cache = ReferenceCache(provider)

    first = cache.get("123")
    second = cache.get("123")

    assert first.grade == "10"
    assert second is first
    assert provider.calls == ["123"]
    assert len(cache) == 1


def test_cache_entries_expire():
    clock = FakeClock()
    provider = StubProvider()
    cache = ReferenceCache(provider, ttl_seconds=60, clock=clock)

    cache.get("a")
    clock.now = 59.0
    cache.get("a")
    clock.now = 60.0
    cache.get("a")

    assert provider.calls == ["a", "a"]


def test_cache_evicts_oldest_entry():
    provider = StubProvider()
    cache = ReferenceCache(provider, max_entries=2)

    cache.get("a")
    cache.get("b")
    cache.get("c")
    assert len(cache) == 2

    cache.get("a")
    assert provider.calls == ["a", "b", "c", "a"]


def test_cache_invalidate():
    provider = StubProvider()
    cache = ReferenceCache(provider)
    cache.get("a")
    cache.get("b")

    cache.invalidate("a")
    assert len(cache) == 1
    cache.invalidate()
    assert len(cache) == 0


def test_provider_errors_are_wrapped_and_not_cached():
    provider = StubProvider(error=ConnectionError("registry unreachable"))
    cache = ReferenceCache(provider)

    with pytest.raises(ReferenceFetchError, match="registry unreachable"):
        cache.get("x")
    with pytest.raises(ReferenceFetchError):
        cache.get("x")

    assert provider.calls == ["x", "x"]
    assert len(cache) == 0


def test_provider_fetch_error_passes_through():
    error = ReferenceFetchError("certificate not found")
    cache = ReferenceCache(StubProvider(error=error))

    with pytest.raises(ReferenceFetchError) as excinfo:
        cache.get("x")
    assert excinfo.value is error


@pytest.mark.parametrize("kwargs", [{"ttl_seconds": 0}, {"max_entries": 0}])
def test_cache_bounds_are_validated(kwargs):
    with pytest.raises(InvalidInputError):
        ReferenceCache(StubProvider(), **kwargs)


def test_verify_certificate_skips_bad_references(noise_image, standardizer):
    good = encode_png(noise_image)
    record = ReferenceRecord("555", images=(good, b"junk", good))
    cache = ReferenceCache(StubProvider({"555": record}))

    check = verify_certificate(noise_image, "555", cache, standardizer=standardizer)

    assert check.certificate_id == "555"
    assert check.record is record
    assert len(check.skipped_references) == 1
    assert check.skipped_references[0].startswith("555#2:")
    assert [c.reference_id for c in check.verdict.comparisons] == ["555#1", "555#3"]
    assert check.verdict.score == 100
    assert check.verdict.verdict is Verdict.LIKELY_AUTHENTIC


def test_verify_certificate_uses_at_most_three_references(noise_image, standardizer):
    record = ReferenceRecord("9", images=(encode_png(noise_image),) * 5)
    cache = ReferenceCache(StubProvider({"9": record}))

    check = verify_certificate(noise_image, "9", cache, standardizer=standardizer)
    assert len(check.verdict.comparisons) == 3


def test_verify_certificate_standardizes_user_image(noise_image):
    standardizer = ImageStandardizer(width=80, height=80)
    record = ReferenceRecord("1", images=(encode_png(noise_image),))
    cache = ReferenceCache(StubProvider({"1": record}))

    check = verify_certificate(noise_image, "1", cache, standardizer=standardizer)
    assert check.verdict.score == 100


def test_verify_certificate_without_images(noise_image, standardizer):
    cache = ReferenceCache(StubProvider())
    check = verify_certificate(noise_image, "empty", cache, standardizer=standardizer)

    assert check.verdict.score == 50
    assert check.verdict.warnings == (NO_REFERENCE_WARNING,)
    assert check.skipped_references == []


def test_verify_certificate_provider_failure(noise_image, standardizer):
    cache = ReferenceCache(StubProvider(error=TimeoutError("timed out")))

    with pytest.raises(ReferenceFetchError):
        verify_certificate(noise_image, "1", cache, standardizer=standardizer)

    check = verify_certificate(
        noise_image, "1", cache, standardizer=standardizer, allow_missing=True
    )
    assert check.record is None
    assert check.verdict.score == 50
    assert check.verdict.verdict is Verdict.SUSPICIOUS
