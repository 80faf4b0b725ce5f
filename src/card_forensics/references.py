"""Reference data lookup and certificate verification.

Reference records (images plus optional grade/name/year metadata) come from
a host-supplied provider keyed by certificate id. Lookups go through a
process-wide cache with a time-to-live and a size bound.
"""

import logging
import threading
import time
from collections import OrderedDict
from typing import Callable, List, NamedTuple, Optional, Protocol, Tuple

from card_forensics.authenticity import AuthenticityChecker
from card_forensics.constants import REFERENCE_CACHE_MAX_ENTRIES, REFERENCE_CACHE_TTL_SECONDS
from card_forensics.errors import ImageDecodeError, InvalidInputError, ReferenceFetchError
from card_forensics.imaging import ImageStandardizer, decode_image
from card_forensics.types import AuthenticityVerdict, PixelBuffer

logger = logging.getLogger(__name__)

__all__ = [
    'ReferenceRecord',
    'ReferenceProvider',
    'ReferenceCache',
    'CertificateCheck',
    'verify_certificate',
]


class ReferenceRecord(NamedTuple):
    """Reference images and metadata for one certificate."""

    certificate_id: str
    images: Tuple[bytes, ...] = ()  # Encoded reference images
    grade: Optional[str] = None
    name: Optional[str] = None
    year: Optional[str] = None


class ReferenceProvider(Protocol):
    """Source of reference records, e.g. a certification registry client."""

    def fetch(self, certificate_id: str) -> ReferenceRecord:
        """Return the record for a certificate; raise ReferenceFetchError on failure."""
        ...


class ReferenceCache:
    """
    Thread-safe populate-on-miss cache of reference records.

    Entries expire ``ttl_seconds`` after they were stored; when more than
    ``max_entries`` are held the oldest entry is evicted. Failed lookups
    are never cached.
    """

    def __init__(
        self,
        provider: ReferenceProvider,
        ttl_seconds: float = REFERENCE_CACHE_TTL_SECONDS,
        max_entries: int = REFERENCE_CACHE_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise InvalidInputError(f"ttl_seconds must be positive, got {ttl_seconds}")
        if max_entries < 1:
            raise InvalidInputError(f"max_entries must be at least 1, got {max_entries}")
        self.provider = provider
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[float, ReferenceRecord]]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _lookup(self, certificate_id: str) -> Optional[ReferenceRecord]:
        with self._lock:
            entry = self._entries.get(certificate_id)
            if entry is None:
                return None
            stored_at, record = entry
            if self._clock() - stored_at >= self.ttl_seconds:
                del self._entries[certificate_id]
                logger.debug(f"Reference cache entry expired: {certificate_id}")
                return None
            return record

    def _store(self, certificate_id: str, record: ReferenceRecord) -> None:
        with self._lock:
            self._entries[certificate_id] = (self._clock(), record)
            self._entries.move_to_end(certificate_id)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Evicted reference cache entry: {evicted}")

    def get(self, certificate_id: str) -> ReferenceRecord:
        """
        Return the record for a certificate, fetching it on a miss.

        Raises:
            ReferenceFetchError: If the provider fails
        """
        record = self._lookup(certificate_id)
        if record is not None:
            logger.debug(f"Reference cache hit: {certificate_id}")
            return record

        logger.info(f"Fetching reference data for certificate {certificate_id}")
        try:
            record = self.provider.fetch(certificate_id)
        except ReferenceFetchError:
            raise
        except Exception as e:
            raise ReferenceFetchError(
                f"Reference provider failed for certificate {certificate_id}: {e}"
            ) from e

        self._store(certificate_id, record)
        return record

    def invalidate(self, certificate_id: Optional[str] = None) -> None:
        """Drop one entry, or every entry when no id is given."""
        with self._lock:
            if certificate_id is None:
                self._entries.clear()
            else:
                self._entries.pop(certificate_id, None)


class CertificateCheck(NamedTuple):
    """Outcome of verifying a user image against a certificate's references."""

    certificate_id: str
    verdict: AuthenticityVerdict
    record: Optional[ReferenceRecord]
    skipped_references: List[str]  # Reasons for references that could not be decoded


def verify_certificate(
    user_image: PixelBuffer,
    certificate_id: str,
    cache: ReferenceCache,
    standardizer: Optional[ImageStandardizer] = None,
    checker: Optional[AuthenticityChecker] = None,
    allow_missing: bool = False,
) -> CertificateCheck:
    """
    Compare a user image against the reference images of a certificate.

    The user image and every reference are standardized onto the same
    canvas first. References that fail to decode are skipped and reported.
    A record without usable references yields the no-reference verdict.

    Args:
        user_image: Decoded user image
        certificate_id: Certificate to look up
        cache: Reference cache wrapping the provider
        standardizer: Canvas policy (defaults to ImageStandardizer())
        checker: Aggregation policy (defaults to AuthenticityChecker())
        allow_missing: Treat a provider failure as an empty record

    Returns:
        CertificateCheck with the verdict and lookup details

    Raises:
        ReferenceFetchError: If the provider fails and allow_missing is False
    """
    standardizer = standardizer or ImageStandardizer()
    checker = checker or AuthenticityChecker()

    try:
        record = cache.get(certificate_id)
    except ReferenceFetchError as e:
        if not allow_missing:
            raise
        logger.warning(f"Continuing without references for {certificate_id}: {e}")
        record = None

    references: List[PixelBuffer] = []
    reference_ids: List[str] = []
    skipped: List[str] = []
    encoded = record.images if record is not None else ()
    for index, data in enumerate(encoded, start=1):
        if len(references) >= checker.aggregation.max_references:
            break
        reference_id = f"{certificate_id}#{index}"
        try:
            references.append(standardizer.load(data))
            reference_ids.append(reference_id)
        except ImageDecodeError as e:
            logger.warning(f"Skipping reference {reference_id}: {e}")
            skipped.append(f"{reference_id}: {e}")

    verdict = checker.compare(standardizer.standardize(user_image), references, reference_ids)

    return CertificateCheck(
        certificate_id=certificate_id,
        verdict=verdict,
        record=record,
        skipped_references=skipped,
    )
