"""
Fuzzy Vendor Index Module.

Approximate vendor-name search over the payment register. The engine only
relies on the VendorSearch protocol: a search(query) method returning
candidates scored in [0, 1], where 0 is a perfect match and 1 means no
similarity, filtered by a relevance threshold. FuzzyVendorIndex implements
it with rapidfuzz.

Author: Finance Automation Team
"""

from typing import Callable, List, NamedTuple, Optional, Protocol, Sequence, Union

from rapidfuzz import fuzz, process

from config import get_config
from invoice_recon.normalizers import VendorNormalizer
from invoice_recon.utils.exceptions import ConfigurationError
from invoice_recon.utils.logger import get_logger
from .models import PaymentRecord

# Initialize module logger
logger = get_logger(__name__)

DEFAULT_THRESHOLD = 0.4

Scorer = Callable[..., float]


class VendorCandidate(NamedTuple):
    """A register record and its vendor distance (0 best, 1 worst)."""
    record: PaymentRecord
    score: float


class VendorSearch(Protocol):
    """Anything that can rank register records by vendor similarity."""

    def search(self, query: str) -> List[VendorCandidate]:
        ...


def resolve_scorer(scorer: Union[str, Scorer, None]) -> Scorer:
    """
    Resolve a rapidfuzz scorer by name ("WRatio", "ratio", ...) or pass a callable through.

    Raises:
        ConfigurationError: If the name is not a rapidfuzz.fuzz scorer.
    """
    if scorer is None:
        return fuzz.WRatio
    if callable(scorer):
        return scorer
    resolved = getattr(fuzz, scorer, None)
    if resolved is None:
        raise ConfigurationError(
            f"Unknown rapidfuzz scorer: {scorer}",
            {"scorer": scorer}
        )
    return resolved


class FuzzyVendorIndex:
    """
    Searchable index over normalized register vendor names.

    Built once per reconciliation run. Similarities from the rapidfuzz
    scorer (0-100) are turned into distances: score = 1 - similarity/100.
    Results are ordered by score, ties in register order, so a run is
    reproducible for the same register order.

    Attributes:
        records: Indexed payment records in register order
        names: Normalized vendor name per record
        threshold: Largest distance still returned

    Example:
        >>> index = FuzzyVendorIndex(records)
        >>> for candidate in index.search("acme"):
        ...     print(candidate.record.id, candidate.score)
    """

    def __init__(
        self,
        records: Sequence[PaymentRecord],
        normalizer: Optional[VendorNormalizer] = None,
        threshold: Optional[float] = None,
        scorer: Union[str, Scorer, None] = None
    ) -> None:
        """
        Build the index.

        Args:
            records: Payment records to index.
            normalizer: Vendor normalizer shared with the query side.
            threshold: Relevance bound on the 0-1 distance.
            scorer: rapidfuzz scorer or its name in rapidfuzz.fuzz.
        """
        self.normalizer = normalizer or VendorNormalizer()
        self.threshold = float(
            threshold if threshold is not None
            else get_config("reconciliation.vendor_threshold", DEFAULT_THRESHOLD)
        )
        self.scorer = resolve_scorer(
            scorer if scorer is not None else get_config("reconciliation.scorer", "WRatio")
        )

        self.records = list(records)
        self.names = [self.normalizer.normalize(r.vendor_name) for r in self.records]

        logger.debug(
            f"FuzzyVendorIndex built over {len(self.records)} records "
            f"(threshold {self.threshold})"
        )

    def __len__(self) -> int:
        return len(self.records)

    def search(self, query: str) -> List[VendorCandidate]:
        """
        Find register records whose vendor resembles the query.

        Args:
            query: Normalized invoice vendor name.

        Returns:
            Candidates with score <= threshold, best first.
        """
        if not query or not self.records:
            return []

        matches = process.extract(
            query,
            self.names,
            scorer=self.scorer,
            processor=None,
            limit=None,
            score_cutoff=round((1 - self.threshold) * 100, 6),
        )

        # (choice, similarity, index); re-sort so ties follow register order
        ranked = sorted(matches, key=lambda m: (-m[1], m[2]))

        return [
            VendorCandidate(
                record=self.records[index],
                score=round(1 - similarity / 100, 6),
            )
            for _, similarity, index in ranked
        ]
