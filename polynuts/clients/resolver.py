"""
Endpoint discovery for reads on the public data API.

Candidates are tried strictly one at a time, in listed order. The first
response carrying a known envelope wins. When every candidate fails, the
error from the final attempt is raised; when they all answer with unknown
shapes, the result is an empty list.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional

from ..exceptions import NetworkError, NormalizationMiss, UpstreamError
from ..utils.logger import get_logger
from .envelope import match_envelope
from .transport import Transport

logger = get_logger("resolver")


@dataclass(frozen=True)
class EndpointCandidate:
    """One plausible path for a read."""
    path: str
    label: str = ""


MARKET_LIST_CANDIDATES = (
    EndpointCandidate("/markets", "direct"),
    EndpointCandidate("/gamma/markets", "namespaced"),
    EndpointCandidate("/core/markets", "core"),
)


def market_detail_candidates(market_id: str) -> tuple[EndpointCandidate, EndpointCandidate]:
    """Direct-by-id path and its single core-prefixed alternate."""
    return (
        EndpointCandidate(f"/markets/{market_id}", "direct"),
        EndpointCandidate(f"/core/markets/{market_id}", "core"),
    )


class EndpointResolver:
    """Walks an ordered candidate list against one transport."""

    def __init__(self, transport: Transport, candidates: Iterable[EndpointCandidate]):
        self.transport = transport
        self.candidates = tuple(candidates)
        if not self.candidates:
            raise ValueError("EndpointResolver needs at least one candidate")

    async def resolve(
        self,
        params: Optional[dict[str, Any]] = None,
        *,
        timeout: Optional[float] = None,
    ) -> list:
        """
        Fetch a listing from the first candidate with a recognizable envelope.

        Args:
            params: Query parameters sent to every candidate
            timeout: Per-call timeout override

        Returns:
            The extracted list, or [] if no candidate matched a known shape

        Raises:
            UpstreamError, NetworkError: the last candidate's failure
        """
        last_index = len(self.candidates) - 1
        for index, candidate in enumerate(self.candidates):
            try:
                body = await self.transport.get(candidate.path, params=params, timeout=timeout)
            except (UpstreamError, NetworkError) as e:
                if index == last_index:
                    raise
                logger.info(
                    f"Candidate {candidate.path} failed, trying next: {e}",
                    extra={"candidate": candidate.label}
                )
                continue

            envelope = match_envelope(body)
            if envelope is not None:
                logger.debug(
                    f"Resolved {candidate.path} ({envelope.shape.value} envelope, {len(envelope.items)} items)",
                    extra={"candidate": candidate.label}
                )
                return envelope.items

            logger.info(
                f"Candidate {candidate.path} returned an unrecognized shape",
                extra={"candidate": candidate.label}
            )

        miss = NormalizationMiss([c.path for c in self.candidates])
        logger.warning(str(miss))
        return []


async def get_with_not_found_fallback(
    transport: Transport,
    primary: EndpointCandidate,
    alternate: EndpointCandidate,
    *,
    timeout: Optional[float] = None,
) -> Any:
    """GET ``primary``; retry once on ``alternate`` only when primary is a 404."""
    try:
        return await transport.get(primary.path, timeout=timeout)
    except UpstreamError as e:
        if e.status_code != 404:
            raise
        logger.info(f"{primary.path} not found, trying {alternate.path}")
    return await transport.get(alternate.path, timeout=timeout)
