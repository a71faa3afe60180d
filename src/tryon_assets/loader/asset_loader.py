"""
Resilient asset loader.

Resolves an ordered chain of asset candidates to something displayable:

    primary URL -> mirror URLs (in order) -> procedural placeholder

Candidates are tried strictly one at a time. For each mesh candidate the
loader fetches the payload (under a RetryPolicy), validates it and hands it
to the renderer. Any failure marks the candidate and moves on to the next
one. The chain always ends in a procedural candidate, so resolve() never
raises.
"""

import asyncio
import time
from typing import Optional

import structlog

from tryon_assets.config import Settings
from tryon_assets.exceptions import AssetLayerError, CapabilityError, error_kind_of
from tryon_assets.loader.cache import AssetCache
from tryon_assets.loader.fetcher import AssetFetcher
from tryon_assets.loader.placeholder import build_placeholder
from tryon_assets.loader.renderer import AssetRenderer, HeadlessRenderer
from tryon_assets.loader.validation import validate_payload
from tryon_assets.models.asset_models import AssetCandidate, CandidateFailure, LoadedAsset
from tryon_assets.models.enums import AssetFormat, ErrorKind, PlaceholderVariant
from tryon_assets.models.task_models import AssetBundle
from tryon_assets.retry.policy import RetryPolicy
from tryon_assets.telemetry.events import COMPONENT_FETCH, COMPONENT_LOADER
from tryon_assets.telemetry.sinks import TelemetrySink, record_event

logger = structlog.get_logger(__name__)

PRELOAD_CHUNK_SIZE = 3


def build_candidate_chain(
    bundle: AssetBundle,
    placeholder: PlaceholderVariant = PlaceholderVariant.AVATAR,
) -> list[AssetCandidate]:
    """Primary URL, then mirrors in order (deduplicated), then a procedural entry."""
    chain = [AssetCandidate.glb(reference) for reference in bundle.references()]
    chain.append(AssetCandidate.procedural(placeholder))
    return chain


def reset_candidates(candidates: list[AssetCandidate]) -> None:
    """Clear attempt marks so the next resolve() starts from the top (manual reload)."""
    for candidate in candidates:
        candidate.attempted = False
        candidate.failed = False
        candidate.last_error_kind = None


class ResilientAssetLoader:
    """
    Turns a candidate chain into a LoadedAsset.

    Attributes:
        fetcher: Downloads payloads
        renderer: Capability check and rendering
        fetch_policy: RetryPolicy wrapping each download
        cache: Optional cache of validated payloads
    """

    def __init__(
        self,
        fetcher: AssetFetcher,
        renderer: AssetRenderer | None = None,
        fetch_policy: RetryPolicy | None = None,
        cache: AssetCache | None = None,
        telemetry: TelemetrySink | None = None,
    ):
        self.fetcher = fetcher
        self.renderer = renderer or HeadlessRenderer()
        self.fetch_policy = fetch_policy or RetryPolicy(component=COMPONENT_FETCH, telemetry=telemetry)
        self.cache = cache
        self.telemetry = telemetry

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        telemetry: TelemetrySink | None = None,
        renderer: AssetRenderer | None = None,
        fetcher: AssetFetcher | None = None,
    ) -> "ResilientAssetLoader":
        cache = None
        if settings.ASSET_CACHE_ENABLED:
            cache = AssetCache(
                max_bytes=settings.ASSET_CACHE_MAX_BYTES,
                ttl_seconds=settings.ASSET_CACHE_TTL_SECONDS,
            )
        return cls(
            fetcher=fetcher
            or AssetFetcher(
                timeout=settings.HTTP_TIMEOUT,
                max_bytes=settings.ASSET_MAX_BYTES,
                api_token=settings.GENERATION_API_TOKEN,
            ),
            renderer=renderer,
            fetch_policy=RetryPolicy.from_settings(
                settings, COMPONENT_FETCH, settings.ASSET_FETCH_MAX_ATTEMPTS, telemetry
            ),
            cache=cache,
            telemetry=telemetry,
        )

    async def resolve(self, candidates: list[AssetCandidate]) -> LoadedAsset:
        """
        Resolve the first candidate that loads.

        Candidates already marked as failed are skipped. A procedural entry is
        appended to `candidates` if it has none, so an empty list resolves to
        a placeholder.

        Args:
            candidates: Ordered fallback chain (attempt marks are updated in place)

        Returns:
            LoadedAsset; `is_placeholder` is True when every mesh candidate failed
        """
        if not any(c.is_procedural for c in candidates):
            candidates.append(AssetCandidate.procedural())

        failures: list[CandidateFailure] = []
        for index, candidate in enumerate(candidates):
            if candidate.is_procedural:
                return self._placeholder(candidate, index, failures)

            if candidate.attempted and candidate.failed:
                failures.append(
                    CandidateFailure(
                        candidate_index=index,
                        reference=candidate.label,
                        error_kind=candidate.last_error_kind or ErrorKind.UNKNOWN,
                        message="Failed on an earlier attempt",
                    )
                )
                continue

            started = time.monotonic()
            try:
                asset = await self._load(candidate, index)
            except Exception as e:
                kind = error_kind_of(e)
                candidate.attempted = True
                candidate.failed = True
                candidate.last_error_kind = kind
                failures.append(
                    CandidateFailure(
                        candidate_index=index,
                        reference=candidate.label,
                        error_kind=kind,
                        message=e.message if isinstance(e, AssetLayerError) else str(e),
                    )
                )
                self._emit("candidate_failed", candidate, started, kind)
                logger.warning(
                    "Asset candidate failed, trying next",
                    reference=candidate.label,
                    candidate_index=index,
                    error_kind=kind.value,
                    error=str(e),
                )
                continue

            candidate.attempted = True
            candidate.failed = False
            candidate.last_error_kind = None
            asset.failures = failures
            self._emit("cache_hit" if asset.from_cache else "loaded", candidate, started)
            logger.info(
                "Asset loaded",
                reference=candidate.label,
                candidate_index=index,
                from_cache=asset.from_cache,
                skipped=len(failures),
            )
            return asset

        # unreachable: the chain always contains a procedural candidate
        raise AssertionError("candidate chain has no procedural entry")

    async def preload(self, references: list[str]) -> dict[str, bool]:
        """
        Download and cache references ahead of time, a few at a time.

        Returns:
            reference -> whether it is now cached
        """
        if self.cache is None:
            logger.warning("Preload requested without a cache")
            return {reference: False for reference in references}

        results: dict[str, bool] = {}
        for start in range(0, len(references), PRELOAD_CHUNK_SIZE):
            chunk = references[start : start + PRELOAD_CHUNK_SIZE]
            loaded = await asyncio.gather(*(self._preload_one(ref) for ref in chunk))
            results.update(zip(chunk, loaded))

        logger.info("Preload finished", requested=len(references), cached=sum(results.values()))
        return results

    async def close(self) -> None:
        await self.fetcher.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _load(self, candidate: AssetCandidate, index: int) -> LoadedAsset:
        reference = candidate.reference
        if not self.renderer.is_available():
            raise CapabilityError(
                "Graphics context unavailable on this device",
                details={"reference": reference},
            )

        cached = self.cache.get(reference) if self.cache is not None else None
        if cached is not None:
            asset = self.renderer.render(candidate, cached.payload, index)
            asset.from_cache = True
            if asset.summary is None:
                asset.summary = cached.summary
            return asset

        payload = await self.fetch_policy.execute(
            lambda: self.fetcher.fetch(reference),
            reference=reference,
        )
        summary = validate_payload(payload, candidate.format)
        asset = self.renderer.render(candidate, payload, index)
        if asset.summary is None:
            asset.summary = summary

        if self.cache is not None:
            self.cache.put(reference, payload, summary)
        return asset

    def _placeholder(
        self,
        candidate: AssetCandidate,
        index: int,
        failures: list[CandidateFailure],
    ) -> LoadedAsset:
        started = time.monotonic()
        try:
            asset = self.renderer.render(candidate, None, index)
        except Exception:
            logger.exception("Renderer failed on placeholder, using bare primitives")
            asset = LoadedAsset(
                reference=candidate.label,
                format=AssetFormat.PROCEDURAL,
                candidate_index=index,
                is_placeholder=True,
                primitives=build_placeholder(candidate.placeholder),
            )

        candidate.attempted = True
        candidate.failed = False
        asset.is_placeholder = True
        asset.failures = failures
        last_kind = failures[-1].error_kind if failures else None
        self._emit("placeholder", candidate, started, last_kind)
        logger.warning(
            "Showing placeholder asset",
            variant=candidate.placeholder.value,
            failed_candidates=len(failures),
        )
        return asset

    async def _preload_one(self, reference: str) -> bool:
        if reference in self.cache:
            return True
        try:
            payload = await self.fetch_policy.execute(
                lambda: self.fetcher.fetch(reference),
                reference=reference,
            )
            summary = validate_payload(payload, AssetFormat.GLB)
        except Exception as e:
            logger.warning("Preload failed", reference=reference, error_kind=error_kind_of(e).value, error=str(e))
            return False
        return self.cache.put(reference, payload, summary)

    def _emit(
        self,
        outcome: str,
        candidate: AssetCandidate,
        started: float,
        error_kind: Optional[ErrorKind] = None,
    ) -> None:
        record_event(
            self.telemetry,
            component=COMPONENT_LOADER,
            outcome=outcome,
            error_kind=error_kind,
            duration_ms=max(0.0, (time.monotonic() - started) * 1000),
            reference=candidate.label,
        )
