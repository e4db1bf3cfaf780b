"""SyncClient — load zones from a WFS server and save pending edits as one
WFS-T transaction.

The HTTP transport is an httpx.AsyncClient; pass one in to share a
connection pool or to use a mock transport in tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

import httpx
from loguru import logger

from zonesync.errors import LoadError, SaveError
from zonesync.exporters.wfst import compile_transaction
from zonesync.parsers.geojson import parse_feature_collection
from zonesync.parsers.transaction import parse_transaction_response
from zonesync.session import SaveBatch, ZoneSession
from zonesync.zone import Zone

if TYPE_CHECKING:
    from zoneserver.config import Settings


@dataclass
class SaveResult:
    """Outcome of a committed save.

    Counts are the totals from the server's TransactionSummary, or the
    number of operations sent when the response has none.
    """

    inserted: int = 0
    updated: int = 0
    deleted: int = 0
    inserted_fids: list[str] = field(default_factory=list)
    reloaded: bool = False

    def to_dict(self) -> dict:
        return {
            "inserted": self.inserted,
            "updated": self.updated,
            "deleted": self.deleted,
            "inserted_fids": list(self.inserted_fids),
            "reloaded": self.reloaded,
        }


class SyncClient:
    """Synchronizes a ZoneSession with a WFS-T server."""

    def __init__(
        self,
        session: ZoneSession,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the sync client.

        Args:
            session: Session whose zones are loaded and saved.
            settings: Endpoint and encoding settings (defaults to the
                environment-loaded settings).
            client: HTTP client to use. One is created (and owned) if omitted.
        """
        if settings is None:
            from zoneserver.config import settings as default_settings
            settings = default_settings
        self.session = session
        self.settings = settings
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.settings.request_timeout)
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client if this SyncClient created it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> SyncClient:
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    # ==================
    # Load
    # ==================

    def feature_params(self) -> dict[str, str]:
        """GetFeature query parameters for the configured feature type."""
        return {
            "service": "WFS",
            "version": self.settings.wfs_version,
            "request": "GetFeature",
            "typeName": self.settings.wfs_feature_type,
            "outputFormat": "application/json",
            "srsname": self.settings.srs_name,
        }

    async def fetch_zones(self, url: Optional[str] = None) -> list[Zone]:
        """Fetch the server's zone set without touching the session.

        Args:
            url: Full GetFeature URL. Defaults to the configured endpoint with
                feature_params().

        Raises:
            LoadError: On transport errors, non-2xx responses or bad GeoJSON.
        """
        try:
            if url is None:
                resp = await self.client.get(self.settings.wfs_url, params=self.feature_params())
            else:
                resp = await self.client.get(url)
        except httpx.HTTPError as e:
            raise LoadError(f"GetFeature request failed: {e}") from e

        if not resp.is_success:
            raise LoadError(f"GetFeature request failed: {resp.status_code} {resp.reason_phrase}")

        return parse_feature_collection(resp.content)

    async def load(self, url: Optional[str] = None) -> list[Zone]:
        """Replace the session's zones with the server's and reset tracking.

        Pending local edits are discarded.

        Raises:
            LoadError: The session keeps its zones and records the error.
        """
        self.session.begin_load()
        try:
            zones = await self.fetch_zones(url)
        except LoadError as e:
            logger.error(f"Failed to load zones: {e}")
            self.session.fail_load(f"Failed to load zones: {e}")
            raise
        self.session.apply_snapshot(zones)
        return zones

    # ==================
    # Save
    # ==================

    async def save(self) -> SaveResult:
        """Submit every pending change as one transaction, then reload.

        Raises:
            SaveInProgressError: Another save is in flight.
            NoChangesError: Nothing to save; no request is made.
            SaveError: The transaction failed; pending changes are kept.
        """
        batch = self.session.begin_save()
        try:
            resp = await self._submit(batch)
        except SaveError as e:
            logger.error(str(e))
            self.session.abort_save(batch, str(e))
            raise
        except BaseException:
            self.session.abort_save(batch, "Failed to save changes: interrupted")
            raise

        tx = parse_transaction_response(resp.content)
        for message in tx.exceptions:
            logger.warning(f"WFS-T server reported: {message}")

        self.session.complete_save(batch, tx.inserted_fids)
        logger.info(
            f"Saved zones: {len(batch.inserted)} inserted, "
            f"{len(batch.modified)} updated, {len(batch.deleted)} deleted"
        )

        result = SaveResult(
            inserted=_total(tx.total_inserted, batch.inserted),
            updated=_total(tx.total_updated, batch.modified),
            deleted=_total(tx.total_deleted, batch.deleted),
            inserted_fids=tx.inserted_fids,
        )
        result.reloaded = await self._reload_after_save()
        return result

    async def _submit(self, batch: SaveBatch) -> httpx.Response:
        s = self.settings
        try:
            body = compile_transaction(
                batch.inserted,
                batch.modified,
                batch.deleted,
                feature_type=s.wfs_feature_type,
                namespace_uri=s.wfs_namespace_uri,
                version=s.wfs_version,
                srs_name=s.gml_srs_name,
                member_per_polygon=s.gml_member_per_polygon,
                geometry_name=s.wfs_geometry_name,
                default_name=s.default_zone_name,
                default_type=s.default_zone_type,
            )
        except ValueError as e:
            raise SaveError(f"Failed to save changes: {e}") from e

        try:
            resp = await self.client.post(
                s.wfs_url,
                content=body.encode("utf-8"),
                headers={"Content-Type": "application/xml"},
            )
        except httpx.HTTPError as e:
            raise SaveError(f"Failed to save changes: {e}") from e

        if not resp.is_success:
            raise SaveError(
                f"Failed to save changes: WFS-T request failed: {resp.status_code} {resp.reason_phrase}",
                status_code=resp.status_code,
            )
        return resp

    async def _reload_after_save(self) -> bool:
        """Re-baseline on the server's state, keeping edits made during the save."""
        self.session.begin_load()
        try:
            zones = await self.fetch_zones()
        except LoadError as e:
            logger.error(f"Reload after save failed: {e}")
            self.session.fail_load(f"Failed to load zones: {e}")
            return False
        self.session.apply_snapshot(zones, keep_pending=True)
        return True


def _total(reported: Optional[int], sent: list) -> int:
    """Server-reported count, or the number of operations sent when it gave none."""
    return reported if reported is not None else len(sent)
