"""In-memory WFS server on httpx.MockTransport, plus zone/feature builders."""

from __future__ import annotations

import httpx

from zonesync import Zone

WFS_URL = "http://wfs.test/geoserver/wfs"

PARC_RING = [[2.35, 48.85], [2.36, 48.85], [2.36, 48.86], [2.35, 48.85]]


def make_polygon(zone_id: str, name: str | None = None, offset: float = 0.0) -> Zone:
    ring = [
        [2.35 + offset, 48.85],
        [2.36 + offset, 48.85],
        [2.36 + offset, 48.86],
        [2.35 + offset, 48.85],
    ]
    props = {"name": name} if name is not None else {}
    return Zone(zone_id, "Polygon", [ring], props)


def make_point(zone_id: str, x: float = 1, y: float = 2) -> Zone:
    return Zone(zone_id, "Point", [x, y], {})


def feature(zone_id: str, geometry: dict, **props) -> dict:
    return {"type": "Feature", "id": zone_id, "geometry": geometry, "properties": props}


def insert_response(*fids: str, updated: int = 0, deleted: int = 0) -> str:
    """A WFS 1.1.0 TransactionResponse reporting the given inserted fids and totals."""
    features = "".join(
        f'<wfs:Feature><ogc:FeatureId fid="{fid}"/></wfs:Feature>' for fid in fids
    )
    return (
        '<wfs:TransactionResponse xmlns:wfs="http://www.opengis.net/wfs" '
        'xmlns:ogc="http://www.opengis.net/ogc" version="1.1.0">'
        "<wfs:TransactionSummary>"
        f"<wfs:totalInserted>{len(fids)}</wfs:totalInserted>"
        f"<wfs:totalUpdated>{updated}</wfs:totalUpdated>"
        f"<wfs:totalDeleted>{deleted}</wfs:totalDeleted>"
        "</wfs:TransactionSummary>"
        "<wfs:TransactionResults/>"
        f"<wfs:InsertResults>{features}</wfs:InsertResults>"
        "</wfs:TransactionResponse>"
    )


class FakeWfsServer:
    """Minimal WFS: GetFeature returns `features`, Transaction returns `tx_status`.

    Every request is recorded. `on_transaction` is called while a transaction
    is being handled, so tests can edit the session mid-flight.
    """

    def __init__(self, features: list[dict] | None = None):
        self.features = features or []
        self.requests: list[httpx.Request] = []
        self.tx_status = 200
        self.tx_body = ""
        self.get_status = 200
        self.on_transaction = None

    @property
    def transactions(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "POST"]

    @property
    def fetches(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "GET"]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "GET":
            if self.get_status != 200:
                return httpx.Response(self.get_status)
            return httpx.Response(
                200,
                json={"type": "FeatureCollection", "features": self.features},
            )
        if self.on_transaction is not None:
            self.on_transaction(request)
        return httpx.Response(
            self.tx_status,
            content=self.tx_body.encode("utf-8"),
            headers={"Content-Type": "text/xml"},
        )

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
