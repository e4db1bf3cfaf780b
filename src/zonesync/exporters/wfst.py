"""Compile pending zone changes into one WFS-T 1.1.0 Transaction document.

Uses only xml.etree.ElementTree (stdlib). Property values are set as element
text, so the serializer escapes them.

Operation order in the document is fixed: every wfs:Insert, then every
wfs:Update, then every wfs:Delete.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Iterable, Union

from zonesync.exporters.gml import GML_SRS_NAME, encode_geometry
from zonesync.zone import Zone

WFS_NS = "http://www.opengis.net/wfs"
OGC_NS = "http://www.opengis.net/ogc"
GML_NS = "http://www.opengis.net/gml"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"
WFS_SCHEMA_LOCATION = "http://www.opengis.net/wfs http://schemas.opengis.net/wfs/1.1.0/wfs.xsd"

DEFAULT_NAME = "Sans nom"
DEFAULT_TYPE = "Aucun type"


class _NoChanges:
    """Returned by compile_transaction when there is nothing to send."""

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_CHANGES"


NO_CHANGES = _NoChanges()


def compile_transaction(
    inserted: Iterable[Zone],
    modified: Iterable[Zone],
    deleted: Iterable[str],
    feature_type: str = "geoimage:zones",
    namespace_uri: str = "http://www.geoimagesolutions.com",
    version: str = "1.1.0",
    srs_name: str = GML_SRS_NAME,
    member_per_polygon: bool = False,
    geometry_name: str = "geom",
    default_name: str = DEFAULT_NAME,
    default_type: str = DEFAULT_TYPE,
) -> Union[str, _NoChanges]:
    """Build a wfs:Transaction for the given changes.

    Args:
        inserted: Zones to insert.
        modified: Zones to update, matched by feature id. Duplicate ids are
            sent once, with the last zone given for that id.
        deleted: Feature ids to delete.
        feature_type: Qualified feature type name, "prefix:name".
        namespace_uri: Namespace URI bound to the feature type prefix.
        version: WFS version attribute.
        srs_name: srsName of every encoded geometry.
        member_per_polygon: MultiPolygon member grouping, see gml.encode_geometry.
        geometry_name: Name of the geometry property on the feature type.
        default_name: Name written when a zone has none.
        default_type: Type written when a zone has none.

    Returns:
        The XML document as a string, or NO_CHANGES if all inputs are empty.

    Raises:
        ValueError: If feature_type has no namespace prefix.
    """
    inserted = list(inserted)
    modified = list({zone.zone_id: zone for zone in modified}.values())
    deleted = list(dict.fromkeys(deleted))

    if not inserted and not modified and not deleted:
        return NO_CHANGES

    prefix, sep, local_name = feature_type.partition(":")
    if not sep or not prefix or not local_name:
        raise ValueError(f"Feature type must be qualified as 'prefix:name', got {feature_type!r}")

    root = ET.Element("wfs:Transaction", {
        "service": "WFS",
        "version": version,
        "xmlns:wfs": WFS_NS,
        "xmlns:ogc": OGC_NS,
        "xmlns:gml": GML_NS,
        f"xmlns:{prefix}": namespace_uri,
        "xmlns:xsi": XSI_NS,
        "xsi:schemaLocation": WFS_SCHEMA_LOCATION,
    })

    geometry_opts = {"srs_name": srs_name, "member_per_polygon": member_per_polygon}

    for zone in inserted:
        insert = ET.SubElement(root, "wfs:Insert")
        feature = ET.SubElement(insert, feature_type)
        geom = encode_geometry(zone.geometry, **geometry_opts)
        if geom is not None:
            ET.SubElement(feature, f"{prefix}:{geometry_name}").append(geom)
        ET.SubElement(feature, f"{prefix}:name").text = _text(zone, "name", default_name)
        ET.SubElement(feature, f"{prefix}:type").text = _text(zone, "type", default_type)

    for zone in modified:
        update = ET.SubElement(root, "wfs:Update", {"typeName": feature_type})
        geom = encode_geometry(zone.geometry, **geometry_opts)
        if geom is not None:
            _update_property(update, geometry_name).append(geom)
        _update_property(update, "name").text = _text(zone, "name", default_name)
        _update_property(update, "type").text = _text(zone, "type", default_type)
        _feature_id_filter(update, zone.zone_id)

    for zone_id in deleted:
        delete = ET.SubElement(root, "wfs:Delete", {"typeName": feature_type})
        _feature_id_filter(delete, zone_id)

    return ET.tostring(root, encoding="UTF-8", xml_declaration=True).decode("utf-8")


def _text(zone: Zone, key: str, default: str) -> str:
    value = zone.properties.get(key)
    if value is None or value == "":
        return default
    return str(value)


def _update_property(update: ET.Element, name: str) -> ET.Element:
    """Add a wfs:Property with the given name and return its empty wfs:Value."""
    prop = ET.SubElement(update, "wfs:Property")
    ET.SubElement(prop, "wfs:Name").text = name
    return ET.SubElement(prop, "wfs:Value")


def _feature_id_filter(parent: ET.Element, zone_id: str) -> None:
    filt = ET.SubElement(parent, "ogc:Filter")
    ET.SubElement(filt, "ogc:FeatureId", {"fid": zone_id})
