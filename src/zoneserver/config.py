"""Configuration management using Pydantic settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from ZONESYNC_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ZONESYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "zonesync"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # WFS-T endpoint (GetFeature and Transaction share the URL)
    wfs_url: str = "http://localhost:8080/geoserver/wfs"
    wfs_feature_type: str = "geoimage:zones"
    wfs_namespace_uri: str = "http://www.geoimagesolutions.com"
    wfs_version: str = "1.1.0"
    wfs_geometry_name: str = "geom"
    srs_name: str = "EPSG:4326"           # GetFeature srsname parameter
    request_timeout: float = 10.0         # seconds

    # GML encoding
    gml_srs_name: str = "urn:x-ogc:def:crs:EPSG:4326"
    gml_member_per_polygon: bool = False  # False = one polygonMember around all polygons

    # Values written when a zone has no name / type
    default_zone_name: str = "Sans nom"
    default_zone_type: str = "Aucun type"


settings = Settings()
