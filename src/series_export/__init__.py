from src.series_export.exporter import DataPoint, SeriesExporter, to_dataframe, write_csv
from src.series_export.metadata import (
    DictMetadataSource,
    ItemAttributes,
    JsonMetadataSource,
    MetadataCache,
    MetadataLookupError,
    MetadataNotFoundError,
    MetadataSource,
)

__all__ = [
    "DataPoint",
    "DictMetadataSource",
    "ItemAttributes",
    "JsonMetadataSource",
    "MetadataCache",
    "MetadataLookupError",
    "MetadataNotFoundError",
    "MetadataSource",
    "SeriesExporter",
    "to_dataframe",
    "write_csv",
]
