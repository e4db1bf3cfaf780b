"""Parse a WFS-T 1.1.0 TransactionResponse using xml.etree.ElementTree.

Only the parts the sync client uses are read: the summary counts and the
feature ids the server assigned to inserts (wfs:InsertResults), which come
back in insert order. Exception reports returned with a 2xx status are
collected so they can be logged.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Optional, Union

from loguru import logger


@dataclass
class TransactionResult:
    """What the server reported for a committed transaction.

    Totals are None when the response has no TransactionSummary.
    """

    inserted_fids: list[str] = field(default_factory=list)
    total_inserted: Optional[int] = None
    total_updated: Optional[int] = None
    total_deleted: Optional[int] = None
    exceptions: list[str] = field(default_factory=list)


def parse_transaction_response(content: Union[str, bytes]) -> TransactionResult:
    """Parse a TransactionResponse body.

    Unparseable bodies give an empty result; the transaction already
    succeeded at the HTTP level.
    """
    result = TransactionResult()
    if not content:
        return result

    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        logger.debug(f"Transaction response is not XML: {e}")
        return result

    for elem in root.iter():
        name = _local_name(elem.tag)
        if name == "InsertResults":
            for feature_id in elem.iter():
                fid = feature_id.get("fid")
                if _local_name(feature_id.tag) == "FeatureId" and fid:
                    result.inserted_fids.append(fid)
        elif name == "totalInserted":
            result.total_inserted = _int(elem.text)
        elif name == "totalUpdated":
            result.total_updated = _int(elem.text)
        elif name == "totalDeleted":
            result.total_deleted = _int(elem.text)
        elif name == "ExceptionText" and elem.text:
            result.exceptions.append(elem.text.strip())

    return result


def _local_name(tag) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def _int(text) -> Optional[int]:
    try:
        return int((text or "").strip())
    except ValueError:
        return None
