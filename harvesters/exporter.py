"""
Aggregate every cached record into a single JSON document.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, Optional

from dictionary_core.models import Mode
from dictionary_core.record_cache import RecordCache, atomic_write_bytes

logger = logging.getLogger(__name__)

EXPORT_FILENAME = 'dictionary_export.json'


def export_records(cache: RecordCache, output_file: Optional[Path] = None,
                   modes: Iterable[Mode] = tuple(Mode)) -> Dict[str, int]:
    """Write ``{"en_kh": [...], "kh_kh": [...], "kh_en": [...]}`` and return counts per mode.

    A corrupt record aborts the export rather than producing a partial file.
    """
    output_file = Path(output_file) if output_file else cache.root / EXPORT_FILENAME
    export_data = {mode.partition: [] for mode in Mode}

    for mode in modes:
        for entry in cache.iter_entries(mode):
            export_data[mode.partition].append(entry.to_dict())
        logger.info(f"Exporting {mode.partition}: {len(export_data[mode.partition])} records")

    payload = json.dumps(export_data, ensure_ascii=False, indent=2)
    atomic_write_bytes(output_file, payload.encode('utf-8'))

    counts = {partition: len(records) for partition, records in export_data.items()}
    logger.info(f"Exported {sum(counts.values())} words to {output_file}")
    return counts
