"""
Loads the human-readable class vocabulary from the YAMNet class map CSV.

Format: header row, then `index,mid,display_name` per class. Display names may
be quoted when they contain commas (e.g. "Bicycle, tricycle").

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

import csv
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

DISPLAY_NAME_COLUMN = 2


def parse_class_names(lines) -> list[str]:
    """
    Parses class map rows into an ordered list of display names.
    Rows with fewer than three columns are skipped; they do not abort loading.

    :param lines: Iterable of CSV text lines (header included).
    :return: Display names in class-index order.
    """
    reader = csv.reader(lines)
    next(reader, None)  # | index | mid | display_name |

    class_names = []
    for line_number, row in enumerate(reader, start=2):
        if len(row) <= DISPLAY_NAME_COLUMN:
            if any(field.strip() for field in row):
                logger.debug(f"Skipping malformed class map row {line_number}: {row}")
            continue
        class_names.append(row[DISPLAY_NAME_COLUMN].strip())

    return class_names


def load_class_names(file_path: str | Path) -> list[str]:
    """
    Loads class names from the CSV file on disk.

    :param file_path: Path to 'yamnet_class_map.csv'.
    :raises FileNotFoundError: If the class map does not exist.
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Class map not found at {path}.")

    with open(path, newline="", encoding="utf-8") as csv_file:
        class_names = parse_class_names(csv_file)

    logger.info(f"✅ Class map loaded: {len(class_names)} classes.")
    return class_names
