# =============================================================================
# utils/export_utils.py - Resolved record export
# =============================================================================

import csv
import logging
from pathlib import Path
from typing import List, Dict, Any, Optional

import pandas as pd

from core.models import ResolvedRecord


class ReportExporter:
    """Writes resolved records to CSV or Excel"""

    @staticmethod
    def records_to_rows(records: List[ResolvedRecord]) -> List[Dict[str, Any]]:
        return [record.to_row() for record in records]

    @staticmethod
    def fieldnames(rows: List[Dict[str, Any]]) -> List[str]:
        """Column names in first-seen order, so extension columns follow the fixed ones"""
        names: List[str] = []
        for row in rows:
            for name in row:
                if name not in names:
                    names.append(name)
        return names

    @classmethod
    def write(cls, records: List[ResolvedRecord], output_path: str) -> None:
        """Pick the writer from the output file extension"""
        rows = cls.records_to_rows(records)
        if Path(output_path).suffix.lower() == '.xlsx':
            cls.write_excel(rows, output_path)
        else:
            cls.write_csv(rows, output_path)

    @staticmethod
    def write_csv(data: List[Dict[str, Any]], output_path: str,
                  fieldnames: Optional[List[str]] = None) -> None:
        """Write data to CSV file"""
        logger = logging.getLogger(__name__)

        if not data:
            logger.warning("No data to write")
            return

        if fieldnames is None:
            fieldnames = ReportExporter.fieldnames(data)

        try:
            with open(output_path, 'w', newline='', encoding='utf-8') as file:
                writer = csv.DictWriter(file, fieldnames=fieldnames)
                writer.writeheader()
                writer.writerows(data)

            logger.info(f"Successfully wrote {len(data)} records to {output_path}")

        except Exception as e:
            logger.error(f"Error writing CSV: {e}")
            raise

    @staticmethod
    def write_excel(data: List[Dict[str, Any]], output_path: str,
                    sheet_name: str = 'Passwords') -> None:
        """Write data to an Excel workbook"""
        logger = logging.getLogger(__name__)

        if not data:
            logger.warning("No data to write")
            return

        try:
            df = pd.DataFrame(data, columns=ReportExporter.fieldnames(data))
            df.to_excel(output_path, sheet_name=sheet_name, index=False)
            logger.info(f"Successfully wrote {len(data)} records to {output_path}")

        except Exception as e:
            logger.error(f"Error writing Excel file: {e}")
            raise
