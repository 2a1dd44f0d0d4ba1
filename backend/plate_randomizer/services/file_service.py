"""File parsing service."""
import io
import logging
from typing import Dict, List, Optional

import pandas as pd

from plate_randomizer.models import Sample, SampleSheet

logger = logging.getLogger(__name__)


class FileService:
    """Service for parsing sample sheets."""

    # Accepted headers for the sample name column
    NAME_ALIASES = [
        'name', 'Name', 'Sample', 'sample', 'Sample Name', 'sample_name',
        'Sample ID', 'sample_id', 'SampleID', 'ID', 'id', 'search name',
    ]

    def parse_file(self, content: bytes, filename: str) -> SampleSheet:
        """
        Parse uploaded file and return its samples.

        Args:
            content: File content as bytes
            filename: Original filename

        Returns:
            SampleSheet; every column other than the sample name becomes
            string metadata

        Raises:
            ValueError: for unsupported formats, a missing name column or no rows
        """
        lower = filename.lower()
        if lower.endswith('.csv'):
            df = self._parse_csv(content)
        elif lower.endswith(('.xlsx', '.xls')):
            df = self._parse_excel(content)
        else:
            raise ValueError(f"Unsupported file format: {filename}")

        samples = self.dataframe_to_samples(df)
        if not samples:
            raise ValueError("No samples found in file")
        logger.info(f"Parsed {len(samples)} samples from {filename}")
        return SampleSheet(filename=filename, samples=samples)

    def dataframe_to_samples(self, df: pd.DataFrame) -> List[Sample]:
        """Convert a table with a sample name column into samples."""
        name_column = self._detect_name_column(df)
        if name_column is None:
            raise ValueError(
                f"Missing sample name column (expected one of: {', '.join(self.NAME_ALIASES[:6])})"
            )

        attribute_columns = [c for c in df.columns if c != name_column]
        samples = []
        for _, row in df.iterrows():
            name = self._cell_to_str(row[name_column])
            if not name:
                continue
            metadata: Dict[str, str] = {}
            for column in attribute_columns:
                value = self._cell_to_str(row[column])
                if value is not None:
                    metadata[str(column)] = value
            samples.append(Sample(name=name, metadata=metadata))
        return samples

    def _parse_csv(self, content: bytes) -> pd.DataFrame:
        """Parse CSV file."""
        # Try different encodings
        for encoding in ['utf-8', 'gbk', 'latin1']:
            try:
                return pd.read_csv(io.BytesIO(content), encoding=encoding, dtype=str)
            except UnicodeDecodeError:
                continue
        raise ValueError("Could not decode CSV file")

    def _parse_excel(self, content: bytes) -> pd.DataFrame:
        """Parse Excel file."""
        # Use the first sheet that has a sample name column
        xl = pd.ExcelFile(io.BytesIO(content))

        for sheet_name in xl.sheet_names:
            df = pd.read_excel(xl, sheet_name=sheet_name, dtype=str)
            if self._detect_name_column(df) is not None:
                return df

        # If no sheet matches, return the first one
        return pd.read_excel(io.BytesIO(content), dtype=str)

    def _detect_name_column(self, df: pd.DataFrame) -> Optional[str]:
        """Find the sample name column by alias, case-insensitively."""
        aliases = [a.lower() for a in self.NAME_ALIASES]
        for alias in aliases:
            for col in df.columns:
                if str(col).strip().lower() == alias:
                    return col
        return None

    def _cell_to_str(self, value) -> Optional[str]:
        if value is None or pd.isna(value):
            return None
        text = str(value).strip()
        return text or None
