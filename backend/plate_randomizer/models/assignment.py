"""Assignment export models."""
import io
from pydantic import BaseModel
from typing import Dict, List, Optional

import pandas as pd


class AssignmentEntry(BaseModel):
    """Single sample placement."""
    plate_index: int
    plate_label: str
    well: str  # A01 format
    row: int
    col: int
    sample_name: str
    covariate_key: Optional[str] = None
    metadata: Dict[str, str] = {}


class AssignmentTable(BaseModel):
    """Sample placements of a randomization, one entry per occupied well."""
    entries: List[AssignmentEntry]

    def to_dataframe(self) -> pd.DataFrame:
        """Flatten entries into a table, one column per metadata attribute."""
        records = []
        for entry in self.entries:
            record = {
                "Plate": entry.plate_label,
                "Well": entry.well,
                "Row": entry.row + 1,
                "Column": entry.col + 1,
                "Sample": entry.sample_name,
                "Covariate Group": entry.covariate_key or "N/A",
            }
            for key, value in entry.metadata.items():
                record.setdefault(key, value)
            records.append(record)
        columns = ["Plate", "Well", "Row", "Column", "Sample", "Covariate Group"]
        df = pd.DataFrame.from_records(records)
        if df.empty:
            return pd.DataFrame(columns=columns)
        return df

    def to_csv(self) -> str:
        """Export to CSV format."""
        buffer = io.StringIO()
        self.to_dataframe().to_csv(buffer, index=False)
        return buffer.getvalue()
