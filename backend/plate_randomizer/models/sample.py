"""Sample data models."""
from pydantic import BaseModel, ConfigDict
from typing import Dict, List, Optional


class Sample(BaseModel):
    """A sample with its attribute values."""
    name: str
    metadata: Dict[str, str] = {}

    model_config = ConfigDict(frozen=True)

    def __hash__(self) -> int:
        return hash(self.name)

    def get(self, attribute: str) -> Optional[str]:
        """Get an attribute value, None when absent."""
        return self.metadata.get(attribute)


class SampleSheet(BaseModel):
    """Samples loaded from one file."""
    filename: Optional[str] = None
    samples: List[Sample]

    def get_attributes(self) -> List[str]:
        """Get attribute names in first-seen order."""
        seen = {}
        for sample in self.samples:
            for key in sample.metadata:
                seen.setdefault(key, None)
        return list(seen)

    def get_values(self, attribute: str) -> List[str]:
        """Get distinct non-empty values of an attribute."""
        values = []
        for sample in self.samples:
            value = sample.get(attribute)
            if value and value not in values:
                values.append(value)
        return values
