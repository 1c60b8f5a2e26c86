from pydantic import BaseModel, Field


class CsvImportRequest(BaseModel):
    content: str = Field(min_length=1, description="Raw CSV text including the header row.")
    dry_run: bool = False


class CsvImportResponse(BaseModel):
    entity_type: str
    dry_run: bool
    parsed: int
    created: int
    skipped: int
    record_ids: list[str]
