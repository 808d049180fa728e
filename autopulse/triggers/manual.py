from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from autopulse.models import NewScanEvent


class Rewrite(BaseModel):
    """Replace a path prefix, e.g. a container mount point with the host path."""

    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(..., alias="from")
    to: str

    def apply(self, path: str) -> str:
        if path.startswith(self.from_):
            return self.to + path[len(self.from_):]
        return path


class ManualTrigger(BaseModel):
    """Trigger fed directly over HTTP with a path and an optional hash."""

    type: Literal["manual"] = "manual"
    rewrite: Optional[Rewrite] = None

    def rewrite_path(self, path: str) -> str:
        return self.rewrite.apply(path) if self.rewrite else path

    def build_event(self, path: str, file_hash: Optional[str] = None) -> NewScanEvent:
        return NewScanEvent(file_path=self.rewrite_path(path), file_hash=file_hash)
