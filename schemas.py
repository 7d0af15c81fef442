from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field


# Inbound record. Unknown keys are dropped; numbers are accepted as strings.
class LamaranIn(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    full_name: str = Field(..., alias="fullName", min_length=1)
    email: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)

    def to_document(self) -> Dict[str, Any]:
        return {"full_name": self.full_name, "email": self.email, "phone": self.phone}


class LamaranOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    full_name: str = Field(..., alias="fullName")
    email: str
    phone: str
    created_at: datetime = Field(..., alias="createdAt")


class SubmitResponse(BaseModel):
    success: bool = True
    message: str = "Lamaran berhasil disimpan!"
    data: LamaranOut


class HealthResponse(BaseModel):
    status: str = "healthy"
    timestamp: datetime
    database: str
    dbHost: Optional[str] = None
    dbName: Optional[str] = None
