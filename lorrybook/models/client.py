from pydantic import BaseModel, ConfigDict, EmailStr, Field
from .common import gen_id


class Client(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=gen_id)
    name: str  # raison sociale
    trade_name: str | None = None
    address: str = ""
    state: str = ""
    gstin: str | None = None
    contact_person: str | None = None
    contact_phone: str | None = None
    contact_email: EmailStr | None = None
